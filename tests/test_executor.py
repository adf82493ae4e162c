from typing import Any

from gitdojo.context import Context
from gitdojo.errors import CancelledError, DeadlineExceeded, ExecutionCancelled, InvalidInputError, QueryError
from gitdojo.executor import (
    all_checks_passed,
    all_steps_passed,
    count_passed,
    iter_checks,
    run_lesson,
    run_script,
)
from gitdojo.models import Check, CheckResult, Lesson, Outcome, Script, Step
from gitdojo.shell import ShellOutput


class FakeRepository:
    """Stands in for a Repository; lesson checks below never touch it."""


def _lesson(outcomes: list[Outcome], executed: list[str] | None = None) -> Lesson:
    def make_verify(index: int, outcome: Outcome) -> Any:
        def verify(ctx: Context, repo: Any) -> Outcome:
            if executed is not None:
                executed.append(f"check-{index}")
            return outcome

        return verify

    checks = tuple(
        Check(id=f"check-{index}", title=f"Check {index}", description="", verify=make_verify(index, outcome))
        for index, outcome in enumerate(outcomes, start=1)
    )
    return Lesson(id="test", title="Test Lesson", description="", checks=checks)


def test_run_lesson_returns_results_in_order_and_emits_each() -> None:
    lesson = _lesson([Outcome.success("ok"), Outcome.failure("nope"), Outcome.success("ok")])
    emitted: list[CheckResult] = []

    results = run_lesson(Context.background(), lesson, FakeRepository(), emitted.append)

    assert [result.check.id for result in results] == ["check-1", "check-2", "check-3"]
    assert emitted == results
    assert [result.passed for result in results] == [True, False, True]
    assert all(result.duration >= 0 for result in results)


def test_failures_do_not_stop_the_run() -> None:
    lesson = _lesson([Outcome.failure("a"), Outcome.from_error(QueryError("b")), Outcome.failure("c")])
    results = run_lesson(Context.background(), lesson, FakeRepository())
    assert len(results) == 3
    assert count_passed(results) == 0


def test_run_lesson_requires_lesson_and_repository() -> None:
    for lesson, repo in ((None, FakeRepository()), (_lesson([]), None)):
        try:
            run_lesson(Context.background(), lesson, repo)
            raise AssertionError("Expected InvalidInputError.")
        except InvalidInputError:
            pass


def test_iter_checks_validates_eagerly() -> None:
    try:
        iter_checks(Context.background(), None, FakeRepository())
        raise AssertionError("Expected InvalidInputError before iteration.")
    except InvalidInputError:
        pass


def test_cancel_before_item_k_yields_k_minus_one_results() -> None:
    executed: list[str] = []
    lesson = _lesson([Outcome.success("ok")] * 5, executed)
    ctx = Context.background()
    k = 3

    def on_result(result: CheckResult) -> None:
        if result.check.id == f"check-{k - 1}":
            ctx.cancel()

    try:
        run_lesson(ctx, lesson, FakeRepository(), on_result)
        raise AssertionError("Expected ExecutionCancelled.")
    except ExecutionCancelled as exc:
        assert [result.check.id for result in exc.results] == ["check-1", "check-2"]
        assert isinstance(exc.__cause__, CancelledError)
    assert executed == ["check-1", "check-2"]


def test_cancelled_before_start_runs_nothing() -> None:
    executed: list[str] = []
    ctx = Context.background()
    ctx.cancel()
    try:
        run_lesson(ctx, _lesson([Outcome.success("ok")], executed), FakeRepository())
        raise AssertionError("Expected ExecutionCancelled.")
    except ExecutionCancelled as exc:
        assert exc.results == []
    assert executed == []


def test_expired_deadline_reports_deadline_exceeded() -> None:
    ctx = Context.background().with_timeout(0)
    try:
        run_lesson(ctx, _lesson([Outcome.success("ok")]), FakeRepository())
        raise AssertionError("Expected ExecutionCancelled.")
    except ExecutionCancelled as exc:
        assert isinstance(exc.__cause__, DeadlineExceeded)


def test_iter_checks_stream_raises_cancelled_error() -> None:
    ctx = Context.background()
    stream = iter_checks(ctx, _lesson([Outcome.success("ok")] * 2), FakeRepository())
    first = next(stream)
    assert first.check.id == "check-1"
    ctx.cancel()
    try:
        next(stream)
        raise AssertionError("Expected CancelledError.")
    except CancelledError:
        pass


def test_check_that_raises_becomes_error_outcome() -> None:
    def broken(ctx: Context, repo: Any) -> Outcome:
        raise RuntimeError("bug in check")

    lesson = Lesson(
        id="broken",
        title="Broken",
        description="",
        checks=(
            Check(id="a", title="A", description="", verify=broken),
            Check(id="b", title="B", description="", verify=lambda ctx, repo: Outcome.success("fine")),
        ),
    )
    results = run_lesson(Context.background(), lesson, FakeRepository())
    assert len(results) == 2
    assert isinstance(results[0].outcome.error, RuntimeError)
    assert results[0].passed is False
    assert results[1].passed is True


def test_checks_receive_bounded_child_context() -> None:
    seen: list[float | None] = []

    def verify(ctx: Context, repo: Any) -> Outcome:
        seen.append(ctx.remaining())
        return Outcome.success("ok")

    lesson = Lesson(id="l", title="L", description="", checks=(Check(id="c", title="C", description="", verify=verify),))
    run_lesson(Context.background(), lesson, FakeRepository(), check_timeout=2.0)
    assert seen[0] is not None
    assert 0 < seen[0] <= 2.0


def test_all_checks_passed() -> None:
    lesson = _lesson([Outcome.success("ok"), Outcome.success("ok")])
    results = run_lesson(Context.background(), lesson, FakeRepository())
    assert all_checks_passed(results, lesson) is True
    assert all_checks_passed(results[:1], lesson) is False

    failing = _lesson([Outcome.success("ok"), Outcome.from_error(QueryError("x"))])
    assert all_checks_passed(run_lesson(Context.background(), failing, FakeRepository()), failing) is False


def test_all_checks_passed_treats_error_with_passed_flag_as_failure() -> None:
    lesson = _lesson([Outcome(passed=True, message="", error=QueryError("x"))])
    results = run_lesson(Context.background(), lesson, FakeRepository())
    assert all_checks_passed(results, lesson) is False


class FakeShell:
    def __init__(self, outputs: dict[str, ShellOutput]) -> None:
        self.outputs = outputs
        self.commands: list[str] = []

    def __call__(self, ctx: Context, command: str) -> ShellOutput:
        self.commands.append(command)
        return self.outputs[command]


def test_run_script_streams_in_order_with_fake_shell() -> None:
    shell = FakeShell({"a": ShellOutput("A\n", "", 0), "b": ShellOutput("", "boom", 3), "c": ShellOutput("C", "", 0)})
    script = Script(
        id="s",
        title="S",
        description="",
        steps=(Step(command="a", expect_stdout=("A",)), Step(command="b"), Step(command="c")),
    )
    emitted: list[Any] = []
    results = run_script(Context.background(), script, emitted.append, shell)

    assert shell.commands == ["a", "b", "c"]
    assert [result.step.command for result in results] == ["a", "b", "c"]
    assert emitted == results
    assert [result.passed for result in results] == [True, False, True]
    assert results[1].failures == ("expected exit code 0, got 3",)
    assert all_steps_passed(results, script) is False


def test_run_script_cancellation_keeps_partial_results() -> None:
    shell = FakeShell({"a": ShellOutput("", "", 0), "b": ShellOutput("", "", 0)})
    script = Script(id="s", title="S", description="", steps=(Step(command="a"), Step(command="b")))
    ctx = Context.background()
    try:
        run_script(ctx, script, lambda result: ctx.cancel(), shell)
        raise AssertionError("Expected ExecutionCancelled.")
    except ExecutionCancelled as exc:
        assert len(exc.results) == 1
        assert all_steps_passed(exc.results, script) is False
    assert shell.commands == ["a"]


def test_run_script_requires_script() -> None:
    try:
        run_script(Context.background(), None)
        raise AssertionError("Expected InvalidInputError.")
    except InvalidInputError:
        pass
