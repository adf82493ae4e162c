"""Sequential, cancellable execution of lesson checks and script steps.

Items run one at a time in declaration order. Cancellation is observed only
between items: the context is checked before each item starts, and an
in-flight item runs until it finishes or its own bounded child context
expires. Each result is handed to the consumer before the next item starts.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import TypeVar

from .config import DEFAULT_GIT_TIMEOUT, DEFAULT_STEP_TIMEOUT
from .context import Context
from .errors import CancelledError, ExecutionCancelled, InvalidInputError
from .gitrepo import Repository
from .logging_config import get_logger
from .models import CheckResult, Lesson, Outcome, Script, Step, StepResult
from .shell import ShellRunner, run_command

logger = get_logger(__name__)

R = TypeVar("R", CheckResult, StepResult)


def iter_checks(
    ctx: Context,
    lesson: Lesson | None,
    repo: Repository | None,
    *,
    check_timeout: float = DEFAULT_GIT_TIMEOUT,
) -> Iterator[CheckResult]:
    """Return a lazy stream of check results for `lesson`.

    Arguments are validated immediately. The stream raises CancelledError
    (or DeadlineExceeded) when `ctx` is done before the next check starts.
    """
    if lesson is None:
        raise InvalidInputError("lesson is required")
    if repo is None:
        raise InvalidInputError("repository is required")
    return _check_stream(ctx, lesson, repo, check_timeout)


def _check_stream(ctx: Context, lesson: Lesson, repo: Repository, check_timeout: float) -> Iterator[CheckResult]:
    logger.debug("lesson_started", lesson=lesson.id, checks=len(lesson.checks))
    for check in lesson.checks:
        ctx.raise_if_done()
        start = time.perf_counter()
        try:
            outcome = check.verify(ctx.with_timeout(check_timeout), repo)
        except Exception as exc:
            logger.warning("check_raised", lesson=lesson.id, check=check.id, exc_info=True)
            outcome = Outcome.from_error(exc)
        result = CheckResult(check=check, outcome=outcome, duration=time.perf_counter() - start)
        logger.debug(
            "check_completed",
            lesson=lesson.id,
            check=check.id,
            passed=result.passed,
            duration=round(result.duration, 3),
        )
        yield result


def run_step(
    ctx: Context,
    step: Step,
    shell: ShellRunner = run_command,
    *,
    step_timeout: float | None = DEFAULT_STEP_TIMEOUT,
) -> StepResult:
    """Run one step and derive its pass/fail from the step's expectations."""
    step_ctx = ctx.with_timeout(step_timeout) if step_timeout is not None else ctx
    start = time.perf_counter()
    output = shell(step_ctx, step.command)
    duration = time.perf_counter() - start

    failures: list[str] = []
    if output.error is not None:
        failures.append(str(output.error))
    elif step.checks_exit_code and step.expect_exit_code != output.exit_code:
        failures.append(f"expected exit code {step.expect_exit_code}, got {output.exit_code}")

    for expected in step.expect_stdout:
        if expected not in output.stdout:
            failures.append(f'stdout missing "{expected}"')

    return StepResult(
        step=step,
        stdout=output.stdout,
        stderr=output.stderr,
        exit_code=output.exit_code,
        duration=duration,
        failures=tuple(failures),
        exec_error=output.error,
    )


def iter_steps(
    ctx: Context,
    script: Script | None,
    shell: ShellRunner = run_command,
    *,
    step_timeout: float | None = DEFAULT_STEP_TIMEOUT,
) -> Iterator[StepResult]:
    """Return a lazy stream of step results for `script`."""
    if script is None:
        raise InvalidInputError("script is required")
    return _step_stream(ctx, script, shell, step_timeout)


def _step_stream(ctx: Context, script: Script, shell: ShellRunner, step_timeout: float | None) -> Iterator[StepResult]:
    for index, step in enumerate(script.steps, start=1):
        ctx.raise_if_done()
        result = run_step(ctx, step, shell, step_timeout=step_timeout)
        logger.debug(
            "step_completed",
            script=script.id,
            step=index,
            exit_code=result.exit_code,
            passed=result.passed,
            duration=round(result.duration, 3),
        )
        yield result


def _drain(stream: Iterable[R], on_result: Callable[[R], None] | None) -> list[R]:
    results: list[R] = []
    try:
        for result in stream:
            results.append(result)
            if on_result is not None:
                on_result(result)
    except CancelledError as exc:
        logger.info("execution_cancelled", completed=len(results), reason=str(exc))
        raise ExecutionCancelled(results) from exc
    return results


def run_lesson(
    ctx: Context,
    lesson: Lesson | None,
    repo: Repository | None,
    on_result: Callable[[CheckResult], None] | None = None,
    *,
    check_timeout: float = DEFAULT_GIT_TIMEOUT,
) -> list[CheckResult]:
    """Run every check of `lesson` in order and return the results.

    Raises ExecutionCancelled, carrying the results gathered so far, when
    `ctx` is done before all checks have run.
    """
    return _drain(iter_checks(ctx, lesson, repo, check_timeout=check_timeout), on_result)


def run_script(
    ctx: Context,
    script: Script | None,
    on_result: Callable[[StepResult], None] | None = None,
    shell: ShellRunner = run_command,
    *,
    step_timeout: float | None = DEFAULT_STEP_TIMEOUT,
) -> list[StepResult]:
    """Run every step of `script` in order and return the results."""
    return _drain(iter_steps(ctx, script, shell, step_timeout=step_timeout), on_result)


def count_passed(results: Iterable[CheckResult | StepResult]) -> int:
    return sum(1 for result in results if result.passed)


def all_checks_passed(results: Sequence[CheckResult], lesson: Lesson) -> bool:
    """Whether every check of `lesson` ran and passed."""
    return len(results) == len(lesson.checks) and all(result.passed for result in results)


def all_steps_passed(results: Sequence[StepResult], script: Script) -> bool:
    """Whether every step of `script` ran and passed."""
    return len(results) == len(script.steps) and all(result.passed for result in results)
