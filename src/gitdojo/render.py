"""Terminal presentation of lesson and script result streams."""

from __future__ import annotations

from collections.abc import Sequence
from types import TracebackType

from rich.console import Console
from rich.markup import escape
from rich.status import Status

from .executor import count_passed
from .models import CheckResult, Lesson, Script, StepResult

SUCCESS_GLYPH = "✔"
FAIL_GLYPH = "✘"


def format_duration(seconds: float) -> str:
    """Render a duration rounded to 10ms, e.g. "0s", "120ms", "1.25s"."""
    rounded = round(seconds, 2)
    if rounded <= 0:
        return "0s"
    if rounded < 1:
        return f"{int(round(rounded * 1000))}ms"
    return f"{rounded:g}s"


class _RunView:
    """Header, spinner, per-item lines and summary for one run."""

    noun = "items"
    busy_text = "Running"

    def __init__(self, console: Console, title: str, description: str, pending: Sequence[tuple[str, str]]) -> None:
        self.console = console
        self.title = title
        self.description = description
        self._pending = list(pending)
        self._done = 0
        self._status: Status | None = None

    def __enter__(self) -> _RunView:
        self.console.print(f"[bold bright_blue]{escape(self.title)}[/]")
        if self.description:
            self.console.print(f"[grey70]{escape(self.description)}[/]")
        self.console.print()
        if self._pending:
            self._status = self.console.status(self.status_text(), spinner="dots")
            self._status.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None

    def status_text(self) -> str:
        """Spinner text for the next pending item, with its hint underneath."""
        if self._done >= len(self._pending):
            return ""
        label, hint = self._pending[self._done]
        text = f"[bold]{escape(label)}[/] [dim]{self.busy_text}… press Ctrl+C to cancel.[/]"
        if hint:
            text += f"\n  [dim]{escape(hint)}[/]"
        return text

    def _advance(self) -> None:
        self._done += 1
        if self._status is not None and self._done < len(self._pending):
            self._status.update(self.status_text())

    def _line(self, passed: bool, label: str, duration: float, detail: str, detail_style: str) -> None:
        glyph, style = (SUCCESS_GLYPH, "bold green") if passed else (FAIL_GLYPH, "bold red")
        self.console.print(f"[{style}]{glyph} {escape(label)}[/] [dim]{format_duration(duration)}[/]")
        if detail:
            self.console.print(f"  [{detail_style}]{escape(detail)}[/]")
        self.console.print()

    def summary(self, results: Sequence[CheckResult | StepResult], total: int, interrupted: bool = False) -> None:
        passed = count_passed(results)
        style = "bold green" if passed == total and not interrupted else "bold red"
        if interrupted:
            self.console.print("[yellow]Interrupted.[/]")
        self.console.print(f"[{style}]{passed}/{total} {self.noun} passed[/]")


class LessonView(_RunView):
    """Renders check results for one lesson."""

    noun = "checks"
    busy_text = "Verifying"

    def __init__(self, console: Console, lesson: Lesson) -> None:
        super().__init__(
            console,
            lesson.title,
            lesson.description,
            [(check.title, check.description) for check in lesson.checks],
        )

    def on_result(self, result: CheckResult) -> None:
        outcome = result.outcome
        if outcome.error is not None:
            detail, detail_style = str(outcome.error), "bold red"
        else:
            detail = outcome.message or "Completed."
            detail_style = "grey62" if outcome.passed else "dark_orange"
        self._line(result.passed, result.check.title, result.duration, detail, detail_style)
        self._advance()


class ScriptView(_RunView):
    """Renders step results for one script."""

    noun = "steps"

    def __init__(self, console: Console, script: Script) -> None:
        super().__init__(
            console,
            f"Run Lesson {script.id}: {script.title}",
            script.description,
            [(step.command, step.description) for step in script.steps],
        )

    def on_result(self, result: StepResult) -> None:
        if result.passed:
            detail, detail_style = result.stdout_summary(), "grey62"
        else:
            detail, detail_style = "; ".join(result.failures), "bold red"
        self._line(result.passed, result.step.command, result.duration, detail, detail_style)
        self._advance()
