"""Core domain models for lesson checks and scripted steps."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .context import Context
    from .gitrepo import Repository

NO_EXIT_CODE_CHECK = -1
STDOUT_SUMMARY_LIMIT = 200


@dataclass(frozen=True)
class Outcome:
    """Tri-state result of one check: pass, fail with a message, or error.

    An outcome carrying an error is never a pass, whatever `passed` says.
    """

    passed: bool
    message: str = ""
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.passed and self.error is None

    @classmethod
    def success(cls, message: str) -> Outcome:
        return cls(passed=True, message=message)

    @classmethod
    def failure(cls, message: str) -> Outcome:
        return cls(passed=False, message=message)

    @classmethod
    def from_error(cls, error: Exception) -> Outcome:
        return cls(passed=False, message=str(error), error=error)


VerifyFn = Callable[["Context", "Repository"], Outcome]


@dataclass(frozen=True)
class Check:
    """One named, read-only predicate over repository state."""

    id: str
    title: str
    description: str
    verify: VerifyFn = field(compare=False, repr=False)


@dataclass(frozen=True)
class Lesson:
    """Ordered checks; declaration order is execution order."""

    id: str
    title: str
    description: str
    checks: tuple[Check, ...]


@dataclass(frozen=True)
class Step:
    """One shell command plus its assertions."""

    command: str
    expect_exit_code: int = 0
    expect_stdout: tuple[str, ...] = ()

    @property
    def checks_exit_code(self) -> bool:
        return self.expect_exit_code >= 0

    @property
    def description(self) -> str:
        """Human hint shown while the step is pending."""
        if not self.expect_stdout:
            return "Awaiting command completion."
        return "Expecting stdout to include: " + ", ".join(self.expect_stdout)


@dataclass(frozen=True)
class Script:
    """Ordered shell steps for the run mode."""

    id: str
    title: str
    description: str
    steps: tuple[Step, ...]


@dataclass(frozen=True)
class CheckResult:
    """Execution record for one check."""

    check: Check
    outcome: Outcome
    duration: float

    @property
    def passed(self) -> bool:
        return self.outcome.ok


@dataclass(frozen=True)
class StepResult:
    """Execution record for one step, with derived pass/fail."""

    step: Step
    stdout: str
    stderr: str
    exit_code: int
    duration: float
    failures: tuple[str, ...] = ()
    exec_error: Exception | None = None

    @property
    def passed(self) -> bool:
        return not self.failures

    def stdout_summary(self) -> str:
        """Return trimmed stdout, truncated for display."""
        trimmed = self.stdout.strip()
        if not trimmed:
            return "(no stdout)"
        if len(trimmed) > STDOUT_SUMMARY_LIMIT:
            return trimmed[:STDOUT_SUMMARY_LIMIT] + "…"
        return trimmed
