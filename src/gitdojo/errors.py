"""Exception hierarchy for gitdojo.

Exception Hierarchy:
    GitDojoError (base)
     InvalidInputError - a required argument was missing or malformed
     NotFoundError - unknown lesson or script id
     DuplicateIdError - an id was registered twice in one catalog
     ContentError - bundled lesson/script content is malformed
     QueryError - a repository query could not be answered
        NoCommitsError - the repository has no commits yet
     ShellError - a script step could not run to completion
     CancelledError - the surrounding context was cancelled
        DeadlineExceeded - the surrounding context ran out of time
     ExecutionCancelled - a lesson or script run stopped early

Only InvalidInputError and the cancellation errors stop a run. Query and
shell errors are recorded on the item that hit them and the run goes on.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class GitDojoError(Exception):
    """Base exception for all gitdojo errors."""


class InvalidInputError(GitDojoError, ValueError):
    """A required argument was missing or malformed."""


class NotFoundError(GitDojoError, KeyError):
    """Lookup of an unknown id in a catalog."""

    def __init__(self, kind: str, entry_id: str) -> None:
        self.kind = kind
        self.entry_id = entry_id
        super().__init__(f"{kind} not found: {entry_id}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return str(self.args[0])


class DuplicateIdError(GitDojoError, ValueError):
    """An id was registered twice in the same catalog."""

    def __init__(self, kind: str, entry_id: str) -> None:
        self.kind = kind
        self.entry_id = entry_id
        super().__init__(f"{kind} already registered: {entry_id}")


class ContentError(GitDojoError, ValueError):
    """Bundled or user-supplied content could not be loaded."""


class QueryError(GitDojoError):
    """A read-only query against the repository failed.

    Attributes:
        command: the git argument list that failed, when there was one
        stderr: trimmed standard error of the failed command
    """

    def __init__(self, message: str, *, command: Sequence[str] = (), stderr: str = "") -> None:
        super().__init__(message)
        self.command = tuple(command)
        self.stderr = stderr


class NoCommitsError(QueryError):
    """HEAD does not point at a commit yet."""


class ShellError(GitDojoError):
    """A shell step failed to spawn, timed out, was cancelled or was killed."""


class CancelledError(GitDojoError):
    """The context was cancelled."""


class DeadlineExceeded(CancelledError):
    """The context deadline passed."""


class ExecutionCancelled(GitDojoError):
    """A run stopped before every item was executed.

    Attributes:
        results: results for the items that finished, in order
    """

    def __init__(self, results: Sequence[Any]) -> None:
        self.results = list(results)
        super().__init__(f"execution cancelled after {len(self.results)} item(s)")
