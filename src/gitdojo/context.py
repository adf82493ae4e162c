"""Cancellable execution context with an optional deadline."""

from __future__ import annotations

import threading
import time

from .errors import CancelledError, DeadlineExceeded


class Context:
    """Cooperative cancellation signal shared between a run and its caller.

    A child created with `with_timeout` is done when its own deadline passes,
    when it is cancelled, or when any ancestor is done. Cancelling a child
    never affects its parent.
    """

    def __init__(self, timeout: float | None = None, parent: Context | None = None) -> None:
        self._event = threading.Event()
        self._parent = parent
        self._deadline: float | None = None
        if timeout is not None:
            self._deadline = time.monotonic() + timeout
        if parent is not None and parent._deadline is not None:
            if self._deadline is None or parent._deadline < self._deadline:
                self._deadline = parent._deadline

    @classmethod
    def background(cls) -> Context:
        """Return a fresh context with no deadline."""
        return cls()

    def with_timeout(self, seconds: float) -> Context:
        """Return a child context bounded by `seconds`."""
        return Context(timeout=seconds, parent=self)

    def cancel(self) -> None:
        """Signal cancellation to this context and its children."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Whether cancel() was called here or on an ancestor."""
        ctx: Context | None = self
        while ctx is not None:
            if ctx._event.is_set():
                return True
            ctx = ctx._parent
        return False

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def error(self) -> CancelledError | None:
        """Return the reason this context is done, or None while it is live."""
        if self.cancelled:
            return CancelledError("context cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return DeadlineExceeded("context deadline exceeded")
        return None

    def done(self) -> bool:
        return self.error() is not None

    def raise_if_done(self) -> None:
        """Raise the context error when the context is done."""
        err = self.error()
        if err is not None:
            raise err

