"""Subprocess helpers: context-aware process runs and the script-step shell."""

from __future__ import annotations

import os
import shutil
import signal
import subprocess
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .context import Context
from .errors import CancelledError, ShellError
from .logging_config import get_logger

logger = get_logger(__name__)

POLL_INTERVAL = 0.05
KILL_GRACE = 1.0
POWERSHELL_ARGS = ("-NoLogo", "-NoProfile", "-Command")


@dataclass(frozen=True)
class ShellOutput:
    """Raw output of one shell command.

    `error` is set only when the command did not run to a normal exit; a
    non-zero exit code on its own is not an error.
    """

    stdout: str
    stderr: str
    exit_code: int
    error: Exception | None = None


ShellRunner = Callable[[Context, str], ShellOutput]


def default_shell(platform: str | None = None, which: Callable[[str], str | None] = shutil.which) -> list[str]:
    """Return the interpreter argv prefix for the current platform."""
    platform = platform or sys.platform
    if platform.startswith("win"):
        if which("pwsh") is not None:
            return ["pwsh", *POWERSHELL_ARGS]
        return ["powershell", *POWERSHELL_ARGS]
    return ["sh", "-c"]


def communicate(ctx: Context, argv: Sequence[str], cwd: str | None = None) -> tuple[str, str, int]:
    """Run `argv` to completion and return (stdout, stderr, returncode).

    The process is polled against `ctx` and killed when the context is
    cancelled or its deadline passes; the context error is then raised.
    OSError from spawning propagates unchanged.
    """
    ctx.raise_if_done()
    posix = os.name == "posix"
    proc = subprocess.Popen(
        list(argv),
        cwd=cwd,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
        start_new_session=posix,
    )
    while True:
        timeout = POLL_INTERVAL
        left = ctx.remaining()
        if left is not None:
            timeout = min(timeout, left)
        try:
            stdout, stderr = proc.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            err = ctx.error()
            if err is None:
                continue
            _kill(proc, posix)
            raise err from None
        return stdout, stderr, proc.returncode


def _kill(proc: subprocess.Popen[str], posix: bool) -> None:
    if posix:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
    else:
        proc.kill()
    try:
        proc.communicate(timeout=KILL_GRACE)
    except subprocess.TimeoutExpired:
        logger.warning("process_kill_timeout", pid=proc.pid)


def run_command(ctx: Context, command: str) -> ShellOutput:
    """Run one script command through the platform shell."""
    argv = [*default_shell(), command]
    try:
        stdout, stderr, code = communicate(ctx, argv)
    except OSError as exc:
        logger.debug("shell_command_failed", command=command, error=str(exc))
        return ShellOutput("", "", -1, ShellError(f"could not start {argv[0]}: {exc}"))
    except CancelledError as exc:
        logger.debug("shell_command_failed", command=command, error=str(exc))
        return ShellOutput("", "", -1, ShellError(f"command interrupted: {exc}"))

    if code < 0:
        # Popen reports death by signal N as -N.
        return ShellOutput(stdout, stderr, -1, ShellError(f"command killed by signal {-code}"))
    return ShellOutput(stdout, stderr, code)
