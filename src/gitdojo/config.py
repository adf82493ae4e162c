"""Runtime settings for verification and script runs."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .errors import InvalidInputError

# Upper bound for one repository query.
DEFAULT_GIT_TIMEOUT = 5.0
# Upper bound for one script step.
DEFAULT_STEP_TIMEOUT = 15.0
DEFAULT_LOG_LEVEL = "WARNING"

ENV_GIT_TIMEOUT = "GITDOJO_GIT_TIMEOUT"
ENV_STEP_TIMEOUT = "GITDOJO_STEP_TIMEOUT"
ENV_LOG_LEVEL = "GITDOJO_LOG_LEVEL"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    """Timeouts and logging level."""

    git_timeout: float = DEFAULT_GIT_TIMEOUT
    step_timeout: float = DEFAULT_STEP_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from GITDOJO_* environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            git_timeout=_positive_float(env, ENV_GIT_TIMEOUT, DEFAULT_GIT_TIMEOUT),
            step_timeout=_positive_float(env, ENV_STEP_TIMEOUT, DEFAULT_STEP_TIMEOUT),
            log_level=_log_level(env, ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL),
        )


def _positive_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise InvalidInputError(f"{name} must be a number of seconds, got {raw!r}.") from None
    if value <= 0:
        raise InvalidInputError(f"{name} must be positive, got {raw!r}.")
    return value


def _log_level(env: Mapping[str, str], name: str, default: str) -> str:
    raw = env.get(name, "").strip().upper()
    if not raw:
        return default
    if raw not in LOG_LEVELS:
        raise InvalidInputError(f"{name} must be one of {', '.join(LOG_LEVELS)}, got {raw!r}.")
    return raw
