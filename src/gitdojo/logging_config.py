"""Logging configuration using structlog on top of the standard library."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.dev import ConsoleRenderer
from structlog.stdlib import LoggerFactory, add_log_level, add_logger_name

_handler: logging.Handler | None = None


def _pre_chain() -> list[structlog.typing.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        add_log_level,
        add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_logging(log_level: str = "WARNING", stream: Any = None) -> None:
    """Route structlog events through one stderr handler.

    Calling this again replaces the previous handler, so the CLI can raise
    the level after parsing --verbose.
    """
    global _handler

    structlog.configure(
        processors=[
            *_pre_chain(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    root_logger = logging.getLogger()
    if _handler is not None:
        root_logger.removeHandler(_handler)
        _handler.close()

    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.WARNING

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=ConsoleRenderer(colors=False, exception_formatter=structlog.dev.plain_traceback),
            foreign_pre_chain=_pre_chain(),
        )
    )
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    _handler = handler


def get_logger(name: str) -> Any:
    """Return a structlog logger bound to `name`."""
    return structlog.get_logger(name)
