"""Structured logging configuration using structlog."""

import logging
import sys
from typing import Any, TextIO

import structlog

from app.core.config import settings


class StderrLogger(structlog.PrintLogger):
    """PrintLogger that drops lines when the stream is a closed pipe."""

    def msg(self, message: str) -> None:
        try:
            super().msg(message)
        except BrokenPipeError:
            pass

    log = debug = info = warn = warning = msg
    fatal = failure = err = error = critical = exception = msg


class StderrLoggerFactory:
    """Produce StderrLogger instances bound to a single stream."""

    def __init__(self, file: TextIO | None = None):
        self._file = file

    def __call__(self, *args: Any) -> StderrLogger:
        return StderrLogger(self._file or sys.stderr)


def setup_logging() -> None:
    """Configure structured logging for the application.

    Log lines go to stderr so the scripts can stream JSON results on stdout.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=logging.DEBUG if settings.debug else logging.INFO,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if settings.debug else logging.INFO
        ),
        context_class=dict,
        logger_factory=StderrLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance with the given name."""
    return structlog.get_logger(name)


def preview(text: str | None, limit: int | None = None) -> str:
    """Truncate text for log output."""
    if not text:
        return ""
    limit = settings.log_preview_chars if limit is None else limit
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
