"""Logging configuration for pyflow.

pyflow logs through the standard library: every module owns
``logging.getLogger(__name__)`` under the ``pyflow`` namespace, and any
class that accepts a ``logger`` argument takes a ``logging.Logger`` (or
``LoggerAdapter``) so applications can route output anywhere.

This module only adds the knobs an application needs:
- LogLevel: the four recognised severities, ordered
- configure_logging(): attach a text or JSON handler to the pyflow logger
- set_level(): change the threshold at runtime
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from typing import IO, Any

__all__ = ["LogLevel", "JsonFormatter", "configure_logging", "set_level", "ROOT_LOGGER_NAME"]

ROOT_LOGGER_NAME = "pyflow"

_RESERVED_LOG_RECORD_ATTRS: set[str] = {
    "args",
    "asctime",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "taskName",
    "thread",
    "threadName",
}


class LogLevel(Enum):
    """Recognised log levels, ordered by severity."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    def to_logging(self) -> int:
        """Matching ``logging`` module level."""
        return _LEVELS[self]

    @property
    def severity(self) -> int:
        return _LEVELS[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.severity < other.severity

    @classmethod
    def parse(cls, value: LogLevel | str) -> LogLevel:
        """Accept a LogLevel or a case-insensitive name ("warning" allowed)."""
        if isinstance(value, LogLevel):
            return value
        name = value.strip().lower()
        if name == "warning":
            name = "warn"
        return cls(name)

    def __str__(self) -> str:
        return self.value


_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class JsonFormatter(logging.Formatter):
    """A minimal JSON formatter for logging records."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_LOG_RECORD_ATTRS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    *,
    json_format: bool = False,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Attach a single handler to the pyflow logger.

    Calling this again replaces the handler installed by the previous
    call, so it is safe to reconfigure.

    Args:
        level: Minimum severity to emit
        json_format: Emit one JSON object per line instead of plain text
        stream: Output stream (defaults to stderr)

    Returns:
        The configured ``pyflow`` logger

    Example:
        ```python
        configure_logging("debug")
        configure_logging(LogLevel.WARN, json_format=True, stream=sys.stdout)
        ```
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    for handler in list(logger.handlers):
        if getattr(handler, "_pyflow_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    handler._pyflow_handler = True  # type: ignore[attr-defined]

    logger.addHandler(handler)
    set_level(level)
    return logger


def set_level(level: LogLevel | str) -> None:
    """Change the pyflow logging threshold at runtime."""
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(LogLevel.parse(level).to_logging())
