"""Structured key=value logging for Survey Brain.

All loggers under the ``survey_brain`` package share one stdout handler
configured on first use. Correlation fields (request id, provider, task)
are printed right after the message so provider fallbacks for one request
can be followed line by line.
"""

import logging
import sys
from typing import Any

from survey_brain.core.config import get_settings

PACKAGE_LOGGER = "survey_brain"

# Promoted to record attributes by log_with_context and printed in this order
CONTEXT_FIELDS = ("request_id", "provider", "task")


def _render(value: Any) -> str:
    text = str(value)
    if not text or any(ch.isspace() for ch in text) or "=" in text or '"' in text:
        return '"' + text.replace('"', '\\"') + '"'
    return text


class StructuredFormatter(logging.Formatter):
    """Key=value formatter; values with spaces are quoted."""

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                fields[name] = value

        fields.update(getattr(record, "extra_data", None) or {})

        line = " ".join(f"{key}={_render(value)}" for key, value in fields.items())
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _level() -> int | str:
    settings = get_settings()
    if settings.LOG_LEVEL:
        return settings.LOG_LEVEL.upper()
    return logging.DEBUG if settings.SURVEY_BRAIN_ENV == "dev" else logging.INFO


def _configure(logger: logging.Logger) -> None:
    if logger.handlers:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())
    logger.addHandler(handler)
    logger.setLevel(_level())


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger that writes structured lines.

    Loggers inside the package propagate to the shared package logger;
    anything else (``__main__``) gets its own handler.
    """
    logger = logging.getLogger(name)
    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        _configure(logging.getLogger(PACKAGE_LOGGER))
    else:
        _configure(logger)
    return logger


def log_with_context(logger: logging.Logger, level: int, msg: str, **kwargs: Any) -> None:
    """
    Log with correlation fields and extra key=value data.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        msg: Log message
        **kwargs: request_id/provider/task plus any other fields (duration_ms, ...)
    """
    extra: dict[str, Any] = {name: kwargs.pop(name) for name in CONTEXT_FIELDS if name in kwargs}
    extra["extra_data"] = kwargs
    logger.log(level, msg, extra=extra)
