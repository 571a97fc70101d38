"""Logging helpers."""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any

LOG_LEVEL_ENV_VAR = "ENRICH_LOG_LEVEL"

# Chatty third-party loggers that would otherwise log every request line.
_NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "urllib3")

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """Render log records as compact JSON, merging ``extra`` fields."""

    default_time_format = "%Y-%m-%dT%H:%M:%S"
    default_msec_format = "%s.%03dZ"

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.default_time_format),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extras = {
            key: value for key, value in record.__dict__.items() if key not in _RESERVED_ATTRS
        }
        if extras:
            data.update(extras)

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)

        return json.dumps(data, ensure_ascii=False, default=str)


def resolve_level(value: str | int | None) -> int:
    """Translate a level name or number into a ``logging`` level."""
    if value is None or value == "":
        return logging.INFO
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(
    *,
    level: int | str | None = None,
    structured: bool | None = None,
) -> None:
    """Configure root logging with optional JSON output.

    ``level`` defaults to ``$ENRICH_LOG_LEVEL`` (INFO when unset). Calling this
    again with ``structured`` set only swaps the formatter of existing handlers.
    """

    root = logging.getLogger()
    root.setLevel(resolve_level(level if level is not None else os.environ.get(LOG_LEVEL_ENV_VAR)))
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    formatter: logging.Formatter = JsonFormatter() if structured else logging.Formatter(_PLAIN_FORMAT)

    if root.handlers:
        if structured is None:
            return
        for handler in root.handlers:
            handler.setFormatter(formatter)
        return

    # stdout carries command output; logs go to stderr.
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["JsonFormatter", "configure_logging", "get_logger", "resolve_level"]
