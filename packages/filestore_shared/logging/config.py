"""Logging setup for the filestore console.

One stream handler on the root logger. Every line carries the bound
``log_context`` fields plus any structured ``extra=`` keys listed in
``fields.RECORD_FIELDS``, rendered either as NDJSON or as ``key=value`` pairs
after a plain message.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

from . import fields
from .context import bind_context, get_context

# Chatty libraries whose per-request INFO lines duplicate our envelope events.
QUIET_LOGGERS = ("httpx", "httpcore")


def structured_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Return bound context merged with the record's structured extras."""
    collected: dict[str, Any] = dict(getattr(record, "context", None) or {})
    for name in fields.RECORD_FIELDS:
        value = getattr(record, name, None)
        if value is not None:
            collected[name] = value
    return collected


class ContextFilter(logging.Filter):
    """Snapshot the current ``log_context`` onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.context = get_context()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            fields.TIMESTAMP: datetime.fromtimestamp(record.created, UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
        }
        payload.update(structured_fields(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """``<time> <LEVEL> <logger> <message> k=v ...`` for terminals."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = structured_fields(record)
        if not extras:
            return line
        pairs = " ".join(f"{key}={extras[key]}" for key in sorted(extras))
        return f"{line} {pairs}"


def configure_logging(
    *,
    level: str = "INFO",
    json_output: bool = True,
    service: str | None = None,
    environment: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Install the single root handler, replacing any previous one.

    ``stream`` defaults to stdout. Service and environment are bound into the
    log context so they appear on every line.
    """
    resolved = level.upper()
    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter() if json_output else PlainFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(resolved)
    root.addHandler(handler)

    quiet_level = logging.DEBUG if resolved == "DEBUG" else logging.WARNING
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    bind_context(**{fields.SERVICE: service, fields.ENVIRONMENT: environment})


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name)
