"""Structured Logging — JSON formatter, request log context, and setup.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (user_id, method, uri, error_code, ...) surfaced when present
    - Fields bound with bind_log_context() appear on every record emitted in that
      asyncio task, without passing a logger around
    - JSON format in production, human-readable in development

Design Decisions:
    - JSONFormatter over third-party libs: the field set is small and fixed
    - contextvars for request baggage: each asyncio task sees its own copy, so
      concurrent requests never mix fields (ADR: no thread-locals under asyncio)
    - setup_logging called once on startup via lifespan
"""

import logging
import json
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator

_SURFACED_FIELDS = (
    "user_id", "method", "uri", "country", "error_code",
    "observer", "change_kind",
)

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


@contextmanager
def bind_log_context(**fields: Any) -> Iterator[None]:
    """Add fields to every log record emitted inside the block."""
    token = _log_context.set({**_log_context.get(), **fields})
    try:
        yield
    finally:
        _log_context.reset(token)


class LogContextFilter(logging.Filter):
    """Copy bound context fields onto records that don't set them explicitly."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, val in _log_context.get().items():
            if key not in record.__dict__:
                setattr(record, key, val)
        return True


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _SURFACED_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Configure logging for the application."""
    handler = logging.StreamHandler()
    handler.addFilter(LogContextFilter())
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s — %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
