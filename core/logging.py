"""
Logging helpers for request-scoped correlation.

Overview
--------
- `request_id_var`: a `ContextVar` holding the current request id for the
  lifetime of a request (set by `core.middleware.RequestIDLogMiddleware`).
- `RequestIDFilter`: injects `request_id` onto every `LogRecord`, using `"-"`
  when the record originates outside an HTTP request (management commands).
- `KeyValueFormatter`: renders `key=value` lines. Request-line attributes
  (method, path, status, ...) are appended only when the record carries them,
  so the same handler serves the request logger and application loggers.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

# Optional `extra=` attributes rendered after the fixed prefix, in this order.
REQUEST_FIELDS = ("method", "path", "status", "user_id", "duration_ms")


class RequestIDFilter(logging.Filter):
    """Ensure `%(request_id)s` is always available on records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()
        return True


class KeyValueFormatter(logging.Formatter):
    """
    Format records as `level=INFO logger=... request_id=... [fields] message=...`.

    Exceptions are appended on following lines by the base class.
    """

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            f"level={record.levelname}",
            f"logger={record.name}",
            f"request_id={getattr(record, 'request_id', '-')}",
        ]
        for name in REQUEST_FIELDS:
            if hasattr(record, name):
                parts.append(f"{name}={getattr(record, name)}")
        parts.append(f"message={record.getMessage()}")
        line = " ".join(parts)

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            line = f"{line}\n{record.exc_text}"
        return line
