"""JSON log lines for session events, tagged with the request id."""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"

# Fields the session code passes through ``extra=``
SESSION_FIELDS = ("reason", "token_id", "user_id", "endpoint")


def current_request_id() -> str | None:
    """Return the id of the request being served, or ``None`` outside one.

    The caller's ``X-Request-ID`` is reused when present; otherwise a fresh
    id is minted once per request.
    """
    if not has_request_context():
        return None
    if "request_id" not in g:
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
    return g.request_id


class JSONFormatter(logging.Formatter):
    """One JSON object per record: event name, level and session fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        request_id = current_request_id()
        if request_id is not None:
            entry["request_id"] = request_id
        entry.update((key, getattr(record, key)) for key in SESSION_FIELDS if hasattr(record, key))
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(level: str | int = "INFO") -> None:
    """Send every log record to stdout as JSON at ``level``."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)


def init_app(app: Flask) -> None:
    """Echo the request id on every response."""

    @app.after_request
    def _echo_request_id(response):
        response.headers.setdefault(REQUEST_ID_HEADER, current_request_id())
        return response


__all__ = ["JSONFormatter", "configure_logging", "current_request_id", "init_app"]
