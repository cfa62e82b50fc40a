"""Structured JSON logging with request correlation.

Every record emitted while serving a request carries that request's id: the
caller's ``X-Request-ID`` / ``X-Correlation-ID`` when present, otherwise a
generated one, echoed back in the ``X-Request-ID`` response header.

Only an allow-list of ``extra=`` keys reaches the output, so an accidental
``extra={"password": ...}`` never leaves the process.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import IO, Any
from uuid import uuid4

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = (REQUEST_ID_HEADER, "X-Correlation-ID")
MAX_REQUEST_ID_LENGTH = 128

ALLOWED_EXTRA_KEYS = frozenset(
    {"endpoint", "elapsed_ms", "user_id", "actor_id", "token_id", "stage", "removed"}
)

_HANDLER_NAME = "session_auth.json"


class JSONFormatter(logging.Formatter):
    """Render each record as one JSON object (UTC timestamps, ms precision)."""

    def __init__(self, allowed_extra: Iterable[str] = ALLOWED_EXTRA_KEYS) -> None:
        super().__init__()
        self.allowed_extra = frozenset(allowed_extra)

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=UTC).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        payload.update(
            (key, value) for key, value in vars(record).items() if key in self.allowed_extra
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class RequestIdFilter(logging.Filter):
    """Stamp the current request's id on every record.

    Outside a request the record keeps any ``request_id`` passed through
    ``extra=`` (services carry it in their context), else ``None``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            record.request_id = ensure_request_id()
        else:
            record.request_id = getattr(record, "request_id", None)
        return True


def _incoming_request_id() -> str | None:
    for header in CORRELATION_HEADERS:
        value = request.headers.get(header, "").strip()
        if value:
            return value[:MAX_REQUEST_ID_LENGTH]
    return None


def ensure_request_id() -> str:
    """
    Return the id of the current request, assigning one on first use.

    Outside a request context each call returns a fresh id.
    """
    if not has_request_context():
        return str(uuid4())
    request_id = g.get("request_id")
    if request_id is None:
        request_id = _incoming_request_id() or str(uuid4())
        g.request_id = request_id
    return request_id


def _resolve_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: str | int = "INFO", *, stream: IO[str] | None = None) -> None:
    """
    Install the JSON handler on the root logger.

    Calling it again replaces the handler installed by a previous call and
    leaves foreign handlers (test capture, gunicorn) in place. Unknown level
    names fall back to ``INFO``.
    """
    root = logging.getLogger()
    for handler in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())
    root.addHandler(handler)
    root.setLevel(_resolve_level(level))


def init_app(app: Flask) -> None:
    """Assign a request id before each request and echo it on the response.

    The id is dropped on teardown so it never outlives its request, even when
    several requests share one application context.
    """

    app.logger.addFilter(RequestIdFilter())

    @app.before_request
    def _assign_request_id() -> None:
        g.request_id = _incoming_request_id() or str(uuid4())

    @app.after_request
    def _echo_request_id(response):
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response

    @app.teardown_request
    def _drop_request_id(exc: BaseException | None) -> None:
        g.pop("request_id", None)


__all__ = ["configure_logging", "ensure_request_id", "init_app", "JSONFormatter"]
