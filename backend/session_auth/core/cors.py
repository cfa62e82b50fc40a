"""Cross-origin policy for the ``/api`` routes."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS

ALLOWED_HEADERS = ["Authorization", "Content-Type", "X-Request-ID"]
EXPOSED_HEADERS = ["X-Request-ID", "Retry-After"]


def _origins(raw: str) -> list[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def init_app(app: Flask) -> None:
    """Apply ``CORS_ORIGINS`` (comma-separated) to the API.

    Browsers only send the refresh cookie on credentialed requests, and never
    for a wildcard origin. An empty or ``"*"`` list therefore opens the API
    to any origin without credentials: bearer calls work, cookie refresh
    does not.
    """
    origins = _origins(app.config.get("CORS_ORIGINS", ""))
    credentialed = bool(origins) and origins != ["*"]

    CORS(
        app,
        resources={r"/api/*": {"origins": origins if credentialed else "*"}},
        supports_credentials=credentialed,
        allow_headers=ALLOWED_HEADERS,
        expose_headers=EXPOSED_HEADERS,
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
