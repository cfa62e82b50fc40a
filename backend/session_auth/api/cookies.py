"""Refresh-token cookie helpers.

The cookie is HTTP-only, ``SameSite=Strict`` and scoped to the token
endpoints (``REFRESH_COOKIE_PATH``); its expiry mirrors the token's own.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from flask import Response, current_app, request

from session_auth.core.extensions import get_auth_settings


def set_refresh_cookie(response: Response, token: str, expires_at: datetime) -> None:
    settings = get_auth_settings(current_app)
    response.set_cookie(
        settings.cookie_name,
        token,
        expires=expires_at,
        path=settings.cookie_path,
        secure=settings.cookie_secure,
        httponly=True,
        samesite="Strict",
    )


def clear_refresh_cookie(response: Response) -> None:
    settings = get_auth_settings(current_app)
    response.delete_cookie(
        settings.cookie_name,
        path=settings.cookie_path,
        secure=settings.cookie_secure,
        httponly=True,
        samesite="Strict",
    )


def read_refresh_token(payload: Mapping[str, Any]) -> str | None:
    """Return the token from the body, falling back to the cookie."""
    token = payload.get("refresh_token")
    if token:
        return str(token)
    settings = get_auth_settings(current_app)
    return request.cookies.get(settings.cookie_name) or None
