"""HTTP API: versioned blueprints mounted under ``API_BASE_PREFIX``."""

from __future__ import annotations

from collections.abc import Iterable

from flask import Blueprint, Flask


def _join(*segments: str) -> str:
    parts = [segment.strip("/") for segment in segments if segment.strip("/")]
    return "/" + "/".join(parts)


def register_blueprint_group(
    app: Flask,
    *,
    base_prefix: str,
    entries: Iterable[tuple[Blueprint, str]],
) -> None:
    """Mount each ``(blueprint, relative_prefix)`` pair under ``base_prefix``.

    An empty relative prefix mounts the blueprint on ``base_prefix`` itself.
    """
    for blueprint, relative in entries:
        app.register_blueprint(blueprint, url_prefix=_join(base_prefix, relative))


def init_app(app: Flask) -> None:
    """Mount API v1 (``/api/v1`` by default)."""

    from session_auth.api import v1

    base = _join(app.config.get("API_BASE_PREFIX", "/api"), v1.API_VERSION)
    register_blueprint_group(app, base_prefix=base, entries=v1.REGISTRY)


__all__ = ["init_app", "register_blueprint_group"]
