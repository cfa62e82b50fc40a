"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request
from flask_jwt_extended import get_jwt, verify_jwt_in_request

from session_auth.api.identity import Identity
from session_auth.core.errors import Forbidden
from session_auth.core.extensions import get_auth_settings
from session_auth.core.logger import ensure_request_id
from session_auth.infra.jwt import FlaskJWTTokenSigner
from session_auth.infra.security import SecretsTokenGenerator, WerkzeugPasswordHasher
from session_auth.models.role import Capability
from session_auth.services._shared.base import ServiceContext
from session_auth.services._shared.deadline import Deadline
from session_auth.services.auth import AuthenticationService

F = TypeVar("F", bound=Callable[..., Any])

UNKNOWN_IP = "unknown"


def current_identity() -> Identity:
    """Build the caller identity from the JWT verified for this request."""

    return Identity.from_claims(get_jwt())


def require_auth(func: F) -> F:
    """Ensure the request carries a valid access token; inject ``identity``."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        return func(*args, identity=current_identity(), **kwargs)

    return wrapper  # type: ignore[return-value]


def require_capability(capability: Capability) -> Callable[[F], F]:
    """Ensure the caller's role grants ``capability``; inject ``identity``."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            verify_jwt_in_request(optional=False)
            identity = current_identity()
            if not identity.can(capability):
                raise Forbidden("Insufficient permissions")
            return func(*args, identity=identity, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def client_ip() -> str:
    """Return the client address (``X-Forwarded-For`` aware via ProxyFix)."""

    return request.remote_addr or UNKNOWN_IP


def build_auth_service(identity: Identity | None = None) -> AuthenticationService:
    """Wire :class:`AuthenticationService` for the current request.

    Adapters are stateless apart from the hasher's cached dummy digest, so
    they are created once per app and reused.
    """

    settings = get_auth_settings(current_app)
    adapters = current_app.extensions.get("auth_adapters")
    if adapters is None:
        adapters = {
            "hasher": WerkzeugPasswordHasher(settings.password_hash_method),
            "signer": FlaskJWTTokenSigner(settings),
            "generator": SecretsTokenGenerator(),
        }
        current_app.extensions["auth_adapters"] = adapters
    ctx = ServiceContext(
        actor_id=identity.user_id if identity else None,
        request_id=ensure_request_id(),
        deadline=Deadline(settings.deadline_seconds),
    )
    return AuthenticationService(settings=settings, ctx=ctx, **adapters)


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
