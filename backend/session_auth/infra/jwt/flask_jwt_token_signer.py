# session_auth/infra/jwt/flask_jwt_token_signer.py
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any, cast

from session_auth.core.config import AuthSettings
from session_auth.services._shared.errors import ConfigurationError
from session_auth.services._shared.ports import AccessClaims, IssuedToken, TokenSigner


class FlaskJWTTokenSigner(TokenSigner):
    """
    Adapter for Flask-JWT-Extended.

    Issuer, audience, algorithm (HS256) and zero leeway are projected onto
    the Flask config by :func:`session_auth.core.extensions.init_app`; this
    class only decides the claims and the lifetime.

    .. note::
       Requires an active Flask app context with proper JWT settings.
    """

    def __init__(self, settings: AuthSettings) -> None:
        self._ensure_material(settings)
        self.settings = settings

    @staticmethod
    def _ensure_material(settings: AuthSettings) -> None:
        for name in ("secret_key", "issuer", "audience"):
            if not str(getattr(settings, name) or "").strip():
                raise ConfigurationError(f"Access token {name} is not configured.")

    def issue(self, claims: AccessClaims, ttl: timedelta | None = None) -> IssuedToken:
        from flask_jwt_extended import create_access_token as _create_access

        self._ensure_material(self.settings)
        token = cast(
            str,
            _create_access(
                identity=str(claims.user_id),
                additional_claims={
                    "email": claims.email,
                    "username": claims.username,
                    "role": claims.role,
                },
                expires_delta=ttl or self.settings.access_expires,
            ),
        )
        payload = self.decode(token)
        return IssuedToken(
            token=token,
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=UTC),
            jti=str(payload["jti"]),
        )

    def decode(self, token: str) -> dict[str, Any]:
        from flask_jwt_extended import decode_token

        return cast(dict[str, Any], decode_token(token))
