from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol


@dataclass(frozen=True, slots=True)
class AccessClaims:
    """
    Identity claims embedded into an access token.

    :ivar user_id: Subject (``sub``), serialised as a string.
    :ivar email: User email.
    :ivar username: User name.
    :ivar role: Role name.
    """

    user_id: int
    email: str
    username: str
    role: str


@dataclass(frozen=True, slots=True)
class IssuedToken:
    """Signed access token plus the metadata callers surface to clients."""

    token: str
    expires_at: datetime
    jti: str


class TokenSigner(Protocol):
    """Port for issuing signed, short-lived access tokens."""

    def issue(self, claims: AccessClaims, ttl: timedelta | None = None) -> IssuedToken:
        """
        Sign ``claims`` into a compact token.

        Every call carries a fresh unique ``jti``, the configured issuer and
        audience, and an expiry of ``now + ttl``.

        :raises ConfigurationError: When signing material is missing.
        """

    def decode(self, token: str) -> dict:
        """Verify ``token`` (signature, issuer, audience, expiry) and return claims."""
