"""Authenticated caller, built from verified access-token claims."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from session_auth.models.role import ROLE_CAPABILITIES, Capability, RoleName


@dataclass(frozen=True, slots=True)
class Identity:
    """
    Explicit identity handed to views and services.

    :ivar user_id: Subject id (``sub``).
    :ivar email: Email claim.
    :ivar username: Username claim.
    :ivar role: Parsed role, ``None`` for a role this build does not know.
    :ivar capabilities: Capabilities granted by ``role``.
    """

    user_id: int
    email: str
    username: str
    role: RoleName | None
    capabilities: frozenset[Capability]

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> Identity:
        role = RoleName.parse(claims.get("role"))
        return cls(
            user_id=int(claims["sub"]),
            email=str(claims.get("email", "")),
            username=str(claims.get("username", "")),
            role=role,
            capabilities=ROLE_CAPABILITIES[role] if role else frozenset(),
        )

    def can(self, capability: Capability) -> bool:
        return capability in self.capabilities
