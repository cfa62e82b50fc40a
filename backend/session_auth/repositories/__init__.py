"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from session_auth.repositories.base import SessionRepository
from session_auth.repositories.refresh_token import RefreshTokenRepository
from session_auth.repositories.role import RoleRepository
from session_auth.repositories.user import UserRepository

__all__ = [
    "RefreshTokenRepository",
    "RoleRepository",
    "SessionRepository",
    "UserRepository",
]
