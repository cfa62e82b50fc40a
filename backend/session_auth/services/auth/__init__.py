"""Authentication services and DTOs."""

from __future__ import annotations

from .dto import (
    LoginIn,
    LoginOut,
    RefreshIn,
    RegistrationIn,
    RevokeIn,
    TokenPairOut,
    UserPublicOut,
)
from .refresh_tokens import RefreshTokenManager
from .service import AuthenticationService

__all__ = [
    "AuthenticationService",
    "LoginIn",
    "LoginOut",
    "RefreshIn",
    "RefreshTokenManager",
    "RegistrationIn",
    "RevokeIn",
    "TokenPairOut",
    "UserPublicOut",
]
