"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    AdminCreateUserSchema,
    LoginResponseSchema,
    LoginSchema,
    RefreshTokenSchema,
    RegisterSchema,
    TokenPairSchema,
    UserPublicSchema,
    WhoAmISchema,
)

__all__ = [
    "AdminCreateUserSchema",
    "LoginResponseSchema",
    "LoginSchema",
    "RefreshTokenSchema",
    "RegisterSchema",
    "TokenPairSchema",
    "UserPublicSchema",
    "WhoAmISchema",
]
