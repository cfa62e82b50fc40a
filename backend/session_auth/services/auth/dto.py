# session_auth/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from session_auth.models import User

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email (matched case-insensitively).
    :type email: str
    :param password: Raw password (to be verified, never logged).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RegistrationIn:
    """
    Input DTO for registration.

    :param username: Desired public handle.
    :param email: Login email.
    :param password: Raw password; hashed before persistence.
    """

    username: str
    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Opaque refresh token string.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class RevokeIn:
    """
    Input DTO for refresh-token revocation.

    :param refresh_token: Opaque refresh token string.
    :type refresh_token: str
    """

    refresh_token: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserPublicOut:
    """
    Sanitized user projection. Never carries the password digest.

    :param role: Role *name*, not the foreign key.
    """

    id: int
    username: str
    email: str
    role: str
    created_at: datetime

    @classmethod
    def from_model(cls, user: User) -> UserPublicOut:
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role.name,
            created_at=user.created_at,
        )


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with a fresh access token and its rotated refresh token.

    :param access_token: Signed access JWT.
    :param access_token_expires_at: Access-token expiry (UTC).
    :param refresh_token: Opaque refresh token.
    :param refresh_token_expires_at: Refresh-token expiry (UTC).
    """

    access_token: str
    access_token_expires_at: datetime
    refresh_token: str
    refresh_token_expires_at: datetime


@dataclass(frozen=True, slots=True)
class LoginOut:
    """Token pair plus the authenticated user's public projection."""

    access_token: str
    access_token_expires_at: datetime
    refresh_token: str
    refresh_token_expires_at: datetime
    user: UserPublicOut
