"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP. They are the stable contract between the stores, the
refresh-token state machine, and the authentication service.

Every error carries an :class:`ErrorKind` so callers can branch on the kind of
failure without matching on class hierarchies or messages. The translation to
HTTP responses (RFC 7807) is handled by ``session_auth/core/errors.py``.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from sqlalchemy.exc import IntegrityError


def violates(
    exc: IntegrityError, constraint_name: str, *, columns: Iterable[str] = ()
) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    PostgreSQL reports the constraint name; SQLite only reports the offending
    ``table.column`` pairs, so those can be matched as a fallback.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_users_email').
    columns : Iterable[str]
        Qualified column names (``"users.email"``) to match as a fallback.

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    if constraint_name.lower() in message:
        return True
    return any(col.lower() in message for col in columns)


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ErrorKind(str, Enum):
    """Closed set of failure kinds surfaced by the authentication core."""

    INVALID_CREDENTIALS = "invalid_credentials"
    DUPLICATE_IDENTITY = "duplicate_identity"
    INVALID_TOKEN = "invalid_token"
    TOKEN_INACTIVE = "token_inactive"
    CONFIGURATION = "configuration_error"
    PERSISTENCE = "persistence_failure"


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - ``kind`` is the machine-readable discriminator; ``str(exc)`` is a
      message that is safe to show to clients.
    """

    kind: ErrorKind
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


class InvalidCredentials(ServiceError):
    """
    Raised when an email/password pair cannot be authenticated.

    The message is identical for an unknown email and a wrong password.
    """

    kind = ErrorKind.INVALID_CREDENTIALS

    def __init__(self) -> None:
        super().__init__("Invalid email or password")


class DuplicateIdentity(ServiceError):
    """
    Raised when registration collides with an existing user.

    :param field: Offending field (``"email"`` or ``"username"``).
    :type field: str
    """

    kind = ErrorKind.DUPLICATE_IDENTITY

    def __init__(self, field: str) -> None:
        super().__init__(f"A user with this {field} already exists")
        self.field = field


class InvalidToken(ServiceError):
    """Raised when a refresh token does not exist."""

    kind = ErrorKind.INVALID_TOKEN

    def __init__(self, message: str = "Invalid refresh token") -> None:
        super().__init__(message)


class TokenNotFound(InvalidToken):
    """Raised by the refresh-token manager when a lookup misses."""

    def __init__(self) -> None:
        super().__init__("Refresh token not found")


class TokenInactive(ServiceError):
    """Raised when a refresh token exists but is revoked or expired."""

    kind = ErrorKind.TOKEN_INACTIVE

    def __init__(self, message: str = "Invalid or expired refresh token") -> None:
        super().__init__(message)


class ConfigurationError(ServiceError):
    """
    Raised when the deployment is misconfigured.

    Missing signing material or a missing seed role are not user errors and
    are never retryable; ``create_app`` raises this at startup when possible.
    """

    kind = ErrorKind.CONFIGURATION


class PersistenceFailure(ServiceError):
    """Raised when the storage layer fails; callers may retry."""

    kind = ErrorKind.PERSISTENCE
    retryable = True

    def __init__(self, message: str = "Storage is temporarily unavailable") -> None:
        super().__init__(message)


class OperationTimeout(PersistenceFailure):
    """
    Raised when the caller's deadline elapses mid-operation.

    :param stage: Name of the step that observed the expired deadline.
    :type stage: str
    """

    def __init__(self, stage: str) -> None:
        super().__init__("The operation timed out, please retry")
        self.stage = stage
