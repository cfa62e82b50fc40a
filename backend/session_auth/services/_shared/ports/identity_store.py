from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from session_auth.models import RefreshToken, Role, User


class UserStore(Protocol):
    """Read/write access to users within one unit of work."""

    def get(self, entity_id: int) -> User | None: ...
    def get_by_email(self, email: str) -> User | None: ...
    def exists_by_email(self, email: str) -> bool: ...
    def exists_by_username(self, username: str) -> bool: ...
    def add(self, entity: User) -> User: ...


class RoleStore(Protocol):
    """Lookups over seeded roles."""

    def get_by_name(self, name: str) -> Role | None: ...


class RefreshTokenStore(Protocol):
    """
    Persistence of refresh tokens.

    ``mark_revoked`` MUST be a compare-and-swap that only succeeds on a row
    that is not yet revoked; ``delete_stale`` MUST leave active rows intact.
    """

    def get_by_token(self, token: str) -> RefreshToken | None: ...
    def list_for_user(self, user_id: int) -> Sequence[RefreshToken]: ...
    def add(self, entity: RefreshToken) -> RefreshToken: ...
    def mark_revoked(
        self,
        token_id: int,
        *,
        at: datetime,
        ip: str,
        replaced_by: str | None = None,
    ) -> bool: ...
    def delete_stale(self, user_id: int, *, now: datetime, created_before: datetime) -> int: ...


class IdentityStore(Protocol):
    """
    Transactional scope over the three stores.

    Changes staged inside one ``with`` block become visible to other scopes
    together on clean exit, or not at all.
    """

    users: UserStore
    roles: RoleStore
    refresh_tokens: RefreshTokenStore

    def __enter__(self) -> IdentityStore: ...
    def __exit__(self, exc_type, exc, tb) -> None: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...
