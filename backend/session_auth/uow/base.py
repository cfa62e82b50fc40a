"""
Abstract Unit of Work contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from session_auth.services._shared.ports.identity_store import (
    RefreshTokenStore,
    RoleStore,
    UserStore,
)


class UnitOfWork(ABC):
    """
    Coordinates a transactional boundary for a use-case.

    Responsibilities:
    - Provide the user, role and refresh-token stores bound to one transaction.
    - Commit on success, rollback on error.
    """

    users: UserStore
    roles: RoleStore
    refresh_tokens: RefreshTokenStore

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...
    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...
    @abstractmethod
    def commit(self) -> None: ...
    @abstractmethod
    def rollback(self) -> None: ...
