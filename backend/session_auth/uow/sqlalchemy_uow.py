"""SQLAlchemy units of work over the Flask-scoped session.

:class:`SQLAlchemyUnitOfWork` is the writer: the user, role and refresh-token
changes staged in one ``with`` block commit together or not at all.
:class:`SQLAlchemyReadOnlyUnitOfWork` serves lookups (credential checks,
duplicate probes) and refuses to write.
"""

from __future__ import annotations

import logging
from contextlib import suppress

from sqlalchemy import event, text
from sqlalchemy.exc import InvalidRequestError, SQLAlchemyError
from sqlalchemy.orm import Session, SessionTransaction

from session_auth.core.extensions import db
from session_auth.repositories import (
    RefreshTokenRepository,
    RoleRepository,
    UserRepository,
)
from session_auth.uow.base import UnitOfWork

logger = logging.getLogger(__name__)

_READ_ONLY_DIALECTS = frozenset({"postgresql", "mysql", "mariadb"})


class ReadOnlyViolation(RuntimeError):
    """A write was attempted inside a read-only unit of work."""


class _SessionStores:
    """The three stores of one unit of work, all on the same session."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=session)
        self.roles = RoleRepository(session=session)
        self.refresh_tokens = RefreshTokenRepository(session=session)


class SQLAlchemyUnitOfWork(_SessionStores, UnitOfWork):
    """Commit on a clean exit, roll back when the block raises."""

    def __init__(self) -> None:
        super().__init__(db.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class _WriteGuard:
    """Listeners rejecting ORM flushes and write statements while installed."""

    WRITE_VERBS = frozenset(
        {"insert", "update", "delete", "merge", "replace", "create", "alter", "drop", "truncate"}
    )

    def __init__(self, session: Session) -> None:
        self.session = session
        self.connection = None

    def install(self) -> None:
        self.connection = self.session.connection()
        event.listen(self.session, "before_flush", self._on_flush)
        event.listen(self.connection, "before_cursor_execute", self._on_execute)

    def remove(self) -> None:
        if self.connection is None:
            return
        with suppress(InvalidRequestError):
            event.remove(self.session, "before_flush", self._on_flush)
        with suppress(InvalidRequestError):
            event.remove(self.connection, "before_cursor_execute", self._on_execute)
        self.connection = None

    def _on_flush(self, session, flush_context, instances) -> None:
        if session.new or session.dirty or session.deleted:
            raise ReadOnlyViolation("ORM flush blocked in a read-only unit of work")

    def _on_execute(self, conn, cursor, statement, parameters, context, executemany) -> None:
        words = statement.split(None, 1)
        verb = words[0].lower() if words else ""
        if verb in self.WRITE_VERBS:
            raise ReadOnlyViolation(
                f"SQL statement blocked in a read-only unit of work: {verb.upper()}"
            )


class SQLAlchemyReadOnlyUnitOfWork(_SessionStores, UnitOfWork):
    """
    Read-only scope over the Flask-scoped session.

    When no transaction is running yet the scope owns one: it asks
    PostgreSQL/MySQL for ``SET TRANSACTION READ ONLY`` and rolls back on exit.
    When one is already running (an earlier read in the same request, a test
    fixture) the scope attaches to it and leaves it open. In both cases the
    write guard is active for the duration of the block, which is the only
    protection on SQLite.

    :param enforce_db_readonly: Issue ``SET TRANSACTION READ ONLY`` where the
        dialect supports it.
    """

    def __init__(self, *, enforce_db_readonly: bool = True) -> None:
        super().__init__(db.session)
        self.enforce_db_readonly = enforce_db_readonly
        self._owned: SessionTransaction | None = None
        self._guard = _WriteGuard(self.session)

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        self._owned = self._begin_if_idle()
        self._guard.install()
        if self._owned is not None and self.enforce_db_readonly:
            self._mark_read_only()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        owned, self._owned = self._owned, None
        try:
            if owned is not None:
                with suppress(SQLAlchemyError):
                    self.session.rollback()
                owned.__exit__(exc_type, exc, tb)
        finally:
            self._guard.remove()

    def _begin_if_idle(self) -> SessionTransaction | None:
        try:
            transaction = self.session.begin()
        except InvalidRequestError:
            return None
        transaction.__enter__()
        return transaction

    def _mark_read_only(self) -> None:
        dialect = self._guard.connection.dialect.name
        if dialect not in _READ_ONLY_DIALECTS:
            return
        try:
            self.session.execute(text("SET TRANSACTION READ ONLY"))
        except SQLAlchemyError as exc:
            logger.warning("uow.read_only.unsupported dialect=%s error=%s", dialect, exc)

    def commit(self) -> None:
        """Always raises :class:`ReadOnlyViolation`."""
        raise ReadOnlyViolation("A read-only unit of work does not allow commit()")

    def rollback(self) -> None:
        self.session.rollback()
