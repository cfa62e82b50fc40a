"""Factory Boy base class persisting into the per-test session."""

from __future__ import annotations

import factory

_current_session = None


def use_session(session) -> None:
    """Point every factory at ``session`` (installed by an autouse fixture)."""
    global _current_session
    _current_session = session


def current_session():
    if _current_session is None:
        raise RuntimeError("No factory session installed; request the 'session' fixture.")
    return _current_session


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Flushes (never commits) so tests decide what becomes durable."""

    class Meta:
        abstract = True
        sqlalchemy_session_factory = current_session
        sqlalchemy_session_persistence = "flush"
