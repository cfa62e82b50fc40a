"""Shared plumbing for the narrow, per-entity repositories.

Design decisions
----------------
* Repositories MUST remain thin and persistence-focused:
  - They never implement use cases or domain policies.
  - They never call commit/rollback; the Unit of Work owns the transaction.
* Expected misses are returned (``None``, ``False``, ``0``), never raised.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from sqlalchemy.orm import Session

E = TypeVar("E")  # SQLAlchemy mapped entity type


class SessionRepository(Generic[E]):
    """Bind a repository to the session of the current unit of work.

    :param session: SQLAlchemy session shared with sibling repositories.
    :type session: :class:`sqlalchemy.orm.Session`
    """

    model: type[E]

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, entity_id: int) -> E | None:
        """Fetch an entity by primary key.

        :param entity_id: Primary key value.
        :type entity_id: int
        :returns: Entity or ``None`` when not found.
        :rtype: E | None
        """
        return self.session.get(self.model, entity_id)

    def add(self, entity: E) -> E:
        """Stage ``entity`` and flush so generated keys are available.

        :param entity: New entity instance.
        :type entity: E
        :returns: The same instance with its primary key populated.
        :rtype: E
        """
        self.session.add(entity)
        self.flush()
        return entity

    def flush(self) -> None:
        """Flush pending changes without committing the transaction."""
        self.session.flush()
