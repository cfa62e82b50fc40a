"""Units of work: the abstract contract and its SQLAlchemy implementations."""

from .base import UnitOfWork
from .sqlalchemy_uow import ReadOnlyViolation, SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

__all__ = [
    "ReadOnlyViolation",
    "SQLAlchemyReadOnlyUnitOfWork",
    "SQLAlchemyUnitOfWork",
    "UnitOfWork",
]
