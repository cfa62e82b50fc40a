"""Column mixins and a secret-safe ``__repr__`` shared by the models."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from session_auth.core.clock import utcnow


class PKMixin:
    id: Mapped[int] = mapped_column(Integer, primary_key=True)


class CreatedAtMixin:
    """``created_at`` in UTC, assigned in Python.

    Token expiry and the retention sweep compare against the same clock, so
    the database default is not used.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


class ReprMixin:
    """``<User id=3 username='ada'>``, listing only ``__repr_attrs__``.

    Models holding secrets (password hashes, token strings) must leave them
    out of ``__repr_attrs__``; reprs end up in logs and tracebacks.
    """

    __repr_attrs__: ClassVar[tuple[str, ...]] = ()

    def __repr__(self) -> str:
        parts = [f"id={getattr(self, 'id', None)}"]
        parts += [f"{attr}={getattr(self, attr, None)!r}" for attr in self.__repr_attrs__]
        return f"<{type(self).__name__} {' '.join(parts)}>"
