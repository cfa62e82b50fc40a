"""The ``users`` table: one login identity per row."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from session_auth.core.extensions import db

from .base import CreatedAtMixin, PKMixin, ReprMixin

if TYPE_CHECKING:  # pragma: no cover
    from .refresh_token import RefreshToken
    from .role import Role


def normalize_email(value: str) -> str:
    """Trim and lowercase ``value``; reject anything without ``local@domain.tld``.

    Full address validation belongs to the input schemas. This only keeps
    stored emails comparable, so uniqueness and lookups ignore case.
    """
    email = value.strip().lower() if isinstance(value, str) else ""
    local, _, domain = email.partition("@")
    if not local or "." not in domain:
        raise ValueError("A valid email address is required.")
    return email


class User(PKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """
    Authentication identity.

    ``email`` is stored normalized (see :func:`normalize_email`);
    ``password_hash`` is the hasher's encoded digest and is never projected
    outside the service layer. Deleting a user deletes its refresh tokens.
    """

    __tablename__ = "users"
    __repr_attrs__ = ("username", "role_id")
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        UniqueConstraint("username", name="uq_users_username"),
    )

    username: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role_id: Mapped[int] = mapped_column(
        ForeignKey("roles.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    role: Mapped[Role] = relationship(back_populates="users", lazy="joined")
    refresh_tokens: Mapped[list[RefreshToken]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("email")
    def _validate_email(self, key: str, value: str) -> str:
        return normalize_email(value)

    @validates("username")
    def _validate_username(self, key: str, value: str) -> str:
        username = value.strip() if isinstance(value, str) else ""
        if not username:
            raise ValueError("Username is required.")
        return username
