"""Role reference data and the role → capability mapping."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from session_auth.core.extensions import db

from .base import CreatedAtMixin, PKMixin, ReprMixin

if TYPE_CHECKING:  # pragma: no cover
    from .user import User


class RoleName(str, Enum):
    """Closed set of authorization levels."""

    ADMIN = "Admin"
    MANAGER = "Manager"
    USER = "User"

    @classmethod
    def parse(cls, value: str | RoleName | None) -> RoleName | None:
        """
        Resolve a role name case-insensitively.

        :param value: Raw role name (``"admin"``, ``"Admin"``...).
        :returns: Matching member, or ``None`` for unknown/blank input.
        """
        if isinstance(value, RoleName):
            return value
        if not value:
            return None
        wanted = value.strip().lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        return None

    @property
    def capabilities(self) -> frozenset[Capability]:
        return ROLE_CAPABILITIES[self]


class Capability(str, Enum):
    """Authorization capabilities granted through roles."""

    AUTHENTICATED = "authenticated"
    VIEW_ALL_RECORDS = "view_all_records"
    MANAGE_USERS = "manage_users"


ROLE_CAPABILITIES: dict[RoleName, frozenset[Capability]] = {
    RoleName.USER: frozenset({Capability.AUTHENTICATED}),
    RoleName.MANAGER: frozenset({Capability.AUTHENTICATED, Capability.VIEW_ALL_RECORDS}),
    RoleName.ADMIN: frozenset(
        {Capability.AUTHENTICATED, Capability.VIEW_ALL_RECORDS, Capability.MANAGE_USERS}
    ),
}

ROLE_DESCRIPTIONS: dict[RoleName, str] = {
    RoleName.ADMIN: "Full system access - can manage users and all tasks",
    RoleName.MANAGER: "Can view all tasks but only modify own tasks",
    RoleName.USER: "Can only manage own tasks",
}


class Role(PKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """
    Named authorization level. Seeded once, never mutated at runtime.

    Fields
    ------
    name : str
        One of :class:`RoleName` values. Unique.
    description : str
        Human-readable summary of the role.
    """

    __tablename__ = "roles"
    __repr_attrs__ = ("name",)

    name: Mapped[str] = mapped_column(String(32), nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    users: Mapped[list[User]] = relationship(back_populates="role")

    __table_args__ = (UniqueConstraint("name", name="uq_roles_name"),)
