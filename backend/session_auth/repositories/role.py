"""Role repository (reference data)."""

from __future__ import annotations

from sqlalchemy import func, select

from session_auth.models.role import Role, RoleName
from session_auth.repositories.base import SessionRepository


class RoleRepository(SessionRepository[Role]):
    """Lookups over the seeded :class:`Role` rows."""

    model = Role

    def get_by_name(self, name: str | RoleName) -> Role | None:
        """Return the role whose name matches ``name`` ignoring case."""
        value = name.value if isinstance(name, RoleName) else name
        stmt = select(Role).where(func.lower(Role.name) == value.strip().lower())
        return self.session.execute(stmt).scalars().first()
