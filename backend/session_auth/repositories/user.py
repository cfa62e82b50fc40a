"""User repository: identity lookups used by login and registration."""

from __future__ import annotations

from sqlalchemy import func, select

from session_auth.models.user import User
from session_auth.repositories.base import SessionRepository


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class UserRepository(SessionRepository[User]):
    """Persistence-only repository for :class:`User`.

    This repository focuses on safe lookup by natural keys. It NEVER verifies
    passwords or issues tokens; the authentication service owns that.
    """

    model = User

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == _normalize_email(email))
        return self.session.execute(stmt).unique().scalars().first()

    def exists_by_email(self, email: str) -> bool:
        """Return ``True`` when a user with the provided email exists.

        :param email: Email address to normalise and search.
        :type email: str
        :rtype: bool
        """
        stmt = select(User.id).where(User.email == _normalize_email(email))
        return self.session.execute(stmt).first() is not None

    def exists_by_username(self, username: str) -> bool:
        """Return ``True`` when the username is taken, ignoring case.

        :param username: Candidate username.
        :type username: str
        :rtype: bool
        """
        stmt = select(User.id).where(func.lower(User.username) == username.strip().lower())
        return self.session.execute(stmt).first() is not None
