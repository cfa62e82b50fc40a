"""Refresh-token state machine.

Active → Revoked (explicit revoke or rotation) and Active → Expired (derived
from ``expires_at``). Both targets are terminal; nothing here ever clears
``revoked_at``.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from session_auth.core.clock import Clock, utcnow
from session_auth.models import RefreshToken
from session_auth.services._shared.errors import TokenInactive, TokenNotFound
from session_auth.services._shared.ports import RandomTokenGenerator, RefreshTokenStore

DEFAULT_RETENTION_DAYS = 30


class RefreshTokenManager:
    """
    Create, rotate, revoke and sweep refresh tokens.

    The manager stages changes on the store of the *caller's* unit of work and
    never commits; the enclosing transaction decides whether a rotation lands
    as a whole.

    :param store: Refresh-token store bound to the current unit of work.
    :param generator: Source of opaque token strings.
    :param lifetime: Refresh-token lifetime.
    :param clock: Source of the current UTC time.
    """

    def __init__(
        self,
        store: RefreshTokenStore,
        generator: RandomTokenGenerator,
        *,
        lifetime: timedelta,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store
        self.generator = generator
        self.lifetime = lifetime
        self.clock = clock

    def create(self, user_id: int, ip: str, *, now: datetime | None = None) -> RefreshToken:
        """Stage a new active token for ``user_id``."""
        now = now or self.clock()
        token = RefreshToken(
            token=self.generator.generate(),
            user_id=user_id,
            created_at=now,
            created_by_ip=ip,
            expires_at=now + self.lifetime,
        )
        return self.store.add(token)

    def rotate(self, old_token: str, ip: str) -> tuple[RefreshToken, RefreshToken]:
        """
        Retire ``old_token`` in favour of a new token for the same user.

        The successor is staged first, then the old row is revoked with a
        compare-and-swap. If another transaction revoked or rotated the old
        token in between, the swap touches no row and :class:`TokenInactive`
        is raised; the caller's rollback discards the staged successor.

        :returns: ``(old, new)``.
        :raises TokenNotFound: When ``old_token`` does not exist.
        :raises TokenInactive: When it is revoked, expired, or lost a race.
        """
        now = self.clock()
        current = self.store.get_by_token(old_token)
        if current is None:
            raise TokenNotFound()
        if not current.is_active(now):
            raise TokenInactive()

        successor = self.create(current.user_id, ip, now=now)
        swapped = self.store.mark_revoked(
            current.id, at=now, ip=ip, replaced_by=successor.token
        )
        if not swapped:
            raise TokenInactive()
        return current, successor

    def revoke(self, token: str, ip: str) -> bool:
        """
        Revoke ``token``.

        :returns: ``False`` when the token is unknown or already inactive
            (nothing is changed), ``True`` when this call revoked it.
        """
        now = self.clock()
        current = self.store.get_by_token(token)
        if current is None or not current.is_active(now):
            return False
        return self.store.mark_revoked(current.id, at=now, ip=ip)

    def cleanup(self, user_id: int, retention_days: int = DEFAULT_RETENTION_DAYS) -> int:
        """
        Delete inactive tokens of ``user_id`` created more than
        ``retention_days`` ago. Active tokens are kept regardless of age.

        :returns: Number of deleted rows.
        """
        now = self.clock()
        return self.store.delete_stale(
            user_id, now=now, created_before=now - timedelta(days=retention_days)
        )

    def revoke_lineage(self, token: str, ip: str) -> int:
        """
        Revoke every still-active descendant of ``token``.

        Follows ``replaced_by_token`` links from ``token`` to the head of its
        rotation chain. Used when an already-rotated token is presented again.

        :returns: Number of tokens revoked by this call.
        """
        now = self.clock()
        revoked = 0
        seen: set[str] = set()
        current = self.store.get_by_token(token)
        while current is not None and current.token not in seen:
            seen.add(current.token)
            if current.is_active(now) and self.store.mark_revoked(current.id, at=now, ip=ip):
                revoked += 1
            if current.replaced_by_token is None:
                break
            current = self.store.get_by_token(current.replaced_by_token)
        return revoked
