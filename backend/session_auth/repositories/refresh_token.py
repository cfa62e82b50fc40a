"""Refresh-token repository.

All state transitions are single conditional statements so two transactions
racing on the same row cannot both win:

* :meth:`RefreshTokenRepository.mark_revoked` is a compare-and-swap guarded by
  ``revoked_at IS NULL``.
* :meth:`RefreshTokenRepository.delete_stale` never touches active rows.

Both run as plain (non-RETURNING) statements so ``rowcount`` is reliable on
every dialect; in-session copies are expired by hand instead.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import delete, or_, select, update
from sqlalchemy.orm.util import identity_key

from session_auth.models.refresh_token import RefreshToken
from session_auth.repositories.base import SessionRepository


class RefreshTokenRepository(SessionRepository[RefreshToken]):
    """Persistence for :class:`RefreshToken` rows."""

    model = RefreshToken

    # ---------------------------- Lookups ----------------------------

    def get_by_token(self, token: str) -> RefreshToken | None:
        """Return the row holding exactly ``token`` (no normalisation)."""
        stmt = select(RefreshToken).where(RefreshToken.token == token)
        return self.session.execute(stmt).scalars().first()

    def list_for_user(self, user_id: int) -> Sequence[RefreshToken]:
        """Return every token of ``user_id`` ordered by creation."""
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .order_by(RefreshToken.created_at, RefreshToken.id)
        )
        return self.session.execute(stmt).scalars().all()

    # ---------------------------- Transitions ----------------------------

    def mark_revoked(
        self,
        token_id: int,
        *,
        at: datetime,
        ip: str,
        replaced_by: str | None = None,
    ) -> bool:
        """Revoke a token only if it is still unrevoked.

        :param token_id: Primary key of the token row.
        :param at: Revocation timestamp (UTC).
        :param ip: Address of the caller performing the revocation.
        :param replaced_by: Successor token string when revoking by rotation.
        :returns: ``True`` if this call performed the transition, ``False``
            when another transaction revoked the row first.
        :rtype: bool
        """
        values: dict[str, object] = {"revoked_at": at, "revoked_by_ip": ip}
        if replaced_by is not None:
            values["replaced_by_token"] = replaced_by
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.id == token_id, RefreshToken.revoked_at.is_(None))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        swapped = self.session.execute(stmt).rowcount == 1
        self._expire_cached(token_id)
        return swapped

    def delete_stale(self, user_id: int, *, now: datetime, created_before: datetime) -> int:
        """Delete inactive tokens of ``user_id`` created before the cutoff.

        A token is inactive when it is revoked or ``expires_at <= now``.

        :returns: Number of deleted rows.
        :rtype: int
        """
        stmt = (
            delete(RefreshToken)
            .where(
                RefreshToken.user_id == user_id,
                or_(RefreshToken.revoked_at.is_not(None), RefreshToken.expires_at <= now),
                RefreshToken.created_at < created_before,
            )
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def _expire_cached(self, token_id: int) -> None:
        cached = self.session.identity_map.get(identity_key(RefreshToken, token_id))
        if cached is not None:
            self.session.expire(cached)
