"""Refresh-token session credential."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from session_auth.core.clock import ensure_utc, utcnow
from session_auth.core.extensions import db

from .base import CreatedAtMixin, PKMixin, ReprMixin

if TYPE_CHECKING:  # pragma: no cover
    from .user import User


class RefreshToken(PKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """
    Long-lived, opaque, rotating session credential.

    State machine: *active* → *revoked* (explicit revoke or rotation), or
    *active* → *expired* (derived from ``expires_at``). Both are terminal.
    Rotation links the revoked token to its successor through
    ``replaced_by_token``; the unique constraint on that column means a token
    can have at most one successor.
    """

    __tablename__ = "refresh_tokens"
    __repr_attrs__ = ("user_id", "expires_at", "revoked_at")

    token: Mapped[str] = mapped_column(String(128), nullable=False)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_by_ip: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked_by_ip: Mapped[str | None] = mapped_column(String(255), nullable=True)
    replaced_by_token: Mapped[str | None] = mapped_column(String(128), nullable=True)

    user: Mapped[User] = relationship(back_populates="refresh_tokens")

    __table_args__ = (
        UniqueConstraint("token", name="uq_refresh_tokens_token"),
        UniqueConstraint("replaced_by_token", name="uq_refresh_tokens_replaced_by_token"),
    )

    # -------------------- Derived state --------------------
    def is_expired(self, now: datetime | None = None) -> bool:
        """Return ``True`` once ``now`` has reached ``expires_at``."""
        return ensure_utc(now or utcnow()) >= ensure_utc(self.expires_at)

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def is_active(self, now: datetime | None = None) -> bool:
        """Return ``True`` when the token is neither revoked nor expired."""
        return not self.is_revoked and not self.is_expired(now)

    @property
    def was_rotated(self) -> bool:
        """``True`` when the token was retired by rotation (has a successor)."""
        return self.replaced_by_token is not None
