"""Per-request work budget checked between expensive steps."""

from __future__ import annotations

import time
from collections.abc import Callable

from session_auth.services._shared.errors import OperationTimeout


class Deadline:
    """
    Monotonic deadline.

    Services call :meth:`check` after password hashing and right before each
    commit, inside the unit of work, so an expired budget aborts the
    transaction instead of leaving a partial mutation behind.

    :param seconds: Budget from now, or ``None`` for no limit.
    :param clock: Monotonic clock, injectable for tests.
    """

    __slots__ = ("_clock", "expires_at")

    def __init__(
        self, seconds: float | None, *, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._clock = clock
        self.expires_at = None if seconds is None else clock() + seconds

    @classmethod
    def unbounded(cls) -> Deadline:
        return cls(None)

    @property
    def expired(self) -> bool:
        return self.expires_at is not None and self._clock() >= self.expires_at

    def check(self, stage: str) -> None:
        """
        Raise when the budget is spent.

        :param stage: Step name reported in logs and on the error.
        :raises OperationTimeout: If the deadline has passed.
        """
        if self.expired:
            raise OperationTimeout(stage)
