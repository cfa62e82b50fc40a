"""Base class for services: units of work, clock, deadline and storage errors."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from session_auth.core.clock import Clock, utcnow
from session_auth.services._shared.deadline import Deadline
from session_auth.services._shared.errors import PersistenceFailure
from session_auth.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data explicitly through the call chain.

    :param actor_id: Authenticated user identifier, when the caller has one.
    :param request_id: Correlation id for logging/tracing.
    :param deadline: Work budget for the current request.
    """

    actor_id: int | None = None
    request_id: str | None = None
    deadline: Deadline = field(default_factory=Deadline.unbounded)


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Translate storage faults into :class:`PersistenceFailure`.
    * Expose the injected clock and the request deadline.

    Notes
    -----
    - Services must never touch the global session; always use a Unit of Work.
    - Services never import Flask; HTTP translation lives in ``core/errors``.
    """

    def __init__(self, *, ctx: ServiceContext | None = None, clock: Clock = utcnow) -> None:
        """
        Initialize the base service.

        :param ctx: Optional request-scoped context (actor, tracing, deadline).
        :type ctx: ServiceContext | None
        :param clock: Source of the current UTC time.
        """
        self.ctx = ctx or ServiceContext()
        self.clock = clock

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """Writer scope: commits on a clean exit."""
        return SQLAlchemyUnitOfWork()

    def ro_uow(self) -> SQLAlchemyReadOnlyUnitOfWork:
        """Lookup scope: any write raises, nothing is committed."""
        return SQLAlchemyReadOnlyUnitOfWork()

    # -------------------------- Time & budget -------------------------------

    def now_utc(self) -> datetime:
        return self.clock()

    def checkpoint(self, stage: str) -> None:
        """Abort with a retryable timeout when the request budget is spent."""
        self.ctx.deadline.check(stage)

    def log_extra(self, **fields: Any) -> dict[str, Any]:
        """
        Build ``extra=`` for a log record: ``fields`` plus the context's
        ``request_id`` and ``actor_id`` when known.
        """
        extra = {key: value for key, value in fields.items() if value is not None}
        if self.ctx.request_id is not None:
            extra["request_id"] = self.ctx.request_id
        if self.ctx.actor_id is not None:
            extra["actor_id"] = self.ctx.actor_id
        return extra

    # -------------------------- Error handling ------------------------------

    @contextmanager
    def storage_errors(self, operation: str) -> Iterator[None]:
        """
        Translate SQLAlchemy failures raised inside the block.

        The original exception is logged with its traceback and chained; the
        caller only ever sees the generic :class:`PersistenceFailure`.

        :param operation: Name of the use case, for the log record.
        :raises PersistenceFailure: On any :class:`SQLAlchemyError`.
        """
        try:
            yield
        except SQLAlchemyError as exc:
            logger.error(
                "auth.%s.storage_error",
                operation,
                exc_info=True,
                extra=self.log_extra(stage=operation),
            )
            raise PersistenceFailure() from exc
