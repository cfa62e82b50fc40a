"""Idempotent seed for the closed set of roles."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import select

from session_auth.models.role import ROLE_DESCRIPTIONS, Role, RoleName

LOGGER = logging.getLogger(__name__)


@dataclass
class SeedReport:
    """Role names inserted by a seed run and those already present."""

    created: list[str] = field(default_factory=list)
    existing: list[str] = field(default_factory=list)


def seed_roles(database: SQLAlchemy) -> SeedReport:
    """Insert every :class:`RoleName` that is missing and commit.

    Existing rows are left untouched, including their descriptions.
    """
    session = database.session
    present = set(session.execute(select(Role.name)).scalars())
    report = SeedReport()
    for name in RoleName:
        if name.value in present:
            report.existing.append(name.value)
            continue
        session.add(Role(name=name.value, description=ROLE_DESCRIPTIONS[name]))
        report.created.append(name.value)
        LOGGER.debug("seed.role.created name=%s", name.value)
    session.commit()
    return report


__all__ = ["SeedReport", "seed_roles"]
