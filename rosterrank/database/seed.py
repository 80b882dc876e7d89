"""
rosterrank.database.seed — Default Level Ladder Seeder
=======================================================

Copies a domain's default level ladder onto a freshly created ranking
definition.  Levels are numbered ``0 .. n-1`` lowest → highest.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy.orm import Session

from rosterrank.database.models import RankingDefinition, RankingLevel
from rosterrank.engine.domain import DefaultLevel

logger = logging.getLogger(__name__)


def seed_levels(
    session: Session,
    definition: RankingDefinition,
    levels: Sequence[DefaultLevel],
) -> list[RankingLevel]:
    """Insert *levels* for *definition*; caller owns the transaction."""
    rows = [
        RankingLevel(
            definition_id=definition.id,
            name=level.name,
            color=level.color,
            order=index,
        )
        for index, level in enumerate(levels)
    ]
    session.add_all(rows)
    session.flush()
    if rows:
        logger.info(
            "Seeded %d levels for definition %d", len(rows), definition.id
        )
    return rows
