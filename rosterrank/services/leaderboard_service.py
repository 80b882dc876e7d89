"""
rosterrank.services.leaderboard_service — Leaderboard & Member Rank Reads
==========================================================================

Read-only.  Each call reads inside :func:`snapshot_session` (REPEATABLE READ
on PostgreSQL), so a leaderboard never shows a half-applied correction.  Ordering
is delegated to :func:`rosterrank.engine.leaderboard.rank_members`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from rosterrank.constants import MAX_PAGE_SIZE, RANK_BADGES
from rosterrank.database.engine import snapshot_session
from rosterrank.database.models import MemberRank, RankingDefinition
from rosterrank.engine.domain import DomainDescriptor
from rosterrank.engine.leaderboard import rank_members
from rosterrank.engine.registry import require_domain
from rosterrank.errors import NotFoundError
from rosterrank.services.ranking_service import require_definition

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


def _full_stats(domain: DomainDescriptor, member: MemberRank) -> dict[str, int]:
    """Every declared field, defaulting to 0."""
    stats = member.stats
    return {field.id: stats.get(field.id, 0) for field in domain.stat_fields}


def member_rank_to_dict(domain: DomainDescriptor, member: MemberRank) -> dict[str, Any]:
    level = member.current_level
    return {
        "user_id": member.user_id,
        "definition_id": member.definition_id,
        "stats": _full_stats(domain, member),
        "level": (
            {"id": level.id, "name": level.name, "color": level.color, "order": level.order}
            if level is not None
            else None
        ),
        "last_activity_at": (
            member.last_activity_at.isoformat() if member.last_activity_at else None
        ),
    }


def _member_query():
    return select(MemberRank).options(
        selectinload(MemberRank.stat_rows),
        selectinload(MemberRank.current_level),
    )


# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------
def get_leaderboard(
    engine: Engine,
    definition_id: int,
    organization_id: str,
    *,
    limit: int | None = None,
) -> list[dict[str, Any]]:
    """Members ordered best-first by the domain's tie-break rules.

    Positions are 1-based and unique; the top three carry a medal badge.
    """
    if limit is not None and not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}, got {limit}")

    with snapshot_session(engine) as session:
        definition = require_definition(session, definition_id, organization_id)
        domain = require_domain(definition.domain_id)
        members = session.scalars(
            _member_query().where(MemberRank.definition_id == definition.id)
        ).all()

        ordered = rank_members(
            domain,
            members,
            stats_of=lambda member: member.stats,
            user_id_of=lambda member: member.user_id,
        )
        if limit is not None:
            ordered = ordered[:limit]

        board = []
        for position, member in enumerate(ordered, start=1):
            row = member_rank_to_dict(domain, member)
            row["position"] = position
            row["badge"] = RANK_BADGES[position - 1] if position <= len(RANK_BADGES) else None
            board.append(row)

    logger.debug("Leaderboard built for definition %d (%d rows)", definition_id, len(board))
    return board


# ---------------------------------------------------------------------------
# Member ranks
# ---------------------------------------------------------------------------
def get_member_rank(
    engine: Engine, definition_id: int, organization_id: str, user_id: str
) -> dict[str, Any]:
    with snapshot_session(engine) as session:
        definition = require_definition(session, definition_id, organization_id)
        domain = require_domain(definition.domain_id)
        member = session.scalar(
            _member_query().where(
                MemberRank.definition_id == definition.id,
                MemberRank.user_id == user_id,
            )
        )
        if member is None:
            raise NotFoundError(
                f"No rank for user {user_id} in definition {definition_id}",
                "This member has no ranking yet.",
            )
        return member_rank_to_dict(domain, member)


def get_member_ranks_by_user(
    engine: Engine, user_id: str, organization_id: str
) -> list[dict[str, Any]]:
    """A member's rank in every definition of the organization."""
    with snapshot_session(engine) as session:
        rows = session.execute(
            _member_query()
            .add_columns(RankingDefinition)
            .join(RankingDefinition, MemberRank.definition_id == RankingDefinition.id)
            .where(
                MemberRank.user_id == user_id,
                RankingDefinition.organization_id == organization_id,
            )
            .order_by(RankingDefinition.name, RankingDefinition.id)
        ).all()

        result = []
        for member, definition in rows:
            row = member_rank_to_dict(require_domain(definition.domain_id), member)
            row.update(
                definition_name=definition.name,
                domain_id=definition.domain_id,
                activity_id=definition.activity_id,
            )
            result.append(row)
        return result
