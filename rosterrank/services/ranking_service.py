"""
rosterrank.services.ranking_service — Definitions, Levels & Level Assignment
=============================================================================

A ranking definition enables one domain for one activity inside one
organization.  Its level ladder is ordered lowest → highest and assigned to
members by hand; nothing here derives a level from stats.

Every lookup is scoped by ``organization_id``: a definition belonging to
another organization is reported as not found.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rosterrank.constants import MAX_DEFINITION_NAME_LENGTH, MAX_LEVEL_NAME_LENGTH
from rosterrank.database.engine import unit_of_work
from rosterrank.database.models import MemberRank, RankingDefinition, RankingLevel
from rosterrank.database.seed import seed_levels
from rosterrank.engine.domain import DefaultLevel
from rosterrank.engine.registry import require_domain
from rosterrank.errors import ConfigurationError, ConflictError, NotFoundError

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------
def level_to_dict(level: RankingLevel) -> dict[str, Any]:
    return {
        "id": level.id,
        "name": level.name,
        "color": level.color,
        "order": level.order,
    }


def definition_to_dict(definition: RankingDefinition) -> dict[str, Any]:
    return {
        "id": definition.id,
        "organization_id": definition.organization_id,
        "activity_id": definition.activity_id,
        "name": definition.name,
        "domain_id": definition.domain_id,
        "created_by": definition.created_by,
        "levels": [level_to_dict(level) for level in definition.levels],
    }


# ---------------------------------------------------------------------------
# Scoped lookups (shared by the other services)
# ---------------------------------------------------------------------------
def require_definition(
    session: Session, definition_id: int, organization_id: str
) -> RankingDefinition:
    definition = session.get(RankingDefinition, definition_id)
    if definition is None or definition.organization_id != organization_id:
        raise NotFoundError(
            f"Ranking definition {definition_id} not found in {organization_id}",
            "Ranking not found.",
        )
    return definition


def _require_level(session: Session, definition_id: int, level_id: int) -> RankingLevel:
    level = session.get(RankingLevel, level_id)
    if level is None or level.definition_id != definition_id:
        raise NotFoundError(f"Level {level_id} not found", "Level not found.")
    return level


def _find_member_rank(session: Session, definition_id: int, user_id: str) -> MemberRank | None:
    return session.scalar(
        select(MemberRank).where(
            MemberRank.definition_id == definition_id,
            MemberRank.user_id == user_id,
        )
    )


def get_or_create_member_rank(session: Session, definition_id: int, user_id: str) -> MemberRank:
    """Fetch or lazily insert a member's rank row."""
    member = _find_member_rank(session, definition_id, user_id)
    if member is not None:
        return member
    try:
        with session.begin_nested():   # SAVEPOINT
            member = MemberRank(definition_id=definition_id, user_id=user_id)
            session.add(member)
            session.flush()
        return member
    except IntegrityError:
        # A concurrent transaction created it first.
        member = _find_member_rank(session, definition_id, user_id)
        if member is None:
            raise
        return member


# ---------------------------------------------------------------------------
# Input checks
# ---------------------------------------------------------------------------
def _check_name(name: str, limit: int, what: str) -> str:
    name = (name or "").strip()
    if not 1 <= len(name) <= limit:
        raise ConfigurationError(f"{what} must be 1-{limit} characters")
    return name


def _normalize_levels(levels: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Fill in ``order`` from position and reject duplicate orders."""
    normalized = []
    for position, level in enumerate(levels):
        normalized.append({
            "id": level.get("id"),
            "name": _check_name(level.get("name", ""), MAX_LEVEL_NAME_LENGTH, "Level name"),
            "color": level.get("color"),
            "order": level.get("order", position),
        })
    orders = [level["order"] for level in normalized]
    if not all(isinstance(order, int) and order >= 0 for order in orders):
        raise ConfigurationError("Level orders must be non-negative integers")
    if len(set(orders)) != len(orders):
        raise ConfigurationError("Level orders must be unique")
    return normalized


def _assigned_count(session: Session, level_ids: Sequence[int]) -> int:
    if not level_ids:
        return 0
    return session.scalar(
        select(func.count()).select_from(MemberRank).where(
            MemberRank.current_level_id.in_(level_ids)
        )
    ) or 0


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------
def create_definition(
    engine: Engine,
    *,
    organization_id: str,
    activity_id: str,
    name: str,
    domain_id: str,
    created_by: str,
    levels: Sequence[Mapping[str, Any]] | None = None,
    use_default_levels: bool = False,
) -> dict[str, Any]:
    """Enable *domain_id* for an activity.

    Explicit *levels* take precedence over the domain's default ladder.
    Raises :class:`ConfigurationError` for an unknown domain and
    :class:`ConflictError` if the activity already has a ranking.
    """
    domain = require_domain(domain_id)
    name = _check_name(name, MAX_DEFINITION_NAME_LENGTH, "Ranking name")
    if levels is not None:
        ladder = [
            DefaultLevel(level["name"], level["color"])
            for level in sorted(_normalize_levels(levels), key=lambda lv: lv["order"])
        ]
    elif use_default_levels:
        ladder = list(domain.default_levels)
    else:
        ladder = []

    with unit_of_work(engine, "create_definition") as session:
        definition = RankingDefinition(
            organization_id=organization_id,
            activity_id=activity_id,
            name=name,
            domain_id=domain.id,
            created_by=created_by,
        )
        try:
            with session.begin_nested():   # SAVEPOINT
                session.add(definition)
                session.flush()
        except IntegrityError as exc:
            logger.warning("Ranking already exists for activity %s", activity_id)
            raise ConflictError(
                f"Activity {activity_id} already has a ranking definition",
                "This activity already has a ranking.",
            ) from exc

        seed_levels(session, definition, ladder)
        session.refresh(definition, ["levels"])
        result = definition_to_dict(definition)

    logger.info(
        "Ranking definition %d created: org=%s activity=%s domain=%s",
        result["id"], organization_id, activity_id, domain.id,
    )
    return result


def get_definition(engine: Engine, definition_id: int, organization_id: str) -> dict[str, Any]:
    with Session(engine) as session:
        return definition_to_dict(require_definition(session, definition_id, organization_id))


def get_definition_by_activity(
    engine: Engine, activity_id: str, organization_id: str
) -> dict[str, Any] | None:
    with Session(engine) as session:
        definition = session.scalar(
            select(RankingDefinition).where(
                RankingDefinition.activity_id == activity_id,
                RankingDefinition.organization_id == organization_id,
            )
        )
        return definition_to_dict(definition) if definition else None


def rename_definition(
    engine: Engine, definition_id: int, organization_id: str, name: str
) -> dict[str, Any]:
    name = _check_name(name, MAX_DEFINITION_NAME_LENGTH, "Ranking name")
    with unit_of_work(engine, "rename_definition") as session:
        definition = require_definition(session, definition_id, organization_id)
        definition.name = name
        session.flush()
        return definition_to_dict(definition)


# ---------------------------------------------------------------------------
# Levels
# ---------------------------------------------------------------------------
def list_levels(engine: Engine, definition_id: int, organization_id: str) -> list[dict[str, Any]]:
    with Session(engine) as session:
        definition = require_definition(session, definition_id, organization_id)
        return [level_to_dict(level) for level in definition.levels]


def upsert_levels(
    engine: Engine,
    definition_id: int,
    organization_id: str,
    levels: Sequence[Mapping[str, Any]],
) -> list[dict[str, Any]]:
    """Replace the ladder: update levels by id, insert new ones, delete the rest.

    Refuses to delete a level that members are still assigned to.
    """
    incoming = _normalize_levels(levels)

    with unit_of_work(engine, "upsert_levels") as session:
        definition = require_definition(session, definition_id, organization_id)
        current = {level.id: level for level in definition.levels}

        unknown = [lv["id"] for lv in incoming if lv["id"] is not None and lv["id"] not in current]
        if unknown:
            raise NotFoundError(f"Levels {unknown} not found", "Level not found.")

        keep = {lv["id"] for lv in incoming if lv["id"] is not None}
        to_delete = [level_id for level_id in current if level_id not in keep]
        if _assigned_count(session, to_delete):
            raise ConflictError(
                f"Levels {to_delete} still have members assigned",
                "Cannot remove levels that have members assigned. Reassign members first.",
            )
        for level_id in to_delete:
            definition.levels.remove(current[level_id])
        session.flush()

        # Park kept levels on negative orders so a reorder never trips the
        # (definition, order) unique constraint mid-flush.
        for parked, level_id in enumerate(keep, start=1):
            current[level_id].order = -parked
        session.flush()

        for lv in incoming:
            if lv["id"] is not None:
                level = current[lv["id"]]
                level.name, level.color, level.order = lv["name"], lv["color"], lv["order"]
            else:
                definition.levels.append(
                    RankingLevel(name=lv["name"], color=lv["color"], order=lv["order"])
                )
        session.flush()
        session.refresh(definition, ["levels"])
        result = [level_to_dict(level) for level in definition.levels]

    logger.info("Levels updated for definition %d (%d levels)", definition_id, len(result))
    return result


def delete_level(
    engine: Engine, definition_id: int, organization_id: str, level_id: int
) -> dict[str, Any]:
    with unit_of_work(engine, "delete_level") as session:
        definition = require_definition(session, definition_id, organization_id)
        level = _require_level(session, definition.id, level_id)
        assigned = _assigned_count(session, [level.id])
        if assigned:
            raise ConflictError(
                f"Level {level_id} has {assigned} assigned member(s)",
                f"Cannot delete level: {assigned} member(s) are assigned to it. "
                "Reassign them first.",
            )
        result = level_to_dict(level)
        session.delete(level)

    logger.info("Level %d deleted from definition %d", level_id, definition_id)
    return result


def assign_level(
    engine: Engine,
    *,
    definition_id: int,
    organization_id: str,
    user_id: str,
    level_id: int | None,
) -> dict[str, Any]:
    """Set (or clear, with ``None``) a member's current level."""
    with unit_of_work(engine, "assign_level") as session:
        definition = require_definition(session, definition_id, organization_id)
        if level_id is not None:
            _require_level(session, definition.id, level_id)
        member = get_or_create_member_rank(session, definition.id, user_id)
        member.current_level_id = level_id
        session.flush()
        result = {"definition_id": definition.id, "user_id": user_id, "level_id": level_id}

    logger.info(
        "Level assigned: def=%d user=%s level=%s", definition_id, user_id, level_id
    )
    return result
