"""
rosterrank.api.routes.rankings — Definitions, levels, stats & leaderboards
===========================================================================

Every handler is scoped to the caller's organization; mutations require a
writer role.  Service calls run on a worker thread via ``run_db``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from rosterrank.api.deps import Caller, get_caller, get_config, get_engine, require_writer
from rosterrank.config import RosterRankConfig
from rosterrank.constants import (
    MAX_DEFINITION_NAME_LENGTH,
    MAX_LEVEL_NAME_LENGTH,
    MAX_NOTE_LENGTH,
    MAX_PAGE_SIZE,
)
from rosterrank.database.engine import run_db
from rosterrank.services import leaderboard_service, ranking_service, stat_service

router = APIRouter(tags=["rankings"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class LevelInput(BaseModel):
    id: int | None = None
    name: str = Field(min_length=1, max_length=MAX_LEVEL_NAME_LENGTH)
    color: str | None = None
    order: int | None = Field(default=None, ge=0)


class DefinitionCreate(BaseModel):
    activity_id: str
    name: str = Field(min_length=1, max_length=MAX_DEFINITION_NAME_LENGTH)
    domain_id: str
    levels: list[LevelInput] | None = None
    use_default_levels: bool = False


class DefinitionRename(BaseModel):
    name: str = Field(min_length=1, max_length=MAX_DEFINITION_NAME_LENGTH)


class LevelsReplace(BaseModel):
    levels: list[LevelInput]


class LevelAssignment(BaseModel):
    level_id: int | None = None


class StatsRecord(BaseModel):
    user_id: str
    stats: dict[str, int]
    session_id: str | None = None
    notes: str | None = Field(default=None, max_length=MAX_NOTE_LENGTH)


class StatsCorrection(BaseModel):
    corrected_stats: dict[str, int]
    notes: str | None = Field(default=None, max_length=MAX_NOTE_LENGTH)


def _levels_payload(levels: list[LevelInput]) -> list[dict]:
    return [level.model_dump(exclude_none=True) for level in levels]


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------
@router.post("/rankings", status_code=201)
async def create_ranking(
    body: DefinitionCreate,
    caller: Caller = Depends(require_writer),
    engine=Depends(get_engine),
):
    return await run_db(
        ranking_service.create_definition,
        engine,
        organization_id=caller.organization_id,
        activity_id=body.activity_id,
        name=body.name,
        domain_id=body.domain_id,
        created_by=caller.user_id,
        levels=None if body.levels is None else _levels_payload(body.levels),
        use_default_levels=body.use_default_levels,
    )


@router.get("/rankings/by-activity/{activity_id}")
async def get_ranking_by_activity(
    activity_id: str,
    caller: Caller = Depends(get_caller),
    engine=Depends(get_engine),
):
    definition = await run_db(
        ranking_service.get_definition_by_activity,
        engine, activity_id, caller.organization_id,
    )
    if definition is None:
        raise HTTPException(404, "Ranking not found")
    return definition


@router.get("/rankings/{definition_id}")
async def get_ranking(
    definition_id: int,
    caller: Caller = Depends(get_caller),
    engine=Depends(get_engine),
):
    return await run_db(
        ranking_service.get_definition, engine, definition_id, caller.organization_id
    )


@router.patch("/rankings/{definition_id}")
async def rename_ranking(
    definition_id: int,
    body: DefinitionRename,
    caller: Caller = Depends(require_writer),
    engine=Depends(get_engine),
):
    return await run_db(
        ranking_service.rename_definition,
        engine, definition_id, caller.organization_id, body.name,
    )


# ---------------------------------------------------------------------------
# Levels
# ---------------------------------------------------------------------------
@router.get("/rankings/{definition_id}/levels")
async def get_levels(
    definition_id: int,
    caller: Caller = Depends(get_caller),
    engine=Depends(get_engine),
):
    levels = await run_db(
        ranking_service.list_levels, engine, definition_id, caller.organization_id
    )
    return {"levels": levels}


@router.put("/rankings/{definition_id}/levels")
async def replace_levels(
    definition_id: int,
    body: LevelsReplace,
    caller: Caller = Depends(require_writer),
    engine=Depends(get_engine),
):
    levels = await run_db(
        ranking_service.upsert_levels,
        engine, definition_id, caller.organization_id, _levels_payload(body.levels),
    )
    return {"levels": levels}


@router.delete("/rankings/{definition_id}/levels/{level_id}")
async def remove_level(
    definition_id: int,
    level_id: int,
    caller: Caller = Depends(require_writer),
    engine=Depends(get_engine),
):
    return await run_db(
        ranking_service.delete_level,
        engine, definition_id, caller.organization_id, level_id,
    )


@router.put("/rankings/{definition_id}/members/{user_id}/level")
async def set_member_level(
    definition_id: int,
    user_id: str,
    body: LevelAssignment,
    caller: Caller = Depends(require_writer),
    engine=Depends(get_engine),
):
    return await run_db(
        ranking_service.assign_level,
        engine,
        definition_id=definition_id,
        organization_id=caller.organization_id,
        user_id=user_id,
        level_id=body.level_id,
    )


# ---------------------------------------------------------------------------
# Member ranks & leaderboard
# ---------------------------------------------------------------------------
@router.get("/rankings/{definition_id}/members/{user_id}")
async def get_member(
    definition_id: int,
    user_id: str,
    caller: Caller = Depends(get_caller),
    engine=Depends(get_engine),
):
    return await run_db(
        leaderboard_service.get_member_rank,
        engine, definition_id, caller.organization_id, user_id,
    )


@router.get("/rankings/{definition_id}/leaderboard")
async def get_leaderboard(
    definition_id: int,
    limit: int | None = Query(default=None, ge=1, le=MAX_PAGE_SIZE),
    caller: Caller = Depends(get_caller),
    engine=Depends(get_engine),
    cfg: RosterRankConfig = Depends(get_config),
):
    rows = await run_db(
        leaderboard_service.get_leaderboard,
        engine,
        definition_id,
        caller.organization_id,
        limit=limit or cfg.leaderboard_page_size,
    )
    return {"leaderboard": rows}


@router.get("/users/{user_id}/ranks")
async def get_user_ranks(
    user_id: str,
    caller: Caller = Depends(get_caller),
    engine=Depends(get_engine),
):
    ranks = await run_db(
        leaderboard_service.get_member_ranks_by_user,
        engine, user_id, caller.organization_id,
    )
    return {"ranks": ranks}


# ---------------------------------------------------------------------------
# Manual stats & audit ledger
# ---------------------------------------------------------------------------
@router.post("/rankings/{definition_id}/stats", status_code=201)
async def record_stats(
    definition_id: int,
    body: StatsRecord,
    caller: Caller = Depends(require_writer),
    engine=Depends(get_engine),
):
    return await run_db(
        stat_service.record_stats,
        engine,
        definition_id=definition_id,
        organization_id=caller.organization_id,
        user_id=body.user_id,
        stats=body.stats,
        recorded_by=caller.user_id,
        session_id=body.session_id,
        notes=body.notes,
    )


@router.post("/rankings/{definition_id}/stats/{entry_id}/correct")
async def correct_stats(
    definition_id: int,
    entry_id: int,
    body: StatsCorrection,
    caller: Caller = Depends(require_writer),
    engine=Depends(get_engine),
):
    return await run_db(
        stat_service.correct_stat_entry,
        engine,
        definition_id=definition_id,
        organization_id=caller.organization_id,
        entry_id=entry_id,
        corrected_stats=body.corrected_stats,
        recorded_by=caller.user_id,
        notes=body.notes,
    )


@router.get("/rankings/{definition_id}/stats")
async def get_stat_entries(
    definition_id: int,
    user_id: str | None = None,
    limit: int = Query(default=MAX_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    caller: Caller = Depends(get_caller),
    engine=Depends(get_engine),
):
    entries = await run_db(
        stat_service.list_stat_entries,
        engine,
        definition_id=definition_id,
        organization_id=caller.organization_id,
        user_id=user_id,
        limit=limit,
        offset=offset,
    )
    return {"entries": entries}
