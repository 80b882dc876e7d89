"""
rosterrank.api.routes.matches — Match recording, correction & history
======================================================================
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from rosterrank.api.deps import Caller, get_caller, get_config, get_engine, require_writer
from rosterrank.config import RosterRankConfig
from rosterrank.constants import MAX_NOTE_LENGTH, MAX_PAGE_SIZE
from rosterrank.database.engine import run_db
from rosterrank.services import match_service

router = APIRouter(prefix="/rankings/{definition_id}/matches", tags=["matches"])


class MatchCreate(BaseModel):
    team1: list[str]
    team2: list[str]
    scores: Any
    match_format: str | None = None
    session_id: str | None = None
    notes: str | None = Field(default=None, max_length=MAX_NOTE_LENGTH)


class MatchCorrection(BaseModel):
    scores: Any
    match_format: str | None = None
    team1: list[str] | None = None
    team2: list[str] | None = None
    notes: str | None = Field(default=None, max_length=MAX_NOTE_LENGTH)


@router.post("", status_code=201)
async def record_match(
    definition_id: int,
    body: MatchCreate,
    caller: Caller = Depends(require_writer),
    engine=Depends(get_engine),
):
    return await run_db(
        match_service.record_match,
        engine,
        definition_id=definition_id,
        organization_id=caller.organization_id,
        team1=body.team1,
        team2=body.team2,
        scores=body.scores,
        recorded_by=caller.user_id,
        match_format=body.match_format,
        session_id=body.session_id,
        notes=body.notes,
    )


@router.post("/{match_id}/correct")
async def correct_match(
    definition_id: int,
    match_id: int,
    body: MatchCorrection,
    caller: Caller = Depends(require_writer),
    engine=Depends(get_engine),
):
    return await run_db(
        match_service.correct_match,
        engine,
        definition_id=definition_id,
        organization_id=caller.organization_id,
        match_id=match_id,
        scores=body.scores,
        recorded_by=caller.user_id,
        match_format=body.match_format,
        team1=body.team1,
        team2=body.team2,
        notes=body.notes,
    )


@router.get("")
async def list_matches(
    definition_id: int,
    session_id: str | None = None,
    limit: int | None = Query(default=None, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    caller: Caller = Depends(get_caller),
    engine=Depends(get_engine),
    cfg: RosterRankConfig = Depends(get_config),
):
    """Matches for one session, or a newest-first page of all matches."""
    if session_id is not None:
        matches = await run_db(
            match_service.list_matches_by_session,
            engine, definition_id, caller.organization_id, session_id,
        )
    else:
        matches = await run_db(
            match_service.list_matches_by_definition,
            engine,
            definition_id,
            caller.organization_id,
            limit=limit or cfg.match_page_size,
            offset=offset,
        )
    return {"matches": matches}
