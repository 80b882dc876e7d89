"""
rosterrank.services.match_service — Match Recording & Correction
==================================================================

``record_match`` runs the pure pipeline in :mod:`rosterrank.engine.match`
(team check → validate → resolve → per-member stats) before the first
write, then persists in ONE unit of work:

  1. Append the :class:`MatchRecord` (with a derived-stats snapshot).
  2. Apply one RECORD ledger entry per player through the Stat Aggregator,
     in ``user_id`` order so that concurrent matches sharing players take
     row locks in the same order.

A duplicate session submission for any player aborts the whole unit, so a
match record never exists without its ledger entries or vice versa.

``correct_match`` keeps the original match and its entries untouched and,
again in one unit of work, reverses every live entry of the original,
writes the corrected match, and applies CORRECTION entries for it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rosterrank.constants import DEFAULT_MATCH_PAGE_SIZE, MAX_PAGE_SIZE
from rosterrank.database.engine import unit_of_work, violates_constraint
from rosterrank.database.models import MatchRecord, RankStatEntry, StatEntryKind
from rosterrank.engine.match import PreparedMatch, prepare_match
from rosterrank.engine.registry import require_match_domain
from rosterrank.errors import ConflictError, NotFoundError
from rosterrank.services.ranking_service import require_definition
from rosterrank.services.stat_service import (
    apply_stats,
    check_notes,
    entry_to_dict,
    reverse_entry,
)

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------
def match_to_dict(match: MatchRecord, superseded: bool = False) -> dict[str, Any]:
    return {
        "id": match.id,
        "definition_id": match.definition_id,
        "session_id": match.session_id,
        "match_format": match.match_format,
        "team1": list(match.team1),
        "team2": list(match.team2),
        "scores": match.scores,
        "winner": match.winner,
        "derived_stats": match.derived_stats,
        "recorded_by": match.recorded_by,
        "notes": match.notes,
        "correction_of_match_id": match.correction_of_match_id,
        "superseded": superseded,
        "created_at": match.created_at.isoformat() if match.created_at else None,
    }


def _new_match_record(
    definition_id: int,
    prepared: PreparedMatch,
    *,
    session_id: str | None,
    recorded_by: str,
    notes: str | None,
    correction_of_match_id: int | None = None,
) -> MatchRecord:
    return MatchRecord(
        definition_id=definition_id,
        session_id=session_id,
        match_format=prepared.match_format,
        team1=list(prepared.team1),
        team2=list(prepared.team2),
        scores=prepared.raw_score,
        winner=prepared.result.winner,
        derived_stats=prepared.derived_stats,
        recorded_by=recorded_by,
        notes=notes,
        correction_of_match_id=correction_of_match_id,
    )


# ---------------------------------------------------------------------------
# Record
# ---------------------------------------------------------------------------
def record_match(
    engine: Engine,
    *,
    definition_id: int,
    organization_id: str,
    team1: Sequence[str],
    team2: Sequence[str],
    scores: Any,
    recorded_by: str,
    match_format: str | None = None,
    session_id: str | None = None,
    notes: str | None = None,
) -> dict[str, Any]:
    """Validate, resolve and persist one match.

    *match_format* defaults to the domain's default format.

    Raises
    ------
    ConfigurationError
        Domain without match support, unsupported format, bad team shape.
    ScoreValidationError
        The score was rejected by the domain validator.
    DuplicateSubmissionError
        A player already has an entry for *session_id*.
    """
    notes = check_notes(notes)

    with unit_of_work(engine, "record_match") as session:
        definition = require_definition(session, definition_id, organization_id)
        domain = require_match_domain(definition.domain_id)
        prepared = prepare_match(
            domain,
            match_format or domain.match_config.default_format,
            team1,
            team2,
            scores,
        )

        match = _new_match_record(
            definition.id,
            prepared,
            session_id=session_id,
            recorded_by=recorded_by,
            notes=notes,
        )
        session.add(match)
        session.flush()

        entries = [
            apply_stats(
                session,
                definition_id=definition.id,
                user_id=user_id,
                deltas=stats,
                recorded_by=recorded_by,
                session_id=session_id,
                notes=notes,
                match_id=match.id,
            )
            for user_id, stats in sorted(prepared.derived_stats.items())
        ]
        result = {
            "match": match_to_dict(match),
            "entries": [entry_to_dict(entry) for entry in entries],
        }

    logger.info(
        "Match %d recorded: def=%d format=%s winner=%s players=%d",
        result["match"]["id"], definition_id, prepared.match_format,
        prepared.result.winner, len(entries),
    )
    return result


# ---------------------------------------------------------------------------
# Correct
# ---------------------------------------------------------------------------
def correct_match(
    engine: Engine,
    *,
    definition_id: int,
    organization_id: str,
    match_id: int,
    scores: Any,
    recorded_by: str,
    match_format: str | None = None,
    team1: Sequence[str] | None = None,
    team2: Sequence[str] | None = None,
    notes: str | None = None,
) -> dict[str, Any]:
    """Supersede a match with corrected format, teams and/or score.

    Format and teams default to the original's.  The original match and
    its entries are retained; a match can be corrected only once (correct
    the newest match in the chain instead).

    Raises
    ------
    NotFoundError
        The match does not exist in this ranking definition.
    ConflictError
        The match was already corrected.
    """
    notes = check_notes(notes)

    with unit_of_work(engine, "correct_match") as session:
        definition = require_definition(session, definition_id, organization_id)
        domain = require_match_domain(definition.domain_id)

        original = session.scalar(
            select(MatchRecord).where(
                MatchRecord.id == match_id,
                MatchRecord.definition_id == definition.id,
            )
        )
        if original is None:
            raise NotFoundError(f"Match {match_id} not found", "Match not found.")

        prepared = prepare_match(
            domain,
            match_format or original.match_format,
            original.team1 if team1 is None else team1,
            original.team2 if team2 is None else team2,
            scores,
        )

        corrected = _new_match_record(
            definition.id,
            prepared,
            session_id=original.session_id,
            recorded_by=recorded_by,
            notes=notes,
            correction_of_match_id=original.id,
        )
        try:
            with session.begin_nested():   # SAVEPOINT
                session.add(corrected)
                session.flush()
        except IntegrityError as exc:
            if not violates_constraint(
                exc, "uq_match_records_correction_of", "match_records.correction_of_match_id"
            ):
                raise
            logger.warning("Match %d was already corrected", match_id)
            raise ConflictError(
                f"Match {match_id} was already corrected",
                "This match has already been corrected.",
            ) from exc

        live_entries = session.scalars(
            select(RankStatEntry)
            .where(
                RankStatEntry.match_id == original.id,
                RankStatEntry.kind != StatEntryKind.REVERSAL,
            )
            .order_by(RankStatEntry.user_id, RankStatEntry.id)
        ).all()
        reversals = [
            reverse_entry(session, entry, recorded_by=recorded_by, notes=notes)
            for entry in live_entries
        ]

        replaced = {entry.user_id: entry.id for entry in live_entries}
        corrections = [
            apply_stats(
                session,
                definition_id=definition.id,
                user_id=user_id,
                deltas=stats,
                recorded_by=recorded_by,
                session_id=original.session_id,
                notes=notes,
                kind=StatEntryKind.CORRECTION,
                match_id=corrected.id,
                correction_of_entry_id=replaced.get(user_id),
            )
            for user_id, stats in sorted(prepared.derived_stats.items())
        ]
        result = {
            "match": match_to_dict(corrected),
            "corrected_match_id": original.id,
            "reversals": [entry_to_dict(entry) for entry in reversals],
            "corrections": [entry_to_dict(entry) for entry in corrections],
        }

    logger.info(
        "Match %d corrected by %s → match %d (winner=%s)",
        match_id, recorded_by, result["match"]["id"], prepared.result.winner,
    )
    return result


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------
def _superseded_ids(session: Session, match_ids: Sequence[int]) -> set[int]:
    if not match_ids:
        return set()
    return set(
        session.scalars(
            select(MatchRecord.correction_of_match_id).where(
                MatchRecord.correction_of_match_id.in_(match_ids)
            )
        )
    )


def _listing(session: Session, query) -> list[dict[str, Any]]:
    rows = session.scalars(query).all()
    superseded = _superseded_ids(session, [row.id for row in rows])
    return [match_to_dict(row, row.id in superseded) for row in rows]


def list_matches_by_session(
    engine: Engine, definition_id: int, organization_id: str, session_id: str
) -> list[dict[str, Any]]:
    """All matches for one session, newest first."""
    with Session(engine) as session:
        definition = require_definition(session, definition_id, organization_id)
        return _listing(
            session,
            select(MatchRecord)
            .where(
                MatchRecord.definition_id == definition.id,
                MatchRecord.session_id == session_id,
            )
            .order_by(MatchRecord.created_at.desc(), MatchRecord.id.desc()),
        )


def list_matches_by_definition(
    engine: Engine,
    definition_id: int,
    organization_id: str,
    *,
    limit: int = DEFAULT_MATCH_PAGE_SIZE,
    offset: int = 0,
) -> list[dict[str, Any]]:
    """A page of matches for a definition, newest first."""
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}, got {limit}")
    if offset < 0:
        raise ValueError(f"offset cannot be negative, got {offset}")

    with Session(engine) as session:
        definition = require_definition(session, definition_id, organization_id)
        return _listing(
            session,
            select(MatchRecord)
            .where(MatchRecord.definition_id == definition.id)
            .order_by(MatchRecord.created_at.desc(), MatchRecord.id.desc())
            .limit(limit)
            .offset(offset),
        )
