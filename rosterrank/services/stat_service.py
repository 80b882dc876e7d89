"""
rosterrank.services.stat_service — Stat Aggregator & Audit Ledger
==================================================================

Every change to a member's cumulative stats goes through :func:`apply_stats`:

  1. Append a :class:`RankStatEntry` to the ledger.  For session-linked
     first-time entries the partial unique index
     ``ix_rank_stat_entries_session_once`` rejects a duplicate at insert
     time; that surfaces as :class:`DuplicateSubmissionError`.
  2. Create the :class:`MemberRank` row lazily (SAVEPOINT insert that
     tolerates a concurrent creator).
  3. Merge each delta with ``INSERT … ON CONFLICT DO UPDATE SET value =
     value + :delta``, an increment in place, so concurrent matches for
     the same member never lose an update.  The ``value >= 0`` CHECK turns
     an over-reversal into :class:`NegativeStatError`.
  4. Touch ``last_activity_at``.

The ledger is append-only.  A correction never edits or deletes an entry;
it writes a REVERSAL (negated deltas) and a CORRECTION (new deltas), both
pointing back at the entry they replace.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rosterrank.constants import MAX_NOTE_LENGTH, MAX_PAGE_SIZE, MAX_STAT_DELTA
from rosterrank.database.engine import unit_of_work, violates_constraint
from rosterrank.database.models import RankStatEntry, StatEntryKind
from rosterrank.engine.domain import DomainDescriptor
from rosterrank.engine.registry import require_domain
from rosterrank.engine.scoring import is_whole_number
from rosterrank.errors import (
    ConfigurationError,
    ConflictError,
    DuplicateSubmissionError,
    NegativeStatError,
    NotFoundError,
    ScoreValidationError,
)
from rosterrank.services.ranking_service import get_or_create_member_rank, require_definition

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

# (constraint name, SQLite message marker)
_SESSION_ONCE = ("ix_rank_stat_entries_session_once", "rank_stat_entries.session_id")
_REVERSED_ONCE = (
    "ix_rank_stat_entries_reversed_once", "rank_stat_entries.correction_of_entry_id"
)

_MERGE_STAT = text("""
    INSERT INTO member_rank_stats (member_rank_id, stat_field, value)
    VALUES (:member_rank_id, :stat_field, :delta)
    ON CONFLICT (member_rank_id, stat_field)
    DO UPDATE SET value = member_rank_stats.value + :delta
""")


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------
def entry_to_dict(entry: RankStatEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "definition_id": entry.definition_id,
        "user_id": entry.user_id,
        "session_id": entry.session_id,
        "match_id": entry.match_id,
        "kind": entry.kind,
        "stats": dict(entry.stats),
        "recorded_by": entry.recorded_by,
        "notes": entry.notes,
        "correction_of_entry_id": entry.correction_of_entry_id,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }


# ---------------------------------------------------------------------------
# Payload checks
# ---------------------------------------------------------------------------
def check_notes(notes: str | None) -> str | None:
    if notes is not None and len(notes) > MAX_NOTE_LENGTH:
        raise ScoreValidationError(f"Notes cannot exceed {MAX_NOTE_LENGTH} characters")
    return notes


def check_stat_payload(domain: DomainDescriptor, stats: Any) -> dict[str, int]:
    """Manual stat payloads: declared fields only, bounded whole-number values."""
    if not isinstance(stats, Mapping) or not stats:
        raise ScoreValidationError("Stats must be a non-empty object")
    unknown = sorted(set(stats) - domain.stat_field_ids)
    if unknown:
        raise ConfigurationError(
            f"Stat fields {unknown} are not declared by domain {domain.id!r}",
            f"Unknown stat fields: {', '.join(unknown)}",
        )
    bad = sorted(key for key, value in stats.items() if not is_whole_number(value))
    if bad:
        raise ScoreValidationError(f"Stat values must be whole numbers: {', '.join(bad)}")
    too_large = sorted(key for key, value in stats.items() if abs(value) > MAX_STAT_DELTA)
    if too_large:
        raise ScoreValidationError(
            f"Stat values cannot exceed {MAX_STAT_DELTA} in magnitude: {', '.join(too_large)}"
        )
    return dict(stats)


# ---------------------------------------------------------------------------
# Ledger insert
# ---------------------------------------------------------------------------
def _append_entry(session: Session, entry: RankStatEntry) -> RankStatEntry:
    """Insert *entry*; the session and reversal guards become conflicts."""
    try:
        with session.begin_nested():   # SAVEPOINT
            session.add(entry)
            session.flush()
    except IntegrityError as exc:
        if violates_constraint(exc, *_SESSION_ONCE):
            logger.warning(
                "Duplicate submission rejected: def=%s user=%s session=%s",
                entry.definition_id, entry.user_id, entry.session_id,
            )
            raise DuplicateSubmissionError(
                entry.definition_id, entry.user_id, entry.session_id
            ) from exc
        if violates_constraint(exc, *_REVERSED_ONCE):
            logger.warning("Entry %s was already reversed", entry.correction_of_entry_id)
            raise ConflictError(
                f"Stat entry {entry.correction_of_entry_id} was already corrected",
                "This entry has already been corrected.",
            ) from exc
        raise
    return entry


# ---------------------------------------------------------------------------
# Stat Aggregator
# ---------------------------------------------------------------------------
def apply_stats(
    session: Session,
    *,
    definition_id: int,
    user_id: str,
    deltas: Mapping[str, int],
    recorded_by: str,
    session_id: str | None = None,
    notes: str | None = None,
    kind: StatEntryKind = StatEntryKind.RECORD,
    match_id: int | None = None,
    correction_of_entry_id: int | None = None,
) -> RankStatEntry:
    """Append a ledger entry and merge *deltas* into the member's stats.

    Runs inside the caller's transaction; the caller commits.  Only RECORD
    entries are subject to the one-per-session guard.
    """
    entry = _append_entry(
        session,
        RankStatEntry(
            definition_id=definition_id,
            user_id=user_id,
            session_id=session_id,
            match_id=match_id,
            kind=kind,
            stats=dict(deltas),
            recorded_by=recorded_by,
            notes=notes,
            correction_of_entry_id=correction_of_entry_id,
        ),
    )

    member = get_or_create_member_rank(session, definition_id, user_id)
    for stat_field, delta in sorted(deltas.items()):
        try:
            session.execute(
                _MERGE_STAT,
                {"member_rank_id": member.id, "stat_field": stat_field, "delta": delta},
            )
        except IntegrityError as exc:
            if violates_constraint(exc, "ck_member_rank_stats_non_negative"):
                raise NegativeStatError(user_id, f"{stat_field} {delta:+d}") from exc
            raise

    member.last_activity_at = datetime.now(UTC)
    session.flush()
    session.expire(member, ["stat_rows"])
    return entry


def reverse_entry(
    session: Session,
    original: RankStatEntry,
    *,
    recorded_by: str,
    notes: str | None = None,
) -> RankStatEntry:
    """Apply the negation of *original* as a REVERSAL entry."""
    if original.kind == StatEntryKind.REVERSAL:
        raise ConflictError(
            f"Stat entry {original.id} is a reversal and cannot be corrected",
            "Reversal entries cannot be corrected.",
        )
    return apply_stats(
        session,
        definition_id=original.definition_id,
        user_id=original.user_id,
        deltas={field: -value for field, value in original.stats.items()},
        recorded_by=recorded_by,
        session_id=original.session_id,
        notes=notes,
        kind=StatEntryKind.REVERSAL,
        match_id=original.match_id,
        correction_of_entry_id=original.id,
    )


# ---------------------------------------------------------------------------
# Manual stats
# ---------------------------------------------------------------------------
def record_stats(
    engine: Engine,
    *,
    definition_id: int,
    organization_id: str,
    user_id: str,
    stats: Mapping[str, int],
    recorded_by: str,
    session_id: str | None = None,
    notes: str | None = None,
) -> dict[str, Any]:
    """Record a manual stat adjustment for one member.

    Raises :class:`DuplicateSubmissionError` if *session_id* was already
    recorded for this member.
    """
    with unit_of_work(engine, "record_stats") as session:
        definition = require_definition(session, definition_id, organization_id)
        domain = require_domain(definition.domain_id)
        deltas = check_stat_payload(domain, stats)
        entry = apply_stats(
            session,
            definition_id=definition.id,
            user_id=user_id,
            deltas=deltas,
            recorded_by=recorded_by,
            session_id=session_id,
            notes=check_notes(notes),
        )
        result = entry_to_dict(entry)

    logger.info(
        "Stats recorded: def=%d user=%s session=%s entry=%d",
        definition_id, user_id, session_id, result["id"],
    )
    return result


def correct_stat_entry(
    engine: Engine,
    *,
    definition_id: int,
    organization_id: str,
    entry_id: int,
    corrected_stats: Mapping[str, int],
    recorded_by: str,
    notes: str | None = None,
) -> dict[str, Any]:
    """Reverse a manual entry and re-apply *corrected_stats*, atomically.

    Entries produced by a match must be corrected through the match so the
    match record and its ledger entries stay consistent.
    """
    with unit_of_work(engine, "correct_stat_entry") as session:
        definition = require_definition(session, definition_id, organization_id)
        domain = require_domain(definition.domain_id)
        deltas = check_stat_payload(domain, corrected_stats)
        notes = check_notes(notes)

        original = session.scalar(
            select(RankStatEntry).where(
                RankStatEntry.id == entry_id,
                RankStatEntry.definition_id == definition.id,
            )
        )
        if original is None:
            raise NotFoundError(f"Stat entry {entry_id} not found", "Stat entry not found.")
        if original.match_id is not None:
            raise ConflictError(
                f"Stat entry {entry_id} belongs to match {original.match_id}",
                "This entry came from a match. Correct the match instead.",
            )

        reversal = reverse_entry(session, original, recorded_by=recorded_by, notes=notes)
        correction = apply_stats(
            session,
            definition_id=definition.id,
            user_id=original.user_id,
            deltas=deltas,
            recorded_by=recorded_by,
            session_id=original.session_id,
            notes=notes,
            kind=StatEntryKind.CORRECTION,
            correction_of_entry_id=original.id,
        )
        result = {
            "reversal": entry_to_dict(reversal),
            "correction": entry_to_dict(correction),
        }

    logger.info(
        "Stat entry %d corrected by %s (reversal=%d correction=%d)",
        entry_id, recorded_by, result["reversal"]["id"], result["correction"]["id"],
    )
    return result


# ---------------------------------------------------------------------------
# Audit view
# ---------------------------------------------------------------------------
def list_stat_entries(
    engine: Engine,
    *,
    definition_id: int,
    organization_id: str,
    user_id: str | None = None,
    limit: int = MAX_PAGE_SIZE,
    offset: int = 0,
) -> list[dict[str, Any]]:
    """Ledger entries for a definition, newest first."""
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}, got {limit}")
    if offset < 0:
        raise ValueError(f"offset cannot be negative, got {offset}")

    with Session(engine) as session:
        definition = require_definition(session, definition_id, organization_id)
        query = select(RankStatEntry).where(RankStatEntry.definition_id == definition.id)
        if user_id is not None:
            query = query.where(RankStatEntry.user_id == user_id)
        rows = session.scalars(
            query.order_by(RankStatEntry.id.desc()).limit(limit).offset(offset)
        ).all()
        return [entry_to_dict(row) for row in rows]
