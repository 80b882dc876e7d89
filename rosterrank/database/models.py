"""
rosterrank.database.models — SQLAlchemy 2.0 Data Models
========================================================

Tables:
- ranking_definitions — One ranking system per (organization, activity)
- ranking_levels      — Ordered, manually assigned level ladder per definition
- member_ranks        — A member's standing within one definition
- member_rank_stats   — Cumulative counters, one row per (member rank, stat field)
- match_records       — Append-only resolved matches
- rank_stat_entries   — Append-only audit ledger of applied stat deltas
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all RosterRank ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class Winner(enum.StrEnum):
    """Resolved outcome of a match."""
    TEAM1 = "team1"
    TEAM2 = "team2"
    DRAW = "draw"


class StatEntryKind(enum.StrEnum):
    """Why a ledger entry exists."""
    RECORD = "RECORD"            # first application for a match or manual entry
    REVERSAL = "REVERSAL"        # negation of an earlier entry
    CORRECTION = "CORRECTION"    # corrected values re-applied after a reversal


# ---------------------------------------------------------------------------
# RankingDefinition — one per (organization, activity)
# ---------------------------------------------------------------------------
class RankingDefinition(Base):
    __tablename__ = "ranking_definitions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    organization_id: Mapped[str] = mapped_column(String(64), nullable=False)
    activity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    domain_id: Mapped[str] = mapped_column(String(50), nullable=False)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    levels: Mapped[list[RankingLevel]] = relationship(
        back_populates="definition",
        cascade="all, delete-orphan",
        order_by="RankingLevel.order",
    )

    __table_args__ = (
        UniqueConstraint("activity_id", name="uq_ranking_definitions_activity"),
        Index("ix_ranking_definitions_org", "organization_id"),
    )

    def __repr__(self) -> str:
        return f"<RankingDefinition id={self.id} activity={self.activity_id} domain={self.domain_id}>"


# ---------------------------------------------------------------------------
# RankingLevel — ordered lowest → highest
# ---------------------------------------------------------------------------
class RankingLevel(Base):
    __tablename__ = "ranking_levels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    definition_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("ranking_definitions.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    definition: Mapped[RankingDefinition] = relationship(back_populates="levels")

    __table_args__ = (
        UniqueConstraint("definition_id", "order", name="uq_ranking_levels_definition_order"),
    )

    def __repr__(self) -> str:
        return f"<RankingLevel id={self.id} name={self.name!r} order={self.order}>"


# ---------------------------------------------------------------------------
# MemberRank — created lazily on first contact
# ---------------------------------------------------------------------------
class MemberRank(Base):
    __tablename__ = "member_ranks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    definition_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("ranking_definitions.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    current_level_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("ranking_levels.id", ondelete="RESTRICT"), nullable=True
    )
    last_activity_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    current_level: Mapped[RankingLevel | None] = relationship()
    stat_rows: Mapped[list[MemberRankStat]] = relationship(
        back_populates="member_rank", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("definition_id", "user_id", name="uq_member_ranks_definition_user"),
        Index("ix_member_ranks_user", "user_id"),
    )

    @property
    def stats(self) -> dict[str, int]:
        return {row.stat_field: row.value for row in self.stat_rows}

    def __repr__(self) -> str:
        return f"<MemberRank id={self.id} def={self.definition_id} user={self.user_id}>"


class MemberRankStat(Base):
    """One cumulative counter.  Only ever changed by atomic increment."""

    __tablename__ = "member_rank_stats"

    member_rank_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("member_ranks.id", ondelete="CASCADE"), primary_key=True
    )
    stat_field: Mapped[str] = mapped_column(String(50), primary_key=True)
    value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    member_rank: Mapped[MemberRank] = relationship(back_populates="stat_rows")

    __table_args__ = (
        CheckConstraint("value >= 0", name="ck_member_rank_stats_non_negative"),
    )


# ---------------------------------------------------------------------------
# MatchRecord — immutable once created
# ---------------------------------------------------------------------------
class MatchRecord(Base):
    __tablename__ = "match_records"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    definition_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("ranking_definitions.id", ondelete="CASCADE"), nullable=False
    )
    session_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    match_format: Mapped[str] = mapped_column(String(30), nullable=False)
    team1: Mapped[list] = mapped_column(JSONB, nullable=False)
    team2: Mapped[list] = mapped_column(JSONB, nullable=False)
    scores: Mapped[object] = mapped_column(JSONB, nullable=False)
    winner: Mapped[str] = mapped_column(String(10), nullable=False)
    derived_stats: Mapped[dict] = mapped_column(JSONB, nullable=False)
    recorded_by: Mapped[str] = mapped_column(String(64), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    correction_of_match_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("match_records.id", ondelete="RESTRICT"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        # A match is superseded by at most one correction
        UniqueConstraint("correction_of_match_id", name="uq_match_records_correction_of"),
        Index("ix_match_records_definition_time", "definition_id", "created_at"),
        Index("ix_match_records_session", "definition_id", "session_id"),
    )

    def __repr__(self) -> str:
        return f"<MatchRecord id={self.id} def={self.definition_id} winner={self.winner}>"


# ---------------------------------------------------------------------------
# RankStatEntry — append-only audit ledger
# ---------------------------------------------------------------------------
class RankStatEntry(Base):
    __tablename__ = "rank_stat_entries"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    definition_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("ranking_definitions.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    session_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    match_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("match_records.id", ondelete="RESTRICT"), nullable=True
    )
    kind: Mapped[str] = mapped_column(
        String(20), nullable=False, default=StatEntryKind.RECORD
    )
    stats: Mapped[dict] = mapped_column(JSONB, nullable=False)
    recorded_by: Mapped[str] = mapped_column(String(64), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    correction_of_entry_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("rank_stat_entries.id", ondelete="RESTRICT"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        # Idempotency guard: one first-time entry per (definition, user, session).
        # Enforced at insert time by the database, never by a prior SELECT.
        Index(
            "ix_rank_stat_entries_session_once",
            "definition_id",
            "user_id",
            "session_id",
            unique=True,
            postgresql_where=text("session_id IS NOT NULL AND kind = 'RECORD'"),
            sqlite_where=text("session_id IS NOT NULL AND kind = 'RECORD'"),
        ),
        # An entry is reversed at most once
        Index(
            "ix_rank_stat_entries_reversed_once",
            "correction_of_entry_id",
            unique=True,
            postgresql_where=text("kind = 'REVERSAL'"),
            sqlite_where=text("kind = 'REVERSAL'"),
        ),
        Index("ix_rank_stat_entries_definition_user", "definition_id", "user_id"),
        Index("ix_rank_stat_entries_match", "match_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<RankStatEntry id={self.id} def={self.definition_id} "
            f"user={self.user_id} kind={self.kind}>"
        )
