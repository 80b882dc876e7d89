"""Create ranking tables

Revision ID: 5c2e8a41b7d0
Revises:
Create Date: 2026-10-18 10:12:31.118204

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5c2e8a41b7d0'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Definitions, levels, member ranks, stat counters, matches, ledger."""

    # --- ranking_definitions ---
    op.create_table(
        "ranking_definitions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("organization_id", sa.String(64), nullable=False),
        sa.Column("activity_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("domain_id", sa.String(50), nullable=False),
        sa.Column("created_by", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("activity_id", name="uq_ranking_definitions_activity"),
    )
    op.create_index("ix_ranking_definitions_org", "ranking_definitions", ["organization_id"])

    # --- ranking_levels ---
    op.create_table(
        "ranking_levels",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "definition_id",
            sa.Integer,
            sa.ForeignKey("ranking_definitions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("color", sa.String(20), nullable=True),
        sa.Column("order", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "definition_id", "order", name="uq_ranking_levels_definition_order"
        ),
    )

    # --- member_ranks ---
    op.create_table(
        "member_ranks",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "definition_id",
            sa.Integer,
            sa.ForeignKey("ranking_definitions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column(
            "current_level_id",
            sa.Integer,
            sa.ForeignKey("ranking_levels.id", ondelete="RESTRICT"),
            nullable=True,
        ),
        sa.Column("last_activity_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "definition_id", "user_id", name="uq_member_ranks_definition_user"
        ),
    )
    op.create_index("ix_member_ranks_user", "member_ranks", ["user_id"])

    # --- member_rank_stats ---
    op.create_table(
        "member_rank_stats",
        sa.Column(
            "member_rank_id",
            sa.Integer,
            sa.ForeignKey("member_ranks.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("stat_field", sa.String(50), primary_key=True),
        sa.Column("value", sa.BigInteger, nullable=False, server_default="0"),
        sa.CheckConstraint("value >= 0", name="ck_member_rank_stats_non_negative"),
    )

    # --- match_records ---
    op.create_table(
        "match_records",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column(
            "definition_id",
            sa.Integer,
            sa.ForeignKey("ranking_definitions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("session_id", sa.String(64), nullable=True),
        sa.Column("match_format", sa.String(30), nullable=False),
        sa.Column("team1", postgresql.JSONB, nullable=False),
        sa.Column("team2", postgresql.JSONB, nullable=False),
        sa.Column("scores", postgresql.JSONB, nullable=False),
        sa.Column("winner", sa.String(10), nullable=False),
        sa.Column("derived_stats", postgresql.JSONB, nullable=False),
        sa.Column("recorded_by", sa.String(64), nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column(
            "correction_of_match_id",
            sa.BigInteger,
            sa.ForeignKey("match_records.id", ondelete="RESTRICT"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("correction_of_match_id", name="uq_match_records_correction_of"),
    )
    op.create_index(
        "ix_match_records_definition_time", "match_records", ["definition_id", "created_at"]
    )
    op.create_index(
        "ix_match_records_session", "match_records", ["definition_id", "session_id"]
    )

    # --- rank_stat_entries ---
    op.create_table(
        "rank_stat_entries",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column(
            "definition_id",
            sa.Integer,
            sa.ForeignKey("ranking_definitions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("session_id", sa.String(64), nullable=True),
        sa.Column(
            "match_id",
            sa.BigInteger,
            sa.ForeignKey("match_records.id", ondelete="RESTRICT"),
            nullable=True,
        ),
        sa.Column("kind", sa.String(20), nullable=False, server_default="RECORD"),
        sa.Column("stats", postgresql.JSONB, nullable=False),
        sa.Column("recorded_by", sa.String(64), nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column(
            "correction_of_entry_id",
            sa.BigInteger,
            sa.ForeignKey("rank_stat_entries.id", ondelete="RESTRICT"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "ix_rank_stat_entries_session_once",
        "rank_stat_entries",
        ["definition_id", "user_id", "session_id"],
        unique=True,
        postgresql_where=sa.text("session_id IS NOT NULL AND kind = 'RECORD'"),
    )
    op.create_index(
        "ix_rank_stat_entries_reversed_once",
        "rank_stat_entries",
        ["correction_of_entry_id"],
        unique=True,
        postgresql_where=sa.text("kind = 'REVERSAL'"),
    )
    op.create_index(
        "ix_rank_stat_entries_definition_user", "rank_stat_entries", ["definition_id", "user_id"]
    )
    op.create_index("ix_rank_stat_entries_match", "rank_stat_entries", ["match_id"])


def downgrade() -> None:
    """Drop all ranking tables."""
    op.drop_table("rank_stat_entries")
    op.drop_table("match_records")
    op.drop_table("member_rank_stats")
    op.drop_table("member_ranks")
    op.drop_table("ranking_levels")
    op.drop_table("ranking_definitions")
