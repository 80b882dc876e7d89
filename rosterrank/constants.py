"""
rosterrank.constants — Shared Constants
========================================

Single source of truth for limits and role names shared by services and
the API.  Import from here instead of duplicating literals.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Listing limits
# ---------------------------------------------------------------------------
MAX_PAGE_SIZE = 100
DEFAULT_MATCH_PAGE_SIZE = 20

# ---------------------------------------------------------------------------
# Caller roles (supplied by the external auth layer)
# ---------------------------------------------------------------------------
WRITER_ROLES: frozenset[str] = frozenset({"owner", "admin"})

# ---------------------------------------------------------------------------
# Free-text limits
# ---------------------------------------------------------------------------
MAX_NOTE_LENGTH = 500
MAX_DEFINITION_NAME_LENGTH = 200
MAX_LEVEL_NAME_LENGTH = 50

# ---------------------------------------------------------------------------
# Leaderboard presentation
# ---------------------------------------------------------------------------
RANK_BADGES: list[str] = ["\U0001f947", "\U0001f948", "\U0001f949"]  # 🥇🥈🥉

# ---------------------------------------------------------------------------
# Score and stat bounds (well inside BIGINT)
# ---------------------------------------------------------------------------
MAX_SCORE = 1_000_000
MAX_STAT_DELTA = 1_000_000
