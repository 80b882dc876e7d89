"""
RosterRank — Pluggable Ranking & Match Resolution for Recurring Activities
============================================================================
Validates activity-specific match scores, resolves them into winners and
per-member stat deltas, applies those deltas atomically to cumulative
rankings, keeps an append-only correction ledger, and builds deterministic
leaderboards under each activity's tie-break rules.

Package layout::

    rosterrank/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Shared constants
    ├── errors.py          # Error taxonomy (validation / config / conflict / …)
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   ├── models.py      # ORM models (definitions, levels, ranks, ledger)
    │   └── seed.py        # Default level ladders
    ├── engine/
    │   ├── domain.py      # Domain descriptor types
    │   ├── scoring.py     # Shared score validators / resolvers
    │   ├── registry.py    # Static domain registry
    │   ├── leaderboard.py # Tie-break comparator
    │   └── domains/       # One descriptor per supported activity
    ├── services/
    │   ├── ranking_service.py     # Definitions + levels
    │   ├── stat_service.py        # Stat aggregation + audit ledger
    │   ├── match_service.py       # Match recording + corrections
    │   └── leaderboard_service.py # Leaderboard + member rank reads
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # Dependency injection (engine, caller)
        └── routes/        # REST endpoints
"""

__version__ = "0.1.0"
