"""
rosterrank.engine.domains — Built-in Activity Domains
======================================================

Each family module exposes a ``DOMAINS`` tuple.  :data:`BUILTIN_DOMAINS`
concatenates them in catalogue order; the registry is built from it.
"""

from __future__ import annotations

from rosterrank.engine.domain import DomainDescriptor
from rosterrank.engine.domains import reading, set_sports, table_games, team_sports

BUILTIN_DOMAINS: tuple[DomainDescriptor, ...] = (
    *set_sports.DOMAINS,
    *team_sports.DOMAINS,
    *table_games.DOMAINS,
    *reading.DOMAINS,
)

__all__ = ["BUILTIN_DOMAINS"]
