"""
rosterrank.engine.leaderboard — Deterministic Leaderboard Ordering
===================================================================

Sorts members by a domain's tie-break rules applied in declared order,
falling back to ``user_id`` so the order never depends on input order.
Each rule reads one stat or a difference/sum of two stats.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import TypeVar

from rosterrank.engine.domain import DomainDescriptor, SortDirection, TieBreakRule

T = TypeVar("T")

__all__ = ["rank_members", "sort_key"]


def sort_key(
    rules: Sequence[TieBreakRule], stats: Mapping[str, int], user_id: str
) -> tuple:
    """Ascending sort key: earlier rules dominate, ``user_id`` breaks ties.

    Descending rules are negated so a single ascending sort honours every
    direction.  Missing stats count as 0.
    """
    parts: list[int] = []
    for rule in rules:
        value = rule.key.evaluate(stats)
        parts.append(-value if rule.direction is SortDirection.DESC else value)
    return (*parts, user_id)


def rank_members(
    domain: DomainDescriptor,
    members: Iterable[T],
    *,
    stats_of: Callable[[T], Mapping[str, int]],
    user_id_of: Callable[[T], str],
) -> list[T]:
    """Return *members* ordered best-first under *domain*'s tie-break rules."""
    rules = domain.tie_break
    return sorted(members, key=lambda m: sort_key(rules, stats_of(m), user_id_of(m)))
