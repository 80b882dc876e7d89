"""
tests/test_leaderboard.py — Leaderboard Ordering
=================================================
"""

from __future__ import annotations

import itertools
import random

from rosterrank.engine.domain import DomainDescriptor, SortDirection, StatField, TieBreakRule
from rosterrank.engine.leaderboard import rank_members, sort_key
from rosterrank.engine.registry import get_domain

FOOTBALL = get_domain("football")


def _rank(domain, members):
    return [
        user_id
        for user_id, _ in rank_members(
            domain, members, stats_of=lambda m: m[1], user_id_of=lambda m: m[0]
        )
    ]


class TestOrdering:
    def test_goal_difference_breaks_equal_wins(self):
        members = [
            ("u1", {"wins": 3, "goals_scored": 10, "goals_conceded": 8}),
            ("u2", {"wins": 3, "goals_scored": 9, "goals_conceded": 2}),
            ("u3", {"wins": 4, "goals_scored": 1, "goals_conceded": 9}),
        ]
        assert _rank(FOOTBALL, members) == ["u3", "u2", "u1"]

    def test_full_tie_falls_back_to_user_id(self):
        members = [("zed", {"wins": 1}), ("amy", {"wins": 1}), ("kim", {"wins": 1})]
        assert _rank(FOOTBALL, members) == ["amy", "kim", "zed"]

    def test_missing_stats_count_as_zero(self):
        members = [("u1", {}), ("u2", {"wins": 1})]
        assert _rank(FOOTBALL, members) == ["u2", "u1"]

    def test_ascending_rule(self):
        domain = DomainDescriptor(
            id="golf",
            name="Golf",
            stat_fields=(StatField("strokes", "Strokes"),),
            tie_break=(TieBreakRule.by_stat("strokes", SortDirection.ASC),),
        )
        members = [("a", {"strokes": 80}), ("b", {"strokes": 72})]
        assert _rank(domain, members) == ["b", "a"]

    def test_order_independent_of_input_order(self):
        rng = random.Random(7)
        members = [
            (f"u{i}", {"wins": rng.randint(0, 3), "goals_scored": rng.randint(0, 5),
                       "goals_conceded": rng.randint(0, 5)})
            for i in range(8)
        ]
        expected = _rank(FOOTBALL, members)
        for _ in range(20):
            shuffled = members[:]
            rng.shuffle(shuffled)
            assert _rank(FOOTBALL, shuffled) == expected

    def test_sort_key_is_total_and_transitive(self):
        rules = get_domain("tennis").tie_break
        stats = [
            ("a", {"wins": 2, "sets_won": 4, "sets_lost": 1}),
            ("b", {"wins": 2, "sets_won": 4, "sets_lost": 3}),
            ("c", {"wins": 1, "sets_won": 9, "sets_lost": 0}),
            ("d", {"wins": 2, "sets_won": 4, "sets_lost": 1}),
        ]
        keys = {uid: sort_key(rules, s, uid) for uid, s in stats}
        for x, y, z in itertools.permutations(keys, 3):
            if keys[x] < keys[y] and keys[y] < keys[z]:
                assert keys[x] < keys[z]
        assert len(set(keys.values())) == len(keys)
