"""
tests/test_match_engine.py — Match Resolution Pipeline
=======================================================

Team checks, score validation and per-member fan-out, all without a
database.
"""

from __future__ import annotations

import pytest

from rosterrank.database.models import Winner
from rosterrank.engine.domain import MatchResult
from rosterrank.engine.match import check_teams, derive_member_stats, prepare_match, resolve_score
from rosterrank.engine.registry import get_domain
from rosterrank.errors import ConfigurationError, ScoreValidationError

PADEL = get_domain("padel")
TENNIS = get_domain("tennis")
LASER_TAG = get_domain("laser-tag")


class TestCheckTeams:
    def test_valid_doubles(self):
        check_teams(PADEL, "doubles", ["a", "b"], ["c", "d"])

    def test_unsupported_format(self):
        with pytest.raises(ConfigurationError, match="Unsupported match format"):
            check_teams(PADEL, "triples", ["a"], ["b"])

    def test_wrong_team_size(self):
        with pytest.raises(ConfigurationError, match="Team 2"):
            check_teams(PADEL, "doubles", ["a", "b"], ["c"])

    def test_player_on_both_teams(self):
        with pytest.raises(ConfigurationError, match="twice"):
            check_teams(PADEL, "doubles", ["a", "b"], ["b", "c"])

    def test_player_listed_twice(self):
        with pytest.raises(ConfigurationError):
            check_teams(TENNIS, "doubles", ["a", "a"], ["b", "c"])

    def test_range_format_allows_uneven_teams(self):
        check_teams(LASER_TAG, "team", ["a", "b", "c"], ["d"])

    def test_stats_only_domain(self):
        with pytest.raises(ConfigurationError):
            check_teams(get_domain("reading"), "singles", ["a"], ["b"])


class TestResolveScore:
    def test_invalid_score_raises_with_reason(self):
        with pytest.raises(ScoreValidationError) as excinfo:
            resolve_score(TENNIS, [[6, 2], [7, 7]])
        assert "Set 2" in excinfo.value.reason

    def test_resolver_with_undeclared_fields_is_rejected(self):
        def bad_resolver(scores):
            return MatchResult(Winner.TEAM1, {"wins": 1}, {"losses": 1})

        config = TENNIS.match_config
        patched = type(config)(
            formats=config.formats,
            default_format=config.default_format,
            validate=config.validate,
            resolve=bad_resolver,
            outcome=config.outcome,
        )
        domain = type(TENNIS)(
            id="tennis-bad",
            name="Broken",
            stat_fields=TENNIS.stat_fields,
            tie_break=TENNIS.tie_break,
            match_config=patched,
        )
        with pytest.raises(ValueError, match="produced"):
            resolve_score(domain, [[6, 4], [6, 4]])


class TestPrepareMatch:
    def test_every_member_gets_their_side(self):
        prepared = prepare_match(PADEL, "doubles", ["a", "b"], ["c", "d"], [[6, 4], [6, 3]])
        assert prepared.result.winner == Winner.TEAM1
        assert prepared.team1 == ("a", "b")
        assert prepared.derived_stats["a"]["match_wins"] == 1
        assert prepared.derived_stats["b"]["set_wins"] == 2
        assert prepared.derived_stats["c"]["match_losses"] == 1
        assert prepared.derived_stats["d"]["set_losses"] == 2

    def test_team_check_runs_before_scoring(self):
        with pytest.raises(ConfigurationError):
            prepare_match(PADEL, "doubles", ["a"], ["c", "d"], "garbage")

    def test_member_stats_are_independent_copies(self):
        result = MatchResult(Winner.DRAW, {"draws": 1}, {"draws": 1})
        derived = derive_member_stats(result, ["a", "b"], ["c"])
        derived["a"]["draws"] = 99
        assert derived["b"]["draws"] == 1
        assert result.team1_stats["draws"] == 1
