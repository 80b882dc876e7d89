"""
tests/test_scoring.py — Score Validators & Match Resolvers
===========================================================

Pure functions only (no I/O, no database).
"""

from __future__ import annotations

import pytest

from rosterrank.constants import MAX_SCORE
from rosterrank.database.models import Winner
from rosterrank.engine.domains.set_sports import BADMINTON, PING_PONG, TENNIS, VOLLEYBALL
from rosterrank.engine.domains.table_games import CHESS
from rosterrank.engine.domains.team_sports import FOOTBALL, LASER_TAG
from rosterrank.engine.scoring import point_game, standard_set


def _validate(domain, scores):
    return domain.match_config.validate(scores)


def _resolve(domain, scores):
    return domain.match_config.resolve(scores)


# ---------------------------------------------------------------------------
# Unit rules
# ---------------------------------------------------------------------------
class TestStandardSet:
    @pytest.mark.parametrize("a,b", [(6, 0), (6, 4), (4, 6), (7, 5), (7, 6), (6, 7)])
    def test_finished_sets(self, a, b):
        assert standard_set(a, b)

    @pytest.mark.parametrize("a,b", [(6, 5), (5, 3), (7, 7), (7, 4), (8, 6), (0, 0)])
    def test_unfinished_or_impossible_sets(self, a, b):
        assert not standard_set(a, b)


class TestPointGame:
    def test_target_with_two_point_lead(self):
        rule = point_game(11)
        assert rule(11, 9)
        assert rule(3, 11)

    def test_target_without_lead_is_unfinished(self):
        assert not point_game(11)(11, 10)

    def test_extended_deuce_needs_exactly_two(self):
        rule = point_game(11)
        assert rule(14, 12)
        assert not rule(14, 11)   # game would have ended at 13-11
        assert not rule(13, 12)

    def test_cap_ends_the_game_at_one_point(self):
        rule = point_game(21, cap=30)
        assert rule(30, 29)
        assert rule(29, 27)
        assert not rule(31, 29)


# ---------------------------------------------------------------------------
# Set ladders
# ---------------------------------------------------------------------------
class TestTennis:
    def test_three_set_match_resolves_to_set_majority(self):
        scores = [[6, 4], [3, 6], [7, 5]]
        assert _validate(TENNIS, scores).valid

        result = _resolve(TENNIS, scores)
        assert result.winner == Winner.TEAM1
        assert result.team1_stats == {
            "matches_played": 1, "wins": 1, "losses": 0, "sets_won": 2, "sets_lost": 1,
        }
        assert result.team2_stats["losses"] == 1
        assert result.team2_stats["sets_won"] == 1

    def test_impossible_set_is_rejected_with_reason(self):
        validation = _validate(TENNIS, [[6, 2], [7, 7]])
        assert not validation.valid
        assert "Set 2" in validation.reason

    def test_level_set_tally_is_rejected(self):
        validation = _validate(TENNIS, [[6, 4], [4, 6]])
        assert not validation.valid
        assert "level" in validation.reason

    @pytest.mark.parametrize(
        "scores",
        [
            [],
            [[6, 4]] * 6,
            "6-4",
            [[6, 4, 1]],
            [[6, "4"]],
            [[6.0, 4]],
            [[True, 4]],
            [[-6, 4]],
            None,
        ],
    )
    def test_malformed_scores_are_rejected(self, scores):
        validation = _validate(TENNIS, scores)
        assert not validation.valid
        assert validation.reason

    def test_validation_is_repeatable(self):
        scores = [[6, 4], [6, 4]]
        assert _validate(TENNIS, scores) == _validate(TENNIS, scores)


class TestBadminton:
    def test_capped_game_is_valid(self):
        assert _validate(BADMINTON, [[30, 29], [21, 15]]).valid

    def test_more_than_three_games_rejected(self):
        assert not _validate(BADMINTON, [[21, 10]] * 4).valid


class TestPingPong:
    def test_best_of_seven(self):
        scores = [[11, 5], [9, 11], [11, 9], [13, 11]]
        assert _validate(PING_PONG, scores).valid
        result = _resolve(PING_PONG, scores)
        assert result.winner == Winner.TEAM1
        assert result.team1_stats["games_won"] == 3
        assert result.team2_stats["games_won"] == 1

    def test_eight_games_rejected(self):
        assert not _validate(PING_PONG, [[11, 0]] * 8).valid

    def test_oversized_deuce_game_rejected(self):
        validation = _validate(PING_PONG, [[MAX_SCORE + 2, MAX_SCORE]])
        assert not validation.valid
        assert "cannot exceed" in validation.reason


class TestVolleyball:
    def test_fifth_set_is_played_to_fifteen(self):
        scores = [[25, 20], [23, 25], [25, 23], [20, 25], [15, 13]]
        assert _validate(VOLLEYBALL, scores).valid
        assert _resolve(VOLLEYBALL, scores).winner == Winner.TEAM1

    def test_early_set_to_fifteen_is_invalid(self):
        assert not _validate(VOLLEYBALL, [[15, 13], [25, 20]]).valid


# ---------------------------------------------------------------------------
# Team totals
# ---------------------------------------------------------------------------
class TestTeamTotals:
    def test_goal_match_scenario(self):
        scores = {"team1": 3, "team2": 1}
        assert _validate(FOOTBALL, scores).valid

        result = _resolve(FOOTBALL, scores)
        assert result.winner == Winner.TEAM1
        assert result.team1_stats["wins"] == 1
        assert result.team2_stats["losses"] == 1
        assert result.team1_stats["goals_scored"] == 3
        assert result.team1_stats["goals_conceded"] == 1
        assert result.team2_stats["goals_scored"] == 1

    def test_equal_totals_are_a_draw(self):
        result = _resolve(FOOTBALL, {"team1": 2, "team2": 2})
        assert result.winner == Winner.DRAW
        assert result.team1_stats["draws"] == 1
        assert result.team1_stats["wins"] == result.team1_stats["losses"] == 0

    @pytest.mark.parametrize(
        "scores",
        [
            {"team1": 1},
            {"team1": -1, "team2": 0},
            {"team1": 1.5, "team2": 0},
            {"team1": "3", "team2": 1},
            {"team1": 1, "team2": 0, "team3": 0},
            [3, 1],
        ],
    )
    def test_malformed_totals_rejected(self, scores):
        assert not _validate(FOOTBALL, scores).valid

    def test_totals_are_bounded(self):
        assert _validate(FOOTBALL, {"team1": MAX_SCORE, "team2": 0}).valid
        validation = _validate(FOOTBALL, {"team1": 10**30, "team2": 0})
        assert not validation.valid
        assert str(MAX_SCORE) in validation.reason

    def test_outcome_only_domain_has_no_total_fields(self):
        result = _resolve(LASER_TAG, {"team1": 40, "team2": 55})
        assert result.winner == Winner.TEAM2
        assert set(result.team1_stats) == {"matches_played", "wins", "draws", "losses"}


# ---------------------------------------------------------------------------
# Chess
# ---------------------------------------------------------------------------
class TestChess:
    @pytest.mark.parametrize(
        "scores,winner",
        [
            ({"team1": 1, "team2": 0}, Winner.TEAM1),
            ({"team1": 0, "team2": 1}, Winner.TEAM2),
            ({"team1": 0.5, "team2": 0.5}, Winner.DRAW),
        ],
    )
    def test_legal_results(self, scores, winner):
        assert _validate(CHESS, scores).valid
        assert _resolve(CHESS, scores).winner == winner

    @pytest.mark.parametrize(
        "scores",
        [
            {"team1": 1, "team2": 1},
            {"team1": 2, "team2": 0},
            {"team1": True, "team2": 0},
            {"team1": 1, "team2": 0, "note": "resigned"},
        ],
    )
    def test_illegal_results(self, scores):
        assert not _validate(CHESS, scores).valid
