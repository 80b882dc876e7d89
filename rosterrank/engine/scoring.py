"""
rosterrank.engine.scoring — Shared Score Validators & Resolvers
================================================================

Most activities fall into one of two score shapes:

* **Ladders** — a list of ``[team1, team2]`` pairs, one per set or game
  (tennis, padel, badminton, volleyball …).  Each pair must be a legal
  finished set/game and the match is won on the tally of sets/games.
* **Team totals** — ``{"team1": n, "team2": m}`` (football goals,
  basketball points, darts legs …).  The higher total wins; equal totals
  are a draw.

Everything in this module is PURE — no DB, no clock, no randomness — so a
score resolves to the same result every time it is replayed for an audit
or a correction.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from rosterrank.constants import MAX_SCORE
from rosterrank.database.models import Winner
from rosterrank.engine.domain import MatchResult, OutcomeFields, ScoreValidation

# (team1_points, team2_points, zero-based index) -> is this a finished unit?
UnitRule = Callable[[int, int, int], bool]


def is_whole_number(value: Any) -> bool:
    """True for ints (bools excluded — JSON ``true`` is not a score)."""
    return isinstance(value, int) and not isinstance(value, bool)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def pick_winner(team1: float, team2: float) -> Winner:
    if team1 > team2:
        return Winner.TEAM1
    if team2 > team1:
        return Winner.TEAM2
    return Winner.DRAW


def outcome_stats(winner: Winner, side: Winner, outcome: OutcomeFields) -> dict[str, int]:
    """Outcome counters for *side* — exactly one bucket is set to 1."""
    stats = {outcome.win: int(winner == side), outcome.loss: 0}
    if winner not in (side, Winner.DRAW):
        stats[outcome.loss] = 1
    if outcome.draw is not None:
        stats[outcome.draw] = int(winner == Winner.DRAW)
    return stats


# ---------------------------------------------------------------------------
# Unit rules for ladder sports
# ---------------------------------------------------------------------------
def standard_set(a: int, b: int, _index: int = 0) -> bool:
    """Six-game set: 6-0…6-4, 7-5, or 7-6 after a tiebreak."""
    high, low = max(a, b), min(a, b)
    if high == 6 and low <= 4:
        return True
    return high == 7 and low in (5, 6)


def point_game(target: int, *, cap: int | None = None) -> UnitRule:
    """Game to *target*, win by two.

    Past ``target - 1`` all the game continues in deuce until one side
    leads by exactly two.  With a *cap*, reaching ``cap`` at ``cap - 1``
    ends the game (badminton's 30-29).
    """

    def rule(a: int, b: int, _index: int = 0) -> bool:
        high, low = max(a, b), min(a, b)
        if high == target and low <= target - 2:
            return True
        if low >= target - 1 and high - low == 2:
            return cap is None or high <= cap
        return cap is not None and high == cap and low == cap - 1

    return rule


def deciding_unit(regular: UnitRule, deciding: UnitRule, deciding_index: int) -> UnitRule:
    """Use *deciding* for the unit at *deciding_index* (volleyball's 5th set)."""

    def rule(a: int, b: int, index: int = 0) -> bool:
        if index == deciding_index:
            return deciding(a, b, index)
        return regular(a, b, index)

    return rule


# ---------------------------------------------------------------------------
# Ladder validator / resolver
# ---------------------------------------------------------------------------
def validate_ladder(
    scores: Any,
    *,
    unit: str,
    max_units: int,
    is_finished: UnitRule,
    rule_hint: str = "",
) -> ScoreValidation:
    """Validate a list of ``[team1, team2]`` set/game scores."""
    plural = f"{unit.lower()}s"
    if not isinstance(scores, (list, tuple)):
        return ScoreValidation.fail(f"Scores must be an array of {plural}")
    if len(scores) < 1:
        return ScoreValidation.fail(f"At least 1 {unit.lower()} is required")
    if len(scores) > max_units:
        return ScoreValidation.fail(f"Maximum {max_units} {plural} allowed")

    tally = [0, 0]
    for i, pair in enumerate(scores):
        if (
            not isinstance(pair, (list, tuple))
            or len(pair) != 2
            or not is_whole_number(pair[0])
            or not is_whole_number(pair[1])
        ):
            return ScoreValidation.fail(f"{unit} {i + 1}: must be two whole numbers")
        a, b = pair
        if a < 0 or b < 0:
            return ScoreValidation.fail(f"{unit} {i + 1}: scores cannot be negative")
        if a > MAX_SCORE or b > MAX_SCORE:
            return ScoreValidation.fail(f"{unit} {i + 1}: scores cannot exceed {MAX_SCORE}")
        if not is_finished(a, b, i):
            hint = f". {rule_hint}" if rule_hint else ""
            return ScoreValidation.fail(f"{unit} {i + 1}: invalid score ({a}-{b}){hint}")
        tally[0 if a > b else 1] += 1

    if tally[0] == tally[1]:
        return ScoreValidation.fail(
            f"Match cannot end level on {plural} ({tally[0]}-{tally[1]})"
        )
    return ScoreValidation.ok()


def resolve_ladder(
    scores: Sequence[Sequence[int]],
    *,
    outcome: OutcomeFields,
    won: str,
    lost: str,
) -> MatchResult:
    """Winner is the side that took more sets/games."""
    team1_units = sum(1 for a, b in scores if a > b)
    team2_units = len(scores) - team1_units
    winner = pick_winner(team1_units, team2_units)

    return MatchResult(
        winner=winner,
        team1_stats={
            "matches_played": 1,
            **outcome_stats(winner, Winner.TEAM1, outcome),
            won: team1_units,
            lost: team2_units,
        },
        team2_stats={
            "matches_played": 1,
            **outcome_stats(winner, Winner.TEAM2, outcome),
            won: team2_units,
            lost: team1_units,
        },
    )


# ---------------------------------------------------------------------------
# Team-total validator / resolver
# ---------------------------------------------------------------------------
def validate_team_totals(scores: Any, *, noun: str = "Scores") -> ScoreValidation:
    """Validate ``{"team1": n, "team2": m}`` with non-negative whole numbers."""
    if not isinstance(scores, dict):
        return ScoreValidation.fail("Scores must be an object with team1 and team2")

    extra = set(scores) - {"team1", "team2"}
    if extra:
        return ScoreValidation.fail(f"Unexpected score keys: {', '.join(sorted(extra))}")

    team1, team2 = scores.get("team1"), scores.get("team2")
    if not all(is_number(v) for v in (team1, team2)):
        return ScoreValidation.fail("Both team scores must be numbers")
    if not is_whole_number(team1) or not is_whole_number(team2):
        return ScoreValidation.fail(f"{noun} must be whole numbers")
    if team1 < 0 or team2 < 0:
        return ScoreValidation.fail(f"{noun} cannot be negative")
    if team1 > MAX_SCORE or team2 > MAX_SCORE:
        return ScoreValidation.fail(f"{noun} cannot exceed {MAX_SCORE}")
    return ScoreValidation.ok()


def resolve_team_totals(
    scores: dict[str, int],
    *,
    outcome: OutcomeFields,
    scored: str | None = None,
    conceded: str | None = None,
) -> MatchResult:
    """Higher total wins; *scored*/*conceded* fields receive the raw totals."""
    team1, team2 = scores["team1"], scores["team2"]
    winner = pick_winner(team1, team2)

    team1_stats = {"matches_played": 1, **outcome_stats(winner, Winner.TEAM1, outcome)}
    team2_stats = {"matches_played": 1, **outcome_stats(winner, Winner.TEAM2, outcome)}
    if scored is not None and conceded is not None:
        team1_stats.update({scored: team1, conceded: team2})
        team2_stats.update({scored: team2, conceded: team1})

    return MatchResult(winner=winner, team1_stats=team1_stats, team2_stats=team2_stats)
