"""
rosterrank.engine.domains.table_games — Table & Board Game Domains
===================================================================

Foosball, pool and darts post one total per side (goals, racks, legs) and
reuse the team-total builder.  Chess records only the result of a single
game: ``1-0``, ``0-1`` or ``½-½``.
"""

from __future__ import annotations

from typing import Any

from rosterrank.database.models import Winner
from rosterrank.engine.domain import (
    AttributeField,
    DefaultLevel,
    DomainDescriptor,
    Exact,
    MatchConfig,
    MatchResult,
    ScoreValidation,
    StatField,
    TieBreakRule,
)
from rosterrank.engine.domains.team_sports import WIN_DRAW_LOSS, team_total_domain
from rosterrank.engine.scoring import is_number, outcome_stats, pick_winner

SINGLES_DOUBLES = {"singles": Exact(1), "doubles": Exact(2)}

FOOSBALL = team_total_domain(
    id="foosball",
    name="Foosball",
    noun="Goals",
    scored="goals_scored",
    conceded="goals_conceded",
    formats=SINGLES_DOUBLES,
    default_format="doubles",
    default_levels=(
        DefaultLevel("Beginner", "#9CA3AF"),
        DefaultLevel("D", "#6B7280"),
        DefaultLevel("C", "#3B82F6"),
        DefaultLevel("B", "#10B981"),
        DefaultLevel("A", "#F59E0B"),
        DefaultLevel("AA", "#EF4444"),
    ),
    attribute_fields=(
        AttributeField("preferred_position", "Preferred Position", ("Offense", "Defense")),
    ),
)

POOL = team_total_domain(
    id="pool",
    name="Pool / Billiards",
    noun="Games",
    scored="games_won",
    conceded="games_lost",
    formats=SINGLES_DOUBLES,
    default_format="singles",
    default_levels=(
        DefaultLevel("D", "#9CA3AF"),
        DefaultLevel("C", "#6B7280"),
        DefaultLevel("B", "#3B82F6"),
        DefaultLevel("A", "#10B981"),
        DefaultLevel("AA", "#F59E0B"),
        DefaultLevel("AAA", "#EF4444"),
    ),
    attribute_fields=(
        AttributeField("preferred_game", "Preferred Game", ("8-Ball", "9-Ball", "10-Ball")),
    ),
)

DARTS = team_total_domain(
    id="darts",
    name="Darts",
    noun="Legs",
    scored="legs_won",
    conceded="legs_lost",
    formats=SINGLES_DOUBLES,
    default_format="singles",
    default_levels=(
        DefaultLevel("D", "#6B7280"),
        DefaultLevel("C", "#3B82F6"),
        DefaultLevel("B", "#10B981"),
        DefaultLevel("A", "#F59E0B"),
    ),
)


# ---------------------------------------------------------------------------
# Chess
# ---------------------------------------------------------------------------
_CHESS_RESULTS = {(1, 0), (0, 1), (0.5, 0.5)}


def validate_chess_scores(scores: Any) -> ScoreValidation:
    if not isinstance(scores, dict):
        return ScoreValidation.fail("Scores must be an object with team1 and team2")

    extra = set(scores) - {"team1", "team2"}
    if extra:
        return ScoreValidation.fail(f"Unexpected score keys: {', '.join(sorted(extra))}")

    team1, team2 = scores.get("team1"), scores.get("team2")
    if not is_number(team1) or not is_number(team2):
        return ScoreValidation.fail("Both scores must be numbers")

    if (team1, team2) not in _CHESS_RESULTS:
        return ScoreValidation.fail(
            "Invalid result. Must be 1-0 (Player 1 wins), 0-1 (Player 2 wins), "
            "or ½-½ (draw)"
        )
    return ScoreValidation.ok()


def resolve_chess_match(scores: dict[str, float]) -> MatchResult:
    winner = pick_winner(scores["team1"], scores["team2"])
    return MatchResult(
        winner=winner,
        team1_stats={"matches_played": 1, **outcome_stats(winner, Winner.TEAM1, WIN_DRAW_LOSS)},
        team2_stats={"matches_played": 1, **outcome_stats(winner, Winner.TEAM2, WIN_DRAW_LOSS)},
    )


CHESS = DomainDescriptor(
    id="chess",
    name="Chess",
    stat_fields=(
        StatField("matches_played", "Games Played"),
        StatField("wins", "Wins"),
        StatField("draws", "Draws"),
        StatField("losses", "Losses"),
    ),
    tie_break=(
        TieBreakRule.by_stat("wins"),
        TieBreakRule.by_stat("draws"),
    ),
    match_config=MatchConfig(
        formats={"singles": Exact(1)},
        default_format="singles",
        validate=validate_chess_scores,
        resolve=resolve_chess_match,
        outcome=WIN_DRAW_LOSS,
    ),
    default_levels=(
        DefaultLevel("Beginner", "#6B7280"),
        DefaultLevel("Intermediate", "#3B82F6"),
        DefaultLevel("Advanced", "#10B981"),
        DefaultLevel("Expert", "#F59E0B"),
        DefaultLevel("Master", "#EF4444"),
    ),
)


DOMAINS: tuple[DomainDescriptor, ...] = (
    FOOSBALL,
    POOL,
    DARTS,
    CHESS,
)
