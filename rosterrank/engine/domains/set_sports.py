"""
rosterrank.engine.domains.set_sports — Set & Game Ladder Domains
=================================================================

Racquet and net sports scored as a list of sets or games.  A match is won
on the tally of sets/games; a level tally is not a finished match.

Score shape::

    [[6, 4], [3, 6], [7, 5]]      # team1 score first in every pair
"""

from __future__ import annotations

from functools import partial

from rosterrank.engine.domain import (
    AttributeField,
    DefaultLevel,
    DomainDescriptor,
    Exact,
    MatchConfig,
    OutcomeFields,
    StatField,
    TieBreakRule,
)
from rosterrank.engine.scoring import (
    deciding_unit,
    point_game,
    resolve_ladder,
    standard_set,
    validate_ladder,
)

WIN_LOSS = OutcomeFields(win="wins", loss="losses")

SINGLES_DOUBLES = {"singles": Exact(1), "doubles": Exact(2)}

_HAND_ATTRIBUTE = AttributeField(
    id="dominant_hand", label="Dominant Hand", options=("Right", "Left")
)


def _set_stats(won: str, lost: str) -> tuple[StatField, ...]:
    return (
        StatField("matches_played", "Matches Played"),
        StatField("wins", "Wins"),
        StatField("losses", "Losses"),
        StatField(won, won.replace("_", " ").title()),
        StatField(lost, lost.replace("_", " ").title()),
    )


# ---------------------------------------------------------------------------
# Tennis (ITF)
# ---------------------------------------------------------------------------
TENNIS = DomainDescriptor(
    id="tennis",
    name="Tennis",
    stat_fields=_set_stats("sets_won", "sets_lost"),
    tie_break=(
        TieBreakRule.by_stat("wins"),
        TieBreakRule.by_difference("sets_won", "sets_lost"),
    ),
    match_config=MatchConfig(
        formats=SINGLES_DOUBLES,
        default_format="singles",
        validate=partial(validate_ladder, unit="Set", max_units=5, is_finished=standard_set),
        resolve=partial(resolve_ladder, outcome=WIN_LOSS, won="sets_won", lost="sets_lost"),
        outcome=WIN_LOSS,
    ),
)


# ---------------------------------------------------------------------------
# Padel — same set rules as tennis, tracked as match/set wins
# ---------------------------------------------------------------------------
PADEL_OUTCOME = OutcomeFields(win="match_wins", loss="match_losses")

PADEL = DomainDescriptor(
    id="padel",
    name="Padel",
    stat_fields=(
        StatField("matches_played", "Matches Played"),
        StatField("match_wins", "Match Wins"),
        StatField("match_losses", "Match Losses"),
        StatField("set_wins", "Set Wins"),
        StatField("set_losses", "Set Losses"),
    ),
    tie_break=(
        TieBreakRule.by_stat("match_wins"),
        TieBreakRule.by_difference("set_wins", "set_losses"),
    ),
    match_config=MatchConfig(
        formats=SINGLES_DOUBLES,
        default_format="doubles",
        validate=partial(validate_ladder, unit="Set", max_units=5, is_finished=standard_set),
        resolve=partial(resolve_ladder, outcome=PADEL_OUTCOME, won="set_wins", lost="set_losses"),
        outcome=PADEL_OUTCOME,
    ),
    default_levels=(
        DefaultLevel("D-", "#9CA3AF"),
        DefaultLevel("D", "#6B7280"),
        DefaultLevel("D+", "#4B5563"),
        DefaultLevel("C-", "#60A5FA"),
        DefaultLevel("C", "#3B82F6"),
        DefaultLevel("C+", "#2563EB"),
        DefaultLevel("B-", "#34D399"),
        DefaultLevel("B", "#10B981"),
        DefaultLevel("B+", "#059669"),
        DefaultLevel("A-", "#FBBF24"),
        DefaultLevel("A", "#F59E0B"),
        DefaultLevel("A+", "#D97706"),
    ),
    attribute_fields=(
        AttributeField("dominant_side", "Dominant Side", ("Right", "Left")),
        AttributeField(
            "court_side", "Court Side Preference", ("Right (Drive)", "Left (Reves)", "Both")
        ),
    ),
)


# ---------------------------------------------------------------------------
# Badminton (BWF) — 21 points, win by 2, capped at 30
# ---------------------------------------------------------------------------
BADMINTON = DomainDescriptor(
    id="badminton",
    name="Badminton",
    stat_fields=_set_stats("games_won", "games_lost"),
    tie_break=(
        TieBreakRule.by_stat("wins"),
        TieBreakRule.by_difference("games_won", "games_lost"),
    ),
    match_config=MatchConfig(
        formats=SINGLES_DOUBLES,
        default_format="singles",
        validate=partial(
            validate_ladder,
            unit="Game",
            max_units=3,
            is_finished=point_game(21, cap=30),
            rule_hint="First to 21, win by 2, 30 caps the game",
        ),
        resolve=partial(resolve_ladder, outcome=WIN_LOSS, won="games_won", lost="games_lost"),
        outcome=WIN_LOSS,
    ),
    attribute_fields=(_HAND_ATTRIBUTE,),
)


# ---------------------------------------------------------------------------
# Ping pong (ITTF) — 11 points, win by 2, best of 7
# ---------------------------------------------------------------------------
PING_PONG = DomainDescriptor(
    id="ping-pong",
    name="Ping Pong",
    stat_fields=_set_stats("games_won", "games_lost"),
    tie_break=(
        TieBreakRule.by_stat("wins"),
        TieBreakRule.by_difference("games_won", "games_lost"),
    ),
    match_config=MatchConfig(
        formats=SINGLES_DOUBLES,
        default_format="singles",
        validate=partial(
            validate_ladder,
            unit="Game",
            max_units=7,
            is_finished=point_game(11),
            rule_hint="First to 11, win by 2",
        ),
        resolve=partial(resolve_ladder, outcome=WIN_LOSS, won="games_won", lost="games_lost"),
        outcome=WIN_LOSS,
    ),
)


# ---------------------------------------------------------------------------
# Squash (PAR-11)
# ---------------------------------------------------------------------------
SQUASH = DomainDescriptor(
    id="squash",
    name="Squash",
    stat_fields=_set_stats("games_won", "games_lost"),
    tie_break=(
        TieBreakRule.by_stat("wins"),
        TieBreakRule.by_difference("games_won", "games_lost"),
    ),
    match_config=MatchConfig(
        formats={"singles": Exact(1)},
        default_format="singles",
        validate=partial(
            validate_ladder,
            unit="Game",
            max_units=5,
            is_finished=point_game(11),
            rule_hint="Must be first to 11, win by 2",
        ),
        resolve=partial(resolve_ladder, outcome=WIN_LOSS, won="games_won", lost="games_lost"),
        outcome=WIN_LOSS,
    ),
    default_levels=(
        DefaultLevel("C", "#6B7280"),
        DefaultLevel("B", "#3B82F6"),
        DefaultLevel("BB", "#10B981"),
        DefaultLevel("A", "#F59E0B"),
        DefaultLevel("AA", "#EF4444"),
    ),
)


# ---------------------------------------------------------------------------
# Pkl-ball — games to 11 or 15, win by 2
# ---------------------------------------------------------------------------
_to_11 = point_game(11)
_to_15 = point_game(15)


def _pkl_ball_game(a: int, b: int, index: int = 0) -> bool:
    return _to_11(a, b, index) or _to_15(a, b, index)


PKL_BALL = DomainDescriptor(
    id="pkl-ball",
    name="Pkl-Ball",
    stat_fields=_set_stats("games_won", "games_lost"),
    tie_break=(
        TieBreakRule.by_stat("wins"),
        TieBreakRule.by_difference("games_won", "games_lost"),
    ),
    match_config=MatchConfig(
        formats=SINGLES_DOUBLES,
        default_format="doubles",
        validate=partial(
            validate_ladder,
            unit="Game",
            max_units=5,
            is_finished=_pkl_ball_game,
            rule_hint="Must be first to 11 or 15, win by 2",
        ),
        resolve=partial(resolve_ladder, outcome=WIN_LOSS, won="games_won", lost="games_lost"),
        outcome=WIN_LOSS,
    ),
    default_levels=(
        DefaultLevel("2.0", "#9CA3AF"),
        DefaultLevel("2.5", "#6B7280"),
        DefaultLevel("3.0", "#60A5FA"),
        DefaultLevel("3.5", "#3B82F6"),
        DefaultLevel("4.0", "#10B981"),
        DefaultLevel("4.5", "#F59E0B"),
        DefaultLevel("5.0", "#EF4444"),
    ),
    attribute_fields=(_HAND_ATTRIBUTE,),
)


# ---------------------------------------------------------------------------
# Volleyball (FIVB) — sets to 25, deciding 5th set to 15
# ---------------------------------------------------------------------------
VOLLEYBALL = DomainDescriptor(
    id="volleyball",
    name="Volleyball",
    stat_fields=_set_stats("sets_won", "sets_lost"),
    tie_break=(
        TieBreakRule.by_stat("wins"),
        TieBreakRule.by_difference("sets_won", "sets_lost"),
    ),
    match_config=MatchConfig(
        formats={"2v2": Exact(2), "3v3": Exact(3), "4v4": Exact(4), "6v6": Exact(6)},
        default_format="6v6",
        validate=partial(
            validate_ladder,
            unit="Set",
            max_units=5,
            is_finished=deciding_unit(point_game(25), point_game(15), deciding_index=4),
            rule_hint="First to 25 (15 in the 5th set), win by 2",
        ),
        resolve=partial(resolve_ladder, outcome=WIN_LOSS, won="sets_won", lost="sets_lost"),
        outcome=WIN_LOSS,
    ),
    attribute_fields=(
        AttributeField("position", "Position", ("Setter", "Libero", "OH", "MB", "Opposite")),
    ),
)


DOMAINS: tuple[DomainDescriptor, ...] = (
    PADEL,
    TENNIS,
    BADMINTON,
    PING_PONG,
    SQUASH,
    PKL_BALL,
    VOLLEYBALL,
)
