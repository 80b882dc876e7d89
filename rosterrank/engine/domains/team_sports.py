"""
rosterrank.engine.domains.team_sports — Team-Total Domains
============================================================

Field and court team sports scored as one total per side.  The higher
total wins and equal totals are a draw.

Score shape::

    {"team1": 3, "team2": 1}
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
    Range,
    StatField,
    TieBreakRule,
)
from rosterrank.engine.scoring import resolve_team_totals, validate_team_totals

WIN_DRAW_LOSS = OutcomeFields(win="wins", loss="losses", draw="draws")

RECREATIONAL_LADDER = (
    DefaultLevel("Recreational", "#6B7280"),
    DefaultLevel("Intermediate", "#3B82F6"),
    DefaultLevel("Competitive", "#10B981"),
)

FIVE_STEP_LADDER = (
    DefaultLevel("Beginner", "#6B7280"),
    DefaultLevel("Amateur", "#3B82F6"),
    DefaultLevel("Intermediate", "#10B981"),
    DefaultLevel("Advanced", "#F59E0B"),
    DefaultLevel("Pro", "#EF4444"),
)

FOUR_STEP_LADDER = (
    DefaultLevel("Beginner", "#6B7280"),
    DefaultLevel("Intermediate", "#3B82F6"),
    DefaultLevel("Advanced", "#10B981"),
    DefaultLevel("Competitive", "#F59E0B"),
)


def team_total_domain(
    *,
    id: str,
    name: str,
    noun: str,
    scored: str | None,
    conceded: str | None,
    formats: dict,
    default_format: str,
    default_levels: tuple[DefaultLevel, ...] = (),
    attribute_fields: tuple[AttributeField, ...] = (),
) -> DomainDescriptor:
    """Build a descriptor for a sport where each side posts one total."""
    stat_fields = [
        StatField("matches_played", "Matches Played"),
        StatField("wins", "Wins"),
        StatField("draws", "Draws"),
        StatField("losses", "Losses"),
    ]
    tie_break = [TieBreakRule.by_stat("wins")]
    if scored is not None and conceded is not None:
        stat_fields += [
            StatField(scored, scored.replace("_", " ").title()),
            StatField(conceded, conceded.replace("_", " ").title()),
        ]
        tie_break.append(TieBreakRule.by_difference(scored, conceded))
    else:
        tie_break.append(TieBreakRule.by_stat("draws"))

    return DomainDescriptor(
        id=id,
        name=name,
        stat_fields=tuple(stat_fields),
        tie_break=tuple(tie_break),
        match_config=MatchConfig(
            formats=formats,
            default_format=default_format,
            validate=partial(validate_team_totals, noun=noun),
            resolve=partial(
                resolve_team_totals, outcome=WIN_DRAW_LOSS, scored=scored, conceded=conceded
            ),
            outcome=WIN_DRAW_LOSS,
        ),
        default_levels=default_levels,
        attribute_fields=attribute_fields,
    )


FOOTBALL = team_total_domain(
    id="football",
    name="Football",
    noun="Goals",
    scored="goals_scored",
    conceded="goals_conceded",
    formats={"5v5": Exact(5), "6v6": Exact(6), "7v7": Exact(7), "11v11": Exact(11)},
    default_format="5v5",
    default_levels=FIVE_STEP_LADDER,
    attribute_fields=(
        AttributeField("position", "Position", ("GK", "Defender", "Midfielder", "Attacker")),
    ),
)

BASKETBALL = team_total_domain(
    id="basketball",
    name="Basketball",
    noun="Points",
    scored="points_scored",
    conceded="points_conceded",
    formats={"3v3": Exact(3), "5v5": Exact(5)},
    default_format="5v5",
    default_levels=FOUR_STEP_LADDER,
    attribute_fields=(
        AttributeField("position", "Position", ("PG", "SG", "SF", "PF", "Center")),
        AttributeField(
            "height_range",
            "Height Range",
            ("Under 170cm", "170-180cm", "180-190cm", "Over 190cm"),
        ),
    ),
)

HOCKEY = team_total_domain(
    id="hockey",
    name="Hockey",
    noun="Goals",
    scored="goals_scored",
    conceded="goals_conceded",
    formats={"3v3": Exact(3), "5v5": Exact(5), "6v6": Exact(6)},
    default_format="5v5",
    default_levels=FOUR_STEP_LADDER,
    attribute_fields=(
        AttributeField("position", "Position", ("Goalie", "Defender", "Forward")),
        AttributeField("stick_hand", "Stick Hand", ("Left", "Right")),
    ),
)

FLAG_FOOTBALL = team_total_domain(
    id="flag-football",
    name="Flag Football",
    noun="Points",
    scored="points_scored",
    conceded="points_conceded",
    formats={"5v5": Exact(5), "7v7": Exact(7)},
    default_format="5v5",
    default_levels=RECREATIONAL_LADDER,
    attribute_fields=(
        AttributeField("position", "Position", ("QB", "WR", "RB", "Lineman", "DB")),
    ),
)

KICKBALL = team_total_domain(
    id="kickball",
    name="Kickball",
    noun="Runs",
    scored="runs_scored",
    conceded="runs_conceded",
    formats={"5v5": Exact(5), "7v7": Exact(7), "9v9": Exact(9)},
    default_format="7v7",
    default_levels=RECREATIONAL_LADDER,
)

DODGEBALL = team_total_domain(
    id="dodgeball",
    name="Dodgeball",
    noun="Rounds",
    scored="rounds_won",
    conceded="rounds_lost",
    formats={"6v6": Exact(6), "8v8": Exact(8)},
    default_format="6v6",
    default_levels=RECREATIONAL_LADDER,
    attribute_fields=(AttributeField("throw_hand", "Throwing Hand", ("Right", "Left")),),
)

# Flexible team sizes; only the outcome is tracked.
LASER_TAG = team_total_domain(
    id="laser-tag",
    name="Laser Tag",
    noun="Scores",
    scored=None,
    conceded=None,
    formats={"team": Range(1, 13)},
    default_format="team",
    default_levels=FIVE_STEP_LADDER,
)


DOMAINS: tuple[DomainDescriptor, ...] = (
    FOOTBALL,
    LASER_TAG,
    BASKETBALL,
    HOCKEY,
    FLAG_FOOTBALL,
    KICKBALL,
    DODGEBALL,
)
