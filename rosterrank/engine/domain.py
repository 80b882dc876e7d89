"""
rosterrank.engine.domain — Domain Descriptor Types
===================================================

A *domain* is the rule set for one activity type: which stats are tracked,
how the leaderboard breaks ties, which match formats exist and how big the
teams are, and the pure functions that validate and resolve a raw score.

Descriptors are static, compiled-in and side-effect free.  They are built
once at import time by the modules under :mod:`rosterrank.engine.domains`
and registered in :mod:`rosterrank.engine.registry`.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from rosterrank.database.models import Winner

__all__ = [
    "AttributeField",
    "BinaryOp",
    "DefaultLevel",
    "DomainDescriptor",
    "Exact",
    "MatchConfig",
    "MatchResolver",
    "MatchResult",
    "OutcomeFields",
    "Range",
    "ScoreValidation",
    "ScoreValidator",
    "SortDirection",
    "StatExpression",
    "StatField",
    "StatRef",
    "TeamSize",
    "TieBreakRule",
]


# ---------------------------------------------------------------------------
# Stat fields
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class StatField:
    """One cumulative counter tracked per member (e.g. ``wins``)."""

    id: str
    label: str


# ---------------------------------------------------------------------------
# Tie-break rules
# ---------------------------------------------------------------------------
class SortDirection(enum.StrEnum):
    ASC = "asc"
    DESC = "desc"


class BinaryOp(enum.StrEnum):
    """Arithmetic supported between two stat fields in a tie-break key."""

    SUB = "-"
    ADD = "+"

    def apply(self, left: int, right: int) -> int:
        if self is BinaryOp.SUB:
            return left - right
        return left + right


@dataclass(frozen=True, slots=True)
class StatRef:
    """Tie-break key reading a single stat field."""

    field: str

    @property
    def fields(self) -> tuple[str, ...]:
        return (self.field,)

    def evaluate(self, stats: Mapping[str, int]) -> int:
        return stats.get(self.field, 0)

    def __str__(self) -> str:
        return self.field


@dataclass(frozen=True, slots=True)
class StatExpression:
    """Tie-break key combining two stat fields, e.g. goal difference."""

    left: str
    op: BinaryOp
    right: str

    @property
    def fields(self) -> tuple[str, ...]:
        return (self.left, self.right)

    def evaluate(self, stats: Mapping[str, int]) -> int:
        return self.op.apply(stats.get(self.left, 0), stats.get(self.right, 0))

    def __str__(self) -> str:
        return f"({self.left} {self.op.value} {self.right})"


@dataclass(frozen=True, slots=True)
class TieBreakRule:
    key: StatRef | StatExpression
    direction: SortDirection = SortDirection.DESC

    @classmethod
    def by_stat(cls, stat_id: str, direction: SortDirection = SortDirection.DESC) -> TieBreakRule:
        return cls(StatRef(stat_id), direction)

    @classmethod
    def by_difference(
        cls, left: str, right: str, direction: SortDirection = SortDirection.DESC
    ) -> TieBreakRule:
        return cls(StatExpression(left, BinaryOp.SUB, right), direction)


# ---------------------------------------------------------------------------
# Team-size rules — tagged union
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Exact:
    """Every team has exactly ``players`` members (singles = 1, doubles = 2)."""

    players: int

    def allows(self, team_size: int) -> bool:
        return team_size == self.players

    def allows_total(self, total_players: int) -> bool:
        return total_players == self.players * 2

    def describe(self) -> str:
        return f"{self.players} player(s)"


@dataclass(frozen=True, slots=True)
class Range:
    """Each team has between ``min_players`` and ``max_players`` members."""

    min_players: int
    max_players: int

    def __post_init__(self) -> None:
        if not 1 <= self.min_players <= self.max_players:
            raise ValueError(
                f"Invalid team size range {self.min_players}-{self.max_players}"
            )

    def allows(self, team_size: int) -> bool:
        return self.min_players <= team_size <= self.max_players

    def allows_total(self, total_players: int) -> bool:
        return self.min_players * 2 <= total_players <= self.max_players * 2

    def describe(self) -> str:
        return f"{self.min_players}-{self.max_players} player(s)"


TeamSize = Exact | Range


# ---------------------------------------------------------------------------
# Validator / resolver contracts
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ScoreValidation:
    valid: bool
    reason: str | None = None

    @classmethod
    def ok(cls) -> ScoreValidation:
        return cls(True)

    @classmethod
    def fail(cls, reason: str) -> ScoreValidation:
        return cls(False, reason)


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Winner plus each team's contribution for *this* match."""

    winner: Winner
    team1_stats: dict[str, int]
    team2_stats: dict[str, int]


ScoreValidator = Callable[[Any], ScoreValidation]
MatchResolver = Callable[[Any], MatchResult]


@dataclass(frozen=True, slots=True)
class OutcomeFields:
    """Stat fields that record the match outcome for one side."""

    win: str
    loss: str
    draw: str | None = None

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(f for f in (self.win, self.loss, self.draw) if f is not None)


@dataclass(frozen=True, slots=True)
class MatchConfig:
    formats: Mapping[str, TeamSize]
    default_format: str
    validate: ScoreValidator
    resolve: MatchResolver
    outcome: OutcomeFields

    def __post_init__(self) -> None:
        if self.default_format not in self.formats:
            raise ValueError(f"Default format {self.default_format!r} is not declared")

    @property
    def supported_formats(self) -> tuple[str, ...]:
        return tuple(self.formats)


# ---------------------------------------------------------------------------
# Levels & attributes
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class DefaultLevel:
    name: str
    color: str | None = None


@dataclass(frozen=True, slots=True)
class AttributeField:
    """Free-form categorical tag a member can carry (not a stat)."""

    id: str
    label: str
    options: tuple[str, ...]


# ---------------------------------------------------------------------------
# DomainDescriptor
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class DomainDescriptor:
    """Static definition of one activity's ranking rules."""

    id: str
    name: str
    stat_fields: tuple[StatField, ...]
    tie_break: tuple[TieBreakRule, ...]
    match_config: MatchConfig | None = None
    default_levels: tuple[DefaultLevel, ...] = ()
    attribute_fields: tuple[AttributeField, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        declared = self.stat_field_ids
        if len(declared) != len(self.stat_fields):
            raise ValueError(f"Domain {self.id!r} declares a stat field twice")
        for rule in self.tie_break:
            unknown = [f for f in rule.key.fields if f not in declared]
            if unknown:
                raise ValueError(
                    f"Domain {self.id!r} tie-break {rule.key} uses undeclared {unknown}"
                )
        if self.match_config is not None:
            unknown = [f for f in self.match_config.outcome.fields if f not in declared]
            if unknown:
                raise ValueError(
                    f"Domain {self.id!r} outcome fields use undeclared {unknown}"
                )

    @property
    def stat_field_ids(self) -> frozenset[str]:
        return frozenset(f.id for f in self.stat_fields)

    @property
    def is_match_mode(self) -> bool:
        return self.match_config is not None
