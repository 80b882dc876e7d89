"""
rosterrank.engine.match — Match Resolution Pipeline
====================================================

Pure pipeline, no DB I/O:

  format + teams → Team Check → Score Validation → Resolution → Per-member stats

Services call :func:`prepare_match` first inside their unit of work, before
any row is written, so configuration and validation errors abort the unit
with nothing persisted.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from rosterrank.engine.domain import DomainDescriptor, MatchResult
from rosterrank.errors import ConfigurationError, ScoreValidationError

__all__ = [
    "PreparedMatch",
    "check_teams",
    "derive_member_stats",
    "prepare_match",
    "resolve_score",
]


@dataclass(frozen=True, slots=True)
class PreparedMatch:
    """A validated, resolved match ready to be persisted."""

    match_format: str
    team1: tuple[str, ...]
    team2: tuple[str, ...]
    raw_score: Any
    result: MatchResult
    derived_stats: dict[str, dict[str, int]]


# ---------------------------------------------------------------------------
# Stage 1: format + team shape
# ---------------------------------------------------------------------------
def check_teams(
    domain: DomainDescriptor,
    match_format: str,
    team1: Sequence[str],
    team2: Sequence[str],
) -> None:
    """Raise :class:`ConfigurationError` for a bad format or team shape."""
    config = domain.match_config
    if config is None:
        raise ConfigurationError(f"Domain {domain.id!r} does not support matches")

    rule = config.formats.get(match_format)
    if rule is None:
        raise ConfigurationError(f"Unsupported match format: {match_format}")

    for label, team in (("Team 1", team1), ("Team 2", team2)):
        if not rule.allows(len(team)):
            raise ConfigurationError(
                f"{label} must have {rule.describe()} for {match_format}"
            )

    players = [*team1, *team2]
    if len(set(players)) != len(players):
        raise ConfigurationError("A player cannot appear twice or on both teams")


# ---------------------------------------------------------------------------
# Stage 2 + 3: validate, then resolve
# ---------------------------------------------------------------------------
def resolve_score(domain: DomainDescriptor, raw_score: Any) -> MatchResult:
    """Validate *raw_score* and resolve it.

    The resolver is only ever called on a score its validator accepted.
    """
    config = domain.match_config
    if config is None:
        raise ConfigurationError(f"Domain {domain.id!r} does not support matches")

    validation = config.validate(raw_score)
    if not validation.valid:
        raise ScoreValidationError(validation.reason or "Invalid scores")

    result = config.resolve(raw_score)
    declared = domain.stat_field_ids
    for stats in (result.team1_stats, result.team2_stats):
        if set(stats) != declared:
            raise ValueError(
                f"Resolver for {domain.id!r} produced {sorted(stats)}, "
                f"expected {sorted(declared)}"
            )
    return result


# ---------------------------------------------------------------------------
# Stage 4: fan out to members
# ---------------------------------------------------------------------------
def derive_member_stats(
    result: MatchResult, team1: Sequence[str], team2: Sequence[str]
) -> dict[str, dict[str, int]]:
    derived = {user_id: dict(result.team1_stats) for user_id in team1}
    derived.update({user_id: dict(result.team2_stats) for user_id in team2})
    return derived


def prepare_match(
    domain: DomainDescriptor,
    match_format: str,
    team1: Sequence[str],
    team2: Sequence[str],
    raw_score: Any,
) -> PreparedMatch:
    """Run the full pipeline.  PURE, no DB I/O."""
    check_teams(domain, match_format, team1, team2)
    result = resolve_score(domain, raw_score)
    return PreparedMatch(
        match_format=match_format,
        team1=tuple(team1),
        team2=tuple(team2),
        raw_score=raw_score,
        result=result,
        derived_stats=derive_member_stats(result, team1, team2),
    )
