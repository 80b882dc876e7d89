"""
rosterrank.engine.registry — Static Domain Registry
====================================================

Lookup and capability queries over the compiled-in domain catalogue.
The table is built once at import time and never mutated, so it is safe
for unbounded concurrent reads.

Usage::

    from rosterrank.engine.registry import get_domain, match_formats

    padel = get_domain("padel")
    match_formats("padel").default_format     # "doubles"
    format_from_team_size("padel", 4)         # "doubles"
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from rosterrank.engine.domain import DomainDescriptor, TeamSize
from rosterrank.engine.domains import BUILTIN_DOMAINS
from rosterrank.errors import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = [
    "MatchFormats",
    "format_from_team_size",
    "get_domain",
    "is_domain_valid",
    "is_match_mode",
    "list_domains",
    "match_formats",
    "require_domain",
    "require_match_domain",
]


def _build_registry(domains: tuple[DomainDescriptor, ...]) -> Mapping[str, DomainDescriptor]:
    table: dict[str, DomainDescriptor] = {}
    for domain in domains:
        if domain.id in table:
            raise ValueError(f"Domain id {domain.id!r} is registered twice")
        table[domain.id] = domain
    logger.debug("Domain registry loaded: %d domains", len(table))
    return MappingProxyType(table)


_REGISTRY: Mapping[str, DomainDescriptor] = _build_registry(BUILTIN_DOMAINS)


@dataclass(frozen=True, slots=True)
class MatchFormats:
    formats: tuple[str, ...]
    default_format: str
    format_rules: Mapping[str, TeamSize]


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------
def get_domain(domain_id: str) -> DomainDescriptor | None:
    return _REGISTRY.get(domain_id)


def list_domains() -> list[DomainDescriptor]:
    return list(_REGISTRY.values())


def is_domain_valid(domain_id: str) -> bool:
    return domain_id in _REGISTRY


def require_domain(domain_id: str) -> DomainDescriptor:
    """Return the descriptor or raise :class:`ConfigurationError`."""
    domain = _REGISTRY.get(domain_id)
    if domain is None:
        raise ConfigurationError(
            f"Unknown ranking domain {domain_id!r}",
            "This activity type is not supported for rankings.",
        )
    return domain


def require_match_domain(domain_id: str) -> DomainDescriptor:
    """Like :func:`require_domain`, but the domain must record matches."""
    domain = require_domain(domain_id)
    if domain.match_config is None:
        raise ConfigurationError(
            f"Domain {domain_id!r} does not support matches",
            "This ranking domain does not support match recording.",
        )
    return domain


# ---------------------------------------------------------------------------
# Capability queries
# ---------------------------------------------------------------------------
def is_match_mode(domain_id: str) -> bool:
    domain = _REGISTRY.get(domain_id)
    return domain is not None and domain.is_match_mode


def match_formats(domain_id: str) -> MatchFormats | None:
    """Formats, default format and team-size rules; ``None`` if not match-mode."""
    domain = _REGISTRY.get(domain_id)
    if domain is None or domain.match_config is None:
        return None
    config = domain.match_config
    return MatchFormats(
        formats=config.supported_formats,
        default_format=config.default_format,
        format_rules=config.formats,
    )


def format_from_team_size(domain_id: str, total_players: int) -> str | None:
    """Reverse-derive a format from a session's total player capacity.

    Formats are checked in declaration order; the first whose rule admits
    *total_players* across both teams wins.
    """
    domain = _REGISTRY.get(domain_id)
    if domain is None or domain.match_config is None:
        return None
    for match_format, rule in domain.match_config.formats.items():
        if rule.allows_total(total_players):
            return match_format
    return None
