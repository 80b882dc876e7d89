"""
rosterrank.api.routes.domains — Domain catalogue (read-only)
=============================================================
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from rosterrank.api.deps import Caller, get_caller
from rosterrank.engine.domain import DomainDescriptor, Exact
from rosterrank.engine.registry import get_domain, list_domains

router = APIRouter(prefix="/domains", tags=["domains"])


def _summary(domain: DomainDescriptor) -> dict[str, Any]:
    return {
        "id": domain.id,
        "name": domain.name,
        "is_match_mode": domain.is_match_mode,
        "stat_fields": [{"id": f.id, "label": f.label} for f in domain.stat_fields],
    }


def _detail(domain: DomainDescriptor) -> dict[str, Any]:
    data = _summary(domain)
    data["tie_break"] = [
        {"key": str(rule.key), "direction": rule.direction.value} for rule in domain.tie_break
    ]
    config = domain.match_config
    data["match_config"] = None if config is None else {
        "formats": list(config.supported_formats),
        "default_format": config.default_format,
        "format_rules": {
            name: (
                {"players_per_team": rule.players}
                if isinstance(rule, Exact)
                else {"min_players": rule.min_players, "max_players": rule.max_players}
            )
            for name, rule in config.formats.items()
        },
    }
    data["default_levels"] = [
        {"name": level.name, "color": level.color} for level in domain.default_levels
    ]
    data["attribute_fields"] = [
        {"id": attr.id, "label": attr.label, "options": list(attr.options)}
        for attr in domain.attribute_fields
    ]
    return data


@router.get("")
def list_all_domains(caller: Caller = Depends(get_caller)):
    """Every compiled-in ranking domain."""
    return {"domains": [_summary(domain) for domain in list_domains()]}


@router.get("/{domain_id}")
def get_one_domain(domain_id: str, caller: Caller = Depends(get_caller)):
    domain = get_domain(domain_id)
    if domain is None:
        raise HTTPException(404, "Domain not found")
    return _detail(domain)
