"""
rosterrank.config — YAML Configuration Loader
==============================================

Reads ``config.yaml`` for **infrastructure-only** settings (service name,
API port, logging, page sizes).  Ranking rules are compiled in under
:mod:`rosterrank.engine.domains` and are never configured at runtime.

Secrets (``DATABASE_URL``, ``JWT_SECRET``) come from the environment.

Usage::

    from rosterrank.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.service_name)      # "RosterRank Dev"
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from rosterrank.constants import MAX_PAGE_SIZE


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class RosterRankConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    service_name: str

    # API
    api_port: int

    # Logging
    log_level: str = "INFO"

    # Listings
    leaderboard_page_size: int = 50
    match_page_size: int = 20


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> RosterRankConfig:
    """Read *path* and return a :class:`RosterRankConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    ValueError
        If a page size is outside ``1..MAX_PAGE_SIZE``.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    leaderboard_page_size = int(raw.get("leaderboard_page_size", 50))
    match_page_size = int(raw.get("match_page_size", 20))
    for key, value in (
        ("leaderboard_page_size", leaderboard_page_size),
        ("match_page_size", match_page_size),
    ):
        if not 1 <= value <= MAX_PAGE_SIZE:
            raise ValueError(f"{key} must be between 1 and {MAX_PAGE_SIZE}, got {value}")

    return RosterRankConfig(
        service_name=raw["service_name"],
        api_port=int(raw["api_port"]),
        log_level=str(raw.get("log_level", "INFO")).upper(),
        leaderboard_page_size=leaderboard_page_size,
        match_page_size=match_page_size,
    )
