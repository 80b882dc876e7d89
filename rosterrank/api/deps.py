"""
rosterrank.api.deps — FastAPI dependency injection
===================================================

Authentication is external: an upstream identity service issues an HS256
JWT carrying the caller's ``sub`` (user id), ``org`` (organization id) and
``role``.  This module only verifies the token and exposes those claims.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Depends, Header, HTTPException, status
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine

from rosterrank.config import RosterRankConfig, load_config
from rosterrank.constants import WRITER_ROLES
from rosterrank.database.engine import create_db_engine

_WEAK_SECRETS = frozenset({
    "rosterrank-dev-secret-change-me",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"


def _load_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError at import time if the secret is missing, blank,
    too short (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> RosterRankConfig:
    return load_config()


@dataclass(frozen=True, slots=True)
class Caller:
    user_id: str
    organization_id: str
    role: str

    @property
    def can_write(self) -> bool:
        return self.role in WRITER_ROLES


def get_caller(authorization: Annotated[str | None, Header()] = None) -> Caller:
    """Validate the bearer JWT and return its claims.  401 if invalid."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing token")
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except InvalidTokenError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    if not payload.get("sub") or not payload.get("org"):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Token is not organization-scoped")
    return Caller(
        user_id=str(payload["sub"]),
        organization_id=str(payload["org"]),
        role=str(payload.get("role", "member")),
    )


def require_writer(caller: Annotated[Caller, Depends(get_caller)]) -> Caller:
    """Mutations need an owner/admin role.  403 otherwise."""
    if not caller.can_write:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Insufficient role")
    return caller
