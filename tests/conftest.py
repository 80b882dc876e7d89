"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of rosterrank.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine, event  # noqa: E402

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402

from rosterrank.config import RosterRankConfig  # noqa: E402
from rosterrank.database.engine import init_db  # noqa: E402

ORG = "org-1"
OTHER_ORG = "org-2"

_jsonb_sqlite_registered = False


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent).

    Also maps BigInteger → INTEGER so autoincrement works on SQLite.
    """
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy import BigInteger
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    @compiles(BigInteger, "sqlite")
    def _compile_bigint_as_integer(type_, compiler, **kw):
        return "INTEGER"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()


def _enable_sqlite_savepoints(engine: Engine, begin: str = "BEGIN") -> None:
    """pysqlite defers BEGIN, which breaks SAVEPOINT; emit it ourselves.

    Also turns on foreign key enforcement.  ``BEGIN IMMEDIATE`` makes
    concurrent writers queue on the busy timeout instead of failing.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql(begin)


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all RosterRank tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _enable_sqlite_savepoints(engine)
    init_db(engine)
    return engine


@pytest.fixture
def file_engine(tmp_path) -> Engine:
    """File-backed SQLite engine with a real connection pool, for threaded tests."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'rosterrank.db'}",
        echo=False,
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    _enable_sqlite_savepoints(engine, begin="BEGIN IMMEDIATE")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def test_config() -> RosterRankConfig:
    return RosterRankConfig(
        service_name="RosterRank Test",
        api_port=8000,
        leaderboard_page_size=50,
        match_page_size=20,
    )


def make_token(sub: str = "admin-1", org: str = ORG, role: str = "admin") -> str:
    """Create a caller JWT.  Usable from any test module."""
    import jwt

    from rosterrank.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode({"sub": sub, "org": org, "role": role}, JWT_SECRET, algorithm=JWT_ALGORITHM)


@pytest.fixture
def admin_token() -> str:
    return make_token()


@pytest.fixture
def member_token() -> str:
    return make_token(sub="member-1", role="member")


@pytest.fixture
def client(db_engine, test_config):
    """FastAPI TestClient wired to the in-memory engine."""
    from fastapi.testclient import TestClient

    from rosterrank.api.main import app
    from rosterrank.api.routes import rankings

    # Key overrides on the objects the routes captured; deps may be reloaded.
    app.dependency_overrides[rankings.get_engine] = lambda: db_engine
    app.dependency_overrides[rankings.get_config] = lambda: test_config
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Ranking definitions
# ---------------------------------------------------------------------------
def make_definition(engine, domain_id: str, activity_id: str | None = None, **kwargs) -> int:
    from rosterrank.services import ranking_service

    definition = ranking_service.create_definition(
        engine,
        organization_id=kwargs.pop("organization_id", ORG),
        activity_id=activity_id or f"act-{domain_id}",
        name=kwargs.pop("name", f"{domain_id.title()} Ladder"),
        domain_id=domain_id,
        created_by="admin-1",
        **kwargs,
    )
    return definition["id"]


@pytest.fixture
def football_def(db_engine) -> int:
    return make_definition(db_engine, "football")


@pytest.fixture
def tennis_def(db_engine) -> int:
    return make_definition(db_engine, "tennis")


@pytest.fixture
def reading_def(db_engine) -> int:
    return make_definition(db_engine, "reading")
