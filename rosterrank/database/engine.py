"""
rosterrank.database.engine — Database Connection & Async Helper
================================================================

SQLAlchemy + psycopg2 is **synchronous**.  The FastAPI layer is async, so
every service call is shipped to a worker thread with :func:`run_db`:

    1. A request arrives on the event loop.
    2. The route calls ``await run_db(service_fn, engine, ...)``.
    3. ``run_db`` runs the function via ``asyncio.to_thread()``.
    4. The unit of work commits (or rolls back) on that thread.

Usage::

    from rosterrank.database.engine import create_db_engine, init_db, run_db

    engine = create_db_engine()          # reads DATABASE_URL from .env
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …

    board = await run_db(get_leaderboard, engine, definition_id, org_id)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from rosterrank.database.models import Base
from rosterrank.errors import PersistenceError, RankingError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def create_db_engine() -> Engine:
    """Build a SQLAlchemy :class:`Engine` from the ``DATABASE_URL`` env var.

    Raises
    ------
    RuntimeError
        If ``DATABASE_URL`` is not set.
    """
    url = os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env and set a valid PostgreSQL URL."
        )

    engine = create_engine(
        url,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_timeout=10,
        pool_recycle=3600,
    )
    logger.info("Database engine created → %s", engine.url.host)
    return engine


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create all tables defined in :mod:`rosterrank.database.models`.

    .. note::

        In production the schema is managed by Alembic (``alembic upgrade
        head``).  ``create_all`` is kept for dev/test databases.
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")


# ---------------------------------------------------------------------------
# Unit of work
# ---------------------------------------------------------------------------
@contextmanager
def unit_of_work(engine: Engine, operation: str) -> Iterator[Session]:
    """Yield a :class:`Session` that commits on success and rolls back on
    any exception.

    Ranking errors raised inside the block roll back and propagate as-is.
    Any other SQLAlchemy failure rolls back and surfaces as a single
    :class:`PersistenceError`, so a caller never sees a half-applied write.
    """
    session = Session(engine)
    try:
        yield session
        session.commit()
    except RankingError:
        session.rollback()
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Unit of work %r failed: %s", operation, exc)
        raise PersistenceError(operation, str(exc)) from exc
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Constraint errors
# ---------------------------------------------------------------------------
def violates_constraint(
    exc: IntegrityError, name: str, sqlite_marker: str | None = None
) -> bool:
    """True if *exc* was raised by the constraint or unique index *name*.

    psycopg2 reports the name in ``diag.constraint_name``.  SQLite names CHECK
    constraints in its message but reports unique indexes by their columns,
    so *sqlite_marker* (e.g. ``"table.column"``) is matched there instead.
    """
    diag = getattr(exc.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint is not None:
        return constraint == name
    return (sqlite_marker or name) in str(exc.orig)


# ---------------------------------------------------------------------------
# Snapshot reads
# ---------------------------------------------------------------------------
# Dialects whose default isolation lets each statement see newer commits.
SNAPSHOT_ISOLATION: dict[str, str] = {"postgresql": "REPEATABLE READ"}


def snapshot_isolation_level(engine: Engine) -> str | None:
    return SNAPSHOT_ISOLATION.get(engine.dialect.name)


@contextmanager
def snapshot_session(engine: Engine) -> Iterator[Session]:
    """Yield a read-only :class:`Session` whose statements share one snapshot.

    On PostgreSQL the transaction runs at REPEATABLE READ, so a correction
    committing between two SELECTs (or between ``selectinload`` chunks) is
    either wholly visible or not visible at all.  SQLite already reads from
    one snapshot per transaction.
    """
    with Session(engine) as session:
        level = snapshot_isolation_level(engine)
        if level is not None:
            session.connection(execution_options={"isolation_level": level})
        yield session


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a synchronous service function on a background thread."""
    return await asyncio.to_thread(func, *args, **kwargs)
