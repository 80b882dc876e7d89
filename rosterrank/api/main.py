"""
rosterrank.api.main — FastAPI application entry point
======================================================

Run with::

    uvicorn rosterrank.api.main:app --reload --port 8000

or ``python -m rosterrank`` to use the port and log level in config.yaml.

Ranking errors map onto HTTP statuses in one place:

    ScoreValidationError → 422    ConfigurationError → 400
    ConflictError        → 409    NotFoundError      → 404
    PersistenceError     → 503
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

from rosterrank import __version__  # noqa: E402
from rosterrank.api.deps import get_engine  # noqa: E402
from rosterrank.api.routes.domains import router as domains_router  # noqa: E402
from rosterrank.api.routes.matches import router as matches_router  # noqa: E402
from rosterrank.api.routes.rankings import router as rankings_router  # noqa: E402
from rosterrank.errors import (  # noqa: E402
    ConfigurationError,
    ConflictError,
    NotFoundError,
    PersistenceError,
    RankingError,
    ScoreValidationError,
)

logger = logging.getLogger(__name__)

_ERROR_STATUS: tuple[tuple[type[RankingError], int], ...] = (
    (ScoreValidationError, 422),
    (ConfigurationError, 400),
    (ConflictError, 409),
    (NotFoundError, 404),
    (PersistenceError, 503),
)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env with safe defaults.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine."""
    engine = get_engine()
    logger.info("RosterRank API started — engine ready (%s)", engine.url.database)
    yield
    logger.info("RosterRank API shutting down")


app = FastAPI(
    title="RosterRank API",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RankingError)
async def ranking_error_handler(request: Request, exc: RankingError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in _ERROR_STATUS if isinstance(exc, error_type)), 400
    )
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.user_message, "error": type(exc).__name__},
    )


app.include_router(domains_router, prefix="/api")
app.include_router(rankings_router, prefix="/api")
app.include_router(matches_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
