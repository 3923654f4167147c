"""
FastAPI application -- pitch marketplace API server.

Run locally:
    uvicorn backend.app:app --reload --port 8000

Tests build their own instance with ``create_app(storage=MemoryStorage())``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from backend.responses import PublicJSONResponse
from backend.routes import (
    ai_feedback,
    analysis,
    auth,
    events,
    interests,
    notifications,
    recommendations,
    startups,
    users,
)
from config_env import CORS_ORIGINS, LOG_LEVEL, SEED_SAMPLE_DATA, is_development
from domain.errors import (
    AnalysisParseError,
    ConflictError,
    NotFound,
    UpstreamError,
    ValidationError,
)
from domain.storage import Storage
from llm_client import LLMClient
from services.pitch_analyzer import PitchAnalyzer

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Request body/query/path prefixes dropped from error field names.
_LOCATION_ROOTS = {"body", "query", "path"}


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in _LOCATION_ROOTS]
    return ".".join(parts) or "body"


async def _request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [{"field": _field_name(e.get("loc", ())), "message": e.get("msg", "")} for e in exc.errors()]
    return PublicJSONResponse(status_code=400, content={"message": "Invalid data", "errors": errors})


async def _validation_handler(request: Request, exc: ValidationError):
    return PublicJSONResponse(status_code=400, content={"message": exc.message, "errors": exc.errors})


async def _conflict_handler(request: Request, exc: ConflictError):
    content = {"message": exc.message}
    if exc.field:
        content["errors"] = [{"field": exc.field, "message": exc.message}]
    return PublicJSONResponse(status_code=400, content=content)


async def _not_found_handler(request: Request, exc: NotFound):
    return PublicJSONResponse(status_code=404, content={"message": exc.message})


_UPSTREAM_MESSAGES = {
    UpstreamError: "AI analysis is unavailable. Please try again.",
    AnalysisParseError: "AI returned an unreadable answer. Please try again.",
}


async def _upstream_handler(request: Request, exc: Exception):
    # exception text goes to the log only
    logger.warning("AI service failure on %s %s: %s", request.method, request.url.path, exc)
    return PublicJSONResponse(
        status_code=502,
        content={"message": _UPSTREAM_MESSAGES.get(type(exc), _UPSTREAM_MESSAGES[UpstreamError])},
    )


async def _unhandled_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {"message": "Internal server error"}
    if is_development():
        content["error"] = f"{type(exc).__name__}: {exc}"
    return PublicJSONResponse(status_code=500, content=content)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if getattr(app.state, "storage", None) is None:
        from backend.database import async_session, init_db
        from data.sql_storage import SqlStorage

        await init_db()
        app.state.storage = SqlStorage(async_session)
        logger.info("Using SQL storage")

    if SEED_SAMPLE_DATA:
        from backend.seed import seed_sample_data

        await seed_sample_data(app.state.storage)

    yield

    # Shutdown
    await app.state.storage.close()
    client = getattr(app.state.analyzer, "client", None)
    if isinstance(client, LLMClient):
        await client.close()


def create_app(storage: Optional[Storage] = None, analyzer: Optional[PitchAnalyzer] = None) -> FastAPI:
    app = FastAPI(
        title="Pitch Marketplace API",
        version="1.0.0",
        description="Startups pitch, investors discover -- with AI pitch analysis",
        lifespan=lifespan,
        default_response_class=PublicJSONResponse,
    )
    app.state.storage = storage
    app.state.analyzer = analyzer or PitchAnalyzer(LLMClient())

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(ValidationError, _validation_handler)
    app.add_exception_handler(ConflictError, _conflict_handler)
    app.add_exception_handler(NotFound, _not_found_handler)
    app.add_exception_handler(UpstreamError, _upstream_handler)
    app.add_exception_handler(AnalysisParseError, _upstream_handler)
    app.add_exception_handler(Exception, _unhandled_handler)

    for module in (auth, users, startups, interests, events, ai_feedback, notifications, analysis, recommendations):
        app.include_router(module.router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "ok", "storage": type(app.state.storage).__name__}

    return app


app = create_app()
