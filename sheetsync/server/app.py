"""FastAPI application for the content service.

Routes:

- ``GET /api/health``
- ``GET|PUT /api/content`` (see :mod:`sheetsync.server.routers.content`)
- ``GET /auth/status`` and ``POST /auth/logout``
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from sheetsync.log import setup_logging
from sheetsync.server.db.engine import create_engine, create_session_factory
from sheetsync.server.routers.auth import router as auth_router
from sheetsync.server.routers.content import router as content_router
from sheetsync.settings import get_settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    setup_logging(settings.log_level, json_logs=settings.log_json)

    engine = create_engine(settings.database_url) if settings.database_url else None
    app.state.db_engine = engine
    app.state.db_session_factory = create_session_factory(engine) if engine is not None else None
    if engine is None:
        logger.warning("No SHEETSYNC_DATABASE_URL; /api/content will answer 503")
    logger.info("Content service ready on {}:{}", settings.host, settings.port)

    try:
        yield
    finally:
        if engine is not None:
            await engine.dispose()
        logger.info("Content service stopped")


api = APIRouter(prefix="/api")


@api.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


api.include_router(content_router)

app = FastAPI(title="sheetsync content service", lifespan=lifespan)
app.include_router(api)
app.include_router(auth_router)

# The editor runs on another origin in the browser build; cookies must cross it.
if frontend_url := get_settings().frontend_url:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "PUT", "POST"],
        allow_headers=["Content-Type", "Authorization"],
    )
