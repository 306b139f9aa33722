"""
Topic Index Application Entry Point

This module defines the FastAPI application instance, registers all routers,
configures exception handling, and provides a test-friendly application
factory.

Design Goals
------------
- Deterministic startup
- Optional index warm-up from the configured record source
- Centralized router registration
- Global exception safety net
- Test-friendly via create_app()
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from . import __version__
from .api import health_routes, search_routes, topic_routes
from .api.dependencies import get_topic_index
from .config import settings
from .core.errors import register_exception_handlers
from .sources import load_into


logger = logging.getLogger("topic_index.app")


# ---------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Load the configured record source before serving, and release the
    query worker pool on shutdown.

    The index is resolved through ``dependency_overrides`` so the lifespan
    and the routes always share one instance.

    A broken record source fails startup instead of serving an empty index.
    """
    logger.info("Starting topic-index %s", __version__)

    resolve = app.dependency_overrides.get(get_topic_index, get_topic_index)
    index = resolve()
    if settings.records_path:
        count = load_into(index, settings.records_path)
        logger.info("Indexed %d topics from %s", count, settings.records_path)

    yield

    logger.info("Shutting down topic-index")
    index.close()


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(
        title="topic-index",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    app.include_router(health_routes.router)
    app.include_router(search_routes.router)
    app.include_router(topic_routes.router)

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn)
# ---------------------------------------------------------------------

app = create_app()


def run() -> None:
    """Serve the default application with Uvicorn."""
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
