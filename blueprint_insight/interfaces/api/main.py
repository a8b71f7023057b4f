"""
FastAPI Main Application - REST backend for the browser client.

Run with: uvicorn blueprint_insight.interfaces.api.main:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from blueprint_insight import __version__
from blueprint_insight.config import get_settings

from .deps import cleanup_services, init_services
from .middleware import (
    ErrorHandlerMiddleware,
    LatencyMiddleware,
    RequestIDMiddleware,
)
from .routes import extraction, health, settings, templates

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    config = get_settings()
    logger.info("Starting BluePrint Insight API...")
    logger.info("  Database: %s", config.db_path)
    logger.info("  Structured model: %s", config.gemini_model)
    if not config.api_key:
        logger.warning("  API_KEY is not set; structured extraction will fail")

    await init_services()
    logger.info("  Services initialized")

    yield

    logger.info("Shutting down BluePrint Insight API...")
    await cleanup_services()


def create_app() -> FastAPI:
    """Create FastAPI application."""
    config = get_settings()

    app = FastAPI(
        title="BluePrint Insight API",
        description="Template-driven field extraction from technical drawings",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # First added = innermost
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LatencyMiddleware)
    app.add_middleware(RequestIDMiddleware)

    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:8000",
    ]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_origin_regex=r"http://(localhost|127\.0\.0\.1):\d+" if config.api_debug else None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(templates.router, prefix="/api/templates", tags=["Templates"])
    app.include_router(settings.router, prefix="/api/settings", tags=["Settings"])
    app.include_router(extraction.router, prefix="/api/extraction", tags=["Extraction"])

    return app


app = create_app()
