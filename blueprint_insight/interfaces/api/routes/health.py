"""
Health Routes - System health and status endpoints.
"""

from typing import Any

from fastapi import APIRouter

from blueprint_insight import __version__

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "blueprint-insight"}


@router.get("/api")
async def api_info() -> dict[str, Any]:
    """API info endpoint."""
    return {
        "name": "BluePrint Insight API",
        "version": __version__,
        "description": "Template-driven field extraction from technical drawings",
        "docs": "/docs",
    }
