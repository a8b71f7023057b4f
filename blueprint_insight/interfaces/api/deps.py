"""
API Dependencies - Dependency injection for FastAPI routes.

Provides singleton instances of the store and the extractor.
"""

from __future__ import annotations

from functools import lru_cache

from blueprint_insight.adapters.sqlite import SQLiteStore
from blueprint_insight.config import get_settings
from blueprint_insight.domains.extraction import ExtractionSettings, TemplateExtractor


@lru_cache
def get_store() -> SQLiteStore:
    """Get template/settings store singleton."""
    settings = get_settings()
    return SQLiteStore(
        settings.db_path,
        default_settings=ExtractionSettings.from_settings(settings),
    )


@lru_cache
def get_extractor() -> TemplateExtractor:
    """Get extractor singleton."""
    return TemplateExtractor(get_settings())


async def init_services() -> None:
    """
    Initialize services on startup.

    This should be called from the FastAPI lifespan handler.
    """
    store = get_store()
    await store.initialize()


async def cleanup_services() -> None:
    """Cleanup services on shutdown."""
    await get_extractor().close()
    await get_store().close()
