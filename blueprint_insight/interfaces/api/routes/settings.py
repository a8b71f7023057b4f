"""
Settings Routes - Provider selection, system prompt and temperature.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends
from pydantic import ValidationError

from blueprint_insight.adapters.sqlite import SQLiteStore
from blueprint_insight.config import ConfigurationError
from blueprint_insight.domains.extraction import ExtractionSettings, GenericChatProvider, mask_secret
from blueprint_insight.interfaces.api.deps import get_store

router = APIRouter()


@router.get("")
async def get_settings(store: SQLiteStore = Depends(get_store)) -> dict[str, Any]:
    """Current extraction settings, with the endpoint API key masked."""
    config = await store.load_settings()
    return config.redacted()


@router.put("")
async def update_settings(
    payload: dict[str, Any] = Body(...),
    store: SQLiteStore = Depends(get_store),
) -> dict[str, Any]:
    """
    Replace extraction settings.

    Accepts either the stored shape (`provider` is an object tagged with
    `provider`) or the flat browser shape (`provider: "gemini"|"openai"`,
    `openai: {baseUrl, apiKey, model}`, `systemPrompt`, `temperature`).
    """
    if isinstance(payload.get("provider"), dict):
        try:
            config = ExtractionSettings.model_validate(payload)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid extraction settings: {e.errors()[0]['msg']}",
                {"errors": e.errors(include_url=False, include_context=False)},
            ) from e
    else:
        config = ExtractionSettings.from_app_settings(payload)

    current = await store.load_settings()
    if (
        isinstance(config.provider, GenericChatProvider)
        and isinstance(current.provider, GenericChatProvider)
        and config.provider.api_key == mask_secret(current.provider.api_key)
    ):
        # A masked key echoed back from GET keeps the stored key
        provider = config.provider.model_copy(update={"api_key": current.provider.api_key})
        config = config.model_copy(update={"provider": provider})

    saved = await store.save_settings(config)
    return saved.redacted()
