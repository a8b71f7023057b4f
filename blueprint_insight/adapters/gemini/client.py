"""
Gemini Client - Structured-output provider adapter.

This is the only place that calls the Gemini API. The provider receives an
explicit output schema and is trusted to answer with conforming JSON.

Features:
- Inline document bytes tagged with their MIME type
- Response schema + temperature per request
- No retries: a failed call is reported once
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any

import google.generativeai as genai

from blueprint_insight.config.errors import (
    ConfigurationError,
    ProviderError,
    ResponseParseError,
)

from .models import GeminiConfig

if TYPE_CHECKING:
    from blueprint_insight.domains.extraction.models import DocumentPayload

logger = logging.getLogger(__name__)

__all__ = ["GeminiClient", "to_gemini_schema"]


def to_gemini_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Rewrite JSON-schema type names into the SDK's enum spelling."""
    converted: dict[str, Any] = {}
    for key, value in schema.items():
        if key == "type" and isinstance(value, str):
            converted[key] = value.upper()
        elif key == "properties" and isinstance(value, dict):
            converted[key] = {name: to_gemini_schema(sub) for name, sub in value.items()}
        elif key == "items" and isinstance(value, dict):
            converted[key] = to_gemini_schema(value)
        else:
            converted[key] = value
    return converted


class GeminiClient:
    """
    Gemini client for schema-constrained extraction.

    Example:
        >>> client = GeminiClient(api_key=settings.api_key)
        >>> data = await client.invoke(document, schema, "Extract fields", 0.1)
    """

    def __init__(
        self,
        api_key: str | None,
        config: GeminiConfig | None = None,
    ) -> None:
        """
        Initialize Gemini client.

        Args:
            api_key: Provider API key, taken from the environment by callers
            config: Client configuration. Uses defaults if None.
        """
        self.api_key = api_key
        self.config = config or GeminiConfig()

        logger.debug("GeminiClient initialized: model=%s", self.config.model)

    def _get_model(self, schema: dict[str, Any], temperature: float) -> genai.GenerativeModel:
        """Create a model bound to this request's schema and temperature."""
        genai.configure(api_key=self.api_key)
        return genai.GenerativeModel(
            model_name=self.config.model,
            generation_config=genai.GenerationConfig(
                response_mime_type="application/json",
                response_schema=to_gemini_schema(schema),
                temperature=temperature,
            ),
        )

    async def invoke(
        self,
        document: DocumentPayload,
        schema: dict[str, Any],
        system_prompt: str,
        temperature: float,
    ) -> dict[str, Any]:
        """
        Run one structured extraction.

        Args:
            document: Document bytes and MIME type
            schema: Output schema from `compile_structured_schema`
            system_prompt: Instruction text sent alongside the document
            temperature: Sampling temperature

        Returns:
            Parsed JSON object. An empty response yields {}.

        Raises:
            ConfigurationError: No API key configured
            ProviderError: The SDK call failed
            ResponseParseError: Response text is not a JSON object
        """
        if not self.api_key:
            raise ConfigurationError("API Key is missing")

        model = self._get_model(schema, temperature)
        contents = [
            {"mime_type": document.mime_type, "data": document.data},
            system_prompt,
        ]
        request_options = (
            {"timeout": self.config.timeout_seconds} if self.config.timeout_seconds else None
        )

        logger.info(
            "Gemini request: model=%s mime=%s bytes=%d fields=%d",
            self.config.model,
            document.mime_type,
            len(document.data),
            len(schema.get("properties", {})),
        )

        try:
            response = await asyncio.to_thread(
                model.generate_content,
                contents,
                request_options=request_options,
            )
        except Exception as e:
            logger.error("Gemini extraction error: %s", e)
            raise ProviderError(f"Gemini API error: {e}") from e

        try:
            text = response.text
        except ValueError as e:
            # No candidate parts, e.g. the prompt was blocked
            raise ResponseParseError(f"Gemini returned no content: {e}") from e

        return self._parse(text)

    @staticmethod
    def _parse(text: str | None) -> dict[str, Any]:
        """Parse response text as a JSON object."""
        if not text or not text.strip():
            logger.warning("Gemini returned an empty response; treating as {}")
            return {}

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ResponseParseError(f"Invalid JSON from Gemini: {e}") from e

        if not isinstance(data, dict):
            raise ResponseParseError(
                f"Expected a JSON object from Gemini, got {type(data).__name__}"
            )
        return data
