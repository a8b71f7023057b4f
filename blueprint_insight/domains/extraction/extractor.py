"""
Template Extractor - Single entry point for field extraction.

Selects the provider adapter from the active settings, compiles the template
fields into that provider's request shape, and turns whatever happens into an
ExtractionOutcome. Nothing here retries.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import Any

from blueprint_insight.adapters.chat import ChatCompletionClient
from blueprint_insight.adapters.gemini import GeminiClient, GeminiConfig
from blueprint_insight.config import BlueprintError, ConfigurationError, ErrorCode, Settings, get_settings
from blueprint_insight.domains.templates import (
    ExtractionField,
    compile_structured_schema,
    compile_text_contract,
)

from .contracts import ChatBackend, StructuredBackend
from .models import (
    DocumentPayload,
    ExtractionFailure,
    ExtractionOutcome,
    ExtractionSettings,
    ExtractionSuccess,
    GenericChatProvider,
    Invocation,
    InvocationState,
    StructuredProvider,
)
from .validation import validate_result

logger = logging.getLogger(__name__)

__all__ = ["TemplateExtractor"]


class TemplateExtractor:
    """
    Extraction orchestrator.

    Example:
        >>> extractor = TemplateExtractor(get_settings())
        >>> outcome = await extractor.extract(document, template.fields, config)
        >>> if outcome.ok:
        ...     print(outcome.data)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        structured: StructuredBackend | None = None,
        chat: ChatBackend | None = None,
    ) -> None:
        """
        Initialize extractor.

        Args:
            settings: Application settings (structured API key, model, timeout)
            structured: Structured-output backend. Defaults to GeminiClient.
            chat: Chat-completion backend. Defaults to ChatCompletionClient.
        """
        self._settings = settings or get_settings()
        self._structured = structured or GeminiClient(
            api_key=self._settings.api_key,
            config=GeminiConfig(
                model=self._settings.gemini_model,
                timeout_seconds=self._settings.http_timeout_seconds,
            ),
        )
        self._chat = chat or ChatCompletionClient(timeout=self._settings.http_timeout_seconds)

    async def extract(
        self,
        document: DocumentPayload,
        fields: Sequence[ExtractionField],
        config: ExtractionSettings,
    ) -> ExtractionOutcome:
        """
        Extract every field from one document.

        Args:
            document: Document to read
            fields: Template fields; not modified
            config: Provider selection, system prompt and temperature

        Returns:
            ExtractionSuccess or ExtractionFailure
        """
        invocation = Invocation(document=document.display_name, provider=config.kind)
        start_time = time.time()
        invocation.advance(InvocationState.IN_FLIGHT)
        logger.info(
            "Starting extraction: %s provider=%s fields=%d",
            invocation.document,
            invocation.provider.value,
            len(fields),
        )

        try:
            raw = await self._dispatch(document, fields, config)
            validated = validate_result(raw, fields)
        except BlueprintError as e:
            invocation.advance(InvocationState.FAILED)
            logger.error("Extraction failed: %s - %s", invocation.document, e)
            return ExtractionFailure(
                error_code=e.code,
                message=e.message,
                provider=invocation.provider,
                duration_seconds=time.time() - start_time,
            )
        except Exception as e:
            invocation.advance(InvocationState.FAILED)
            logger.exception("Unexpected extraction error: %s", invocation.document)
            return ExtractionFailure(
                error_code=ErrorCode.INTERNAL_ERROR,
                message=str(e) or type(e).__name__,
                provider=invocation.provider,
                duration_seconds=time.time() - start_time,
            )

        invocation.advance(InvocationState.COMPLETED)
        duration = time.time() - start_time
        logger.info(
            "Extraction complete: %s - %d fields, %d missing, %d warnings in %.1fs",
            invocation.document,
            len(validated.data),
            len(validated.missing),
            len(validated.warnings),
            duration,
        )

        return ExtractionSuccess(
            data=validated.data,
            warnings=validated.warnings,
            missing=validated.missing,
            provider=invocation.provider,
            duration_seconds=duration,
        )

    async def _dispatch(
        self,
        document: DocumentPayload,
        fields: Sequence[ExtractionField],
        config: ExtractionSettings,
    ) -> dict[str, Any]:
        """Compile the request for the configured provider and call it."""
        provider = config.provider

        if isinstance(provider, GenericChatProvider):
            prompt = compile_text_contract(fields, config.system_prompt)
            return await self._chat.invoke(document, prompt, config.temperature, provider)

        if isinstance(provider, StructuredProvider):
            schema = compile_structured_schema(fields)
            return await self._structured.invoke(
                document, schema, config.system_prompt, config.temperature
            )

        raise ConfigurationError(f"Unsupported provider configuration: {provider!r}")

    async def close(self) -> None:
        """Release HTTP resources held by the backends."""
        close = getattr(self._chat, "close", None)
        if close is not None:
            await close()
