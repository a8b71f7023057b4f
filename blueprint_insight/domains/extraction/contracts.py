"""
Extraction Contracts - Interfaces for extraction domain.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from blueprint_insight.domains.templates import ExtractionField

from .models import DocumentPayload, ExtractionOutcome, ExtractionSettings, GenericChatProvider


@runtime_checkable
class StructuredBackend(Protocol):
    """Provider that accepts an explicit output schema."""

    async def invoke(
        self,
        document: DocumentPayload,
        schema: dict[str, Any],
        system_prompt: str,
        temperature: float,
    ) -> dict[str, Any]:
        """Return the provider's JSON object for `document`."""
        ...


@runtime_checkable
class ChatBackend(Protocol):
    """Provider that is only told the output shape through the prompt."""

    async def invoke(
        self,
        document: DocumentPayload,
        prompt: str,
        temperature: float,
        provider: GenericChatProvider,
    ) -> dict[str, Any]:
        """Return the JSON object parsed from the first choice."""
        ...


@runtime_checkable
class Extractor(Protocol):
    """
    Contract for the extraction entry point.

    Example:
        >>> class MyExtractor:
        ...     async def extract(self, document, fields, config) -> ExtractionOutcome:
        ...         ...
        >>> assert isinstance(MyExtractor(), Extractor)
    """

    async def extract(
        self,
        document: DocumentPayload,
        fields: Sequence[ExtractionField],
        config: ExtractionSettings,
    ) -> ExtractionOutcome:
        """
        Extract every field from one document.

        Returns:
            Success with a field-keyed mapping, or a classified failure.
            Never raises for provider or configuration problems.
        """
        ...
