"""
Extraction Domain - Document to field-keyed result extraction.

This domain handles:
- Document payloads
- Provider configuration
- Provider selection and invocation
- Post-parse validation of provider output
"""

from .contracts import ChatBackend, Extractor, StructuredBackend
from .extractor import TemplateExtractor
from .models import (
    DocumentPayload,
    ExtractionFailure,
    ExtractionOutcome,
    ExtractionSettings,
    ExtractionSuccess,
    GenericChatProvider,
    Invocation,
    InvocationState,
    ProviderKind,
    StructuredProvider,
    ValidatedResult,
    mask_secret,
)
from .validation import coerce_value, validate_result

__all__ = [
    # Contracts
    "Extractor",
    "StructuredBackend",
    "ChatBackend",
    # Models
    "DocumentPayload",
    "ProviderKind",
    "StructuredProvider",
    "GenericChatProvider",
    "ExtractionSettings",
    "Invocation",
    "InvocationState",
    "ValidatedResult",
    "ExtractionSuccess",
    "ExtractionFailure",
    "ExtractionOutcome",
    "mask_secret",
    # Implementations
    "TemplateExtractor",
    "validate_result",
    "coerce_value",
]
