"""
Gemini Adapter - Structured-output provider.

This is the ONLY place that calls the Gemini API.
"""

from .client import GeminiClient, to_gemini_schema
from .models import GeminiConfig

__all__ = [
    "GeminiClient",
    "GeminiConfig",
    "to_gemini_schema",
]
