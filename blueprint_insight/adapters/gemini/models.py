"""
Gemini Models - Configuration for the structured-output provider.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class GeminiConfig(BaseModel):
    """Configuration for Gemini client."""

    model: str = Field(default="gemini-3-flash-preview")
    timeout_seconds: float | None = Field(default=None, gt=0)

    model_config = {"frozen": True}
