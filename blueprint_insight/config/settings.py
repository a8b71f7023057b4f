"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables and .env files.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_PROMPT = (
    "You are an expert engineering assistant. Analyze the provided document "
    "(technical drawing) and extract the specific fields requested. "
    "The document may be an image or a multi-page PDF. "
    "If a field is not found or not applicable, return null or appropriate "
    "empty value for the type."
)


class Settings(BaseSettings):
    """Application settings."""

    # Structured provider credential, read from the process environment only
    api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY"),
    )
    gemini_model: str = "gemini-3-flash-preview"

    # Paths
    db_path: Path = Path("data/blueprint_insight.db")

    # Extraction defaults for a fresh store
    default_system_prompt: str = DEFAULT_SYSTEM_PROMPT
    default_temperature: float = Field(default=0.1, ge=0.0, le=1.0)

    # None leaves provider calls unbounded
    http_timeout_seconds: float | None = None

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
