"""
Configuration - Application settings and error taxonomy.
"""

from .errors import (
    BatchInProgressError,
    BlueprintError,
    ConfigurationError,
    ErrorCode,
    NetworkError,
    NotFoundError,
    ProviderError,
    ProviderHTTPError,
    ResponseParseError,
    SchemaViolationError,
    StorageError,
    TemplateValidationError,
)
from .settings import DEFAULT_SYSTEM_PROMPT, Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "DEFAULT_SYSTEM_PROMPT",
    # Errors
    "ErrorCode",
    "BlueprintError",
    "ConfigurationError",
    "ProviderHTTPError",
    "ProviderError",
    "NetworkError",
    "ResponseParseError",
    "SchemaViolationError",
    "TemplateValidationError",
    "BatchInProgressError",
    "NotFoundError",
    "StorageError",
]
