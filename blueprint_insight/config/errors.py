"""
Error Taxonomy - Consistent error codes across the application.

Usage:
    from blueprint_insight.config.errors import ConfigurationError

    raise ConfigurationError("API Key is missing")
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Provider configuration
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Provider call errors
    PROVIDER_HTTP_ERROR = "PROVIDER_HTTP_ERROR"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    PARSE_ERROR = "PARSE_ERROR"

    # Template errors
    SCHEMA_VIOLATION = "SCHEMA_VIOLATION"
    TEMPLATE_INVALID = "TEMPLATE_INVALID"

    # Batch errors
    BATCH_IN_PROGRESS = "BATCH_IN_PROGRESS"

    # Storage errors
    STORAGE_READ_FAILED = "STORAGE_READ_FAILED"
    STORAGE_WRITE_FAILED = "STORAGE_WRITE_FAILED"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"


class BlueprintError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(BlueprintError):
    """A required credential or endpoint setting is missing."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.CONFIGURATION_ERROR, message, details)


class ProviderHTTPError(BlueprintError):
    """The provider answered with a non-success HTTP status."""

    def __init__(
        self,
        message: str,
        status_code: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(
            ErrorCode.PROVIDER_HTTP_ERROR,
            message,
            {"status_code": status_code, **(details or {})},
        )


class ProviderError(BlueprintError):
    """The provider SDK rejected or failed the request."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.PROVIDER_ERROR, message, details)


class NetworkError(BlueprintError):
    """The provider endpoint could not be reached at all."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.NETWORK_ERROR, message, details)


class ResponseParseError(BlueprintError):
    """The provider response was not the JSON object we asked for."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.PARSE_ERROR, message, details)


class SchemaViolationError(BlueprintError):
    """A field kind reached the schema compiler that it cannot map."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.SCHEMA_VIOLATION, message, details)


class TemplateValidationError(BlueprintError):
    """Template failed validation (empty or duplicate field keys, bad JSON)."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.TEMPLATE_INVALID, message, details)


class BatchInProgressError(BlueprintError):
    """A batch run was requested while another one is still running."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.BATCH_IN_PROGRESS, message, details)


class NotFoundError(BlueprintError):
    """Requested entity does not exist."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.NOT_FOUND, message, details)


class StorageError(BlueprintError):
    """Storage/database errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        write: bool = False,
    ) -> None:
        code = ErrorCode.STORAGE_WRITE_FAILED if write else ErrorCode.STORAGE_READ_FAILED
        super().__init__(code, message, details)
