"""
Extraction Models - Data types for extraction domain.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import mimetypes
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from blueprint_insight.config.errors import (
    ConfigurationError,
    ErrorCode,
)
from blueprint_insight.config.settings import DEFAULT_SYSTEM_PROMPT, Settings

SUPPORTED_MIME_PREFIXES = ("image/",)
SUPPORTED_MIME_TYPES = ("application/pdf",)


class DocumentPayload(BaseModel):
    """Document bytes plus MIME type. Content is never mutated."""

    data: bytes = Field(repr=False)
    mime_type: str
    filename: str | None = None

    model_config = {"frozen": True}

    @field_validator("mime_type")
    @classmethod
    def mime_supported(cls, value: str) -> str:
        value = value.strip().lower()
        if value in SUPPORTED_MIME_TYPES or value.startswith(SUPPORTED_MIME_PREFIXES):
            return value
        raise ValueError(f"unsupported document type: {value}")

    @classmethod
    def from_path(cls, path: str | Path, mime_type: str | None = None) -> DocumentPayload:
        """Read a document from disk, guessing the MIME type from its suffix."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        mime_type = mime_type or mimetypes.guess_type(path.name)[0]
        if mime_type is None:
            raise ValueError(f"Cannot determine document type of {path.name}")

        return cls(data=path.read_bytes(), mime_type=mime_type, filename=path.name)

    @classmethod
    def from_base64(
        cls,
        encoded: str,
        mime_type: str | None = None,
        filename: str | None = None,
    ) -> DocumentPayload:
        """
        Decode a base64 payload or a `data:<mime>;base64,<payload>` URL.

        The MIME type embedded in a data URL is used when none is given.
        """
        if encoded.startswith("data:") and "," in encoded:
            header, encoded = encoded.split(",", 1)
            if mime_type is None:
                mime_type = header[len("data:"):].split(";", 1)[0] or None
        if mime_type is None:
            raise ValueError("mime_type is required for a bare base64 payload")

        try:
            data = base64.b64decode(encoded, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 document payload: {e}") from e

        return cls(data=data, mime_type=mime_type, filename=filename)

    def to_base64(self) -> str:
        """Bare base64 payload, without a data URL prefix."""
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        """`data:<mime>;base64,<payload>` form."""
        return f"data:{self.mime_type};base64,{self.to_base64()}"

    @property
    def sha256(self) -> str:
        """Hex digest used to identify the document in exports."""
        return hashlib.sha256(self.data).hexdigest()

    @property
    def display_name(self) -> str:
        return self.filename or f"document-{self.sha256[:12]}"


# --- Provider configuration ---


class ProviderKind(str, Enum):
    """Provider tags."""

    STRUCTURED = "structured"
    GENERIC_CHAT = "genericChat"


class StructuredProvider(BaseModel):
    """Provider with native JSON-schema output. The API key comes from the environment."""

    provider: Literal["structured"] = "structured"

    model_config = {"frozen": True}


class GenericChatProvider(BaseModel):
    """OpenAI-compatible chat-completion endpoint."""

    provider: Literal["genericChat"] = "genericChat"
    endpoint_base: str = Field(min_length=1, alias="baseUrl")
    api_key: str = Field(min_length=1, alias="apiKey", repr=False)
    model_name: str = Field(min_length=1, alias="model")

    model_config = {"frozen": True, "populate_by_name": True, "str_strip_whitespace": True}


ProviderConfig = Annotated[
    Union[StructuredProvider, GenericChatProvider],
    Field(discriminator="provider"),
]

_LEGACY_PROVIDERS = {"gemini": ProviderKind.STRUCTURED, "openai": ProviderKind.GENERIC_CHAT}


def mask_secret(secret: str) -> str:
    """Show at most the first four characters of a credential."""
    return f"{secret[:4]}..." if len(secret) > 8 else "****"


class ExtractionSettings(BaseModel):
    """Active provider plus the shared prompt and sampling parameters."""

    provider: ProviderConfig = Field(default_factory=StructuredProvider)
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    temperature: float = Field(default=0.1, ge=0.0, le=1.0)

    model_config = {"frozen": True}

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind(self.provider.provider)

    def redacted(self) -> dict[str, Any]:
        """JSON-ready dump by alias with the endpoint API key masked."""
        dumped = self.model_dump(mode="json", by_alias=True)
        if isinstance(self.provider, GenericChatProvider):
            dumped["provider"]["apiKey"] = mask_secret(self.provider.api_key)
        return dumped

    @classmethod
    def from_settings(cls, settings: Settings) -> ExtractionSettings:
        """Defaults for a fresh store, taken from the application settings."""
        return cls(
            system_prompt=settings.default_system_prompt,
            temperature=settings.default_temperature,
        )

    @classmethod
    def from_app_settings(cls, data: dict[str, Any]) -> ExtractionSettings:
        """
        Build settings from the flat browser settings shape.

        Accepts `{"provider": "gemini"|"openai"|"structured"|"genericChat",
        "openai"|"genericChat": {baseUrl, apiKey, model}, "systemPrompt",
        "temperature"}`.

        Raises:
            ConfigurationError: Unknown provider or incomplete endpoint settings
        """
        if not isinstance(data, dict):
            raise ConfigurationError(f"Settings must be an object, got {type(data).__name__}")

        tag = data.get("provider", ProviderKind.STRUCTURED.value)
        if not isinstance(tag, str):
            raise ConfigurationError(f"Unknown provider: {tag!r}")
        kind = _LEGACY_PROVIDERS.get(tag)
        if kind is None:
            try:
                kind = ProviderKind(tag)
            except ValueError as e:
                raise ConfigurationError(f"Unknown provider: {tag}") from e

        if kind is ProviderKind.GENERIC_CHAT:
            endpoint = data.get("genericChat") or data.get("openai") or {}
            if not isinstance(endpoint, dict):
                raise ConfigurationError(
                    f"Endpoint settings must be an object, got {type(endpoint).__name__}",
                    {"provider": kind.value},
                )
            provider: Any = {**endpoint, "provider": kind.value}
        else:
            provider = {"provider": kind.value}

        payload: dict[str, Any] = {"provider": provider}
        if data.get("systemPrompt") is not None:
            payload["system_prompt"] = data["systemPrompt"]
        if data.get("temperature") is not None:
            payload["temperature"] = data["temperature"]

        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            missing = [
                ".".join(str(part) for part in err["loc"][2:]) or str(err["loc"][-1])
                for err in e.errors()
            ]
            raise ConfigurationError(
                f"Invalid extraction settings: {', '.join(missing)}",
                {"provider": kind.value},
            ) from e


# --- Outcomes ---


class InvocationState(str, Enum):
    """Lifecycle of a single extraction call."""

    NOT_STARTED = "not_started"
    IN_FLIGHT = "in_flight"
    COMPLETED = "completed"
    FAILED = "failed"


_TRANSITIONS = {
    InvocationState.NOT_STARTED: {InvocationState.IN_FLIGHT},
    InvocationState.IN_FLIGHT: {InvocationState.COMPLETED, InvocationState.FAILED},
    InvocationState.COMPLETED: set(),
    InvocationState.FAILED: set(),
}


class Invocation(BaseModel):
    """State record for one (document, template, settings) extraction."""

    document: str
    provider: ProviderKind
    state: InvocationState = InvocationState.NOT_STARTED

    def advance(self, state: InvocationState) -> None:
        """Move to `state`; terminal states cannot be left."""
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal transition {self.state.value} -> {state.value}")
        self.state = state

    @property
    def finished(self) -> bool:
        return not _TRANSITIONS[self.state]


class ValidatedResult(BaseModel):
    """Output of the post-parse validation pass."""

    data: dict[str, Any]
    warnings: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)


class ExtractionSuccess(BaseModel):
    """Field-keyed result mapping."""

    kind: Literal["success"] = "success"
    data: dict[str, Any]
    warnings: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list, description="Keys absent from the response")
    provider: ProviderKind
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return True


class ExtractionFailure(BaseModel):
    """Classified failure with a message suitable for display."""

    kind: Literal["failure"] = "failure"
    error_code: ErrorCode
    message: str
    provider: ProviderKind | None = None
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return False


ExtractionOutcome = Annotated[
    Union[ExtractionSuccess, ExtractionFailure],
    Field(discriminator="kind"),
]

