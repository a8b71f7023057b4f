"""
Tests for Gemini Client adapter.
"""

from __future__ import annotations

from collections.abc import Generator
from unittest.mock import MagicMock, PropertyMock, patch

import pytest

from blueprint_insight.config.errors import (
    ConfigurationError,
    ProviderError,
    ResponseParseError,
)
from blueprint_insight.domains.extraction.models import DocumentPayload

from .client import GeminiClient, to_gemini_schema
from .models import GeminiConfig

SCHEMA = {
    "type": "object",
    "properties": {
        "width": {"type": "number", "description": "Width"},
        "notes": {"type": "array", "items": {"type": "string"}, "description": "Notes"},
    },
    "required": ["width", "notes"],
}


@pytest.fixture
def mock_genai() -> Generator[MagicMock, None, None]:
    """Mock the google.generativeai module."""
    with patch("blueprint_insight.adapters.gemini.client.genai") as mock:
        mock_model = MagicMock()
        mock_model.generate_content.return_value = MagicMock(
            text='{"width": 12, "notes": null}'
        )
        mock.GenerativeModel.return_value = mock_model
        yield mock


@pytest.fixture
def document() -> DocumentPayload:
    return DocumentPayload(data=b"%PDF-1.7 drawing", mime_type="application/pdf", filename="a.pdf")


@pytest.fixture
def client(mock_genai: MagicMock) -> GeminiClient:
    """Create a GeminiClient with mocked dependencies."""
    return GeminiClient(api_key="test-key")


# --- Model Tests ---


def test_gemini_config_defaults() -> None:
    """Test GeminiConfig default values."""
    config = GeminiConfig()
    assert config.model == "gemini-3-flash-preview"
    assert config.timeout_seconds is None


def test_gemini_config_rejects_non_positive_timeout() -> None:
    """Test timeout must be positive when set."""
    with pytest.raises(ValueError):
        GeminiConfig(timeout_seconds=0)


def test_to_gemini_schema_uppercases_types() -> None:
    """Test nested type names are converted, other keys untouched."""
    converted = to_gemini_schema(SCHEMA)
    assert converted["type"] == "OBJECT"
    assert converted["properties"]["width"] == {"type": "NUMBER", "description": "Width"}
    assert converted["properties"]["notes"]["items"] == {"type": "STRING"}
    assert converted["required"] == ["width", "notes"]
    assert SCHEMA["type"] == "object"  # input not mutated


# --- Invoke Tests ---


async def test_invoke_returns_parsed_json(
    client: GeminiClient, mock_genai: MagicMock, document: DocumentPayload
) -> None:
    """Test a conforming response is returned unmodified."""
    result = await client.invoke(document, SCHEMA, "Extract.", 0.2)
    assert result == {"width": 12, "notes": None}


async def test_invoke_request_shape(
    client: GeminiClient, mock_genai: MagicMock, document: DocumentPayload
) -> None:
    """Test document bytes, prompt, schema and temperature are all sent."""
    await client.invoke(document, SCHEMA, "Extract.", 0.2)

    mock_genai.configure.assert_called_once_with(api_key="test-key")
    config_kwargs = mock_genai.GenerationConfig.call_args.kwargs
    assert config_kwargs["response_mime_type"] == "application/json"
    assert config_kwargs["response_schema"]["type"] == "OBJECT"
    assert config_kwargs["temperature"] == 0.2

    model_kwargs = mock_genai.GenerativeModel.call_args.kwargs
    assert model_kwargs["model_name"] == "gemini-3-flash-preview"

    contents = mock_genai.GenerativeModel.return_value.generate_content.call_args.args[0]
    assert contents[0] == {"mime_type": "application/pdf", "data": b"%PDF-1.7 drawing"}
    assert contents[1] == "Extract."


async def test_invoke_missing_api_key_fails_before_call(
    mock_genai: MagicMock, document: DocumentPayload
) -> None:
    """Test a missing key is a configuration error with no network call."""
    client = GeminiClient(api_key=None)

    with pytest.raises(ConfigurationError, match="API Key is missing"):
        await client.invoke(document, SCHEMA, "Extract.", 0.1)

    mock_genai.GenerativeModel.assert_not_called()


async def test_invoke_empty_response_is_empty_object(
    client: GeminiClient, mock_genai: MagicMock, document: DocumentPayload
) -> None:
    """Test empty text is treated as {}."""
    mock_genai.GenerativeModel.return_value.generate_content.return_value = MagicMock(text="")
    assert await client.invoke(document, SCHEMA, "Extract.", 0.1) == {}


async def test_invoke_invalid_json_raises(
    client: GeminiClient, mock_genai: MagicMock, document: DocumentPayload
) -> None:
    """Test malformed JSON is a parse error."""
    mock_genai.GenerativeModel.return_value.generate_content.return_value = MagicMock(
        text="width is 12"
    )
    with pytest.raises(ResponseParseError):
        await client.invoke(document, SCHEMA, "Extract.", 0.1)


async def test_invoke_non_object_json_raises(
    client: GeminiClient, mock_genai: MagicMock, document: DocumentPayload
) -> None:
    """Test a JSON array is rejected."""
    mock_genai.GenerativeModel.return_value.generate_content.return_value = MagicMock(
        text="[1, 2]"
    )
    with pytest.raises(ResponseParseError, match="list"):
        await client.invoke(document, SCHEMA, "Extract.", 0.1)


async def test_invoke_blocked_response_raises(
    client: GeminiClient, mock_genai: MagicMock, document: DocumentPayload
) -> None:
    """Test a response without parts is a parse error, not {}."""
    response = MagicMock()
    type(response).text = PropertyMock(side_effect=ValueError("no parts"))
    mock_genai.GenerativeModel.return_value.generate_content.return_value = response

    with pytest.raises(ResponseParseError, match="no parts"):
        await client.invoke(document, SCHEMA, "Extract.", 0.1)


async def test_invoke_sdk_error_is_not_retried(
    client: GeminiClient, mock_genai: MagicMock, document: DocumentPayload
) -> None:
    """Test SDK failures surface once as ProviderError."""
    generate = mock_genai.GenerativeModel.return_value.generate_content
    generate.side_effect = Exception("403 API key not valid")

    with pytest.raises(ProviderError, match="API key not valid"):
        await client.invoke(document, SCHEMA, "Extract.", 0.1)

    assert generate.call_count == 1
