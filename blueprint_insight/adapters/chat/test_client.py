"""
Tests for the chat-completion adapter.
"""

from __future__ import annotations

import json

import httpx
import pytest

from blueprint_insight.config.errors import (
    NetworkError,
    ProviderHTTPError,
    ResponseParseError,
)
from blueprint_insight.domains.extraction.models import DocumentPayload, GenericChatProvider

from .client import NETWORK_ERROR_MESSAGE, ChatCompletionClient, normalize_endpoint


@pytest.fixture
def document() -> DocumentPayload:
    return DocumentPayload(data=b"\x89PNG fake", mime_type="image/png", filename="sheet.png")


@pytest.fixture
def provider() -> GenericChatProvider:
    return GenericChatProvider(
        endpoint_base="https://api.example.com/v1",
        api_key="sk-test",
        model_name="vision-1",
    )


def make_client(handler) -> ChatCompletionClient:
    return ChatCompletionClient(transport=httpx.MockTransport(handler))


def completion(content) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


# --- URL Normalization Tests ---


def test_normalize_bare_base() -> None:
    """Test the completions path is appended to a base URL."""
    assert normalize_endpoint("https://api.example.com/v1") == (
        "https://api.example.com/v1/chat/completions"
    )


def test_normalize_full_url_unchanged() -> None:
    """Test a full completions URL is kept."""
    url = "https://api.example.com/v1/chat/completions"
    assert normalize_endpoint(url) == url


@pytest.mark.parametrize(
    "base",
    [
        "https://api.example.com/v1",
        "https://api.example.com/v1///",
        "  https://api.example.com/v1/  ",
        "https://api.example.com/v1/chat/completions/",
    ],
)
def test_normalize_is_idempotent(base: str) -> None:
    """Test normalizing twice never double-suffixes."""
    once = normalize_endpoint(base)
    assert once == "https://api.example.com/v1/chat/completions"
    assert normalize_endpoint(once) == once


# --- Request Tests ---


async def test_request_shape(document: DocumentPayload, provider: GenericChatProvider) -> None:
    """Test URL, auth header and body follow the chat-completion contract."""
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=completion('{"title": "Bracket"}'))

    client = make_client(handler)
    result = await client.invoke(document, "PROMPT", 0.3, provider)
    await client.close()

    assert result == {"title": "Bracket"}
    assert seen["url"] == "https://api.example.com/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-test"

    body = seen["body"]
    assert body["model"] == "vision-1"
    assert body["temperature"] == 0.3
    assert body["response_format"] == {"type": "json_object"}
    assert len(body["messages"]) == 1
    message = body["messages"][0]
    assert message["role"] == "user"
    assert message["content"][0] == {"type": "text", "text": "PROMPT"}
    assert message["content"][1] == {
        "type": "image_url",
        "image_url": {"url": document.to_data_url()},
    }
    assert message["content"][1]["image_url"]["url"].startswith("data:image/png;base64,")


async def test_structured_content_used_as_is(
    document: DocumentPayload, provider: GenericChatProvider
) -> None:
    """Test object content is returned without re-parsing."""
    client = make_client(lambda r: httpx.Response(200, json=completion({"width": 4})))
    assert await client.invoke(document, "P", 0.1, provider) == {"width": 4}


async def test_empty_object_content_is_returned(
    document: DocumentPayload, provider: GenericChatProvider
) -> None:
    """Test an empty object answer is data, not missing content."""
    client = make_client(lambda r: httpx.Response(200, json=completion({})))
    assert await client.invoke(document, "P", 0.1, provider) == {}


# --- Error Tests ---


async def test_http_error_message_from_body(
    document: DocumentPayload, provider: GenericChatProvider
) -> None:
    """Test the provider's error message is surfaced."""
    client = make_client(
        lambda r: httpx.Response(401, json={"error": {"message": "invalid key"}})
    )

    with pytest.raises(ProviderHTTPError) as exc_info:
        await client.invoke(document, "P", 0.1, provider)

    assert exc_info.value.message == "invalid key"
    assert exc_info.value.status_code == 401


async def test_http_error_without_body(
    document: DocumentPayload, provider: GenericChatProvider
) -> None:
    """Test the generic status message when the body is unusable."""
    client = make_client(lambda r: httpx.Response(502, text="<html>Bad gateway</html>"))

    with pytest.raises(ProviderHTTPError) as exc_info:
        await client.invoke(document, "P", 0.1, provider)

    assert exc_info.value.message == "HTTP error! status: 502"


async def test_transport_failure_is_network_error(
    document: DocumentPayload, provider: GenericChatProvider
) -> None:
    """Test connection failures are labelled distinctly from HTTP errors."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    client = make_client(handler)

    with pytest.raises(NetworkError) as exc_info:
        await client.invoke(document, "P", 0.1, provider)

    assert exc_info.value.message == NETWORK_ERROR_MESSAGE
    assert not isinstance(exc_info.value, ProviderHTTPError)


@pytest.mark.parametrize(
    "body",
    [
        {"choices": []},
        {"choices": [{"message": {"content": None}}]},
        {"choices": [{"message": {}}]},
        {"choices": [{"message": {"content": ""}}]},
        {"choices": {"a": 1}},
        {"choices": [{"message": "oops"}]},
        {"choices": ["oops"]},
        {},
    ],
)
async def test_missing_content(
    document: DocumentPayload, provider: GenericChatProvider, body: dict
) -> None:
    """Test absent content is a parse error."""
    client = make_client(lambda r: httpx.Response(200, json=body))

    with pytest.raises(ResponseParseError, match="No content received"):
        await client.invoke(document, "P", 0.1, provider)


async def test_invalid_json_content(
    document: DocumentPayload, provider: GenericChatProvider
) -> None:
    """Test prose instead of JSON is a parse error."""
    client = make_client(
        lambda r: httpx.Response(200, json=completion("Sure! The title is Bracket."))
    )

    with pytest.raises(ResponseParseError, match="invalid JSON"):
        await client.invoke(document, "P", 0.1, provider)


async def test_non_object_content(
    document: DocumentPayload, provider: GenericChatProvider
) -> None:
    """Test a JSON array is rejected."""
    client = make_client(lambda r: httpx.Response(200, json=completion("[1, 2]")))

    with pytest.raises(ResponseParseError, match="list"):
        await client.invoke(document, "P", 0.1, provider)
