"""
Chat Completion Client - Generic OpenAI-compatible provider adapter.

The provider only receives text and an image reference, so the output shape
is requested through the prompt and parsed optimistically.

Features:
- Async HTTP client
- Bare base URLs and full completions URLs both accepted
- HTTP rejections and transport failures reported as distinct errors
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

import httpx

from blueprint_insight.config.errors import (
    ConfigurationError,
    NetworkError,
    ProviderHTTPError,
    ResponseParseError,
)

if TYPE_CHECKING:
    from blueprint_insight.domains.extraction.models import DocumentPayload, GenericChatProvider

logger = logging.getLogger(__name__)

__all__ = ["ChatCompletionClient", "normalize_endpoint", "NETWORK_ERROR_MESSAGE"]

COMPLETIONS_PATH = "/chat/completions"
NETWORK_ERROR_MESSAGE = (
    "Network error: Failed to connect to the API server. Check URL and connection."
)


def normalize_endpoint(endpoint_base: str) -> str:
    """
    Resolve the completions URL for an endpoint base.

    Example:
        >>> normalize_endpoint("https://api.example.com/v1/")
        'https://api.example.com/v1/chat/completions'
    """
    url = endpoint_base.strip().rstrip("/")
    if url.endswith(COMPLETIONS_PATH):
        return url
    return f"{url}{COMPLETIONS_PATH}"


def _error_message(response: httpx.Response) -> str:
    """Human-readable message from an error body, else the status code."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    return f"HTTP error! status: {response.status_code}"


class ChatCompletionClient:
    """
    OpenAI-compatible chat-completion client.

    Example:
        >>> client = ChatCompletionClient()
        >>> data = await client.invoke(document, prompt, 0.1, provider)
    """

    def __init__(
        self,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize chat client.

        Args:
            timeout: Request timeout in seconds, None for no limit
            transport: Custom transport (used by tests)
        """
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    @staticmethod
    def build_payload(
        document: DocumentPayload,
        prompt: str,
        temperature: float,
        model_name: str,
    ) -> dict[str, Any]:
        """Request body: one user message with the prompt and the document image."""
        return {
            "model": model_name,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {"type": "image_url", "image_url": {"url": document.to_data_url()}},
                    ],
                }
            ],
            "response_format": {"type": "json_object"},
            "temperature": temperature,
        }

    async def invoke(
        self,
        document: DocumentPayload,
        prompt: str,
        temperature: float,
        provider: GenericChatProvider,
    ) -> dict[str, Any]:
        """
        Run one chat-completion extraction.

        Args:
            document: Document bytes and MIME type
            prompt: System prompt with the JSON contract appended
            temperature: Sampling temperature
            provider: Endpoint base, API key and model name

        Returns:
            Parsed JSON object from the first choice

        Raises:
            ConfigurationError: Endpoint settings incomplete
            ProviderHTTPError: Non-2xx status
            NetworkError: Endpoint unreachable
            ResponseParseError: Missing or non-JSON content
        """
        if not (provider.endpoint_base and provider.api_key and provider.model_name):
            raise ConfigurationError("Endpoint URL, API key and model name are required")

        url = normalize_endpoint(provider.endpoint_base)
        payload = self.build_payload(document, prompt, temperature, provider.model_name)
        client = await self._get_client()

        logger.info(
            "Chat request: url=%s model=%s mime=%s bytes=%d",
            url,
            provider.model_name,
            document.mime_type,
            len(document.data),
        )

        try:
            response = await client.post(
                url,
                json=payload,
                headers={"Authorization": f"Bearer {provider.api_key}"},
            )
        except httpx.TransportError as e:
            logger.error("Chat endpoint unreachable: %s (%s)", url, e)
            raise NetworkError(NETWORK_ERROR_MESSAGE, {"url": url, "reason": str(e)}) from e

        if not response.is_success:
            message = _error_message(response)
            logger.error(
                "Chat endpoint rejected request: status=%d message=%s",
                response.status_code,
                message,
            )
            raise ProviderHTTPError(message, response.status_code)

        return self._parse(response)

    @staticmethod
    def _parse(response: httpx.Response) -> dict[str, Any]:
        """Extract and decode the first choice's message content."""
        try:
            data = response.json()
        except ValueError as e:
            raise ResponseParseError(f"Invalid JSON response from AI provider: {e}") from e

        choices = data.get("choices") if isinstance(data, dict) else None
        content = None
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            message = choices[0].get("message")
            if isinstance(message, dict):
                content = message.get("content")
        # An empty object is a real answer; only a missing or blank content is absent
        if content is None or content == "":
            raise ResponseParseError("No content received from AI provider")

        if isinstance(content, str):
            try:
                content = json.loads(content)
            except json.JSONDecodeError as e:
                raise ResponseParseError(f"AI provider returned invalid JSON: {e}") from e

        if not isinstance(content, dict):
            raise ResponseParseError(
                f"Expected a JSON object from AI provider, got {type(content).__name__}"
            )
        return content

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
