"""
Chat Adapter - Generic OpenAI-compatible chat-completion provider.
"""

from .client import NETWORK_ERROR_MESSAGE, ChatCompletionClient, normalize_endpoint

__all__ = ["ChatCompletionClient", "normalize_endpoint", "NETWORK_ERROR_MESSAGE"]
