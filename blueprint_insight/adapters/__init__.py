"""
Adapters - External service integrations.

All provider calls and storage access are wrapped here to isolate domains from
third-party changes.
"""

from .chat import ChatCompletionClient
from .gemini import GeminiClient
from .sqlite import SQLiteStore

__all__ = [
    "GeminiClient",
    "ChatCompletionClient",
    "SQLiteStore",
]
