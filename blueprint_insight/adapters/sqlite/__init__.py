"""SQLite adapter - Template and settings persistence."""

from .repository import SQLiteStore

__all__ = ["SQLiteStore"]
