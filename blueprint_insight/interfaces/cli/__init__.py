"""
CLI Interface - Command-line tools for BluePrint Insight.

Provides commands for:
- Single and batch extraction with JSON/CSV export
- Template management
- Provider settings
- Running the API server
"""

from .main import app, main

__all__ = ["app", "main"]
