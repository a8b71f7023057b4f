"""
API Routes.
"""

from . import extraction, health, settings, templates

__all__ = ["health", "templates", "settings", "extraction"]
