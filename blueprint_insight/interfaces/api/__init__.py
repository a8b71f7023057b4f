"""
API Interface - FastAPI REST API.

Serves templates, settings and extraction to the browser client.
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
