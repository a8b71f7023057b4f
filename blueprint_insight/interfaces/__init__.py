"""
Interfaces - User-facing surfaces.

- api: FastAPI REST backend for the browser client
- cli: Typer command-line tools
"""
