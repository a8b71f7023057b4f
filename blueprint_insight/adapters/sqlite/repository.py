"""
SQLite Store - Persistent templates, active selection and extraction settings.

Features:
- Async operations via aiosqlite
- Templates stored as their exported JSON, in creation order
- Default template seeded into an empty store
- Settings stored as one JSON document
"""

from __future__ import annotations

import logging
from pathlib import Path

import aiosqlite
from pydantic import ValidationError

from blueprint_insight.config.errors import NotFoundError, StorageError, TemplateValidationError
from blueprint_insight.domains.extraction.models import ExtractionSettings
from blueprint_insight.domains.templates import Template, default_template

logger = logging.getLogger(__name__)

__all__ = ["SQLiteStore"]

ACTIVE_TEMPLATE_KEY = "active_template_id"
SETTINGS_KEY = "extraction_settings"


class SQLiteStore:
    """
    SQLite store for templates and settings.

    Loaded once at startup and written on every change.

    Example:
        >>> store = SQLiteStore("data/blueprint_insight.db")
        >>> await store.initialize()
        >>> template = await store.get_active_template()
        >>> config = await store.load_settings()
    """

    def __init__(
        self,
        db_path: str | Path,
        default_settings: ExtractionSettings | None = None,
    ) -> None:
        """
        Initialize store.

        Args:
            db_path: Path to SQLite database file
            default_settings: Returned by load_settings until settings are saved
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._default_settings = default_settings or ExtractionSettings()
        self._connection: aiosqlite.Connection | None = None

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = await aiosqlite.connect(str(self.db_path))
            self._connection.row_factory = aiosqlite.Row
        return self._connection

    async def initialize(self) -> None:
        """Create the schema and seed the default template into an empty store."""
        conn = await self._get_connection()

        await conn.executescript("""
            CREATE TABLE IF NOT EXISTS templates (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                position INTEGER NOT NULL,
                body TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS app_state (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_templates_position ON templates(position);
        """)
        await conn.commit()

        if await self.template_count() == 0:
            seeded = await self.save_template(default_template())
            await self._set_state(ACTIVE_TEMPLATE_KEY, seeded.id)
            logger.info("Seeded default template: %s", seeded.name)

        logger.info("Database initialized: %s", self.db_path)

    # --- Templates ---

    async def template_count(self) -> int:
        conn = await self._get_connection()
        cursor = await conn.execute("SELECT COUNT(*) FROM templates")
        row = await cursor.fetchone()
        return row[0] if row else 0

    async def list_templates(self) -> list[Template]:
        """All templates in creation order."""
        conn = await self._get_connection()
        cursor = await conn.execute("SELECT id, body FROM templates ORDER BY position")
        rows = await cursor.fetchall()
        return [self._load_template(row) for row in rows]

    async def get_template(self, template_id: str) -> Template | None:
        """Get template by ID."""
        conn = await self._get_connection()
        cursor = await conn.execute("SELECT id, body FROM templates WHERE id = ?", (template_id,))
        row = await cursor.fetchone()

        if row:
            return self._load_template(row)
        return None

    async def save_template(self, template: Template) -> Template:
        """
        Insert or replace a template, keeping its position when it already exists.

        Raises:
            TemplateValidationError: Empty or duplicate field keys
            StorageError: Write failed
        """
        template = Template.revalidate(template)
        conn = await self._get_connection()

        try:
            await conn.execute(
                """
                INSERT INTO templates (id, name, position, body)
                VALUES (?, ?, (SELECT COALESCE(MAX(position) + 1, 0) FROM templates), ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    body = excluded.body,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (template.id, template.name, template.to_json()),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            await conn.rollback()
            raise StorageError(f"Failed to save template: {e}", {"id": template.id}, write=True) from e

        logger.debug("Saved template %s (%d fields)", template.id, len(template.fields))
        return template

    async def delete_template(self, template_id: str) -> str:
        """
        Delete a template.

        The last remaining template cannot be deleted. Deleting the active
        template makes the first remaining one active.

        Returns:
            The active template id after deletion

        Raises:
            NotFoundError: Unknown template
            TemplateValidationError: Only one template left
        """
        if await self.get_template(template_id) is None:
            raise NotFoundError(f"Template not found: {template_id}", {"id": template_id})
        if await self.template_count() <= 1:
            raise TemplateValidationError("Cannot delete the last template", {"id": template_id})

        conn = await self._get_connection()
        active_id = await self._get_state(ACTIVE_TEMPLATE_KEY)

        try:
            await conn.execute("DELETE FROM templates WHERE id = ?", (template_id,))
            if active_id == template_id:
                cursor = await conn.execute("SELECT id FROM templates ORDER BY position LIMIT 1")
                row = await cursor.fetchone()
                active_id = row["id"]
                await conn.execute(
                    "INSERT OR REPLACE INTO app_state (key, value) VALUES (?, ?)",
                    (ACTIVE_TEMPLATE_KEY, active_id),
                )
            await conn.commit()
        except aiosqlite.Error as e:
            await conn.rollback()
            raise StorageError(f"Failed to delete template: {e}", {"id": template_id}, write=True) from e

        logger.info("Deleted template %s; active is %s", template_id, active_id)
        return active_id

    async def get_active_template(self) -> Template:
        """
        The template used for extraction.

        Falls back to the first template when the stored selection is gone.
        """
        active_id = await self._get_state(ACTIVE_TEMPLATE_KEY)
        if active_id:
            template = await self.get_template(active_id)
            if template is not None:
                return template

        templates = await self.list_templates()
        if not templates:
            raise NotFoundError("No templates available; call initialize() first")
        return templates[0]

    async def set_active_template(self, template_id: str) -> Template:
        """Select the template used for extraction."""
        template = await self.get_template(template_id)
        if template is None:
            raise NotFoundError(f"Template not found: {template_id}", {"id": template_id})

        await self._set_state(ACTIVE_TEMPLATE_KEY, template_id)
        return template

    # --- Settings ---

    async def load_settings(self) -> ExtractionSettings:
        """Stored extraction settings, or the defaults when none were saved."""
        stored = await self._get_state(SETTINGS_KEY)
        if stored is None:
            return self._default_settings

        try:
            return ExtractionSettings.model_validate_json(stored)
        except ValidationError as e:
            raise StorageError(f"Stored settings are unreadable: {e.errors()[0]['msg']}") from e

    async def save_settings(self, settings: ExtractionSettings) -> ExtractionSettings:
        """Persist extraction settings."""
        await self._set_state(SETTINGS_KEY, settings.model_dump_json())
        logger.info("Saved settings: provider=%s", settings.kind.value)
        return settings

    # --- Internals ---

    def _load_template(self, row: aiosqlite.Row) -> Template:
        try:
            return Template.model_validate_json(row["body"])
        except ValidationError as e:
            raise StorageError(
                f"Stored template is unreadable: {e.errors()[0]['msg']}",
                {"id": row["id"]},
            ) from e

    async def _get_state(self, key: str) -> str | None:
        conn = await self._get_connection()
        cursor = await conn.execute("SELECT value FROM app_state WHERE key = ?", (key,))
        row = await cursor.fetchone()
        return row["value"] if row else None

    async def _set_state(self, key: str, value: str) -> None:
        conn = await self._get_connection()
        try:
            await conn.execute(
                "INSERT OR REPLACE INTO app_state (key, value) VALUES (?, ?)",
                (key, value),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            await conn.rollback()
            raise StorageError(f"Failed to write {key}: {e}", write=True) from e

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None
