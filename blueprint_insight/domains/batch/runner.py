"""
Batch Runner - Drives the extractor across a set of documents.

Documents are processed one at a time in the order they were added. Each
document moves pending -> processing -> completed | error; error items are
picked up again by the next run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from blueprint_insight.config.errors import BatchInProgressError

from .models import BatchItem, BatchStatus

if TYPE_CHECKING:
    from blueprint_insight.domains.extraction import DocumentPayload, ExtractionSettings, Extractor
    from blueprint_insight.domains.templates import Template

logger = logging.getLogger(__name__)

__all__ = ["BatchRunner"]

BatchListener = Callable[[BatchItem], None]


class BatchRunner:
    """
    Sequential batch processor.

    Example:
        >>> runner = BatchRunner(TemplateExtractor())
        >>> runner.add(DocumentPayload.from_path("sheet1.pdf"))
        >>> await runner.run(template, config)
        >>> runner.all_completed
        True
    """

    def __init__(self, extractor: Extractor, listener: BatchListener | None = None) -> None:
        """
        Initialize runner.

        Args:
            extractor: Extraction entry point
            listener: Called with the item after every status change
        """
        self._extractor = extractor
        self._listener = listener
        self._items: dict[str, BatchItem] = {}
        self._running = False

    @property
    def items(self) -> list[BatchItem]:
        """Items in insertion order."""
        return list(self._items.values())

    @property
    def in_progress(self) -> bool:
        return self._running

    @property
    def all_completed(self) -> bool:
        return bool(self._items) and all(
            item.status == BatchStatus.COMPLETED for item in self._items.values()
        )

    def add(self, document: DocumentPayload) -> BatchItem:
        """Queue a document as pending."""
        item = BatchItem(document=document, sha256=document.sha256)
        self._items[item.id] = item
        logger.debug("Added %s (%s)", item.file_name, item.sha256[:12])
        return item

    def remove(self, item_id: str) -> bool:
        """
        Drop an item.

        An item removed before its turn is skipped by a running batch. A call
        already in flight for it is not aborted.
        """
        return self._items.pop(item_id, None) is not None

    def get(self, item_id: str) -> BatchItem | None:
        return self._items.get(item_id)

    def select_for_run(self) -> list[BatchItem]:
        """
        Items the next run will process.

        Pending and error items when any exist, otherwise every item. Items
        currently processing are never selected.
        """
        items = [i for i in self._items.values() if i.status != BatchStatus.PROCESSING]
        retry = [i for i in items if i.status in (BatchStatus.PENDING, BatchStatus.ERROR)]
        return retry or items

    async def process(
        self,
        item_id: str,
        template: Template,
        config: ExtractionSettings,
    ) -> BatchItem | None:
        """
        Extract one item and record its outcome.

        Returns:
            The updated item, or None when no such item exists
        """
        item = self._items.get(item_id)
        if item is None:
            return None

        item.status = BatchStatus.PROCESSING
        item.error = None
        self._notify(item)

        outcome = await self._extractor.extract(item.document, template.fields, config)

        if outcome.ok:
            item.status = BatchStatus.COMPLETED
            item.result = outcome.data
            item.warnings = list(outcome.warnings)
            item.missing = list(outcome.missing)
        else:
            item.status = BatchStatus.ERROR
            item.error = outcome.message
            logger.warning("%s failed: %s", item.file_name, outcome.message)

        self._notify(item)
        return item

    async def run(self, template: Template, config: ExtractionSettings) -> list[BatchItem]:
        """
        Process the selected items in order.

        Raises:
            BatchInProgressError: A run is already active on this runner
        """
        if self._running:
            raise BatchInProgressError("A batch run is already in progress")

        self._running = True
        processed: list[BatchItem] = []
        try:
            selection = self.select_for_run()
            logger.info("Batch started: %d of %d documents", len(selection), len(self._items))
            for item in selection:
                if item.id not in self._items:
                    continue
                result = await self.process(item.id, template, config)
                if result is not None:
                    processed.append(result)
        finally:
            self._running = False

        failed = sum(1 for item in processed if item.status == BatchStatus.ERROR)
        logger.info("Batch finished: %d processed, %d failed", len(processed), failed)
        return processed

    def _notify(self, item: BatchItem) -> None:
        if self._listener is not None:
            self._listener(item)
