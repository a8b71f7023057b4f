"""
Batch Models - Data types for batch domain.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from blueprint_insight.domains.extraction.models import DocumentPayload
from blueprint_insight.domains.templates.models import new_id


class BatchStatus(str, Enum):
    """Per-document lifecycle within a batch."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class BatchItem(BaseModel):
    """One document in a batch together with its latest outcome."""

    id: str = Field(default_factory=new_id)
    document: DocumentPayload
    status: BatchStatus = BatchStatus.PENDING
    sha256: str = ""
    result: dict[str, Any] | None = None
    warnings: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)
    error: str | None = None

    @property
    def file_name(self) -> str:
        return self.document.display_name
