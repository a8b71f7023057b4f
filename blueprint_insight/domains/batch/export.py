"""
Batch Export - JSON and CSV renderings of completed batch items.
"""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from blueprint_insight.domains.templates import Template

from .models import BatchItem, BatchStatus

__all__ = ["export_csv", "export_filename", "export_json", "format_cell"]

FIXED_COLUMNS = ["File Name", "SHA256"]


def _completed(items: Iterable[BatchItem]) -> list[BatchItem]:
    return [item for item in items if item.status == BatchStatus.COMPLETED]


def export_json(items: Iterable[BatchItem]) -> str:
    """Completed items as `[{fileName, sha256, extractedData}]`."""
    records = [
        {
            "fileName": item.file_name,
            "sha256": item.sha256,
            "extractedData": item.result,
        }
        for item in _completed(items)
    ]
    return json.dumps(records, indent=2, ensure_ascii=False)


def format_cell(value: Any) -> str:
    """Spreadsheet text for one extracted value."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list):
        return ", ".join(format_cell(v) for v in value)
    return str(value)


def export_csv(items: Iterable[BatchItem], template: Template) -> str:
    """
    Completed items as CSV, one column per template field.

    The header row uses field labels (falling back to the key). Every data
    cell is quoted.
    """
    buffer = io.StringIO()

    header = csv.writer(buffer, lineterminator="\n")
    header.writerow(FIXED_COLUMNS + [f.label or f.key for f in template.fields])

    rows = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for item in _completed(items):
        result = item.result or {}
        rows.writerow(
            [item.file_name, item.sha256]
            + [format_cell(result.get(f.key)) for f in template.fields]
        )

    return buffer.getvalue()


def export_filename(extension: str, now: datetime | None = None) -> str:
    """`extraction_results_<UTC timestamp>.<extension>`, safe on every filesystem."""
    now = now or datetime.now(timezone.utc)
    return f"extraction_results_{now.strftime('%Y-%m-%dT%H-%M-%SZ')}.{extension.lstrip('.')}"
