"""
Batch Domain - Sequential multi-document extraction.

This domain handles:
- Per-document lifecycle tracking
- Batch selection and sequential runs
- JSON/CSV export of completed results
"""

from .export import export_csv, export_filename, export_json, format_cell
from .models import BatchItem, BatchStatus
from .runner import BatchRunner

__all__ = [
    # Models
    "BatchItem",
    "BatchStatus",
    # Runner
    "BatchRunner",
    # Export
    "export_json",
    "export_csv",
    "export_filename",
    "format_cell",
]
