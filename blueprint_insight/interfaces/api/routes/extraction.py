"""
Extraction Routes - Document upload and field extraction endpoints.
"""

from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, ValidationError

from blueprint_insight.adapters.sqlite import SQLiteStore
from blueprint_insight.config import NotFoundError
from blueprint_insight.domains.batch import (
    BatchRunner,
    BatchStatus,
    export_csv,
    export_filename,
    export_json,
)
from blueprint_insight.domains.extraction import (
    DocumentPayload,
    ExtractionOutcome,
    TemplateExtractor,
)
from blueprint_insight.domains.templates import Template
from blueprint_insight.interfaces.api.deps import get_extractor, get_store

router = APIRouter()


class ExtractionResponse(BaseModel):
    """Single-document extraction result."""

    file_name: str
    sha256: str
    template_id: str
    outcome: ExtractionOutcome


class BatchItemResponse(BaseModel):
    """One document of a batch run."""

    id: str
    file_name: str
    sha256: str
    status: BatchStatus
    result: dict[str, Any] | None = None
    warnings: list[str] = []
    missing: list[str] = []
    error: str | None = None


class BatchResponse(BaseModel):
    template_id: str
    items: list[BatchItemResponse]


async def _read_document(file: UploadFile) -> DocumentPayload:
    data = await file.read()
    try:
        return DocumentPayload(
            data=data,
            mime_type=file.content_type or "application/octet-stream",
            filename=file.filename,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Unsupported document: {file.filename}") from e


async def _resolve_template(store: SQLiteStore, template_id: str | None) -> Template:
    if not template_id:
        return await store.get_active_template()

    template = await store.get_template(template_id)
    if template is None:
        raise NotFoundError(f"Template not found: {template_id}", {"id": template_id})
    return template


@router.post("/extract", response_model=ExtractionResponse)
async def extract_document(
    file: UploadFile = File(...),
    template_id: str | None = Form(None),
    store: SQLiteStore = Depends(get_store),
    extractor: TemplateExtractor = Depends(get_extractor),
):
    """
    Extract template fields from one image or PDF.

    Uses the active template unless `template_id` is given, and the stored
    provider settings. Provider failures are returned as a `failure` outcome
    rather than an HTTP error.
    """
    document = await _read_document(file)
    template = await _resolve_template(store, template_id)
    config = await store.load_settings()

    outcome = await extractor.extract(document, template.fields, config)

    return ExtractionResponse(
        file_name=document.display_name,
        sha256=document.sha256,
        template_id=template.id,
        outcome=outcome,
    )


@router.post("/batch", response_model=BatchResponse)
async def extract_batch(
    files: list[UploadFile] = File(...),
    template_id: str | None = Form(None),
    export: Literal["json", "csv"] | None = Query(None, description="Download completed results"),
    store: SQLiteStore = Depends(get_store),
    extractor: TemplateExtractor = Depends(get_extractor),
):
    """
    Extract template fields from several documents, one at a time.

    A failed document does not stop the rest. With `export=json|csv` the
    completed results are returned as a file download.
    """
    template = await _resolve_template(store, template_id)
    config = await store.load_settings()

    runner = BatchRunner(extractor)
    for file in files:
        runner.add(await _read_document(file))

    await runner.run(template, config)

    if export == "json":
        return _download(export_json(runner.items), "json", "application/json")
    if export == "csv":
        return _download(export_csv(runner.items, template), "csv", "text/csv; charset=utf-8")

    return BatchResponse(
        template_id=template.id,
        items=[
            BatchItemResponse(
                id=item.id,
                file_name=item.file_name,
                sha256=item.sha256,
                status=item.status,
                result=item.result,
                warnings=item.warnings,
                missing=item.missing,
                error=item.error,
            )
            for item in runner.items
        ],
    )


def _download(content: str, extension: str, media_type: str) -> Response:
    filename = export_filename(extension)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
