"""
Template Routes - Template CRUD and active selection.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from blueprint_insight.adapters.sqlite import SQLiteStore
from blueprint_insight.config import NotFoundError
from blueprint_insight.domains.templates import Template
from blueprint_insight.interfaces.api.deps import get_store

router = APIRouter()


class TemplateListResponse(BaseModel):
    """All templates plus the active selection."""

    templates: list[Template]
    active_id: str


class DeleteResponse(BaseModel):
    deleted: str
    active_id: str


@router.get("", response_model=TemplateListResponse)
async def list_templates(store: SQLiteStore = Depends(get_store)):
    """List templates in creation order."""
    templates = await store.list_templates()
    active = await store.get_active_template()
    return TemplateListResponse(templates=templates, active_id=active.id)


@router.post("", response_model=Template, status_code=201)
async def create_template(template: Template, store: SQLiteStore = Depends(get_store)):
    """
    Create a template.

    Field keys must be non-empty and unique. Accepts the same JSON as the
    template export.
    """
    return await store.save_template(template)


@router.get("/{template_id}", response_model=Template)
async def get_template(template_id: str, store: SQLiteStore = Depends(get_store)):
    """Get one template."""
    template = await store.get_template(template_id)
    if template is None:
        raise NotFoundError(f"Template not found: {template_id}", {"id": template_id})
    return template


@router.put("/{template_id}", response_model=Template)
async def update_template(
    template_id: str,
    template: Template,
    store: SQLiteStore = Depends(get_store),
):
    """Replace a template; the path id wins over the body id."""
    return await store.save_template(template.model_copy(update={"id": template_id}))


@router.delete("/{template_id}", response_model=DeleteResponse)
async def delete_template(template_id: str, store: SQLiteStore = Depends(get_store)):
    """Delete a template. The last remaining template cannot be deleted."""
    active_id = await store.delete_template(template_id)
    return DeleteResponse(deleted=template_id, active_id=active_id)


@router.post("/{template_id}/activate", response_model=Template)
async def activate_template(template_id: str, store: SQLiteStore = Depends(get_store)):
    """Use this template for subsequent extractions."""
    return await store.set_active_template(template_id)
