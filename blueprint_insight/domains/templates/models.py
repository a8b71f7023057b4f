"""
Template Models - Field vocabulary and extraction templates.
"""

from __future__ import annotations

import uuid
from collections import Counter
from enum import Enum

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from blueprint_insight.config.errors import TemplateValidationError


def new_id() -> str:
    """Short random identifier for templates and editor fields."""
    return uuid.uuid4().hex[:9]


class FieldKind(str, Enum):
    """Value kinds a field can ask the model for.

    Values are the names stored in template JSON files.
    """

    TEXT = "STRING"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"
    TEXT_LIST = "ARRAY_STRING"
    NUMBER_LIST = "ARRAY_NUMBER"

    @property
    def is_list(self) -> bool:
        return self in (FieldKind.TEXT_LIST, FieldKind.NUMBER_LIST)


class ExtractionField(BaseModel):
    """A single named, typed extraction target."""

    id: str = Field(default_factory=new_id)
    key: str = Field(description="Result key, unique within a template")
    label: str = ""
    value_kind: FieldKind = Field(default=FieldKind.TEXT, alias="type")
    description: str = Field(default="", description="Instruction to the model")

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("key")
    @classmethod
    def key_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("field key must not be empty")
        return value


class Template(BaseModel):
    """Ordered, named collection of fields reused across documents."""

    id: str = Field(default_factory=new_id)
    name: str
    fields: list[ExtractionField] = Field(default_factory=list)
    version: str | None = None
    description: str | None = None

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def keys_unique(self) -> Template:
        """Duplicate keys would overwrite each other in the result mapping."""
        counts = Counter(f.key for f in self.fields)
        duplicates = sorted(key for key, n in counts.items() if n > 1)
        if duplicates:
            raise ValueError(f"duplicate field keys: {', '.join(duplicates)}")
        return self

    @property
    def keys(self) -> list[str]:
        """Field keys in declaration order."""
        return [f.key for f in self.fields]

    def field(self, key: str) -> ExtractionField | None:
        """Look up a field by key."""
        for f in self.fields:
            if f.key == key:
                return f
        return None

    @classmethod
    def from_json(cls, text: str | bytes) -> Template:
        """
        Parse a template JSON document (as written by `to_json`).

        Raises:
            TemplateValidationError: Malformed JSON or invalid fields
        """
        try:
            return cls.model_validate_json(text)
        except ValidationError as e:
            raise TemplateValidationError(
                f"Invalid template: {e.errors()[0]['msg']}",
                {"errors": e.errors(include_url=False, include_context=False)},
            ) from e

    def to_json(self) -> str:
        """Serialize for export, using the stored field names."""
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)

    @classmethod
    def revalidate(cls, template: Template) -> Template:
        """Re-run validation on a template that may have been mutated in place."""
        try:
            return cls.model_validate(template.model_dump(by_alias=True))
        except ValidationError as e:
            raise TemplateValidationError(
                f"Invalid template: {e.errors()[0]['msg']}",
                {"errors": e.errors(include_url=False, include_context=False)},
            ) from e
