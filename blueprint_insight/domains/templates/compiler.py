"""
Schema Compiler - Turns template fields into provider request shapes.

Two forms are produced from the same ordered field list:

- a structured-output schema for providers that enforce an output shape
- a textual JSON contract for chat providers that only follow instructions

Both are pure functions of their input.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Sequence
from typing import Any

from blueprint_insight.config.errors import SchemaViolationError

from .models import ExtractionField, FieldKind

__all__ = [
    "KIND_SCHEMAS",
    "compile_structured_schema",
    "compile_text_contract",
    "schema_for_kind",
]

KIND_SCHEMAS: dict[FieldKind, dict[str, Any]] = {
    FieldKind.TEXT: {"type": "string"},
    FieldKind.NUMBER: {"type": "number"},
    FieldKind.BOOLEAN: {"type": "boolean"},
    FieldKind.TEXT_LIST: {"type": "array", "items": {"type": "string"}},
    FieldKind.NUMBER_LIST: {"type": "array", "items": {"type": "number"}},
}

CONTRACT_HEADER = "Required JSON structure keys and descriptions:"
CONTRACT_FOOTER = (
    "Return ONLY valid JSON matching this structure. Do not include any other text."
)


def schema_for_kind(kind: FieldKind) -> dict[str, Any]:
    """
    Schema descriptor for a value kind.

    Raises:
        SchemaViolationError: Kind is not one of the declared FieldKind members
    """
    try:
        base = KIND_SCHEMAS[kind]
    except (KeyError, TypeError) as e:
        raise SchemaViolationError(
            f"Unsupported field kind: {kind!r}",
            {"kind": str(kind)},
        ) from e
    return copy.deepcopy(base)


def compile_structured_schema(fields: Sequence[ExtractionField]) -> dict[str, Any]:
    """
    Build a strict output schema for a structured-output provider.

    Args:
        fields: Template fields in declaration order

    Returns:
        {"type": "object", "properties": {...}, "required": [...]}
    """
    properties: dict[str, Any] = {}
    required: list[str] = []

    for field in fields:
        descriptor = schema_for_kind(field.value_kind)
        descriptor["description"] = field.description
        properties[field.key] = descriptor
        required.append(field.key)

    return {"type": "object", "properties": properties, "required": required}


def compile_text_contract(fields: Sequence[ExtractionField], system_prompt: str) -> str:
    """
    Build the prompt text for a chat provider.

    The kind of each field is not sent; the model only sees the key and its
    description.
    """
    contract = {field.key: field.description for field in fields}
    return "\n".join(
        [
            system_prompt,
            f"{CONTRACT_HEADER} {json.dumps(contract, ensure_ascii=False)}",
            CONTRACT_FOOTER,
        ]
    )
