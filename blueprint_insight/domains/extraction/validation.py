"""
Result Validation - Post-parse pass mapping provider output onto the template.

Chat providers get no type information, so their values are checked here:
lossless coercions are applied, anything else becomes null with a warning.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Any

from blueprint_insight.config.errors import SchemaViolationError
from blueprint_insight.domains.templates import ExtractionField, FieldKind

from .models import ValidatedResult

logger = logging.getLogger(__name__)

__all__ = ["validate_result", "coerce_value"]

_TRUE = {"true", "yes"}
_FALSE = {"false", "no"}


class _Mismatch(ValueError):
    pass


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    raise _Mismatch(f"expected text, got {type(value).__name__}")


def _as_number(value: Any) -> int | float:
    if isinstance(value, bool):
        raise _Mismatch("expected number, got boolean")
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if "_" in text:
            raise _Mismatch(f"expected number, got {value!r}")
        try:
            number = float(text)
        except ValueError as e:
            raise _Mismatch(f"expected number, got {value!r}") from e
        if number.is_integer() and "." not in text and "e" not in text.lower():
            number = int(number)
    else:
        raise _Mismatch(f"expected number, got {type(value).__name__}")

    if isinstance(number, float) and not math.isfinite(number):
        raise _Mismatch(f"expected finite number, got {value!r}")
    return number


def _as_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
    raise _Mismatch(f"expected boolean, got {value!r}")


def _as_list(value: Any, item: Any) -> list[Any]:
    if not isinstance(value, list):
        raise _Mismatch(f"expected list, got {type(value).__name__}")
    return [item(v) for v in value if v is not None]


_COERCERS = {
    FieldKind.TEXT: _as_text,
    FieldKind.NUMBER: _as_number,
    FieldKind.BOOLEAN: _as_boolean,
    FieldKind.TEXT_LIST: lambda v: _as_list(v, _as_text),
    FieldKind.NUMBER_LIST: lambda v: _as_list(v, _as_number),
}


def coerce_value(kind: FieldKind, value: Any) -> Any:
    """
    Coerce a JSON value to `kind`.

    Raises:
        ValueError: Value cannot be represented as `kind` without loss
        SchemaViolationError: Unknown kind
    """
    if value is None:
        return None
    try:
        coercer = _COERCERS[kind]
    except (KeyError, TypeError) as e:
        raise SchemaViolationError(f"Unsupported field kind: {kind!r}") from e
    return coercer(value)


def validate_result(raw: dict[str, Any], fields: Sequence[ExtractionField]) -> ValidatedResult:
    """
    Map a parsed provider response onto the field set.

    Every field key appears in the result. Absent keys are null and listed in
    `missing`; explicit nulls are kept as-is and not reported.
    """
    data: dict[str, Any] = {}
    warnings: list[str] = []
    missing: list[str] = []

    for field in fields:
        if field.key not in raw:
            data[field.key] = None
            missing.append(field.key)
            continue

        value = raw[field.key]
        try:
            data[field.key] = coerce_value(field.value_kind, value)
            if isinstance(value, list) and None in value:
                dropped = sum(1 for v in value if v is None)
                warnings.append(f"{field.key}: dropped {dropped} null item(s)")
        except _Mismatch as e:
            data[field.key] = None
            warnings.append(f"{field.key}: {e}; value discarded")

    extra = [key for key in raw if key not in data]
    if extra:
        warnings.append(f"ignored keys not in template: {', '.join(extra)}")

    if warnings:
        logger.warning("Result validation: %s", "; ".join(warnings))

    return ValidatedResult(data=data, warnings=warnings, missing=missing)
