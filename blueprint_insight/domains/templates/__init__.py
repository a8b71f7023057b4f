"""
Templates Domain - Extraction field vocabulary and schema compilation.

This domain handles:
- Field and template models
- Template JSON import/export
- Compiling fields into provider request shapes
"""

from .compiler import compile_structured_schema, compile_text_contract, schema_for_kind
from .defaults import DEFAULT_TEMPLATE_ID, default_template
from .models import ExtractionField, FieldKind, Template

__all__ = [
    # Models
    "ExtractionField",
    "FieldKind",
    "Template",
    # Compiler
    "compile_structured_schema",
    "compile_text_contract",
    "schema_for_kind",
    # Defaults
    "DEFAULT_TEMPLATE_ID",
    "default_template",
]
