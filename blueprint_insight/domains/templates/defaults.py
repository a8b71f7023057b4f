"""
Default Template - Seeded into an empty store.
"""

from __future__ import annotations

from .models import ExtractionField, FieldKind, Template

DEFAULT_TEMPLATE_ID = "default"


def default_template() -> Template:
    """Title-block fields common to mechanical drawings."""
    return Template(
        id=DEFAULT_TEMPLATE_ID,
        name="Technical drawing (title block)",
        version="1.0",
        description="Standard title block and general requirements of a part drawing.",
        fields=[
            ExtractionField(
                key="drawing_number",
                label="Drawing Number",
                value_kind=FieldKind.TEXT,
                description="Document/drawing designation code from the title block",
            ),
            ExtractionField(
                key="title",
                label="Title",
                value_kind=FieldKind.TEXT,
                description="Name of the part or assembly shown on the drawing",
            ),
            ExtractionField(
                key="revision",
                label="Revision",
                value_kind=FieldKind.TEXT,
                description="Latest revision letter or number",
            ),
            ExtractionField(
                key="material",
                label="Material",
                value_kind=FieldKind.TEXT,
                description="Material designation including standard, if given",
            ),
            ExtractionField(
                key="mass_kg",
                label="Mass (kg)",
                value_kind=FieldKind.NUMBER,
                description="Part mass in kilograms as stated in the title block",
            ),
            ExtractionField(
                key="scale",
                label="Scale",
                value_kind=FieldKind.TEXT,
                description="Main drawing scale, e.g. 1:2",
            ),
            ExtractionField(
                key="sheet_count",
                label="Sheets",
                value_kind=FieldKind.NUMBER,
                description="Total number of sheets",
            ),
            ExtractionField(
                key="is_assembly",
                label="Assembly",
                value_kind=FieldKind.BOOLEAN,
                description="True if the drawing shows an assembly rather than a single part",
            ),
            ExtractionField(
                key="technical_requirements",
                label="Technical Requirements",
                value_kind=FieldKind.TEXT_LIST,
                description="Each numbered item of the technical requirements notes",
            ),
            ExtractionField(
                key="overall_dimensions",
                label="Overall Dimensions",
                value_kind=FieldKind.NUMBER_LIST,
                description="Overall (envelope) dimensions in millimetres",
            ),
        ],
    )
