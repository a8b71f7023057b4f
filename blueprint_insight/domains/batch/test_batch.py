"""
Tests for the batch runner and exports.
"""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime, timezone

import pytest

from blueprint_insight.config import BatchInProgressError, ErrorCode
from blueprint_insight.domains.extraction import (
    DocumentPayload,
    ExtractionFailure,
    ExtractionSettings,
    ExtractionSuccess,
    ProviderKind,
)
from blueprint_insight.domains.templates import ExtractionField, FieldKind, Template

from .export import export_csv, export_filename, export_json, format_cell
from .models import BatchItem, BatchStatus
from .runner import BatchRunner


class FakeExtractor:
    """Records calls and fails for documents named in `failing`."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.calls: list[str] = []
        self.failing = failing or set()
        self.hook = None

    async def extract(self, document, fields, config):
        self.calls.append(document.filename)
        if self.hook is not None:
            await self.hook()
        if document.filename in self.failing:
            return ExtractionFailure(
                error_code=ErrorCode.PROVIDER_HTTP_ERROR,
                message="invalid key",
                provider=ProviderKind.STRUCTURED,
            )
        return ExtractionSuccess(
            data={f.key: document.filename for f in fields},
            provider=ProviderKind.STRUCTURED,
        )


def doc(name: str) -> DocumentPayload:
    return DocumentPayload(data=name.encode(), mime_type="image/png", filename=name)


@pytest.fixture
def template() -> Template:
    return Template(
        id="t1",
        name="Sheet",
        fields=[
            ExtractionField(key="title", label="Title"),
            ExtractionField(key="mass", label="Mass", value_kind=FieldKind.NUMBER),
            ExtractionField(key="notes", label="Notes", value_kind=FieldKind.TEXT_LIST),
            ExtractionField(key="approved", value_kind=FieldKind.BOOLEAN),
        ],
    )


@pytest.fixture
def config() -> ExtractionSettings:
    return ExtractionSettings()


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def runner(extractor: FakeExtractor) -> BatchRunner:
    return BatchRunner(extractor)


# --- Runner Tests ---


def test_add_hashes_document(runner: BatchRunner) -> None:
    """Test items start pending with the document digest."""
    item = runner.add(doc("a.png"))
    assert item.status == BatchStatus.PENDING
    assert item.sha256 == doc("a.png").sha256
    assert runner.items == [item]
    assert not runner.all_completed


def test_remove(runner: BatchRunner) -> None:
    """Test removing known and unknown items."""
    item = runner.add(doc("a.png"))
    assert runner.remove(item.id)
    assert not runner.remove(item.id)
    assert runner.items == []


async def test_run_processes_in_order(
    runner: BatchRunner, extractor: FakeExtractor, template: Template, config: ExtractionSettings
) -> None:
    """Test a fresh batch runs every document sequentially."""
    for name in ("a.png", "b.png", "c.png"):
        runner.add(doc(name))

    processed = await runner.run(template, config)

    assert extractor.calls == ["a.png", "b.png", "c.png"]
    assert [i.status for i in processed] == [BatchStatus.COMPLETED] * 3
    assert runner.all_completed
    assert not runner.in_progress


async def test_rerun_only_pending_and_error(
    runner: BatchRunner, extractor: FakeExtractor, template: Template, config: ExtractionSettings
) -> None:
    """Test [completed, error, pending] processes only items 2 and 3."""
    first = runner.add(doc("1.png"))
    second = runner.add(doc("2.png"))
    runner.add(doc("3.png"))
    first.status = BatchStatus.COMPLETED
    first.result = {"title": "kept"}
    second.status = BatchStatus.ERROR
    second.error = "old failure"

    await runner.run(template, config)

    assert extractor.calls == ["2.png", "3.png"]
    assert first.result == {"title": "kept"}
    assert second.status == BatchStatus.COMPLETED
    assert second.error is None


async def test_all_completed_triggers_full_rerun(
    runner: BatchRunner, extractor: FakeExtractor, template: Template, config: ExtractionSettings
) -> None:
    """Test a second run over a completed batch reprocesses everything."""
    runner.add(doc("a.png"))
    runner.add(doc("b.png"))
    await runner.run(template, config)
    await runner.run(template, config)

    assert extractor.calls == ["a.png", "b.png", "a.png", "b.png"]


def test_processing_items_never_selected(runner: BatchRunner) -> None:
    """Test items already processing are skipped."""
    busy = runner.add(doc("a.png"))
    idle = runner.add(doc("b.png"))
    busy.status = BatchStatus.PROCESSING
    assert runner.select_for_run() == [idle]


async def test_failure_is_recorded_and_batch_continues(
    template: Template, config: ExtractionSettings
) -> None:
    """Test one failure does not abort the rest of the batch."""
    extractor = FakeExtractor(failing={"a.png"})
    runner = BatchRunner(extractor)
    bad = runner.add(doc("a.png"))
    good = runner.add(doc("b.png"))

    await runner.run(template, config)

    assert bad.status == BatchStatus.ERROR
    assert bad.error == "invalid key"
    assert bad.result is None
    assert good.status == BatchStatus.COMPLETED

    extractor.failing.clear()
    await runner.run(template, config)
    assert extractor.calls == ["a.png", "b.png", "a.png"]
    assert runner.all_completed


async def test_item_removed_before_its_turn_is_skipped(
    runner: BatchRunner, extractor: FakeExtractor, template: Template, config: ExtractionSettings
) -> None:
    """Test removal during a run excludes the item."""
    runner.add(doc("a.png"))
    later = runner.add(doc("b.png"))

    async def remove_later() -> None:
        runner.remove(later.id)

    extractor.hook = remove_later
    await runner.run(template, config)

    assert extractor.calls == ["a.png"]


async def test_run_while_running_raises(
    runner: BatchRunner, extractor: FakeExtractor, template: Template, config: ExtractionSettings
) -> None:
    """Test a nested run is refused."""
    runner.add(doc("a.png"))
    errors: list[BatchInProgressError] = []

    async def rerun() -> None:
        assert runner.in_progress
        with pytest.raises(BatchInProgressError) as exc_info:
            await runner.run(template, config)
        errors.append(exc_info.value)

    extractor.hook = rerun
    await runner.run(template, config)

    assert errors[0].code == ErrorCode.BATCH_IN_PROGRESS
    assert not runner.in_progress


async def test_listener_sees_each_transition(
    extractor: FakeExtractor, template: Template, config: ExtractionSettings
) -> None:
    """Test the listener fires for processing and the final state."""
    seen: list[BatchStatus] = []
    runner = BatchRunner(extractor, listener=lambda item: seen.append(item.status))
    item = runner.add(doc("a.png"))

    await runner.process(item.id, template, config)

    assert seen == [BatchStatus.PROCESSING, BatchStatus.COMPLETED]


async def test_process_unknown_item(runner: BatchRunner, template: Template, config) -> None:
    """Test processing an unknown id is a no-op."""
    assert await runner.process("nope", template, config) is None


# --- Export Tests ---


def completed_item(name: str, result: dict) -> BatchItem:
    document = doc(name)
    return BatchItem(
        document=document,
        sha256=document.sha256,
        status=BatchStatus.COMPLETED,
        result=result,
    )


def test_export_json_only_completed() -> None:
    """Test the JSON export shape and filter."""
    done = completed_item("a.png", {"title": "Bracket"})
    pending = BatchItem(document=doc("b.png"))

    records = json.loads(export_json([done, pending]))

    assert records == [
        {"fileName": "a.png", "sha256": done.sha256, "extractedData": {"title": "Bracket"}}
    ]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, ""),
        (True, "true"),
        (12.0, "12"),
        (12.5, "12.5"),
        (["a", "b"], "a, b"),
        ([1.0, 2.5], "1, 2.5"),
        ("plain", "plain"),
    ],
)
def test_format_cell(value, expected: str) -> None:
    """Test cell rendering for every kind."""
    assert format_cell(value) == expected


def test_export_csv(template: Template) -> None:
    """Test header labels, quoting and value rendering."""
    item = completed_item(
        "a.png",
        {"title": 'Plate "A"', "mass": 2.0, "notes": ["deburr", "paint"], "approved": None},
    )

    text = export_csv([item, BatchItem(document=doc("b.png"))], template)
    lines = text.splitlines()

    assert lines[0] == "File Name,SHA256,Title,Mass,Notes,approved"
    assert lines[1] == f'"a.png","{item.sha256}","Plate ""A""","2","deburr, paint",""'
    assert len(lines) == 2

    rows = list(csv.reader(io.StringIO(text)))
    assert rows[1][2] == 'Plate "A"'


def test_export_filename() -> None:
    """Test the timestamped name."""
    now = datetime(2024, 5, 1, 8, 30, 0, tzinfo=timezone.utc)
    assert export_filename("csv", now) == "extraction_results_2024-05-01T08-30-00Z.csv"
    assert export_filename(".json", now).endswith(".json")
