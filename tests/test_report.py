"""Unit tests for report formatting."""

from __future__ import annotations

import pytest

from contracts.records import (
    DuplicateEmail,
    EmptyRowSkip,
    HeaderMismatch,
    IngestionStats,
    InputFailure,
    Inserted,
    StorageError,
    StructuralSkip,
    ValidationFailure,
    WouldInsert,
)
from pipeline.report import InMemoryReportSink, ReportEmitter, format_outcome, format_summary
from tests.factories import make_clean


def test_format_outcome_lines() -> None:
    record = make_clean()

    assert format_outcome(Inserted(record=record, line_number=2)) == (
        "Line 2: inserted John Doe <john@example.com>"
    )
    assert format_outcome(WouldInsert(record=record, line_number=3)) == (
        "Line 3: [DRY RUN] would insert John Doe <john@example.com>"
    )
    assert format_outcome(DuplicateEmail(record=record, line_number=4)) == (
        "Line 4: Error: could not insert john@example.com (possible duplicate email)"
    )
    assert format_outcome(StorageError(record=record, line_number=5, message="timeout")) == (
        "Line 5: Error: could not insert john@example.com (timeout)"
    )
    assert format_outcome(ValidationFailure(line_number=6, reason="invalid email format")) == (
        "Line 6: Error: invalid email format. Skipping row."
    )
    assert format_outcome(StructuralSkip(line_number=7, reason="expected at least 3 columns, found 1")) == (
        "Line 7: Error: expected at least 3 columns, found 1. Skipping row."
    )
    assert format_outcome(EmptyRowSkip(line_number=8)) == "Line 8: Skipping empty row."


def test_format_notices() -> None:
    assert "expected 'name,surname,email'" in format_outcome(HeaderMismatch(found=("a", "b")))
    assert "(empty)" in format_outcome(HeaderMismatch(found=()))
    assert format_outcome(InputFailure(path="users.csv", reason="file not found")) == (
        "Error: cannot read input file users.csv: file not found"
    )


def test_format_outcome_rejects_unknown_types() -> None:
    with pytest.raises(TypeError):
        format_outcome(object())  # type: ignore[arg-type]


def test_format_summary() -> None:
    stats = IngestionStats(lines_read=5, processed=3, errors=1, skipped=1)

    assert format_summary(stats).splitlines() == [
        "Summary:",
        "  Lines read: 5",
        "  Processed:  3",
        "  Errors:     1",
        "  Skipped:    1",
    ]
    assert format_summary(stats, dry_run=True).startswith("Summary (dry run, nothing was written):")


def test_emitter_writes_to_sink_in_order() -> None:
    sink = InMemoryReportSink()
    emitter = ReportEmitter(sink)

    emitter.emit(EmptyRowSkip(line_number=2))
    emitter.emit_summary(IngestionStats(lines_read=1, skipped=1))

    lines = sink.lines()
    assert lines[0] == "Line 2: Skipping empty row."
    assert lines[1].startswith("Summary:")


def test_emitter_defaults_to_stdout(capsys: pytest.CaptureFixture[str]) -> None:
    ReportEmitter().emit(EmptyRowSkip(line_number=3))
    assert capsys.readouterr().out == "Line 3: Skipping empty row.\n"


def test_input_failure_goes_to_stderr_by_default(capsys: pytest.CaptureFixture[str]) -> None:
    emitter = ReportEmitter()
    emitter.emit(InputFailure(path="users.csv", reason="permission denied"))
    emitter.emit(EmptyRowSkip(line_number=2))

    captured = capsys.readouterr()
    assert captured.err == "Error: cannot read input file users.csv: permission denied\n"
    assert captured.out == "Line 2: Skipping empty row.\n"


def test_input_failure_uses_explicit_error_sink() -> None:
    sink = InMemoryReportSink()
    errors = InMemoryReportSink()
    emitter = ReportEmitter(sink, error_sink=errors)

    emitter.emit(InputFailure(path="users.csv", reason="file not found"))

    assert sink.lines() == []
    assert errors.lines() == ["Error: cannot read input file users.csv: file not found"]
