"""
pipeline.ingest_csv

Stream a CSV file of person records into a RecordWriter.

The pipeline walks ``AWAITING_HEADER -> STREAMING -> FINISHED`` once per run:

- the first row is always the header; a mismatch is a warning, never fatal
- every later row yields exactly one RowOutcome, reported and counted once
- bad rows are resolved locally; only an unopenable or unreadable input file
  aborts the run (``IngestionInputError``)

The input file is closed on every exit path. The writer's connection belongs
to the caller and is never touched here.
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterator, Sequence
from enum import Enum
from pathlib import Path

from apps.worker.record_writer import RecordWriter
from contracts.records import (
    CandidateRecord,
    DuplicateEmail,
    IngestionStats,
    InputFailure,
    Inserted,
    RowOutcome,
    StorageError,
    ValidationFailure,
    WouldInsert,
)
from pipeline.normalize import RecordValidationError, normalize_record
from pipeline.report import ReportEmitter
from pipeline.row_validator import check_header, validate_row

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    AWAITING_HEADER = "awaiting_header"
    STREAMING = "streaming"
    FINISHED = "finished"


class IngestionInputError(RuntimeError):
    """Raised when the input file cannot be opened or read."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


def _describe_io_error(exc: BaseException) -> str:
    if isinstance(exc, FileNotFoundError):
        return "file not found"
    if isinstance(exc, IsADirectoryError):
        return "path is a directory"
    if isinstance(exc, PermissionError):
        return "permission denied"
    if isinstance(exc, UnicodeDecodeError):
        return f"not valid {exc.encoding} text (byte offset {exc.start})"
    if isinstance(exc, csv.Error):
        return f"malformed CSV: {exc}"
    return str(exc) or exc.__class__.__name__


def _numbered_rows(reader: Iterator[list[str]]) -> Iterator[tuple[int, list[str]]]:
    """Yield ``(line_number, fields)`` where line_number is the record's first line."""
    while True:
        line_number = reader.line_num + 1  # type: ignore[attr-defined]
        try:
            fields = next(reader)
        except StopIteration:
            return
        yield line_number, fields


class IngestionPipeline:
    """Single-use runner for one CSV file."""

    def __init__(
        self,
        writer: RecordWriter,
        *,
        emitter: ReportEmitter | None = None,
        encoding: str = "utf-8-sig",
        delimiter: str = ",",
    ) -> None:
        self._writer = writer
        self._emitter = emitter or ReportEmitter()
        self._encoding = encoding
        self._delimiter = delimiter
        self._state = PipelineState.AWAITING_HEADER
        self._stats = IngestionStats()

    @property
    def state(self) -> PipelineState:
        return self._state

    def classify_row(self, fields: Sequence[str], line_number: int) -> RowOutcome:
        """Run one data row through validation, normalization and the writer."""
        checked = validate_row(fields, line_number)
        if not isinstance(checked, CandidateRecord):
            return checked

        try:
            record = normalize_record(checked)
        except RecordValidationError as exc:
            return ValidationFailure(line_number=line_number, reason=exc.reason)

        result = self._writer.write(record)
        if result.status == "ok":
            if result.simulated:
                return WouldInsert(record=record, line_number=line_number)
            return Inserted(record=record, line_number=line_number)
        if result.status == "duplicate_key":
            return DuplicateEmail(record=record, line_number=line_number)
        return StorageError(record=record, line_number=line_number, message=result.message)

    def _abort(self, path: Path, exc: BaseException) -> IngestionInputError:
        reason = _describe_io_error(exc)
        self._emitter.emit(InputFailure(path=str(path), reason=reason))
        logger.error("input_unreadable path=%s reason=%s", path, reason)
        return IngestionInputError(str(path), reason)

    def run(self, input_path: str | Path) -> IngestionStats:
        """Ingest ``input_path`` and return the run's counters."""
        if self._state is not PipelineState.AWAITING_HEADER:
            raise RuntimeError("IngestionPipeline instances are single-use")

        path = Path(input_path)
        logger.info("ingest_started path=%s", path)
        try:
            stream = open(path, "r", encoding=self._encoding, newline="")
        except OSError as exc:
            self._state = PipelineState.FINISHED
            raise self._abort(path, exc) from exc

        try:
            with stream:
                rows = _numbered_rows(csv.reader(stream, delimiter=self._delimiter))
                self._consume_header(rows)
                if self._state is PipelineState.STREAMING:
                    self._stream(rows)
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            raise self._abort(path, exc) from exc
        finally:
            self._state = PipelineState.FINISHED

        self._emitter.emit_summary(self._stats)
        counters = " ".join(f"{k}={v}" for k, v in self._stats.as_dict().items())
        logger.info("ingest_finished path=%s %s", path, counters)
        return self._stats

    def _consume_header(self, rows: Iterator[tuple[int, list[str]]]) -> None:
        header = next(rows, None)
        if header is None:
            logger.warning("input_empty: no header row, nothing to ingest")
            self._state = PipelineState.FINISHED
            return
        _, fields = header
        mismatch = check_header(fields)
        if mismatch is not None:
            self._emitter.emit(mismatch)
        self._state = PipelineState.STREAMING

    def _stream(self, rows: Iterator[tuple[int, list[str]]]) -> None:
        for line_number, fields in rows:
            outcome = self.classify_row(fields, line_number)
            self._stats.record(outcome)
            self._emitter.emit(outcome)
            logger.debug("row_outcome line=%d outcome=%s", line_number, type(outcome).__name__)


def run_ingestion(
    input_path: str | Path,
    writer: RecordWriter,
    *,
    emitter: ReportEmitter | None = None,
    encoding: str = "utf-8-sig",
    delimiter: str = ",",
) -> IngestionStats:
    """Ingest one CSV file through ``writer`` (persisting or dry run)."""
    pipeline = IngestionPipeline(writer, emitter=emitter, encoding=encoding, delimiter=delimiter)
    return pipeline.run(input_path)
