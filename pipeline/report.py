"""Human-readable report lines for ingestion outcomes.

Formatting only: counting lives in ``IngestionStats`` and classification in
the validator/normalizer/writer. Lines are handed to a sink callable so the
pipeline can be exercised without capturing stdout.
"""

from __future__ import annotations

import sys
from collections.abc import Callable

from contracts.records import (
    DuplicateEmail,
    EmptyRowSkip,
    HeaderMismatch,
    IngestionStats,
    InputFailure,
    Inserted,
    Notice,
    RowOutcome,
    StorageError,
    StructuralSkip,
    ValidationFailure,
    WouldInsert,
)

ReportSink = Callable[[str], None]


def format_outcome(outcome: RowOutcome | Notice) -> str:
    """Return the report line for one outcome or notice."""
    if isinstance(outcome, Inserted):
        r = outcome.record
        return f"Line {outcome.line_number}: inserted {r.display_name()} <{r.email}>"
    if isinstance(outcome, WouldInsert):
        r = outcome.record
        return f"Line {outcome.line_number}: [DRY RUN] would insert {r.display_name()} <{r.email}>"
    if isinstance(outcome, DuplicateEmail):
        return (
            f"Line {outcome.line_number}: Error: could not insert {outcome.record.email} "
            "(possible duplicate email)"
        )
    if isinstance(outcome, StorageError):
        return (
            f"Line {outcome.line_number}: Error: could not insert {outcome.record.email} "
            f"({outcome.message})"
        )
    if isinstance(outcome, (ValidationFailure, StructuralSkip)):
        return f"Line {outcome.line_number}: Error: {outcome.reason}. Skipping row."
    if isinstance(outcome, EmptyRowSkip):
        return f"Line {outcome.line_number}: Skipping empty row."
    if isinstance(outcome, HeaderMismatch):
        found = ",".join(outcome.found) if outcome.found else "(empty)"
        return f"Warning: unexpected header {found!r}; expected 'name,surname,email'. Continuing."
    if isinstance(outcome, InputFailure):
        return f"Error: cannot read input file {outcome.path}: {outcome.reason}"
    raise TypeError(f"unsupported outcome: {type(outcome).__name__}")


def format_summary(stats: IngestionStats, *, dry_run: bool = False) -> str:
    """Return the multi-line end-of-run summary."""
    title = "Summary (dry run, nothing was written):" if dry_run else "Summary:"
    return "\n".join(
        [
            title,
            f"  Lines read: {stats.lines_read}",
            f"  Processed:  {stats.processed}",
            f"  Errors:     {stats.errors}",
            f"  Skipped:    {stats.skipped}",
        ]
    )


class InMemoryReportSink:
    """Collects report lines in order; used by tests and embedding callers."""

    def __init__(self) -> None:
        self._lines: list[str] = []

    def __call__(self, line: str) -> None:
        self._lines.append(line)

    def lines(self) -> list[str]:
        return list(self._lines)


def _print_stderr(line: str) -> None:
    print(line, file=sys.stderr)


class ReportEmitter:
    """Format outcomes and hand the resulting lines to a sink.

    ``InputFailure`` lines go to ``error_sink``. It defaults to ``sink`` when
    one is given, else to stderr.
    """

    def __init__(
        self,
        sink: ReportSink | None = None,
        *,
        error_sink: ReportSink | None = None,
        dry_run: bool = False,
    ) -> None:
        self._sink: ReportSink = sink or print
        self._error_sink: ReportSink = error_sink or sink or _print_stderr
        self._dry_run = dry_run

    def emit(self, outcome: RowOutcome | Notice) -> None:
        line = format_outcome(outcome)
        if isinstance(outcome, InputFailure):
            self._error_sink(line)
        else:
            self._sink(line)

    def emit_summary(self, stats: IngestionStats) -> None:
        self._sink(format_summary(stats, dry_run=self._dry_run))
