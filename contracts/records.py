"""Record, outcome and statistics types for the CSV ingestion pipeline.

Every data row of an input file produces exactly one ``RowOutcome``. Each
outcome class declares the ``IngestionStats`` counter it folds into through
its ``bucket`` class attribute, so counting never depends on message text:

- ``processed``: Inserted, WouldInsert
- ``errors``:    ValidationFailure, StructuralSkip, DuplicateEmail, StorageError
- ``skipped``:   EmptyRowSkip

Pipeline notices (HeaderMismatch, InputFailure) are reported like outcomes but
never counted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Literal, Union

Bucket = Literal["processed", "errors", "skipped"]
WriteStatus = Literal["ok", "duplicate_key", "storage_failure"]

EXPECTED_HEADER: tuple[str, str, str] = ("name", "surname", "email")


@dataclass(frozen=True)
class CandidateRecord:
    """Trimmed fields of one structurally valid row; content not yet validated."""

    name: str
    surname: str
    email: str
    line_number: int


@dataclass(frozen=True)
class CleanRecord:
    """Normalized record, safe to persist."""

    name: str
    surname: str
    email: str

    def display_name(self) -> str:
        return f"{self.name} {self.surname}"


# ---------------------------
# Row outcomes
# ---------------------------

@dataclass(frozen=True)
class Inserted:
    record: CleanRecord
    line_number: int
    bucket: ClassVar[Bucket] = "processed"


@dataclass(frozen=True)
class WouldInsert:
    """Dry-run counterpart of Inserted."""

    record: CleanRecord
    line_number: int
    bucket: ClassVar[Bucket] = "processed"


@dataclass(frozen=True)
class DuplicateEmail:
    record: CleanRecord
    line_number: int
    bucket: ClassVar[Bucket] = "errors"


@dataclass(frozen=True)
class StorageError:
    """Insert failed for a reason other than the unique email constraint."""

    record: CleanRecord
    line_number: int
    message: str
    bucket: ClassVar[Bucket] = "errors"


@dataclass(frozen=True)
class ValidationFailure:
    line_number: int
    reason: str
    bucket: ClassVar[Bucket] = "errors"


@dataclass(frozen=True)
class StructuralSkip:
    """Row has too few columns to be read as a record."""

    line_number: int
    reason: str
    bucket: ClassVar[Bucket] = "errors"


@dataclass(frozen=True)
class EmptyRowSkip:
    line_number: int
    bucket: ClassVar[Bucket] = "skipped"


RowOutcome = Union[
    Inserted,
    WouldInsert,
    DuplicateEmail,
    StorageError,
    ValidationFailure,
    StructuralSkip,
    EmptyRowSkip,
]


# ---------------------------
# Pipeline notices (not counted)
# ---------------------------

@dataclass(frozen=True)
class HeaderMismatch:
    """First row does not read ``name,surname,email``; processing continues."""

    found: tuple[str, ...]


@dataclass(frozen=True)
class InputFailure:
    """The input file could not be opened or read; the run is aborted."""

    path: str
    reason: str


Notice = Union[HeaderMismatch, InputFailure]


# ---------------------------
# Writer result
# ---------------------------

@dataclass(frozen=True)
class WriteResult:
    """Result of one RecordWriter.write call."""

    status: WriteStatus
    message: str = ""
    simulated: bool = False

    @classmethod
    def ok(cls, *, simulated: bool = False) -> WriteResult:
        return cls(status="ok", simulated=simulated)

    @classmethod
    def duplicate_key(cls, message: str = "") -> WriteResult:
        return cls(status="duplicate_key", message=message)

    @classmethod
    def storage_failure(cls, message: str) -> WriteResult:
        return cls(status="storage_failure", message=message)


# ---------------------------
# Run statistics
# ---------------------------

@dataclass
class IngestionStats:
    """Counters for one ingestion run.

    ``lines_read`` counts data rows only; the header row is never counted.
    """

    lines_read: int = 0
    processed: int = 0
    errors: int = 0
    skipped: int = 0

    def record(self, outcome: RowOutcome) -> None:
        """Fold one row outcome into the counters."""
        self.lines_read += 1
        bucket = outcome.bucket
        if bucket == "processed":
            self.processed += 1
        elif bucket == "errors":
            self.errors += 1
        else:
            self.skipped += 1

    @property
    def reconciled(self) -> bool:
        return self.lines_read == self.processed + self.errors + self.skipped

    def as_dict(self) -> dict[str, int]:
        return {
            "lines_read": self.lines_read,
            "processed": self.processed,
            "errors": self.errors,
            "skipped": self.skipped,
        }
