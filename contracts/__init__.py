"""Contracts for the CSV ingestion pipeline.

The contracts package defines the record, outcome, writer-result and
statistics types shared by the pipeline, the writers and the report emitter.
"""

from contracts.records import (
    CandidateRecord,
    CleanRecord,
    DuplicateEmail,
    EmptyRowSkip,
    HeaderMismatch,
    IngestionStats,
    InputFailure,
    Inserted,
    RowOutcome,
    StorageError,
    StructuralSkip,
    ValidationFailure,
    WouldInsert,
    WriteResult,
)

__all__ = [
    "CandidateRecord",
    "CleanRecord",
    "DuplicateEmail",
    "EmptyRowSkip",
    "HeaderMismatch",
    "IngestionStats",
    "InputFailure",
    "Inserted",
    "RowOutcome",
    "StorageError",
    "StructuralSkip",
    "ValidationFailure",
    "WouldInsert",
    "WriteResult",
]
