"""Structural checks that gate whether a CSV row reaches the normalizer."""

from __future__ import annotations

from collections.abc import Sequence

from contracts.records import (
    EXPECTED_HEADER,
    CandidateRecord,
    EmptyRowSkip,
    HeaderMismatch,
    StructuralSkip,
    ValidationFailure,
)

MIN_COLUMNS = len(EXPECTED_HEADER)

RowCheck = CandidateRecord | EmptyRowSkip | StructuralSkip | ValidationFailure


def _is_blank(fields: Sequence[str]) -> bool:
    return all(not str(f).strip() for f in fields)


def check_header(fields: Sequence[str]) -> HeaderMismatch | None:
    """Return a warning when the header is not ``name,surname,email``."""
    found = tuple(str(f).strip().lower() for f in fields[:MIN_COLUMNS])
    if found == EXPECTED_HEADER:
        return None
    return HeaderMismatch(found=tuple(str(f).strip() for f in fields))


def validate_row(fields: Sequence[str], line_number: int) -> RowCheck:
    """Classify one data row.

    Blank rows (``[]`` for an empty line, ``",,"``) are skips, not errors. A
    row with content but fewer than three columns is a structural error.
    """
    # Blank wins over column count: "," and an empty line are skips.
    if _is_blank(fields):
        return EmptyRowSkip(line_number=line_number)

    if len(fields) < MIN_COLUMNS:
        return StructuralSkip(
            line_number=line_number,
            reason=f"expected at least {MIN_COLUMNS} columns, found {len(fields)}",
        )

    name, surname, email = (str(f).strip() for f in fields[:MIN_COLUMNS])
    missing = [
        label
        for label, value in zip(EXPECTED_HEADER, (name, surname, email), strict=True)
        if not value
    ]
    if len(missing) == MIN_COLUMNS:
        # Only trailing columns carried content.
        return EmptyRowSkip(line_number=line_number)
    if missing:
        return ValidationFailure(
            line_number=line_number,
            reason=f"missing required field(s): {', '.join(missing)}",
        )

    return CandidateRecord(name=name, surname=surname, email=email, line_number=line_number)
