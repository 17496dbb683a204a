"""Unit tests for record normalization."""

from __future__ import annotations

import pytest

from pipeline.normalize import (
    RecordValidationError,
    clean_email,
    clean_name,
    is_valid_email,
    normalize_record,
)
from tests.factories import make_candidate


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("  john  ", "John"),
        ("o'brien", "O'brien"),
        ("John3!", "John"),
        ("MARY-JANE", "Mary-jane"),
        ("van der  berg", "Van Der Berg"),
        ("ann\tmarie", "Ann Marie"),
        (" ann\n marie ", "Ann Marie"),
        ("élodie", "Élodie"),
        ("123", ""),
    ],
)
def test_clean_name(raw: str, expected: str) -> None:
    assert clean_name(raw) == expected


def test_clean_email_lowercases_and_trims_without_stripping() -> None:
    assert clean_email("  Jane.Doe+News@EXAMPLE.com ") == "jane.doe+news@example.com"


@pytest.mark.parametrize(
    "email",
    ["jane.doe@example.com", "a@b.co", "o'reilly@mail.example.org", "x_y-z@sub-domain.example.io"],
)
def test_valid_emails(email: str) -> None:
    assert is_valid_email(email) is True


@pytest.mark.parametrize(
    "email",
    [
        "",
        "not-an-email",
        "@example.com",
        "jane@",
        "jane@localhost",
        "jane@@example.com",
        "jane doe@example.com",
        "jane..doe@example.com",
        ".jane@example.com",
        "jane@-example.com",
        "jane@example..com",
        "edward@mail.com!",
        "john\n@x.com",
        "john@x\n.com",
    ],
)
def test_invalid_emails(email: str) -> None:
    assert is_valid_email(email) is False


def test_normalize_record_produces_clean_record() -> None:
    clean = normalize_record(make_candidate(name="  jANE ", surname="o'HARA", email="Jane.Doe@EXAMPLE.com"))

    assert clean.name == "Jane"
    assert clean.surname == "O'hara"
    assert clean.email == "jane.doe@example.com"


def test_normalize_record_rejects_invalid_email() -> None:
    with pytest.raises(RecordValidationError) as excinfo:
        normalize_record(make_candidate(email="not-an-email"))
    assert excinfo.value.reason == "invalid email format"


def test_normalize_record_rejects_name_without_letters() -> None:
    with pytest.raises(RecordValidationError, match="name contains no valid characters"):
        normalize_record(make_candidate(name="12345"))

    with pytest.raises(RecordValidationError, match="surname contains no valid characters"):
        normalize_record(make_candidate(surname="!!"))


def test_normalize_record_is_deterministic() -> None:
    candidate = make_candidate(name="  o'brien3 ", surname="SMITH", email=" A@B.CO ")
    assert normalize_record(candidate) == normalize_record(candidate)
