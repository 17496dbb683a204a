"""Field normalization for person records.

- names: keep letters, apostrophes, hyphens and whitespace; collapse each
  whitespace run to one space; lowercase; capitalize the first letter of
  each word
- email: trim and lowercase verbatim, then check the address format

Normalization fails closed: a CleanRecord is never built from an invalid
email address.
"""

from __future__ import annotations

import re

from contracts.records import CandidateRecord, CleanRecord

_NAME_PUNCTUATION = frozenset("'-")
_WORD_RE = re.compile(r"\S+")

# RFC 5322 dot-atom local part; domain of two or more LDH labels.
_LOCAL_RE = re.compile(r"^[a-z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[a-z0-9!#$%&'*+/=?^_`{|}~-]+)*$")
_LABEL_RE = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$")
_MAX_EMAIL_LENGTH = 254
_MAX_LOCAL_LENGTH = 64


class RecordValidationError(ValueError):
    """Raised when a candidate record cannot be normalized."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def _keep_name_char(ch: str) -> bool:
    return ch.isalpha() or ch.isspace() or ch in _NAME_PUNCTUATION


def _capitalize_word(match: re.Match[str]) -> str:
    word = match.group(0)
    return word[:1].upper() + word[1:]


def clean_name(value: str) -> str:
    """Return a display-ready name: ``"  o'BRIEN3 "`` -> ``"O'brien"``."""
    kept = "".join(ch for ch in value if _keep_name_char(ch))
    # Tabs, newlines and runs of spaces become one space.
    return _WORD_RE.sub(_capitalize_word, " ".join(kept.split()).lower())


def clean_email(value: str) -> str:
    return value.strip().lower()


def is_valid_email(value: str) -> bool:
    """Check an already-lowercased address."""
    if not value or len(value) > _MAX_EMAIL_LENGTH or value.count("@") != 1:
        return False
    local, domain = value.split("@")
    if len(local) > _MAX_LOCAL_LENGTH or not _LOCAL_RE.fullmatch(local):
        return False
    labels = domain.split(".")
    if len(labels) < 2:
        return False
    return all(_LABEL_RE.fullmatch(label) for label in labels)


def normalize_record(candidate: CandidateRecord) -> CleanRecord:
    """Normalize a candidate record or raise RecordValidationError."""
    name = clean_name(candidate.name)
    surname = clean_name(candidate.surname)
    email = clean_email(candidate.email)

    if not is_valid_email(email):
        raise RecordValidationError("invalid email format")
    if not name:
        raise RecordValidationError("name contains no valid characters")
    if not surname:
        raise RecordValidationError("surname contains no valid characters")

    return CleanRecord(name=name, surname=surname, email=email)
