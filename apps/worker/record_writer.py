"""Record writers: persist a CleanRecord, or pretend to in a dry run.

The pipeline only ever calls ``write`` and reads the returned WriteResult;
which writer it gets is decided by the caller. Storage errors never escape
``write``: a unique violation on email becomes ``duplicate_key`` and every
other database error becomes ``storage_failure``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from apps.backend.schema import DEFAULT_TABLE
from contracts.records import CleanRecord, WriteResult

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


class RecordWriter(ABC):
    """Abstract record writer contract."""

    @abstractmethod
    def write(self, record: CleanRecord) -> WriteResult:
        """Store one record and report how it went."""
        raise NotImplementedError


def _is_unique_violation(exc: Exception) -> bool:
    from psycopg2 import errors  # type: ignore

    if isinstance(exc, errors.UniqueViolation):
        return True
    return getattr(exc, "pgcode", None) == UNIQUE_VIOLATION


def _error_message(exc: Exception) -> str:
    text = str(exc).strip()
    return text.splitlines()[0] if text else exc.__class__.__name__


class PersistingWriter(RecordWriter):
    """Insert records one at a time, committing each row."""

    def __init__(self, conn: Any, *, table: str = DEFAULT_TABLE) -> None:
        self._conn = conn
        self._table = table
        self._insert_sql = f"INSERT INTO {table} (name, surname, email) VALUES (%s, %s, %s)"

    def write(self, record: CleanRecord) -> WriteResult:
        import psycopg2  # type: ignore

        try:
            with self._conn.cursor() as cur:
                cur.execute(self._insert_sql, (record.name, record.surname, record.email))
            self._conn.commit()
        except psycopg2.Error as exc:
            # A failed statement aborts the transaction; later rows need a clean one.
            try:
                self._conn.rollback()
            except psycopg2.Error as rb_exc:
                logger.warning("Rollback failed after insert error: %s", rb_exc)
            if _is_unique_violation(exc):
                logger.debug("duplicate_email email=%s table=%s", record.email, self._table)
                return WriteResult.duplicate_key(_error_message(exc))
            message = _error_message(exc)
            logger.warning("insert_failed email=%s table=%s error=%s", record.email, self._table, message)
            return WriteResult.storage_failure(message)
        return WriteResult.ok()


class DryRunWriter(RecordWriter):
    """Accept every record without touching storage."""

    def __init__(self) -> None:
        self.simulated_writes = 0

    def write(self, record: CleanRecord) -> WriteResult:
        self.simulated_writes += 1
        logger.debug("dry_run_write email=%s", record.email)
        return WriteResult.ok(simulated=True)
