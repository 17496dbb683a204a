"""Tests for log formatting and run context propagation."""

from __future__ import annotations

import json
import logging

from infra.logging_config import (
    JsonFormatter,
    TextFormatter,
    clear_run_context,
    get_run_context,
    set_run_context,
)


def _record(msg: str = "row processed", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("pipeline.ingest_csv", logging.INFO, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_run_context_merges_and_clears() -> None:
    set_run_context(input_file="users.csv")
    set_run_context(dry_run=True)
    assert get_run_context() == {"input_file": "users.csv", "dry_run": True}

    clear_run_context()
    assert get_run_context() == {}


def test_json_formatter_includes_extras_and_run_context() -> None:
    set_run_context(input_file="users.csv", table="users")
    try:
        payload = json.loads(JsonFormatter(extra_fields={"app": "user-upload"}).format(_record(row_line=4)))
    finally:
        clear_run_context()

    assert payload["message"] == "row processed"
    assert payload["level"] == "INFO"
    assert payload["row_line"] == 4
    assert payload["app"] == "user-upload"
    assert payload["input_file"] == "users.csv"
    assert payload["timestamp"].endswith("Z")


def test_text_formatter_is_pipe_separated() -> None:
    line = TextFormatter().format(_record("hello"))
    assert line.endswith(" | INFO | pipeline.ingest_csv | hello")
