"""Tests for users table provisioning."""

from __future__ import annotations

import pytest

from apps.backend.schema import create_users_table, users_table_ddl
from tests.factories import FakeConn, storage_error


def test_ddl_drops_then_creates_with_unique_email() -> None:
    drop, create = users_table_ddl()

    assert drop == "DROP TABLE IF EXISTS users"
    assert "CREATE TABLE users" in create
    assert "id SERIAL PRIMARY KEY" in create
    assert "CONSTRAINT users_email_key UNIQUE (email)" in create
    for column in ("name", "surname", "email"):
        assert f"{column} TEXT NOT NULL" in create


def test_ddl_uses_custom_table_name() -> None:
    drop, create = users_table_ddl("people")
    assert drop == "DROP TABLE IF EXISTS people"
    assert "people_email_key" in create


def test_create_users_table_commits_once() -> None:
    conn = FakeConn()

    create_users_table(conn)

    assert [sql for sql, _ in conn.executed] == users_table_ddl()
    assert conn.commit_calls == 1
    assert conn.rollback_calls == 0


def test_create_users_table_rolls_back_and_reraises() -> None:
    conn = FakeConn(fail_with=storage_error("permission denied for schema public"))

    with pytest.raises(Exception, match="permission denied"):
        create_users_table(conn)

    assert conn.commit_calls == 0
    assert conn.rollback_calls == 1
