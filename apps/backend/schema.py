"""
Schema provisioning for the users table.

Usage:
  user-upload --create_table -u admin -p secret -h localhost

The table is dropped and recreated; this is not a migration.
"""

from __future__ import annotations

import logging
from typing import Any

from apps.backend.db import execute_conn

logger = logging.getLogger(__name__)

DEFAULT_TABLE = "users"


def users_table_ddl(table: str = DEFAULT_TABLE) -> list[str]:
    """Return the statements that (re)create the users table.

    ``table`` must already be a validated identifier (see ``IngestConfig``).
    """
    return [
        f"DROP TABLE IF EXISTS {table}",
        f"""
        CREATE TABLE {table} (
          id SERIAL PRIMARY KEY,
          name TEXT NOT NULL,
          surname TEXT NOT NULL,
          email TEXT NOT NULL,
          CONSTRAINT {table}_email_key UNIQUE (email)
        )
        """,
    ]


def create_users_table(conn: Any, table: str = DEFAULT_TABLE) -> None:
    """Drop and recreate the users table in a single transaction."""
    try:
        for stmt in users_table_ddl(table):
            execute_conn(conn, stmt)
        conn.commit()
    except Exception:
        try:
            conn.rollback()
        except Exception as exc:
            logger.debug("rollback after failed DDL failed: %s", exc)
        raise
    logger.info("table_created table=%s", table)
