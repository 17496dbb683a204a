"""
db.py

Tiny PostgreSQL helper module (psycopg2) for the upload CLI.

One CLI run needs exactly one connection: it is opened once, used for every
row (or for the DDL in ``--create_table`` mode) and released once, whatever
happens in between. Connection failures surface as ``DbConnectionError`` and
are never retried.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Sequence

from infra.config import DatabaseConfig

logger = logging.getLogger(__name__)


class DbConnectionError(RuntimeError):
    """Raised when a PostgreSQL connection cannot be obtained."""


def _connect_kwargs(
    config: DatabaseConfig,
    *,
    host: Optional[str] = None,
    user: Optional[str] = None,
    password: Optional[str] = None,
    dbname: Optional[str] = None,
    port: Optional[int] = None,
) -> dict[str, Any]:
    """Merge explicit credentials over configured values.

    When ``DB_URL`` is configured it becomes the DSN and explicit keyword
    values still override its parts (libpq semantics).
    """
    kwargs: dict[str, Any] = {"connect_timeout": config.connect_timeout}
    if config.url:
        kwargs["dsn"] = config.url
        overrides = {"host": host, "user": user, "password": password, "dbname": dbname, "port": port}
        kwargs.update({k: v for k, v in overrides.items() if v})
        return kwargs

    kwargs.update(
        {
            "host": host or config.host,
            "port": port or config.port,
            "dbname": dbname or config.name,
        }
    )
    resolved_user = user or config.user
    resolved_password = password or config.password
    if resolved_user:
        kwargs["user"] = resolved_user
    if resolved_password:
        kwargs["password"] = resolved_password
    return kwargs


def connect(config: DatabaseConfig, **overrides: Any) -> Any:
    """Open a psycopg2 connection or raise DbConnectionError."""
    import psycopg2  # type: ignore

    kwargs = _connect_kwargs(config, **overrides)
    target = f"{kwargs.get('host') or '(dsn)'}:{kwargs.get('port') or ''}/{kwargs.get('dbname') or ''}"
    try:
        conn = psycopg2.connect(**kwargs)
    except psycopg2.Error as exc:
        message = str(exc).strip() or exc.__class__.__name__
        raise DbConnectionError(f"could not connect to {target}: {message}") from exc
    logger.info("db_connected target=%s", target)
    return conn


@contextmanager
def db_conn(config: DatabaseConfig, **overrides: Any) -> Iterator[Any]:
    """Yield a psycopg2 connection and always release it.

    Any transaction still open on exit is rolled back before the connection
    is closed, so a failed run never leaves a half-written row behind.
    """
    conn = connect(config, **overrides)
    try:
        yield conn
    finally:
        try:
            conn.rollback()
        except Exception as exc:  # connection may already be broken
            logger.debug("rollback on release failed: %s", exc)
        try:
            conn.close()
        except Exception as exc:
            logger.debug("close on release failed: %s", exc)


def execute_conn(conn: Any, sql: str, params: Optional[Sequence[Any]] = None) -> None:
    """Execute a statement on an existing connection (no returned rows)."""
    with conn.cursor() as cur:
        cur.execute(sql, params or ())
