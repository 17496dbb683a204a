"""
user-upload CLI (flat-layout friendly).

Usage
-----
user-upload --help
user-upload --create_table -u admin -p secret -h localhost
user-upload --file users.csv -u admin -p secret
user-upload --file users.csv --dry_run

``-h`` is the database host (as with psql), so help is only ``--help``.
Connection values not given on the command line come from the environment
(``DB_HOST``, ``DB_USER``, ``DB_PASSWORD``, ``DB_NAME``, ``DB_PORT`` or
``DB_URL``) or a local ``.env`` file.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from apps.backend.db import DbConnectionError, db_conn
from apps.backend.schema import create_users_table
from apps.worker.record_writer import DryRunWriter, PersistingWriter, RecordWriter
from infra.config import Settings, ValidationError, get_settings
from infra.logging_config import clear_run_context, set_run_context, setup_logging
from pipeline.ingest_csv import IngestionInputError, run_ingestion
from pipeline.report import ReportEmitter
from version import ENGINE_NAME, ENGINE_VERSION

logger = logging.getLogger(__name__)

_EXAMPLES = """\
examples:
  user-upload --help
  user-upload --create_table -u admin -p secret -h localhost
  user-upload --file users.csv -u admin -p secret
  user-upload --file users.csv --dry_run -u admin -p secret
"""


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="user-upload",
        description="Load name,surname,email records from a CSV file into PostgreSQL.",
        epilog=_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    p.add_argument("--file", default=None, metavar="CSV", help="Process CSV file.")
    p.add_argument(
        "--create_table",
        action="store_true",
        help="Create (or rebuild) the users table; no other action is taken.",
    )
    p.add_argument("--dry_run", action="store_true", help="Process the file without changing the database.")
    p.add_argument("-u", dest="user", default=None, metavar="USERNAME", help="PostgreSQL username.")
    p.add_argument("-p", dest="password", default=None, metavar="PASSWORD", help="PostgreSQL password.")
    p.add_argument("-h", dest="host", default=None, metavar="HOST", help="PostgreSQL host.")
    p.add_argument("--db", dest="dbname", default=None, metavar="NAME", help="Database name (or DB_NAME env var).")
    p.add_argument("--port", type=int, default=None, help="PostgreSQL port (or DB_PORT env var).")
    p.add_argument("--help", action="store_true", help="Show this help message.")
    return p


def _db_overrides(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "host": args.host,
        "user": args.user,
        "password": args.password,
        "dbname": args.dbname,
        "port": args.port,
    }


def _check_input_file(path: str) -> Optional[str]:
    """Return an error message when ``path`` is not a readable regular file."""
    p = Path(path)
    if not p.exists():
        return f"input file not found: {p}"
    if not p.is_file():
        return f"input path is not a file: {p}"
    return None


def cmd_create_table(args: argparse.Namespace, settings: Settings) -> int:
    import psycopg2  # type: ignore

    table = settings.ingest.table
    try:
        with db_conn(settings.db, **_db_overrides(args)) as conn:
            create_users_table(conn, table)
    except DbConnectionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except psycopg2.Error as exc:
        print(f"Error: could not create table '{table}': {str(exc).strip()}", file=sys.stderr)
        return 1
    print(f"Table '{table}' created.")
    return 0


def _ingest(args: argparse.Namespace, settings: Settings, writer: RecordWriter) -> None:
    emitter = ReportEmitter(dry_run=args.dry_run)
    run_ingestion(
        args.file,
        writer,
        emitter=emitter,
        encoding=settings.ingest.encoding,
        delimiter=settings.ingest.delimiter,
    )


def cmd_ingest(args: argparse.Namespace, settings: Settings) -> int:
    problem = _check_input_file(args.file)
    if problem:
        print(f"Error: {problem}", file=sys.stderr)
        return 1

    set_run_context(input_file=str(args.file), dry_run=bool(args.dry_run), table=settings.ingest.table)
    try:
        if args.dry_run:
            _ingest(args, settings, DryRunWriter())
        else:
            with db_conn(settings.db, **_db_overrides(args)) as conn:
                _ingest(args, settings, PersistingWriter(conn, table=settings.ingest.table))
    except IngestionInputError:
        # Already reported on stderr by the pipeline.
        return 1
    except DbConnectionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        clear_run_context()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.create_table and args.file:
        print("Error: --create_table and --file options cannot be used together.", file=sys.stderr)
        print("Use --create_table first, then run again with --file.", file=sys.stderr)
        parser.print_help()
        return 1

    if args.help:
        parser.print_help()
        return 0

    if not args.create_table and not args.file:
        parser.print_help()
        return 1

    try:
        settings = get_settings(reload=True)
    except ValidationError as exc:
        print(f"Error: invalid configuration:\n{exc}", file=sys.stderr)
        return 1

    setup_logging()
    logger.info("%s %s starting", ENGINE_NAME, ENGINE_VERSION)

    if args.create_table:
        return cmd_create_table(args, settings)
    return cmd_ingest(args, settings)


if __name__ == "__main__":
    raise SystemExit(main())
