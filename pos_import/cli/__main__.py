from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from ..db.postgres_store import PostgresStore
from ..db.store import ImportStore, InMemoryStore
from ..excel.writer import generate_template_file
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, set_debug, setup_logging
from ..models.config_models import ImportConfig
from ..models.entity_type import EntityType, UnknownEntityType
from ..services.importer import MSG_NO_DATA, ImportOutcome, ImportRequestError, parse_upload, run_import
from ..services.summary import parse_summary_fields, summary_fields

"""CLI entrypoint.

Subcommands:
- template TYPE [--out PATH]   write the blank upload template
- parse FILE --type TYPE       preview: validate rows, write nothing
- import FILE --type TYPE      reconcile rows against PostgreSQL

DISABLE_DB_CONNECT=1 runs `import` against an empty in-memory store.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _resolve_dsn(cfg: ImportConfig) -> str:
    """Connection string; environment (.env already loaded) wins over config/import.yml.

    1. DATABASE_URL / PGDSN, then database.dsn
    2. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, each falling back
       to the matching database.* key
    """
    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def _db_connection(cfg: ImportConfig) -> Iterator[Any]:
    """psycopg2 cursor inside one transaction: commit on success, rollback on error."""
    conn = psycopg2.connect(_resolve_dsn(cfg))
    try:
        conn.autocommit = False
        with conn.cursor() as cur:
            yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; its values override the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="pos-import", description="Spreadsheet bulk import for the POS catalog")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="Config file (default: %(default)s)")
    sub = p.add_subparsers(dest="command", required=True)

    t = sub.add_parser("template", help="Write the blank upload template")
    t.add_argument("entity_type", metavar="TYPE")
    t.add_argument("--out", help="Output path (default: ./plantilla-TYPE.xlsx)")

    for name, help_text in (("parse", "Validate a file without writing"), ("import", "Import a file")):
        c = sub.add_parser(name, help=help_text)
        c.add_argument("file", metavar="FILE")
        c.add_argument("--type", dest="entity_type", metavar="TYPE", required=True)
    return p.parse_args(argv)


def _cmd_template(args: argparse.Namespace, et: EntityType, logger: logging.Logger) -> int:
    out = Path(args.out) if args.out else Path(f"plantilla-{et.value}.xlsx")
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(generate_template_file(et))
    logger.info(f"template written: {out}")
    return EXIT_SUCCESS_ALL


def _read_upload(path: Path, logger: logging.Logger) -> bytes | None:
    if not path.is_file():
        logger.error(f"file not found: {path}")
        return None
    return path.read_bytes()


def _cmd_parse(args: argparse.Namespace, et: EntityType, logger: logging.Logger) -> int:
    buffer = _read_upload(Path(args.file), logger)
    if buffer is None:
        return EXIT_FATAL
    try:
        parsed = parse_upload(buffer, et)
    except ImportRequestError as e:
        logger.error(f"parse: {e}")
        return EXIT_FATAL
    if not parsed.rows:
        logger.error(f"parse: {MSG_NO_DATA}")
        return EXIT_FATAL

    for row in parsed.failing_rows():
        logger.warning(f"row={row.row_number} {row.error_text()}")
    log_summary(parse_summary_fields(et, parsed))
    return EXIT_SUCCESS_ALL if parsed.success else EXIT_PARTIAL_FAILURE


def _import_with(store: ImportStore, buffer: bytes, et: EntityType, cfg: ImportConfig,
                 error_log: ErrorLogBuffer, file_name: str) -> ImportOutcome:
    return run_import(buffer, et, cfg.organization_id, store, error_log=error_log, file_name=file_name)


def _cmd_import(args: argparse.Namespace, et: EntityType, logger: logging.Logger) -> int:
    try:
        cfg = load_config(Path(args.config))
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    path = Path(args.file)
    buffer = _read_upload(path, logger)
    if buffer is None:
        return EXIT_FATAL

    error_log = ErrorLogBuffer(cfg.logs_directory)
    db_mode = "mock"
    try:
        # DISABLE_DB_CONNECT=1: tests and dry runs, nothing leaves the process
        if os.getenv("DISABLE_DB_CONNECT") == "1":
            logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> in-memory store")
            outcome = _import_with(InMemoryStore(), buffer, et, cfg, error_log, path.name)
        else:
            with _db_connection(cfg) as cur:
                db_mode = "live"
                outcome = _import_with(PostgresStore(cur), buffer, et, cfg, error_log, path.name)
    except ImportRequestError as e:
        logger.error(f"import: {e}")
        return EXIT_FATAL
    except psycopg2.Error as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL
    finally:
        log_path = error_log.flush()
        if log_path is not None:
            logger.info(f"error log: {log_path}")

    result = outcome.result
    logger.info(f"mode={db_mode} organization={cfg.organization_id}")
    if outcome.error_file is not None:
        out_dir = Path(cfg.output_directory)
        out_dir.mkdir(parents=True, exist_ok=True)
        error_path = out_dir / f"errores-{et.value}.xlsx"
        error_path.write_bytes(outcome.error_file)
        logger.warning(f"{result.failed} row(s) failed, corrections file: {error_path}")
    logger.info(f"invalidate cache tags: {', '.join(outcome.invalidated_tags)}")

    log_summary(summary_fields(et, result, outcome.elapsed_seconds))

    return EXIT_PARTIAL_FAILURE if result.failed > 0 else EXIT_SUCCESS_ALL


_COMMANDS = {
    "template": _cmd_template,
    "parse": _cmd_parse,
    "import": _cmd_import,
}


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an explicit [] must not pick up the test runner's own argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)

    try:
        et = EntityType.parse(args.entity_type)
    except UnknownEntityType as e:
        logger.error(str(e))
        return EXIT_FATAL

    return _COMMANDS[args.command](args, et, logger)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
