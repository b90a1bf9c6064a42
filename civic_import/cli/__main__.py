from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from civic_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, ImportConfig, default_config, load_config
from civic_import.db.repository import InMemoryRepository, PostgresRepository
from civic_import.logging.error_log import ErrorLogBuffer
from civic_import.logging.init import log_summary, set_debug, setup_logging
from civic_import.models.entities import get_schema
from civic_import.models.pipeline_state import PipelineState
from civic_import.models.row import RowStatus
from civic_import.models.schema import ValidationContext
from civic_import.services.commit import GateStatus
from civic_import.services.controller import ImportController
from civic_import.services.progress import CommitProgress, is_tty_enabled
from civic_import.services.summary import render_summary_line
from civic_import.tabular.reader import ParseError
from civic_import.tabular.writer import write_template

"""CLI entrypoint.

Flow:
- Load .env, config and logging
- Parse + validate the file for the chosen entity kind
- Optional search listing / export
- Gate check; warnings need --yes or an interactive confirmation
- Commit row by row with a progress bar, then print the SUMMARY line
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2
EXIT_REFUSED = 3

ENTITY_CHOICES = ["report", "state", "category"]


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv (its values take precedence for DB settings)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="civic-import", description="Bulk import of reports, states and categories")
    p.add_argument("entity", choices=ENTITY_CHOICES, help="Entity kind to import")
    p.add_argument("file", nargs="?", type=Path, help="CSV or XLSX file to import")
    p.add_argument("--config", type=Path, default=None, help=f"Config file (default: {DEFAULT_CONFIG_PATH} if present)")
    p.add_argument("--template", type=Path, default=None, help="Write the import template to this path and exit")
    p.add_argument("--search", default=None, help="List rows matching this text after validation")
    p.add_argument("--export", type=Path, default=None, help="Write the (filtered) working set to this path")
    p.add_argument("--validate-only", action="store_true", help="Stop after validation (no commit)")
    p.add_argument("--yes", action="store_true", help="Confirm default substitutions without prompting")
    p.add_argument("--dry-run", action="store_true", help="Commit into memory using configured lookups (no database)")
    p.add_argument("--delay", type=float, default=None, help="Pacing delay between rows in seconds")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _load_cfg(path: Path | None) -> ImportConfig:
    if path is not None:
        return load_config(path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return default_config()


@contextmanager
def _repository(cfg: ImportConfig, dry_run: bool) -> Iterator[tuple[Any, ValidationContext]]:
    """Yield (repository, validation context) for the selected mode."""
    if dry_run:
        yield InMemoryRepository(), cfg.validation_context()
        return
    from civic_import.db.connection import connect

    with connect(cfg.database) as conn:
        repo = PostgresRepository(conn, cfg.tables)
        yield repo, cfg.validation_context(
            categories=repo.load_lookup("category"),
            states=repo.load_lookup("state"),
        )


def _report_rows(logger: logging.Logger, state: PipelineState) -> None:
    for row in state.rows:
        if row.status is RowStatus.ERROR:
            logger.error(f"row {row.index}: {row.error}")
        for w in row.warnings:
            logger.warning(f"row {row.index}: {w}")
    stats = state.stats()
    logger.info(
        f"{len(state.rows)} rows: {stats['pending']} ready, {stats['warning']} with defaults, {stats['error']} errors"
    )


def _confirm(logger: logging.Logger, warning_rows: int, assume_yes: bool) -> bool:
    if assume_yes:
        return True
    if not is_tty_enabled():
        logger.error(f"{warning_rows} rows use default values; re-run with --yes to confirm")
        return False
    answer = input(f"{warning_rows} rows use default values. Continue? [y/N] ")
    return answer.strip().lower() in ("y", "yes", "s", "si", "sí")


def _run(args: argparse.Namespace, cfg: ImportConfig, logger: logging.Logger) -> int:
    schema = get_schema(args.entity)
    delay = args.delay if args.delay is not None else cfg.delay_seconds
    error_log = ErrorLogBuffer(Path(cfg.logs_directory))

    with _repository(cfg, args.dry_run) as (repo, context):
        controller = ImportController(
            schema, context, repo.create, delay_seconds=delay, error_log=error_log
        )
        try:
            state = controller.load_file(args.file)
        except ParseError as e:
            logger.error(f"parse: {e}")
            return EXIT_FATAL
        _report_rows(logger, state)

        if args.search is not None:
            for row in controller.search(args.search):
                logger.info(f"match row {row.index} [{row.status.value}] {row.raw}")
        if args.export is not None:
            controller.export(args.export, args.search, include_status=True)
        if args.validate_only:
            return EXIT_SUCCESS_ALL

        gate = controller.gate()
        if gate.status is GateStatus.BLOCKED:
            if not gate.error_rows:
                logger.error("commit refused: no rows to import")
                return EXIT_REFUSED
            logger.error(
                f"commit refused: {len(gate.error_rows)} rows with errors must be fixed or removed"
            )
            return EXIT_REFUSED
        confirmation = None
        if gate.status is GateStatus.NEEDS_CONFIRMATION:
            if not _confirm(logger, len(gate.warning_rows), args.yes):
                return EXIT_REFUSED
            confirmation = controller.request_confirmation()

        with CommitProgress(len(state.rows)) as progress:
            summary = asyncio.run(controller.commit(confirmation, on_update=progress.update))

    summary_line = render_summary_line(schema.kind, summary)
    # log_summary adds the "SUMMARY " prefix
    log_summary(summary_line[len("SUMMARY "):])
    if summary.error > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む (空リストはそのまま)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    try:
        cfg = _load_cfg(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.template is not None:
        out = write_template(get_schema(args.entity), args.template)
        logger.info(f"template written: {out}")
        return EXIT_SUCCESS_ALL

    if args.file is None:
        logger.error("no input file given")
        return EXIT_FATAL

    try:
        return _run(args, cfg, logger)
    except Exception as e:
        if args.dry_run or not _is_db_error(e):
            raise
        logger.error(f"database: {e}")
        return EXIT_FATAL


def _is_db_error(exc: Exception) -> bool:
    import psycopg2

    return isinstance(exc, psycopg2.Error)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
