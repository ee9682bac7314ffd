from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from calendar_reconcile.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from calendar_reconcile.db.connection import open_connection
from calendar_reconcile.db.store import CalendarStore
from calendar_reconcile.excel.reader import UploadReadError, read_upload
from calendar_reconcile.excel.schema import SchemaError
from calendar_reconcile.excel.template import write_template
from calendar_reconcile.logging.error_log import ErrorLogBuffer
from calendar_reconcile.logging.init import log_summary, setup_logging
from calendar_reconcile.models.config_models import ReconcileConfig
from calendar_reconcile.services.commit import CommitError, commit_valid_rows
from calendar_reconcile.services.reconciler import (
    CollaboratorError,
    month_period,
    reconcile_upload,
)
from calendar_reconcile.services.summary import (
    render_commit_line,
    render_review_lines,
    render_summary_line,
)

"""CLI entrypoint.

    python -m calendar_reconcile.cli review upload.xlsx --operator <id> [--commit]
    python -m calendar_reconcile.cli template calendar_template.xlsx
    python -m calendar_reconcile.cli inspect upload.xlsx

``review`` prints the pre-commit review table and a SUMMARY line; only with
``--commit`` are the Valid rows written, in one batch.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_ROWS_NEED_REVIEW = 2


@contextmanager
def _store_session(cfg: ReconcileConfig) -> Iterator[CalendarStore]:  # pragma: no cover (needs a server)
    with open_connection(cfg.database) as conn:
        yield CalendarStore(conn)


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so its database settings win over the inherited environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _period_arg(value: str) -> tuple[date, date]:
    try:
        year, month = (int(p) for p in value.split("-", 1))
        return month_period(year, month)
    except (ValueError, TypeError) as e:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM, got {value!r}") from e


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="calendar-reconcile", description="Bulk calendar spreadsheet reconciliation"
    )
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"YAML config (default: {DEFAULT_CONFIG_PATH} when present)",
    )
    sub = p.add_subparsers(dest="command", required=True)

    review = sub.add_parser("review", help="Reconcile an upload and print the review table")
    review.add_argument("file", type=Path)
    review.add_argument("--operator", required=True, help="Operator identity for the commit")
    review.add_argument("--period", type=_period_arg, help="Target month YYYY-MM")
    review.add_argument("--commit", action="store_true", help="Insert the Valid rows")
    review.add_argument("--json", type=Path, dest="json_path", help="Write review payload JSON")

    template = sub.add_parser("template", help="Write a sample upload workbook")
    template.add_argument("output", type=Path)

    inspect = sub.add_parser("inspect", help="Print headers and first rows of an upload")
    inspect.add_argument("file", type=Path)
    return p.parse_args(argv)


def _load_cfg(path: Path | None) -> ReconcileConfig:
    if path is not None:
        return load_config(path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return ReconcileConfig()


def _inspect(path: Path) -> int:
    try:
        sheet = read_upload(path)
    except UploadReadError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {sheet.file_name} cols={sheet.columns} rows={len(sheet.rows)}")
    for raw in sheet.rows[:3]:
        # datetime cells are not JSON friendly
        safe = {k: (v.isoformat() if hasattr(v, "isoformat") else v) for k, v in raw.cells.items()}
        print(f"  row {raw.row_number}: {safe}")
    return EXIT_SUCCESS


def _review(args: argparse.Namespace, cfg: ReconcileConfig) -> int:
    logger = setup_logging()
    if not args.file.exists():
        logger.error(f"upload not found: {args.file}")
        return EXIT_FATAL

    error_log = ErrorLogBuffer()
    try:
        with _store_session(cfg) as store:
            report = reconcile_upload(
                args.file,
                registry=store,
                entries=store,
                config=cfg,
                period=args.period,
                error_log=error_log,
            )
            for line in render_review_lines(report):
                print(line)
            if args.json_path is not None:
                args.json_path.write_text(
                    json.dumps(report.to_review_payload(), ensure_ascii=False, indent=2),
                    encoding="utf-8",
                )
            log_summary(render_summary_line(report)[len("SUMMARY "):])

            if args.commit:
                result = commit_valid_rows(report, args.operator, store)
                log_summary(render_commit_line(result)[len("SUMMARY "):])
    except (UploadReadError, SchemaError) as e:
        logger.error(f"upload: {e}")
        return EXIT_FATAL
    except CollaboratorError as e:
        logger.error(f"lookup: {e}")
        return EXIT_FATAL
    except CommitError as e:
        logger.error(f"commit: {e}")
        return EXIT_FATAL
    except psycopg2.Error as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL
    except OSError as e:
        logger.error(f"io: {e}")
        return EXIT_FATAL
    finally:
        log_path = error_log.flush()
        if log_path is not None:
            logger.info(f"row diagnostics written to {log_path}")

    return EXIT_SUCCESS if report.all_valid else EXIT_ROWS_NEED_REVIEW


def main(argv: list[str] | None = None) -> int:
    # None only: an explicit [] from tests must not fall back to sys.argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = _load_cfg(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "template":
        out = write_template(args.output)
        logger.info(f"template written to {out}")
        return EXIT_SUCCESS
    if args.command == "inspect":
        return _inspect(args.file)
    return _review(args, cfg)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
