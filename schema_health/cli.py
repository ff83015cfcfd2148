#!/usr/bin/env python3
"""
Schema health command line.

Usage:
    schema-health find-invalid-values [--check null --check datetime ...]
    schema-health find-risky-columns [--threshold 70]
    schema-health serve [--host 127.0.0.1 --port 8000]

The database comes from --database-url or DATABASE_URL (Key Vault or .env).
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from rich.console import Console

from .checks import available_checks
from .config import Settings, database_name, get_engine, load_env, redact_url
from .databases import DialectAdapter, get_adapter_for_engine
from .errors import SchemaHealthError
from .report import (
    build_report,
    overflow_table,
    render_overflow_report,
    render_validity_report,
    write_json_report,
)
from .scanner import run_overflow_scan, run_validity_scan

logger = logging.getLogger(__name__)

EXIT_ERROR = 2

_LOG_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


def configure_logging(verbosity: int) -> None:
    level = _LOG_LEVELS[min(max(verbosity, 0), len(_LOG_LEVELS) - 1)]
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", force=True)


def build_adapter(settings: Settings) -> DialectAdapter:
    """Connect to the configured database and pick its dialect adapter."""
    database_url = settings.require_database_url()
    engine = get_engine(database_url)
    schema = settings.schema or database_name(database_url)
    logger.info(f"Inspecting {redact_url(database_url)} (schema: {schema})")
    return get_adapter_for_engine(engine, schema, query_timeout_ms=settings.query_timeout_ms)


def _settings_from_args(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    if args.database_url:
        settings.database_url = args.database_url
    if args.schema:
        settings.schema = args.schema
    if args.continue_on_error:
        settings.continue_on_error = True
    if args.query_timeout_ms:
        settings.query_timeout_ms = args.query_timeout_ms
    if getattr(args, "threshold", None) is not None:
        settings.threshold = args.threshold
    return settings


def _write_outputs(report: dict, args: argparse.Namespace) -> None:
    if args.json_out:
        write_json_report(report, args.json_out)
    if args.xlsx_out:
        from .export import write_excel_report

        write_excel_report(report, args.xlsx_out)


def cmd_find_invalid_values(args: argparse.Namespace) -> int:
    settings = _settings_from_args(args)
    adapter = build_adapter(settings)
    result, status = run_validity_scan(
        adapter, args.check, continue_on_error=settings.continue_on_error
    )
    for line in render_validity_report(result):
        print(line)
    report = build_report(
        result,
        "find-invalid-values",
        database=adapter.database_name,
        checks=args.check or available_checks(),
    )
    _write_outputs(report, args)
    return status


def cmd_find_risky_columns(args: argparse.Namespace) -> int:
    settings = _settings_from_args(args)
    adapter = build_adapter(settings)
    result, status = run_overflow_scan(
        adapter, settings.threshold, continue_on_error=settings.continue_on_error
    )
    for line in render_overflow_report(result, settings.threshold):
        print(line)
    if result.risky_column_count:
        Console().print(overflow_table(result))
    report = build_report(
        result,
        "find-risky-columns",
        database=adapter.database_name,
        threshold=settings.threshold,
    )
    _write_outputs(report, args)
    return status


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("schema_health.api.main:app", host=args.host, port=args.port)
    return 0


def _add_scan_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--database-url", help="SQLAlchemy URL (default: DATABASE_URL)")
    parser.add_argument("--schema", help="Database to scan (default: DATABASE_SCHEMA, SCHEMA or the URL's database)")
    parser.add_argument("--json-out", help="Also save the report as JSON")
    parser.add_argument("--xlsx-out", help="Also save the report as an Excel workbook")
    parser.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Record failing queries and keep scanning (the scan still exits non-zero)",
    )
    parser.add_argument("--query-timeout-ms", type=int, help="Per-query deadline in milliseconds (MAX_EXECUTION_TIME on MySQL, max_statement_time on MariaDB)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schema-health",
        description="Find invalid values and overflow-prone columns in MySQL databases",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v info, -vv debug")
    sub = parser.add_subparsers(dest="command", required=True)

    invalid = sub.add_parser(
        "find-invalid-values", help="Find invalid data created in non-strict SQL mode."
    )
    invalid.add_argument(
        "--check",
        action="append",
        default=[],
        help=(
            "Check only specific types of issues. Available types: "
            + ", ".join(c.value for c in available_checks())
        ),
    )
    _add_scan_options(invalid)
    invalid.set_defaults(func=cmd_find_invalid_values)

    risky = sub.add_parser(
        "find-risky-columns",
        help="Find auto-incremental columns whose values are close to max possible values.",
    )
    risky.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Occupancy percentage at which a column is reported (default: 70)",
    )
    _add_scan_options(risky)
    risky.set_defaults(func=cmd_find_risky_columns)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=os.environ.get("HOST", "127.0.0.1"))
    serve.add_argument("--port", type=int, default=int(os.environ.get("PORT", "8000")))
    serve.set_defaults(func=cmd_serve)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    load_env()
    try:
        return args.func(args)
    except SchemaHealthError as e:
        logger.error(str(e))
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
