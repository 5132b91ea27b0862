from __future__ import annotations

import argparse
import asyncio
import getpass
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from linkaudit.application.factories import build_records
from linkaudit.domain.entities import ProviderConnectionError
from linkaudit.infrastructure.config import AppConfig, DatabaseConfig, load_config
from linkaudit.infrastructure.logging import configure_logging, shutdown_logging
from linkaudit.infrastructure.reporting import LogResultSink
from linkaudit.interfaces.composition import build_record_provider, run_check

log = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_BROKEN_LINKS = 2
EXIT_CANCELLED = 130

_VERBOSITY_LEVELS = {1: "INFO", 2: "DEBUG"}

_PROMPTS: dict[str, str] = {
    "host": "Database address: ",
    "name": "Database name: ",
    "user": "Database username: ",
}


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="linkaudit",
        description="Check external links of a course catalogue for reachability.",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Show successful checks (-v) and debug output (-vv) on the console.",
    )

    # Config wiring flags (no business logic)
    parser.add_argument("--config", default=None, help="Path to YAML config file.")
    parser.add_argument("--dotenv", default=None, help="Path to .env file.")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override console log level (wins over -v).",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override console log format.",
    )
    parser.add_argument(
        "--log-dir",
        default=None,
        help="Directory for the daily rolling log file.",
    )
    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help="Do not write the rolling log file.",
    )

    # Record source
    parser.add_argument(
        "--csv",
        default=None,
        help="Read records from a CSV file (id,owner_id,name,url) instead of a database.",
    )
    parser.add_argument("--db-url", default=None, help="Full SQLAlchemy database URL.")
    parser.add_argument("--db-host", default=None, help="Database server address.")
    parser.add_argument("--db-name", default=None, help="Database name.")
    parser.add_argument("--db-user", default=None, help="Database username.")
    parser.add_argument("--db-password", default=None, help="Database password.")

    # Checking
    parser.add_argument(
        "--max-concurrent",
        default=None,
        type=int,
        help="Max parallel probes (default: derived from CPU capacity).",
    )
    parser.add_argument(
        "--timeout",
        default=None,
        type=float,
        help="Per-probe timeout in seconds (default: 3).",
    )
    parser.add_argument(
        "--success-policy",
        default=None,
        choices=["2xx", "exact"],
        help="Count any 2xx as success, or only 200 OK.",
    )
    parser.add_argument(
        "--fail-on-broken",
        action="store_true",
        help=f"Exit with status {EXIT_BROKEN_LINKS} if any link is not OK.",
    )

    return parser.parse_args(argv)


def _cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}

    if args.verbose:
        overrides["log_level"] = _VERBOSITY_LEVELS.get(args.verbose, "DEBUG")
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.log_format:
        overrides["log_format"] = args.log_format
    if args.no_log_file:
        overrides["log_dir"] = None
    elif args.log_dir:
        overrides["log_dir"] = args.log_dir

    flag_map = {
        "db_url": args.db_url,
        "db_host": args.db_host,
        "db_name": args.db_name,
        "db_user": args.db_user,
        "db_password": args.db_password,
        "max_concurrent": args.max_concurrent,
        "http_timeout_seconds": args.timeout,
        "success_policy": args.success_policy,
    }
    overrides.update({k: v for k, v in flag_map.items() if v is not None})
    return overrides


def _prompt_missing_credentials(db: DatabaseConfig) -> DatabaseConfig:
    """Ask for unset connection parameters when running interactively."""
    missing = db.missing_credentials
    if not missing or not sys.stdin.isatty():
        return db

    updates: dict[str, str] = {}
    for field in missing:
        if field == "password":
            updates[field] = getpass.getpass("Database password: ")
        else:
            updates[field] = input(_PROMPTS[field]).strip()
    return db.model_copy(update=updates)


def _print_banner(args: argparse.Namespace) -> None:
    print()
    print("Link health check")
    if not args.verbose:
        print("Use -v for verbose mode, press CTRL+C to cancel")
    print()


def run(args: argparse.Namespace) -> int:
    """Run one audit with parsed *args*; returns the process exit status."""
    try:
        config: AppConfig = load_config(
            config_path=Path(args.config) if args.config else None,
            dotenv_path=Path(args.dotenv) if args.dotenv else None,
            cli_overrides=_cli_overrides(args),
        )
    except (FileNotFoundError, ValidationError, ValueError) as e:
        print(f"linkaudit: invalid configuration: {e}", file=sys.stderr)
        return EXIT_FATAL

    configure_logging(config)

    csv_path = Path(args.csv) if args.csv else None
    if csv_path is None:
        config = config.model_copy(
            update={"database": _prompt_missing_credentials(config.database)}
        )

    provider = build_record_provider(config, csv_path)
    try:
        with provider:
            rows = provider.fetch_rows()
    except ProviderConnectionError as e:
        log.critical("record_provider_unavailable", error=str(e))
        return EXIT_FATAL

    records = build_records(rows)
    sink = LogResultSink(config.owner_url_template)

    try:
        summary = asyncio.run(run_check(config, records, sink))
    except KeyboardInterrupt:
        # Interrupt arrived before the signal handlers were installed
        log.warning("link_check_interrupted", total=len(records))
        print("Job cancelled")
        return EXIT_CANCELLED

    if summary.cancelled:
        log.warning("link_check_cancelled", **summary.as_log_fields())
        print("Job cancelled")
        return EXIT_CANCELLED

    log.info("job_finished", **summary.as_log_fields())
    print(
        f"Job finished - {summary.completed} checked, {summary.broken} broken - Goodbye"
    )

    if args.fail_on_broken and summary.broken:
        return EXIT_BROKEN_LINKS
    return EXIT_OK


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.
    """
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)
    _print_banner(args)

    try:
        return run(args)
    finally:
        shutdown_logging()


if __name__ == "__main__":
    raise SystemExit(start())
