#!/usr/bin/env python3
"""
Run a bulk earnings import: read a CSV, map its columns, parse and persist rows.

Drivers and vehicles named in the file that do not exist yet are created.
Every rejected row and every substituted value is reported at the end.

Usage:
    python3 scripts/run_import.py --file <path> [options]

Examples:
    # Import into the default SQLite database, creating tables first
    python3 scripts/run_import.py --file earnings.csv --create-tables

    # US-style dates, custom alias table, roll back instead of committing
    python3 scripts/run_import.py --file earnings.csv --date-order month_first \\
        --config my_aliases.yaml --dry-run

    # Probe source file (row count, columns, sample) without importing
    python3 scripts/run_import.py --file earnings.csv --probe-only
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from uuid import UUID, uuid4

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

DB_URL = "sqlite:///fleet.db"
DATE_ORDERS = ("day_first", "month_first", "auto")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import historical daily earnings from a CSV file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--file",
        required=True,
        type=Path,
        help="Path to the CSV file.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Column alias YAML (default: bundled column_aliases.yaml).",
    )
    parser.add_argument(
        "--date-order",
        choices=DATE_ORDERS,
        default=None,
        help="How to read ambiguous dates like 05/01/2023 (default: from config).",
    )
    parser.add_argument(
        "--delimiter",
        default=None,
        help="Field delimiter (default: sniffed from the header line).",
    )
    parser.add_argument(
        "--probe-only",
        action="store_true",
        help="Probe source file (row count, columns, sample rows) and exit. No DB writes.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run the full import, then roll back instead of committing.",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create the fleet tables before importing.",
    )
    parser.add_argument(
        "--actor-id",
        default=None,
        help="Actor UUID for audit (default: RUN_IMPORT_ACTOR_ID env or new UUID).",
    )
    parser.add_argument(
        "--db-url",
        default=DB_URL,
        help=f"Database URL (default: {DB_URL!r}).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Structured log level written to stderr (default: WARNING).",
    )
    return parser.parse_args(argv)


def _print_progress(snapshot) -> None:
    print(
        f"  [{snapshot.percent_complete:3d}%] {snapshot.current_step.value:<10} "
        f"errors={snapshot.errors_so_far} warnings={snapshot.warnings_so_far}"
    )


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    actor_id = UUID(args.actor_id) if args.actor_id else UUID(os.environ.get("RUN_IMPORT_ACTOR_ID", str(uuid4())))
    source_path = args.file.resolve()
    if not source_path.is_file():
        print(f"ERROR: File not found: {source_path}", file=sys.stderr)
        return 1

    # Lazy imports so we fail fast on args first
    from fleet_config.schema import DateOrder
    from fleet_ingestion import load_session_config
    from fleet_ingestion.adapters import CsvSourceAdapter
    from fleet_ingestion.services import ImportOrchestrator, SqlAlchemyPersistenceGateway
    from fleet_kernel.db.engine import create_tables, get_session, init_engine_from_url
    from fleet_kernel.domain.clock import SystemClock
    from fleet_kernel.exceptions import FleetKernelError
    from fleet_kernel.logging_config import LogContext, configure_logging

    configure_logging(level=args.log_level.upper(), stream=sys.stderr)
    data = source_path.read_bytes()

    overrides = {}
    if args.date_order:
        overrides["date_order"] = DateOrder(args.date_order)
    if args.delimiter:
        overrides["delimiter"] = args.delimiter
    try:
        session_config = load_session_config(args.config, **overrides)
    except (OSError, FleetKernelError) as e:
        print(f"ERROR: Failed to load config: {e}", file=sys.stderr)
        return 1

    if args.probe_only:
        try:
            probe = CsvSourceAdapter().probe(data, {"delimiter": session_config.delimiter})
        except FleetKernelError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1
        print(f"Rows: {probe.row_count}")
        print(f"Columns: {list(probe.columns)}")
        print(f"Delimiter: {probe.detected_delimiter!r}")
        print("Sample (first 3):")
        for i, row in enumerate(probe.sample_rows[:3], 1):
            print(f"  {i}: {list(row)}")
        return 0

    # Init DB
    try:
        init_engine_from_url(args.db_url)
        if args.create_tables:
            create_tables()
    except Exception as e:
        print(f"ERROR: Database init failed: {e}", file=sys.stderr)
        return 1

    session = get_session()
    clock = SystemClock()
    gateway = SqlAlchemyPersistenceGateway(session, actor_id=actor_id, clock=clock)
    orchestrator = ImportOrchestrator(gateway, clock=clock)

    try:
        print(f"Importing {source_path} (import_id={orchestrator.import_id})...")
        with LogContext.bind(actor_id=str(actor_id)):
            summary = orchestrator.run(data, session_config, progress_sink=_print_progress)
        if args.dry_run:
            session.rollback()
            print("Dry run: rolled back.")
        else:
            session.commit()
    except FleetKernelError as e:
        session.rollback()
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        session.rollback()
        print(f"ERROR: {e}", file=sys.stderr)
        raise
    finally:
        session.close()

    print(f"Result: {summary.final_state.value}")
    print(
        f"  Rows: {summary.total_rows}  Imported: {summary.succeeded_rows} "
        f"(clean {summary.clean_rows}, with warnings {summary.warned_rows})  "
        f"Rejected: {summary.failed_rows}  Blank: {summary.skipped_blank_rows}"
    )
    created = ", ".join(f"{kind.value}={n}" for kind, n in summary.created_entity_counts.items())
    print(f"  Created: {created}")
    for issue in summary.issues[:20]:
        where = f"Row {issue.row_number}" if issue.row_number else "File"
        print(f"  {where} {issue.severity.value.upper()}: {issue.message}")
    if len(summary.issues) > 20:
        print(f"  ... and {len(summary.issues) - 20} more issues.")
    return 0 if summary.failed_rows == 0 and not summary.aborted else 1


if __name__ == "__main__":
    sys.exit(main())
