# WORKFLOW: Operator command line for database setup and offline loads.
# Used by: Initial setup, scheduled loads, development
# Commands:
# 1. init-db - Create tables
# 2. ingest <workbook.xlsx> - Run the ingestion pipeline on a file from disk
# 3. load-rates <rates.csv|xlsx> - Replace the brokerage_rates table from a rate sheet
# 4. check - Verify connectivity and report table sizes
#
# Bootstrap flow: init-db -> load-rates -> ingest -> (API serves the index)

"""
Operator command line for the Fund Barometer database.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.logging import configure_logging  # noqa: E402
from db.models import BrokerageRate, Fund  # noqa: E402
from db.session import check_db_connection, get_session_factory, init_db  # noqa: E402
from etl.pipeline import ingest  # noqa: E402
from etl.rates import normalize_rate_frame, read_rate_file, replace_rates  # noqa: E402

logger = logging.getLogger(__name__)


def run_ingest(path: Path) -> int:
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        result = ingest(path.read_bytes(), db)
    finally:
        db.close()
    for line in result.diagnostics:
        print(line)
    print(f"processed={result.processed_count} duplicates={result.duplicate_count}")
    return 0


def run_load_rates(path: Path) -> int:
    rates_df = normalize_rate_frame(read_rate_file(path))
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        count = replace_rates(db, rates_df)
    finally:
        db.close()
    print(f"loaded {count} brokerage rates from {path.name}")
    return 0


def run_check() -> int:
    if not check_db_connection():
        print("[FAIL] database unreachable")
        return 1
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        print(f"[PASS] database: funds={db.query(Fund).count()} brokerage_rates={db.query(BrokerageRate).count()}")
    finally:
        db.close()
    return 0


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fund Barometer database tooling.")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("init-db", help="Create database tables")
    ingest_parser = subparsers.add_parser("ingest", help="Ingest a fund workbook from disk")
    ingest_parser.add_argument("path", type=Path)
    rates_parser = subparsers.add_parser("load-rates", help="Replace brokerage rates from a CSV/XLSX file")
    rates_parser.add_argument("path", type=Path)
    subparsers.add_parser("check", help="Check connectivity and table sizes")
    return parser.parse_args()


def main() -> int:
    configure_logging()
    args = _parse_args()

    if args.command == "init-db":
        init_db()
        return 0

    init_db()
    if args.command == "ingest":
        return run_ingest(args.path)
    if args.command == "load-rates":
        return run_load_rates(args.path)
    return run_check()


if __name__ == "__main__":
    raise SystemExit(main())
