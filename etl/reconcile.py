# WORKFLOW: Persist deduplicated fund records with update-then-insert reconciliation.
# Used by: Ingestion pipeline
# Functions:
# 1. reconcile_records() - For each record: clean name -> UPDATE by name -> INSERT if nothing updated
# 2. reset_fund_table() - "recreate" mode: drop and recreate the funds table before loading
#
# Reconcile flow: FundRecord -> clean_display() x2 -> UPDATE funds WHERE scheme_name -> (0 rows) INSERT
# Repeated ingestion of the same workbook converges to one row per scheme.
# "recreate" mode is only safe while nothing else reads the table across runs;
# the search index does, so "reconcile" is the default.

"""
Persist deduplicated fund records with update-then-insert reconciliation.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from sqlalchemy import insert, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.models import Fund
from etl.names import canonicalize, clean_display
from etl.records import FundRecord

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    processed: int = 0
    updated: int = 0
    inserted: int = 0
    skipped: int = 0
    collapsed: int = 0


def stored_name(raw_name: str) -> str:
    # Cleaning twice is intentional: the second pass is a no-op for names the
    # noise table already reduces to a fixed point.
    return clean_display(clean_display(raw_name))


def _row_values(record: FundRecord) -> Dict[str, Any]:
    values = {
        "category": record.category,
        "canonical_name": canonicalize(record.scheme_name),
        "launch_date": record.launch_date,
        "extra_values": list(record.extra_values),
    }
    values.update(record.numeric_values())
    return values


def reconcile_records(db: Session, records: List[FundRecord]) -> ReconcileResult:
    """
    Update-or-insert each record keyed by its cleaned scheme name.

    Runs inside the caller's transaction; each insert gets its own savepoint
    so a uniqueness conflict only loses that one record.

    Args:
        db: Database session with an open transaction
        records: Deduplicated records; their scheme_name is replaced by the cleaned name

    Returns:
        ReconcileResult where processed = updated + inserted; collapsed counts
        updates that overwrote a row already written earlier in the same run
    """
    result = ReconcileResult()
    written_names = set()

    for record in records:
        record.scheme_name = stored_name(record.scheme_name)
        values = _row_values(record)

        outcome = db.execute(update(Fund).where(Fund.scheme_name == record.scheme_name).values(**values))
        if outcome.rowcount:
            if record.scheme_name in written_names:
                # Distinct raw names that clean to the same stored name; last write wins
                logger.warning(
                    f"'{record.scheme_name}' was already written in this run; "
                    f"record from '{record.category}' overwrites it"
                )
                result.collapsed += 1
            written_names.add(record.scheme_name)
            result.updated += 1
            result.processed += 1
            continue

        try:
            with db.begin_nested():
                db.execute(insert(Fund).values(scheme_name=record.scheme_name, **values))
        except IntegrityError as e:
            logger.warning(f"Skipping '{record.scheme_name}': insert conflicted ({e.orig})")
            result.skipped += 1
            continue
        written_names.add(record.scheme_name)
        result.inserted += 1
        result.processed += 1

    logger.info(
        f"Reconciled {result.processed} funds (updated={result.updated}, "
        f"inserted={result.inserted}, skipped={result.skipped}, collapsed={result.collapsed})"
    )
    return result


def reset_fund_table(db: Session) -> None:
    """Drop and recreate the funds table inside the current transaction."""
    conn = db.connection()
    Fund.__table__.drop(bind=conn, checkfirst=True)
    Fund.__table__.create(bind=conn)
    logger.info("Recreated funds table")
