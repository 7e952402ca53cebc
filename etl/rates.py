# WORKFLOW: Seed the externally maintained brokerage_rates table from a CSV/XLSX sheet.
# Used by: scripts/bootstrap.py load-rates (operator tooling, not the ingestion run)
# Functions:
# 1. read_rate_file() - CSV/XLSX -> DataFrame
# 2. normalize_rate_frame() - Map loose column names, coerce dates/flags/numbers
# 3. replace_rates() - Replace brokerage_rates contents in one transaction
#
# Rates flow: file -> pandas -> column aliases -> typed frame -> brokerage_rates

"""
Seed the brokerage_rates table from a rate sheet.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd
from sqlalchemy import delete, insert
from sqlalchemy.orm import Session

from db.models import BrokerageRate

logger = logging.getLogger(__name__)

COLUMN_ALIASES: Dict[str, List[str]] = {
    "arn": ["arn", "arn_code", "arn no"],
    "company": ["company", "amc", "fund house", "amc name"],
    "scheme_name": ["scheme_name", "scheme name", "scheme", "fund name"],
    "brokerage_type": ["brokerage_type", "brokerage type", "type"],
    "start_date": ["start_date", "start date", "valid from", "from"],
    "end_date": ["end_date", "end date", "valid to", "to", "valid till"],
    "approved": ["approved", "is_approved", "approval", "status"],
    "year_1_base": ["year_1_base", "1st year", "year 1", "1 year"],
    "year_2_base": ["year_2_base", "2nd year", "year 2", "2 year"],
    "year_3_base": ["year_3_base", "3rd year", "year 3", "3 year"],
    "year_4_onwards_base": ["year_4_onwards_base", "4th year onwards", "year 4 onwards", "4 year onwards"],
}

_TRUE_FLAGS = {"true", "yes", "y", "1", "approved", "active"}


def _pick_column(df: pd.DataFrame, candidates: List[str]) -> Optional[str]:
    by_lower = {str(col).strip().lower(): col for col in df.columns}
    for candidate in candidates:
        if candidate.lower() in by_lower:
            return by_lower[candidate.lower()]
    return None


def read_rate_file(path: Path) -> pd.DataFrame:
    if path.suffix.lower() == ".csv":
        return pd.read_csv(path)
    return pd.read_excel(path, engine="openpyxl")


def _to_flag(value) -> bool:
    if isinstance(value, bool):
        return value
    if value is None or pd.isna(value):
        return False
    return str(value).strip().lower() in _TRUE_FLAGS


def normalize_rate_frame(raw_df: pd.DataFrame) -> pd.DataFrame:
    """
    Map a rate sheet onto the brokerage_rates columns.

    Raises:
        ValueError: If no scheme-name column can be found
    """
    output = pd.DataFrame(index=raw_df.index)
    for target, candidates in COLUMN_ALIASES.items():
        source = _pick_column(raw_df, candidates)
        output[target] = raw_df[source] if source is not None else None

    if output["scheme_name"].isna().all():
        raise ValueError(f"Missing scheme name column; found {list(raw_df.columns)}")

    output["scheme_name"] = output["scheme_name"].fillna("").astype(str).str.strip()
    output = output[output["scheme_name"] != ""]
    for column in ("start_date", "end_date"):
        output[column] = pd.to_datetime(output[column], errors="coerce").dt.date
    for column in ("year_1_base", "year_2_base", "year_3_base", "year_4_onwards_base"):
        output[column] = pd.to_numeric(output[column], errors="coerce")
    output["approved"] = output["approved"].map(_to_flag)
    return output.reset_index(drop=True)


def replace_rates(db: Session, rates_df: pd.DataFrame) -> int:
    """Replace every brokerage rate row with the given frame; returns rows written."""
    rows = rates_df.astype(object).where(pd.notna(rates_df), None).to_dict("records")
    try:
        db.execute(delete(BrokerageRate))
        if rows:
            db.execute(insert(BrokerageRate), rows)
        db.commit()
    except Exception as e:
        logger.error(f"Failed to load brokerage rates: {e}")
        db.rollback()
        raise
    logger.info(f"Loaded {len(rows)} brokerage rates")
    return len(rows)
