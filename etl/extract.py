# WORKFLOW: Row extraction from one fund sheet using an inferred layout.
# Used by: Ingestion pipeline (etl/pipeline.py)
# Functions:
# 1. filter_row() - Decide whether a candidate row is a fund or export noise
# 2. build_record() - Read one accepted row into a FundRecord
# 3. extract_sheet() - Iterate data rows below the header, collect records and rejection counts
#
# Extraction flow: SheetGrid + SheetLayout -> per row: name/date -> filter -> coerce numerics -> FundRecord
# Exports interleave footnotes and section banners with real rows; the filter is
# the only thing telling them apart.

"""
Row extraction from one fund sheet.
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from etl.cells import cell_text, coerce_number
from etl.layout import LAUNCH_DATE, NUMERIC_FIELDS, SCHEME_NAME, SheetLayout
from etl.records import FundRecord
from etl.workbook import SheetGrid

logger = logging.getLogger(__name__)

FOOTNOTE_PREFIXES = ('# : "In the', "in the next")
EXIT_LOAD_MARKER = "to view exit loads"
_DASHES_ONLY = re.compile(r"^[\s\-–—]*$")


class RejectReason(str, Enum):
    EMPTY_NAME = "empty_name"
    REPEATED_HEADER = "repeated_header"
    EXIT_LOAD_NOTE = "exit_load_note"
    CATEGORY_BANNER = "category_banner"
    FOOTNOTE = "footnote"
    DASHES_ONLY = "dashes_only"
    EMPTY_LAUNCH_DATE = "empty_launch_date"


@dataclass(frozen=True)
class RowAccepted:
    scheme_name: str
    launch_date: str


@dataclass(frozen=True)
class RowRejected:
    reason: RejectReason


RowOutcome = Union[RowAccepted, RowRejected]


def filter_row(category: str, scheme_name: str, launch_date: str) -> RowOutcome:
    """
    Classify a candidate row by its scheme-name and launch-date text.

    Args:
        category: Sheet label the row came from
        scheme_name: Raw scheme-name cell text
        launch_date: Raw launch-date cell text

    Returns:
        RowAccepted with the trimmed values, or RowRejected with the reason
    """
    name = scheme_name.strip()
    lowered = name.lower()

    if not name:
        return RowRejected(RejectReason.EMPTY_NAME)
    if "scheme name" in lowered or "fund name" in lowered:
        return RowRejected(RejectReason.REPEATED_HEADER)
    if EXIT_LOAD_MARKER in lowered:
        return RowRejected(RejectReason.EXIT_LOAD_NOTE)
    if name == category.strip():
        return RowRejected(RejectReason.CATEGORY_BANNER)
    if name.startswith(FOOTNOTE_PREFIXES):
        return RowRejected(RejectReason.FOOTNOTE)
    if _DASHES_ONLY.match(name):
        return RowRejected(RejectReason.DASHES_ONLY)
    if not launch_date.strip():
        return RowRejected(RejectReason.EMPTY_LAUNCH_DATE)
    return RowAccepted(scheme_name=name, launch_date=launch_date.strip())


def build_record(
    category: str,
    grid: SheetGrid,
    layout: SheetLayout,
    row: int,
    accepted: RowAccepted,
    lenient: bool = False,
) -> FundRecord:
    record = FundRecord(category=category, scheme_name=accepted.scheme_name, launch_date=accepted.launch_date)
    for name in NUMERIC_FIELDS:
        col = layout.columns.get(name)
        if col is not None:
            setattr(record, name, coerce_number(grid.get(row, col), lenient=lenient))
    record.extra_values = [coerce_number(grid.get(row, col), lenient=lenient) for col in layout.overflow_columns]
    return record


@dataclass
class SheetExtraction:
    records: List[FundRecord] = field(default_factory=list)
    rejections: Counter = field(default_factory=Counter)


def extract_sheet(
    grid: SheetGrid,
    layout: SheetLayout,
    category: Optional[str] = None,
    lenient: bool = False,
) -> SheetExtraction:
    """
    Extract fund records from every row below the header.

    Args:
        grid: Sheet cells
        layout: Layout inferred for this sheet
        category: Category label, defaults to the sheet name
        lenient: Passed through to cell coercion

    Returns:
        SheetExtraction with the records and a count of rejected rows by reason
    """
    category = category or grid.name
    result = SheetExtraction()
    name_col = layout.columns[SCHEME_NAME]
    date_col = layout.columns.get(LAUNCH_DATE)

    for row in range(layout.header_row + 1, grid.height):
        scheme_name = cell_text(grid.get(row, name_col))
        launch_date = cell_text(grid.get(row, date_col)) if date_col is not None else ""
        outcome = filter_row(category, scheme_name, launch_date)
        if isinstance(outcome, RowRejected):
            result.rejections[outcome.reason.value] += 1
            continue
        record = build_record(category, grid, layout, row, outcome, lenient=lenient)
        logger.debug(f"Row {row}: {record}")
        result.records.append(record)

    logger.info(f"Sheet '{category}': collected {len(result.records)} funds")
    return result
