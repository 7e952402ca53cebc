# WORKFLOW: Header detection and column-to-field mapping for fund sheets.
# Used by: Row extraction (etl/extract.py), ingestion pipeline
# Functions:
# 1. find_header_row_fixed() / infer_fixed_layout() - Positional layouts ("full" 19 / "reduced" 16 columns)
# 2. find_header_row() / infer_header_layout() - Fuzzy header-text matching via HEADER_RULES
# 3. classify_header() - One header text -> one logical field (first match wins)
# 4. infer_layout() - Strategy dispatch used by the pipeline
#
# Layout flow: SheetGrid -> header row -> {field: column} + overflow columns -> SheetLayout
# Header rules are data: add a (field, predicate) row to support a new header spelling.

"""
Header detection and column-to-field mapping for fund sheets.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Set

from etl.cells import cell_text
from etl.errors import HeaderNotFoundError, SchemeColumnNotFoundError
from etl.workbook import SheetGrid

logger = logging.getLogger(__name__)

SCHEME_NAME = "scheme_name"
LAUNCH_DATE = "launch_date"

# Numeric performance fields, in storage order
NUMERIC_FIELDS: List[str] = [
    "fund_size_apr25",
    "fund_size_may25",
    "latest_nav",
    "days_7",
    "days_14",
    "days_21",
    "month_1",
    "months_3",
    "months_6",
    "ytd",
    "year_1",
    "years_2",
    "years_3",
    "years_4",
    "years_5",
    "years_7",
    "years_10",
    "since_inception",
]

FULL_LAYOUT: List[str] = [
    SCHEME_NAME, LAUNCH_DATE, "fund_size_apr25", "fund_size_may25", "latest_nav",
    "days_7", "days_14", "days_21", "month_1", "months_3", "months_6", "ytd",
    "year_1", "years_2", "years_3", "years_4", "years_5", "years_7", "years_10",
]
REDUCED_LAYOUT: List[str] = [name for name in FULL_LAYOUT if not name.startswith("days_")]

# Column of the header row checked for "7 days" by the fixed strategy
SHORT_HORIZON_COLUMN = 5

HEADER_MARKERS = ("scheme name", "fund name", "launch date", "nav")


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", text.lower()).strip()


@dataclass(frozen=True)
class HeaderRule:
    field: str
    predicate: Callable[[str], bool]
    fallback: bool = False


def _contains_all(*needles: str) -> Callable[[str], bool]:
    return lambda text: all(needle in text for needle in needles)


def _contains_any(*needles: str) -> Callable[[str], bool]:
    return lambda text: any(needle in text for needle in needles)


def _horizon(number: int, units: str) -> Callable[[str], bool]:
    pattern = re.compile(rf"(?<!\d){number}\s*(?:{units})\b")
    return lambda text: pattern.search(text) is not None


_DAY_UNITS = r"d|day|days"
_MONTH_UNITS = r"m|mo|mth|mths|month|months"
_YEAR_UNITS = r"y|yr|yrs|year|years"

# Ordered, first match wins. Fallback rules only run after every cell has been
# offered to the regular rules.
HEADER_RULES: List[HeaderRule] = [
    HeaderRule(SCHEME_NAME, _contains_any("scheme name", "fund name")),
    HeaderRule("since_inception", _contains_any("since inception", "since launch")),
    HeaderRule(LAUNCH_DATE, _contains_any("launch date", "launch", "inception date")),
    HeaderRule("fund_size_apr25", _contains_all("fund size", "apr")),
    HeaderRule("fund_size_may25", _contains_all("fund size", "may")),
    HeaderRule("latest_nav", _contains_all("latest nav")),
    HeaderRule("ytd", _contains_any("ytd", "year to date")),
    HeaderRule("days_7", _horizon(7, _DAY_UNITS)),
    HeaderRule("days_14", _horizon(14, _DAY_UNITS)),
    HeaderRule("days_21", _horizon(21, _DAY_UNITS)),
    HeaderRule("month_1", _horizon(1, _MONTH_UNITS)),
    HeaderRule("months_3", _horizon(3, _MONTH_UNITS)),
    HeaderRule("months_6", _horizon(6, _MONTH_UNITS)),
    HeaderRule("year_1", _horizon(1, _YEAR_UNITS)),
    HeaderRule("years_2", _horizon(2, _YEAR_UNITS)),
    HeaderRule("years_3", _horizon(3, _YEAR_UNITS)),
    HeaderRule("years_4", _horizon(4, _YEAR_UNITS)),
    HeaderRule("years_5", _horizon(5, _YEAR_UNITS)),
    HeaderRule("years_7", _horizon(7, _YEAR_UNITS)),
    HeaderRule("years_10", _horizon(10, _YEAR_UNITS)),
    HeaderRule("latest_nav", _contains_any("nav"), fallback=True),
]


@dataclass
class SheetLayout:
    """Where each logical field lives in one sheet."""

    header_row: int
    strategy: str
    variant: str
    columns: Dict[str, int]
    overflow_columns: List[int] = field(default_factory=list)
    headers: List[str] = field(default_factory=list)

    def describe(self) -> str:
        mapping = ", ".join(f"{name}@{col}" for name, col in sorted(self.columns.items(), key=lambda item: item[1]))
        text = f"header_row={self.header_row} strategy={self.strategy} layout={self.variant} columns=[{mapping}]"
        if self.overflow_columns:
            text += f" overflow={self.overflow_columns}"
        return text


def classify_header(text: str, taken: Optional[Set[str]] = None, include_fallback: bool = False) -> Optional[str]:
    """
    Classify one header text into a logical field.

    Args:
        text: Header cell text
        taken: Fields already assigned to other columns; they are skipped
        include_fallback: Also consider fallback rules

    Returns:
        Field name, or None if no rule matches
    """
    normalized = _normalize(text)
    if not normalized:
        return None
    taken = taken or set()
    for rule in HEADER_RULES:
        if rule.fallback and not include_fallback:
            continue
        if rule.field in taken:
            continue
        if rule.predicate(normalized):
            return rule.field
    return None


def _header_texts(grid: SheetGrid, row: int) -> List[str]:
    return [cell_text(grid.get(row, col)) for col in range(grid.width)]


def find_header_row_fixed(grid: SheetGrid, scan_rows: int = 15) -> int:
    """First row within the scan window whose column 0 mentions "scheme name"."""
    for row in range(min(scan_rows, grid.height)):
        if "scheme name" in cell_text(grid.get(row, 0)).lower():
            return row
    raise HeaderNotFoundError(grid.name, min(scan_rows, grid.height))


def find_header_row(grid: SheetGrid, scan_rows: int = 15, scan_columns: int = 5) -> int:
    """First row within the scan window with a header marker in its first columns."""
    for row in range(min(scan_rows, grid.height)):
        for col in range(min(scan_columns, grid.width)):
            text = cell_text(grid.get(row, col)).lower()
            if any(marker in text for marker in HEADER_MARKERS):
                return row
    raise HeaderNotFoundError(grid.name, min(scan_rows, grid.height))


def infer_fixed_layout(grid: SheetGrid, scan_rows: int = 15) -> SheetLayout:
    header_row = find_header_row_fixed(grid, scan_rows)
    short_horizon_header = cell_text(grid.get(header_row, SHORT_HORIZON_COLUMN)).lower()
    has_short_horizons = "7 days" in short_horizon_header
    names = FULL_LAYOUT if has_short_horizons else REDUCED_LAYOUT
    return SheetLayout(
        header_row=header_row,
        strategy="fixed",
        variant="full" if has_short_horizons else "reduced",
        columns={name: col for col, name in enumerate(names)},
        headers=_header_texts(grid, header_row),
    )


def map_header_columns(headers: Iterable[str]) -> Dict[str, int]:
    """Assign each header column to at most one field, each field at most once."""
    headers = list(headers)
    columns: Dict[str, int] = {}
    for col, text in enumerate(headers):
        name = classify_header(text, taken=set(columns))
        if name is not None:
            columns[name] = col

    assigned_cols = set(columns.values())
    for rule in HEADER_RULES:
        if not rule.fallback or rule.field in columns:
            continue
        for col, text in enumerate(headers):
            if col not in assigned_cols and rule.predicate(_normalize(text)):
                columns[rule.field] = col
                assigned_cols.add(col)
                break
    return columns


def infer_header_layout(grid: SheetGrid, scan_rows: int = 15, scan_columns: int = 5) -> SheetLayout:
    header_row = find_header_row(grid, scan_rows, scan_columns)
    headers = _header_texts(grid, header_row)
    columns = map_header_columns(headers)

    # Sheets without recognisable name/date headers use the positional defaults
    used = set(columns.values())
    for name, default_col in ((SCHEME_NAME, 0), (LAUNCH_DATE, 1)):
        if name not in columns and default_col not in used:
            columns[name] = default_col
            used.add(default_col)
    if SCHEME_NAME not in columns:
        raise SchemeColumnNotFoundError(grid.name, header_row)

    highest = max(columns.values(), default=-1)
    overflow = [col for col in range(highest + 1, grid.width)]
    return SheetLayout(
        header_row=header_row,
        strategy="header",
        variant="mapped",
        columns=columns,
        overflow_columns=overflow,
        headers=headers,
    )


def infer_layout(grid: SheetGrid, strategy: str = "header", scan_rows: int = 15, scan_columns: int = 5) -> SheetLayout:
    """
    Infer the layout of a sheet.

    Raises:
        HeaderNotFoundError: If no header row is found in the scan window
        SchemeColumnNotFoundError: If the header row has no scheme name column
    """
    if strategy == "fixed":
        layout = infer_fixed_layout(grid, scan_rows)
    else:
        layout = infer_header_layout(grid, scan_rows, scan_columns)
    logger.debug(f"Sheet '{grid.name}': {layout.describe()}")
    return layout
