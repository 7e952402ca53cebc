# WORKFLOW: Typed spreadsheet cells and cell-value coercion.
# Used by: Workbook loader, layout inference, row extraction
# Functions:
# 1. Cell / CellKind - Closed variant for a raw cell (number, text, boolean, error, empty)
# 2. coerce_number() - Cell -> finite float or None
# 3. cell_text() - Cell -> display string for name/date/header cells
#
# Coercion flow: openpyxl value -> Cell -> coerce_number() -> FundRecord field
# No other module inspects raw openpyxl values; everything past the workbook
# boundary sees Cell only.

"""
Typed spreadsheet cells and cell-value coercion.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

# Characters and tokens stripped from textual numbers before parsing
_CURRENCY_TOKENS = ("Rs", "%", ",", "₹")
_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)$")


class CellKind(str, Enum):
    NUMBER = "number"
    TEXT = "text"
    BOOLEAN = "boolean"
    ERROR = "error"
    EMPTY = "empty"


@dataclass(frozen=True)
class Cell:
    kind: CellKind
    value: Union[float, str, bool, None] = None

    @classmethod
    def number(cls, value: Union[int, float]) -> "Cell":
        return cls(CellKind.NUMBER, float(value))

    @classmethod
    def text(cls, value: str) -> "Cell":
        return cls(CellKind.TEXT, value)

    @classmethod
    def boolean(cls, value: bool) -> "Cell":
        return cls(CellKind.BOOLEAN, bool(value))

    @classmethod
    def error(cls, code: str) -> "Cell":
        return cls(CellKind.ERROR, code)

    @classmethod
    def empty(cls) -> "Cell":
        return cls(CellKind.EMPTY)


def _finite(value: float) -> Optional[float]:
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def parse_numeric_text(raw: str, lenient: bool = False) -> Optional[float]:
    """
    Parse a textual number such as ``"Rs 1,234.5"`` or ``"12.5%"``.

    Args:
        raw: Text as it appears in the sheet
        lenient: Return 0.0 instead of None when the text is not a number

    Returns:
        Finite float, or None (0.0 when lenient) if the text does not parse
    """
    cleaned = raw.strip()
    for token in _CURRENCY_TOKENS:
        cleaned = cleaned.replace(token, "")
    cleaned = cleaned.strip()

    if _DECIMAL_RE.match(cleaned):
        value = _finite(float(cleaned))
        if value is not None:
            return value
    return 0.0 if lenient else None


def coerce_number(cell: Optional[Cell], lenient: bool = False) -> Optional[float]:
    """
    Coerce a cell to a finite float.

    Boolean, error and empty cells are always absent, lenient or not; they are
    never converted through their string form.
    """
    if cell is None:
        return None
    if cell.kind is CellKind.NUMBER:
        return _finite(float(cell.value))
    if cell.kind is CellKind.TEXT:
        return parse_numeric_text(cell.value, lenient=lenient)
    return None


def cell_text(cell: Optional[Cell]) -> str:
    """Render a cell as text the way it reads in the sheet."""
    if cell is None or cell.kind in (CellKind.EMPTY, CellKind.ERROR):
        return ""
    if cell.kind is CellKind.TEXT:
        return cell.value
    if cell.kind is CellKind.BOOLEAN:
        return "true" if cell.value else "false"
    value = cell.value
    if _finite(value) is not None and value.is_integer():
        return str(int(value))
    return str(value)
