# WORKFLOW: Workbook boundary - uploaded XLSX bytes to typed cell grids.
# Used by: Ingestion pipeline, bootstrap script, tests
# Functions:
# 1. load_workbook_grids() - Open workbook bytes with openpyxl, return {sheet: SheetGrid}
# 2. to_cell() - Map one openpyxl value/data type to the closed Cell variant
# 3. SheetGrid - (row, col) addressable grid with height and width
#
# Workbook flow: bytes -> openpyxl (read-only, cached values) -> Cell grids per sheet
# This is the only place openpyxl objects are touched.

"""
Workbook boundary for uploaded XLSX exports.
"""

import io
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from openpyxl import load_workbook
from openpyxl.cell.cell import ERROR_CODES

from etl.cells import Cell
from etl.errors import WorkbookOpenError

logger = logging.getLogger(__name__)


def to_cell(value: Any, data_type: Optional[str] = None) -> Cell:
    """
    Map a raw openpyxl cell value to a Cell.

    Args:
        value: Cached cell value
        data_type: openpyxl data type code, when known ('e' marks error cells)

    Returns:
        Cell of the matching kind
    """
    if isinstance(value, Cell):
        return value
    if data_type == "e" or (isinstance(value, str) and value in ERROR_CODES):
        return Cell.error(str(value))
    if value is None:
        return Cell.empty()
    if isinstance(value, bool):
        return Cell.boolean(value)
    if isinstance(value, (int, float)):
        return Cell.number(value)
    if isinstance(value, datetime):
        return Cell.text(value.date().isoformat())
    if isinstance(value, date):
        return Cell.text(value.isoformat())
    text = str(value)
    if text == "":
        return Cell.empty()
    return Cell.text(text)


class SheetGrid:
    """Rectangular view of one sheet's cells."""

    def __init__(self, name: str, rows: List[List[Cell]]):
        self.name = name
        self._rows = rows
        self.height = len(rows)
        self.width = max((len(row) for row in rows), default=0)

    @classmethod
    def from_values(cls, name: str, rows: Sequence[Sequence[Any]]) -> "SheetGrid":
        return cls(name, [[to_cell(value) for value in row] for row in rows])

    def get(self, row: int, col: int) -> Optional[Cell]:
        """Cell at (row, col), or None when outside the populated area."""
        if row < 0 or col < 0 or row >= self.height:
            return None
        cells = self._rows[row]
        if col >= len(cells):
            return None
        return cells[col]

    def __repr__(self) -> str:
        return f"SheetGrid(name={self.name!r}, height={self.height}, width={self.width})"


def load_workbook_grids(file_bytes: bytes) -> Dict[str, SheetGrid]:
    """
    Open workbook bytes and materialise every worksheet as a SheetGrid.

    Args:
        file_bytes: Raw XLSX content

    Returns:
        Dictionary of sheet name to grid, in workbook order

    Raises:
        WorkbookOpenError: If the bytes are not a readable workbook
    """
    try:
        workbook = load_workbook(io.BytesIO(file_bytes), read_only=True, data_only=True)
    except Exception as e:
        logger.error(f"Failed to open workbook: {e}")
        raise WorkbookOpenError(f"Unable to open workbook: {e}") from e

    grids: Dict[str, SheetGrid] = {}
    try:
        for worksheet in workbook.worksheets:
            rows = []
            for row in worksheet.iter_rows():
                rows.append([to_cell(cell.value, getattr(cell, "data_type", None)) for cell in row])
            grids[worksheet.title] = SheetGrid(worksheet.title, rows)
            logger.debug(f"Loaded sheet '{worksheet.title}': {len(rows)} rows")
    except Exception as e:
        logger.error(f"Failed to read workbook sheets: {e}")
        raise WorkbookOpenError(f"Unable to read workbook: {e}") from e
    finally:
        workbook.close()

    logger.info(f"Loaded workbook with {len(grids)} sheets")
    return grids
