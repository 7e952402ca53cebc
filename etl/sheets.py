# WORKFLOW: Sheet selection before layout inference.
# Used by: Ingestion pipeline
# Functions:
# 1. is_data_sheet() - Name contains none of the skip substrings (case-insensitive)
# 2. select_sheets() - Split workbook sheet names into (selected, skipped)
#
# Selection flow: workbook sheet names -> skip_sheets setting -> data sheets in workbook order

"""
Sheet selection: front matter and glossary sheets are skipped by name.
"""

from typing import Iterable, List, Tuple


def is_data_sheet(sheet_name: str, skip_sheets: Iterable[str]) -> bool:
    """True unless the name contains one of the skip substrings (case-insensitive)."""
    lowered = sheet_name.lower()
    return not any(skip.strip().lower() in lowered for skip in skip_sheets if skip.strip())


def select_sheets(sheet_names: Iterable[str], skip_sheets: Iterable[str]) -> Tuple[List[str], List[str]]:
    """Split sheet names into (data sheets, skipped sheets), keeping workbook order."""
    skip_sheets = list(skip_sheets)
    selected, skipped = [], []
    for name in sheet_names:
        (selected if is_data_sheet(name, skip_sheets) else skipped).append(name)
    return selected, skipped
