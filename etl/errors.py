# WORKFLOW: Exception taxonomy for the ingestion pipeline.
# Used by: Workbook loader, layout inference, ingestion pipeline, upload endpoint
# Exceptions:
# 1. LayoutError - Sheet-scoped structural failure; the sheet is skipped and reported
#    - HeaderNotFoundError - no header row in the scan window
#    - SchemeColumnNotFoundError - header row found but no scheme-name column
# 2. WorkbookOpenError - Run-fatal; the upload is not a readable workbook
#
# Unreadable cell values become absent fields and noise rows come back as
# rejected row outcomes; neither raises.

"""
Exceptions raised by the ingestion pipeline.
"""


class IngestionError(Exception):
    """Base class for ingestion failures."""


class LayoutError(IngestionError):
    """A sheet's layout could not be inferred; only that sheet is affected."""

    def __init__(self, sheet_name: str, message: str):
        self.sheet_name = sheet_name
        super().__init__(message)


class HeaderNotFoundError(LayoutError):
    """No header row was found in the scanned window of a sheet."""

    def __init__(self, sheet_name: str, scanned_rows: int):
        self.scanned_rows = scanned_rows
        super().__init__(sheet_name, f"Header row not found in sheet '{sheet_name}' (scanned {scanned_rows} rows)")


class SchemeColumnNotFoundError(LayoutError):
    """The header row maps no column to the scheme name."""

    def __init__(self, sheet_name: str, header_row: int):
        self.header_row = header_row
        super().__init__(sheet_name, f"No scheme name column in header row {header_row} of sheet '{sheet_name}'")


class WorkbookOpenError(IngestionError):
    """The uploaded file could not be opened as a workbook."""
