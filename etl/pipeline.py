# WORKFLOW: End-to-end ingestion of one fund workbook.
# Used by: Upload endpoint (api/routers/funds.py), bootstrap script
# Functions:
# 1. ingest() - Workbook bytes -> processed/duplicate counts + diagnostics
# 2. ingest_sheet() - Layout inference + extraction for one sheet, never raises on structure
#
# Ingestion flow: bytes -> sheets -> select -> {layout -> extract} per sheet -> pool
#                 -> dedup -> (recreate?) -> reconcile -> commit
# One run is one transaction: a connectivity failure rolls everything back.

"""
End-to-end ingestion of one fund workbook.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from core.config import Settings, settings as default_settings
from etl.dedup import dedupe
from etl.errors import LayoutError
from etl.extract import extract_sheet
from etl.layout import infer_layout
from etl.reconcile import reconcile_records, reset_fund_table
from etl.records import FundRecord
from etl.sheets import select_sheets
from etl.workbook import SheetGrid, load_workbook_grids

logger = logging.getLogger(__name__)


@dataclass
class SheetReport:
    sheet: str
    status: str
    header_row: Optional[int] = None
    layout: Optional[str] = None
    columns: Dict[str, int] = field(default_factory=dict)
    records: int = 0
    rejected: Dict[str, int] = field(default_factory=dict)
    error: Optional[str] = None

    def summary(self) -> str:
        if self.status == "skipped":
            return f"Sheet '{self.sheet}': skipped by configuration"
        if self.status == "failed":
            return f"Sheet '{self.sheet}': {self.error}; contributed 0 records"
        text = (
            f"Sheet '{self.sheet}': header at row {self.header_row}, {self.layout} layout, "
            f"{self.records} records"
        )
        if self.rejected:
            reasons = ", ".join(f"{reason}={count}" for reason, count in sorted(self.rejected.items()))
            text += f" (rejected: {reasons})"
        return text


@dataclass
class IngestResult:
    processed_count: int
    duplicate_count: int
    skipped_count: int = 0
    sheets: List[SheetReport] = field(default_factory=list)
    diagnostics: List[str] = field(default_factory=list)

    @property
    def diagnostic_text(self) -> str:
        return "\n".join(self.diagnostics)


def ingest_sheet(name: str, grid: SheetGrid, config: Settings) -> Tuple[List[FundRecord], SheetReport]:
    """
    Infer the layout of one sheet and extract its records.

    A missing header or scheme name column is reported on the SheetReport
    instead of raised.
    """
    try:
        layout = infer_layout(
            grid,
            strategy=config.layout_strategy,
            scan_rows=config.header_scan_rows,
            scan_columns=config.header_scan_columns,
        )
    except LayoutError as e:
        logger.warning(str(e))
        return [], SheetReport(sheet=name, status="failed", error=str(e))

    logger.info(f"Sheet '{name}': using {layout.variant} layout ({layout.strategy} strategy)")
    extraction = extract_sheet(grid, layout, category=name, lenient=config.lenient_coercion)
    report = SheetReport(
        sheet=name,
        status="ok",
        header_row=layout.header_row,
        layout=layout.variant,
        columns=dict(layout.columns),
        records=len(extraction.records),
        rejected=dict(extraction.rejections),
    )
    return extraction.records, report


def ingest(file_bytes: bytes, db: Session, config: Optional[Settings] = None) -> IngestResult:
    """
    Ingest one workbook into the funds table.

    Args:
        file_bytes: Raw XLSX content
        db: Database session; committed on success, rolled back on failure
        config: Settings override, defaults to the process settings

    Returns:
        IngestResult with processed/duplicate counts and per-sheet diagnostics

    Raises:
        WorkbookOpenError: If the bytes cannot be read as a workbook
        SQLAlchemyError: If the store cannot be written; nothing is committed
    """
    config = config or default_settings
    grids = load_workbook_grids(file_bytes)
    selected, skipped = select_sheets(grids.keys(), config.skip_sheets)

    reports: List[SheetReport] = [SheetReport(sheet=name, status="skipped") for name in skipped]
    pooled: List[FundRecord] = []
    for name in selected:
        logger.info(f"Processing sheet: {name}")
        records, report = ingest_sheet(name, grids[name], config)
        pooled.extend(records)
        reports.append(report)

    dedup = dedupe(pooled, policy=config.dedup_policy)

    try:
        if config.reconcile_mode == "recreate":
            reset_fund_table(db)
        reconciled = reconcile_records(db, dedup.records)
        db.commit()
    except Exception as e:
        logger.error(f"Ingestion failed, rolling back: {e}")
        db.rollback()
        raise

    order = {name: position for position, name in enumerate(grids)}
    reports.sort(key=lambda report: order.get(report.sheet, len(order)))

    diagnostics = [report.summary() for report in reports]
    diagnostics.append(
        f"Pooled {len(pooled)} records from {len(selected)} sheets; "
        f"{dedup.removed} removed as duplicates ({config.dedup_policy} policy)"
    )
    diagnostics.append(
        f"Processed {reconciled.processed} funds (updated={reconciled.updated}, "
        f"inserted={reconciled.inserted}, skipped={reconciled.skipped}, "
        f"collapsed={reconciled.collapsed})"
    )

    logger.info(f"Ingestion complete: {reconciled.processed} processed, {dedup.removed} duplicates")
    return IngestResult(
        processed_count=reconciled.processed,
        duplicate_count=dedup.removed,
        skipped_count=reconciled.skipped,
        sheets=reports,
        diagnostics=diagnostics,
    )
