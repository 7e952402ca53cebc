# WORKFLOW: Pydantic response schemas for the fund API.
# Used by: Fund routers (upload, search, refresh)
# Schemas include:
# 1. IngestResponse / SheetDiagnostics - Upload outcome with per-sheet diagnostics
# 2. FundResult - One combined fund + brokerage record
# 3. SearchResponse - Ordered search results
# 4. RefreshResponse - Index rebuild outcome
#
# Response flow: Service result -> Pydantic model -> JSON response

from datetime import date
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class SheetDiagnostics(BaseModel):
    sheet: str
    status: Literal["ok", "failed", "skipped"]
    header_row: Optional[int] = None
    layout: Optional[str] = None
    columns: Dict[str, int] = Field(default_factory=dict)
    records: int = 0
    rejected: Dict[str, int] = Field(default_factory=dict)
    error: Optional[str] = None


class IngestResponse(BaseModel):
    status: Literal["success"] = "success"
    message: str
    processed_count: int = Field(..., ge=0, description="Funds updated or inserted")
    duplicate_count: int = Field(..., ge=0, description="Records removed by deduplication")
    skipped_count: int = Field(0, ge=0, description="Records lost to insert conflicts")
    diagnostics: str = Field("", description="Newline separated run diagnostics")
    sheets: List[SheetDiagnostics] = Field(default_factory=list)
    index_refreshed: bool = False
    index_record_count: Optional[int] = None


class FundResult(BaseModel):
    id: int
    category: str
    scheme_name: str
    canonical_name: str
    launch_date: Optional[str] = None
    fund_size_apr25: Optional[float] = None
    fund_size_may25: Optional[float] = None
    latest_nav: Optional[float] = None
    days_7: Optional[float] = None
    days_14: Optional[float] = None
    days_21: Optional[float] = None
    month_1: Optional[float] = None
    months_3: Optional[float] = None
    months_6: Optional[float] = None
    ytd: Optional[float] = None
    year_1: Optional[float] = None
    years_2: Optional[float] = None
    years_3: Optional[float] = None
    years_4: Optional[float] = None
    years_5: Optional[float] = None
    years_7: Optional[float] = None
    years_10: Optional[float] = None
    since_inception: Optional[float] = None
    extra_values: List[Optional[float]] = Field(default_factory=list)
    arn: Optional[str] = None
    company: Optional[str] = None
    brokerage_type: Optional[str] = None
    rate_start_date: Optional[date] = None
    rate_end_date: Optional[date] = None
    rate_approved: Optional[bool] = None
    year_1_base: Optional[float] = None
    year_2_base: Optional[float] = None
    year_3_base: Optional[float] = None
    year_4_onwards_base: Optional[float] = None


class SearchResponse(BaseModel):
    query: str
    count: int
    results: List[FundResult]


class RefreshResponse(BaseModel):
    status: Literal["success"] = "success"
    record_count: int
    build_id: str
