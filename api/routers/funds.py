# WORKFLOW: Fund endpoints - workbook upload, name search, index refresh.
# Used by: Upload/search page, operators, integrations
# Endpoints:
# 1. POST /funds/upload - Ingest an XLSX export, then refresh the search index
# 2. GET /funds/search - Name search against the in-memory index
# 3. POST /funds/refresh - Rebuild the index from the database
#
# Upload flow: multipart file -> size check -> ingest (worker thread) -> refresh index -> IngestResponse
# Search flow: query -> IndexHolder snapshot -> exact + substring matches -> SearchResponse
# The index holder and its builder live on app.state and are injected per request.

import asyncio
import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile, status
from sqlalchemy.orm import Session

from api.schemas.response import FundResult, IngestResponse, RefreshResponse, SearchResponse, SheetDiagnostics
from core.config import settings
from db.session import get_db
from etl.errors import WorkbookOpenError
from etl.pipeline import ingest
from services.search_index import IndexHolder, VirtualIndex

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/funds", tags=["funds"])


def get_index_holder(request: Request) -> IndexHolder:
    return request.app.state.index_holder


def get_index_builder(request: Request) -> Callable[[], VirtualIndex]:
    return request.app.state.index_builder


@router.post("/upload", response_model=IngestResponse)
async def upload_workbook(
    excel_file: UploadFile = File(..., description="XLSX export containing fund sheets"),
    db: Session = Depends(get_db),
    holder: IndexHolder = Depends(get_index_holder),
    builder: Callable[[], VirtualIndex] = Depends(get_index_builder),
):
    """
    Ingest an uploaded workbook.

    The response carries the processed and duplicate counts plus per-sheet
    diagnostics so a sheet that contributed nothing can be explained.
    """
    file_bytes = await excel_file.read()
    logger.info(f"Upload received: {excel_file.filename} ({len(file_bytes)} bytes)")

    if not file_bytes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")
    if len(file_bytes) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Uploaded file exceeds {settings.max_upload_bytes} bytes",
        )

    try:
        result = await asyncio.to_thread(ingest, file_bytes, db)
    except WorkbookOpenError as e:
        logger.error(f"Upload rejected: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Ingestion failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error processing file: {str(e)}",
        )

    response = IngestResponse(
        message=f"Successfully processed {result.processed_count} fund records",
        processed_count=result.processed_count,
        duplicate_count=result.duplicate_count,
        skipped_count=result.skipped_count,
        diagnostics=result.diagnostic_text,
        sheets=[SheetDiagnostics(**vars(report)) for report in result.sheets],
    )

    # Ingestion is committed at this point; a failed refresh keeps the old index
    try:
        response.index_record_count = await asyncio.to_thread(holder.refresh, builder)
        response.index_refreshed = True
    except Exception as e:
        logger.warning(f"Index refresh after upload failed: {e}")

    return response


@router.get("/search", response_model=SearchResponse)
async def search_funds(
    q: str = Query(..., min_length=1, max_length=500, description="Scheme name or fragment"),
    limit: Optional[int] = Query(None, ge=1, description="Maximum number of results"),
    holder: IndexHolder = Depends(get_index_holder),
):
    """Search funds by name: exact canonical matches first, then substring matches."""
    limit = min(limit or settings.search_default_limit, settings.search_max_limit)
    records = holder.search(q, limit=limit, sort_substring_matches=settings.search_sort_substring_matches)
    logger.info(f"Search '{q[:50]}' returned {len(records)} results")
    return SearchResponse(
        query=q,
        count=len(records),
        results=[FundResult(**record.to_dict()) for record in records],
    )


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_index(
    holder: IndexHolder = Depends(get_index_holder),
    builder: Callable[[], VirtualIndex] = Depends(get_index_builder),
):
    """Rebuild the search index from the database and swap it in."""
    try:
        record_count = await asyncio.to_thread(holder.refresh, builder)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to refresh search index: {str(e)}",
        )
    return RefreshResponse(record_count=record_count, build_id=holder.current.build_id)
