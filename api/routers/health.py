# WORKFLOW: Health check endpoints for monitoring and operational status.
# Used by: Load balancers, monitoring systems, operational dashboards
# Endpoints:
# 1. /healthz - Basic health check (always returns healthy)
# 2. /readyz - Readiness check: database reachable, search index loaded
# 3. /livez - Liveness check for Kubernetes
#
# Health flow: Health check request -> Service status check -> Health response

from fastapi import APIRouter, Request
import logging
from datetime import datetime, timezone

from core.config import settings
from db.session import check_db_connection

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/healthz")
async def health_check():
    """
    Basic health check endpoint.

    Returns:
        Health status of the API
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.version,
        "environment": settings.environment
    }


@router.get("/readyz")
async def readiness_check(request: Request):
    """
    Readiness check endpoint.

    Ready once the database answers and a built search index is being
    served; the empty placeholder from before the first refresh is not ready.
    """
    checks = {
        "database": check_db_connection(),
        "search_index": False,
    }

    index_records = None
    holder = getattr(request.app.state, "index_holder", None)
    if holder is not None:
        index_records = len(holder.current)
        checks["search_index"] = holder.loaded

    is_ready = all(checks.values())

    return {
        "status": "ready" if is_ready else "not_ready",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
        "index_records": index_records,
        "version": settings.version
    }


@router.get("/livez")
async def liveness_check():
    """
    Liveness check endpoint.

    Used by Kubernetes liveness checks.
    """
    return {
        "status": "alive",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
