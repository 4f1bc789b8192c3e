"""
Read-only debug endpoints.

Served only when DEBUG_ENDPOINTS_ENABLED is set; otherwise every route
answers 404 as if it did not exist.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from src.database import get_report, list_recent_reports
from src.pipeline.progress import compute_progress
from src.utils.config import get_settings

logger = logging.getLogger(__name__)


def require_debug_enabled():
    if not get_settings().DEBUG_ENDPOINTS_ENABLED:
        raise HTTPException(status_code=404, detail="Not Found")


router = APIRouter(
    prefix="/api/debug",
    tags=["Debug"],
    dependencies=[Depends(require_debug_enabled)],
)


@router.get("/report/{run_id}")
async def debug_report(run_id: str):
    """Which fields a record holds, without their contents."""
    record = get_report(run_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Report not found")

    return {
        "runId": record["runId"],
        "status": record["status"],
        "progress": compute_progress(record),
        "createdAt": record["createdAt"],
        "errorMessage": record.get("errorMessage"),
        "fields": sorted(record.keys()),
        "hasReportData": record.get("reportData") is not None,
    }


@router.get("/reports")
async def debug_reports(limit: int = Query(10, ge=1, le=100)):
    """Most recent records across all users."""
    reports = list_recent_reports(limit)
    return {
        "count": len(reports),
        "reports": [
            {
                "runId": r["runId"],
                "status": r["status"],
                "userUrl": r["userUrl"],
                "createdAt": r["createdAt"],
                "hasReportData": r.get("reportData") is not None,
            }
            for r in reports
        ],
    }
