"""
API Endpoints for Report Records

Handles:
1. Run status and progress (polled by clients)
2. Full report fetch, deriving reportData when missing
3. Merge updates (kept for clients that write to records directly)
4. Paginated listing of a user's reports
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Query, Request

from src.database import ReportUpdateError, get_report, get_user_reports, update_report
from src.pipeline.progress import status_payload
from src.reporter.structure import convert_record_to_structured
from src.utils.config import get_settings
from src.utils.safe_errors import log_and_sanitize_error
from src.utils.validation import is_valid_run_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Reports"])

# Only the pipeline moves a run between states
PIPELINE_OWNED_FIELDS = frozenset({"status", "errorMessage"})


def load_report(run_id: str) -> Dict[str, Any]:
    """Fetch a record or raise the matching HTTP error."""
    if not is_valid_run_id(run_id):
        raise HTTPException(status_code=400, detail="Invalid runId format")

    record = get_report(run_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Report not found")

    return record


def with_report_data(record: Dict[str, Any]) -> Dict[str, Any]:
    """Fill in reportData from the intermediate fields when possible."""
    if record.get("reportData") is None:
        report_data = convert_record_to_structured(record, get_settings().HEADLINE_METRIC)
        if report_data is not None:
            record["reportData"] = report_data
    return record


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("/api/report/{run_id}/status")
async def get_report_status(run_id: str):
    """Status, progress (0-100) and per-stage completion of a run."""
    return status_payload(load_report(run_id))


@router.get("/api/report/{run_id}")
async def get_report_by_run_id(run_id: str):
    """The full report record."""
    return with_report_data(load_report(run_id))


@router.patch("/api/report/{run_id}")
async def patch_report(run_id: str, request: Request):
    """
    Merge fields into a report.

    Inputs (runId, userId, userUrl, targetKeyword, createdAt) cannot be
    changed. Status and errorMessage belong to the pipeline and are refused.
    """
    if not is_valid_run_id(run_id):
        raise HTTPException(status_code=400, detail="Invalid runId format")

    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")

    if not isinstance(body, dict) or not body:
        raise HTTPException(status_code=400, detail="Request body must be a non-empty JSON object")

    owned = sorted(PIPELINE_OWNED_FIELDS.intersection(body))
    if owned:
        raise HTTPException(status_code=400, detail=f"Fields set by the pipeline: {', '.join(owned)}")

    try:
        updated = update_report(run_id, **body)
    except ReportUpdateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=log_and_sanitize_error(e, f"patch {run_id}"))

    if updated is None:
        raise HTTPException(status_code=404, detail="Report not found")

    return {"success": True, "runId": run_id}


@router.get("/api/reports/user")
async def list_user_reports(
    userId: str = Query(""),
    limit: int = Query(50),
    offset: int = Query(0),
):
    """A user's reports, newest first."""
    if not userId.strip():
        raise HTTPException(status_code=400, detail="User ID is required")
    if not 1 <= limit <= 100:
        raise HTTPException(status_code=400, detail="limit must be between 1 and 100")
    if offset < 0:
        raise HTTPException(status_code=400, detail="offset must be 0 or greater")

    try:
        page = get_user_reports(userId, limit=limit, offset=offset)
    except Exception as e:
        raise HTTPException(status_code=500, detail=log_and_sanitize_error(e, "user reports"))

    return {
        "success": True,
        "reports": [
            {
                "runId": r["runId"],
                "url": r["userUrl"],
                "targetKeyword": r["targetKeyword"],
                "status": r["status"],
                "createdAt": r["createdAt"],
                "googleRanking": r.get("googleRanking"),
                "score": r.get("score"),
            }
            for r in page["reports"]
        ],
        "total": page["total"],
        "hasMore": page["hasMore"],
    }
