"""
Server-rendered report pages.

GET /report/{runId} shows the finished report, or a self-refreshing
progress page while the run is still analyzing.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from src.pipeline.progress import completed_steps, compute_progress
from src.reporter import ReportBuilder

from api.reports import load_report, with_report_data

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Pages"])

builder = ReportBuilder()


@router.get("/report/{run_id}", response_class=HTMLResponse)
async def report_page(run_id: str):
    """Render a report as HTML."""
    record = with_report_data(load_report(run_id))

    if record["status"] == "completed" and record.get("reportData"):
        return HTMLResponse(builder.build(record, record["reportData"]))

    return HTMLResponse(
        builder.build_status_page(record, compute_progress(record), completed_steps(record))
    )
