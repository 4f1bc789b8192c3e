"""
API Endpoint for SEO Analysis

FastAPI application that:
1. Gates submissions behind an x402 payment
2. Validates the submission and creates the report record
3. Settles the payment in the background and records the transaction
4. Runs the analysis pipeline in the background
5. Picks up runs a restart interrupted

Report reads, debug views and HTML pages live in the sibling routers.
"""

import asyncio
import logging
import sys
from datetime import datetime
from typing import Optional, Set

from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.responses import JSONResponse
from x402.schemas import PaymentRequired

from src.database import (
    ReportStatus,
    check_db_connection,
    create_report,
    fail_report,
    init_db,
    list_reports_by_status,
    record_payment,
)
from src.integrations import ExternalAPIClients
from src.payments import (
    create_payment_requirements,
    encode_payment_required_header,
    settle_payment,
    to_wire,
    verify_payment,
)
from src.pipeline import SEOAnalysisPipeline
from src.utils.config import get_settings
from src.utils.safe_errors import log_and_sanitize_error
from src.utils.validation import (
    SubmissionValidationError,
    generate_run_id,
    validate_submission,
)

from api.debug import router as debug_router
from api.pages import router as pages_router
from api.reports import router as reports_router

# Configure logging to stdout (hosting platforms treat stderr as errors)
logging.basicConfig(
    level=get_settings().LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
    force=True,
)
logger = logging.getLogger(__name__)

# Quiet down chatty loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

VERSION = "1.0.0"
ANALYSIS_DESCRIPTION = "SEO gap analysis report"
INTERRUPTED_MESSAGE = "Analysis was interrupted by a server restart. Please try again."

app = FastAPI(
    title="SEO Gap Analyzer",
    description="Pay-per-report SEO gap analysis powered by Hyperbrowser and Claude",
    version=VERSION,
)

app.include_router(reports_router)
app.include_router(debug_router)
app.include_router(pages_router)

# Strong references to resumed runs until they finish
_recovery_tasks: Set[asyncio.Task] = set()


# ============================================================================
# STARTUP - Initialize Database
# ============================================================================

@app.on_event("startup")
async def startup_event():
    """Initialize database on startup."""
    logger.info("Initializing database...")
    try:
        init_db()
        if check_db_connection():
            logger.info("Database connection verified")
        else:
            logger.warning("Database connection check failed - continuing anyway")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        return

    try:
        await recover_interrupted_runs()
    except Exception as e:
        logger.error(f"Interrupted run recovery failed: {e}")


async def recover_interrupted_runs() -> int:
    """
    Deal with runs a previous process left in "analyzing".

    Background tasks do not survive a restart, so each such run is either
    resumed from its checkpoints or failed, per RESUME_INTERRUPTED_RUNS.

    Returns:
        Number of runs handled
    """
    interrupted = list_reports_by_status(ReportStatus.ANALYZING)
    if not interrupted:
        return 0

    resume = get_settings().RESUME_INTERRUPTED_RUNS
    logger.warning(
        f"Found {len(interrupted)} interrupted runs, "
        f"{'resuming' if resume else 'failing'} them"
    )

    for record in interrupted:
        run_id = record["runId"]
        if resume:
            task = asyncio.create_task(resume_pipeline(run_id))
            _recovery_tasks.add(task)
            task.add_done_callback(_recovery_done)
        else:
            fail_report(run_id, INTERRUPTED_MESSAGE)

    return len(interrupted)


def _recovery_done(task: asyncio.Task):
    _recovery_tasks.discard(task)
    if not task.cancelled() and task.exception() is not None:
        log_and_sanitize_error(task.exception(), "resume")


# ============================================================================
# BACKGROUND TASKS
# ============================================================================

async def run_pipeline(run_id: str, url: str, target_keyword: str):
    """Run the analysis for a created record."""
    async with ExternalAPIClients() as clients:
        pipeline = SEOAnalysisPipeline(clients.claude, clients.hyperbrowser)
        record = await pipeline.run(run_id, url, target_keyword)

    if record:
        logger.info(f"[{run_id}] Pipeline finished with status {record['status']}")


async def resume_pipeline(run_id: str):
    """Continue an interrupted run from its stored stages."""
    async with ExternalAPIClients() as clients:
        pipeline = SEOAnalysisPipeline(clients.claude, clients.hyperbrowser)
        record = await pipeline.resume(run_id)

    if record:
        logger.info(f"[{run_id}] Resumed run finished with status {record['status']}")


async def settle_and_record(
    run_id: str,
    payment_header: str,
    requirements: PaymentRequired,
    facilitator_url: str,
):
    """
    Settle an accepted payment and store the transaction on the report.

    Never raises, so the pipeline scheduled after it always runs.
    """
    try:
        settlement = await settle_payment(
            payment_header, requirements, facilitator_url=facilitator_url
        )

        if not settlement.success:
            logger.error(f"[{run_id}] Payment settlement failed: {settlement.error}")
            return

        logger.info(f"[{run_id}] Payment settled: {settlement.tx_hash}")
        record_payment(run_id, settlement.payer, settlement.tx_hash)

    except Exception as e:
        log_and_sanitize_error(e, f"settlement {run_id}")


# ============================================================================
# HELPERS
# ============================================================================

def payment_required(requirements: PaymentRequired, error: Optional[str]) -> JSONResponse:
    """402 with the offer in the body and in the PAYMENT-REQUIRED header."""
    offer = requirements.model_copy(update={"error": error or requirements.error})
    return JSONResponse(
        status_code=402,
        content=to_wire(offer),
        headers={"PAYMENT-REQUIRED": encode_payment_required_header(offer)},
    )


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


# ============================================================================
# API ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "SEO Gap Analyzer"}


@app.get("/api/health")
async def health():
    """Detailed health check including database status."""
    db_connected = False
    try:
        db_connected = check_db_connection()
    except Exception as e:
        logger.warning(f"Health check could not reach database: {e}")

    settings = get_settings()
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": VERSION,
        "database": "connected" if db_connected else "disconnected",
        "payments": "enabled" if settings.PAYMENTS_ENABLED else "disabled",
        "headlineMetric": settings.HEADLINE_METRIC,
    }


@app.post("/api/workflows/seo-analysis")
async def start_seo_analysis(request: Request, background_tasks: BackgroundTasks):
    """
    Submit a page for analysis.

    Payment is checked before anything else. A valid submission returns
    immediately with the runId; progress is polled on the status endpoint.
    """
    settings = get_settings()

    try:
        payment_header = (
            request.headers.get("PAYMENT-SIGNATURE") or request.headers.get("X-PAYMENT")
        )
        requirements = None

        if settings.PAYMENTS_ENABLED:
            requirements = create_payment_requirements(
                price=settings.ANALYSIS_PRICE_USD,
                network=settings.PAYMENT_NETWORK,
                resource_url=str(request.url),
                description=ANALYSIS_DESCRIPTION,
                pay_to=settings.PAYMENT_RECEIVING_ADDRESS,
            )
            verification = await verify_payment(
                payment_header, requirements, facilitator_url=settings.PAYMENT_FACILITATOR_URL
            )
            if not verification.is_valid:
                logger.info(f"[x402] Payment rejected: {verification.error}")
                return payment_required(requirements, verification.error)

            logger.info(f"[x402] Payment verified from {verification.payer}")

        content_type = request.headers.get("content-type", "")
        if content_type.split(";")[0].strip().lower() != "application/json":
            return error_response(415, "Content-Type must be application/json")

        try:
            body = await request.json()
        except ValueError:
            return error_response(400, "Invalid JSON body")

        try:
            submission = validate_submission(body)
        except SubmissionValidationError as e:
            return error_response(400, str(e))

        run_id = generate_run_id()
        create_report(run_id, submission.user_id, submission.url, submission.target_keyword)
        logger.info(f"[{run_id}] Created report for {submission.url} ({submission.user_id})")

        # Background tasks run in order; settle inside the signed authorization window
        if requirements is not None:
            background_tasks.add_task(
                settle_and_record,
                run_id,
                payment_header,
                requirements,
                settings.PAYMENT_FACILITATOR_URL,
            )
        background_tasks.add_task(
            run_pipeline, run_id, submission.url, submission.target_keyword
        )

        return {
            "success": True,
            "runId": run_id,
            "message": "SEO analysis started. Poll the status endpoint for progress.",
        }

    except Exception as e:
        return error_response(500, log_and_sanitize_error(e, "seo-analysis"))


# ============================================================================
# RUN SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.analyze:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
