"""
Repository Layer - Clean Interface for Report Records

Provides simple functions to store and retrieve analysis runs.
Handles all SQLAlchemy complexity internally and hands plain dicts back
to callers, so nothing outside this package touches a Session.

Invariants enforced here:
- Payload fields are only ever added or replaced, never removed
- Submitted inputs never change after creation
- Status leaves "analyzing" at most once
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func

from .models import SEOReport, ReportStatus, PAYLOAD_FIELDS, IMMUTABLE_FIELDS
from .session import get_db_context

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50

# Record key -> column, for payload updates
_PAYLOAD_COLUMNS = {key: column for column, key in PAYLOAD_FIELDS.items()}


class ReportUpdateError(ValueError):
    """Raised when an update would break a record invariant."""


# =============================================================================
# REPORT LIFECYCLE
# =============================================================================

def create_report(
    run_id: str,
    user_id: str,
    user_url: str,
    target_keyword: str,
) -> Dict[str, Any]:
    """
    Create a new report record.

    This is the entry point for every analysis job. Only the inputs are
    set; status starts at "analyzing".

    Returns:
        The created record
    """
    with get_db_context() as db:
        report = SEOReport(
            run_id=run_id,
            user_id=user_id,
            user_url=user_url,
            target_keyword=target_keyword,
            status=ReportStatus.ANALYZING,
            created_at=datetime.utcnow(),
        )
        db.add(report)
        db.flush()

        logger.info(f"[{run_id}] Created report for {user_url} ({target_keyword!r})")
        return report.to_dict()


def get_report(run_id: str) -> Optional[Dict[str, Any]]:
    """Get a report record by run id, or None."""
    with get_db_context() as db:
        report = db.get(SEOReport, run_id)
        return report.to_dict() if report else None


def update_report(run_id: str, **fields: Any) -> Optional[Dict[str, Any]]:
    """
    Merge fields into a report record.

    Accepts record keys (camelCase): any payload field, "status" and
    "errorMessage". Keys with a None value are ignored, so an update can
    never remove a field.

    Raises:
        ReportUpdateError: On an attempt to change an immutable input, an
            unknown field or a status transition out of a terminal state

    Returns:
        The updated record, or None if the run does not exist
    """
    immutable = [key for key in fields if key in IMMUTABLE_FIELDS]
    if immutable:
        raise ReportUpdateError(f"Cannot modify immutable fields: {', '.join(immutable)}")

    unknown = [
        key for key in fields
        if key not in _PAYLOAD_COLUMNS and key not in ("status", "errorMessage")
    ]
    if unknown:
        raise ReportUpdateError(f"Unknown fields: {', '.join(unknown)}")

    with get_db_context() as db:
        report = db.get(SEOReport, run_id)
        if not report:
            return None

        if fields.get("status") is not None:
            _apply_status(report, fields["status"])

        if fields.get("errorMessage") is not None:
            report.error_message = fields["errorMessage"]

        for key, value in fields.items():
            if key in _PAYLOAD_COLUMNS and value is not None:
                setattr(report, _PAYLOAD_COLUMNS[key], value)

        report.updated_at = datetime.utcnow()
        db.flush()
        return report.to_dict()


def _apply_status(report: SEOReport, status: Any) -> None:
    """Move a report to a new status, refusing to leave a terminal state."""
    try:
        new_status = status if isinstance(status, ReportStatus) else ReportStatus(status)
    except ValueError:
        raise ReportUpdateError(f"Invalid status: {status!r}")

    if new_status == report.status:
        return

    if report.status.is_terminal:
        raise ReportUpdateError(
            f"Cannot change status from {report.status.value} to {new_status.value}"
        )

    report.status = new_status
    if new_status.is_terminal:
        report.completed_at = datetime.utcnow()


def complete_report(run_id: str) -> bool:
    """
    Mark a report as completed.

    Returns:
        True if the transition happened, False if the run is missing or
        already terminal
    """
    with get_db_context() as db:
        report = db.get(SEOReport, run_id)
        if not report or report.status != ReportStatus.ANALYZING:
            return False

        report.status = ReportStatus.COMPLETED
        report.completed_at = datetime.utcnow()
        report.updated_at = report.completed_at
        logger.info(f"[{run_id}] Report completed")
        return True


def fail_report(run_id: str, error_message: str) -> bool:
    """
    Mark a report as failed with a user-safe message.

    Returns:
        True if the transition happened, False if the run is missing or
        already terminal
    """
    with get_db_context() as db:
        report = db.get(SEOReport, run_id)
        if not report or report.status != ReportStatus.ANALYZING:
            return False

        report.status = ReportStatus.FAILED
        report.error_message = error_message
        report.completed_at = datetime.utcnow()
        report.updated_at = report.completed_at
        logger.error(f"[{run_id}] Report failed: {error_message}")
        return True


def record_payment(run_id: str, payer: Optional[str], tx_hash: Optional[str]) -> bool:
    """Attach settlement details to a report."""
    with get_db_context() as db:
        report = db.get(SEOReport, run_id)
        if not report:
            logger.warning(f"[{run_id}] Payment settled for unknown report")
            return False

        if payer:
            report.payment_payer = payer
        if tx_hash:
            report.payment_tx_hash = tx_hash
        report.updated_at = datetime.utcnow()
        return True


# =============================================================================
# LISTING
# =============================================================================

def get_user_reports(
    user_id: str,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> Dict[str, Any]:
    """
    Get a user's reports, newest first.

    Args:
        user_id: Owner of the reports
        limit: Page size, clamped to 1-100
        offset: Rows to skip, clamped to >= 0

    Returns:
        Dict with reports, total and hasMore
    """
    limit = max(1, min(int(limit), MAX_PAGE_SIZE))
    offset = max(0, int(offset))

    with get_db_context() as db:
        total = (
            db.query(func.count(SEOReport.run_id))
            .filter(SEOReport.user_id == user_id)
            .scalar()
        ) or 0

        rows = (
            db.query(SEOReport)
            .filter(SEOReport.user_id == user_id)
            .order_by(SEOReport.created_at.desc(), SEOReport.run_id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

        return {
            "reports": [row.to_dict() for row in rows],
            "total": total,
            "hasMore": offset + len(rows) < total,
        }


def list_recent_reports(limit: int = 10) -> List[Dict[str, Any]]:
    """Most recently created reports across all users."""
    limit = max(1, min(int(limit), MAX_PAGE_SIZE))
    with get_db_context() as db:
        rows = (
            db.query(SEOReport)
            .order_by(SEOReport.created_at.desc())
            .limit(limit)
            .all()
        )
        return [row.to_dict() for row in rows]


def list_reports_by_status(status: ReportStatus) -> List[Dict[str, Any]]:
    """All reports in one status, oldest first."""
    with get_db_context() as db:
        rows = (
            db.query(SEOReport)
            .filter(SEOReport.status == status)
            .order_by(SEOReport.created_at.asc(), SEOReport.run_id.asc())
            .all()
        )
        return [row.to_dict() for row in rows]


def clear_reports() -> int:
    """
    Delete every report record.

    Returns:
        Number of rows deleted
    """
    with get_db_context() as db:
        deleted = db.query(SEOReport).delete(synchronize_session=False)
        logger.warning(f"Deleted {deleted} report records")
        return deleted
