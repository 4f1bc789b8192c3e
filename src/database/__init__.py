"""
SEO Report Store

One record per analysis run, keyed by runId.

Usage:
    from src.database import (
        init_db, create_report, update_report, get_report,
        complete_report, fail_report,
    )

    # Initialize database
    init_db()

    # Create a run
    create_report(run_id, "user-1", "https://example.com", "crm software")

    # Checkpoint a stage
    update_report(run_id, userSiteData={...})

    # Terminal transition
    complete_report(run_id)
"""

# Models
from .models import (
    Base,
    SEOReport,
    ReportStatus,
    PAYLOAD_FIELDS,
    IMMUTABLE_FIELDS,
)

# Session management
from .session import (
    reset_engine,
    get_db_context,
    init_db,
    check_db_connection,
)

# Repository
from .repository import (
    ReportUpdateError,
    create_report,
    get_report,
    update_report,
    complete_report,
    fail_report,
    record_payment,
    get_user_reports,
    list_recent_reports,
    list_reports_by_status,
    clear_reports,
)

__all__ = [
    # Models
    "Base",
    "SEOReport",
    "ReportStatus",
    "PAYLOAD_FIELDS",
    "IMMUTABLE_FIELDS",
    # Session
    "reset_engine",
    "get_db_context",
    "init_db",
    "check_db_connection",
    # Repository
    "ReportUpdateError",
    "create_report",
    "get_report",
    "update_report",
    "complete_report",
    "fail_report",
    "record_payment",
    "get_user_reports",
    "list_recent_reports",
    "list_reports_by_status",
    "clear_reports",
]
