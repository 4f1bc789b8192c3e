"""
SQLAlchemy Models for the SEO Gap Analyzer

One row per analysis run. The row starts with the submitted inputs and
accumulates one payload column per completed pipeline stage, so the row
itself is the checkpoint of the batch job.
"""

import enum
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import (
    Column, String, DateTime, Text, Enum, Index, JSON,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON everywhere else (SQLite for local runs)
JSONType = JSON().with_variant(JSONB, "postgresql")


# =============================================================================
# ENUMS
# =============================================================================

class ReportStatus(enum.Enum):
    """Status of an analysis run. Only moves forward out of ANALYZING."""
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not ReportStatus.ANALYZING


# Payload column -> record key, in pipeline order
PAYLOAD_FIELDS: Dict[str, str] = {
    "user_site_data": "userSiteData",
    "discovered_keywords": "discoveredKeywords",
    "google_ranking": "googleRanking",
    "competitor_data": "competitorData",
    "patterns": "patterns",
    "gaps": "gaps",
    "recommendations": "recommendations",
    "score": "score",
    "report_data": "reportData",
}

# Inputs fixed at creation
IMMUTABLE_FIELDS = ("runId", "userId", "userUrl", "targetKeyword", "createdAt")


# =============================================================================
# REPORTS
# =============================================================================

class SEOReport(Base):
    """A single SEO gap analysis run and everything it has produced so far"""
    __tablename__ = "seo_reports"

    run_id = Column(String(64), primary_key=True)

    # Submitted inputs
    user_id = Column(String(255), nullable=False)
    user_url = Column(String(500), nullable=False)
    target_keyword = Column(String(100), nullable=False)

    # Status tracking
    status = Column(
        Enum(ReportStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ReportStatus.ANALYZING,
    )
    error_message = Column(Text)

    # Stage outputs (absent until the producing stage completes)
    user_site_data = Column(JSONType)
    discovered_keywords = Column(JSONType)
    google_ranking = Column(JSONType)
    competitor_data = Column(JSONType)
    patterns = Column(JSONType)
    gaps = Column(JSONType)
    recommendations = Column(JSONType)
    score = Column(JSONType)  # Number, stored as JSON so "absent" stays distinct from 0
    report_data = Column(JSONType)

    # Payment bookkeeping
    payment_payer = Column(String(100))
    payment_tx_hash = Column(String(100))

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    completed_at = Column(DateTime)

    __table_args__ = (
        Index("idx_seo_reports_user_created", "user_id", "created_at"),
        Index("idx_seo_reports_created", "created_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize to the record shape served by the API.

        Payload fields whose stage has not completed are omitted entirely.
        """
        record: Dict[str, Any] = {
            "runId": self.run_id,
            "userId": self.user_id,
            "userUrl": self.user_url,
            "targetKeyword": self.target_keyword,
            "status": self.status.value if self.status else None,
            "createdAt": _isoformat(self.created_at),
            "updatedAt": _isoformat(self.updated_at),
        }

        for column, key in PAYLOAD_FIELDS.items():
            value = getattr(self, column)
            if value is not None:
                record[key] = value

        if self.completed_at:
            record["completedAt"] = _isoformat(self.completed_at)
        if self.error_message:
            record["errorMessage"] = self.error_message
        if self.payment_payer:
            record["paymentPayer"] = self.payment_payer
        if self.payment_tx_hash:
            record["paymentTxHash"] = self.payment_tx_hash

        return record

    def __repr__(self) -> str:
        return f"<SEOReport {self.run_id} {self.status.value if self.status else None}>"


def _isoformat(value: datetime) -> str:
    return value.isoformat() + "Z" if value else None
