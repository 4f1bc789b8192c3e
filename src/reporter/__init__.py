"""
SEO Gap Analyzer - Report Generation

- structure: assembles reportData from pipeline outputs
- recommendations: free-text recommendations -> cards
- outline: markdown content outline -> sections
- report: HTML rendering of reports and in-progress status pages
"""

from .outline import parse_content_outline
from .recommendations import (
    group_recommendations,
    structure_recommendation,
    structure_recommendations,
)
from .structure import (
    HEADLINE_RANKING,
    HEADLINE_SCORE,
    build_structured_report,
    convert_record_to_structured,
    template_overview,
)
from .report import ReportBuilder

__all__ = [
    "parse_content_outline",
    "group_recommendations",
    "structure_recommendation",
    "structure_recommendations",
    "HEADLINE_RANKING",
    "HEADLINE_SCORE",
    "build_structured_report",
    "convert_record_to_structured",
    "template_overview",
    "ReportBuilder",
]
