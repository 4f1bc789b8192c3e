"""
SEO Gap Analyzer - Analysis Pipeline

- orchestrator: SEOAnalysisPipeline, the checkpointed stage runner
- ranking: search ranking detection and competitor candidates
- analysis: benchmark and gap helpers
- progress: status/progress derived from a record
"""

from .orchestrator import SEOAnalysisPipeline
from .progress import compute_progress, completed_steps, status_payload
from .ranking import detect_ranking, resolve_competitor_url, search_competitors

__all__ = [
    "SEOAnalysisPipeline",
    "compute_progress",
    "completed_steps",
    "status_payload",
    "detect_ranking",
    "resolve_competitor_url",
    "search_competitors",
]
