"""
Scoring Module for the SEO Gap Analyzer

Point-based 0-100 SEO score of a page against competitor benchmarks.

Example Usage:
    from src.scoring import calculate_seo_score, score_band

    score = calculate_seo_score(user_site, patterns, gaps)
    print(f"SEO Score: {score} ({score_band(score)})")
"""

from .seo_score import (
    BASELINE_SCORE,
    GAP_PENALTIES,
    SEOScoreBreakdown,
    calculate_seo_score,
    score_band,
    score_breakdown,
)

__all__ = [
    "BASELINE_SCORE",
    "GAP_PENALTIES",
    "SEOScoreBreakdown",
    "calculate_seo_score",
    "score_band",
    "score_breakdown",
]
