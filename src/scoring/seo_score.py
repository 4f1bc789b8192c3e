"""
SEO Score Calculator

Point-based 0-100 score of a page against its competitor benchmarks.

Formula:
    score = 50 (neutral baseline)
          + word count adjustment   (+15 / +10 / +5 / -5)
          + H2 structure adjustment (+10 / +5 / -5)
          + internal link adjustment (+10 / +5 / -5, sweet spot 10-30)
          + schema markup bonus     (+10)
          - gap penalties           (critical 15, high 12, medium 6, low 2)
          - systemic gap penalty    (-5 above 8 gaps, -3 above 6)
    clamped to [0, 100]
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

BASELINE_SCORE = 50
MIN_SCORE = 0
MAX_SCORE = 100

GAP_PENALTIES: Dict[str, int] = {
    "critical": 15,
    "high": 12,
    "medium": 6,
    "low": 2,
}

INTERNAL_LINKS_SWEET_SPOT = (10, 30)
INTERNAL_LINKS_TOLERATED_MAX = 50

# score_band thresholds
HIGH_BAND_MIN = 80
MEDIUM_BAND_MIN = 60


@dataclass
class SEOScoreBreakdown:
    """Score with the adjustment behind each component."""
    score: int
    word_count_points: int = 0
    h2_points: int = 0
    internal_link_points: int = 0
    schema_points: int = 0
    gap_penalty: int = 0
    systemic_penalty: int = 0
    gap_counts: Dict[str, int] = field(default_factory=dict)


def _ratio(value: float, benchmark: float) -> float:
    # No benchmark means nothing to fall behind
    if not benchmark:
        return 1.0
    return value / benchmark


def _word_count_points(ratio: float) -> int:
    if ratio >= 1.2:
        return 15
    if ratio >= 1.0:
        return 10
    if ratio >= 0.8:
        return 5
    return -5


def _h2_points(ratio: float) -> int:
    if ratio >= 1.0:
        return 10
    if ratio >= 0.8:
        return 5
    return -5


def _internal_link_points(links: int) -> int:
    low, high = INTERNAL_LINKS_SWEET_SPOT
    if low <= links <= high:
        return 10
    if high < links <= INTERNAL_LINKS_TOLERATED_MAX:
        return 5
    if links < low:
        return -5
    return 0


def score_breakdown(
    user_site: Dict[str, Any],
    patterns: Dict[str, Any],
    gaps: List[Dict[str, Any]],
) -> SEOScoreBreakdown:
    """
    Calculate the SEO score with its full breakdown.

    Args:
        user_site: Extracted page data (wordCount, h2, internalLinks, hasSchema)
        patterns: Competitor benchmarks (avgWordCount, avgH2Count)
        gaps: Identified gaps, each with a severity

    Returns:
        SEOScoreBreakdown
    """
    word_count = user_site.get("wordCount") or 0
    h2_count = len(user_site.get("h2") or [])
    internal_links = user_site.get("internalLinks") or 0

    word_points = _word_count_points(_ratio(word_count, patterns.get("avgWordCount") or 0))
    h2_points = _h2_points(_ratio(h2_count, patterns.get("avgH2Count") or 0))
    link_points = _internal_link_points(internal_links)
    schema_points = 10 if user_site.get("hasSchema") else 0

    gap_counts = {severity: 0 for severity in GAP_PENALTIES}
    for gap in gaps:
        severity = gap.get("severity")
        if severity in gap_counts:
            gap_counts[severity] += 1

    gap_penalty = sum(GAP_PENALTIES[s] * count for s, count in gap_counts.items())

    if len(gaps) > 8:
        systemic_penalty = 5
    elif len(gaps) > 6:
        systemic_penalty = 3
    else:
        systemic_penalty = 0

    raw = (
        BASELINE_SCORE
        + word_points + h2_points + link_points + schema_points
        - gap_penalty - systemic_penalty
    )
    score = max(MIN_SCORE, min(MAX_SCORE, raw))

    logger.debug(
        f"Score: {score} (raw {raw}; words {word_points:+d}, h2 {h2_points:+d}, "
        f"links {link_points:+d}, schema +{schema_points}, gaps -{gap_penalty}, "
        f"systemic -{systemic_penalty})"
    )

    return SEOScoreBreakdown(
        score=score,
        word_count_points=word_points,
        h2_points=h2_points,
        internal_link_points=link_points,
        schema_points=schema_points,
        gap_penalty=gap_penalty,
        systemic_penalty=systemic_penalty,
        gap_counts=gap_counts,
    )


def calculate_seo_score(
    user_site: Dict[str, Any],
    patterns: Dict[str, Any],
    gaps: List[Dict[str, Any]],
) -> int:
    """Calculate the 0-100 SEO score."""
    return score_breakdown(user_site, patterns, gaps).score


def score_band(score: int) -> str:
    """Classify a score as high (80+), medium (60-79) or low."""
    if score >= HIGH_BAND_MIN:
        return "high"
    if score >= MEDIUM_BAND_MIN:
        return "medium"
    return "low"
