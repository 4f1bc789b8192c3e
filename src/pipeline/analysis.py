"""
Pure helpers behind the pattern, gap and competitor stages.

Nothing here talks to a hosted API, so the numeric parts of a run can be
tested without mocks.
"""

import json
import logging
import math
from typing import Any, Dict, List, Optional

from src.analyzer.prompts import SEVERITIES

logger = logging.getLogger(__name__)

DEFAULT_SEVERITY = "medium"
TOPIC_SAMPLE_SIZE = 5
H2_SAMPLE_SIZE = 10


# =============================================================================
# PAGE DATA
# =============================================================================

def normalize_page(data: Optional[Dict[str, Any]], url: str = "") -> Dict[str, Any]:
    """
    Fill in the extraction fields a page may be missing.

    Hosted extraction omits optional keys and sometimes returns floats for
    counts; downstream code expects lists and ints.
    """
    data = dict(data or {})

    def as_int(value: Any) -> int:
        try:
            return int(value or 0)
        except (TypeError, ValueError):
            return 0

    def as_list(value: Any) -> List[str]:
        if isinstance(value, list):
            return [str(v) for v in value if v]
        if isinstance(value, str) and value:
            return [value]
        return []

    return {
        **data,
        "url": data.get("url") or url,
        "title": data.get("title") or "",
        "metaDescription": data.get("metaDescription") or "",
        "h1": as_list(data.get("h1")),
        "h2": as_list(data.get("h2")),
        "h3": as_list(data.get("h3")),
        "wordCount": as_int(data.get("wordCount")),
        "internalLinks": as_int(data.get("internalLinks")),
        "externalLinks": as_int(data.get("externalLinks")),
        "images": as_int(data.get("images")),
        "hasSchema": bool(data.get("hasSchema")),
        "hasOpenGraph": bool(data.get("hasOpenGraph")),
        "hasCanonical": bool(data.get("hasCanonical")),
        "content": data.get("content") or "",
    }


def build_competitor_entries(
    candidates: List[Dict[str, Any]],
    fetched: List[Optional[Dict[str, Any]]],
) -> List[Dict[str, Any]]:
    """
    Merge search candidates with their fetched pages.

    A failed fetch becomes an empty placeholder; placeholders and pages
    with no counted words are then discarded.

    Args:
        candidates: [{rank, title, url, description}]
        fetched: Extracted pages in the same order, None for failures

    Returns:
        Competitor entries ordered by rank
    """
    entries = []
    for candidate, page in zip(candidates, fetched):
        if page is None:
            logger.warning(f"Competitor fetch failed: {candidate.get('url')}")
        entry = normalize_page(page, candidate.get("url", ""))
        entry["rank"] = candidate.get("rank") or 0
        entry["url"] = candidate.get("url") or entry["url"]
        entry["title"] = entry["title"] or candidate.get("title") or ""
        entry["description"] = candidate.get("description") or ""
        entries.append(entry)

    kept = [e for e in entries if e["wordCount"] > 0]
    if len(kept) < len(entries):
        logger.info(f"Discarded {len(entries) - len(kept)} competitors with no content")

    return sorted(kept, key=lambda e: e["rank"])


# =============================================================================
# PATTERNS
# =============================================================================

def _mean(values: List[int]) -> int:
    if not values:
        return 0
    # Half rounds up: 1000.5 -> 1001
    return int(math.floor(sum(values) / len(values) + 0.5))


def compute_patterns(competitors: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Rounded competitor averages plus schema usage.

    An empty set gives zeros and an empty topic list.
    """
    return {
        "avgWordCount": _mean([c.get("wordCount") or 0 for c in competitors]),
        "avgH2Count": _mean([len(c.get("h2") or []) for c in competitors]),
        "avgH3Count": _mean([len(c.get("h3") or []) for c in competitors]),
        "avgInternalLinks": _mean([c.get("internalLinks") or 0 for c in competitors]),
        "avgExternalLinks": _mean([c.get("externalLinks") or 0 for c in competitors]),
        "commonTopics": [],
        "technicalPatterns": {
            "schemaUsage": sum(1 for c in competitors if c.get("hasSchema")),
            "totalCompetitors": len(competitors),
        },
    }


def competitor_summary(competitors: List[Dict[str, Any]]) -> str:
    """JSON digest of the top competitors for the topic prompt."""
    top = sorted(competitors, key=lambda c: c.get("rank") or 0)[:TOPIC_SAMPLE_SIZE]
    return json.dumps(
        [
            {
                "title": c.get("title"),
                "h2Topics": (c.get("h2") or [])[:H2_SAMPLE_SIZE],
                "wordCount": c.get("wordCount") or 0,
            }
            for c in top
        ],
        indent=2,
    )


# =============================================================================
# GAPS
# =============================================================================

def normalize_gaps(raw: Any) -> List[Dict[str, Any]]:
    """
    Clean the LLM's gap list.

    Unknown severities become "medium"; gaps without a recommendation are
    dropped since they cannot be turned into an action.
    """
    if isinstance(raw, dict):
        raw = raw.get("gaps")
    if not isinstance(raw, list):
        return []

    gaps = []
    for item in raw:
        if not isinstance(item, dict):
            continue

        recommendation = str(item.get("recommendation") or "").strip()
        if not recommendation:
            continue

        severity = str(item.get("severity") or "").strip().lower()
        if severity not in SEVERITIES:
            logger.debug(f"Normalizing severity {item.get('severity')!r} to {DEFAULT_SEVERITY}")
            severity = DEFAULT_SEVERITY

        gap = {
            "category": str(item.get("category") or "General").strip(),
            "severity": severity,
            "finding": str(item.get("finding") or "").strip(),
            "impact": str(item.get("impact") or "").strip(),
            "recommendation": recommendation,
        }
        if item.get("estimatedEffort"):
            gap["estimatedEffort"] = str(item["estimatedEffort"]).strip()
        gaps.append(gap)

    return gaps
