"""
Structured Report Assembly

Builds the reportData object served to clients and rendered to HTML:
executive summary, your metrics vs competitor benchmarks, gaps, grouped
recommendation cards, parsed content outline, keywords and competitors.

The executive summary carries exactly one headline metric: the 0-100
score, or the detected search ranking. Never both.
"""

import logging
from typing import Any, Dict, List, Optional

from src.scoring.seo_score import calculate_seo_score
from .outline import parse_content_outline
from .recommendations import structure_recommendations

logger = logging.getLogger(__name__)

HEADLINE_SCORE = "score"
HEADLINE_RANKING = "ranking"
KEY_FINDINGS_LIMIT = 5

# Fields a record needs before it can be converted
_REQUIRED_FIELDS = ("userSiteData", "patterns", "gaps", "recommendations", "discoveredKeywords")


def _count(gaps: List[Dict[str, Any]], *severities: str) -> int:
    return sum(1 for g in gaps if g.get("severity") in severities)


def _main_categories(gaps: List[Dict[str, Any]], limit: int = 3) -> List[str]:
    """Distinct categories of the most severe gaps, in order of appearance."""
    urgent = [g for g in gaps if g.get("severity") in ("critical", "high")] or gaps
    categories: List[str] = []
    for gap in urgent:
        category = gap.get("category")
        if category and category not in categories:
            categories.append(category)
    return categories[:limit]


def template_overview(
    user_url: str,
    gaps: List[Dict[str, Any]],
    headline_metric: str = HEADLINE_SCORE,
    score: Optional[int] = None,
    ranking: Optional[Dict[str, Any]] = None,
    keyword: Optional[str] = None,
    ranking_depth: int = 100,
) -> str:
    """
    Deterministic executive summary.

    Used when the LLM summary is unavailable and for converted records.
    """
    if headline_metric == HEADLINE_RANKING:
        rank = (ranking or {}).get("rank")
        target = f' for "{keyword}"' if keyword else ""
        if rank:
            opening = f"{user_url} currently ranks at position #{rank}{target}."
        else:
            opening = f"{user_url} is not ranking in the top {ranking_depth} results{target}."
    else:
        opening = f"This SEO analysis reveals a score of {score or 0}/100 for {user_url}."

    urgent = _count(gaps, "critical", "high")
    medium = _count(gaps, "medium")
    categories = _main_categories(gaps)
    focus = f", primarily in {', '.join(categories)}" if categories else ""

    return (
        f"{opening} The analysis identified {urgent} high-priority and {medium} "
        f"medium-priority SEO gaps{focus}. This report provides actionable "
        f"recommendations to improve your search engine visibility and content quality."
    )


def build_executive_summary(
    overview: str,
    gaps: List[Dict[str, Any]],
    headline_metric: str = HEADLINE_SCORE,
    score: Optional[int] = None,
    ranking: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    summary: Dict[str, Any] = {
        "overview": overview,
        "keyFindings": [g.get("finding") for g in gaps[:KEY_FINDINGS_LIMIT] if g.get("finding")],
    }

    if headline_metric == HEADLINE_RANKING:
        summary["googleRanking"] = (ranking or {}).get("rank")
        summary["googleRankingUrl"] = (ranking or {}).get("foundUrl")
    else:
        summary["score"] = score if score is not None else 0

    return summary


def build_structured_report(
    user_site: Dict[str, Any],
    discovered_keywords: Dict[str, Any],
    patterns: Dict[str, Any],
    gaps: List[Dict[str, Any]],
    recommendations: Dict[str, Any],
    competitor_data: List[Dict[str, Any]],
    overview: str,
    headline_metric: str = HEADLINE_SCORE,
    score: Optional[int] = None,
    ranking: Optional[Dict[str, Any]] = None,
    target_keyword: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Assemble the structured report.

    Args:
        user_site: Extracted data of the analyzed page
        discovered_keywords: {primary, secondary, ...}
        patterns: Competitor benchmarks
        gaps: Identified gaps
        recommendations: {highPriority, mediumPriority, lowPriority, contentOutline}
        competitor_data: Fetched competitor pages
        overview: Executive summary text
        headline_metric: "score" or "ranking"
        score: 0-100 score (score headline)
        ranking: {rank, foundUrl} (ranking headline)
        target_keyword: Fallback primary keyword

    Returns:
        reportData dict
    """
    technical = patterns.get("technicalPatterns") or {}

    return {
        "executiveSummary": build_executive_summary(
            overview, gaps, headline_metric, score=score, ranking=ranking
        ),
        "yourMetrics": {
            "wordCount": user_site.get("wordCount") or 0,
            "h2Count": len(user_site.get("h2") or []),
            "h3Count": len(user_site.get("h3") or []),
            "internalLinks": user_site.get("internalLinks") or 0,
            "externalLinks": user_site.get("externalLinks") or 0,
            "hasSchema": bool(user_site.get("hasSchema")),
        },
        "competitorBenchmarks": {
            "avgWordCount": patterns.get("avgWordCount") or 0,
            "avgH2Count": patterns.get("avgH2Count") or 0,
            "avgH3Count": patterns.get("avgH3Count") or 0,
            "avgInternalLinks": patterns.get("avgInternalLinks") or 0,
            "avgExternalLinks": patterns.get("avgExternalLinks") or 0,
            "schemaUsage": technical.get("schemaUsage") or 0,
            "totalCompetitors": technical.get("totalCompetitors") or 0,
        },
        "gaps": gaps,
        "recommendations": {
            "highPriority": structure_recommendations(recommendations.get("highPriority"), "high", gaps),
            "mediumPriority": structure_recommendations(recommendations.get("mediumPriority"), "medium", gaps),
            "lowPriority": structure_recommendations(recommendations.get("lowPriority"), "low", gaps),
        },
        "contentOutline": parse_content_outline(recommendations.get("contentOutline")),
        "keywords": {
            "primary": discovered_keywords.get("primary") or target_keyword or "",
            "secondary": list(discovered_keywords.get("secondary") or []),
        },
        "competitors": [
            {
                "rank": comp.get("rank") or 0,
                "url": comp.get("url") or "",
                "title": comp.get("title") or comp.get("url") or "Unknown",
                "wordCount": comp.get("wordCount") or 0,
                "h2Count": len(comp.get("h2") or []),
            }
            for comp in competitor_data or []
        ],
    }


def convert_record_to_structured(
    record: Dict[str, Any],
    headline_metric: str = HEADLINE_SCORE,
) -> Optional[Dict[str, Any]]:
    """
    Derive reportData for a record that lacks it.

    Uses no LLM: the overview comes from template_overview, so the result
    is the same on every call.

    Returns:
        reportData, or None when an intermediate field is missing
    """
    if record.get("reportData"):
        return record["reportData"]

    missing = [field for field in _REQUIRED_FIELDS if record.get(field) is None]
    if missing:
        logger.debug(f"[{record.get('runId')}] Cannot convert, missing: {', '.join(missing)}")
        return None

    gaps = record["gaps"]
    ranking = record.get("googleRanking")
    score = record.get("score")
    if headline_metric != HEADLINE_RANKING and score is None:
        score = calculate_seo_score(record["userSiteData"], record["patterns"], gaps)

    overview = template_overview(
        record.get("userUrl") or record["userSiteData"].get("url", ""),
        gaps,
        headline_metric,
        score=score,
        ranking=ranking,
        keyword=record.get("targetKeyword"),
    )

    return build_structured_report(
        user_site=record["userSiteData"],
        discovered_keywords=record["discoveredKeywords"],
        patterns=record["patterns"],
        gaps=gaps,
        recommendations=record["recommendations"],
        competitor_data=record.get("competitorData") or [],
        overview=overview,
        headline_metric=headline_metric,
        score=score,
        ranking=ranking,
        target_keyword=record.get("targetKeyword"),
    )
