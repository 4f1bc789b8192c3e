"""
Recommendation Structuring

Turns free-text recommendation strings into {title, description,
actionItems} cards. When a recommendation came from a gap, the gap's
category and impact are used; otherwise a chain of text heuristics picks a
title. Best-effort: the only guarantee is a non-empty title, description
and action list.
"""

import re
from typing import Any, Dict, Iterable, List, Optional

DEFAULT_TITLE = "SEO Recommendation"
MAX_TITLE_LENGTH = 80
GAP_MATCH_PREFIX = 50

ACTION_VERBS = (
    "Add", "Incorporate", "Expand", "Consider", "Implement", "Create", "Build",
    "Develop", "Improve", "Enhance", "Optimize", "Update", "Fix", "Remove", "Replace",
)

_ACTION_PATTERN = re.compile(r"^(" + "|".join(ACTION_VERBS) + r")\s+(.+)", re.IGNORECASE | re.DOTALL)
_LEADING_VERB = re.compile(r"^(?:" + "|".join(ACTION_VERBS) + r")\s+")

# Recommendation bucket -> gap severities it was built from
PRIORITY_SEVERITIES = {
    "high": ("critical", "high"),
    "medium": ("medium",),
    "low": ("low",),
}


def _find_gap(text: str, priority: str, gaps: Iterable[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    severities = PRIORITY_SEVERITIES.get(priority, (priority,))
    prefix = text[:GAP_MATCH_PREFIX]

    for gap in gaps:
        if gap.get("severity") not in severities:
            continue
        recommendation = gap.get("recommendation") or ""
        if recommendation == text or (prefix and prefix in recommendation):
            return gap
    return None


def structure_recommendation(
    text: str,
    priority: str,
    gaps: Iterable[Dict[str, Any]] = (),
) -> Dict[str, Any]:
    """
    Structure a single recommendation.

    Args:
        text: Recommendation text
        priority: Bucket it belongs to (high, medium or low)
        gaps: Gaps the recommendations were derived from

    Returns:
        {"title": str, "description": str, "actionItems": [str]}
    """
    trimmed = text.strip()
    gap = _find_gap(trimmed, priority, gaps)

    if gap:
        title = gap.get("category") or trimmed[:60]
        description = gap.get("impact") or ""
        action_items = [gap.get("recommendation") or trimmed]
    else:
        action = _ACTION_PATTERN.match(trimmed)
        if action:
            title = f"{action.group(1)} {re.split(r'[.,]', action.group(2))[0].strip()}"
            description = trimmed
            action_items = [trimmed]
        elif ":" in trimmed:
            head, _, tail = trimmed.partition(":")
            title = head.strip()
            description = tail.strip()
            action_items = [description or trimmed]
        else:
            first_sentence = re.split(r"[.!?]", trimmed)[0]
            if len(first_sentence) < MAX_TITLE_LENGTH:
                title = first_sentence
                description = trimmed[len(first_sentence):].lstrip(".!? ").strip()
            else:
                title = trimmed[:60] + "..."
                description = trimmed
            action_items = [trimmed]

    # "Add FAQ schema" -> "FAQ schema"
    stripped = _LEADING_VERB.sub("", title, count=1)
    if stripped.strip():
        title = stripped
    title = title.strip()
    if len(title) > MAX_TITLE_LENGTH:
        title = title[:MAX_TITLE_LENGTH - 3] + "..."

    action_items = [item for item in action_items if item] or [trimmed]

    return {
        "title": title or DEFAULT_TITLE,
        "description": description or trimmed,
        "actionItems": action_items,
    }


def structure_recommendations(
    recommendations: Optional[List[str]],
    priority: str,
    gaps: Optional[List[Dict[str, Any]]] = None,
) -> List[Dict[str, Any]]:
    """Structure a recommendation bucket. Blank entries are dropped."""
    gaps = gaps or []
    return [
        structure_recommendation(text, priority, gaps)
        for text in (recommendations or [])
        if isinstance(text, str) and text.strip()
    ]


def group_recommendations(gaps: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    """
    Bucket gap recommendations by severity.

    Critical and high gaps share the high-priority bucket, critical first.
    """
    def pick(*severities: str) -> List[str]:
        return [
            gap["recommendation"]
            for severity in severities
            for gap in gaps
            if gap.get("severity") == severity and gap.get("recommendation")
        ]

    return {
        "highPriority": pick("critical", "high"),
        "mediumPriority": pick("medium"),
        "lowPriority": pick("low"),
    }
