"""
Run progress derived from which stage outputs a record already holds.

A payload field is present only once its stage completed, so progress is a
weighted sum over present fields. Weights add up to 100.
"""

from typing import Any, Dict

PROGRESS_WEIGHTS: Dict[str, int] = {
    "userSiteData": 15,
    "discoveredKeywords": 15,
    "competitorData": 30,
    "patterns": 10,
    "gaps": 10,
    "recommendations": 10,
    "reportData": 10,
}


def completed_steps(record: Dict[str, Any]) -> Dict[str, bool]:
    """One flag per milestone."""
    return {field: record.get(field) is not None for field in PROGRESS_WEIGHTS}


def compute_progress(record: Dict[str, Any]) -> int:
    """0-100 progress; a completed run is always 100."""
    if record.get("status") == "completed":
        return 100
    return sum(
        weight for field, weight in PROGRESS_WEIGHTS.items()
        if record.get(field) is not None
    )


def status_payload(record: Dict[str, Any]) -> Dict[str, Any]:
    """Body of the status endpoint."""
    payload = {
        "status": record.get("status"),
        "progress": compute_progress(record),
        "completedSteps": completed_steps(record),
    }
    if record.get("errorMessage"):
        payload["error"] = record["errorMessage"]
    return payload
