"""
Tolerant JSON parsing for LLM output.

Model responses are untrusted text: they may be wrapped in markdown fences,
prefixed with prose, or truncated. Parsing never raises; callers get their
fallback instead.
"""

import json
import logging
import re
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def _candidates(text: str):
    """Yield progressively more aggressive JSON extractions."""
    yield text

    fence = _FENCE_PATTERN.search(text)
    if fence:
        yield fence.group(1)

    # Outermost object or array
    for opener, closer in (("{", "}"), ("[", "]")):
        start = text.find(opener)
        end = text.rfind(closer)
        if start != -1 and end > start:
            yield text[start:end + 1]


def safe_parse(text: Any, fallback: T) -> T:
    """
    Parse JSON with a fallback value.

    Args:
        text: Raw response text
        fallback: Returned when nothing parses

    Returns:
        Parsed JSON or the fallback
    """
    if not isinstance(text, str) or not text.strip():
        return fallback

    for candidate in _candidates(text.strip()):
        try:
            return json.loads(candidate)
        except (json.JSONDecodeError, ValueError):
            continue

    logger.error(f"JSON parse failed, using fallback. First 200 chars: {text[:200]!r}")
    return fallback
