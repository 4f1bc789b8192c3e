"""
Input Validation

Submission checks, URL sanitization and run identifier handling shared by
the API and the operator scripts.
"""

import re
import secrets
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlparse

RUN_ID_PATTERN = re.compile(r"^seo_\d+_[a-z0-9]{9}$")
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"
_HTML_TAG = re.compile(r"<[^>]*>")

URL_MIN_LENGTH = 5
URL_MAX_LENGTH = 500
KEYWORD_MIN_LENGTH = 2
KEYWORD_MAX_LENGTH = 100


class SubmissionValidationError(ValueError):
    """Raised when a submission fails validation. Message is user-facing."""


@dataclass
class Submission:
    """Validated, sanitized analysis submission."""
    url: str
    user_id: str
    target_keyword: str


# =============================================================================
# RUN IDENTIFIERS
# =============================================================================

def generate_run_id() -> str:
    """Generate a run id: seo_<epoch-ms>_<9 base36 chars>."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"seo_{int(time.time() * 1000)}_{suffix}"


def is_valid_run_id(run_id: Any) -> bool:
    """Check a run id against the generated format."""
    return isinstance(run_id, str) and bool(RUN_ID_PATTERN.match(run_id))


# =============================================================================
# URLS
# =============================================================================

def strip_html_tags(value: str) -> str:
    """Remove anything that looks like an HTML tag."""
    return _HTML_TAG.sub("", value).strip()


def normalize_url(url: str) -> str:
    """Add https:// when no protocol is present."""
    trimmed = url.strip()
    if not trimmed.startswith(("http://", "https://")):
        return f"https://{trimmed}"
    return trimmed


def validate_url(url: str) -> Optional[str]:
    """
    Validate a URL for analysis.

    Returns:
        Error message, or None when the URL is acceptable
    """
    if not url or not url.strip():
        return "URL is required"

    try:
        parsed = urlparse(url.strip())
        host = parsed.hostname
    except ValueError:
        return "Invalid URL format"

    if parsed.scheme not in ("http", "https") or not host:
        return "Invalid URL format"

    return None


# =============================================================================
# SUBMISSIONS
# =============================================================================

def validate_submission(body: Dict[str, Any]) -> Submission:
    """
    Validate and sanitize a submission body.

    Raises:
        SubmissionValidationError: With the message to return as a 400
    """
    if not isinstance(body, dict):
        raise SubmissionValidationError("Request body must be a JSON object")

    url = body.get("url")
    user_id = body.get("userId")
    keyword = body.get("targetKeyword")

    if not isinstance(url, str) or not (URL_MIN_LENGTH <= len(url) <= URL_MAX_LENGTH):
        raise SubmissionValidationError("Invalid URL")

    if not isinstance(user_id, str) or not user_id.strip():
        raise SubmissionValidationError("User ID required")

    if not isinstance(keyword, str) or not keyword:
        raise SubmissionValidationError("Target keyword is required")

    keyword = keyword.strip()
    if not (KEYWORD_MIN_LENGTH <= len(keyword) <= KEYWORD_MAX_LENGTH):
        raise SubmissionValidationError(
            f"Keyword must be {KEYWORD_MIN_LENGTH}-{KEYWORD_MAX_LENGTH} characters"
        )

    sanitized_url = strip_html_tags(url)
    if not sanitized_url:
        raise SubmissionValidationError("Invalid input after sanitization")

    if validate_url(sanitized_url):
        raise SubmissionValidationError("Invalid URL format")

    return Submission(url=sanitized_url, user_id=user_id.strip(), target_keyword=keyword)
