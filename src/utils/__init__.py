"""Utility modules for the SEO Gap Analyzer."""

from .config import Settings, get_settings
from .domain_filter import (
    normalize_host,
    same_site,
    filter_own_domain,
    filter_competitor_domains,
    is_excluded_domain,
)
from .safe_errors import get_safe_error_message, log_and_sanitize_error
from .safe_json import safe_parse
from .validation import (
    Submission,
    SubmissionValidationError,
    generate_run_id,
    is_valid_run_id,
    normalize_url,
    strip_html_tags,
    validate_submission,
    validate_url,
)

__all__ = [
    "Settings",
    "get_settings",
    # Domains
    "normalize_host",
    "same_site",
    "filter_own_domain",
    "filter_competitor_domains",
    "is_excluded_domain",
    # Errors & parsing
    "get_safe_error_message",
    "log_and_sanitize_error",
    "safe_parse",
    # Validation
    "Submission",
    "SubmissionValidationError",
    "generate_run_id",
    "is_valid_run_id",
    "normalize_url",
    "strip_html_tags",
    "validate_submission",
    "validate_url",
]
