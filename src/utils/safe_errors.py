"""
Error Sanitization

Maps technical errors to fixed user-facing messages so responses and
persisted failure reasons never leak connection strings, keys or stack
traces. The full error is always logged server-side.
"""

import logging
from typing import Dict

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "An error occurred. Please try again."
UNKNOWN_MESSAGE = "An unexpected error occurred. Please try again."

# Checked in order: the first matching substring wins
SAFE_ERROR_MESSAGES: Dict[str, str] = {
    # Network & Connection Errors
    "ConnectError": "Service temporarily unavailable. Please try again.",
    "Connection refused": "Service temporarily unavailable. Please try again.",
    "ConnectTimeout": "Request timed out. Please try again.",
    "ReadTimeout": "Request timed out. Please try again.",
    "Name or service not known": "Service connection failed. Please try again.",
    "Connection reset": "Connection lost. Please try again.",

    # Database Errors
    "OperationalError": "Database connection failed. Please try again.",
    "IntegrityError": "Database error occurred. Please try again.",
    "SQLAlchemyError": "Database operation failed. Please try again.",
    "psycopg2": "Database error occurred. Please try again.",
    "sqlite3": "Database error occurred. Please try again.",

    # LLM Errors
    "insufficient_quota": "AI service quota exceeded. Please contact support.",
    "RateLimitError": "Too many requests. Please try again in a moment.",
    "rate_limit": "Too many requests. Please try again in a moment.",
    "AuthenticationError": "Service configuration error. Please contact support.",
    "Invalid API key": "Service configuration error. Please contact support.",
    "not configured": "Service configuration error. Please contact support.",
    "anthropic": "AI service error. Please try again.",
    "Claude": "AI service error. Please try again.",

    # Extraction Errors
    "Hyperbrowser": "Page extraction failed. Please try again.",

    # Validation Errors
    "ValidationError": "Invalid input provided.",
    "Invalid URL": "Invalid URL provided.",

    # Payment Errors
    "insufficient funds": "Insufficient funds. Please add USDC to your wallet.",
    "Facilitator": "Payment processing error. Please try again.",
    "Payment": "Payment processing error. Please try again.",

    # Generic
    "timed out": "Request timed out. Please try again.",
    "timeout": "Request timed out. Please try again.",
}


def get_safe_error_message(error: BaseException) -> str:
    """
    Map an exception to a user-facing message.

    Matches known substrings of the message first, then the exception's
    type name (and its base classes' names).
    """
    if not isinstance(error, BaseException):
        return UNKNOWN_MESSAGE

    message = str(error)
    for pattern, safe_message in SAFE_ERROR_MESSAGES.items():
        if pattern in message:
            return safe_message

    for cls in type(error).__mro__:
        for pattern, safe_message in SAFE_ERROR_MESSAGES.items():
            if pattern in cls.__name__ or pattern in (cls.__module__ or ""):
                return safe_message

    return DEFAULT_MESSAGE


def log_and_sanitize_error(error: BaseException, context: str) -> str:
    """Log full error details server-side and return the safe message."""
    logger.error(
        f"[{context}] {type(error).__name__}: {error}",
        exc_info=(type(error), error, error.__traceback__),
    )
    return get_safe_error_message(error)
