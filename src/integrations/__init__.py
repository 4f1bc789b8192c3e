"""
External API Integrations

Clients for third-party APIs used by the analysis pipeline:
- Hyperbrowser: Web search and structured page extraction
- Config: Unified configuration and client management
"""

from .hyperbrowser import (
    HyperbrowserClient,
    HyperbrowserError,
    RetryConfig,
    SEO_EXTRACTION_SCHEMA,
)
from .config import (
    ExternalAPIConfig,
    ExternalAPIClients,
)

__all__ = [
    # Hyperbrowser
    "HyperbrowserClient",
    "HyperbrowserError",
    "RetryConfig",
    "SEO_EXTRACTION_SCHEMA",
    # Config
    "ExternalAPIConfig",
    "ExternalAPIClients",
]
