"""
External API Configuration

Configuration and factory for the hosted-API clients used by the pipeline.
Loads credentials from environment variables.

Required environment variables:
- ANTHROPIC_API_KEY: Claude API key
- HYPERBROWSER_API_KEY: Hyperbrowser API key

Optional:
- CLAUDE_MODEL: Model to use (default: claude-sonnet-4-20250514)
- HYPERBROWSER_BASE_URL: Hyperbrowser API base URL
- HYPERBROWSER_ENABLED: Enable Hyperbrowser (default: true)
"""

import os
import logging
from typing import Optional

from src.analyzer.client import ClaudeClient
from .hyperbrowser import HyperbrowserClient

logger = logging.getLogger(__name__)


def get_env_bool(key: str, default: bool = True) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").lower()
    if val in ("false", "0", "no", "off"):
        return False
    if val in ("true", "1", "yes", "on"):
        return True
    return default


class ExternalAPIConfig:
    """Configuration for external APIs."""

    def __init__(
        self,
        anthropic_api_key: Optional[str] = None,
        hyperbrowser_api_key: Optional[str] = None,
        claude_model: Optional[str] = None,
        hyperbrowser_base_url: Optional[str] = None,
        hyperbrowser_enabled: bool = True,
    ):
        """
        Initialize external API configuration.

        Args:
            anthropic_api_key: Claude API key (or from env)
            hyperbrowser_api_key: Hyperbrowser API key (or from env)
            claude_model: Claude model to use
            hyperbrowser_base_url: Hyperbrowser base URL override
            hyperbrowser_enabled: Whether Hyperbrowser is enabled
        """
        self.anthropic_api_key = anthropic_api_key or os.environ.get("ANTHROPIC_API_KEY")
        self.hyperbrowser_api_key = hyperbrowser_api_key or os.environ.get("HYPERBROWSER_API_KEY")
        self.claude_model = claude_model or os.environ.get("CLAUDE_MODEL", ClaudeClient.DEFAULT_MODEL)
        self.hyperbrowser_base_url = (
            hyperbrowser_base_url
            or os.environ.get("HYPERBROWSER_BASE_URL", HyperbrowserClient.BASE_URL)
        )
        self.hyperbrowser_enabled = hyperbrowser_enabled and get_env_bool("HYPERBROWSER_ENABLED", True)

    @property
    def has_claude(self) -> bool:
        """Check if Claude is configured."""
        return bool(self.anthropic_api_key)

    @property
    def has_hyperbrowser(self) -> bool:
        """Check if Hyperbrowser is configured and enabled."""
        return self.hyperbrowser_enabled and bool(self.hyperbrowser_api_key)

    def log_status(self):
        """Log configuration status."""
        logger.info(
            f"External API status: "
            f"Claude={'enabled' if self.has_claude else 'disabled'}, "
            f"Hyperbrowser={'enabled' if self.has_hyperbrowser else 'disabled'}"
        )


class ExternalAPIClients:
    """
    Factory and manager for external API clients.

    Usage:
        async with ExternalAPIClients() as clients:
            page = await clients.hyperbrowser.fetch_page("https://example.com")
            keywords = await clients.claude.analyze_json(prompt, schema=...)
    """

    def __init__(self, config: Optional[ExternalAPIConfig] = None):
        """
        Initialize external API clients.

        Args:
            config: API configuration (defaults to env-based config)
        """
        self.config = config or ExternalAPIConfig()
        self._claude: Optional[ClaudeClient] = None
        self._hyperbrowser: Optional[HyperbrowserClient] = None

    @property
    def claude(self) -> Optional[ClaudeClient]:
        """Get or create Claude client."""
        if not self.config.has_claude:
            return None

        if self._claude is None:
            self._claude = ClaudeClient(
                api_key=self.config.anthropic_api_key,
                model=self.config.claude_model,
            )
            logger.info("Initialized Claude client")

        return self._claude

    @property
    def hyperbrowser(self) -> Optional[HyperbrowserClient]:
        """Get or create Hyperbrowser client."""
        if not self.config.has_hyperbrowser:
            return None

        if self._hyperbrowser is None:
            self._hyperbrowser = HyperbrowserClient(
                api_key=self.config.hyperbrowser_api_key,
                base_url=self.config.hyperbrowser_base_url,
            )
            logger.info("Initialized Hyperbrowser client")

        return self._hyperbrowser

    async def close(self):
        """Close all clients."""
        if self._hyperbrowser:
            await self._hyperbrowser.close()
            self._hyperbrowser = None

        if self._claude:
            await self._claude.async_client.close()
            self._claude = None

        logger.info("Closed external API clients")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
