"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.
"""

from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Claude API (Required for analysis)
    ANTHROPIC_API_KEY: Optional[str] = None
    CLAUDE_MODEL: str = "claude-sonnet-4-20250514"

    # Hyperbrowser (content extraction + web search)
    HYPERBROWSER_API_KEY: Optional[str] = None
    HYPERBROWSER_BASE_URL: str = "https://api.hyperbrowser.ai"

    # x402 payments
    PAYMENTS_ENABLED: bool = True
    PAYMENT_FACILITATOR_URL: str = "https://x402.org/facilitator"
    PAYMENT_RECEIVING_ADDRESS: Optional[str] = None
    PAYMENT_NETWORK: str = "base"
    ANALYSIS_PRICE_USD: float = 0.50

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    DEBUG_ENDPOINTS_ENABLED: bool = False

    # Pipeline behaviour
    COMPETITOR_DISCOVERY: str = "llm"  # llm, search
    HEADLINE_METRIC: str = "score"  # score, ranking
    MAX_COMPETITORS: int = 10
    RANKING_MAX_PAGES: int = 10
    # Runs left "analyzing" by a restart: resume them, or fail them
    RESUME_INTERRUPTED_RUNS: bool = True

    # Timeouts
    API_TIMEOUT: int = 60

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
