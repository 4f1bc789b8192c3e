"""
Pytest Configuration and Shared Fixtures

Provides a throwaway SQLite database, default settings and mock data
for all test modules.
"""

import os
import tempfile

# Point the session layer at a temporary SQLite file before anything
# imports it, and keep the tests away from any real services.
_DB_DIR = tempfile.mkdtemp(prefix="seo-gap-tests-")
os.environ.pop("DATABASE_URL", None)
os.environ.pop("POSTGRES_URL", None)
os.environ["SQLITE_PATH"] = os.path.join(_DB_DIR, "test_reports.db")
os.environ["PAYMENTS_ENABLED"] = "false"
os.environ["DEBUG_ENDPOINTS_ENABLED"] = "false"

import pytest
from typing import Any, Dict, List
from unittest.mock import AsyncMock, MagicMock

from src.database import clear_reports, init_db, reset_engine
from src.utils.config import Settings, get_settings


# ============================================================================
# Database
# ============================================================================

@pytest.fixture(autouse=True)
def clean_db():
    """Fresh tables for every test."""
    reset_engine()
    init_db()
    clear_reports()
    yield
    reset_engine()


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop cached settings so monkeypatched env vars apply."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        HEADLINE_METRIC="score",
        COMPETITOR_DISCOVERY="llm",
        MAX_COMPETITORS=10,
        RANKING_MAX_PAGES=2,
    )


# ============================================================================
# Mock Data Fixtures
# ============================================================================

@pytest.fixture
def user_site() -> Dict[str, Any]:
    """Extracted data of a thin user page."""
    return {
        "url": "https://example.com",
        "title": "Example CRM - Simple CRM for small teams",
        "metaDescription": "Manage your contacts and deals.",
        "h1": ["Simple CRM for small teams"],
        "h2": ["Features", "Pricing", "Integrations"],
        "h3": ["Contacts", "Deals"],
        "wordCount": 800,
        "internalLinks": 12,
        "externalLinks": 3,
        "images": 4,
        "hasSchema": False,
        "hasOpenGraph": True,
        "hasCanonical": True,
        "content": "Example CRM helps small teams manage contacts and deals.",
    }


@pytest.fixture
def competitor_pages() -> List[Dict[str, Any]]:
    """Extracted pages of three competitors."""
    return [
        {
            "title": "Acme CRM",
            "h1": ["CRM software"],
            "h2": ["Why Acme", "Pricing", "Features", "Reviews"],
            "h3": ["A", "B", "C"],
            "wordCount": 2000,
            "internalLinks": 40,
            "externalLinks": 5,
            "hasSchema": True,
        },
        {
            "title": "Beta CRM",
            "h1": ["Beta CRM"],
            "h2": ["Overview", "Pricing", "FAQ"],
            "h3": ["A"],
            "wordCount": 1500,
            "internalLinks": 20,
            "externalLinks": 2,
            "hasSchema": False,
        },
        {
            "title": "Gamma CRM",
            "h1": ["Gamma"],
            "h2": ["Intro", "Pricing"],
            "h3": [],
            "wordCount": 1000,
            "internalLinks": 15,
            "externalLinks": 1,
            "hasSchema": True,
        },
    ]


@pytest.fixture
def sample_gaps() -> List[Dict[str, Any]]:
    return [
        {
            "category": "Content Depth",
            "severity": "critical",
            "finding": "Your page has 800 words vs 1500 average",
            "impact": "Thin content limits rankings for competitive terms",
            "recommendation": "Add 700 words covering pricing, integrations and onboarding",
            "estimatedEffort": "Medium (1-4 weeks)",
        },
        {
            "category": "Technical SEO",
            "severity": "high",
            "finding": "No schema markup while 2/3 competitors use it",
            "impact": "Missing rich results",
            "recommendation": "Implement Product and FAQ schema markup",
        },
        {
            "category": "Content Structure",
            "severity": "medium",
            "finding": "3 H2s vs 3 average",
            "impact": "Harder to scan",
            "recommendation": "Break long sections into more H2 sections",
        },
        {
            "category": "On-Page Optimization",
            "severity": "low",
            "finding": "Meta description is short",
            "impact": "Lower click-through rate",
            "recommendation": "Expand the meta description to 150 characters",
        },
    ]


@pytest.fixture
def mock_claude():
    """ClaudeClient stand-in with async JSON and text methods."""
    claude = MagicMock()
    claude.analyze_json = AsyncMock()
    claude.analyze_with_retry = AsyncMock()
    claude.get_usage_summary = MagicMock(return_value={})
    return claude


@pytest.fixture
def mock_hyperbrowser():
    """HyperbrowserClient stand-in."""
    hyperbrowser = MagicMock()
    hyperbrowser.search = AsyncMock(return_value=[])
    hyperbrowser.fetch_page = AsyncMock()
    hyperbrowser.fetch_multiple = AsyncMock(return_value=[])
    return hyperbrowser
