"""
Test Suite for the Analysis Pipeline

Runs the orchestrator end to end against mocked Claude and Hyperbrowser
clients and the temporary database.
"""

import threading
from unittest.mock import patch

import pytest

from src.analyzer import prompts
from src.analyzer.client import AnalysisResponse, TokenUsage
from src.database import create_report, get_report, update_report
from src.integrations.hyperbrowser import HyperbrowserError
from src.pipeline import SEOAnalysisPipeline
from src.pipeline.analysis import (
    build_competitor_entries,
    compute_patterns,
    competitor_summary,
    normalize_gaps,
    normalize_page,
)
from src.utils.config import Settings

RUN_ID = "seo_1700000000000_abcdefghi"
URL = "https://example.com"
KEYWORD = "crm software"

OUTLINE = """## Recommended H1
**CRM Software for Small Teams**

## H2 Sections
### 1. What Is CRM Software (Estimated Word Count: 400)
### 2. Pricing (Estimated Word Count: 300)
"""


def text_response(content: str, success: bool = True, error: str = None) -> AnalysisResponse:
    return AnalysisResponse(
        content=content,
        usage=TokenUsage(),
        model="claude-sonnet-4-20250514",
        stop_reason="end_turn" if success else "error",
        success=success,
        error=error,
    )


def claude_answers(gaps, competitors=None, topics=None):
    """analyze_json side effect dispatching on the requested schema."""
    answers = {
        id(prompts.KEYWORDS_SCHEMA): {
            "primary": "crm software",
            "secondary": ["sales crm", "contact management"],
            "intent": "commercial",
            "reasoning": "Product page for a CRM",
        },
        id(prompts.COMPETITORS_SCHEMA): {"competitors": competitors or []},
        id(prompts.TOPICS_SCHEMA): {"commonTopics": topics or ["pricing", "integrations"]},
        id(prompts.GAPS_SCHEMA): {"gaps": gaps},
    }

    async def analyze_json(prompt, system=None, schema=None, fallback=None, **kwargs):
        return answers[id(schema)]

    return analyze_json


def requested_schemas(mock_claude):
    return [c.kwargs["schema"] for c in mock_claude.analyze_json.await_args_list]


# ============================================================================
# Pure helpers
# ============================================================================

class TestNormalizePage:
    """Tests for extraction normalization."""

    def test_missing_fields_get_defaults(self):
        page = normalize_page({"title": "Acme", "wordCount": 1200.0, "h2": "Only one"}, "https://acme.com")

        assert page["url"] == "https://acme.com"
        assert page["wordCount"] == 1200
        assert page["h2"] == ["Only one"]
        assert page["h1"] == []
        assert page["hasSchema"] is False
        assert page["content"] == ""

    def test_none(self):
        page = normalize_page(None)
        assert page["wordCount"] == 0
        assert page["internalLinks"] == 0


class TestBuildCompetitorEntries:
    """Tests for merging candidates with fetched pages."""

    def test_failed_and_empty_pages_are_dropped(self, competitor_pages):
        candidates = [
            {"rank": 3, "title": "Acme", "url": "https://acme.com", "description": "a"},
            {"rank": 1, "title": "Beta", "url": "https://beta.io", "description": "b"},
            {"rank": 2, "title": "Gamma", "url": "https://gamma.com", "description": "c"},
            {"rank": 4, "title": "Delta", "url": "https://delta.com", "description": "d"},
        ]
        fetched = [competitor_pages[0], {"title": "", "wordCount": 900}, None, {"wordCount": 0}]

        entries = build_competitor_entries(candidates, fetched)

        assert [e["url"] for e in entries] == ["https://beta.io", "https://acme.com"]
        assert entries[0]["rank"] == 1
        assert entries[0]["title"] == "Beta"
        assert entries[1]["title"] == "Acme CRM"
        assert entries[1]["description"] == "a"


class TestComputePatterns:
    """Tests for competitor benchmarks."""

    def test_averages(self, competitor_pages):
        patterns = compute_patterns(competitor_pages)

        assert patterns["avgWordCount"] == 1500
        assert patterns["avgH2Count"] == 3
        assert patterns["avgInternalLinks"] == 25
        assert patterns["technicalPatterns"] == {"schemaUsage": 2, "totalCompetitors": 3}

    def test_ties_round_half_up(self):
        patterns = compute_patterns([
            {"wordCount": 1000, "h2": ["a", "b"]},
            {"wordCount": 1001, "h2": ["a", "b", "c"]},
        ])

        assert patterns["avgWordCount"] == 1001
        assert patterns["avgH2Count"] == 3

    def test_empty_set_is_all_zeros(self):
        assert compute_patterns([]) == {
            "avgWordCount": 0,
            "avgH2Count": 0,
            "avgH3Count": 0,
            "avgInternalLinks": 0,
            "avgExternalLinks": 0,
            "commonTopics": [],
            "technicalPatterns": {"schemaUsage": 0, "totalCompetitors": 0},
        }

    def test_competitor_summary_limits_to_top_five(self, competitor_pages):
        pages = [dict(p, rank=i) for i, p in enumerate(competitor_pages * 3, start=1)]
        summary = competitor_summary(pages)
        assert summary.count('"wordCount"') == 5


class TestNormalizeGaps:
    """Tests for cleaning the LLM gap list."""

    def test_cleans_entries(self):
        gaps = normalize_gaps({"gaps": [
            {"category": "Links", "severity": "HIGH", "finding": "f", "impact": "i", "recommendation": "Add links"},
            {"severity": "urgent", "recommendation": "Fix titles"},
            {"severity": "low", "recommendation": "  "},
            "not a gap",
        ]})

        assert len(gaps) == 2
        assert gaps[0]["severity"] == "high"
        assert "estimatedEffort" not in gaps[0]
        assert gaps[1]["severity"] == "medium"
        assert gaps[1]["category"] == "General"

    def test_accepts_plain_list(self):
        assert len(normalize_gaps([{"severity": "low", "recommendation": "x", "estimatedEffort": "Low"}])) == 1

    @pytest.mark.parametrize("raw", [None, "text", {"gaps": "none"}, {}])
    def test_unusable_input(self, raw):
        assert normalize_gaps(raw) == []


# ============================================================================
# Orchestrator
# ============================================================================

@pytest.fixture
def report():
    return create_report(RUN_ID, "user-1", URL, KEYWORD)


@pytest.fixture
def named_competitors():
    return [
        {"company": "Acme", "url": "acme.com", "description": "Enterprise CRM"},
        {"company": "Example", "url": "https://www.example.com"},
        {"company": "G2", "url": "g2.com"},
        {"company": "Beta", "url": "beta.io"},
        {"company": "Gamma", "url": "gamma.com"},
        {"company": "Acme again", "url": "https://acme.com/pricing"},
    ]


@pytest.fixture
def wired_clients(mock_claude, mock_hyperbrowser, user_site, competitor_pages, sample_gaps, named_competitors):
    """Mocks answering a full successful run."""
    mock_hyperbrowser.fetch_page.return_value = user_site
    mock_hyperbrowser.search.side_effect = [[
        {"title": "A", "url": "https://a.com", "description": ""},
        {"title": "B", "url": "https://b.com", "description": ""},
        {"title": "C", "url": "https://c.com", "description": ""},
        {"title": "Example", "url": "https://www.example.com/crm", "description": ""},
    ]]
    mock_hyperbrowser.fetch_multiple.return_value = [
        competitor_pages[0],
        competitor_pages[1],
        {"title": "Gamma", "wordCount": 0},
    ]
    mock_claude.analyze_json.side_effect = claude_answers(sample_gaps, competitors=named_competitors)
    mock_claude.analyze_with_retry.side_effect = [
        text_response(OUTLINE),
        text_response("Example CRM trails its competitors on depth and structure."),
    ]
    return mock_claude, mock_hyperbrowser


class TestPipelineRun:
    """Tests for a full run."""

    @pytest.mark.asyncio
    async def test_successful_run(self, report, wired_clients, settings):
        claude, hyperbrowser = wired_clients

        record = await SEOAnalysisPipeline(claude, hyperbrowser, settings).run(RUN_ID, URL, KEYWORD)

        assert record["status"] == "completed"
        assert "errorMessage" not in record
        assert record["userSiteData"]["wordCount"] == 800
        assert record["discoveredKeywords"]["primary"] == "crm software"
        assert record["googleRanking"] == {"rank": 4, "foundUrl": "https://www.example.com/crm"}

        # own domain, g2 and the duplicate host are gone; gamma had no content
        fetched_urls = hyperbrowser.fetch_multiple.await_args.args[0]
        assert fetched_urls == ["https://acme.com", "https://beta.io", "https://gamma.com"]
        assert [c["url"] for c in record["competitorData"]] == ["https://acme.com", "https://beta.io"]

        assert record["patterns"]["avgWordCount"] == 1750
        assert record["patterns"]["commonTopics"] == ["pricing", "integrations"]
        assert len(record["gaps"]) == 4
        assert record["recommendations"]["contentOutline"] == OUTLINE.strip()
        assert len(record["recommendations"]["highPriority"]) == 2

        # 50 - 5 (words) - 5 (h2) + 10 (links) - 35 (gaps)
        assert record["score"] == 15

        summary = record["reportData"]["executiveSummary"]
        assert summary["score"] == 15
        assert "googleRanking" not in summary
        assert summary["overview"] == "Example CRM trails its competitors on depth and structure."
        assert record["reportData"]["contentOutline"]["recommendedH1"] == "CRM Software for Small Teams"

        assert requested_schemas(claude) == [
            prompts.KEYWORDS_SCHEMA,
            prompts.COMPETITORS_SCHEMA,
            prompts.TOPICS_SCHEMA,
            prompts.GAPS_SCHEMA,
        ]

    @pytest.mark.asyncio
    async def test_store_writes_leave_the_event_loop(self, report, wired_clients, settings):
        claude, hyperbrowser = wired_clients
        loop_thread = threading.get_ident()
        writer_threads = []

        def recording_update(run_id, **fields):
            writer_threads.append(threading.get_ident())
            return update_report(run_id, **fields)

        with patch("src.pipeline.orchestrator.update_report", side_effect=recording_update):
            record = await SEOAnalysisPipeline(claude, hyperbrowser, settings).run(RUN_ID, URL, KEYWORD)

        assert record["status"] == "completed"
        # one checkpoint per stage, score included
        assert len(writer_threads) == 9
        assert loop_thread not in writer_threads

    @pytest.mark.asyncio
    async def test_ranking_headline_has_no_score(self, report, wired_clients):
        claude, hyperbrowser = wired_clients
        settings = Settings(HEADLINE_METRIC="ranking", RANKING_MAX_PAGES=2)

        record = await SEOAnalysisPipeline(claude, hyperbrowser, settings).run(RUN_ID, URL, KEYWORD)

        assert record["status"] == "completed"
        assert "score" not in record
        summary = record["reportData"]["executiveSummary"]
        assert "score" not in summary
        assert summary["googleRanking"] == 4
        assert summary["googleRankingUrl"] == "https://www.example.com/crm"

    @pytest.mark.asyncio
    async def test_summary_falls_back_to_template(self, report, wired_clients, settings):
        claude, hyperbrowser = wired_clients
        claude.analyze_with_retry.side_effect = [
            text_response(OUTLINE),
            text_response("", success=False, error="overloaded"),
        ]

        record = await SEOAnalysisPipeline(claude, hyperbrowser, settings).run(RUN_ID, URL, KEYWORD)

        assert record["status"] == "completed"
        overview = record["reportData"]["executiveSummary"]["overview"]
        assert overview.startswith("This SEO analysis reveals a score of 15/100 for https://example.com.")

    @pytest.mark.asyncio
    async def test_ranking_failure_is_not_found(self, report, wired_clients, settings):
        claude, hyperbrowser = wired_clients
        hyperbrowser.search.side_effect = HyperbrowserError("Hyperbrowser API error: 503", status_code=503)

        record = await SEOAnalysisPipeline(claude, hyperbrowser, settings).run(RUN_ID, URL, KEYWORD)

        assert record["status"] == "completed"
        assert record["googleRanking"] == {"rank": None, "foundUrl": None}

    @pytest.mark.asyncio
    async def test_extraction_failure_fails_run(self, report, wired_clients, settings):
        claude, hyperbrowser = wired_clients
        hyperbrowser.fetch_page.side_effect = HyperbrowserError(
            "Hyperbrowser API error: 500 internal", status_code=500
        )

        record = await SEOAnalysisPipeline(claude, hyperbrowser, settings).run(RUN_ID, URL, KEYWORD)

        assert record["status"] == "failed"
        assert record["errorMessage"] == "Page extraction failed. Please try again."
        assert "userSiteData" not in record
        claude.analyze_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_keeps_completed_stages(self, report, wired_clients, settings):
        claude, hyperbrowser = wired_clients
        claude.analyze_with_retry.side_effect = [text_response("", success=False, error="overloaded")]

        record = await SEOAnalysisPipeline(claude, hyperbrowser, settings).run(RUN_ID, URL, KEYWORD)

        assert record["status"] == "failed"
        assert "gaps" in record
        assert "recommendations" not in record
        assert "reportData" not in record

    @pytest.mark.asyncio
    async def test_missing_client_is_configuration_error(self, report, mock_hyperbrowser, settings):
        record = await SEOAnalysisPipeline(None, mock_hyperbrowser, settings).run(RUN_ID, URL, KEYWORD)

        assert record["status"] == "failed"
        assert record["errorMessage"] == "Service configuration error. Please contact support."
        mock_hyperbrowser.fetch_page.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_competitors(self, report, wired_clients, settings, sample_gaps):
        claude, hyperbrowser = wired_clients
        claude.analyze_json.side_effect = claude_answers(sample_gaps, competitors=[])

        record = await SEOAnalysisPipeline(claude, hyperbrowser, settings).run(RUN_ID, URL, KEYWORD)

        assert record["status"] == "completed"
        assert record["competitorData"] == []
        assert record["patterns"]["avgWordCount"] == 0
        hyperbrowser.fetch_multiple.assert_not_awaited()
        assert prompts.TOPICS_SCHEMA not in requested_schemas(claude)

    @pytest.mark.asyncio
    async def test_search_discovery(self, report, wired_clients, settings):
        claude, hyperbrowser = wired_clients
        settings.COMPETITOR_DISCOVERY = "search"
        settings.MAX_COMPETITORS = 2
        hyperbrowser.search.side_effect = [
            [{"title": "Example", "url": "https://example.com/", "description": ""}],
            [
                {"title": "Example", "url": "https://example.com/", "description": ""},
                {"title": "Capterra", "url": "https://www.capterra.com/crm", "description": ""},
                {"title": "Acme", "url": "https://acme.com/crm", "description": ""},
                {"title": "Beta", "url": "https://beta.io/", "description": ""},
                {"title": "Gamma", "url": "https://gamma.com/", "description": ""},
            ],
            [],
        ]

        record = await SEOAnalysisPipeline(claude, hyperbrowser, settings).run(RUN_ID, URL, KEYWORD)

        assert record["googleRanking"]["rank"] == 1
        fetched_urls = hyperbrowser.fetch_multiple.await_args.args[0]
        assert fetched_urls == ["https://acme.com/crm", "https://beta.io/"]
        assert prompts.COMPETITORS_SCHEMA not in requested_schemas(claude)


class TestPipelineResume:
    """Tests for resuming checkpointed runs."""

    @pytest.mark.asyncio
    async def test_resume_skips_stored_stages(self, report, wired_clients, settings, user_site):
        claude, hyperbrowser = wired_clients
        update_report(
            RUN_ID,
            userSiteData=user_site,
            discoveredKeywords={"primary": "crm", "secondary": [], "intent": "", "reasoning": ""},
            googleRanking={"rank": None, "foundUrl": None},
            competitorData=[],
        )

        record = await SEOAnalysisPipeline(claude, hyperbrowser, settings).resume(RUN_ID)

        assert record["status"] == "completed"
        hyperbrowser.fetch_page.assert_not_awaited()
        hyperbrowser.search.assert_not_awaited()
        assert requested_schemas(claude) == [prompts.GAPS_SCHEMA]
        assert record["patterns"]["technicalPatterns"]["totalCompetitors"] == 0
        assert record["reportData"]["keywords"]["primary"] == "crm"

    @pytest.mark.asyncio
    async def test_resume_terminal_run_is_a_no_op(self, report, mock_claude, mock_hyperbrowser, settings):
        update_report(RUN_ID, status="failed", errorMessage="Request timed out. Please try again.")

        record = await SEOAnalysisPipeline(mock_claude, mock_hyperbrowser, settings).resume(RUN_ID)

        assert record["status"] == "failed"
        mock_hyperbrowser.fetch_page.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_resume_missing_run(self, mock_claude, mock_hyperbrowser, settings):
        assert await SEOAnalysisPipeline(mock_claude, mock_hyperbrowser, settings).resume("seo_1_zzzzzzzzz") is None
        assert get_report("seo_1_zzzzzzzzz") is None
