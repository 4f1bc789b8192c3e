"""
Test Suite for HTML Report Rendering
"""

import pytest

from src.pipeline.progress import completed_steps, compute_progress
from src.reporter import HEADLINE_RANKING, ReportBuilder, build_structured_report, group_recommendations
from src.reporter.report import POLL_INTERVAL_MS, STEP_LABELS


@pytest.fixture
def builder():
    return ReportBuilder()


@pytest.fixture
def record():
    return {
        "runId": "seo_1700000000000_abcdefghi",
        "userUrl": "https://example.com",
        "targetKeyword": "crm <software>",
        "status": "completed",
        "createdAt": "2026-01-05T10:00:00.000Z",
    }


@pytest.fixture
def report_data(user_site, sample_gaps):
    return build_structured_report(
        user_site=user_site,
        discovered_keywords={"primary": "crm software", "secondary": ["sales crm"]},
        patterns={"avgWordCount": 1500, "avgH2Count": 3, "technicalPatterns": {"schemaUsage": 2, "totalCompetitors": 3}},
        gaps=sample_gaps,
        recommendations={**group_recommendations(sample_gaps), "contentOutline": "# CRM Guide"},
        competitor_data=[{"rank": 1, "url": "https://acme.com", "title": "Acme", "wordCount": 2000, "h2": ["a"]}],
        overview="Example trails on depth.",
        score=30,
    )


class TestReportPage:
    """Tests for the finished report."""

    def test_score_headline(self, builder, record, report_data):
        page = builder.build(record, report_data)

        assert page.startswith("<!DOCTYPE html>")
        assert 'class="value band-low">30' in page
        assert "Example trails on depth." in page
        assert "Gap Analysis (4)" in page
        assert "2/3 competitors" in page
        assert "Competitors Analyzed (1)" in page
        assert "Recommended H1: <strong>CRM Guide</strong>" in page

    def test_gaps_are_ordered_by_severity(self, builder, record, report_data):
        report_data["gaps"] = list(reversed(report_data["gaps"]))
        page = builder.build(record, report_data)

        assert page.index("Content Depth") < page.index("On-Page Optimization")

    def test_ranking_headline(self, builder, record, report_data):
        report_data["executiveSummary"] = {
            "googleRanking": 7,
            "googleRankingUrl": "https://example.com/crm",
            "overview": "",
        }
        page = builder.build(record, report_data)

        assert "#7" in page
        assert "https://example.com/crm" in page
        assert "/100" not in page

    def test_unranked_headline(self, builder, record, user_site):
        data = build_structured_report(
            user_site=user_site, discovered_keywords={}, patterns={}, gaps=[],
            recommendations={}, competitor_data=[], overview="",
            headline_metric=HEADLINE_RANKING, ranking={"rank": None, "foundUrl": None},
        )
        page = builder.build(record, data)

        assert "Not ranking in the top 100 results" in page
        assert "No significant gaps were found." in page

    def test_user_text_is_escaped(self, builder, record, report_data):
        report_data["gaps"][0]["finding"] = "<script>alert(1)</script>"
        page = builder.build(record, report_data)

        assert "<script>alert(1)</script>" not in page
        assert "&lt;script&gt;" in page
        assert "crm &lt;software&gt;" in page


class TestStatusPage:
    """Tests for the in-progress and failed pages."""

    def test_in_progress(self, builder, record):
        record["status"] = "analyzing"
        record["userSiteData"] = {}

        page = builder.build_status_page(record, compute_progress(record), completed_steps(record))

        assert "Analysis in progress" in page
        assert '<span id="progress-value">15</span>% complete' in page
        assert f"setTimeout(poll, {POLL_INTERVAL_MS})" in page
        assert '"seo_1700000000000_abcdefghi"' in page
        for label in STEP_LABELS.values():
            assert label in page
        assert page.count('class="done"') == 1

    def test_failed(self, builder, record):
        record["status"] = "failed"
        record["errorMessage"] = "Page extraction failed. <Please> try again."

        page = builder.build_status_page(record, 0, completed_steps(record))

        assert "Analysis failed" in page
        assert "Page extraction failed. &lt;Please&gt; try again." in page
        assert "setTimeout" not in page
