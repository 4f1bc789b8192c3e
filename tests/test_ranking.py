"""
Test Suite for Host Comparison, Ranking Detection and Competitor Candidates
"""

import pytest
from unittest.mock import AsyncMock

from src.integrations.hyperbrowser import HyperbrowserError
from src.pipeline.ranking import (
    detect_ranking,
    ensure_scheme,
    resolve_competitor_url,
    search_competitors,
)
from src.utils.domain_filter import (
    filter_competitor_domains,
    filter_own_domain,
    is_excluded_domain,
    normalize_host,
    same_site,
)


def results_page(*urls):
    return [{"title": f"Result {u}", "url": u, "description": ""} for u in urls]


def filler(prefix: str, count: int = 10):
    return results_page(*[f"https://{prefix}{i}.com/" for i in range(count)])


class TestNormalizeHost:
    """Tests for host normalization."""

    def test_strips_scheme_port_path_and_www(self):
        assert normalize_host("https://www.example.com:8080/path?q=1") == "example.com"
        assert normalize_host("http://example.com") == "example.com"

    def test_keeps_other_subdomains(self):
        assert normalize_host("https://shop.example.com") == "shop.example.com"
        assert not same_site("https://shop.example.com", "https://example.com")

    def test_only_one_www_is_removed(self):
        assert normalize_host("https://www.www.example.com") == "www.example.com"

    @pytest.mark.parametrize("value", ["", None, "not a url", "example.com/path"])
    def test_unparsable_urls(self, value):
        assert normalize_host(value) is None


class TestDomainFilters:
    """Tests for own-domain and platform filtering."""

    def test_filter_own_domain(self):
        candidates = [
            {"url": "http://example.com/blog"},
            {"url": "https://www.example.com"},
            {"url": "https://shop.example.com"},
            {"url": "garbage"},
            {"url": "https://rival.com"},
        ]
        kept = filter_own_domain(candidates, "https://example.com/pricing")
        assert [c["url"] for c in kept] == [
            "https://shop.example.com",
            "garbage",
            "https://rival.com",
        ]

    def test_excluded_platforms(self):
        assert is_excluded_domain("g2.com")
        assert is_excluded_domain("en.wikipedia.org")
        assert not is_excluded_domain("rival.com")
        assert not is_excluded_domain(None)

    def test_filter_competitor_domains(self):
        candidates = [
            {"url": "https://www.g2.com/categories/crm"},
            {"url": "https://rival.com"},
            {"url": "https://business.facebook.com"},
        ]
        kept = filter_competitor_domains(candidates, source="test")
        assert kept == [{"url": "https://rival.com"}]


class TestDetectRanking:
    """Tests for search ranking detection."""

    @pytest.mark.asyncio
    async def test_finds_first_match_across_pages(self):
        search = AsyncMock()
        search.search = AsyncMock(side_effect=[
            filler("a"),
            results_page(
                "https://x.com", "https://y.com",
                "https://www.example.com/pricing", "https://example.com/other",
            ),
        ])

        result = await detect_ranking(search, "crm", "https://example.com")

        assert result == {"rank": 13, "foundUrl": "https://www.example.com/pricing"}
        assert search.search.await_count == 2

    @pytest.mark.asyncio
    async def test_not_found_within_max_pages(self):
        search = AsyncMock()
        search.search = AsyncMock(side_effect=[filler("a"), filler("b")])

        result = await detect_ranking(search, "crm", "https://example.com", max_pages=2)

        assert result == {"rank": None, "foundUrl": None}
        assert search.search.await_count == 2

    @pytest.mark.asyncio
    async def test_empty_page_stops_paging(self):
        search = AsyncMock()
        search.search = AsyncMock(return_value=[])

        result = await detect_ranking(search, "crm", "https://example.com", max_pages=5)

        assert result["rank"] is None
        assert search.search.await_count == 1

    @pytest.mark.asyncio
    async def test_subdomain_is_not_a_match(self):
        search = AsyncMock()
        search.search = AsyncMock(side_effect=[results_page("https://blog.example.com"), []])

        result = await detect_ranking(search, "crm", "https://example.com")

        assert result["rank"] is None

    @pytest.mark.asyncio
    async def test_page_error_propagates(self):
        search = AsyncMock()
        search.search = AsyncMock(side_effect=HyperbrowserError("Hyperbrowser API error: 503"))

        with pytest.raises(HyperbrowserError):
            await detect_ranking(search, "crm", "https://example.com")


class TestCompetitorCandidates:
    """Tests for resolving LLM-named competitors and search candidates."""

    def test_ensure_scheme(self):
        assert ensure_scheme("acme.com") == "https://acme.com"
        assert ensure_scheme(" http://acme.com ") == "http://acme.com"

    @pytest.mark.asyncio
    async def test_known_tld_is_kept(self):
        search = AsyncMock()
        search.search = AsyncMock()

        result = await resolve_competitor_url(
            {"company": "Acme", "url": "acme.com", "description": "CRM"}, 1, search
        )

        assert result == {"rank": 1, "title": "Acme", "url": "https://acme.com", "description": "CRM"}
        search.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_tld_looks_up_official_site(self):
        search = AsyncMock()
        search.search = AsyncMock(return_value=[
            {"title": "Acme - Official", "url": "https://acme.co.uk", "description": "Official"},
        ])

        result = await resolve_competitor_url({"company": "Acme", "url": "acme"}, 2, search)

        search.search.assert_awaited_once_with("Acme official site", 1)
        assert result["url"] == "https://acme.co.uk"
        assert result["title"] == "Acme - Official"
        assert result["rank"] == 2

    @pytest.mark.asyncio
    async def test_failed_lookup_keeps_suggestion(self):
        search = AsyncMock()
        search.search = AsyncMock(side_effect=HyperbrowserError("Hyperbrowser API error: 500"))

        result = await resolve_competitor_url({"company": "Acme", "url": "acme"}, 1, search)

        assert result["url"] == "https://acme"

    @pytest.mark.asyncio
    async def test_search_competitors(self):
        search = AsyncMock()
        search.search = AsyncMock(side_effect=[filler("c", 10), filler("d", 10)])

        candidates = await search_competitors(search, "crm", limit=3)

        assert len(candidates) == 10
        assert candidates[0]["rank"] == 1
        assert candidates[0]["url"] == "https://c0.com/"
        assert search.search.await_count == 1
