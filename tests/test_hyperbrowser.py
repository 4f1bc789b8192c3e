"""
Test Suite for the Hyperbrowser Client

Drives HyperbrowserClient over httpx.MockTransport, so requests and
retries are checked without the network.
"""

import json

import httpx
import pytest

from src.integrations.hyperbrowser import (
    SEO_EXTRACTION_SCHEMA,
    HyperbrowserClient,
    HyperbrowserError,
    RetryConfig,
)


def client_with(handler, retry_config=None) -> HyperbrowserClient:
    client = HyperbrowserClient(api_key="hb-key", retry_config=retry_config)
    client._client = httpx.AsyncClient(
        base_url=HyperbrowserClient.BASE_URL,
        headers=client._client.headers,
        transport=httpx.MockTransport(handler),
    )
    return client


class TestRequests:
    """Tests for what the client sends."""

    @pytest.mark.asyncio
    async def test_search_uses_keyed_endpoint(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["key"] = request.headers.get("x-api-key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"status": "completed", "data": {"results": [
                {"title": "Acme", "url": "https://acme.com", "description": "CRM"},
                {"title": "No description", "url": "https://beta.io"},
                "junk",
            ]}})

        client = client_with(handler)
        results = await client.search("crm software", page=2)
        await client.close()

        assert seen == {"path": "/api/web/search", "key": "hb-key", "body": {"query": "crm software", "page": 2}}
        assert results == [
            {"title": "Acme", "url": "https://acme.com", "description": "CRM"},
            {"title": "No description", "url": "https://beta.io", "description": ""},
        ]

    @pytest.mark.asyncio
    async def test_fetch_page_sends_schema(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"status": "completed", "data": {"json": {"title": "Example"}}})

        client = client_with(handler)
        data = await client.fetch_page("https://example.com")
        await client.close()

        assert data == {"title": "Example"}
        assert seen["path"] == "/api/web/fetch"
        assert seen["body"]["url"] == "https://example.com"
        assert seen["body"]["outputs"]["formats"] == [{"type": "json", "schema": SEO_EXTRACTION_SCHEMA}]
        assert seen["body"]["navigation"] == {"waitUntil": "networkidle", "waitFor": 2000}

    @pytest.mark.asyncio
    async def test_fetch_without_structured_data(self):
        client = client_with(lambda request: httpx.Response(200, json={"data": {"markdown": "# Hi"}}))

        with pytest.raises(HyperbrowserError, match="no structured data"):
            await client.fetch_page("https://example.com")
        await client.close()


class TestRetries:
    """Tests for retry behavior."""

    @pytest.mark.asyncio
    async def test_server_errors_are_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(503, json={"error": "busy"})
            return httpx.Response(200, json={"data": {"results": []}})

        client = client_with(handler, RetryConfig(max_retries=2, initial_delay=0))
        assert await client.search("crm") == []
        await client.close()

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_client_errors_are_not_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(401, json={"error": "Invalid API key"})

        client = client_with(handler, RetryConfig(max_retries=3, initial_delay=0))
        with pytest.raises(HyperbrowserError, match="Invalid API key") as exc_info:
            await client.search("crm")
        await client.close()

        assert exc_info.value.status_code == 401
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_fetch_multiple_keeps_order_and_drops_failures(self):
        def handler(request: httpx.Request) -> httpx.Response:
            url = json.loads(request.content)["url"]
            if "broken" in url:
                return httpx.Response(400, json={"error": "Navigation failed"})
            return httpx.Response(200, json={"data": {"json": {"title": url}}})

        client = client_with(handler, RetryConfig(max_retries=0))
        pages = await client.fetch_multiple(["https://a.com", "https://broken.com", "https://c.com"])
        await client.close()

        assert pages == [{"title": "https://a.com"}, None, {"title": "https://c.com"}]

    @pytest.mark.asyncio
    async def test_closed_client(self):
        client = client_with(lambda request: httpx.Response(200, json={}))
        await client.close()

        with pytest.raises(HyperbrowserError, match="closed"):
            await client.search("crm")
