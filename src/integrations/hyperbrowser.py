"""
Hyperbrowser API Client

Web search and structured page extraction for SEO analysis.

Hyperbrowser handles:
- JavaScript rendering (waits for network idle plus a lazy-load delay)
- Anti-bot bypass (stealth mode)
- Schema-constrained JSON extraction

API: https://api.hyperbrowser.ai (authenticated with the x-api-key header)
Endpoints:
- POST /api/web/search  {query, page} -> data.results[{title, url, description}]
- POST /api/web/fetch   {url, outputs, stealth, navigation} -> data.json
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


# JSON schema sent with every page fetch
SEO_EXTRACTION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {
            "type": "string",
            "description": "The page title (from <title> tag or meta og:title)",
        },
        "metaDescription": {
            "type": "string",
            "description": "Meta description content",
        },
        "h1": {
            "type": "array",
            "items": {"type": "string"},
            "description": "All H1 headings on the page",
        },
        "h2": {
            "type": "array",
            "items": {"type": "string"},
            "description": "All H2 headings on the page",
        },
        "h3": {
            "type": "array",
            "items": {"type": "string"},
            "description": "All H3 headings on the page",
        },
        "wordCount": {
            "type": "number",
            "description": "Total word count of the main content",
        },
        "internalLinks": {
            "type": "number",
            "description": "Count of internal links on the page",
        },
        "externalLinks": {
            "type": "number",
            "description": "Count of external links on the page",
        },
        "images": {
            "type": "number",
            "description": "Total number of images on the page",
        },
        "hasSchema": {
            "type": "boolean",
            "description": "Whether the page has structured data (schema.org markup)",
        },
        "hasOpenGraph": {
            "type": "boolean",
            "description": "Whether the page has Open Graph meta tags",
        },
        "hasCanonical": {
            "type": "boolean",
            "description": "Whether the page has a canonical link tag",
        },
        "content": {
            "type": "string",
            "description": "Main text content of the page (cleaned, without HTML tags)",
        },
    },
    "required": ["title", "h1", "h2", "wordCount"],
    "additionalProperties": False,
}


class HyperbrowserError(Exception):
    """Custom exception for Hyperbrowser API errors."""

    def __init__(self, message: str, status_code: int = None, response: dict = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 2
    initial_delay: float = 1.0
    max_delay: float = 10.0
    exponential_base: float = 2.0
    retryable_status_codes: tuple = (429, 500, 502, 503, 504)


class HyperbrowserClient:
    """
    Async client for the Hyperbrowser web API.

    Usage:
        client = HyperbrowserClient(api_key="your_api_key")

        results = await client.search("crm software", page=1)
        # [{"title": "...", "url": "...", "description": "..."}, ...]

        data = await client.fetch_page("https://example.com")
        # {"title": "...", "h1": [...], "h2": [...], "wordCount": 1840, ...}

        await client.close()
    """

    BASE_URL = "https://api.hyperbrowser.ai"
    SEARCH_ENDPOINT = "/api/web/search"
    FETCH_ENDPOINT = "/api/web/fetch"

    # Navigation settings for dynamic pages
    WAIT_UNTIL = "networkidle"
    WAIT_FOR_MS = 2000

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = 90.0,
    ):
        """
        Initialize Hyperbrowser client.

        Args:
            api_key: Hyperbrowser API key
            base_url: API base URL override
            retry_config: Retry configuration (optional)
            timeout: Request timeout in seconds (page rendering is slow)
        """
        self.api_key = api_key
        self.retry_config = retry_config or RetryConfig()

        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["x-api-key"] = api_key

        self._client = httpx.AsyncClient(
            base_url=(base_url or self.BASE_URL).rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(timeout),
        )
        self._closed = False

    async def search(self, query: str, page: int = 1) -> List[Dict[str, str]]:
        """
        Search the web.

        Args:
            query: Search query
            page: 1-based result page (10 results per page)

        Returns:
            Results in rank order: [{"title", "url", "description"}, ...]
        """
        if self._closed:
            raise HyperbrowserError("Client has been closed")

        logger.info(f"Hyperbrowser search: {query!r} (page {page})")
        result = await self._request_with_retry(
            self.SEARCH_ENDPOINT, {"query": query, "page": page}
        )

        data = result.get("data") or {}
        results = data.get("results") or []
        logger.info(f"Hyperbrowser search returned {len(results)} results")

        return [
            {
                "title": r.get("title") or "",
                "url": r.get("url") or "",
                "description": r.get("description") or "",
            }
            for r in results
            if isinstance(r, dict)
        ]

    async def fetch_page(
        self,
        url: str,
        schema: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Fetch a page and extract structured data.

        Args:
            url: Page URL
            schema: JSON schema for extraction (defaults to SEO_EXTRACTION_SCHEMA)

        Returns:
            Extracted JSON object
        """
        if self._closed:
            raise HyperbrowserError("Client has been closed")

        payload = {
            "url": url,
            "outputs": {
                "formats": [
                    {"type": "json", "schema": schema or SEO_EXTRACTION_SCHEMA},
                ],
            },
            "stealth": "auto",
            "navigation": {
                "waitUntil": self.WAIT_UNTIL,
                "waitFor": self.WAIT_FOR_MS,
            },
        }

        logger.info(f"Hyperbrowser fetch: {url}")
        result = await self._request_with_retry(self.FETCH_ENDPOINT, payload)

        data = result.get("data") or {}
        extracted = data.get("json")
        if not isinstance(extracted, dict):
            raise HyperbrowserError(
                f"Hyperbrowser returned no structured data for {url}",
                response=result,
            )

        return extracted

    async def fetch_multiple(
        self,
        urls: List[str],
        schema: Optional[Dict[str, Any]] = None,
        concurrency: int = 5,
    ) -> List[Optional[Dict[str, Any]]]:
        """
        Fetch multiple pages with concurrency control.

        Args:
            urls: List of URLs to fetch
            schema: JSON schema for extraction
            concurrency: Maximum concurrent requests

        Returns:
            List of extracted objects in the same order as input URLs;
            a failed fetch is None
        """
        semaphore = asyncio.Semaphore(concurrency)

        async def fetch_with_semaphore(url: str) -> Optional[Dict[str, Any]]:
            async with semaphore:
                try:
                    return await self.fetch_page(url, schema)
                except Exception as e:
                    logger.warning(f"Failed to fetch {url}: {e}")
                    return None

        tasks = [fetch_with_semaphore(url) for url in urls]
        return await asyncio.gather(*tasks)

    async def _request_with_retry(
        self,
        endpoint: str,
        payload: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Make POST request with retry logic."""
        config = self.retry_config
        last_exception = None

        for attempt in range(config.max_retries + 1):
            try:
                response = await self._client.post(endpoint, json=payload)

                if response.status_code >= 400:
                    try:
                        error_data = response.json() if response.content else {}
                    except ValueError:
                        error_data = {"error": response.text[:200]}

                    if response.status_code in config.retryable_status_codes:
                        last_exception = HyperbrowserError(
                            f"Hyperbrowser API error: {response.status_code}",
                            status_code=response.status_code,
                            response=error_data,
                        )
                        # Will retry
                    else:
                        raise HyperbrowserError(
                            f"Hyperbrowser API error: {error_data.get('error', response.status_code)}",
                            status_code=response.status_code,
                            response=error_data,
                        )
                else:
                    return response.json()

            except httpx.TimeoutException as e:
                last_exception = HyperbrowserError(f"Hyperbrowser request timed out: {e}")
            except httpx.RequestError as e:
                last_exception = HyperbrowserError(f"Hyperbrowser request failed: {e}")

            # Retry delay
            if attempt < config.max_retries:
                delay = min(
                    config.initial_delay * (config.exponential_base**attempt),
                    config.max_delay,
                )
                logger.warning(
                    f"Hyperbrowser request failed, retrying in {delay:.1f}s "
                    f"(attempt {attempt + 1}/{config.max_retries + 1})"
                )
                await asyncio.sleep(delay)

        raise last_exception

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
