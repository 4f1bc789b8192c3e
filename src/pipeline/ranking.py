"""
Ranking Detection and Competitor Resolution

Both walk ranked search results and compare hosts with the shared rules in
src.utils.domain_filter: scheme, port, path and one leading "www." never
matter; other subdomains do ("shop.example.com" != "example.com").
"""

import logging
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from src.utils.domain_filter import normalize_host

logger = logging.getLogger(__name__)

RESULTS_PER_PAGE = 10
DEFAULT_MAX_PAGES = 10

# A URL without one of these is treated as a guess and looked up
COMMON_TLDS = (".com", ".io", ".ai")


if TYPE_CHECKING:
    from src.integrations.hyperbrowser import HyperbrowserClient


def not_found() -> Dict[str, Any]:
    return {"rank": None, "foundUrl": None}


async def detect_ranking(
    search: "HyperbrowserClient",
    keyword: str,
    user_url: str,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> Dict[str, Any]:
    """
    Find where the user's host first appears in search results.

    Pages through results one page at a time and stops at the first match.
    A failed page is not retried; the error propagates to the caller.

    Args:
        search: Provider with an async search(query, page)
        keyword: Query to rank for
        user_url: URL whose host is looked for
        max_pages: Pages to scan (10 results each)

    Returns:
        {"rank": int, "foundUrl": str} with a 1-based rank, or
        {"rank": None, "foundUrl": None} when not found
    """
    user_host = normalize_host(user_url)
    if not user_host:
        logger.warning(f"Cannot detect ranking, no host in {user_url!r}")
        return not_found()

    position = 0
    for page in range(1, max_pages + 1):
        results = await search.search(keyword, page)
        if not results:
            break

        for result in results:
            position += 1
            if normalize_host(result.get("url")) == user_host:
                logger.info(f"Found {user_host} at position {position}: {result.get('url')}")
                return {"rank": position, "foundUrl": result.get("url")}

    logger.info(f"{user_host} not found in top {position} results for {keyword!r}")
    return not_found()


def ensure_scheme(url: str) -> str:
    """Prefix https:// when no scheme is given."""
    url = (url or "").strip()
    if not url.startswith("http"):
        return f"https://{url}"
    return url


async def resolve_competitor_url(
    candidate: Dict[str, Any],
    rank: int,
    search: Optional["HyperbrowserClient"] = None,
) -> Dict[str, Any]:
    """
    Turn an LLM-named competitor into a fetchable candidate.

    When the suggested URL has no common TLD, the company's official site
    is looked up; a failed lookup keeps the suggestion.

    Args:
        candidate: {"company", "url", "description"}
        rank: 1-based position in the LLM's list
        search: Provider used for the official-site lookup

    Returns:
        {"rank", "title", "url", "description"}
    """
    company = (candidate.get("company") or "").strip()
    url = ensure_scheme(candidate.get("url") or "")
    title = company or url
    description = candidate.get("description") or ""

    if search is not None and company and not any(tld in url for tld in COMMON_TLDS):
        logger.info(f"Searching for official site: {company}")
        try:
            results = await search.search(f"{company} official site", 1)
            if results:
                url = results[0].get("url") or url
                title = results[0].get("title") or title
                description = results[0].get("description") or description
        except Exception as e:
            logger.warning(f"Could not find URL for {company}, using suggestion: {e}")

    return {"rank": rank, "title": title, "url": url, "description": description}


async def search_competitors(
    search: "HyperbrowserClient",
    keyword: str,
    limit: int,
    max_pages: int = 2,
) -> List[Dict[str, Any]]:
    """
    Take competitor candidates straight from search results.

    Returns:
        Candidates in result order with their 1-based rank
    """
    candidates: List[Dict[str, Any]] = []
    position = 0

    for page in range(1, max_pages + 1):
        results = await search.search(keyword, page)
        if not results:
            break

        for result in results:
            position += 1
            candidates.append({
                "rank": position,
                "title": result.get("title") or result.get("url") or "",
                "url": result.get("url") or "",
                "description": result.get("description") or "",
            })

        if len(candidates) >= limit * 2:
            break

    return candidates
