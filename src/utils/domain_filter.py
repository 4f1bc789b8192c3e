"""
Domain Filtering Utilities

Shared host logic used on every competitor identification path:
- LLM-named competitor companies
- Direct search results
- Ranking detection

Two rules are applied:
1. A candidate on the user's own host is never a competitor.
2. Platforms like review sites, social networks and encyclopedias are never
   competitors, regardless of how they were discovered.
"""

import logging
from typing import Iterable, List, Optional, Set
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


# =============================================================================
# EXCLUDED DOMAINS - Non-competitor platforms
# =============================================================================

SOCIAL_MEDIA = {
    "facebook.com", "twitter.com", "x.com", "instagram.com",
    "linkedin.com", "tiktok.com", "pinterest.com", "reddit.com",
    "youtube.com", "quora.com", "medium.com",
}

REFERENCE_SITES = {
    "wikipedia.org", "wikihow.com", "britannica.com",
    "stackoverflow.com", "github.com",
}

# Review sites and listicle publishers (competitor lists, not competitors)
REVIEW_SITES = {
    "g2.com", "capterra.com", "trustpilot.com", "getapp.com",
    "softwareadvice.com", "trustradius.com", "pcmag.com",
    "techradar.com", "lifewire.com", "zapier.com", "forbes.com",
    "yelp.com", "tripadvisor.com",
}

EXCLUDED_DOMAINS: Set[str] = SOCIAL_MEDIA | REFERENCE_SITES | REVIEW_SITES


def normalize_host(url: Optional[str]) -> Optional[str]:
    """
    Extract the comparable host of a URL.

    Drops the scheme, port and path, and a single leading "www.".
    Other subdomains are kept: "shop.example.com" != "example.com".

    Returns:
        Host string, or None when the URL has no parsable host
    """
    if not url:
        return None

    try:
        host = urlparse(url.strip()).hostname
    except ValueError:
        return None

    if not host:
        return None

    if host.startswith("www."):
        host = host[4:]
    return host


def same_site(url: str, other_url: str) -> bool:
    """True when both URLs resolve to the same normalized host."""
    host = normalize_host(url)
    return host is not None and host == normalize_host(other_url)


def filter_own_domain(candidates: Iterable[dict], user_url: str) -> List[dict]:
    """
    Remove candidates hosted on the user's own domain.

    Scheme and path never matter. Candidates whose URL cannot be parsed are
    kept, since they cannot be proven to be the user's site.

    Args:
        candidates: Dicts with a "url" key
        user_url: The URL being analyzed

    Returns:
        Filtered list, original order preserved
    """
    user_host = normalize_host(user_url)
    kept = []

    for candidate in candidates:
        host = normalize_host(candidate.get("url"))
        if host is not None and host == user_host:
            logger.debug(f"Dropped own-domain candidate: {candidate.get('url')}")
            continue
        kept.append(candidate)

    return kept


def is_excluded_domain(host: Optional[str]) -> bool:
    """
    Check if a host is a known non-competitor platform.

    Matches exact hosts and their subdomains (business.facebook.com).
    """
    if not host:
        return False

    host = host.lower()
    if host.startswith("www."):
        host = host[4:]

    if host in EXCLUDED_DOMAINS:
        return True

    return any(host.endswith("." + excluded) for excluded in EXCLUDED_DOMAINS)


def filter_competitor_domains(candidates: Iterable[dict], source: str = "unknown") -> List[dict]:
    """
    Filter competitor candidates, removing excluded platforms.

    Args:
        candidates: Dicts with a "url" key
        source: Description of where these candidates came from (for logging)

    Returns:
        Filtered list with excluded platforms removed
    """
    filtered = []
    excluded_count = 0

    for candidate in candidates:
        if is_excluded_domain(normalize_host(candidate.get("url"))):
            excluded_count += 1
            logger.debug(f"Excluded platform from {source}: {candidate.get('url')}")
        else:
            filtered.append(candidate)

    if excluded_count > 0:
        logger.info(f"Filtered {excluded_count} platform domains from {source}")

    return filtered
