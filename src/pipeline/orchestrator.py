"""
SEO Analysis Pipeline

Runs one analysis as a checkpointed batch job. Each stage hands its output
to the next in memory and persists it on the report record, so a crashed
run can be resumed from the stages that already completed.

Stages:
1. fetch_user_site          -> userSiteData
2. discover_keywords        -> discoveredKeywords
3. detect_ranking           -> googleRanking
4. find_competitors         (candidates, not persisted)
5. fetch_competitor_data    -> competitorData
6. analyze_patterns         -> patterns
7. identify_gaps            -> gaps
8. generate_recommendations -> recommendations
9. calculate_score          -> score (score headline only)
10. generate_report_data    -> reportData
11. finalize                -> status completed

Any exception moves the record to failed with a sanitized message.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from src.analyzer import prompts
from src.analyzer.client import ClaudeClient, ClaudeError
from src.database.repository import complete_report, fail_report, get_report, update_report
from src.integrations.hyperbrowser import SEO_EXTRACTION_SCHEMA, HyperbrowserClient
from src.reporter.recommendations import group_recommendations
from src.reporter.structure import (
    HEADLINE_RANKING,
    HEADLINE_SCORE,
    build_structured_report,
    template_overview,
)
from src.scoring.seo_score import calculate_seo_score
from src.utils.config import Settings, get_settings
from src.utils.domain_filter import filter_competitor_domains, filter_own_domain, normalize_host
from src.utils.safe_errors import log_and_sanitize_error

from .analysis import (
    build_competitor_entries,
    compute_patterns,
    competitor_summary,
    normalize_gaps,
    normalize_page,
)
from .ranking import (
    RESULTS_PER_PAGE,
    detect_ranking as search_ranking,
    not_found,
    resolve_competitor_url,
    search_competitors,
)

logger = logging.getLogger(__name__)

DISCOVERY_LLM = "llm"
DISCOVERY_SEARCH = "search"

FETCH_CONCURRENCY = 5
CONTENT_PREVIEW_CHARS = 1000
COMPETITOR_PREVIEW_CHARS = 500
OUTLINE_MAX_TOKENS = 3000
SUMMARY_MAX_TOKENS = 400


class SEOAnalysisPipeline:
    """
    Orchestrates a single SEO gap analysis.

    Usage:
        async with ExternalAPIClients() as clients:
            pipeline = SEOAnalysisPipeline(clients.claude, clients.hyperbrowser)
            record = await pipeline.run(run_id, "https://example.com", "crm software")
    """

    def __init__(
        self,
        claude: Optional[ClaudeClient],
        hyperbrowser: Optional[HyperbrowserClient],
        settings: Optional[Settings] = None,
    ):
        self.claude = claude
        self.hyperbrowser = hyperbrowser
        self.settings = settings or get_settings()

        self.headline_metric = self.settings.HEADLINE_METRIC
        if self.headline_metric not in (HEADLINE_SCORE, HEADLINE_RANKING):
            logger.warning(f"Unknown HEADLINE_METRIC {self.headline_metric!r}, using score")
            self.headline_metric = HEADLINE_SCORE

    @property
    def ranking_depth(self) -> int:
        return self.settings.RANKING_MAX_PAGES * RESULTS_PER_PAGE

    # =========================================================================
    # ENTRY POINTS
    # =========================================================================

    async def run(self, run_id: str, url: str, target_keyword: str) -> Optional[Dict[str, Any]]:
        """
        Run every stage for a freshly created record.

        Returns:
            The final record
        """
        logger.info(f"[{run_id}] Starting analysis of {url} for {target_keyword!r}")
        return await self._execute(run_id, url, target_keyword, {})

    async def resume(self, run_id: str) -> Optional[Dict[str, Any]]:
        """
        Continue a run that stopped while still analyzing.

        Stages whose output is already on the record are skipped and their
        stored values are reused. Terminal records are returned unchanged.

        Returns:
            The final record, or None when the run does not exist
        """
        record = await asyncio.to_thread(get_report, run_id)
        if record is None:
            logger.warning(f"[{run_id}] Cannot resume, report not found")
            return None

        if record["status"] != "analyzing":
            logger.info(f"[{run_id}] Already {record['status']}, nothing to resume")
            return record

        state = {
            key: record[key]
            for key in (
                "userSiteData", "discoveredKeywords", "googleRanking", "competitorData",
                "patterns", "gaps", "recommendations", "score", "reportData",
            )
            if record.get(key) is not None
        }
        logger.info(f"[{run_id}] Resuming with {', '.join(state) or 'no completed stages'}")

        return await self._execute(run_id, record["userUrl"], record["targetKeyword"], state)

    async def _execute(
        self,
        run_id: str,
        url: str,
        keyword: str,
        state: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        try:
            self._check_clients()

            async def stage(key: str, produce):
                if state.get(key) is None:
                    value = produce()
                    if asyncio.iscoroutine(value):
                        value = await value
                    # Store writes run off the event loop that also serves polling
                    await asyncio.to_thread(update_report, run_id, **{key: value})
                    state[key] = value
                    logger.info(f"[{run_id}] Saved {key}")
                return state[key]

            user_site = await stage("userSiteData", lambda: self.fetch_user_site(url))
            keywords = await stage("discoveredKeywords", lambda: self.discover_keywords(user_site))
            ranking = await stage("googleRanking", lambda: self.detect_ranking(run_id, url, keyword))

            async def collect_competitors():
                candidates = await self.find_competitors(run_id, user_site, url, keyword)
                return await self.fetch_competitor_data(run_id, candidates)

            competitors = await stage("competitorData", collect_competitors)
            patterns = await stage("patterns", lambda: self.analyze_patterns(competitors))
            gaps = await stage("gaps", lambda: self.identify_gaps(user_site, patterns, keyword))
            recommendations = await stage(
                "recommendations",
                lambda: self.generate_recommendations(user_site, gaps, keywords, keyword),
            )

            score = None
            if self.headline_metric == HEADLINE_SCORE:
                score = await stage("score", lambda: self.calculate_score(user_site, patterns, gaps))

            await stage(
                "reportData",
                lambda: self.generate_report_data(
                    run_id, url, keyword, user_site, keywords, ranking,
                    competitors, patterns, gaps, recommendations, score,
                ),
            )

            await asyncio.to_thread(self.finalize, run_id)

        except Exception as e:
            message = log_and_sanitize_error(e, f"pipeline {run_id}")
            await asyncio.to_thread(fail_report, run_id, message)

        return await asyncio.to_thread(get_report, run_id)

    def _check_clients(self):
        if self.claude is None:
            raise RuntimeError("Claude client not configured (ANTHROPIC_API_KEY)")
        if self.hyperbrowser is None:
            raise RuntimeError("Hyperbrowser client not configured (HYPERBROWSER_API_KEY)")

    # =========================================================================
    # STAGES
    # =========================================================================

    async def fetch_user_site(self, url: str) -> Dict[str, Any]:
        """Extract the user's page."""
        page = await self.hyperbrowser.fetch_page(url, SEO_EXTRACTION_SCHEMA)
        user_site = normalize_page(page, url)
        user_site["url"] = url
        logger.info(f"User site: {user_site['wordCount']} words, {len(user_site['h2'])} H2s")
        return user_site

    async def discover_keywords(self, user_site: Dict[str, Any]) -> Dict[str, Any]:
        """Category keywords for the page. Advisory only."""
        prompt = prompts.KEYWORDS_TEMPLATE.format(
            title=user_site.get("title", ""),
            meta_description=user_site.get("metaDescription", ""),
            h1=", ".join(user_site.get("h1") or []),
            h2=", ".join((user_site.get("h2") or [])[:10]),
            content=(user_site.get("content") or "")[:CONTENT_PREVIEW_CHARS],
        )
        result = await self.claude.analyze_json(
            prompt, prompts.KEYWORDS_SYSTEM, schema=prompts.KEYWORDS_SCHEMA, fallback={}
        )
        if not isinstance(result, dict):
            result = {}

        return {
            "primary": str(result.get("primary") or ""),
            "secondary": [str(k) for k in result.get("secondary") or [] if k],
            "intent": str(result.get("intent") or ""),
            "reasoning": str(result.get("reasoning") or ""),
        }

    async def detect_ranking(self, run_id: str, url: str, keyword: str) -> Dict[str, Any]:
        """Position of the user's site for the target keyword."""
        try:
            return await search_ranking(
                self.hyperbrowser, keyword, url, max_pages=self.settings.RANKING_MAX_PAGES
            )
        except Exception as e:
            logger.warning(f"[{run_id}] Ranking detection failed, treating as not found: {e}")
            return not_found()

    async def find_competitors(
        self,
        run_id: str,
        user_site: Dict[str, Any],
        url: str,
        keyword: str,
    ) -> List[Dict[str, Any]]:
        """
        Competitor candidates by the configured discovery strategy.

        Returns:
            [{rank, title, url, description}], without the user's own site
            or excluded platforms, capped at MAX_COMPETITORS
        """
        limit = self.settings.MAX_COMPETITORS
        strategy = self.settings.COMPETITOR_DISCOVERY

        if strategy == DISCOVERY_SEARCH:
            candidates = await search_competitors(self.hyperbrowser, keyword, limit)
        else:
            if strategy != DISCOVERY_LLM:
                logger.warning(f"[{run_id}] Unknown COMPETITOR_DISCOVERY {strategy!r}, using llm")
                strategy = DISCOVERY_LLM
            candidates = await self._name_competitors(user_site, keyword)

        candidates = filter_own_domain(candidates, url)
        candidates = filter_competitor_domains(candidates, source=strategy)

        unique = []
        seen = set()
        for candidate in candidates:
            host = normalize_host(candidate.get("url"))
            if host and host in seen:
                continue
            seen.add(host)
            unique.append(candidate)

        logger.info(f"[{run_id}] {len(unique[:limit])} competitor candidates via {strategy}")
        return unique[:limit]

    async def _name_competitors(self, user_site: Dict[str, Any], keyword: str) -> List[Dict[str, Any]]:
        prompt = prompts.COMPETITORS_TEMPLATE.format(
            keyword=keyword,
            title=user_site.get("title", ""),
            content=(user_site.get("content") or "")[:COMPETITOR_PREVIEW_CHARS],
        )
        result = await self.claude.analyze_json(
            prompt,
            prompts.COMPETITORS_SYSTEM,
            schema=prompts.COMPETITORS_SCHEMA,
            fallback={"competitors": []},
        )
        named = result.get("competitors") if isinstance(result, dict) else None
        named = [c for c in named or [] if isinstance(c, dict) and (c.get("url") or c.get("company"))]

        return list(await asyncio.gather(*[
            resolve_competitor_url(candidate, rank, self.hyperbrowser)
            for rank, candidate in enumerate(named, start=1)
        ]))

    async def fetch_competitor_data(
        self,
        run_id: str,
        candidates: List[Dict[str, Any]],
    ) -> List[Dict[str, Any]]:
        """Fetch competitor pages concurrently, keeping those with content."""
        if not candidates:
            logger.warning(f"[{run_id}] No competitors to fetch")
            return []

        fetched = await self.hyperbrowser.fetch_multiple(
            [c["url"] for c in candidates],
            SEO_EXTRACTION_SCHEMA,
            concurrency=FETCH_CONCURRENCY,
        )
        competitors = build_competitor_entries(candidates, fetched)
        logger.info(f"[{run_id}] Fetched {len(competitors)}/{len(candidates)} competitors")
        return competitors

    async def analyze_patterns(self, competitors: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Competitor benchmarks and common topics."""
        patterns = compute_patterns(competitors)
        if not competitors:
            return patterns

        result = await self.claude.analyze_json(
            prompts.TOPICS_TEMPLATE.format(competitor_summary=competitor_summary(competitors)),
            prompts.TOPICS_SYSTEM,
            schema=prompts.TOPICS_SCHEMA,
            fallback={"commonTopics": []},
        )
        topics = result.get("commonTopics") if isinstance(result, dict) else None
        patterns["commonTopics"] = [str(t) for t in topics or [] if t]

        logger.info(
            f"Patterns: {patterns['avgWordCount']} words, {patterns['avgH2Count']} H2s, "
            f"topics: {', '.join(patterns['commonTopics'])}"
        )
        return patterns

    async def identify_gaps(
        self,
        user_site: Dict[str, Any],
        patterns: Dict[str, Any],
        keyword: str,
    ) -> List[Dict[str, Any]]:
        """Gaps between the user's page and the benchmarks."""
        technical = patterns.get("technicalPatterns") or {}
        h2 = user_site.get("h2") or []

        prompt = prompts.GAPS_TEMPLATE.format(
            keyword=keyword,
            title=user_site.get("title", ""),
            meta_description=user_site.get("metaDescription", ""),
            word_count=user_site.get("wordCount") or 0,
            h1=", ".join(user_site.get("h1") or []),
            h2_count=len(h2),
            h2_sample=", ".join(h2[:5]),
            h3_count=len(user_site.get("h3") or []),
            internal_links=user_site.get("internalLinks") or 0,
            has_schema="Yes" if user_site.get("hasSchema") else "No",
            avg_word_count=patterns.get("avgWordCount") or 0,
            avg_h2_count=patterns.get("avgH2Count") or 0,
            avg_h3_count=patterns.get("avgH3Count") or 0,
            avg_internal_links=patterns.get("avgInternalLinks") or 0,
            common_topics=", ".join(patterns.get("commonTopics") or []),
            schema_usage=technical.get("schemaUsage") or 0,
            total_competitors=technical.get("totalCompetitors") or 0,
        )
        result = await self.claude.analyze_json(
            prompt, prompts.GAPS_SYSTEM, schema=prompts.GAPS_SCHEMA, fallback={"gaps": []}
        )
        gaps = normalize_gaps(result)
        logger.info(f"Identified {len(gaps)} gaps")
        return gaps

    async def generate_recommendations(
        self,
        user_site: Dict[str, Any],
        gaps: List[Dict[str, Any]],
        keywords: Dict[str, Any],
        keyword: str,
    ) -> Dict[str, Any]:
        """Severity-bucketed recommendations plus a markdown content outline."""
        recommendations: Dict[str, Any] = group_recommendations(gaps)

        h1 = user_site.get("h1") or []
        prompt = prompts.OUTLINE_TEMPLATE.format(
            keyword=keyword,
            secondary=", ".join(keywords.get("secondary") or []) or "None",
            current_h1=h1[0] if h1 else "None",
            current_h2="\n".join(f"- {h}" for h in user_site.get("h2") or []) or "None",
            gap_findings="\n".join(f"- [{g['severity']}] {g['finding']}" for g in gaps) or "None",
        )
        response = await self.claude.analyze_with_retry(
            prompt, prompts.OUTLINE_SYSTEM, max_tokens=OUTLINE_MAX_TOKENS
        )
        if not response.success:
            raise ClaudeError(f"Claude outline failed: {response.error}")

        recommendations["contentOutline"] = response.content.strip()
        return recommendations

    def calculate_score(
        self,
        user_site: Dict[str, Any],
        patterns: Dict[str, Any],
        gaps: List[Dict[str, Any]],
    ) -> int:
        score = calculate_seo_score(user_site, patterns, gaps)
        logger.info(f"SEO score: {score}/100")
        return score

    async def generate_report_data(
        self,
        run_id: str,
        url: str,
        keyword: str,
        user_site: Dict[str, Any],
        keywords: Dict[str, Any],
        ranking: Dict[str, Any],
        competitors: List[Dict[str, Any]],
        patterns: Dict[str, Any],
        gaps: List[Dict[str, Any]],
        recommendations: Dict[str, Any],
        score: Optional[int],
    ) -> Dict[str, Any]:
        """Assemble reportData around an LLM executive summary."""
        overview = await self._summarize(
            run_id, url, keyword, user_site, ranking, patterns, gaps, score
        )

        return build_structured_report(
            user_site=user_site,
            discovered_keywords=keywords,
            patterns=patterns,
            gaps=gaps,
            recommendations=recommendations,
            competitor_data=competitors,
            overview=overview,
            headline_metric=self.headline_metric,
            score=score,
            ranking=ranking,
            target_keyword=keyword,
        )

    async def _summarize(
        self,
        run_id: str,
        url: str,
        keyword: str,
        user_site: Dict[str, Any],
        ranking: Dict[str, Any],
        patterns: Dict[str, Any],
        gaps: List[Dict[str, Any]],
        score: Optional[int],
    ) -> str:
        fallback = template_overview(
            url, gaps, self.headline_metric,
            score=score, ranking=ranking, keyword=keyword, ranking_depth=self.ranking_depth,
        )

        if self.headline_metric == HEADLINE_RANKING:
            rank = (ranking or {}).get("rank")
            headline = (
                prompts.HEADLINE_RANKED.format(rank=rank) if rank
                else prompts.HEADLINE_UNRANKED.format(depth=self.ranking_depth)
            )
        else:
            headline = prompts.HEADLINE_SCORE.format(score=score or 0)

        categories = []
        for gap in gaps:
            if gap.get("severity") in ("critical", "high") and gap["category"] not in categories:
                categories.append(gap["category"])

        prompt = prompts.SUMMARY_TEMPLATE.format(
            site_name=user_site.get("title") or url,
            url=url,
            keyword=keyword,
            headline=headline,
            urgent_count=sum(1 for g in gaps if g.get("severity") in ("critical", "high")),
            medium_count=sum(1 for g in gaps if g.get("severity") == "medium"),
            categories=", ".join(categories[:3]) or "None",
            word_count=user_site.get("wordCount") or 0,
            avg_word_count=patterns.get("avgWordCount") or 0,
            h2_count=len(user_site.get("h2") or []),
            avg_h2_count=patterns.get("avgH2Count") or 0,
        )

        response = await self.claude.analyze_with_retry(
            prompt, prompts.SUMMARY_SYSTEM, max_tokens=SUMMARY_MAX_TOKENS
        )

        overview = response.content.strip().strip('"') if response.success else ""
        if not overview:
            logger.warning(f"[{run_id}] Summary unavailable, using template: {response.error}")
            return fallback

        return overview

    def finalize(self, run_id: str) -> bool:
        """Mark the run completed."""
        completed = complete_report(run_id)
        if completed:
            logger.info(f"[{run_id}] Analysis complete")
        return completed
