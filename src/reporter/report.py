"""
SEO Gap Report Builder

Server-rendered HTML for a finished analysis, plus the status page shown
while a run is still in progress.

Sections:
- Header with the analyzed URL and target keyword
- Executive summary with the headline metric (score or ranking)
- Your metrics vs competitor benchmarks
- Gap analysis by severity
- Prioritized recommendations
- Content outline
- Keywords and competitors
"""

import html
import logging
from typing import Any, Dict, List, Optional

from src.scoring.seo_score import score_band

logger = logging.getLogger(__name__)


SEVERITY_ORDER = ("critical", "high", "medium", "low")

# Status page polling interval
POLL_INTERVAL_MS = 1000

STEP_LABELS = {
    "userSiteData": "Analyzing your page",
    "discoveredKeywords": "Discovering keywords",
    "competitorData": "Fetching competitor pages",
    "patterns": "Finding competitor patterns",
    "gaps": "Identifying SEO gaps",
    "recommendations": "Writing recommendations",
    "reportData": "Assembling report",
}

REPORT_CSS = """
body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
       margin: 0; background: #f7f7fb; color: #1f2330; line-height: 1.55; }
.container { max-width: 960px; margin: 0 auto; padding: 32px 20px 64px; }
.report-header { border-bottom: 1px solid #e3e5ee; padding-bottom: 16px; margin-bottom: 24px; }
.report-header .url { font-size: 22px; font-weight: 700; word-break: break-all; }
.report-header .keyword { color: #5b6173; }
.section { background: #fff; border: 1px solid #e3e5ee; border-radius: 10px;
           padding: 20px 24px; margin-bottom: 20px; }
.section h2 { margin-top: 0; font-size: 19px; }
.headline { display: flex; align-items: center; gap: 20px; margin-bottom: 12px; }
.headline .value { font-size: 44px; font-weight: 800; }
.band-high { color: #1f9d55; } .band-medium { color: #d69e2e; } .band-low { color: #e3342f; }
.metric-grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(150px, 1fr)); gap: 12px; }
.metric-card { border: 1px solid #e3e5ee; border-radius: 8px; padding: 12px; }
.metric-card .value { font-size: 20px; font-weight: 700; }
.metric-card .label { color: #5b6173; font-size: 13px; }
.metric-card .benchmark { color: #8a90a2; font-size: 12px; }
.gap { border-left: 4px solid #ccc; padding: 8px 12px; margin-bottom: 12px; }
.gap.critical { border-color: #9b1c1c; } .gap.high { border-color: #e3342f; }
.gap.medium { border-color: #d69e2e; } .gap.low { border-color: #3490dc; }
.severity { text-transform: uppercase; font-size: 11px; font-weight: 700; letter-spacing: .04em; }
.rec-card { border: 1px solid #e3e5ee; border-radius: 8px; padding: 12px; margin-bottom: 10px; }
.rec-card h4 { margin: 0 0 6px; }
table { width: 100%; border-collapse: collapse; font-size: 14px; }
th, td { text-align: left; padding: 6px 8px; border-bottom: 1px solid #eef0f5; }
.muted { color: #8a90a2; }
.progress-bar { height: 10px; background: #e3e5ee; border-radius: 5px; overflow: hidden; }
.progress-bar .fill { height: 100%; background: #4361ee; }
.steps li.done { color: #1f9d55; } .steps li.pending { color: #8a90a2; }
.error { color: #e3342f; font-weight: 600; }
"""


class ReportBuilder:
    """
    Builds HTML pages for SEO gap reports.
    """

    def build(self, record: Dict[str, Any], report_data: Dict[str, Any]) -> str:
        """
        Build the complete report page.

        Args:
            record: Report record (for URL, keyword and dates)
            report_data: Structured report (reportData)

        Returns:
            HTML document
        """
        url = record.get("userUrl", "")

        sections = [
            self._build_header(record),
            self._build_executive_summary(report_data.get("executiveSummary") or {}),
            self._build_metrics(
                report_data.get("yourMetrics") or {},
                report_data.get("competitorBenchmarks") or {},
            ),
            self._build_gaps(report_data.get("gaps") or []),
            self._build_recommendations(report_data.get("recommendations") or {}),
            self._build_content_outline(report_data.get("contentOutline") or {}),
            self._build_keywords(report_data.get("keywords") or {}),
            self._build_competitors(report_data.get("competitors") or []),
        ]

        logger.debug(f"[{record.get('runId')}] Rendered report page")
        return self._wrap_html(sections, f"{url} - SEO Gap Report")

    def build_status_page(
        self,
        record: Dict[str, Any],
        progress: int,
        completed_steps: Dict[str, bool],
    ) -> str:
        """
        Build the page shown while a run is analyzing (or after it failed).

        An analyzing page polls the status endpoint and reloads itself
        once the run reaches a terminal state.
        """
        run_id = record.get("runId", "")
        status = record.get("status", "analyzing")

        steps_html = "\n".join(
            f'<li class="{"done" if completed_steps.get(key) else "pending"}">'
            f'{"&#10003;" if completed_steps.get(key) else "&#8226;"} {html.escape(label)}</li>'
            for key, label in STEP_LABELS.items()
        )

        if status == "failed":
            message = html.escape(record.get("errorMessage") or "The analysis failed.")
            body = f'<p class="error">{message}</p>'
            script = ""
        else:
            body = f"""
            <div class="progress-bar"><div class="fill" id="progress-fill" style="width: {progress}%"></div></div>
            <p><span id="progress-value">{progress}</span>% complete</p>
            """
            script = f"""
            <script>
            (function () {{
                var statusUrl = "/api/report/" + encodeURIComponent({_js_string(run_id)}) + "/status";
                function poll() {{
                    fetch(statusUrl).then(function (r) {{ return r.json(); }}).then(function (data) {{
                        if (data.status && data.status !== "analyzing") {{
                            window.location.reload();
                            return;
                        }}
                        document.getElementById("progress-fill").style.width = data.progress + "%";
                        document.getElementById("progress-value").textContent = data.progress;
                        setTimeout(poll, {POLL_INTERVAL_MS});
                    }}).catch(function () {{ setTimeout(poll, {POLL_INTERVAL_MS}); }});
                }}
                setTimeout(poll, {POLL_INTERVAL_MS});
            }})();
            </script>
            """

        section = f"""
        <div class="section">
            <h2>{"Analysis failed" if status == "failed" else "Analysis in progress"}</h2>
            {body}
            <ul class="steps">{steps_html}</ul>
        </div>
        {script}
        """

        return self._wrap_html(
            [self._build_header(record), section],
            f"{record.get('userUrl', '')} - SEO Gap Report",
        )

    def _wrap_html(self, sections: List[str], title: str) -> str:
        """Wrap sections in HTML document."""
        content = "\n".join(sections)

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{html.escape(title)}</title>
    <style>{REPORT_CSS}</style>
</head>
<body>
    <div class="container">
    {content}
    </div>
</body>
</html>"""

    def _format_number(self, num: Any) -> str:
        """Format number with commas."""
        if num is None:
            return "N/A"
        try:
            num = float(num)
            if num == int(num):
                return f"{int(num):,}"
            return f"{num:,.1f}"
        except (TypeError, ValueError):
            return str(num)

    # =========================================================================
    # HEADER
    # =========================================================================

    def _build_header(self, record: Dict[str, Any]) -> str:
        created = record.get("createdAt") or ""
        return f"""
        <div class="report-header">
            <div class="muted">SEO Gap Analysis</div>
            <div class="url">{html.escape(record.get("userUrl", ""))}</div>
            <div class="keyword">Target keyword: <strong>{html.escape(record.get("targetKeyword", ""))}</strong></div>
            <div class="muted">{html.escape(created[:10])}</div>
        </div>
        """

    # =========================================================================
    # EXECUTIVE SUMMARY
    # =========================================================================

    def _build_executive_summary(self, summary: Dict[str, Any]) -> str:
        """Headline metric, overview and key findings."""
        if "score" in summary:
            score = summary.get("score") or 0
            band = score_band(score)
            headline = f"""
            <div class="headline">
                <div class="value band-{band}">{score}<span class="muted" style="font-size: 18px;">/100</span></div>
                <div class="label">SEO Score ({band})</div>
            </div>
            """
        else:
            rank = summary.get("googleRanking")
            found_url = summary.get("googleRankingUrl")
            if rank:
                detail = f'<div class="muted">{html.escape(found_url or "")}</div>'
                headline = f"""
                <div class="headline">
                    <div class="value">#{rank}</div>
                    <div class="label">Current Google ranking{detail}</div>
                </div>
                """
            else:
                headline = """
                <div class="headline">
                    <div class="value muted">&mdash;</div>
                    <div class="label">Not ranking in the top 100 results</div>
                </div>
                """

        findings = "".join(
            f"<li>{html.escape(finding)}</li>" for finding in summary.get("keyFindings") or []
        )
        findings_html = f"<h3>Key findings</h3><ul>{findings}</ul>" if findings else ""

        return f"""
        <div class="section">
            <h2>Executive Summary</h2>
            {headline}
            <p>{html.escape(summary.get("overview") or "")}</p>
            {findings_html}
        </div>
        """

    # =========================================================================
    # METRICS
    # =========================================================================

    def _build_metrics(self, mine: Dict[str, Any], benchmarks: Dict[str, Any]) -> str:
        """Your page vs the competitor average."""
        rows = [
            ("Word count", mine.get("wordCount"), benchmarks.get("avgWordCount")),
            ("H2 headings", mine.get("h2Count"), benchmarks.get("avgH2Count")),
            ("H3 headings", mine.get("h3Count"), benchmarks.get("avgH3Count")),
            ("Internal links", mine.get("internalLinks"), benchmarks.get("avgInternalLinks")),
            ("External links", mine.get("externalLinks"), benchmarks.get("avgExternalLinks")),
        ]

        cards = "".join(
            f"""
            <div class="metric-card">
                <div class="value">{self._format_number(value)}</div>
                <div class="label">{label}</div>
                <div class="benchmark">Competitor avg: {self._format_number(avg)}</div>
            </div>
            """
            for label, value, avg in rows
        )

        schema_usage = benchmarks.get("schemaUsage") or 0
        total = benchmarks.get("totalCompetitors") or 0
        cards += f"""
            <div class="metric-card">
                <div class="value">{"Yes" if mine.get("hasSchema") else "No"}</div>
                <div class="label">Schema markup</div>
                <div class="benchmark">{schema_usage}/{total} competitors</div>
            </div>
        """

        return f"""
        <div class="section">
            <h2>Your Metrics vs Competitors</h2>
            <div class="metric-grid">{cards}</div>
        </div>
        """

    # =========================================================================
    # GAPS
    # =========================================================================

    def _build_gaps(self, gaps: List[Dict[str, Any]]) -> str:
        if not gaps:
            return """
            <div class="section">
                <h2>Gap Analysis</h2>
                <p class="muted">No significant gaps were found.</p>
            </div>
            """

        ordered = sorted(
            gaps,
            key=lambda g: SEVERITY_ORDER.index(g.get("severity")) if g.get("severity") in SEVERITY_ORDER else 99,
        )

        items = []
        for gap in ordered:
            severity = gap.get("severity", "medium")
            effort = gap.get("estimatedEffort")
            effort_html = f'<div class="muted">Effort: {html.escape(effort)}</div>' if effort else ""
            items.append(f"""
            <div class="gap {html.escape(severity)}">
                <span class="severity">{html.escape(severity)}</span>
                <strong>{html.escape(gap.get("category") or "")}</strong>
                <p>{html.escape(gap.get("finding") or "")}</p>
                <p class="muted">{html.escape(gap.get("impact") or "")}</p>
                <p><strong>Fix:</strong> {html.escape(gap.get("recommendation") or "")}</p>
                {effort_html}
            </div>
            """)

        return f"""
        <div class="section">
            <h2>Gap Analysis ({len(gaps)})</h2>
            {"".join(items)}
        </div>
        """

    # =========================================================================
    # RECOMMENDATIONS
    # =========================================================================

    def _build_recommendations(self, recommendations: Dict[str, Any]) -> str:
        groups = [
            ("High priority", recommendations.get("highPriority") or []),
            ("Medium priority", recommendations.get("mediumPriority") or []),
            ("Low priority", recommendations.get("lowPriority") or []),
        ]

        parts = []
        for label, cards in groups:
            if not cards:
                continue
            rendered = "".join(self._recommendation_card(card) for card in cards)
            parts.append(f"<h3>{label}</h3>{rendered}")

        if not parts:
            return ""

        return f"""
        <div class="section">
            <h2>Recommendations</h2>
            {"".join(parts)}
        </div>
        """

    def _recommendation_card(self, card: Dict[str, Any]) -> str:
        actions = "".join(f"<li>{html.escape(item)}</li>" for item in card.get("actionItems") or [])
        return f"""
        <div class="rec-card">
            <h4>{html.escape(card.get("title") or "")}</h4>
            <p>{html.escape(card.get("description") or "")}</p>
            <ul>{actions}</ul>
        </div>
        """

    # =========================================================================
    # CONTENT OUTLINE
    # =========================================================================

    def _build_content_outline(self, outline: Dict[str, Any]) -> str:
        sections = outline.get("h2Sections") or []
        rows = "".join(
            f"""
            <tr>
                <td><strong>{html.escape(s.get("title") or "")}</strong>
                    <div class="muted">{html.escape(s.get("description") or "")}</div></td>
                <td>{self._format_number(s.get("estimatedWordCount"))}</td>
            </tr>
            """
            for s in sections
        )
        table = f"""
            <table>
                <tr><th>H2 section</th><th>Words</th></tr>
                {rows}
            </table>
        """ if rows else ""

        return f"""
        <div class="section">
            <h2>Content Outline</h2>
            <p>Recommended H1: <strong>{html.escape(outline.get("recommendedH1") or "")}</strong></p>
            {table}
            <p class="muted">Total estimated word count: {self._format_number(outline.get("totalEstimatedWordCount"))}</p>
        </div>
        """

    # =========================================================================
    # KEYWORDS & COMPETITORS
    # =========================================================================

    def _build_keywords(self, keywords: Dict[str, Any]) -> str:
        secondary = ", ".join(html.escape(k) for k in keywords.get("secondary") or [])
        return f"""
        <div class="section">
            <h2>Keywords</h2>
            <p>Primary: <strong>{html.escape(keywords.get("primary") or "")}</strong></p>
            <p>Secondary: {secondary or '<span class="muted">none</span>'}</p>
        </div>
        """

    def _build_competitors(self, competitors: List[Dict[str, Any]]) -> str:
        if not competitors:
            return ""

        rows = "".join(
            f"""
            <tr>
                <td>{c.get("rank") or ""}</td>
                <td>{html.escape(c.get("title") or "")}<div class="muted">{html.escape(c.get("url") or "")}</div></td>
                <td>{self._format_number(c.get("wordCount"))}</td>
                <td>{c.get("h2Count") or 0}</td>
            </tr>
            """
            for c in competitors
        )

        return f"""
        <div class="section">
            <h2>Competitors Analyzed ({len(competitors)})</h2>
            <table>
                <tr><th>#</th><th>Page</th><th>Words</th><th>H2s</th></tr>
                {rows}
            </table>
        </div>
        """


def _js_string(value: str) -> str:
    """Quote a value as a JavaScript string literal safe inside <script>."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
    )
    return f'"{escaped}"'
