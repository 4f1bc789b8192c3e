#!/usr/bin/env python3
"""
Local Analysis Runner

Runs the SEO gap analysis pipeline for one page without payment and
prints the run id and final status.

Usage:
    # Set environment variables first (or put them in .env):
    export ANTHROPIC_API_KEY=your_key
    export HYPERBROWSER_API_KEY=your_key

    # Run analysis:
    python scripts/run_analysis.py https://example.com "crm software"

    # Resume a run that stopped mid-way:
    python scripts/run_analysis.py --resume seo_1700000000000_abc123xyz

    # Write the HTML report next to the run:
    python scripts/run_analysis.py https://example.com "crm software" --html report.html
"""

import asyncio
import argparse
import logging
import os
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


async def run_analysis(
    url: str = None,
    keyword: str = None,
    user_id: str = "local",
    resume_run_id: str = None,
    html_path: str = None,
):
    """Run (or resume) one analysis and print the outcome."""

    load_dotenv()

    missing = [
        var for var in ("ANTHROPIC_API_KEY", "HYPERBROWSER_API_KEY")
        if not os.getenv(var)
    ]
    if missing:
        print("ERROR: Missing required environment variables:")
        for var in missing:
            print(f"  - {var}")
        return None

    from src.database import create_report, init_db
    from src.integrations import ExternalAPIClients
    from src.pipeline import SEOAnalysisPipeline
    from src.reporter import ReportBuilder
    from src.utils.validation import (
        SubmissionValidationError,
        generate_run_id,
        validate_submission,
    )

    init_db()

    start_time = datetime.now()

    async with ExternalAPIClients() as clients:
        pipeline = SEOAnalysisPipeline(clients.claude, clients.hyperbrowser)

        if resume_run_id:
            print(f"Resuming {resume_run_id}")
            record = await pipeline.resume(resume_run_id)
        else:
            try:
                submission = validate_submission(
                    {"url": url, "userId": user_id, "targetKeyword": keyword}
                )
            except SubmissionValidationError as e:
                print(f"ERROR: {e}")
                return None

            run_id = generate_run_id()
            create_report(run_id, submission.user_id, submission.url, submission.target_keyword)

            print(f"\n{'='*70}")
            print("SEO GAP ANALYZER - LOCAL RUN")
            print(f"{'='*70}")
            print(f"Run ID:       {run_id}")
            print(f"URL:          {submission.url}")
            print(f"Keyword:      {submission.target_keyword}")
            print(f"{'='*70}\n")

            record = await pipeline.run(run_id, submission.url, submission.target_keyword)

        if clients.claude:
            usage = clients.claude.get_usage_summary()
            logger.info(f"Claude usage: {usage}")

    if record is None:
        print("ERROR: Report not found")
        return None

    duration = (datetime.now() - start_time).total_seconds()

    print(f"\n{'='*70}")
    print(f"Run ID:       {record['runId']}")
    print(f"Status:       {record['status']}")
    if record.get("errorMessage"):
        print(f"Error:        {record['errorMessage']}")
    if record.get("score") is not None:
        print(f"Score:        {record['score']}/100")
    if record.get("googleRanking"):
        print(f"Ranking:      {record['googleRanking'].get('rank') or 'not found'}")
    print(f"Duration:     {duration:.1f}s")
    print(f"{'='*70}")

    if html_path and record.get("reportData"):
        Path(html_path).write_text(
            ReportBuilder().build(record, record["reportData"]), encoding="utf-8"
        )
        print(f"HTML report written to {html_path}")

    return record


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Run the SEO gap analysis locally, without payment"
    )
    parser.add_argument("url", nargs="?", help="Page to analyze (e.g., https://example.com)")
    parser.add_argument("keyword", nargs="?", help="Target keyword")
    parser.add_argument("--user-id", default="local", help="Owner recorded on the report")
    parser.add_argument("--resume", default=None, help="Resume an existing run id")
    parser.add_argument("--html", default=None, help="Write the HTML report to this path")

    args = parser.parse_args()

    if not args.resume and not (args.url and args.keyword):
        parser.error("url and keyword are required unless --resume is given")

    record = asyncio.run(run_analysis(
        url=args.url,
        keyword=args.keyword,
        user_id=args.user_id,
        resume_run_id=args.resume,
        html_path=args.html,
    ))

    sys.exit(0 if record and record["status"] == "completed" else 1)


if __name__ == "__main__":
    main()
