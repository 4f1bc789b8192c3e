#!/usr/bin/env python3
"""
Print a summary of report records.

Usage:
    python scripts/inspect_reports.py seo_1700000000000_abc123xyz [...]
    python scripts/inspect_reports.py --recent 5
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


def summarize(record: dict) -> None:
    from src.pipeline.progress import completed_steps, compute_progress

    print(f"\n{'='*70}")
    print(f"Run ID:       {record['runId']}")
    print(f"User:         {record['userId']}")
    print(f"URL:          {record['userUrl']}")
    print(f"Keyword:      {record['targetKeyword']}")
    print(f"Status:       {record['status']} ({compute_progress(record)}%)")
    print(f"Created:      {record['createdAt']}")
    if record.get("completedAt"):
        print(f"Completed:    {record['completedAt']}")
    if record.get("errorMessage"):
        print(f"Error:        {record['errorMessage']}")
    if record.get("score") is not None:
        print(f"Score:        {record['score']}/100")
    if record.get("googleRanking"):
        print(f"Ranking:      {json.dumps(record['googleRanking'])}")
    if record.get("paymentTxHash"):
        print(f"Payment:      {record['paymentTxHash']} from {record.get('paymentPayer')}")

    print("Stages:")
    for step, done in completed_steps(record).items():
        print(f"  [{'x' if done else ' '}] {step}")

    if record.get("gaps"):
        print(f"Gaps:         {len(record['gaps'])}")
    if record.get("competitorData") is not None:
        print(f"Competitors:  {len(record['competitorData'])}")


def main():
    parser = argparse.ArgumentParser(description="Inspect SEO report records")
    parser.add_argument("run_ids", nargs="*", help="Run ids to show")
    parser.add_argument("--recent", type=int, default=0, help="Show the N most recent reports")
    args = parser.parse_args()

    if not args.run_ids and not args.recent:
        parser.error("give run ids or --recent N")

    load_dotenv()

    from src.database import get_report, init_db, list_recent_reports

    init_db()

    records = list_recent_reports(args.recent) if args.recent else []
    missing = 0
    for run_id in args.run_ids:
        record = get_report(run_id)
        if record is None:
            print(f"\n{run_id}: not found")
            missing += 1
        else:
            records.append(record)

    for record in records:
        summarize(record)

    sys.exit(1 if missing else 0)


if __name__ == "__main__":
    main()
