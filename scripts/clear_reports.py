#!/usr/bin/env python3
"""
Delete every report record.

Usage:
    python scripts/clear_reports.py          # asks for confirmation
    python scripts/clear_reports.py --yes    # no prompt
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Delete all SEO report records")
    parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    args = parser.parse_args()

    load_dotenv()

    from src.database import clear_reports, init_db
    from src.database.session import get_database_url

    init_db()
    url = get_database_url()
    target = url.split("@")[-1] if "@" in url else url

    if not args.yes:
        answer = input(f"Delete ALL reports in {target}? Type 'yes' to continue: ")
        if answer.strip().lower() != "yes":
            print("Aborted.")
            return

    deleted = clear_reports()
    print(f"Deleted {deleted} reports.")


if __name__ == "__main__":
    main()
