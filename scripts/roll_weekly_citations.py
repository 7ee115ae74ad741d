#!/usr/bin/env python3
"""
Weekly Citation Rollover

Moves every site's citations_this_week into citations_last_week and resets
the current week to 0. Schedule it for Sunday 00:00 (UTC):

    0 0 * * 0  cd /app && python scripts/roll_weekly_citations.py

Usage:
    # Uses DATABASE_URL (or the SQLite fallback) from the environment / .env
    python scripts/roll_weekly_citations.py

    # Create tables first on a fresh database:
    python scripts/roll_weekly_citations.py --init-db
"""

import argparse
import logging
import sys
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


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Roll weekly citation counters for all sites"
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create missing tables before rolling over",
    )
    args = parser.parse_args()

    load_dotenv()

    from geopulse.database import init_db, roll_weekly_citations

    if args.init_db:
        init_db()

    try:
        count = roll_weekly_citations()
    except Exception as e:
        logger.error(f"Weekly rollover failed: {e}")
        sys.exit(1)

    print(f"Rolled over {count} sites")


if __name__ == "__main__":
    main()
