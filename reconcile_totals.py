#!/usr/bin/env python3
"""
Nightly reconciliation CLI

Recomputes every fantasy team's cached totals and every league's weekly
high-points winners from the weekly rows, fixing anything that drifted.

Usage:
    python reconcile_totals.py
    python reconcile_totals.py --log-dir logs/nightly
"""

import argparse
import logging
import sys
from pathlib import Path

from cfbfantasy.config import get_config
from cfbfantasy.errors import CFBFantasyError
from cfbfantasy.logging_config import setup_logging
from cfbfantasy.pipeline import run_nightly_reconciliation
from cfbfantasy.store import Store


def main():
    parser = argparse.ArgumentParser(description="Reconcile cached fantasy team totals")
    parser.add_argument(
        "--log-dir",
        default=None,
        help="Directory for the run's log file (default: ./logs)",
    )
    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help="Log to the console only",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logger = setup_logging(
        log_dir=Path(args.log_dir) if args.log_dir else None,
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_to_file=not args.no_log_file,
        job="reconcile",
    )

    try:
        config = get_config()
        store = Store.from_url(config.database_url)
        result = run_nightly_reconciliation(store, config)
    except (CFBFantasyError, FileNotFoundError) as e:
        logger.error(str(e))
        print(f"❌ {e}")
        sys.exit(1)

    print(f"Team totals fixed: {result.team_points_fixed}")
    print(f"High points fixed: {result.high_points_fixed}")
    if result.errors:
        print(f"⚠️  {len(result.errors)} errors:")
        for error in result.errors:
            print(f"   - {error}")
        sys.exit(1)


if __name__ == "__main__":
    main()
