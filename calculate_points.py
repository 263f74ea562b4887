#!/usr/bin/env python3
"""
CFB Fantasy points calculator CLI

Scores completed games into school points, applies postseason event
bonuses and rolls everything up into fantasy team weekly points.

Usage:
    python calculate_points.py --year 2025 --week 5
    python calculate_points.py --year 2025 --mode season --start-week 0 --end-week 22
    python calculate_points.py --year 2025 --week 18 --mode league --league-id <id>
"""

import argparse
import dataclasses
import logging
import sys

from pydantic import ValidationError

from cfbfantasy.config import get_config
from cfbfantasy.errors import CFBFantasyError
from cfbfantasy.logging_config import setup_logging
from cfbfantasy.pipeline import run_calculation
from cfbfantasy.schemas import CalculateRequest
from cfbfantasy.store import Store
from cfbfantasy.utils import save_json


def main():
    parser = argparse.ArgumentParser(description="CFB Fantasy points calculator")
    parser.add_argument(
        "--year", "-y",
        type=int,
        default=None,
        help="Season year (defaults to the current season)",
    )
    parser.add_argument(
        "--week", "-w",
        type=int,
        default=None,
        help="Week number 0-22 (defaults to the current week)",
    )
    parser.add_argument(
        "--mode", "-m",
        choices=["week", "season", "league"],
        default="week",
        help="week: all leagues; season: backfill a range of weeks; league: one league",
    )
    parser.add_argument("--league-id", default=None, help="League id (league mode)")
    parser.add_argument("--start-week", type=int, default=0, help="First week (season mode)")
    parser.add_argument("--end-week", type=int, default=22, help="Last week (season mode)")
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Write the result summary to this JSON file",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log warnings and errors",
    )

    args = parser.parse_args()

    logger = setup_logging(
        level=logging.WARNING if args.quiet else logging.INFO,
        log_to_file=False,
        job="calculate",
    )

    try:
        request = CalculateRequest(
            year=args.year,
            week=args.week,
            mode=args.mode,
            league_id=args.league_id,
            start_week=args.start_week,
            end_week=args.end_week,
        )
    except ValidationError as e:
        print(f"❌ Invalid request: {e}")
        sys.exit(2)

    try:
        config = get_config()
        store = Store.from_url(config.database_url)
        result = run_calculation(store, request, config)
    except (CFBFantasyError, FileNotFoundError) as e:
        logger.error(str(e))
        print(f"❌ {e}")
        sys.exit(1)

    summary = dataclasses.asdict(result)
    for key, value in summary.items():
        if key != "errors":
            print(f"  {key}: {value}")

    if result.errors:
        print(f"⚠️  {len(result.errors)} errors:")
        for error in result.errors:
            print(f"   - {error}")

    if args.output:
        save_json(args.output, summary)
        print(f"Summary saved: {args.output}")


if __name__ == "__main__":
    main()
