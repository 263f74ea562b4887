#!/usr/bin/env python3
"""
Upstream sync CLI

Pulls games, AP rankings and team ids from ESPN into the store, runs the
gameday live-score poll (which only does anything around kickoffs), and
records the season's Heisman winner.

Usage:
    python sync_games.py games --year 2025 --week 5
    python sync_games.py games --year 2025 --week 1 --postseason
    python sync_games.py games --year 2025 --all
    python sync_games.py rankings --year 2025 --week 5
    python sync_games.py gameday
    python sync_games.py schools
    python sync_games.py heisman --year 2025 --school "Ohio State" --player "Jane Doe"
"""

import argparse
import logging
import sys

from cfbfantasy.config import get_config
from cfbfantasy.constants import SEASON_TYPE_POSTSEASON, SEASON_TYPE_REGULAR
from cfbfantasy.data_fetcher import ESPNClient
from cfbfantasy.errors import CFBFantasyError
from cfbfantasy.event_bonuses import find_school, record_heisman_winner
from cfbfantasy.game_sync import (
    gameday_sync,
    sync_rankings,
    sync_schools,
    sync_season_games,
    sync_week_games,
)
from cfbfantasy.logging_config import setup_logging
from cfbfantasy.pipeline import get_season_by_year
from cfbfantasy.store import Store


def print_result(label: str, result) -> None:
    print(f"{label}: {result.synced} synced, {result.skipped} skipped")
    for error in result.errors:
        print(f"   - {error}")


def main():
    parser = argparse.ArgumentParser(description="Sync CFB games and rankings from ESPN")
    parser.add_argument("--init-db", action="store_true", help="Create missing tables first")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    games = subparsers.add_parser("games", help="Sync games for a week or a whole season")
    games.add_argument("--year", "-y", type=int, required=True, help="Season year")
    games.add_argument("--week", "-w", type=int, default=None, help="Upstream week number")
    games.add_argument("--postseason", action="store_true", help="Week is an upstream postseason week")
    games.add_argument("--all", action="store_true", help="Backfill every week of the season")

    rankings = subparsers.add_parser("rankings", help="Store the current AP poll for a week")
    rankings.add_argument("--year", "-y", type=int, required=True, help="Season year")
    rankings.add_argument("--week", "-w", type=int, required=True, help="Season week to store the poll as")

    subparsers.add_parser("gameday", help="Poll live scores while games are in their kickoff window")

    subparsers.add_parser("schools", help="Link schools to ESPN team ids, abbreviations and logos")

    heisman = subparsers.add_parser("heisman", help="Record the season's Heisman winner")
    heisman.add_argument("--year", "-y", type=int, required=True, help="Season year")
    heisman.add_argument("--school", "-s", required=True, help="School name or abbreviation")
    heisman.add_argument("--player", "-p", required=True, help="Winner's name")

    args = parser.parse_args()

    logger = setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_to_file=False,
        job="sync",
    )

    try:
        config = get_config()
        store = Store.from_url(config.database_url, create_schema=args.init_db)
        client = ESPNClient.from_config(config)

        if args.command == "gameday":
            result = gameday_sync(store, client, config)
            if not result.polled:
                print(f"Skipped: {result.reason}")
                return
            print(f"Updated {result.games_updated} games ({result.games_completed} completed)")
            if result.recalculated:
                print("Week points recalculated")
            for error in result.errors:
                print(f"   - {error}")
            return

        if args.command == "schools":
            print_result("Schools", sync_schools(store, client))
            return

        season = get_season_by_year(store, args.year)

        if args.command == "heisman":
            school = find_school(store, args.school)
            record_heisman_winner(store, season["id"], school["id"], args.player)
            print(f"Heisman {args.year}: {args.player} ({school['name']})")
            print("Run calculate_points.py to pay the Heisman bonus")
            return

        if args.command == "rankings":
            print_result(f"Rankings week {args.week}", sync_rankings(store, client, season["id"], args.year, args.week))
            return

        if args.all:
            print_result(f"Season {args.year}", sync_season_games(store, client, season["id"], args.year))
            return
        if args.week is None:
            parser.error("games requires --week or --all")

        season_type = SEASON_TYPE_POSTSEASON if args.postseason else SEASON_TYPE_REGULAR
        result = sync_week_games(store, client, season["id"], args.year, args.week, season_type)
        print_result(f"Week {args.week}", result)
    except (CFBFantasyError, FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        print(f"❌ {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
