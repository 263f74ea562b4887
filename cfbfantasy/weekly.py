"""Weekly aggregation: score every completed game of a week into school_weekly_points."""

import logging
from typing import Iterable, Optional

from .calendar import is_game_week
from .classifier import is_conference_game
from .constants import STATUS_COMPLETED, WEEK_HEISMAN
from .errors import NotFoundError, StoreError
from .models import Game, WeekAggregationResult
from .schemas import ScoringRuleSet
from .scoring import opponent_rank_for, score_game
from .store import Store
from .validators import validate_game_for_scoring

logger = logging.getLogger('cfbfantasy.weekly')


def get_season(store: Store, season_id: str) -> dict:
    """Fetch a season row or raise NotFoundError."""
    season = store.select_one('seasons', {'id': season_id})
    if season is None:
        raise NotFoundError(f'Season {season_id} not found')
    return season


def load_poll_ranks(store: Store, season_id: str, week_number: int) -> dict[str, int]:
    """
    Load the AP poll for a week as school id -> rank.

    Playoff weeks usually have no poll of their own; in that case the most
    recent earlier week's poll is used.
    """
    rows = store.select('ap_rankings_history', {'season_id': season_id, 'week_number': week_number})

    if not rows:
        earlier = [
            r for r in store.select('ap_rankings_history', {'season_id': season_id})
            if r['week_number'] < week_number
        ]
        if earlier:
            latest_week = max(r['week_number'] for r in earlier)
            rows = [r for r in earlier if r['week_number'] == latest_week]
            logger.debug(f'No AP poll for week {week_number}, using week {latest_week}')

    return {r['school_id']: r['rank'] for r in rows}


def load_conferences(store: Store, school_ids: Iterable[str]) -> dict[str, Optional[str]]:
    """Map school id -> conference name for the given schools."""
    school_ids = sorted(set(school_ids))
    if not school_ids:
        return {}
    return {s['id']: s['conference'] for s in store.select('schools', {'id': school_ids})}


def aggregate_week(
    store: Store,
    season_id: str,
    week_number: int,
    rules: ScoringRuleSet,
) -> WeekAggregationResult:
    """
    Score all completed games of a season week.

    Existing school_weekly_points rows for the week are deleted first, then
    one row is written per (school, game), so re-running with the same games
    produces the same rows. A failure on one row is recorded in the result's
    errors and the remaining rows are still written.

    Args:
        store: Relational store
        season_id: Season id
        week_number: Week to aggregate (0-22; week 22 has no games)
        rules: Scoring rules applied to every school

    Returns:
        WeekAggregationResult with the number of rows written and any errors

    Raises:
        NotFoundError: If the season doesn't exist
    """
    result = WeekAggregationResult()
    get_season(store, season_id)

    if not is_game_week(week_number):
        if week_number != WEEK_HEISMAN:
            result.errors.append(f'Week {week_number} is outside the season')
        logger.debug(f'Week {week_number} has no games to score')
        return result

    games = [
        Game.from_row(row)
        for row in store.select(
            'games',
            {'season_id': season_id, 'week_number': week_number, 'status': STATUS_COMPLETED},
        )
    ]
    if not games:
        logger.info(f'No completed games for week {week_number}')
        return result

    poll_ranks = load_poll_ranks(store, season_id, week_number)
    conferences = load_conferences(store, (s for g in games for s in g.participants))

    try:
        store.delete('school_weekly_points', {'season_id': season_id, 'week_number': week_number})
    except StoreError as e:
        logger.error(f'Failed to clear week {week_number} points: {e}')
        result.errors.append(f'Failed to clear existing points for week {week_number}: {e}')
        return result

    for game in games:
        problems = validate_game_for_scoring(game)
        if problems:
            for problem in problems:
                logger.warning(problem)
            result.errors.extend(problems)
            continue

        game.is_conference_game = is_conference_game(
            game.home_school_id, game.away_school_id, conferences
        )

        for school_id in game.participants:
            try:
                opponent_rank = opponent_rank_for(game, school_id, poll_ranks)
                breakdown = score_game(game, school_id, opponent_rank, game.is_bowl_game, rules)
                store.insert_batch('school_weekly_points', [breakdown.to_row()])
                result.calculated += 1
            except (ValueError, StoreError) as e:
                logger.error(f'Failed to score school {school_id} in game {game.id}: {e}')
                result.errors.append(f'Failed to insert points for school {school_id} in game {game.id}: {e}')

    logger.info(f'Week {week_number}: {result.calculated} school rows, {len(result.errors)} errors')
    return result


def school_week_totals(
    store: Store,
    season_id: str,
    week_number: int,
    school_ids: Optional[Iterable[str]] = None,
) -> dict[str, float]:
    """
    Sum each school's points for a week across all of its game rows.

    A school can play more than one game in a week, so never assume a
    single row per (school, week).

    Returns:
        school id -> total points for the week
    """
    filters = {'season_id': season_id, 'week_number': week_number}
    if school_ids is not None:
        filters['school_id'] = list(school_ids)
        if not filters['school_id']:
            return {}

    totals: dict[str, float] = {}
    for row in store.select('school_weekly_points', filters):
        totals[row['school_id']] = totals.get(row['school_id'], 0.0) + (row['total_points'] or 0)
    return totals
