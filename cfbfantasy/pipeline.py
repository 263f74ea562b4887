"""Points calculation pipeline and trigger surface.

Stages must run in order for a week: weekly school points, then event
bonuses (postseason weeks), then fantasy team aggregation. Each stage
commits its own writes; re-running the whole pipeline is always safe.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Union

from .calendar import is_postseason, season_year_for, week_for
from .constants import MAX_WEEK, WEEK_ZERO
from .errors import NotFoundError
from .event_bonuses import apply_event_bonuses, get_league
from .models import CalculationResult, ReconciliationResult, SeasonCalculationResult
from .reconcile import reconcile
from .schemas import AppConfig, CalculateRequest, ScoringRuleSet
from .store import Store
from .team_points import aggregate_team_week
from .weekly import aggregate_week

logger = logging.getLogger('cfbfantasy.pipeline')


def get_season_by_year(store: Store, year: int) -> dict:
    """Fetch the season for a year or raise NotFoundError."""
    season = store.select_one('seasons', {'year': year})
    if season is None:
        raise NotFoundError(f'Season {year} not found')
    return season


def _run_league_stages(store: Store, league_id: str, season_id: str, week: int, result: CalculationResult) -> None:
    if is_postseason(week):
        bonus_result = apply_event_bonuses(store, season_id, league_id)
        result.bonuses_written += len(bonus_result.bonuses)
        result.errors.extend(bonus_result.errors)

    team_result = aggregate_team_week(store, league_id, week)
    result.teams_updated += team_result.teams_updated
    result.errors.extend(team_result.errors)
    result.leagues_processed += 1


def calculate_all_points(
    store: Store,
    season_id: str,
    week: int,
    rules: ScoringRuleSet,
) -> CalculationResult:
    """
    Run every stage for one week across all leagues in a season.

    Raises:
        NotFoundError: If the season doesn't exist
    """
    result = CalculationResult()

    weekly = aggregate_week(store, season_id, week, rules)
    result.school_points_calculated = weekly.calculated
    result.errors.extend(weekly.errors)

    for league in store.select('leagues', {'season_id': season_id}):
        _run_league_stages(store, league['id'], season_id, week, result)

    logger.info(
        f'Week {week}: {result.school_points_calculated} school rows, '
        f'{result.leagues_processed} leagues, {result.teams_updated} teams'
    )
    return result


def calculate_league_points(
    store: Store,
    league_id: str,
    week: int,
    rules: ScoringRuleSet,
) -> CalculationResult:
    """
    Run every stage for one week, limited to a single league.

    School points are global, so the whole season week is re-scored first.

    Raises:
        NotFoundError: If the league or its season doesn't exist
    """
    league = get_league(store, league_id)
    result = CalculationResult()

    weekly = aggregate_week(store, league['season_id'], week, rules)
    result.school_points_calculated = weekly.calculated
    result.errors.extend(weekly.errors)

    _run_league_stages(store, league_id, league['season_id'], week, result)
    return result


def calculate_season_points(
    store: Store,
    season_id: str,
    rules: ScoringRuleSet,
    start_week: int = WEEK_ZERO,
    end_week: int = MAX_WEEK,
) -> SeasonCalculationResult:
    """Backfill every week from start_week to end_week (inclusive)."""
    result = SeasonCalculationResult()
    for week in range(start_week, end_week + 1):
        week_result = calculate_all_points(store, season_id, week, rules)
        result.weeks_processed += 1
        result.total_school_points += week_result.school_points_calculated
        result.total_teams_updated += week_result.teams_updated
        result.errors.extend(week_result.errors)
    return result


def run_calculation(
    store: Store,
    request: CalculateRequest,
    config: AppConfig,
    now: Optional[datetime] = None,
) -> Union[CalculationResult, SeasonCalculationResult]:
    """
    Handle an on-demand calculation request.

    Args:
        store: Relational store
        request: Validated request (year and week default to the current ones)
        config: Application config supplying the scoring rules
        now: Current time (default: now, UTC)

    Returns:
        CalculationResult for week/league mode, SeasonCalculationResult for season mode

    Raises:
        NotFoundError: If the season or league doesn't exist
    """
    now = now or datetime.now(timezone.utc)
    year = request.year or season_year_for(now)
    season = get_season_by_year(store, year)
    week = request.week if request.week is not None else week_for(now, year)

    logger.info(f'Calculation request: mode={request.mode} year={year} week={week}')

    if request.mode == 'season':
        return calculate_season_points(
            store, season['id'], config.scoring, request.start_week, request.end_week
        )
    if request.mode == 'league':
        league = get_league(store, request.league_id)
        if league['season_id'] != season['id']:
            raise NotFoundError(f'League {request.league_id} is not in season {year}')
        return calculate_league_points(store, request.league_id, week, config.scoring)
    return calculate_all_points(store, season['id'], week, config.scoring)


def run_nightly_reconciliation(store: Store, config: AppConfig) -> ReconciliationResult:
    """Nightly drift repair for every team and league."""
    return reconcile(store, epsilon=config.reconcile_epsilon)
