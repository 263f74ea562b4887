"""Season totals reconciliation: repair cached team aggregates from the weekly rows.

Run nightly, independently of the per-week aggregators. Whatever the
weekly rows say is the truth; cached values that drift from it are
overwritten and counted, never raised.
"""

import logging
from collections import defaultdict

import polars as pl

from .constants import RECONCILE_EPSILON
from .errors import StoreError
from .event_bonuses import load_league_settings
from .models import ReconciliationResult
from .store import Store
from .team_points import determine_high_points_winners

logger = logging.getLogger('cfbfantasy.reconcile')

WEEKLY_SCHEMA = {
    'fantasy_team_id': pl.Utf8,
    'points': pl.Float64,
    'is_high_points_winner': pl.Boolean,
    'high_points_amount': pl.Float64,
}


def weekly_totals_frame(rows: list[dict]) -> pl.DataFrame:
    """
    Sum fantasy_team_weekly_points rows per team.

    Returns:
        DataFrame with fantasy_team_id, total_points, high_points_winnings
    """
    frame = pl.DataFrame(
        {column: [row.get(column) for row in rows] for column in WEEKLY_SCHEMA},
        schema=WEEKLY_SCHEMA,
    )
    return frame.group_by('fantasy_team_id').agg(
        pl.col('points').fill_null(0.0).sum().alias('total_points'),
        pl.when(pl.col('is_high_points_winner').fill_null(False))
        .then(pl.col('high_points_amount').fill_null(0.0))
        .otherwise(0.0)
        .sum()
        .alias('high_points_winnings'),
    )


def _reconcile_high_point_flags(store: Store, epsilon: float, result: ReconciliationResult) -> None:
    for league in store.select('leagues'):
        settings = load_league_settings(store, league['id'])
        if not settings.high_points_enabled:
            continue

        team_ids = [t['id'] for t in store.select('fantasy_teams', {'league_id': league['id']})]
        if not team_ids:
            continue

        by_week = defaultdict(list)
        for row in store.select('fantasy_team_weekly_points', {'fantasy_team_id': team_ids}):
            by_week[row['week_number']].append(row)

        for week_number, rows in sorted(by_week.items()):
            points_by_team = {r['fantasy_team_id']: r['points'] or 0 for r in rows}
            winners = set(determine_high_points_winners(points_by_team, settings))

            for row in rows:
                should_win = row['fantasy_team_id'] in winners
                expected_amount = settings.high_points_weekly_amount if should_win else 0
                flag_wrong = bool(row['is_high_points_winner']) != should_win
                amount_wrong = abs((row['high_points_amount'] or 0) - expected_amount) > epsilon
                if not flag_wrong and not amount_wrong:
                    continue

                logger.info(
                    f'Week {week_number}: fixing high points for team {row["fantasy_team_id"]} '
                    f'({row["is_high_points_winner"]}/{row["high_points_amount"]} -> '
                    f'{should_win}/{expected_amount})'
                )
                try:
                    store.update(
                        'fantasy_team_weekly_points',
                        {'is_high_points_winner': should_win, 'high_points_amount': expected_amount},
                        {'id': row['id']},
                    )
                    result.high_points_fixed += 1
                except StoreError as e:
                    result.errors.append(f'Failed to update high points for entry {row["id"]}: {e}')


def _reconcile_team_totals(store: Store, epsilon: float, result: ReconciliationResult) -> None:
    teams = store.select('fantasy_teams')
    if not teams:
        return

    rows = store.select('fantasy_team_weekly_points', {'fantasy_team_id': [t['id'] for t in teams]})
    totals = {r['fantasy_team_id']: r for r in weekly_totals_frame(rows).iter_rows(named=True)}

    for team in teams:
        expected = totals.get(team['id'], {})
        expected_total = expected.get('total_points', 0.0)
        expected_winnings = expected.get('high_points_winnings', 0.0)

        if abs(expected_total - (team['total_points'] or 0)) > epsilon:
            logger.info(
                f'Team {team["id"]}: total_points {team["total_points"]} -> {expected_total}'
            )
            try:
                store.update('fantasy_teams', {'total_points': expected_total}, {'id': team['id']})
                result.team_points_fixed += 1
            except StoreError as e:
                result.errors.append(f'Failed to update total_points for team {team["id"]}: {e}')

        if abs(expected_winnings - (team['high_points_winnings'] or 0)) > epsilon:
            logger.info(
                f'Team {team["id"]}: high_points_winnings {team["high_points_winnings"]} -> {expected_winnings}'
            )
            try:
                store.update(
                    'fantasy_teams', {'high_points_winnings': expected_winnings}, {'id': team['id']}
                )
                result.high_points_fixed += 1
            except StoreError as e:
                result.errors.append(f'Failed to update high_points_winnings for team {team["id"]}: {e}')


def reconcile(store: Store, epsilon: float = RECONCILE_EPSILON) -> ReconciliationResult:
    """
    Re-derive cached team aggregates and high-points flags, fixing any drift.

    High-points winner flags and amounts are corrected first so the totals
    pass sums the corrected amounts; one run converges.

    Args:
        store: Relational store
        epsilon: Differences at or below this are not drift

    Returns:
        ReconciliationResult with the number of fixes and any errors
    """
    result = ReconciliationResult()
    logger.info('Starting reconciliation')

    try:
        _reconcile_high_point_flags(store, epsilon, result)
    except StoreError as e:
        logger.error(f'High points reconciliation failed: {e}')
        result.errors.append(f'High points reconciliation failed: {e}')

    try:
        _reconcile_team_totals(store, epsilon, result)
    except StoreError as e:
        logger.error(f'Team totals reconciliation failed: {e}')
        result.errors.append(f'Team totals reconciliation failed: {e}')

    logger.info(
        f'Reconciliation complete: {result.team_points_fixed} totals fixed, '
        f'{result.high_points_fixed} high points fixed, {len(result.errors)} errors'
    )
    return result
