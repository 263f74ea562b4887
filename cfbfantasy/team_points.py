"""Fantasy team aggregation: roll rostered schools' points up into team-week rows."""

import logging
from datetime import datetime, timezone
from typing import Iterable, Mapping

from .errors import StoreError
from .event_bonuses import get_league, load_league_settings
from .models import TeamWeekResult
from .schemas import LeagueSettings
from .store import Store
from .validators import validate_roster_periods
from .weekly import school_week_totals

logger = logging.getLogger('cfbfantasy.team_points')

# Team totals closer than this are considered equal
POINTS_TOLERANCE = 1e-9


def is_active(period: Mapping, week_number: int) -> bool:
    """A school counts for week W if start_week <= W and (end_week is None or end_week > W)."""
    end_week = period.get('end_week')
    return period['start_week'] <= week_number and (end_week is None or end_week > week_number)


def active_school_ids(periods: Iterable[Mapping], team_id: str, week_number: int) -> list[str]:
    """Schools on a team's roster for a week, in roster order without duplicates."""
    schools = []
    for period in periods:
        if period['fantasy_team_id'] == team_id and is_active(period, week_number):
            if period['school_id'] not in schools:
                schools.append(period['school_id'])
    return schools


def determine_high_points_winners(
    points_by_team: Mapping[str, float],
    settings: LeagueSettings,
) -> list[str]:
    """
    Determine the week's high-points winners.

    Every team with the week's max points is a candidate. When ties are
    allowed all candidates win and each is paid the full amount; when they
    aren't, a tie means nobody wins that week.

    Args:
        points_by_team: team id -> points for the week
        settings: League settings (high_points_enabled, high_points_allow_ties)

    Returns:
        Winning team ids (empty if nobody wins)
    """
    if not settings.high_points_enabled or not points_by_team:
        return []

    max_points = max(points_by_team.values())
    leaders = [
        team_id for team_id, points in points_by_team.items()
        if abs(points - max_points) <= POINTS_TOLERANCE
    ]

    if len(leaders) == 1 or settings.high_points_allow_ties:
        return leaders
    return []


def refresh_team_totals(store: Store, team_ids: Iterable[str]) -> list[str]:
    """
    Recompute cached total_points and high_points_winnings for teams.

    Returns:
        List of error messages
    """
    errors = []
    now = datetime.now(timezone.utc)
    for team_id in team_ids:
        try:
            rows = store.select('fantasy_team_weekly_points', {'fantasy_team_id': team_id})
            store.update(
                'fantasy_teams',
                {
                    'total_points': sum(r['points'] or 0 for r in rows),
                    'high_points_winnings': sum(
                        r['high_points_amount'] or 0 for r in rows if r['is_high_points_winner']
                    ),
                    'updated_at': now,
                },
                {'id': team_id},
            )
        except StoreError as e:
            logger.error(f'Failed to refresh totals for team {team_id}: {e}')
            errors.append(f'Failed to refresh totals for team {team_id}: {e}')
    return errors


def aggregate_team_week(store: Store, league_id: str, week_number: int) -> TeamWeekResult:
    """
    Compute every fantasy team's points for a week in one league.

    A team's week total is the sum of its active schools' game points for
    the week plus the league's event bonuses for those schools. With double
    points enabled, the school a team picked for the week has its game
    points counted twice; event bonuses are never doubled.

    Team-week rows are upserted first, then high-points winners are decided
    across all teams in a second pass.

    Args:
        store: Relational store
        league_id: League id
        week_number: Week to aggregate

    Returns:
        TeamWeekResult

    Raises:
        NotFoundError: If the league doesn't exist
    """
    result = TeamWeekResult()

    league = get_league(store, league_id)
    season_id = league['season_id']
    settings = load_league_settings(store, league_id)

    teams = store.select('fantasy_teams', {'league_id': league_id})
    if not teams:
        logger.info(f'League {league_id} has no teams')
        return result
    team_ids = [t['id'] for t in teams]

    periods = store.select('roster_periods', {'fantasy_team_id': team_ids})
    for problem in validate_roster_periods(periods):
        logger.warning(problem)

    rostered = {team_id: active_school_ids(periods, team_id, week_number) for team_id in team_ids}
    all_schools = {s for schools in rostered.values() for s in schools}

    school_points = school_week_totals(store, season_id, week_number, all_schools)

    event_points: dict[str, float] = {}
    for row in store.select(
        'league_school_event_bonuses',
        {'league_id': league_id, 'season_id': season_id, 'week_number': week_number},
    ):
        event_points[row['school_id']] = event_points.get(row['school_id'], 0.0) + row['points']

    double_picks = {}
    if settings.double_points_enabled:
        for pick in store.select(
            'weekly_double_picks', {'fantasy_team_id': team_ids, 'week_number': week_number}
        ):
            double_picks[pick['fantasy_team_id']] = pick['school_id']

    # First pass: team totals
    for team_id in team_ids:
        schools = rostered[team_id]
        points = sum(school_points.get(s, 0.0) for s in schools)
        points += sum(event_points.get(s, 0.0) for s in schools)

        picked = double_picks.get(team_id)
        if picked in schools:
            points += school_points.get(picked, 0.0)

        try:
            store.upsert(
                'fantasy_team_weekly_points',
                {'fantasy_team_id': team_id, 'week_number': week_number, 'points': points},
                conflict_keys=('fantasy_team_id', 'week_number'),
            )
            if picked in schools:
                store.update(
                    'weekly_double_picks',
                    {
                        'points_earned': school_points.get(picked, 0.0),
                        'bonus_points': school_points.get(picked, 0.0),
                    },
                    {'fantasy_team_id': team_id, 'week_number': week_number},
                )
        except StoreError as e:
            logger.error(f'Failed to write week {week_number} points for team {team_id}: {e}')
            result.errors.append(f'Failed to write weekly points for team {team_id}: {e}')
            continue

        result.points_by_team[team_id] = points
        result.teams_updated += 1

    # Second pass: high points
    winners = determine_high_points_winners(result.points_by_team, settings)
    result.high_points_winners = winners
    result.high_points_winner = winners[0] if winners else None

    for team_id in result.points_by_team:
        is_winner = team_id in winners
        try:
            store.update(
                'fantasy_team_weekly_points',
                {
                    'is_high_points_winner': is_winner,
                    'high_points_amount': settings.high_points_weekly_amount if is_winner else 0,
                },
                {'fantasy_team_id': team_id, 'week_number': week_number},
            )
        except StoreError as e:
            logger.error(f'Failed to set high points for team {team_id}: {e}')
            result.errors.append(f'Failed to set high points for team {team_id}: {e}')

    result.errors.extend(refresh_team_totals(store, team_ids))

    if winners:
        logger.info(f'League {league_id} week {week_number} high points: {", ".join(winners)}')
    return result
