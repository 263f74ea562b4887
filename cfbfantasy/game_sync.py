"""Sync upstream games and rankings into the store, and the gameday live-score poll."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from .calendar import (
    as_utc,
    is_game_week,
    postseason_target_week,
    season_year_for,
    week_for,
)
from .classifier import classify_game
from .constants import (
    GAME_STATE_STATUS,
    MAX_GAME_WEEK,
    PLAYOFF_ROUND_WEEKS,
    STATUS_COMPLETED,
    STATUS_LIVE,
    STATUS_SCHEDULED,
    SEASON_TYPE_POSTSEASON,
    SEASON_TYPE_REGULAR,
    WEEK_BOWLS,
    WEEK_RIVALRY,
)
from .data_fetcher import ESPNClient, GameResult
from .errors import StoreError, UpstreamError
from .models import GamedayResult, SyncResult
from .pipeline import calculate_all_points, get_season_by_year
from .schemas import AppConfig
from .store import Store

logger = logging.getLogger('cfbfantasy.game_sync')

# Upstream postseason weeks synced by a season backfill
POSTSEASON_UPSTREAM_WEEKS = range(1, 6)


def load_school_maps(store: Store) -> tuple[dict[str, str], dict[str, Optional[str]]]:
    """(upstream team id -> school id, school id -> conference)."""
    external_ids = {}
    conferences = {}
    for school in store.select('schools'):
        conferences[school['id']] = school['conference']
        if school['external_api_id']:
            external_ids[str(school['external_api_id'])] = school['id']
    return external_ids, conferences


def game_row(
    game: GameResult,
    season_id: str,
    week_number: int,
    external_ids: dict,
    conferences: dict,
    postseason: bool,
) -> Optional[dict]:
    """
    Build a games row from an upstream result.

    Postseason games are placed by what they are rather than by the upstream
    week they were listed in: playoff games go to their round's week, other
    bowls to the bowl week. Anything else keeps `week_number`.

    Returns None when neither team is a known FBS school.
    """
    home_school_id = external_ids.get(game.home_team_id)
    away_school_id = external_ids.get(game.away_team_id)
    if not home_school_id and not away_school_id:
        return None

    classification = classify_game(
        game.headline, home_school_id, away_school_id, conferences, postseason=postseason
    )
    if postseason:
        if classification.is_playoff_game:
            week_number = PLAYOFF_ROUND_WEEKS[classification.playoff_round]
        elif classification.is_bowl_game:
            week_number = WEEK_BOWLS
    return {
        'season_id': season_id,
        'external_id': game.external_id,
        'week_number': week_number,
        'name': game.headline,
        'kickoff_at': game.kickoff,
        'home_school_id': home_school_id,
        'away_school_id': away_school_id,
        'home_team_name': game.home_team_name,
        'away_team_name': game.away_team_name,
        'home_score': game.home_score,
        'away_score': game.away_score,
        'home_rank': game.home_rank,
        'away_rank': game.away_rank,
        'status': GAME_STATE_STATUS.get(game.state, STATUS_SCHEDULED),
        'is_conference_game': classification.is_conference_game,
        'is_bowl_game': classification.is_bowl_game,
        'is_playoff_game': classification.is_playoff_game,
        'playoff_round': classification.playoff_round,
    }


def sync_week_games(
    store: Store,
    client: ESPNClient,
    season_id: str,
    year: int,
    week: int,
    season_type: int = SEASON_TYPE_REGULAR,
) -> SyncResult:
    """
    Fetch one upstream week and upsert its games.

    Postseason upstream week N is stored as season week 16 + N unless the
    game is a bowl or playoff game (see game_row). Games with
    no FBS participant are skipped.

    Args:
        store: Relational store
        client: Upstream client
        season_id: Season id
        year: Season year
        week: Upstream week number
        season_type: 2 for regular season, 3 for postseason

    Returns:
        SyncResult

    Raises:
        ValueError: If the target week can't host games (the Heisman week)
    """
    postseason = season_type == SEASON_TYPE_POSTSEASON
    target_week = postseason_target_week(week) if postseason else week
    if not is_game_week(target_week):
        raise ValueError(f'Week {target_week} cannot have games')

    result = SyncResult()
    try:
        games = client.fetch_scoreboard(year, week, season_type)
    except UpstreamError as e:
        logger.error(f'Failed to fetch {year} week {week} (type {season_type}): {e}')
        result.errors.append(f'Failed to fetch week {week}: {e}')
        return result

    external_ids, conferences = load_school_maps(store)

    for game in games:
        row = game_row(game, season_id, target_week, external_ids, conferences, postseason)
        if row is None:
            result.skipped += 1
            continue
        try:
            store.upsert('games', row, conflict_keys=('season_id', 'external_id'))
            result.synced += 1
        except StoreError as e:
            logger.error(f'Failed to upsert game {game.external_id}: {e}')
            result.skipped += 1
            result.errors.append(f'Failed to save game {game.external_id}: {e}')

    logger.info(f'Week {target_week}: {result.synced} games synced, {result.skipped} skipped')
    return result


def sync_season_games(store: Store, client: ESPNClient, season_id: str, year: int) -> SyncResult:
    """Backfill every regular season and postseason week, pausing between fetches."""
    total = SyncResult()
    weeks = [(w, SEASON_TYPE_REGULAR) for w in range(0, WEEK_RIVALRY + 1)]
    weeks += [(w, SEASON_TYPE_POSTSEASON) for w in POSTSEASON_UPSTREAM_WEEKS]

    for week, season_type in weeks:
        result = sync_week_games(store, client, season_id, year, week, season_type)
        total.synced += result.synced
        total.skipped += result.skipped
        total.errors.extend(result.errors)
        client.pause()
    return total


def sync_rankings(store: Store, client: ESPNClient, season_id: str, year: int, week: int) -> SyncResult:
    """
    Replace the stored AP poll for a week with the current upstream poll.

    Teams that don't map to a known school are skipped.
    """
    result = SyncResult()
    try:
        poll = client.fetch_rankings(year)
    except UpstreamError as e:
        logger.error(f'Failed to fetch rankings for {year}: {e}')
        result.errors.append(f'Failed to fetch rankings: {e}')
        return result

    external_ids, _ = load_school_maps(store)
    rows = []
    for entry in poll.entries:
        school_id = external_ids.get(entry.team_id)
        if school_id is None:
            logger.debug(f'#{entry.rank} {entry.team_name} has no school mapping')
            result.skipped += 1
            continue
        rows.append({'season_id': season_id, 'week_number': week, 'school_id': school_id, 'rank': entry.rank})

    try:
        store.delete('ap_rankings_history', {'season_id': season_id, 'week_number': week})
        result.synced = store.insert_batch('ap_rankings_history', rows)
    except StoreError as e:
        logger.error(f'Failed to save rankings for week {week}: {e}')
        result.errors.append(f'Failed to save rankings for week {week}: {e}')

    logger.info(f'{poll.name} week {week}: {result.synced} ranked schools saved')
    return result


def sync_schools(store: Store, client: ESPNClient) -> SyncResult:
    """
    Link schools to upstream teams and refresh their abbreviation and logo.

    A school already carrying an upstream id keeps it. Otherwise its name is
    matched, case-insensitively, against each team's location, display name,
    short name and abbreviation; names shared by several teams are ignored.
    Conference membership is curated and never overwritten. Schools with no
    match are skipped.
    """
    result = SyncResult()
    try:
        teams = client.fetch_teams()
    except UpstreamError as e:
        logger.error(f'Failed to fetch teams: {e}')
        result.errors.append(f'Failed to fetch teams: {e}')
        return result

    by_id = {team.team_id: team for team in teams}
    by_name = {}
    for team in teams:
        for name in set(team.names()):
            by_name.setdefault(name, []).append(team)

    schools = store.select('schools', order_by='name')
    claimed = {str(s['external_api_id']): s['id'] for s in schools if s['external_api_id']}

    for school in schools:
        if school['external_api_id']:
            team = by_id.get(str(school['external_api_id']))
        else:
            matches = by_name.get(school['name'].strip().lower(), [])
            team = matches[0] if len(matches) == 1 else None
            if team is not None and claimed.get(team.team_id, school['id']) != school['id']:
                logger.warning(f"{school['name']} matches team {team.team_id}, already linked to another school")
                team = None

        if team is None:
            logger.debug(f"No upstream team for {school['name']}")
            result.skipped += 1
            continue

        try:
            store.update(
                'schools',
                {
                    'external_api_id': team.team_id,
                    'abbreviation': team.abbreviation or None,
                    'logo_url': team.logo_url,
                },
                {'id': school['id']},
            )
            claimed[team.team_id] = school['id']
            result.synced += 1
        except StoreError as e:
            logger.error(f"Failed to update school {school['name']}: {e}")
            result.skipped += 1
            result.errors.append(f"Failed to save school {school['name']}: {e}")

    logger.info(f'Schools: {result.synced} linked, {result.skipped} without a team')
    return result


def gameday_window(
    kickoffs: Iterable[datetime],
    lead_minutes: int,
    tail_minutes: int,
) -> Optional[tuple[datetime, datetime]]:
    """
    Polling window for a day's games.

    Returns:
        (first kickoff - lead, last kickoff + tail), or None with no kickoffs
    """
    kickoffs = [as_utc(k) for k in kickoffs if k is not None]
    if not kickoffs:
        return None
    return (
        min(kickoffs) - timedelta(minutes=lead_minutes),
        max(kickoffs) + timedelta(minutes=tail_minutes),
    )


def in_gameday_window(now: datetime, kickoffs: Iterable[datetime], lead_minutes: int, tail_minutes: int) -> bool:
    window = gameday_window(kickoffs, lead_minutes, tail_minutes)
    if window is None:
        return False
    start, end = window
    return start <= as_utc(now) <= end


def upstream_week(week: int) -> tuple[int, int]:
    """(upstream week, season type) for a season week."""
    if week >= WEEK_BOWLS:
        return week - WEEK_RIVALRY, SEASON_TYPE_POSTSEASON
    return week, SEASON_TYPE_REGULAR


def scoreboard_week(week_number: int, kickoff: Optional[datetime], year: int) -> tuple[int, int]:
    """
    (upstream week, season type) a stored game is listed under upstream.

    Bowl and playoff games are stored by round, not by the upstream week they
    were listed in, so postseason games are located by their kickoff date.
    """
    if week_number < WEEK_BOWLS:
        return upstream_week(week_number)
    listed = week_for(kickoff, year) if kickoff is not None else week_number
    return upstream_week(min(max(listed, WEEK_BOWLS), MAX_GAME_WEEK))


def gameday_sync(
    store: Store,
    client: ESPNClient,
    config: AppConfig,
    now: Optional[datetime] = None,
) -> GamedayResult:
    """
    Poll live scores, but only for games inside their polling window.

    A game is in its window from `gameday_lead_minutes` before kickoff until
    `gameday_tail_minutes` after it, whatever week it is stored in, so a late
    kickoff keeps being polled after midnight UTC and across a week boundary.
    Only games not yet completed are considered.

    Updates score and status of those games once they are live or completed;
    every week where a game completed is recalculated.

    Raises:
        NotFoundError: If the current season doesn't exist
    """
    now = as_utc(now or datetime.now(timezone.utc))
    result = GamedayResult()

    year = season_year_for(now)
    season = get_season_by_year(store, year)

    pending = store.select('games', {'season_id': season['id'], 'status': [STATUS_SCHEDULED, STATUS_LIVE]})
    in_window = [
        g for g in pending
        if in_gameday_window(now, [g['kickoff_at']], config.gameday_lead_minutes, config.gameday_tail_minutes)
    ]
    if not in_window:
        result.reason = 'Outside gameday window'
        logger.debug(result.reason)
        return result

    by_scoreboard = {}
    for game in in_window:
        key = scoreboard_week(game['week_number'], game['kickoff_at'], year)
        by_scoreboard.setdefault(key, []).append(game)

    completed_weeks = set()
    for (up_week, season_type), games in sorted(by_scoreboard.items()):
        completed_weeks |= _poll_scoreboard(store, client, season['id'], year, up_week, season_type, games, result)

    for week in sorted(completed_weeks):
        calculation = calculate_all_points(store, season['id'], week, config.scoring)
        result.errors.extend(calculation.errors)
        result.recalculated = True

    logger.info(f'Gameday sync: {result.games_updated} updated, {result.games_completed} completed')
    return result


def _poll_scoreboard(
    store: Store,
    client: ESPNClient,
    season_id: str,
    year: int,
    up_week: int,
    season_type: int,
    games: List[dict],
    result: GamedayResult,
) -> set:
    """Fetch one upstream scoreboard and update the given games. Returns weeks with a completed game."""
    try:
        scoreboard = client.fetch_scoreboard(year, up_week, season_type)
    except UpstreamError as e:
        logger.error(f'Gameday fetch for week {up_week} (type {season_type}) failed: {e}')
        result.errors.append(f'Failed to fetch scoreboard for week {up_week}: {e}')
        return set()
    result.polled = True

    stored_weeks = {g['external_id']: g['week_number'] for g in games}
    completed_weeks = set()
    for game in scoreboard:
        status = GAME_STATE_STATUS.get(game.state, STATUS_SCHEDULED)
        if status == STATUS_SCHEDULED or game.external_id not in stored_weeks:
            continue
        try:
            store.update(
                'games',
                {'home_score': game.home_score, 'away_score': game.away_score, 'status': status},
                {'season_id': season_id, 'external_id': game.external_id},
            )
            result.games_updated += 1
            if status == STATUS_COMPLETED:
                result.games_completed += 1
                completed_weeks.add(stored_weeks[game.external_id])
        except StoreError as e:
            result.errors.append(f'Failed to update game {game.external_id}: {e}')

    return completed_weeks
