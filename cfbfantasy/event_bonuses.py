"""Special event bonuses: one-time, league-configured points for postseason events.

Event -> week slot:
    conference championship win/loss   15
    bowl appearance (non-playoff)      17
    CFP first round (and byes)         18
    CFP quarterfinal                   19
    CFP semifinal                      20
    national championship win/loss     21
    Heisman                            22
"""

import logging
from typing import Iterable, Optional

from .constants import (
    BONUS_BOWL_APPEARANCE,
    BONUS_CFP_FIRST_ROUND,
    BONUS_CFP_QUARTERFINAL,
    BONUS_CFP_SEMIFINAL,
    BONUS_CHAMPIONSHIP_LOSS,
    BONUS_CHAMPIONSHIP_WIN,
    BONUS_CONF_CHAMPIONSHIP_LOSS,
    BONUS_CONF_CHAMPIONSHIP_WIN,
    BONUS_HEISMAN,
    BONUS_INSERT_BATCH_SIZE,
    POSTSEASON_START,
    ROUND_CHAMPIONSHIP,
    ROUND_FIRST,
    ROUND_QUARTERFINAL,
    ROUND_SEMIFINAL,
    STATUS_COMPLETED,
    WEEK_BOWLS,
    WEEK_CFP_FIRST_ROUND,
    WEEK_CFP_QUARTERFINAL,
    WEEK_CFP_SEMIFINAL,
    WEEK_CHAMPIONSHIP,
    WEEK_CONF_CHAMPS,
    WEEK_HEISMAN,
)
from .errors import NotFoundError, StoreError
from .models import EventBonus, EventBonusResult, Game
from .schemas import LeagueSettings
from .store import Store

logger = logging.getLogger('cfbfantasy.event_bonuses')


def get_league(store: Store, league_id: str) -> dict:
    """Fetch a league row or raise NotFoundError."""
    league = store.select_one('leagues', {'id': league_id})
    if league is None:
        raise NotFoundError(f'League {league_id} not found')
    return league


def load_league_settings(store: Store, league_id: str) -> LeagueSettings:
    """League settings, or all-zero/disabled settings if the league has none."""
    row = store.select_one('league_settings', {'league_id': league_id})
    if row is None:
        logger.warning(f'League {league_id} has no settings, using zero bonuses')
        return LeagueSettings(league_id=league_id)
    return LeagueSettings.model_validate(row)


def find_school(store: Store, name: str) -> dict:
    """
    Look a school up by name, then by abbreviation, ignoring case.

    Raises:
        NotFoundError: If no school has that name or abbreviation
    """
    wanted = name.strip().lower()
    schools = store.select('schools')
    for key in ('name', 'abbreviation'):
        for school in schools:
            if (school[key] or '').strip().lower() == wanted:
                return school
    raise NotFoundError(f'School {name} not found')


def record_heisman_winner(store: Store, season_id: str, school_id: str, player_name: str) -> dict:
    """
    Record (or replace) the season's Heisman winner.

    The bonus itself is paid the next time event bonuses are applied.

    Raises:
        NotFoundError: If the season or school doesn't exist
    """
    if store.select_one('seasons', {'id': season_id}) is None:
        raise NotFoundError(f'Season {season_id} not found')
    school = store.select_one('schools', {'id': school_id})
    if school is None:
        raise NotFoundError(f'School {school_id} not found')

    row = store.upsert(
        'heisman_winners',
        {'season_id': season_id, 'school_id': school_id, 'player_name': player_name},
        conflict_keys=('season_id',),
    )
    logger.info(f"Heisman winner for season {season_id}: {player_name} ({school['name']})")
    return row


def find_bye_schools(first_round: Iterable[Game], quarterfinals: Iterable[Game]) -> list[str]:
    """Quarterfinal participants who didn't play in the first round."""
    first_round_schools = {s for g in first_round for s in g.participants}
    byes = []
    for game in quarterfinals:
        for school_id in game.participants:
            if school_id not in first_round_schools and school_id not in byes:
                byes.append(school_id)
    return byes


def compute_event_bonuses(
    games: Iterable[Game],
    heisman_school_id: Optional[str],
    settings: LeagueSettings,
    league_id: str,
    season_id: str,
) -> list[EventBonus]:
    """
    Compute a league's event bonuses from the season's completed postseason games.

    Bonuses with a configured amount of 0 are not produced. Quarterfinal and
    semifinal bonuses stack on top of earlier rounds. Bye teams receive the
    first-round bonus with no originating game.

    Args:
        games: Completed games for the season (weeks 15+ are considered)
        heisman_school_id: School of the season's Heisman winner, if known
        settings: League bonus amounts
        league_id: League the bonuses belong to
        season_id: Season the bonuses belong to

    Returns:
        List of EventBonus rows, one per (school, week, bonus type)
    """
    games = [g for g in games if g.week_number >= POSTSEASON_START]
    bonuses: list[EventBonus] = []
    seen: set[tuple] = set()

    def award(school_id, week, bonus_type, amount, game_id=None):
        if not school_id or not amount:
            return
        key = (school_id, week, bonus_type)
        if key in seen:
            return
        seen.add(key)
        bonuses.append(
            EventBonus(
                league_id=league_id,
                school_id=school_id,
                season_id=season_id,
                week_number=week,
                bonus_type=bonus_type,
                points=amount,
                game_id=game_id,
            )
        )

    by_round = {
        playoff_round: [g for g in games if g.playoff_round == playoff_round]
        for playoff_round in (ROUND_FIRST, ROUND_QUARTERFINAL, ROUND_SEMIFINAL, ROUND_CHAMPIONSHIP)
    }

    # Conference championships
    for game in games:
        if game.week_number != WEEK_CONF_CHAMPS or not game.is_conference_game:
            continue
        if not game.home_school_id or not game.away_school_id:
            continue
        decided = game.winner_and_loser()
        if decided is None:
            continue
        winner, loser = decided
        award(winner, WEEK_CONF_CHAMPS, BONUS_CONF_CHAMPIONSHIP_WIN,
              settings.points_conference_championship_win, game.id)
        award(loser, WEEK_CONF_CHAMPS, BONUS_CONF_CHAMPIONSHIP_LOSS,
              settings.points_conference_championship_loss, game.id)

    # Bowls; playoff participants are paid through the playoff bonuses instead
    for game in games:
        if game.week_number == WEEK_BOWLS and game.is_bowl_game and not game.is_playoff_game:
            for school_id in game.participants:
                award(school_id, WEEK_BOWLS, BONUS_BOWL_APPEARANCE,
                      settings.points_bowl_appearance, game.id)

    # Playoff rounds
    for game in by_round[ROUND_FIRST]:
        for school_id in game.participants:
            award(school_id, WEEK_CFP_FIRST_ROUND, BONUS_CFP_FIRST_ROUND,
                  settings.points_playoff_first_round, game.id)

    for school_id in find_bye_schools(by_round[ROUND_FIRST], by_round[ROUND_QUARTERFINAL]):
        award(school_id, WEEK_CFP_FIRST_ROUND, BONUS_CFP_FIRST_ROUND,
              settings.points_playoff_first_round)

    for game in by_round[ROUND_QUARTERFINAL]:
        for school_id in game.participants:
            award(school_id, WEEK_CFP_QUARTERFINAL, BONUS_CFP_QUARTERFINAL,
                  settings.points_playoff_quarterfinal, game.id)

    for game in by_round[ROUND_SEMIFINAL]:
        for school_id in game.participants:
            award(school_id, WEEK_CFP_SEMIFINAL, BONUS_CFP_SEMIFINAL,
                  settings.points_playoff_semifinal, game.id)

    for game in by_round[ROUND_CHAMPIONSHIP]:
        decided = game.winner_and_loser()
        if decided is None:
            continue
        winner, loser = decided
        award(winner, WEEK_CHAMPIONSHIP, BONUS_CHAMPIONSHIP_WIN,
              settings.points_championship_win, game.id)
        award(loser, WEEK_CHAMPIONSHIP, BONUS_CHAMPIONSHIP_LOSS,
              settings.points_championship_loss, game.id)

    award(heisman_school_id, WEEK_HEISMAN, BONUS_HEISMAN, settings.points_heisman_winner)

    return bonuses


def apply_event_bonuses(store: Store, season_id: str, league_id: str) -> EventBonusResult:
    """
    Recalculate and persist a league's event bonuses for a season.

    Existing bonus rows for the (league, season) pair are deleted before the
    new rows are inserted in batches, so re-running never double counts.

    Args:
        store: Relational store
        season_id: Season id
        league_id: League id

    Returns:
        EventBonusResult with the bonus rows written and any errors

    Raises:
        NotFoundError: If the league doesn't exist or isn't in the season
    """
    result = EventBonusResult()

    league = get_league(store, league_id)
    if league['season_id'] != season_id:
        raise NotFoundError(f'League {league_id} is not in season {season_id}')

    settings = load_league_settings(store, league_id)

    games = [
        Game.from_row(row)
        for row in store.select('games', {'season_id': season_id, 'status': STATUS_COMPLETED})
    ]
    heisman = store.select_one('heisman_winners', {'season_id': season_id})
    heisman_school_id = heisman['school_id'] if heisman else None

    bonuses = compute_event_bonuses(games, heisman_school_id, settings, league_id, season_id)

    try:
        store.delete('league_school_event_bonuses', {'league_id': league_id, 'season_id': season_id})
    except StoreError as e:
        logger.error(f'Failed to clear event bonuses for league {league_id}: {e}')
        result.errors.append(f'Failed to clear existing event bonuses: {e}')
        return result

    for start in range(0, len(bonuses), BONUS_INSERT_BATCH_SIZE):
        batch = bonuses[start:start + BONUS_INSERT_BATCH_SIZE]
        try:
            store.insert_batch('league_school_event_bonuses', [b.to_row() for b in batch])
            result.bonuses.extend(batch)
        except StoreError as e:
            logger.error(f'Failed to insert event bonus batch at {start}: {e}')
            result.errors.append(f'Failed to insert event bonuses {start}-{start + len(batch) - 1}: {e}')

    logger.info(f'League {league_id}: {len(result.bonuses)} event bonuses written')
    return result
