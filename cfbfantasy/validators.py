"""Validation functions for games and roster periods."""

from typing import Iterable, Mapping

from .calendar import is_game_week
from .constants import STATUS_COMPLETED
from .models import Game


def validate_game_for_scoring(game: Game) -> list[str]:
    """
    Check that a game can be scored.

    Checks:
    - Game is completed
    - Both final scores are present
    - Week can host games (never the Heisman week)
    - At least one participant is a known school

    Args:
        game: Game to check

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    if game.status != STATUS_COMPLETED:
        errors.append(f'Game {game.id} is {game.status}, not completed')

    if game.home_score is None or game.away_score is None:
        errors.append(f'Game {game.id} is missing a final score')

    if not is_game_week(game.week_number):
        errors.append(f'Game {game.id} is in week {game.week_number}, which has no games')

    if not game.participants:
        errors.append(f'Game {game.id} has no FBS participant')

    return errors


def validate_roster_periods(periods: Iterable[Mapping]) -> list[str]:
    """
    Validate roster periods for overlapping or inverted windows.

    A period covers weeks start_week <= W < end_week (open-ended if end_week
    is None). The same school must not be on the same team twice in any week.

    Args:
        periods: roster_periods rows

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []
    by_team_school: dict[tuple, list] = {}

    for period in periods:
        start, end = period['start_week'], period.get('end_week')
        if end is not None and end <= start:
            errors.append(
                f'Roster period for team {period["fantasy_team_id"]} / school {period["school_id"]} '
                f'ends (week {end}) before it starts (week {start})'
            )
        key = (period['fantasy_team_id'], period['school_id'])
        by_team_school.setdefault(key, []).append((start, end))

    for (team_id, school_id), windows in by_team_school.items():
        windows.sort(key=lambda w: w[0])
        for (_, prev_end), (next_start, _) in zip(windows, windows[1:]):
            if prev_end is None or prev_end > next_start:
                errors.append(f'Team {team_id} has overlapping roster periods for school {school_id}')
                break

    return errors

