"""Season calendar: map dates to season week numbers (0-22) and label weeks."""

from datetime import date, datetime, timedelta, timezone
from typing import Union

from .constants import (
    LEADERBOARD_WEEK_LABELS,
    MAX_GAME_WEEK,
    MAX_WEEK,
    POSTSEASON_START,
    SCHEDULE_WEEK_LABELS,
    SEASON_START_DAY,
    SEASON_START_MONTH,
    WEEK_RIVALRY,
    WEEK_ZERO,
)

WEEK_LENGTH = timedelta(days=7)


def season_start(year: int) -> datetime:
    """Week 1 begins at midnight UTC on August 24 of the season year; anything earlier is week 0."""
    return datetime(year, SEASON_START_MONTH, SEASON_START_DAY, tzinfo=timezone.utc)


def as_utc(when: Union[date, datetime]) -> datetime:
    if not isinstance(when, datetime):
        return datetime(when.year, when.month, when.day, tzinfo=timezone.utc)
    if when.tzinfo is None:
        return when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc)


def week_for(when: Union[date, datetime], season_year: int) -> int:
    """
    Get the season week number for a moment in time.

    Computes floor((when - season_start) / 7 days) + 1 and clamps the result
    to [0, 22]. Naive datetimes are treated as UTC; plain dates as midnight UTC.

    Args:
        when: Date or datetime to map
        season_year: Year the season starts in

    Returns:
        Week number between 0 and 22

    Example:
        >>> week_for(datetime(2025, 8, 30, tzinfo=timezone.utc), 2025)
        1
    """
    elapsed = as_utc(when) - season_start(season_year)
    week = elapsed // WEEK_LENGTH + 1
    return max(WEEK_ZERO, min(week, MAX_WEEK))


def is_postseason(week: int) -> bool:
    """Conference championships (week 15) onward are postseason."""
    return week >= POSTSEASON_START


def is_game_week(week: int) -> bool:
    """
    Check whether real games can be played in a week.

    Week 22 only hosts the Heisman bonus and never has games.
    """
    return WEEK_ZERO <= week <= MAX_GAME_WEEK


def postseason_target_week(upstream_postseason_week: int) -> int:
    """Map an upstream postseason week (1, 2, ...) to the season week number."""
    return WEEK_RIVALRY + upstream_postseason_week


def week_label(week: int, context: str = 'leaderboard') -> str:
    """
    Render a week number for display.

    Labels are presentation only and never feed scoring.

    Args:
        week: Season week number
        context: 'leaderboard' (compact column header) or 'schedule'

    Returns:
        Label such as 'W3', 'Bowls', 'Conf Champ' or 'Week 18'

    Raises:
        ValueError: If context is unknown
    """
    if context == 'leaderboard':
        if week in LEADERBOARD_WEEK_LABELS:
            return LEADERBOARD_WEEK_LABELS[week]
        return f'W{week}'
    if context == 'schedule':
        if week in SCHEDULE_WEEK_LABELS:
            return SCHEDULE_WEEK_LABELS[week]
        return f'Week {week}'
    raise ValueError(f'Unknown week label context: {context}')


def season_year_for(when: Union[date, datetime]) -> int:
    """Season a moment belongs to; January bowls and playoffs count toward the previous year."""
    when = as_utc(when)
    return when.year if when.month >= SEASON_START_MONTH else when.year - 1
