"""Game classification: conference, bowl and playoff flags."""

from typing import Mapping, Optional

from .constants import (
    INDEPENDENT_CONFERENCE,
    ROUND_CHAMPIONSHIP,
    ROUND_FIRST,
    ROUND_QUARTERFINAL,
    ROUND_SEMIFINAL,
)
from .models import GameClassification

PLAYOFF_MARKER = 'college football playoff'

# Checked in order, most specific first
PLAYOFF_ROUND_KEYWORDS = (
    ('national championship', ROUND_CHAMPIONSHIP),
    ('semifinal', ROUND_SEMIFINAL),
    ('quarterfinal', ROUND_QUARTERFINAL),
    ('first round', ROUND_FIRST),
)


def is_conference_game(
    home_school_id: Optional[str],
    away_school_id: Optional[str],
    conferences: Mapping[str, Optional[str]],
) -> bool:
    """
    Check whether two schools played a conference game.

    Both schools must be known, share the same conference, and that
    conference must not be 'Independent'.

    Args:
        home_school_id: Home school id (None for non-FBS opponents)
        away_school_id: Away school id (None for non-FBS opponents)
        conferences: school id -> conference name

    Returns:
        True if this is a conference game
    """
    if not home_school_id or not away_school_id:
        return False
    home_conf = conferences.get(home_school_id)
    away_conf = conferences.get(away_school_id)
    if not home_conf or not away_conf:
        return False
    return home_conf == away_conf and home_conf != INDEPENDENT_CONFERENCE


def determine_playoff_round(headline: Optional[str]) -> Optional[str]:
    """
    Determine the playoff round from a game's headline.

    The headline must mention 'college football playoff'; a playoff headline
    with no recognizable round is not treated as a playoff game.

    Example:
        >>> determine_playoff_round('College Football Playoff Semifinal at the Vrbo Fiesta Bowl')
        'semifinal'
    """
    if not headline:
        return None
    name = headline.lower()
    if PLAYOFF_MARKER not in name:
        return None
    for keyword, playoff_round in PLAYOFF_ROUND_KEYWORDS:
        if keyword in name:
            return playoff_round
    return None


def is_bowl_headline(headline: Optional[str]) -> bool:
    """A headline naming a bowl that isn't a playoff game."""
    if not headline:
        return False
    return 'bowl' in headline.lower() and determine_playoff_round(headline) is None


def classify_game(
    headline: Optional[str],
    home_school_id: Optional[str],
    away_school_id: Optional[str],
    conferences: Mapping[str, Optional[str]],
    postseason: bool = False,
) -> GameClassification:
    """
    Classify a synced game.

    Bowl and playoff detection only applies to postseason games. Bowl and
    playoff games are never conference games, even between conference rivals.

    Args:
        headline: Upstream game headline (e.g. 'Rose Bowl Game Presented by Prudential')
        home_school_id: Home school id or None
        away_school_id: Away school id or None
        conferences: school id -> conference name
        postseason: Whether the game came from the postseason schedule

    Returns:
        GameClassification
    """
    playoff_round = determine_playoff_round(headline) if postseason else None
    is_playoff = playoff_round is not None
    is_bowl = postseason and not is_playoff and is_bowl_headline(headline)

    conference = False
    if not is_playoff and not is_bowl:
        conference = is_conference_game(home_school_id, away_school_id, conferences)

    return GameClassification(
        is_conference_game=conference,
        is_bowl_game=is_bowl,
        is_playoff_game=is_playoff,
        playoff_round=playoff_round,
    )
