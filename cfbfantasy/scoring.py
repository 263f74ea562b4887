"""School scoring: points a school earns from a single game.

Scoring (reference defaults):
    - Win: 1 point (a tie or loss is a non-win)
    - Conference game win: +1 (regular season only, never bowls or playoffs)
    - Scored 50+ points: +1 (absolute score, not margin)
    - Shutout: +1
    - Beat a ranked opponent:
        regular season: rank 1-10 +2, rank 11-25 +1
        bowls and playoffs: rank 1-12 +2, no lower tier
    - National championship game: 0 in every component (paid as an event bonus)

Non-wins use the *_loss fields of the rule set, which default to 0.
"""

from typing import Mapping, Optional

from .constants import (
    OVER_50_THRESHOLD,
    POSTSEASON_TOP_TIER_MAX_RANK,
    REGULAR_LOWER_TIER_MAX_RANK,
    REGULAR_TOP_TIER_MAX_RANK,
    ROUND_CHAMPIONSHIP,
    UNRANKED_SENTINEL,
)
from .models import Game, PointsBreakdown
from .schemas import ScoringRuleSet


def is_real_rank(rank: Optional[int]) -> bool:
    """A rank that can earn a bonus: not None, not 0, below the 99 sentinel."""
    return rank is not None and 0 < rank < UNRANKED_SENTINEL


def resolve_opponent_rank(game_rank: Optional[int], poll_rank: Optional[int]) -> Optional[int]:
    """
    Pick the opponent rank used for ranked bonuses.

    The rank stored on the game wins (it carries CFP seeding snapshots the
    weekly AP poll misses); the AP poll is only consulted when the game
    carries no real rank.

    Args:
        game_rank: Opponent's rank on the game row (None/0/99+ means absent)
        poll_rank: Opponent's rank in the AP poll for the week

    Returns:
        Rank to use, or None if the opponent is unranked in both sources
    """
    if is_real_rank(game_rank):
        return game_rank
    if is_real_rank(poll_rank):
        return poll_rank
    return None


def opponent_rank_for(game: Game, school_id: str, poll_ranks: Mapping[str, int]) -> Optional[int]:
    """Resolve the rank of the school's opponent in a game."""
    if game.side_of(school_id) == 'home':
        opponent_id, game_rank = game.away_school_id, game.away_rank
    else:
        opponent_id, game_rank = game.home_school_id, game.home_rank
    poll_rank = poll_ranks.get(opponent_id) if opponent_id else None
    return resolve_opponent_rank(game_rank, poll_rank)


def _ranked_bonuses(opponent_rank: Optional[int], postseason: bool, top_tier: float, lower_tier: float):
    """Return (ranked_25_bonus, ranked_10_bonus) for an opponent rank."""
    if not is_real_rank(opponent_rank):
        return 0, 0
    if postseason:
        if opponent_rank <= POSTSEASON_TOP_TIER_MAX_RANK:
            return 0, top_tier
        return 0, 0
    if opponent_rank <= REGULAR_TOP_TIER_MAX_RANK:
        return 0, top_tier
    if opponent_rank <= REGULAR_LOWER_TIER_MAX_RANK:
        return lower_tier, 0
    return 0, 0


def score_game(
    game: Game,
    school_id: str,
    opponent_rank: Optional[int],
    is_bowl: bool,
    rules: ScoringRuleSet,
) -> PointsBreakdown:
    """
    Score one game for one school.

    Args:
        game: The game (must include both final scores)
        school_id: School to score; must be the home or away school
        opponent_rank: The OPPONENT's rank (see resolve_opponent_rank)
        is_bowl: Whether the game is a bowl game
        rules: Scoring rules to apply

    Returns:
        PointsBreakdown for the school

    Raises:
        ValueError: If the school didn't play in the game or a score is missing

    Example:
        >>> game = Game(id='g1', season_id='s1', week_number=3, home_school_id='a',
        ...             away_school_id='b', home_score=55, away_score=0, status='completed')
        >>> score_game(game, 'a', 8, False, ScoringRuleSet()).total_points
        5.0
    """
    side = game.side_of(school_id)
    if side is None:
        raise ValueError(f'School {school_id} did not play in game {game.id}')
    if game.home_score is None or game.away_score is None:
        raise ValueError(f'Game {game.id} is missing a final score')

    if side == 'home':
        team_score, opponent_score = game.home_score, game.away_score
    else:
        team_score, opponent_score = game.away_score, game.home_score

    is_win = team_score > opponent_score
    breakdown = PointsBreakdown(
        school_id=school_id,
        game_id=game.id,
        season_id=game.season_id,
        week_number=game.week_number,
        is_win=is_win,
    )

    if game.playoff_round == ROUND_CHAMPIONSHIP:
        return breakdown

    postseason = is_bowl or game.is_playoff_game

    if is_win:
        base, conference, over_50, shutout = (
            rules.points_win,
            rules.points_conference_game,
            rules.points_over_50,
            rules.points_shutout,
        )
        ranked_10, ranked_25 = rules.points_ranked_10, rules.points_ranked_25
    else:
        base, conference, over_50, shutout = (
            rules.points_loss,
            rules.points_conference_game_loss,
            rules.points_over_50_loss,
            rules.points_shutout_loss,
        )
        ranked_10, ranked_25 = rules.points_ranked_10_loss, rules.points_ranked_25_loss

    breakdown.base_points = base
    if game.is_conference_game and not postseason:
        breakdown.conference_bonus = conference
    if team_score >= OVER_50_THRESHOLD:
        breakdown.over_50_bonus = over_50
    if opponent_score == 0:
        breakdown.shutout_bonus = shutout
    breakdown.ranked_25_bonus, breakdown.ranked_10_bonus = _ranked_bonuses(
        opponent_rank, postseason, ranked_10, ranked_25
    )

    return breakdown
