"""Data models for the CFB fantasy points engine."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


@dataclass
class Game:
    """A game row as read from the store."""
    id: str
    season_id: str
    week_number: int
    home_school_id: Optional[str] = None
    away_school_id: Optional[str] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    home_rank: Optional[int] = None  # 99+ is the upstream "unranked" sentinel
    away_rank: Optional[int] = None
    status: str = 'scheduled'
    is_conference_game: bool = False
    is_bowl_game: bool = False
    is_playoff_game: bool = False
    playoff_round: Optional[str] = None
    name: Optional[str] = None
    external_id: Optional[str] = None
    kickoff_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> 'Game':
        """Build a Game from a store row, ignoring columns it doesn't model."""
        return cls(
            id=row['id'],
            season_id=row['season_id'],
            week_number=row['week_number'],
            home_school_id=row.get('home_school_id'),
            away_school_id=row.get('away_school_id'),
            home_score=row.get('home_score'),
            away_score=row.get('away_score'),
            home_rank=row.get('home_rank'),
            away_rank=row.get('away_rank'),
            status=row.get('status') or 'scheduled',
            is_conference_game=bool(row.get('is_conference_game')),
            is_bowl_game=bool(row.get('is_bowl_game')),
            is_playoff_game=bool(row.get('is_playoff_game')),
            playoff_round=row.get('playoff_round'),
            name=row.get('name'),
            external_id=row.get('external_id'),
            kickoff_at=row.get('kickoff_at'),
        )

    def side_of(self, school_id: str) -> Optional[str]:
        """Return 'home' or 'away' for the school, or None if it didn't play."""
        if school_id is None:
            return None
        if self.home_school_id == school_id:
            return 'home'
        if self.away_school_id == school_id:
            return 'away'
        return None

    def winner_and_loser(self) -> Optional[tuple]:
        """(winner_id, loser_id) on a strict score comparison, None if undecided."""
        if self.home_score is None or self.away_score is None:
            return None
        if self.home_score > self.away_score:
            return self.home_school_id, self.away_school_id
        if self.away_score > self.home_score:
            return self.away_school_id, self.home_school_id
        return None

    @property
    def participants(self) -> List[str]:
        """School ids of the FBS participants."""
        return [s for s in (self.home_school_id, self.away_school_id) if s]


@dataclass
class GameClassification:
    """Derived classification flags for a game."""
    is_conference_game: bool = False
    is_bowl_game: bool = False
    is_playoff_game: bool = False
    playoff_round: Optional[str] = None


@dataclass
class PointsBreakdown:
    """A school's points for one game."""
    school_id: str
    game_id: str
    season_id: str
    week_number: int
    is_win: bool = False
    base_points: float = 0.0
    conference_bonus: float = 0.0
    over_50_bonus: float = 0.0
    shutout_bonus: float = 0.0
    ranked_25_bonus: float = 0.0
    ranked_10_bonus: float = 0.0

    @property
    def total_points(self) -> float:
        return (
            self.base_points
            + self.conference_bonus
            + self.over_50_bonus
            + self.shutout_bonus
            + self.ranked_25_bonus
            + self.ranked_10_bonus
        )

    def to_row(self) -> dict:
        """Row for the school_weekly_points table."""
        return {
            'school_id': self.school_id,
            'season_id': self.season_id,
            'week_number': self.week_number,
            'game_id': self.game_id,
            'base_points': self.base_points,
            'conference_bonus': self.conference_bonus,
            'over_50_bonus': self.over_50_bonus,
            'shutout_bonus': self.shutout_bonus,
            'ranked_25_bonus': self.ranked_25_bonus,
            'ranked_10_bonus': self.ranked_10_bonus,
            'total_points': self.total_points,
        }


@dataclass
class EventBonus:
    """A league-specific one-time bonus for a school."""
    league_id: str
    school_id: str
    season_id: str
    week_number: int
    bonus_type: str
    points: float
    game_id: Optional[str] = None  # None for byes and the Heisman

    def to_row(self) -> dict:
        """Row for the league_school_event_bonuses table."""
        return {
            'league_id': self.league_id,
            'school_id': self.school_id,
            'season_id': self.season_id,
            'week_number': self.week_number,
            'bonus_type': self.bonus_type,
            'points': self.points,
            'game_id': self.game_id,
        }


@dataclass
class WeekAggregationResult:
    calculated: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class EventBonusResult:
    bonuses: List[EventBonus] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


@dataclass
class TeamWeekResult:
    """Outcome of aggregating one league's week.

    high_points_winner is the first winner (or None); high_points_winners
    holds every winner when the league allows ties.
    """
    teams_updated: int = 0
    high_points_winner: Optional[str] = None
    high_points_winners: List[str] = field(default_factory=list)
    points_by_team: Dict[str, float] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)


@dataclass
class ReconciliationResult:
    team_points_fixed: int = 0
    high_points_fixed: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class CalculationResult:
    """Outcome of a week calculation across leagues."""
    school_points_calculated: int = 0
    leagues_processed: int = 0
    teams_updated: int = 0
    bonuses_written: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class SeasonCalculationResult:
    weeks_processed: int = 0
    total_school_points: int = 0
    total_teams_updated: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class SyncResult:
    """Outcome of syncing upstream games or rankings into the store."""
    synced: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class GamedayResult:
    """Outcome of one gameday poll."""
    polled: bool = False
    games_updated: int = 0
    games_completed: int = 0
    recalculated: bool = False
    reason: str = ''
    errors: List[str] = field(default_factory=list)
