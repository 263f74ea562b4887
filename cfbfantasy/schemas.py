"""Pydantic schemas for scoring rules, league settings and configuration."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from .constants import (
    ESPN_BASE_URL,
    MAX_WEEK,
    RECONCILE_EPSILON,
    WEEK_ZERO,
)


class ScoringRuleSet(BaseModel):
    """Per-game scoring rules for a school.

    The win-side values are the reference defaults. Loss-side values default
    to zero so a loss never scores unless a rule set explicitly says so.
    """

    points_win: float = 1
    points_conference_game: float = 1
    points_over_50: float = 1
    points_shutout: float = 1
    points_ranked_25: float = 1
    points_ranked_10: float = 2

    points_loss: float = 0
    points_conference_game_loss: float = 0
    points_over_50_loss: float = 0
    points_shutout_loss: float = 0
    points_ranked_25_loss: float = 0
    points_ranked_10_loss: float = 0

    class Config:
        extra = 'forbid'
        frozen = True


class LeagueSettings(BaseModel):
    """League-level settings read from the league_settings table.

    Event bonus amounts and high-points rules differ per league. Null
    columns are read as zero / disabled.
    """

    league_id: str | None = None

    # Special event bonuses
    points_conference_championship_win: float = 0
    points_conference_championship_loss: float = 0
    points_bowl_appearance: float = 0
    points_playoff_first_round: float = 0
    points_playoff_quarterfinal: float = 0
    points_playoff_semifinal: float = 0
    points_championship_win: float = 0
    points_championship_loss: float = 0
    points_heisman_winner: float = 0

    # Weekly high points
    high_points_enabled: bool = False
    high_points_weekly_amount: float = 0
    high_points_allow_ties: bool = False

    double_points_enabled: bool = False

    @field_validator(
        'points_conference_championship_win',
        'points_conference_championship_loss',
        'points_bowl_appearance',
        'points_playoff_first_round',
        'points_playoff_quarterfinal',
        'points_playoff_semifinal',
        'points_championship_win',
        'points_championship_loss',
        'points_heisman_winner',
        'high_points_weekly_amount',
        mode='before',
    )
    @classmethod
    def null_amount_is_zero(cls, v):
        """Treat NULL amounts as zero."""
        return 0 if v is None else v

    @field_validator(
        'high_points_enabled', 'high_points_allow_ties', 'double_points_enabled', mode='before'
    )
    @classmethod
    def null_flag_is_false(cls, v):
        """Treat NULL flags as disabled."""
        return False if v is None else v

    class Config:
        extra = 'ignore'


class AppConfig(BaseModel):
    """Application configuration (data/cfb_config.json)."""

    database_url: str = Field(default='sqlite:///cfbfantasy.db', min_length=1)
    espn_base_url: str = ESPN_BASE_URL
    request_delay_seconds: float = Field(default=0.3, ge=0, le=10)
    request_timeout_seconds: float = Field(default=30, gt=0)
    max_retries: int = Field(default=3, ge=1, le=10)
    reconcile_epsilon: float = Field(default=RECONCILE_EPSILON, gt=0)
    gameday_lead_minutes: int = Field(default=30, ge=0)
    gameday_tail_minutes: int = Field(default=300, ge=0)
    scoring: ScoringRuleSet = Field(default_factory=ScoringRuleSet)

    class Config:
        extra = 'forbid'


class CalculateRequest(BaseModel):
    """On-demand points calculation request.

    Modes:
        week: every league in the season for one week
        season: every week from start_week to end_week
        league: one week for a single league
    """

    year: int | None = Field(default=None, ge=2000, le=2100)
    week: int | None = Field(default=None, ge=WEEK_ZERO, le=MAX_WEEK)
    mode: Literal['week', 'season', 'league'] = 'week'
    league_id: str | None = None
    start_week: int = Field(default=WEEK_ZERO, ge=WEEK_ZERO, le=MAX_WEEK)
    end_week: int = Field(default=MAX_WEEK, ge=WEEK_ZERO, le=MAX_WEEK)

    @model_validator(mode='after')
    def check_mode_arguments(self):
        """League mode needs a league id; season ranges must be ordered."""
        if self.mode == 'league' and not self.league_id:
            raise ValueError('league mode requires league_id')
        if self.start_week > self.end_week:
            raise ValueError(f'start_week {self.start_week} is after end_week {self.end_week}')
        return self

    class Config:
        extra = 'forbid'
