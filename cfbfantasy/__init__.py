from .models import (
    Game,
    GameClassification,
    PointsBreakdown,
    EventBonus,
    WeekAggregationResult,
    EventBonusResult,
    TeamWeekResult,
    ReconciliationResult,
    CalculationResult,
    SeasonCalculationResult,
    SyncResult,
    GamedayResult,
)
from .schemas import ScoringRuleSet, LeagueSettings, AppConfig, CalculateRequest
from .errors import CFBFantasyError, NotFoundError, StoreError, UpstreamError, ConfigError
from .calendar import (
    season_start,
    week_for,
    is_postseason,
    is_game_week,
    week_label,
    postseason_target_week,
    season_year_for,
)
from .classifier import (
    is_conference_game,
    determine_playoff_round,
    is_bowl_headline,
    classify_game,
)
from .scoring import score_game, resolve_opponent_rank
from .store import Store
from .weekly import aggregate_week, school_week_totals
from .event_bonuses import apply_event_bonuses, compute_event_bonuses, find_school, record_heisman_winner
from .team_points import aggregate_team_week, determine_high_points_winners
from .reconcile import reconcile
from .pipeline import (
    calculate_all_points,
    calculate_league_points,
    calculate_season_points,
    run_calculation,
    run_nightly_reconciliation,
)
from .data_fetcher import ESPNClient, GameResult, PollResult, TeamInfo
from .game_sync import (
    sync_week_games,
    sync_season_games,
    sync_rankings,
    sync_schools,
    gameday_window,
    in_gameday_window,
    gameday_sync,
)

__all__ = [
    # Models
    'Game',
    'GameClassification',
    'PointsBreakdown',
    'EventBonus',
    'WeekAggregationResult',
    'EventBonusResult',
    'TeamWeekResult',
    'ReconciliationResult',
    'CalculationResult',
    'SeasonCalculationResult',
    'SyncResult',
    'GamedayResult',
    # Schemas
    'ScoringRuleSet',
    'LeagueSettings',
    'AppConfig',
    'CalculateRequest',
    # Errors
    'CFBFantasyError',
    'NotFoundError',
    'StoreError',
    'UpstreamError',
    'ConfigError',
    # Calendar
    'season_start',
    'week_for',
    'is_postseason',
    'is_game_week',
    'week_label',
    'postseason_target_week',
    'season_year_for',
    # Classification
    'is_conference_game',
    'determine_playoff_round',
    'is_bowl_headline',
    'classify_game',
    # Scoring and aggregation
    'score_game',
    'resolve_opponent_rank',
    'aggregate_week',
    'school_week_totals',
    'apply_event_bonuses',
    'compute_event_bonuses',
    'find_school',
    'record_heisman_winner',
    'aggregate_team_week',
    'determine_high_points_winners',
    'reconcile',
    # Pipeline
    'calculate_all_points',
    'calculate_league_points',
    'calculate_season_points',
    'run_calculation',
    'run_nightly_reconciliation',
    # Store
    'Store',
    # Upstream
    'ESPNClient',
    'GameResult',
    'PollResult',
    'TeamInfo',
    'sync_week_games',
    'sync_season_games',
    'sync_rankings',
    'sync_schools',
    'gameday_window',
    'in_gameday_window',
    'gameday_sync',
]
