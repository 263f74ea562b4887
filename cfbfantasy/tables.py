"""Relational store schema (SQLAlchemy Core)."""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    UniqueConstraint,
)

metadata = MetaData()


def _uuid() -> str:
    return str(uuid.uuid4())


def _id_column() -> Column:
    return Column('id', String(36), primary_key=True, default=_uuid)


seasons = Table(
    'seasons',
    metadata,
    _id_column(),
    Column('year', Integer, nullable=False, unique=True),
    Column('name', String(100)),
)

schools = Table(
    'schools',
    metadata,
    _id_column(),
    Column('name', String(200), nullable=False),
    Column('conference', String(100)),
    Column('external_api_id', String(50), unique=True),
    Column('abbreviation', String(20)),
    Column('logo_url', String(500)),
)

games = Table(
    'games',
    metadata,
    _id_column(),
    Column('season_id', String(36), ForeignKey('seasons.id'), nullable=False),
    Column('week_number', Integer, nullable=False),
    Column('external_id', String(50)),
    Column('name', String(300)),
    Column('kickoff_at', DateTime(timezone=True)),
    Column('home_school_id', String(36), ForeignKey('schools.id')),
    Column('away_school_id', String(36), ForeignKey('schools.id')),
    Column('home_team_name', String(200)),
    Column('away_team_name', String(200)),
    Column('home_score', Integer),
    Column('away_score', Integer),
    Column('home_rank', Integer),
    Column('away_rank', Integer),
    Column('status', String(20), nullable=False, default='scheduled'),
    Column('is_conference_game', Boolean, nullable=False, default=False),
    Column('is_bowl_game', Boolean, nullable=False, default=False),
    Column('is_playoff_game', Boolean, nullable=False, default=False),
    Column('playoff_round', String(20)),
    UniqueConstraint('season_id', 'external_id', name='uq_games_season_external'),
)

ap_rankings_history = Table(
    'ap_rankings_history',
    metadata,
    _id_column(),
    Column('season_id', String(36), ForeignKey('seasons.id'), nullable=False),
    Column('week_number', Integer, nullable=False),
    Column('school_id', String(36), ForeignKey('schools.id'), nullable=False),
    Column('rank', Integer, nullable=False),
)

school_weekly_points = Table(
    'school_weekly_points',
    metadata,
    _id_column(),
    Column('school_id', String(36), ForeignKey('schools.id'), nullable=False),
    Column('season_id', String(36), ForeignKey('seasons.id'), nullable=False),
    Column('week_number', Integer, nullable=False),
    Column('game_id', String(36), ForeignKey('games.id'), nullable=False),
    Column('base_points', Float, nullable=False, default=0),
    Column('conference_bonus', Float, nullable=False, default=0),
    Column('over_50_bonus', Float, nullable=False, default=0),
    Column('shutout_bonus', Float, nullable=False, default=0),
    Column('ranked_25_bonus', Float, nullable=False, default=0),
    Column('ranked_10_bonus', Float, nullable=False, default=0),
    Column('total_points', Float, nullable=False, default=0),
    # One row per game, not per week: a school can play twice in a week
    UniqueConstraint('school_id', 'game_id', name='uq_school_weekly_points_school_game'),
)

leagues = Table(
    'leagues',
    metadata,
    _id_column(),
    Column('season_id', String(36), ForeignKey('seasons.id'), nullable=False),
    Column('name', String(200), nullable=False),
)

league_settings = Table(
    'league_settings',
    metadata,
    _id_column(),
    Column('league_id', String(36), ForeignKey('leagues.id'), nullable=False, unique=True),
    Column('points_conference_championship_win', Float),
    Column('points_conference_championship_loss', Float),
    Column('points_bowl_appearance', Float),
    Column('points_playoff_first_round', Float),
    Column('points_playoff_quarterfinal', Float),
    Column('points_playoff_semifinal', Float),
    Column('points_championship_win', Float),
    Column('points_championship_loss', Float),
    Column('points_heisman_winner', Float),
    Column('high_points_enabled', Boolean),
    Column('high_points_weekly_amount', Float),
    Column('high_points_allow_ties', Boolean),
    Column('double_points_enabled', Boolean),
)

league_school_event_bonuses = Table(
    'league_school_event_bonuses',
    metadata,
    _id_column(),
    Column('league_id', String(36), ForeignKey('leagues.id'), nullable=False),
    Column('school_id', String(36), ForeignKey('schools.id'), nullable=False),
    Column('season_id', String(36), ForeignKey('seasons.id'), nullable=False),
    Column('week_number', Integer, nullable=False),
    Column('bonus_type', String(40), nullable=False),
    Column('points', Float, nullable=False),
    Column('game_id', String(36), ForeignKey('games.id')),
    UniqueConstraint(
        'league_id', 'school_id', 'season_id', 'week_number', 'bonus_type',
        name='uq_event_bonus',
    ),
)

fantasy_teams = Table(
    'fantasy_teams',
    metadata,
    _id_column(),
    Column('league_id', String(36), ForeignKey('leagues.id'), nullable=False),
    Column('name', String(200), nullable=False),
    Column('total_points', Float, nullable=False, default=0),
    Column('high_points_winnings', Float, nullable=False, default=0),
    Column('updated_at', DateTime(timezone=True)),
)

fantasy_team_weekly_points = Table(
    'fantasy_team_weekly_points',
    metadata,
    _id_column(),
    Column('fantasy_team_id', String(36), ForeignKey('fantasy_teams.id'), nullable=False),
    Column('week_number', Integer, nullable=False),
    Column('points', Float, nullable=False, default=0),
    Column('is_high_points_winner', Boolean, nullable=False, default=False),
    Column('high_points_amount', Float, nullable=False, default=0),
    UniqueConstraint('fantasy_team_id', 'week_number', name='uq_team_week'),
)

roster_periods = Table(
    'roster_periods',
    metadata,
    _id_column(),
    Column('fantasy_team_id', String(36), ForeignKey('fantasy_teams.id'), nullable=False),
    Column('school_id', String(36), ForeignKey('schools.id'), nullable=False),
    Column('start_week', Integer, nullable=False),
    Column('end_week', Integer),
)

heisman_winners = Table(
    'heisman_winners',
    metadata,
    _id_column(),
    Column('season_id', String(36), ForeignKey('seasons.id'), nullable=False, unique=True),
    Column('school_id', String(36), ForeignKey('schools.id'), nullable=False),
    Column('player_name', String(200)),
)

weekly_double_picks = Table(
    'weekly_double_picks',
    metadata,
    _id_column(),
    Column('fantasy_team_id', String(36), ForeignKey('fantasy_teams.id'), nullable=False),
    Column('week_number', Integer, nullable=False),
    Column('school_id', String(36), ForeignKey('schools.id'), nullable=False),
    Column('points_earned', Float),
    Column('bonus_points', Float),
    UniqueConstraint('fantasy_team_id', 'week_number', name='uq_double_pick_team_week'),
)
