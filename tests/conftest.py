"""Shared fixtures: an in-memory store and helpers to seed it."""

import uuid

import pytest

from cfbfantasy.schemas import ScoringRuleSet
from cfbfantasy.store import Store


def _new_id() -> str:
    return str(uuid.uuid4())


class Seeder:
    """Inserts rows with known ids so tests can refer to them."""

    def __init__(self, store: Store):
        self.store = store

    def season(self, year: int = 2025) -> str:
        season_id = _new_id()
        self.store.insert_batch('seasons', [{'id': season_id, 'year': year, 'name': f'{year} Season'}])
        return season_id

    def school(self, name: str, conference: str = 'SEC', external_api_id: str = None) -> str:
        school_id = _new_id()
        self.store.insert_batch(
            'schools',
            [{'id': school_id, 'name': name, 'conference': conference, 'external_api_id': external_api_id}],
        )
        return school_id

    def game(
        self,
        season_id: str,
        week: int,
        home: str,
        away: str,
        home_score: int = None,
        away_score: int = None,
        status: str = 'completed',
        **extra,
    ) -> str:
        game_id = _new_id()
        row = {
            'id': game_id,
            'season_id': season_id,
            'week_number': week,
            'home_school_id': home,
            'away_school_id': away,
            'home_score': home_score,
            'away_score': away_score,
            'status': status,
        }
        row.update(extra)
        self.store.insert_batch('games', [row])
        return game_id

    def ranking(self, season_id: str, week: int, school_id: str, rank: int) -> None:
        self.store.insert_batch(
            'ap_rankings_history',
            [{'season_id': season_id, 'week_number': week, 'school_id': school_id, 'rank': rank}],
        )

    def league(self, season_id: str, name: str = 'Test League', **settings) -> str:
        league_id = _new_id()
        self.store.insert_batch('leagues', [{'id': league_id, 'season_id': season_id, 'name': name}])
        if settings:
            self.store.insert_batch('league_settings', [{'league_id': league_id, **settings}])
        return league_id

    def team(self, league_id: str, name: str, total_points: float = 0, high_points_winnings: float = 0) -> str:
        team_id = _new_id()
        self.store.insert_batch(
            'fantasy_teams',
            [{
                'id': team_id,
                'league_id': league_id,
                'name': name,
                'total_points': total_points,
                'high_points_winnings': high_points_winnings,
            }],
        )
        return team_id

    def roster(self, team_id: str, school_id: str, start_week: int = 0, end_week: int = None) -> None:
        self.store.insert_batch(
            'roster_periods',
            [{'fantasy_team_id': team_id, 'school_id': school_id, 'start_week': start_week, 'end_week': end_week}],
        )

    def team_week(self, team_id: str, week: int, points: float, winner: bool = False, amount: float = 0) -> None:
        self.store.insert_batch(
            'fantasy_team_weekly_points',
            [{
                'fantasy_team_id': team_id,
                'week_number': week,
                'points': points,
                'is_high_points_winner': winner,
                'high_points_amount': amount,
            }],
        )

    def school_points(self, season_id: str, week: int, school_id: str, game_id: str, total: float) -> None:
        self.store.insert_batch(
            'school_weekly_points',
            [{
                'school_id': school_id,
                'season_id': season_id,
                'week_number': week,
                'game_id': game_id,
                'base_points': total,
                'total_points': total,
            }],
        )


@pytest.fixture
def store():
    """Fresh in-memory SQLite store with the schema created."""
    store = Store.from_url('sqlite://', create_schema=True)
    yield store
    store.engine.dispose()


@pytest.fixture
def seed(store):
    return Seeder(store)


@pytest.fixture
def rules():
    """Reference default scoring rules."""
    return ScoringRuleSet()
