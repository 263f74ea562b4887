"""Tests for the relational store and config loading."""

import json

import pytest

from cfbfantasy.config import clear_config_cache, get_config
from cfbfantasy.errors import ConfigError, StoreError


class TestStore:
    """Tests for Store filters and writes."""

    def test_select_filters(self, store, seed):
        sec = seed.school('Georgia', 'SEC')
        seed.school('Ohio State', 'Big Ten')
        nowhere = seed.school('Mystery', None)

        assert [s['id'] for s in store.select('schools', {'conference': 'SEC'})] == [sec]
        assert [s['id'] for s in store.select('schools', {'conference': None})] == [nowhere]
        assert len(store.select('schools', {'conference': ['SEC', 'Big Ten']})) == 2
        assert store.select('schools', {'conference': []}) == []

    def test_order_by_descending(self, store, seed):
        for year in (2023, 2025, 2024):
            seed.season(year)
        assert [s['year'] for s in store.select('seasons', order_by='-year')] == [2025, 2024, 2023]

    def test_upsert_inserts_then_updates(self, store, seed):
        season = seed.season(2025)
        first = store.upsert('games', {'season_id': season, 'external_id': 'x', 'week_number': 1},
                             conflict_keys=('season_id', 'external_id'))
        second = store.upsert('games', {'season_id': season, 'external_id': 'x', 'week_number': 2},
                              conflict_keys=('season_id', 'external_id'))

        assert first['id'] == second['id']
        assert second['week_number'] == 2
        assert len(store.select('games')) == 1

    def test_upsert_missing_key(self, store):
        with pytest.raises(StoreError):
            store.upsert('games', {'week_number': 1}, conflict_keys=('season_id', 'external_id'))

    def test_unfiltered_delete_refused(self, store):
        with pytest.raises(StoreError):
            store.delete('games', {})

    def test_unique_violation_is_store_error(self, store, seed):
        seed.season(2025)
        with pytest.raises(StoreError):
            seed.season(2025)

    def test_update_returns_rowcount(self, store, seed):
        seed.school('Georgia', 'SEC')
        seed.school('Alabama', 'SEC')
        assert store.update('schools', {'conference': 'Big 12'}, {'conference': 'SEC'}) == 2


class TestConfig:
    """Tests for config loading and environment overrides."""

    @pytest.fixture(autouse=True)
    def fresh_cache(self):
        clear_config_cache()
        yield
        clear_config_cache()

    def test_default_config(self, monkeypatch):
        monkeypatch.delenv('CFB_CONFIG_PATH', raising=False)
        monkeypatch.delenv('CFB_DATABASE_URL', raising=False)

        config = get_config()

        assert config.scoring.points_win == 1
        assert config.scoring.points_ranked_10 == 2
        assert config.request_delay_seconds == 0.3

    def test_config_path_and_database_override(self, tmp_path, monkeypatch):
        path = tmp_path / 'config.json'
        path.write_text(json.dumps({'database_url': 'sqlite:///other.db', 'scoring': {'points_win': 2}}))
        monkeypatch.setenv('CFB_CONFIG_PATH', str(path))
        monkeypatch.setenv('CFB_DATABASE_URL', 'sqlite://')

        config = get_config()

        assert config.database_url == 'sqlite://'
        assert config.scoring.points_win == 2
        assert config.scoring.points_shutout == 1

    def test_unknown_scoring_field_rejected(self, tmp_path, monkeypatch):
        path = tmp_path / 'config.json'
        path.write_text(json.dumps({'scoring': {'points_touchdown': 6}}))
        monkeypatch.setenv('CFB_CONFIG_PATH', str(path))

        with pytest.raises(ConfigError):
            get_config()
