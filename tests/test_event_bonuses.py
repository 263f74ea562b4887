"""Tests for postseason event bonuses."""

import pytest

from cfbfantasy.errors import NotFoundError
from cfbfantasy.event_bonuses import (
    apply_event_bonuses,
    compute_event_bonuses,
    find_bye_schools,
    find_school,
    load_league_settings,
    record_heisman_winner,
)
from cfbfantasy.models import Game
from cfbfantasy.schemas import LeagueSettings

SETTINGS = LeagueSettings(
    league_id='league',
    points_conference_championship_win=5,
    points_conference_championship_loss=2,
    points_bowl_appearance=3,
    points_playoff_first_round=4,
    points_playoff_quarterfinal=6,
    points_playoff_semifinal=8,
    points_championship_win=20,
    points_championship_loss=10,
    points_heisman_winner=7,
)


def game(game_id, week, home, away, home_score, away_score, **kwargs):
    return Game(
        id=game_id,
        season_id='season',
        week_number=week,
        home_school_id=home,
        away_school_id=away,
        home_score=home_score,
        away_score=away_score,
        status='completed',
        **kwargs,
    )


def playoff(game_id, week, playoff_round, home, away, home_score=28, away_score=21):
    return game(game_id, week, home, away, home_score, away_score,
                is_playoff_game=True, playoff_round=playoff_round)


def by_key(bonuses):
    return {(b.school_id, b.bonus_type): b for b in bonuses}


class TestConferenceChampionships:
    """Tests for conference championship bonuses."""

    def test_winner_and_loser_paid(self):
        games = [game('ccg', 15, 'uga', 'bama', 10, 20, is_conference_game=True)]

        bonuses = by_key(compute_event_bonuses(games, None, SETTINGS, 'league', 'season'))

        assert bonuses[('bama', 'conf_championship_win')].points == 5
        assert bonuses[('uga', 'conf_championship_loss')].points == 2
        assert bonuses[('uga', 'conf_championship_loss')].week_number == 15
        assert bonuses[('uga', 'conf_championship_loss')].game_id == 'ccg'

    def test_non_conference_week_15_game_ignored(self):
        games = [game('g', 15, 'uga', 'osu', 10, 20)]
        assert compute_event_bonuses(games, None, SETTINGS, 'league', 'season') == []

    def test_tied_game_pays_nobody(self):
        games = [game('ccg', 15, 'uga', 'bama', 17, 17, is_conference_game=True)]
        assert compute_event_bonuses(games, None, SETTINGS, 'league', 'season') == []


class TestBowls:
    """Tests for bowl appearance bonuses."""

    def test_both_participants_paid(self):
        games = [game('bowl', 17, 'uga', 'osu', 10, 20, is_bowl_game=True)]

        bonuses = compute_event_bonuses(games, None, SETTINGS, 'league', 'season')

        assert {(b.school_id, b.bonus_type, b.week_number) for b in bonuses} == {
            ('uga', 'bowl_appearance', 17),
            ('osu', 'bowl_appearance', 17),
        }

    def test_playoff_game_is_not_a_bowl_appearance(self):
        """Test CFP games hosted by bowls only pay the playoff bonus."""
        games = [playoff('qf', 19, 'quarterfinal', 'uga', 'osu')]

        bonuses = compute_event_bonuses(games, None, SETTINGS, 'league', 'season')

        assert all(b.bonus_type != 'bowl_appearance' for b in bonuses)

    def test_zero_amount_not_written(self):
        settings = SETTINGS.model_copy(update={'points_bowl_appearance': 0})
        games = [game('bowl', 17, 'uga', 'osu', 10, 20, is_bowl_game=True)]

        assert compute_event_bonuses(games, None, settings, 'league', 'season') == []


class TestPlayoffs:
    """Tests for playoff round bonuses and byes."""

    def test_bye_teams_get_first_round_bonus(self):
        """Test every quarterfinalist without a first-round game gets the first-round bonus."""
        first_round = [
            playoff('fr1', 18, 'first_round', 'a', 'b'),
            playoff('fr2', 18, 'first_round', 'c', 'd'),
            playoff('fr3', 18, 'first_round', 'e', 'f'),
            playoff('fr4', 18, 'first_round', 'g', 'h'),
        ]
        quarterfinals = [
            playoff('qf1', 19, 'quarterfinal', 'a', 'bye1'),
            playoff('qf2', 19, 'quarterfinal', 'c', 'bye2'),
            playoff('qf3', 19, 'quarterfinal', 'e', 'bye3'),
            playoff('qf4', 19, 'quarterfinal', 'g', 'bye4'),
        ]

        assert find_bye_schools(first_round, quarterfinals) == ['bye1', 'bye2', 'bye3', 'bye4']

        bonuses = compute_event_bonuses(first_round + quarterfinals, None, SETTINGS, 'league', 'season')
        first_round_paid = [b for b in bonuses if b.bonus_type == 'cfp_first_round']
        assert len(first_round_paid) == 12
        assert all(b.week_number == 18 for b in first_round_paid)
        byes = [b for b in first_round_paid if b.school_id.startswith('bye')]
        assert len(byes) == 4
        assert all(b.game_id is None for b in byes)

    def test_rounds_stack(self):
        """Test a semifinalist keeps its earlier round bonuses."""
        games = [
            playoff('fr', 18, 'first_round', 'uga', 'x'),
            playoff('qf', 19, 'quarterfinal', 'uga', 'y'),
            playoff('sf', 20, 'semifinal', 'uga', 'z'),
        ]

        bonuses = [b for b in compute_event_bonuses(games, None, SETTINGS, 'league', 'season')
                   if b.school_id == 'uga']

        assert sorted((b.week_number, b.points) for b in bonuses) == [(18, 4), (19, 6), (20, 8)]

    def test_championship(self):
        games = [playoff('natty', 21, 'championship', 'uga', 'osu', 14, 35)]

        bonuses = by_key(compute_event_bonuses(games, None, SETTINGS, 'league', 'season'))

        assert bonuses[('osu', 'championship_win')].points == 20
        assert bonuses[('uga', 'championship_loss')].points == 10
        assert bonuses[('osu', 'championship_win')].week_number == 21

    def test_championship_without_score_pays_nobody(self):
        games = [playoff('natty', 21, 'championship', 'uga', 'osu', None, None)]
        assert compute_event_bonuses(games, None, SETTINGS, 'league', 'season') == []

    def test_regular_season_games_ignored(self):
        games = [playoff('odd', 10, 'first_round', 'uga', 'osu')]
        assert compute_event_bonuses(games, None, SETTINGS, 'league', 'season') == []


class TestHeisman:
    """Tests for the Heisman bonus."""

    def test_heisman_in_week_22(self):
        bonuses = compute_event_bonuses([], 'osu', SETTINGS, 'league', 'season')

        assert len(bonuses) == 1
        assert bonuses[0].bonus_type == 'heisman'
        assert bonuses[0].week_number == 22
        assert bonuses[0].game_id is None

    def test_no_heisman_winner(self):
        assert compute_event_bonuses([], None, SETTINGS, 'league', 'season') == []


class TestApplyEventBonuses:
    """Tests for persisting a league's bonuses."""

    @pytest.fixture
    def setup(self, seed):
        season = seed.season(2025)
        uga = seed.school('Georgia', 'SEC')
        bama = seed.school('Alabama', 'SEC')
        league = seed.league(
            season,
            points_conference_championship_win=5,
            points_conference_championship_loss=2,
            points_heisman_winner=7,
        )
        seed.game(season, 15, uga, bama, 28, 7, is_conference_game=True)
        return season, league, uga, bama

    def test_writes_rows(self, store, setup):
        season, league, uga, bama = setup

        result = apply_event_bonuses(store, season, league)

        assert result.errors == []
        rows = store.select('league_school_event_bonuses', {'league_id': league})
        assert sorted((r['bonus_type'], r['points']) for r in rows) == [
            ('conf_championship_loss', 2),
            ('conf_championship_win', 5),
        ]

    def test_rerun_replaces_rows(self, store, setup):
        """Test running twice never double counts."""
        season, league, uga, bama = setup

        apply_event_bonuses(store, season, league)
        apply_event_bonuses(store, season, league)

        assert len(store.select('league_school_event_bonuses', {'league_id': league})) == 2

    def test_heisman_from_store(self, store, setup):
        season, league, uga, bama = setup
        store.insert_batch('heisman_winners', [{'season_id': season, 'school_id': bama, 'player_name': 'QB'}])

        apply_event_bonuses(store, season, league)

        row = store.select_one('league_school_event_bonuses', {'bonus_type': 'heisman'})
        assert row['school_id'] == bama
        assert row['week_number'] == 22

    def test_league_without_settings(self, store, seed, setup):
        """Test a league with no settings row gets no bonuses."""
        season = setup[0]
        bare = seed.league(season, 'Bare League')

        result = apply_event_bonuses(store, season, bare)

        assert result.bonuses == []
        assert load_league_settings(store, bare).points_heisman_winner == 0

    def test_unknown_league(self, store, setup):
        with pytest.raises(NotFoundError):
            apply_event_bonuses(store, setup[0], 'no-such-league')

    def test_league_in_other_season(self, store, seed, setup):
        other_season = seed.season(2024)
        with pytest.raises(NotFoundError):
            apply_event_bonuses(store, other_season, setup[1])


class TestRecordHeismanWinner:
    """Tests for recording the Heisman winner."""

    def test_recorded_winner_is_paid(self, store, seed):
        season = seed.season(2025)
        osu = seed.school('Ohio State', 'Big Ten')
        league = seed.league(season, points_heisman_winner=7)

        record_heisman_winner(store, season, osu, 'Jane Doe')
        apply_event_bonuses(store, season, league)

        row = store.select_one('league_school_event_bonuses', {'bonus_type': 'heisman'})
        assert row['school_id'] == osu
        assert row['points'] == 7

    def test_second_winner_replaces_first(self, store, seed):
        season = seed.season(2025)
        osu = seed.school('Ohio State', 'Big Ten')
        uga = seed.school('Georgia', 'SEC')

        record_heisman_winner(store, season, osu, 'Jane Doe')
        record_heisman_winner(store, season, uga, 'John Roe')

        rows = store.select('heisman_winners', {'season_id': season})
        assert len(rows) == 1
        assert rows[0]['school_id'] == uga
        assert rows[0]['player_name'] == 'John Roe'

    def test_unknown_school(self, store, seed):
        season = seed.season(2025)
        with pytest.raises(NotFoundError):
            record_heisman_winner(store, season, 'no-such-school', 'Jane Doe')

    def test_unknown_season(self, store, seed):
        osu = seed.school('Ohio State', 'Big Ten')
        with pytest.raises(NotFoundError):
            record_heisman_winner(store, 'no-such-season', osu, 'Jane Doe')


class TestFindSchool:
    """Tests for looking schools up by name or abbreviation."""

    def test_by_name_ignoring_case(self, store, seed):
        osu = seed.school('Ohio State', 'Big Ten')
        assert find_school(store, ' ohio state ')['id'] == osu

    def test_by_abbreviation(self, store, seed):
        uga = seed.school('Georgia', 'SEC')
        store.update('schools', {'abbreviation': 'UGA'}, {'id': uga})
        assert find_school(store, 'uga')['id'] == uga

    def test_not_found(self, store, seed):
        seed.school('Georgia', 'SEC')
        with pytest.raises(NotFoundError):
            find_school(store, 'Georgia Tech')
