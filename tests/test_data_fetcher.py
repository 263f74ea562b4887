"""Tests for the ESPN client and payload parsing."""

from unittest.mock import MagicMock

import pytest
import requests

from cfbfantasy.data_fetcher import (
    ESPNClient,
    find_ap_poll,
    parse_event,
    parse_teams,
)
from cfbfantasy.errors import UpstreamError


def make_event(event_id='401', state='post', home_score='31', away_score='14', headline=None):
    competition = {
        'status': {'type': {'state': state}},
        'competitors': [
            {
                'homeAway': 'home',
                'score': home_score,
                'curatedRank': {'current': 5},
                'team': {'id': '61', 'displayName': 'Georgia Bulldogs'},
            },
            {
                'homeAway': 'away',
                'score': away_score,
                'curatedRank': {'current': 99},
                'team': {'id': '333', 'displayName': 'Alabama Crimson Tide'},
            },
        ],
    }
    if headline:
        competition['notes'] = [{'headline': headline}]
    return {'id': event_id, 'date': '2025-09-13T19:30Z', 'competitions': [competition]}


def response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload if payload is not None else {}
    return resp


def client_with(*responses):
    session = MagicMock()
    session.get.side_effect = list(responses)
    return ESPNClient(base_url='https://example.test/cfb', request_delay=0, session=session), session


class TestParseEvent:
    """Tests for turning scoreboard events into GameResults."""

    def test_completed_game(self):
        game = parse_event(make_event())

        assert game.external_id == '401'
        assert game.state == 'post'
        assert game.home_team_id == '61'
        assert game.away_team_id == '333'
        assert game.home_score == 31
        assert game.away_score == 14
        assert game.home_rank == 5
        assert game.away_rank == 99
        assert game.kickoff.tzinfo is not None

    def test_scheduled_game_has_no_scores(self):
        game = parse_event(make_event(state='pre', home_score='0', away_score='0'))
        assert game.home_score is None
        assert game.away_score is None

    def test_headline(self):
        game = parse_event(make_event(headline='Rose Bowl Game'))
        assert game.headline == 'Rose Bowl Game'

    def test_missing_competitor(self):
        event = make_event()
        event['competitions'][0]['competitors'].pop()
        assert parse_event(event) is None

    def test_no_competition(self):
        assert parse_event({'id': '1', 'competitions': []}) is None


class TestFindApPoll:
    """Tests for picking the AP poll out of the rankings payload."""

    def test_ap_poll_found(self):
        payload = {'rankings': [
            {'name': 'AFCA Coaches Poll', 'type': 'usa', 'ranks': [{'current': 1, 'team': {'id': '1'}}]},
            {'name': 'AP Top 25', 'type': 'ap', 'ranks': [
                {'current': 1, 'team': {'id': '61', 'displayName': 'Georgia'}},
                {'current': 2, 'team': {'id': '333', 'displayName': 'Alabama'}},
            ]},
        ]}

        poll = find_ap_poll(payload)

        assert poll.name == 'AP Top 25'
        assert [(e.rank, e.team_id) for e in poll.entries] == [(1, '61'), (2, '333')]

    def test_no_ap_poll(self):
        assert find_ap_poll({'rankings': [{'name': 'Coaches Poll', 'type': 'usa'}]}) is None


class TestESPNClient:
    """Tests for requests and retries."""

    def test_scoreboard_params(self):
        client, session = client_with(response(payload={'events': [make_event()]}))

        games = client.fetch_scoreboard(2025, 3)

        assert len(games) == 1
        url = session.get.call_args[0][0]
        params = session.get.call_args[1]['params']
        assert url == 'https://example.test/cfb/scoreboard'
        assert params == {'dates': 2025, 'seasontype': 2, 'week': 3, 'groups': 80}

    def test_retries_server_errors(self):
        client, session = client_with(response(503), response(payload={'events': []}))

        assert client.fetch_scoreboard(2025, 3) == []
        assert session.get.call_count == 2

    def test_retries_network_errors(self):
        client, session = client_with(
            requests.exceptions.ConnectionError('boom'),
            response(payload={'events': []}),
        )

        assert client.fetch_scoreboard(2025, 3) == []
        assert session.get.call_count == 2

    def test_gives_up_after_max_retries(self):
        client, session = client_with(response(500), response(502), response(503))

        with pytest.raises(UpstreamError):
            client.fetch_scoreboard(2025, 3)
        assert session.get.call_count == 3

    def test_client_error_not_retried(self):
        client, session = client_with(response(404))

        with pytest.raises(UpstreamError):
            client.fetch_scoreboard(2025, 3)
        assert session.get.call_count == 1

    def test_malformed_json(self):
        bad = response()
        bad.json.side_effect = ValueError('not json')
        client, _ = client_with(bad)

        with pytest.raises(UpstreamError):
            client.fetch_scoreboard(2025, 3)

    def test_rankings_without_ap_poll(self):
        client, _ = client_with(response(payload={'rankings': []}))

        with pytest.raises(UpstreamError):
            client.fetch_rankings(2025)

    def test_malformed_event_skipped(self):
        broken = {'id': '2', 'competitions': [{'competitors': [{'homeAway': 'home'}, {'homeAway': 'away'}]}]}
        client, _ = client_with(response(payload={'events': [broken, make_event()]}))

        games = client.fetch_scoreboard(2025, 3)

        assert [g.external_id for g in games] == ['401']


def teams_payload(*teams):
    return {'sports': [{'leagues': [{'teams': [{'team': t} for t in teams]}]}]}


class TestTeams:
    """Tests for the teams list."""

    def test_parse_teams(self):
        payload = teams_payload(
            {
                'id': 61, 'location': 'Georgia', 'displayName': 'Georgia Bulldogs',
                'shortDisplayName': 'Georgia', 'abbreviation': 'UGA',
                'logos': [
                    {'href': 'https://a.test/61.png', 'rel': ['full', 'default']},
                    {'href': 'https://a.test/61-dark.png', 'rel': ['full', 'dark']},
                ],
            },
            {'displayName': 'No Id'},
        )

        teams = parse_teams(payload)

        assert len(teams) == 1
        assert teams[0].team_id == '61'
        assert teams[0].abbreviation == 'UGA'
        assert teams[0].logo_url == 'https://a.test/61-dark.png'
        assert teams[0].names() == ['georgia', 'georgia bulldogs', 'georgia', 'uga']

    def test_empty_payload(self):
        assert parse_teams({}) == []

    def test_fetch_teams(self):
        client, session = client_with(response(payload=teams_payload({'id': '333', 'displayName': 'Alabama'})))

        teams = client.fetch_teams()

        assert [t.team_id for t in teams] == ['333']
        assert teams[0].logo_url is None
        assert session.get.call_args[0][0] == 'https://example.test/cfb/teams'
        assert session.get.call_args[1]['params'] == {'limit': 1000}
