"""College football scoreboard, rankings and teams from the ESPN public API."""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

import requests

from .constants import (
    ESPN_BASE_URL,
    ESPN_FBS_GROUP,
    SEASON_TYPE_REGULAR,
)
from .errors import UpstreamError

logger = logging.getLogger('cfbfantasy.data_fetcher')

RETRY_STATUS_CODES = (429, 500, 502, 503, 504)


@dataclass
class GameResult:
    """One upstream game, reduced to what the engine needs."""
    external_id: str
    headline: Optional[str]
    kickoff: Optional[datetime]
    state: str  # pre / in / post
    home_team_id: str
    away_team_id: str
    home_team_name: str = ''
    away_team_name: str = ''
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    home_rank: Optional[int] = None  # 99 means unranked
    away_rank: Optional[int] = None


@dataclass
class PollEntry:
    rank: int
    team_id: str
    team_name: str = ''


@dataclass
class PollResult:
    """The AP Top 25 as returned upstream."""
    name: str
    entries: List[PollEntry] = field(default_factory=list)


@dataclass
class TeamInfo:
    """An upstream team, as listed by the teams endpoint."""
    team_id: str
    display_name: str
    location: str = ''
    short_name: str = ''
    abbreviation: str = ''
    logo_url: Optional[str] = None

    def names(self) -> List[str]:
        """Lower-cased names a school row may be stored under, most specific first."""
        candidates = [self.location, self.display_name, self.short_name, self.abbreviation]
        return [n.strip().lower() for n in candidates if n and n.strip()]


def _parse_kickoff(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        logger.warning(f'Unparseable kickoff time: {value}')
        return None


def _parse_score(value) -> Optional[int]:
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_event(event: dict) -> Optional[GameResult]:
    """
    Convert a scoreboard event to a GameResult.

    Returns None for events without a competition or without both a home
    and an away competitor.
    """
    competitions = event.get('competitions') or []
    if not competitions:
        return None
    competition = competitions[0]
    competitors = competition.get('competitors') or []
    home = next((c for c in competitors if c.get('homeAway') == 'home'), None)
    away = next((c for c in competitors if c.get('homeAway') == 'away'), None)
    if home is None or away is None:
        return None

    state = ((competition.get('status') or {}).get('type') or {}).get('state', 'pre')
    notes = competition.get('notes') or []
    headline = notes[0].get('headline') if notes else None

    def rank_of(competitor):
        return (competitor.get('curatedRank') or {}).get('current')

    scored = state != 'pre'
    return GameResult(
        external_id=str(event['id']),
        headline=headline,
        kickoff=_parse_kickoff(event.get('date')),
        state=state,
        home_team_id=str(home['team']['id']),
        away_team_id=str(away['team']['id']),
        home_team_name=home['team'].get('displayName', ''),
        away_team_name=away['team'].get('displayName', ''),
        home_score=(_parse_score(home.get('score')) or 0) if scored else None,
        away_score=(_parse_score(away.get('score')) or 0) if scored else None,
        home_rank=rank_of(home),
        away_rank=rank_of(away),
    )


def find_ap_poll(payload: dict) -> Optional[PollResult]:
    """Pick the AP poll out of a rankings payload."""
    for poll in payload.get('rankings') or []:
        name = poll.get('name') or ''
        if poll.get('type') == 'ap' or 'ap' in name.lower().split():
            entries = [
                PollEntry(
                    rank=r['current'],
                    team_id=str(r['team']['id']),
                    team_name=r['team'].get('displayName', ''),
                )
                for r in poll.get('ranks') or []
                if r.get('team') and r.get('current')
            ]
            return PollResult(name=name, entries=entries)
    return None


def _pick_logo(logos: list) -> Optional[str]:
    """Prefer a dark-background logo, else the first one."""
    if not logos:
        return None
    for logo in logos:
        if any('dark' in rel for rel in logo.get('rel') or []):
            return logo.get('href')
    return logos[0].get('href')


def parse_teams(payload: dict) -> list[TeamInfo]:
    """Flatten a teams payload (sports -> leagues -> teams -> team) into TeamInfo."""
    teams = []
    for sport in payload.get('sports') or []:
        for league in sport.get('leagues') or []:
            for wrapper in league.get('teams') or []:
                team = wrapper.get('team') or {}
                if not team.get('id'):
                    continue
                teams.append(TeamInfo(
                    team_id=str(team['id']),
                    display_name=team.get('displayName', ''),
                    location=team.get('location', ''),
                    short_name=team.get('shortDisplayName', ''),
                    abbreviation=team.get('abbreviation', ''),
                    logo_url=_pick_logo(team.get('logos') or []),
                ))
    return teams


class ESPNClient:
    """
    Fetches scoreboards and rankings from ESPN.

    Failed requests (network errors, 429 and 5xx responses) are retried with
    a fixed delay; anything still failing raises UpstreamError.
    """

    def __init__(
        self,
        base_url: str = ESPN_BASE_URL,
        request_delay: float = 0.3,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
        max_retries: int = 3,
    ):
        self.base_url = base_url.rstrip('/')
        self.request_delay = request_delay
        self.timeout = timeout
        self.max_retries = max_retries
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': 'cfbfantasy/1.0'})

    @classmethod
    def from_config(cls, config, session: Optional[requests.Session] = None) -> 'ESPNClient':
        return cls(
            base_url=config.espn_base_url,
            request_delay=config.request_delay_seconds,
            session=session,
            timeout=config.request_timeout_seconds,
            max_retries=config.max_retries,
        )

    def pause(self) -> None:
        """Fixed delay between sequential fetches."""
        if self.request_delay > 0:
            time.sleep(self.request_delay)

    def _get_json(self, path: str, params: dict) -> dict:
        url = f'{self.base_url}/{path}'
        last_error = None

        for attempt in range(1, self.max_retries + 1):
            try:
                response = self.session.get(url, params=params, timeout=self.timeout)
            except requests.exceptions.RequestException as e:
                last_error = f'Request failed: {e}'
                logger.warning(f'{last_error} (attempt {attempt}/{self.max_retries})')
            else:
                if response.status_code in RETRY_STATUS_CODES:
                    last_error = f'HTTP {response.status_code} from {url}'
                    logger.warning(f'{last_error} (attempt {attempt}/{self.max_retries})')
                elif response.status_code >= 400:
                    raise UpstreamError(f'HTTP {response.status_code} from {url}')
                else:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise UpstreamError(f'Malformed JSON from {url}: {e}') from e

            if attempt < self.max_retries:
                self.pause()

        raise UpstreamError(f'{last_error} after {self.max_retries} attempts')

    def fetch_scoreboard(
        self,
        year: int,
        week: int,
        season_type: int = SEASON_TYPE_REGULAR,
    ) -> list[GameResult]:
        """
        Fetch FBS games for a week.

        Args:
            year: Season year
            week: Upstream week number (postseason weeks restart at 1)
            season_type: 2 for regular season, 3 for postseason

        Returns:
            List of GameResult

        Raises:
            UpstreamError: If the scoreboard can't be fetched or parsed
        """
        payload = self._get_json(
            'scoreboard',
            {'dates': year, 'seasontype': season_type, 'week': week, 'groups': ESPN_FBS_GROUP},
        )
        results = []
        for event in payload.get('events') or []:
            try:
                game = parse_event(event)
            except (KeyError, TypeError) as e:
                logger.warning(f'Skipping malformed event {event.get("id")}: {e}')
                continue
            if game is not None:
                results.append(game)
        logger.debug(f'Fetched {len(results)} games for {year} week {week} (type {season_type})')
        return results

    def fetch_rankings(self, year: int) -> PollResult:
        """
        Fetch the current AP Top 25.

        Raises:
            UpstreamError: If rankings can't be fetched or have no AP poll
        """
        payload = self._get_json('rankings', {'seasons': year})
        poll = find_ap_poll(payload)
        if poll is None:
            raise UpstreamError('AP Top 25 poll not found in rankings response')
        return poll

    def fetch_teams(self) -> list[TeamInfo]:
        """
        Fetch every college football team upstream knows about.

        Raises:
            UpstreamError: If the teams list can't be fetched
        """
        teams = parse_teams(self._get_json('teams', {'limit': 1000}))
        logger.debug(f'Fetched {len(teams)} teams')
        return teams
