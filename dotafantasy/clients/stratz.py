"""STRATZ GraphQL API client for Dota 2 league data."""

import logging
import threading
import time
from typing import Any, Dict, List, Optional

import httpx

from dotafantasy import config
from dotafantasy.clients.exceptions import ProviderError
from dotafantasy.services.cache import CacheService, get_cache_service
from dotafantasy.types import StratzMatchSummaryDict

logger = logging.getLogger(__name__)

LEAGUE_MATCHES_QUERY = """
query GetLeagueMatches($leagueId: Int!, $take: Int!, $skip: Int!) {
  league(id: $leagueId) {
    id
    displayName
    matches(request: { take: $take, skip: $skip }) {
      id
      didRadiantWin
      durationSeconds
      startDateTime
      series {
        id
        type
        teamOneId
        teamTwoId
        teamOneWinCount
        teamTwoWinCount
      }
      radiantTeam {
        id
        name
        tag
      }
      direTeam {
        id
        name
        tag
      }
    }
  }
}
"""

LEAGUE_INFO_QUERY = """
query GetLeagueInfo($leagueId: Int!) {
  league(id: $leagueId) {
    id
    displayName
    name
    tier
    region
    startDateTime
    endDateTime
    prizePool
    nodeGroups {
      id
      name
      nodeGroupType
      nodes {
        id
        name
        nodeType
        teamOneId
        teamTwoId
        teamOneWins
        teamTwoWins
        hasStarted
        isCompleted
        scheduledTime
        actualTime
        seriesId
      }
    }
  }
}
"""

UNKNOWN_TEAM = 'Unknown'


def _team_ref(team: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    team = team or {}
    return {
        'id': team.get('id') or 0,
        'name': team.get('name') or UNKNOWN_TEAM,
        'tag': team.get('tag'),
    }


class StratzClient:
    """Synchronous client for the STRATZ GraphQL API."""

    DEFAULT_BATCH_SIZE = 100

    # Safety limit for pagination
    MAX_PAGES = 50

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        cache: Optional[CacheService] = None,
        api_url: Optional[str] = None,
        token: Optional[str] = None,
        rate_limit: Optional[float] = None
    ) -> None:
        """Initialize the API client.

        Args:
            client: httpx client to use (tests pass one with a MockTransport)
            cache: Response cache (default: global cache service)
            api_url: GraphQL endpoint (default: STRATZ_API_URL)
            token: API token (default: STRATZ_API_TOKEN)
            rate_limit: Minimum seconds between requests
        """
        self.api_url = api_url or config.STRATZ_API_URL
        self.token = token if token is not None else config.STRATZ_API_TOKEN
        self.rate_limit = config.STRATZ_RATE_LIMIT_SECONDS if rate_limit is None else rate_limit
        self.cache = cache or get_cache_service()

        self.headers = {
            "Content-Type": "application/json",
            "User-Agent": "STRATZ_API",
        }
        if self.token:
            self.headers["Authorization"] = f"Bearer {self.token}"
        else:
            logger.warning("STRATZ_API_TOKEN not configured")

        self.client = client or httpx.Client(timeout=config.HTTP_TIMEOUT_SECONDS)
        self._last_request = 0.0
        self._rate_lock = threading.Lock()

    @property
    def configured(self) -> bool:
        """Whether an API token is available."""
        return bool(self.token)

    def close(self) -> None:
        self.client.close()

    def _wait_for_rate_limit(self) -> None:
        with self._rate_lock:
            wait_time = self._last_request + self.rate_limit - time.monotonic()
            if wait_time > 0:
                time.sleep(wait_time)
            self._last_request = time.monotonic()

    def _query(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """Execute a GraphQL query.

        Returns:
            The "data" member of the response

        Raises:
            ProviderError: On HTTP failures, GraphQL errors or an empty response
        """
        self._wait_for_rate_limit()

        try:
            response = self.client.post(
                self.api_url,
                json={"query": query, "variables": variables},
                headers=self.headers,
            )
            response.raise_for_status()
            result = response.json()
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"STRATZ API error: {e.response.status_code} {e.response.reason_phrase}",
                provider='stratz',
                status_code=e.response.status_code
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(f"STRATZ request failed: {e}", provider='stratz') from e

        if result.get("errors"):
            messages = ', '.join(err.get("message", "") for err in result["errors"])
            raise ProviderError(f"STRATZ GraphQL errors: {messages}", provider='stratz')

        if not result.get("data"):
            raise ProviderError("STRATZ API returned no data", provider='stratz')

        return result["data"]

    def get_league_matches(
        self,
        league_id: int,
        take: int = DEFAULT_BATCH_SIZE,
        skip: int = 0
    ) -> List[StratzMatchSummaryDict]:
        """Fetch one page of a league's matches.

        Args:
            league_id: STRATZ league id (Liquipedia "leagueid")
            take: Page size
            skip: Number of matches to skip

        Returns:
            Match summaries
        """
        cache_key = f"league_matches_{league_id}_{take}_{skip}"
        cached = self.cache.get(cache_key, "stratz")
        if cached is not None:
            logger.debug(f"Returning cached matches for league {league_id}")
            return cached

        logger.info(f"Fetching matches for league {league_id} (skip={skip})")
        data = self._query(LEAGUE_MATCHES_QUERY, {"leagueId": league_id, "take": take, "skip": skip})

        league = data.get("league") or {}
        summaries: List[StratzMatchSummaryDict] = []
        for match in league.get("matches") or []:
            series = match.get("series") or {}
            summaries.append({
                "matchId": match.get("id"),
                "radiantTeam": _team_ref(match.get("radiantTeam")),
                "direTeam": _team_ref(match.get("direTeam")),
                "radiantWin": match.get("didRadiantWin"),
                "durationSeconds": match.get("durationSeconds"),
                "startDateTime": match.get("startDateTime") or 0,
                "seriesId": series.get("id"),
                "seriesType": series.get("type"),
            })

        self.cache.set(cache_key, summaries, "stratz")
        return summaries

    def get_all_league_matches(
        self,
        league_id: int,
        batch_size: int = DEFAULT_BATCH_SIZE
    ) -> List[StratzMatchSummaryDict]:
        """Fetch every match of a league, page by page."""
        matches: List[StratzMatchSummaryDict] = []

        for page in range(self.MAX_PAGES):
            batch = self.get_league_matches(league_id, take=batch_size, skip=page * batch_size)
            matches.extend(batch)
            if len(batch) < batch_size:
                break
        else:
            logger.warning(f"Stopped after {self.MAX_PAGES} pages for league {league_id}")

        logger.info(f"Fetched {len(matches)} matches for league {league_id}")
        return matches

    def get_league_info(self, league_id: int) -> Optional[Dict[str, Any]]:
        """Fetch league details including its node groups (stages).

        Returns:
            League dict or None when STRATZ does not know the league
        """
        cache_key = f"league_info_{league_id}"
        cached = self.cache.get(cache_key, "stratz")
        if cached is not None:
            return cached

        logger.info(f"Fetching league info for {league_id}")
        data = self._query(LEAGUE_INFO_QUERY, {"leagueId": league_id})

        league = data.get("league")
        if league:
            self.cache.set(cache_key, league, "stratz")
        return league
