"""
Liquipedia MediaWiki API client.

Fetches tournament pages from https://liquipedia.net/dota2 and turns them
into raw tournament records.

Liquipedia API terms:
- A descriptive User-Agent with contact information is required
- At most one request every 2 seconds (action=parse: every 30 seconds)
- gzip encoding must be accepted
"""

import json
import logging
import re
import threading
import time
from typing import Any, Dict, List, Optional

import requests

from dotafantasy import config
from dotafantasy.clients.exceptions import ProviderError
from dotafantasy.clients.wikitext import parse_infobox, parse_team_cards, split_participants
from dotafantasy.mapping.assemble import wiki_url
from dotafantasy.services.cache import CacheService, get_cache_service
from dotafantasy.types import RawTournamentDict

logger = logging.getLogger(__name__)

TIER_CATEGORIES = {
    1: 'Tier_1_Tournaments',
    2: 'Tier_2_Tournaments',
    3: 'Tier_3_Tournaments',
    4: 'Tier_4_Tournaments',
}

# Pages listed in tournament categories that are not tournaments we import
EXCLUDED_PAGE_PATTERNS = [
    re.compile(p, re.IGNORECASE) for p in (
        r'^User:',
        r'^Talk:',
        r'^Template:',
        r'^Category:',
        r'^File:',
        r'Qualifier',
        r'_Wildcard',
        r'Regional_Final',
    )
]

_PRIZE_POOL_PAGE = re.compile(r'\{\{:([^}]+)\}\}')


class LiquipediaClient:
    """
    Client for the Liquipedia Dota 2 MediaWiki API.

    Responses are cached in memory; requests are spaced according to the
    Liquipedia rate limits and retried with exponential backoff.
    """

    # Retry configuration
    MAX_RETRIES = 3
    BASE_BACKOFF_SECONDS = 2  # Exponential: 1, 2 seconds

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        cache: Optional[CacheService] = None,
        api_url: Optional[str] = None,
        rate_limit: Optional[float] = None,
        parse_rate_limit: Optional[float] = None,
        timeout: Optional[float] = None
    ):
        """
        Initialize the Liquipedia client.

        Args:
            session: requests session to use (default: new session)
            cache: Response cache (default: global cache service)
            api_url: api.php endpoint (default: LIQUIPEDIA_API_URL)
            rate_limit: Seconds between standard requests
            parse_rate_limit: Seconds between action=parse requests
            timeout: Request timeout in seconds
        """
        self.api_url = api_url or config.LIQUIPEDIA_API_URL
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": config.LIQUIPEDIA_USER_AGENT,
            "Accept-Encoding": "gzip",
            "Accept": "application/json",
        })
        self.cache = cache or get_cache_service()
        self.rate_limit = config.LIQUIPEDIA_RATE_LIMIT_SECONDS if rate_limit is None else rate_limit
        self.parse_rate_limit = (
            config.LIQUIPEDIA_PARSE_RATE_LIMIT_SECONDS if parse_rate_limit is None else parse_rate_limit
        )
        self.timeout = config.HTTP_TIMEOUT_SECONDS if timeout is None else timeout

        self._last_request = {False: 0.0, True: 0.0}
        self._rate_lock = threading.Lock()

    # =========================================================================
    # REQUESTS
    # =========================================================================

    def _wait_for_rate_limit(self, is_parse: bool) -> None:
        """Sleep until the next request of this kind is allowed."""
        interval = self.parse_rate_limit if is_parse else self.rate_limit
        with self._rate_lock:
            wait_time = self._last_request[is_parse] + interval - time.monotonic()
            if wait_time > 0:
                logger.debug(f"Rate limiting: waiting {wait_time:.1f}s")
                time.sleep(wait_time)
            self._last_request[is_parse] = time.monotonic()

    def _request(self, params: Dict[str, str], is_parse: bool = False) -> Dict[str, Any]:
        """
        Make an API request with caching, rate limiting and retries.

        Server errors, 429 responses and network failures are retried.

        Raises:
            ProviderError: If the request keeps failing or the API reports an error
        """
        params = {**params, 'format': 'json'}
        cache_key = json.dumps(params, sort_keys=True)
        cache_type = 'parse' if is_parse else 'wikitext'

        cached = self.cache.get(cache_key, cache_type)
        if cached is not None:
            logger.debug(f"Cache hit for: {cache_key}")
            return cached

        for attempt in range(self.MAX_RETRIES):
            self._wait_for_rate_limit(is_parse)
            try:
                response = self.session.get(self.api_url, params=params, timeout=self.timeout)
                response.raise_for_status()
                data = response.json()
                break
            except requests.HTTPError as e:
                status = e.response.status_code if e.response is not None else None
                retryable = status is None or status == 429 or status >= 500
                if not retryable or attempt == self.MAX_RETRIES - 1:
                    raise ProviderError(
                        f"Liquipedia request failed: {e}", provider='liquipedia', status_code=status
                    ) from e
                self._backoff(attempt, e)
            except (requests.RequestException, ValueError) as e:
                if attempt == self.MAX_RETRIES - 1:
                    raise ProviderError(
                        f"Liquipedia request failed after {self.MAX_RETRIES} attempts: {e}",
                        provider='liquipedia'
                    ) from e
                self._backoff(attempt, e)

        if 'error' in data:
            error = data['error']
            raise ProviderError(
                f"Liquipedia API error: {error.get('code')} - {error.get('info')}",
                provider='liquipedia'
            )

        self.cache.set(cache_key, data, cache_type)
        return data

    def _backoff(self, attempt: int, error: Exception) -> None:
        wait_time = self.BASE_BACKOFF_SECONDS ** attempt
        logger.warning(
            f"Liquipedia request failed, retry {attempt + 1}/{self.MAX_RETRIES} in {wait_time}s... ({error})"
        )
        time.sleep(wait_time)

    @staticmethod
    def _first_page(data: Dict[str, Any]) -> Dict[str, Any]:
        pages = (data.get('query') or {}).get('pages') or {}
        if isinstance(pages, list):
            return pages[0] if pages else {}
        return next(iter(pages.values()), {})

    # =========================================================================
    # PAGES
    # =========================================================================

    def get_page_wikitext(self, page_name: str) -> str:
        """
        Get the raw wikitext of a page, following redirects.

        Returns:
            Wikitext, or '' when the page does not exist
        """
        data = self._request({
            'action': 'query',
            'titles': page_name,
            'prop': 'revisions',
            'rvprop': 'content',
            'redirects': '1',
        })

        revisions = self._first_page(data).get('revisions') or []
        if not revisions:
            return ''

        revision = revisions[0]
        if '*' in revision:
            return revision['*'] or ''
        return ((revision.get('slots') or {}).get('main') or {}).get('*', '')

    def get_image_url(self, image_name: Optional[str]) -> Optional[str]:
        """Resolve a File: name to its full URL."""
        if not image_name:
            return None

        data = self._request({
            'action': 'query',
            'titles': f"File:{image_name}",
            'prop': 'imageinfo',
            'iiprop': 'url',
        })

        imageinfo = self._first_page(data).get('imageinfo') or []
        return imageinfo[0].get('url') if imageinfo else None

    def get_page_images(self, page_name: str) -> List[str]:
        """List the image files used on a page (action=parse, slow rate limit)."""
        data = self._request({
            'action': 'parse',
            'page': page_name,
            'prop': 'images',
        }, is_parse=True)
        return (data.get('parse') or {}).get('images') or []

    def get_page_image(self, page_name: str) -> Optional[str]:
        """
        Get the logo URL of a tournament page.

        Uses the infobox image when present, otherwise looks for an image
        named after the page ("The_International_2024.png").

        Returns:
            Image URL or None
        """
        try:
            infobox = parse_infobox(self.get_page_wikitext(page_name), 'Infobox league')
            url = self.get_image_url(infobox.get('image'))
            if url:
                return url

            expected = page_name.replace('/', '_').lower()
            for image in self.get_page_images(page_name):
                lower = image.lower()
                if lower in (f"{expected}.png", f"{expected}_allmode.png", f"{expected}_lightmode.png"):
                    return self.get_image_url(image)
        except ProviderError as e:
            logger.warning(f"Failed to get logo for {page_name}: {e}")

        return None

    def get_team_logo(self, team_name: str) -> Optional[str]:
        """Get a team's logo URL from its team page."""
        try:
            wikitext = self.get_page_wikitext(team_name.replace(' ', '_'))
            infobox = parse_infobox(wikitext, 'Infobox team')
            return self.get_image_url(infobox.get('image'))
        except ProviderError as e:
            logger.warning(f"Failed to get team logo for {team_name}: {e}")
            return None

    # =========================================================================
    # TOURNAMENTS
    # =========================================================================

    def _resolve_prize_pool(self, raw_value: Optional[str]) -> Optional[float]:
        """
        Resolve the prizepoolusd field.

        The field is either a number or a transclusion of a page holding
        the running total ("{{:The_International/2024/prizepool}}").
        """
        if not raw_value:
            return None

        page = _PRIZE_POOL_PAGE.search(raw_value)
        text = raw_value
        if page:
            try:
                text = self.get_page_wikitext(page.group(1))
            except ProviderError as e:
                logger.warning(f"Failed to fetch prize pool: {e}")
                return None

        match = re.search(r'\d+(?:\.\d+)?', re.sub(r'[,$]', '', text))
        return float(match.group(0)) if match else None

    def get_tournament(self, page_name: str) -> RawTournamentDict:
        """
        Fetch a tournament page and assemble its raw record.

        Args:
            page_name: Liquipedia page name (e.g. "The_International/2024")

        Returns:
            Raw tournament with infobox fields and participants

        Raises:
            ProviderError: If the page cannot be fetched or does not exist
        """
        logger.info(f"Fetching tournament: {page_name}")

        wikitext = self.get_page_wikitext(page_name)
        if not wikitext:
            raise ProviderError(f"Liquipedia page not found: {page_name}", provider='liquipedia')

        infobox = parse_infobox(wikitext, 'Infobox league', preserve=['prizepoolusd'])
        logger.debug(f"Parsed infobox fields: {', '.join(infobox.keys())}")

        participants = parse_team_cards(wikitext)
        direct_invites, qualified_teams = split_participants(participants)

        location = ', '.join(v for v in (infobox.get('city'), infobox.get('country')) if v)
        organizers = ', '.join(v for v in (infobox.get('organizer'), infobox.get('organizer2')) if v)
        venues = '; '.join(v for v in (infobox.get('venue'), infobox.get('venue1'), infobox.get('venue2')) if v)

        raw: RawTournamentDict = {
            'name': infobox.get('name') or page_name.replace('_', ' '),
            'pageName': page_name,
            'shortName': infobox.get('shortname'),
            'tier': infobox.get('liquipediatier'),
            'valveTier': infobox.get('publishertier'),
            'type': infobox.get('type'),
            'organizer': organizers or None,
            'location': location or None,
            'venue': venues or None,
            'format': infobox.get('format'),
            'prizePool': infobox.get('prizepool') or infobox.get('prizepoolusd'),
            'prizePoolUsd': self._resolve_prize_pool(infobox.get('prizepoolusd')),
            'startDate': infobox.get('sdate') or infobox.get('date'),
            'endDate': infobox.get('edate'),
            'patch': infobox.get('patch'),
            'leagueId': infobox.get('leagueid'),
            'liquipediaUrl': wiki_url(page_name),
            'winner': infobox.get('winner') or infobox.get('1st'),
            'runnerUp': infobox.get('runnerup') or infobox.get('2nd'),
            'directInvites': direct_invites,
            'qualifiedTeams': qualified_teams,
        }

        if infobox.get('team_number', '').isdigit():
            raw['participants'] = int(infobox['team_number'])

        logger.info(
            f"Parsed {page_name}: {len(direct_invites)} invited, {len(qualified_teams)} qualified teams"
        )
        return raw

    def get_category_members(self, category: str, limit: int = 50) -> List[str]:
        """
        List page titles in a category.

        Args:
            category: Category name without the "Category:" prefix
            limit: Maximum number of pages
        """
        data = self._request({
            'action': 'query',
            'list': 'categorymembers',
            'cmtitle': f"Category:{category}",
            'cmlimit': str(limit),
        })
        members = (data.get('query') or {}).get('categorymembers') or []
        return [m['title'] for m in members if m.get('title')]

    def search_tournaments(self, tier: int, year: int, limit: int = 50) -> List[str]:
        """
        Discover tournament page names of a tier and year.

        Falls back to the "Tournaments_in_<year>" category when the tier
        category is empty. Qualifiers and non-article pages are dropped.

        Returns:
            Page names with spaces replaced by underscores
        """
        if tier not in TIER_CATEGORIES:
            raise ValueError(f"Unknown tier: {tier}. Valid tiers: {sorted(TIER_CATEGORIES)}")

        category = f"{TIER_CATEGORIES[tier]}_in_{year}"
        logger.info(f"Querying category: {category}")
        titles = self.get_category_members(category, limit)

        if not titles:
            fallback = f"Tournaments_in_{year}"
            logger.warning(f"Category {category} is empty, trying: {fallback}")
            titles = self.get_category_members(fallback, limit)

        pages = []
        for title in titles:
            if any(pattern.search(title) for pattern in EXCLUDED_PAGE_PATTERNS):
                continue
            pages.append(re.sub(r'\s+', '_', title))
        return pages
