"""
Field classification and defaulting.

Every function here is total: messy or missing provider data yields a
default value or None, never an exception. An import batch must not abort
because one record lacks a field.
"""

import re
from datetime import datetime, timezone
from typing import Optional

# Page name marker of the flagship annual event, always pinned to tier "ti"
FLAGSHIP_MARKER = 'the_international'

DEFAULT_TIER = 'tier2'

NUMERIC_TIERS = {
    '1': 'tier1',
    '2': 'tier2',
    '3': 'tier3',
    '4': 'tier4',
}

ROLES_BY_POSITION = {
    1: 'carry',
    2: 'mid',
    3: 'offlane',
    4: 'support4',
    5: 'support5',
}

# Evaluated top to bottom, first match wins. The order is a tie-break
# policy: "cis" must resolve before the short "sa"/"na" tokens are tried.
REGION_KEYWORDS = [
    (('western europe', 'weu'), 'Western Europe'),
    (('eastern europe', 'eeu', 'cis'), 'Eastern Europe'),
    (('china', 'cn'), 'China'),
    (('sea', 'southeast asia'), 'Southeast Asia'),
    (('north america', 'na'), 'North America'),
    (('south america', 'sa'), 'South America'),
    (('invited',), 'International'),
]

# Well-known organisations whose initials give a wrong or ambiguous tag.
# Exact, case-sensitive team names.
SPECIAL_TAGS = [
    ('Team Liquid', 'TL'),
    ('Team Secret', 'TS'),
    ('Team Spirit', 'TS'),
    ('Tundra Esports', 'TUN'),
    ('Gaimin Gladiators', 'GG'),
    ('OG', 'OG'),
    ('Nigma Galaxy', 'NGX'),
    ('BetBoom Team', 'BB'),
    ('Team Falcons', 'TF'),
    ('Xtreme Gaming', 'XG'),
]

MAX_TAG_LENGTH = 4

_CURRENCY_CHARS = re.compile(r'[$€£¥₽,]')
_NUMBER = re.compile(r'\d+(?:\.\d+)?')
_INTEGER = re.compile(r'\d+')


def is_flagship_event(page_name: Optional[str]) -> bool:
    """Check whether a page name denotes The International."""
    return bool(page_name) and FLAGSHIP_MARKER in page_name.lower()


def classify_tier(tier=None, page_name: Optional[str] = None) -> str:
    """
    Map a provider tier to our tier vocabulary.

    Args:
        tier: Liquipedia tier ("1".."4", "Major", "Minor", ...) or None
        page_name: Tournament page name, checked for the flagship marker

    Returns:
        One of ti, major, tier1, tier2, tier3, tier4 (tier2 when unknown)
    """
    if is_flagship_event(page_name):
        return 'ti'

    if tier is None or isinstance(tier, bool):
        return DEFAULT_TIER

    text = str(tier).strip().lower()
    if text in NUMERIC_TIERS:
        return NUMERIC_TIERS[text]
    if 'major' in text:
        return 'major'
    if 'minor' in text:
        return 'tier2'

    return DEFAULT_TIER


def position_to_role(position=None) -> Optional[str]:
    """
    Map a 1-5 roster position to a role.

    Accepts ints, numeric strings and STRATZ "POSITION_n" values.
    There is no default role: anything else yields None.
    """
    if position is None or isinstance(position, bool):
        return None

    if isinstance(position, str):
        text = position.strip().upper()
        if text.startswith('POSITION_'):
            text = text[len('POSITION_'):]
        if not text.isdigit():
            return None
        position = int(text)

    if isinstance(position, float) and position.is_integer():
        position = int(position)

    return ROLES_BY_POSITION.get(position)


def infer_region(*texts: Optional[str]) -> Optional[str]:
    """
    Infer a region from free text (qualifier name, notes, ...).

    Returns:
        Region name of the first matching keyword row, or None
    """
    text = ' '.join(t for t in texts if t).lower()
    if not text:
        return None

    for keywords, region in REGION_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return region

    return None


def region_from_location(location: Optional[str]) -> Optional[str]:
    """First comma-separated segment of a location ("Seattle, United States")."""
    if not location:
        return None
    first = location.split(',')[0].strip()
    return first or None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value=None) -> Optional[datetime]:
    """
    Parse an ISO 8601 date or datetime.

    Naive values are taken as UTC. Partial wiki dates such as
    "2024-09-??" yield None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return _as_utc(value)

    text = str(value).strip()
    if not text:
        return None

    try:
        parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
    except ValueError:
        return None

    return _as_utc(parsed)


def derive_status(
    start: Optional[datetime],
    end: Optional[datetime],
    now: datetime
) -> str:
    """
    Derive a tournament's lifecycle status from its dates.

    Args:
        start: Start instant, if known
        end: End instant, if known
        now: Reference instant

    Returns:
        upcoming, ongoing or completed. Undated tournaments are taken as
        historical (completed).
    """
    now = _as_utc(now)
    start = _as_utc(start) if start else None
    end = _as_utc(end) if end else None

    if start and start > now:
        return 'upcoming'
    if end and end < now:
        return 'completed'
    if start and start <= now:
        return 'ongoing'

    return 'completed'


def team_tag(team_name: Optional[str]) -> str:
    """
    Short tag of a team.

    Known organisations come from SPECIAL_TAGS; other names use their
    initials, upper-cased and cut to four characters.
    """
    if not team_name:
        return ''

    for name, tag in SPECIAL_TAGS:
        if name == team_name:
            return tag

    initials = ''.join(word[0] for word in team_name.split())
    return initials.upper()[:MAX_TAG_LENGTH]


def parse_prize_pool(value=None) -> Optional[float]:
    """
    Parse a prize pool such as "$1,500,000".

    Returns:
        Amount as float, or None when no number is present. Zero is a
        real prize pool and is returned as 0.0.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)

    cleaned = _CURRENCY_CHARS.sub('', str(value)).strip()
    match = _NUMBER.search(cleaned)
    if not match:
        return None
    return float(match.group(0))


def parse_placement(value=None) -> Optional[int]:
    """Parse a placement such as "1st" or "2nd-3rd" (first number wins)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value

    match = _INTEGER.search(str(value))
    if not match:
        return None
    return int(match.group(0))
