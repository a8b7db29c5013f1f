"""
Liquipedia wikitext parsing.

Extracts infobox fields and TeamCard rosters from raw MediaWiki markup.
Only the subset of markup that tournament pages actually use is handled.
"""

import re
from typing import Dict, Iterable, List, Optional, Tuple

from dotafantasy.types import RawParticipantDict, RawPlayerDict

_KEY_VALUE = re.compile(r'^\s*\|([^=]+)=(.*)$')

_MARKUP_RULES = [
    (re.compile(r'\[\[([^\]|]+)\|([^\]]+)\]\]'), r'\2'),   # [[Link|Text]]
    (re.compile(r'\[\[([^\]]+)\]\]'), r'\1'),              # [[Link]]
    (re.compile(r'\{\{BASEPAGENAME\}\}'), ''),
    (re.compile(r'\{\{!\}\}'), '|'),
    (re.compile(r'\{\{Abbr/([^}]+)\}\}'), r'\1'),
    (re.compile(r'\{\{:[^}]+\}\}'), ''),                   # transcluded pages
    (re.compile(r'\{\{[^}]+\}\}'), ''),
    (re.compile(r'<br\s*/?>', re.IGNORECASE), ' '),
    (re.compile(r'<[^>]+>'), ''),
    (re.compile(r"'''?"), ''),
    (re.compile(r'\s+'), ' '),
]

# One "|key=value" parameter; pipes inside [[links]] and {{templates}} do not split
_PARAM = re.compile(r'\|\s*([A-Za-z0-9_ ]+?)\s*=((?:\[\[[^\]]*\]\]|\{\{[^}]*\}\}|[^|])*)')

_TEAM_CARD_START = re.compile(r'\{\{TeamCard\s*\n', re.IGNORECASE)

_QUALIFIER_LINK = re.compile(r'\[\[/([^\]|]+)\|?([^\]]*)\]\]')

_NOTE_NOISE = [
    re.compile(r'\{\{cite web[^}]*\}\}', re.IGNORECASE),
    re.compile(r'\{\{Player[^}]*\}\}', re.IGNORECASE),
    re.compile(r'<ref[^>]*>.*?</ref>', re.IGNORECASE),
    re.compile(r'<ref[^/]*/>', re.IGNORECASE),
]

PLAYER_SLOTS = 5
SUBSTITUTE_SLOTS = 3


def clean_wiki_markup(value: Optional[str]) -> str:
    """Strip links, templates, HTML and emphasis from a wikitext value."""
    if not value:
        return ''
    for pattern, replacement in _MARKUP_RULES:
        value = pattern.sub(replacement, value)
    return value.strip()


def _template_end(wikitext: str, start: int) -> int:
    """Index just past the "}}" closing the template opened at start."""
    depth = 0
    i = start
    while i < len(wikitext) - 1:
        pair = wikitext[i:i + 2]
        if pair == '{{':
            depth += 1
            i += 2
            continue
        if pair == '}}':
            depth -= 1
            i += 2
            if depth == 0:
                return i
            continue
        i += 1
    return len(wikitext)


def _key_values(lines: Iterable[str]) -> List[Tuple[str, str]]:
    """Collect "|key=value" pairs; lines without a key continue the previous value."""
    pairs: List[Tuple[str, str]] = []
    for line in lines:
        match = _KEY_VALUE.match(line)
        if match:
            pairs.append((match.group(1), match.group(2)))
        elif pairs:
            key, value = pairs[-1]
            pairs[-1] = (key, f"{value} {line.strip()}")
    return pairs


def parse_infobox(wikitext: str, template_name: str, preserve: Iterable[str] = ()) -> Dict[str, str]:
    """
    Parse the fields of a template such as "Infobox league".

    Keys are lower-cased with whitespace replaced by underscores. Values
    are cleaned of markup, except for keys listed in preserve.

    Args:
        wikitext: Page wikitext
        template_name: Template to look for
        preserve: Keys whose raw value is kept (e.g. prize pool templates)

    Returns:
        Field mapping; empty when the template is absent
    """
    start = wikitext.find('{{' + template_name)
    if start == -1:
        return {}

    content = wikitext[start:_template_end(wikitext, start) - 2]
    preserve = set(preserve)

    fields = {}
    for raw_key, raw_value in _key_values(content.split('\n')):
        key = re.sub(r'\s+', '_', raw_key.strip().lower())
        value = raw_value.strip()
        fields[key] = value if key in preserve else clean_wiki_markup(value)
    return fields


def _clean_qualifier(qualifier: str) -> str:
    match = _QUALIFIER_LINK.search(qualifier)
    if match:
        qualifier = match.group(2) or match.group(1)
    return clean_wiki_markup(qualifier)


def _clean_notes(notes: str) -> str:
    for pattern in _NOTE_NOISE:
        notes = pattern.sub('', notes)
    return clean_wiki_markup(notes)


def _parse_team_card(content: str) -> Optional[RawParticipantDict]:
    data: Dict[str, str] = {}
    for line in content.split('\n'):
        for match in _PARAM.finditer(line):
            data[match.group(1).strip().lower()] = match.group(2).strip()

    team_name = clean_wiki_markup(data.get('team'))
    if not team_name:
        return None

    players: List[RawPlayerDict] = []
    for slot in range(1, PLAYER_SLOTS + 1):
        nickname = clean_wiki_markup(data.get(f'p{slot}'))
        if nickname:
            player: RawPlayerDict = {'nickname': nickname, 'position': slot}
            if data.get(f'p{slot}flag'):
                player['country'] = data[f'p{slot}flag']
            players.append(player)

    for slot in range(1, SUBSTITUTE_SLOTS + 1):
        nickname = clean_wiki_markup(data.get(f's{slot}'))
        if nickname:
            player = {'nickname': nickname, 'isSubstitute': True}
            if data.get(f's{slot}flag'):
                player['country'] = data[f's{slot}flag']
            players.append(player)

    participant: RawParticipantDict = {'teamName': team_name, 'players': players}

    coach = clean_wiki_markup(data.get('c'))
    if coach:
        participant['coach'] = coach

    qualifier = _clean_qualifier(data.get('qualifier', ''))
    if qualifier:
        participant['qualifier'] = qualifier

    if data.get('placement'):
        participant['placement'] = data['placement']

    notes = _clean_notes(data.get('inotes', ''))
    if notes:
        participant['notes'] = notes

    return participant


def parse_team_cards(wikitext: str) -> List[RawParticipantDict]:
    """
    Parse every multi-line TeamCard template of a tournament page.

    Returns:
        Participants in page order. Cards without a team are skipped.
    """
    participants = []
    for match in _TEAM_CARD_START.finditer(wikitext):
        start = match.start()
        end = _template_end(wikitext, start)
        body = wikitext[match.end():end - 2]
        participant = _parse_team_card(body)
        if participant:
            participants.append(participant)
    return participants


def is_direct_invite(participant: RawParticipantDict) -> bool:
    """Invited teams and replacements for invited teams."""
    qualifier = (participant.get('qualifier') or '').lower()
    return qualifier == 'invited' or 'replacement' in qualifier


def split_participants(
    participants: Iterable[RawParticipantDict]
) -> Tuple[List[RawParticipantDict], List[RawParticipantDict]]:
    """
    Split participants into direct invites and qualified teams.

    Teams without any qualifier information count as qualified.
    """
    invites: List[RawParticipantDict] = []
    qualified: List[RawParticipantDict] = []
    for participant in participants:
        if is_direct_invite(participant):
            invites.append(participant)
        else:
            qualified.append(participant)
    return invites, qualified
