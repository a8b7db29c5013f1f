"""
Match mapping for STRATZ league data.

STRATZ knows teams by its own numeric ids and by names that often differ
slightly from the Liquipedia spelling ("PSG.Quest" vs "PSG Quest"), so
teams are matched back to our identifiers by name.
"""

import logging
import math
import re
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel

from dotafantasy.mapping.identity import match_id, team_id
from dotafantasy.models import Match
from dotafantasy.types import StratzMatchSummaryDict, StratzNodeGroupDict

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r'[.\-_]')
_WHITESPACE = re.compile(r'\s+')

# Words this short ("the", "gg") are ignored by word matching
MIN_SIGNIFICANT_WORD = 3

# Approximate games per round-robin round, used when a node has no name
ROUND_ROBIN_NODES_PER_ROUND = 5


def normalize_team_name(name: Optional[str]) -> str:
    """Normalize a team name for matching ("PSG.Quest" -> "psg quest")."""
    if not name:
        return ''
    text = _SEPARATORS.sub(' ', name.lower())
    return _WHITESPACE.sub(' ', text).strip()


def _significant_words(normalized: str) -> List[str]:
    return [w for w in normalized.split(' ') if len(w) >= MIN_SIGNIFICANT_WORD]


class TeamResolver:
    """Resolves provider team names to our team identifiers."""

    def __init__(self, team_names: Iterable[str]):
        """
        Args:
            team_names: Display names of the tournament's participants
        """
        self._ids: Dict[str, str] = {}
        for name in team_names:
            if name and name.strip():
                self._ids.setdefault(name.lower(), team_id(name))

    def __len__(self) -> int:
        return len(self._ids)

    def resolve(self, name: Optional[str]) -> Optional[str]:
        """
        Find the team id for a provider team name.

        Tries, in order: exact (case-insensitive) name, normalized name,
        substring in either direction, then significant-word overlap
        (at least half of the words must match).

        Returns:
            Team id or None if no participant matches
        """
        if not name:
            return None

        lower = name.lower()
        if lower in self._ids:
            return self._ids[lower]

        wanted = normalize_team_name(name)
        if not wanted:
            return None

        for known, identifier in self._ids.items():
            normalized = normalize_team_name(known)
            if normalized == wanted:
                return identifier
            if normalized and (normalized in wanted or wanted in normalized):
                return identifier

        wanted_words = _significant_words(wanted)
        if not wanted_words:
            return None

        for known, identifier in self._ids.items():
            known_words = _significant_words(normalize_team_name(known))
            if not known_words:
                continue
            matching = [
                w for w in wanted_words
                if any(k == w or w in k or k in w for k in known_words)
            ]
            if len(matching) >= max(1, len(wanted_words) / 2):
                return identifier

        return None


class StageInfo(BaseModel):
    """Stage, round and series length of one STRATZ series."""

    stage: Optional[str] = None
    round: Optional[str] = None
    best_of: Optional[int] = None


class LeagueStructure(BaseModel):
    """Stage layout of a STRATZ league."""

    series: Dict[int, StageInfo] = {}
    team_groups: Dict[int, str] = {}  # STRATZ team id -> group name


def normalize_stage(name: Optional[str], node_group_type: Optional[str]) -> Optional[str]:
    """Map a STRATZ node group to a stage name ("Group Stage", "Playoffs", ...)."""
    name = name or ''
    node_group_type = node_group_type or ''

    if name.startswith('Group'):
        return 'Group Stage'
    if name in ('Playoff', 'Placement') or 'BRACKET' in node_group_type:
        return 'Playoffs'
    return name or None


def parse_best_of(node_type: Optional[str]) -> Optional[int]:
    """Series length from a STRATZ node type such as "BEST_OF_THREE"."""
    if not node_type:
        return None
    if 'ONE' in node_type:
        return 1
    if 'TWO' in node_type:
        return 2
    if 'THREE' in node_type:
        return 3
    if 'FIVE' in node_type:
        return 5
    return None


def _round_name(node_group_type: str, position: int) -> Optional[str]:
    if node_group_type == 'ROUND_ROBIN':
        return f"Round {math.ceil(position / ROUND_ROBIN_NODES_PER_ROUND)}"
    return None


def map_league_structure(node_groups: Optional[Iterable[StratzNodeGroupDict]]) -> LeagueStructure:
    """
    Build the series -> stage mapping and the team -> group mapping.

    Args:
        node_groups: nodeGroups of a STRATZ league (may be None)
    """
    structure = LeagueStructure()

    for group in node_groups or []:
        name = group.get('name') or ''
        group_type = group.get('nodeGroupType') or ''
        stage = normalize_stage(name, group_type)

        for position, node in enumerate(group.get('nodes') or [], start=1):
            series_id = node.get('seriesId')
            if series_id:
                structure.series[series_id] = StageInfo(
                    stage=stage,
                    round=node.get('name') or _round_name(group_type, position),
                    best_of=parse_best_of(node.get('nodeType')),
                )

            if group_type == 'ROUND_ROBIN' and name:
                for key in ('teamOneId', 'teamTwoId'):
                    if node.get(key):
                        structure.team_groups[node[key]] = name

    return structure


def _from_timestamp(seconds) -> Optional[datetime]:
    if not seconds:
        return None
    try:
        return datetime.fromtimestamp(int(seconds), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def map_match(
    tournament_id: str,
    summary: StratzMatchSummaryDict,
    resolver: TeamResolver,
    structure: Optional[LeagueStructure] = None,
    now: Optional[datetime] = None
) -> Optional[Match]:
    """
    Map one STRATZ league game to a Match.

    Radiant is team 1 and Dire is team 2. Every game is a single map, so
    the score is 1-0 or 0-1.

    Returns:
        Match, or None when the game id or either team cannot be resolved
    """
    radiant = summary.get('radiantTeam') or {}
    dire = summary.get('direTeam') or {}

    team1 = resolver.resolve(radiant.get('name'))
    team2 = resolver.resolve(dire.get('name'))
    if summary.get('matchId') is None or not team1 or not team2:
        return None

    radiant_win = summary.get('radiantWin')
    if radiant_win is None:
        winner, score1, score2 = None, 0, 0
    elif radiant_win:
        winner, score1, score2 = team1, 1, 0
    else:
        winner, score1, score2 = team2, 0, 1

    started = _from_timestamp(summary.get('startDateTime'))
    ended = started
    if started and summary.get('durationSeconds'):
        ended = started + timedelta(seconds=int(summary['durationSeconds']))

    stage = StageInfo()
    if structure and summary.get('seriesId') in structure.series:
        stage = structure.series[summary['seriesId']]

    return Match(
        id=match_id(summary['matchId']),
        tournament_id=tournament_id,
        team1_id=team1,
        team2_id=team2,
        winner_id=winner,
        team1_score=score1,
        team2_score=score2,
        started_at=started,
        ended_at=ended,
        stage=stage.stage,
        round=stage.round,
        best_of=stage.best_of,
        status='completed',
        updated_at=now if now is not None else datetime.now(timezone.utc),
    )


def map_matches(
    tournament_id: str,
    summaries: Iterable[StratzMatchSummaryDict],
    resolver: TeamResolver,
    structure: Optional[LeagueStructure] = None,
    now: Optional[datetime] = None
) -> List[Match]:
    """Map all league games, dropping unresolvable and repeated games."""
    now = now if now is not None else datetime.now(timezone.utc)
    matches: Dict[str, Match] = {}
    skipped = 0

    for summary in summaries:
        match = map_match(tournament_id, summary, resolver, structure, now=now)
        if match is None:
            skipped += 1
            radiant = (summary.get('radiantTeam') or {}).get('name')
            dire = (summary.get('direTeam') or {}).get('name')
            logger.debug(f"Skipping match {summary.get('matchId')} - teams not found: {radiant} vs {dire}")
            continue
        matches.setdefault(match.id, match)

    if skipped:
        logger.info(f"Skipped {skipped} matches with unknown teams")

    return list(matches.values())


def map_group_assignments(
    structure: LeagueStructure,
    summaries: Iterable[StratzMatchSummaryDict],
    resolver: TeamResolver
) -> Dict[str, str]:
    """
    Translate STRATZ group membership into team id -> group name.

    STRATZ team ids are linked to names through the teams seen in the
    league's games.
    """
    names_by_stratz_id: Dict[int, str] = {}
    for summary in summaries:
        for side in ('radiantTeam', 'direTeam'):
            team = summary.get(side) or {}
            if team.get('id') and team.get('name'):
                names_by_stratz_id.setdefault(team['id'], team['name'])

    assignments: Dict[str, str] = {}
    for stratz_id, group_name in structure.team_groups.items():
        identifier = resolver.resolve(names_by_stratz_id.get(stratz_id))
        if identifier:
            assignments[identifier] = group_name

    return assignments
