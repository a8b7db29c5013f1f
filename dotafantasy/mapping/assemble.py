"""
Entity assembly.

Composes identifiers and field classifiers into canonical records. Like
the classifiers, every assembler is side-effect free; only an absent
identity input (team name, nickname, page name) raises.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional
from urllib.parse import quote

from dotafantasy.mapping.classify import (
    classify_tier,
    derive_status,
    infer_region,
    parse_datetime,
    parse_placement,
    parse_prize_pool,
    position_to_role,
    region_from_location,
    team_tag,
)
from dotafantasy.mapping.identity import player_id, team_id, tournament_id
from dotafantasy.models import (
    Player,
    Team,
    Tournament,
    TournamentBundle,
    TournamentPlayer,
    TournamentTeam,
)
from dotafantasy.types import RawParticipantDict, RawPlayerDict, RawTournamentDict

logger = logging.getLogger(__name__)

WIKI_BASE_URL = 'https://liquipedia.net/dota2'

BASELINE_FANTASY_VALUE = 100.0

GROUP_A = 'Group A'
GROUP_B = 'Group B'


def _wiki_escape(text: str) -> str:
    """URL-escape like JavaScript's encodeURIComponent."""
    return quote(text, safe="!~*'()")


def wiki_url(page_name: str) -> str:
    """Liquipedia URL of a page name."""
    return f"{WIKI_BASE_URL}/{_wiki_escape(page_name)}"


def team_wiki_url(team_name: str) -> str:
    """Liquipedia URL of a team, derived from its display name."""
    return wiki_url(team_name.replace(' ', '_'))


def _now(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.now(timezone.utc)


def map_tournament(
    raw: RawTournamentDict,
    logo_url: Optional[str] = None,
    now: Optional[datetime] = None
) -> Tournament:
    """
    Map a raw Liquipedia tournament to a Tournament.

    Args:
        raw: Raw tournament; must carry pageName
        logo_url: Logo fetched separately, if any
        now: Reference instant for status and updated_at (default: current UTC time)

    Returns:
        Tournament keyed by the id derived from the page name
    """
    now = _now(now)
    page_name = raw.get('pageName')
    identifier = tournament_id(page_name)

    start = parse_datetime(raw.get('startDate'))
    end = parse_datetime(raw.get('endDate'))

    prize_pool = parse_prize_pool(raw.get('prizePoolUsd'))
    if prize_pool is None:
        prize_pool = parse_prize_pool(raw.get('prizePool'))

    region = (
        infer_region(raw.get('region'), raw.get('notes')) or
        region_from_location(raw.get('location'))
    )

    return Tournament(
        id=identifier,
        name=raw.get('name') or page_name.replace('_', ' '),
        tier=classify_tier(raw.get('tier'), page_name),
        region=region,
        status=derive_status(start, end, now),
        prize_pool=prize_pool,
        start_date=start,
        end_date=end,
        logo_url=logo_url or None,
        liquipedia_url=raw.get('liquipediaUrl') or wiki_url(page_name),
        format=raw.get('format') or None,
        updated_at=now,
    )


def map_team(participant: RawParticipantDict, now: Optional[datetime] = None) -> Team:
    """Map a tournament participant to a Team."""
    name = participant.get('teamName')

    return Team(
        id=team_id(name),
        name=name,
        tag=team_tag(name),
        region=infer_region(participant.get('qualifier'), participant.get('notes')),
        logo_url=participant.get('logoUrl') or None,
        liquipedia_url=participant.get('liquipediaUrl') or team_wiki_url(name),
        updated_at=_now(now),
    )


def map_tournament_team(
    tournament_id: str,
    participant: RawParticipantDict,
    index: int,
    total: int
) -> TournamentTeam:
    """
    Link a participant to a tournament.

    Seeds follow the caller's ordering (index 0 is seed 1). The first
    ceil(total / 2) participants go to Group A, the rest to Group B.
    """
    group_name = GROUP_A if index < math.ceil(total / 2) else GROUP_B

    return TournamentTeam(
        tournament_id=tournament_id,
        team_id=team_id(participant.get('teamName')),
        seed=index + 1,
        group_name=group_name,
        placement=parse_placement(participant.get('placement')),
    )


def map_player(
    player: RawPlayerDict,
    team_name: str,
    team_id: str,
    now: Optional[datetime] = None
) -> Player:
    """Map a roster entry to a Player."""
    nickname = player.get('nickname')

    return Player(
        id=player_id(team_name, nickname),
        nickname=nickname,
        role=position_to_role(player.get('position')),
        team_id=team_id,
        country=player.get('country') or None,
        real_name=player.get('realName') or None,
        updated_at=_now(now),
    )


def map_tournament_player(
    tournament_id: str,
    player_id: str,
    team_id: str,
    fantasy_value: float = BASELINE_FANTASY_VALUE
) -> TournamentPlayer:
    """Link a player to a tournament roster."""
    return TournamentPlayer(
        tournament_id=tournament_id,
        player_id=player_id,
        team_id=team_id,
        is_active=True,
        fantasy_value=fantasy_value,
    )


def _participants(raw: RawTournamentDict) -> list:
    """Direct invites followed by qualified teams, without nameless or repeated teams."""
    seen = set()
    result = []
    for participant in list(raw.get('directInvites') or []) + list(raw.get('qualifiedTeams') or []):
        name = (participant.get('teamName') or '').strip()
        if not name:
            logger.debug("Skipping participant without team name")
            continue
        key = team_id(name)
        if key in seen:
            logger.debug(f"Skipping repeated participant {name}")
            continue
        seen.add(key)
        result.append(dict(participant, teamName=name))
    return result


def map_tournament_bundle(
    raw: RawTournamentDict,
    logo_url: Optional[str] = None,
    now: Optional[datetime] = None,
    fantasy_value: float = BASELINE_FANTASY_VALUE
) -> TournamentBundle:
    """
    Map a whole raw tournament into the records needed to store it.

    Substitutes are not linked to the tournament roster. A team or player
    appearing twice in the payload is kept once (first occurrence).
    """
    now = _now(now)
    tournament = map_tournament(raw, logo_url=logo_url, now=now)
    participants = _participants(raw)
    total = len(participants)

    bundle = TournamentBundle(tournament=tournament)
    players_seen = set()

    for index, participant in enumerate(participants):
        team = map_team(participant, now=now)
        bundle.teams.append(team)
        bundle.tournament_teams.append(
            map_tournament_team(tournament.id, participant, index, total)
        )

        for raw_player in participant.get('players') or []:
            if raw_player.get('isSubstitute'):
                continue
            if not (raw_player.get('nickname') or '').strip():
                continue

            player = map_player(raw_player, team.name, team.id, now=now)
            if player.id in players_seen:
                continue
            players_seen.add(player.id)

            bundle.players.append(player)
            bundle.tournament_players.append(
                map_tournament_player(tournament.id, player.id, team.id, fantasy_value)
            )

    return bundle


def apply_group_assignments(
    tournament_teams: Iterable[TournamentTeam],
    assignments: Mapping[str, str]
) -> list[TournamentTeam]:
    """
    Replace the derived group split with known group labels.

    Args:
        tournament_teams: Links produced by map_tournament_team()
        assignments: Team id -> group label (e.g. from the STRATZ league structure)

    Returns:
        New list; teams without an assignment keep their derived group
    """
    result = []
    for link in tournament_teams:
        group_name = assignments.get(link.team_id)
        if group_name:
            link = link.model_copy(update={'group_name': group_name})
        result.append(link)
    return result
