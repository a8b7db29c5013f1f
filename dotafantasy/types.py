"""
Type definitions for Dota Fantasy.

Provides TypedDict classes for the raw provider payloads and the results
returned by the import pipeline.
"""

from typing import TypedDict, Optional, List


class RawPlayerDict(TypedDict, total=False):
    """Player entry of a Liquipedia TeamCard."""
    nickname: str
    position: int  # 1-5, absent for substitutes
    country: Optional[str]
    realName: Optional[str]
    isSubstitute: bool


class RawParticipantDict(TypedDict, total=False):
    """Team taking part in a tournament (one Liquipedia TeamCard)."""
    teamName: str
    players: List[RawPlayerDict]
    coach: Optional[str]
    qualifier: Optional[str]  # "Invited" or a regional qualifier name
    placement: Optional[str]  # "1st", "2nd-3rd", ...
    notes: Optional[str]
    logoUrl: Optional[str]
    liquipediaUrl: Optional[str]


class RawTournamentDict(TypedDict, total=False):
    """
    Tournament as assembled from a Liquipedia page.

    Only pageName is required; everything else depends on how complete
    the wiki page is.
    """
    name: str
    pageName: str
    shortName: Optional[str]
    tier: Optional[str]
    valveTier: Optional[str]
    type: Optional[str]
    organizer: Optional[str]
    location: Optional[str]
    region: Optional[str]
    notes: Optional[str]
    venue: Optional[str]
    format: Optional[str]
    prizePool: Optional[str]
    prizePoolUsd: Optional[float]
    startDate: Optional[str]
    endDate: Optional[str]
    patch: Optional[str]
    leagueId: Optional[str]
    liquipediaUrl: Optional[str]
    participants: Optional[int]
    winner: Optional[str]
    runnerUp: Optional[str]
    directInvites: List[RawParticipantDict]
    qualifiedTeams: List[RawParticipantDict]


class StratzTeamRefDict(TypedDict, total=False):
    """Team reference inside a STRATZ match."""
    id: int
    name: str
    tag: Optional[str]


class StratzMatchSummaryDict(TypedDict, total=False):
    """One league match as returned by StratzClient.get_league_matches()."""
    matchId: int
    radiantTeam: StratzTeamRefDict
    direTeam: StratzTeamRefDict
    radiantWin: bool
    durationSeconds: int
    startDateTime: int  # unix seconds
    seriesId: Optional[int]
    seriesType: Optional[str]  # BEST_OF_THREE, ...


class StratzNodeDict(TypedDict, total=False):
    """Bracket/table node of a STRATZ league."""
    id: int
    name: Optional[str]
    nodeType: Optional[str]
    teamOneId: Optional[int]
    teamTwoId: Optional[int]
    seriesId: Optional[int]


class StratzNodeGroupDict(TypedDict, total=False):
    """Stage of a STRATZ league (group stage, playoff bracket, ...)."""
    id: int
    name: str
    nodeGroupType: str  # ROUND_ROBIN, DOUBLE_ELIMINATION_BRACKET, ...
    nodes: List[StratzNodeDict]


class ImportResultDict(TypedDict, total=False):
    """Result from TournamentImporter.import_tournament()."""
    success: bool
    page_name: str
    tournament_id: Optional[str]
    tournament_name: Optional[str]
    teams_imported: int
    players_imported: int
    matches_imported: int
    groups_updated: int
    dry_run: bool
    skipped: bool  # Already imported and not forced
    errors: List[str]


class ImportInfoDict(TypedDict, total=False):
    """Import status information kept in the metadata table."""
    last_import: Optional[str]
    stats: dict

