"""Canonical data models for the Dota Fantasy application."""

from dotafantasy.models.tournament import Tournament, Tier, TournamentStatus
from dotafantasy.models.team import Team, TournamentTeam
from dotafantasy.models.player import Player, TournamentPlayer, Role
from dotafantasy.models.match import Match, MatchStatus
from dotafantasy.models.bundle import TournamentBundle

__all__ = [
    "Tournament", "Tier", "TournamentStatus",
    "Team", "TournamentTeam",
    "Player", "TournamentPlayer", "Role",
    "Match", "MatchStatus",
    "TournamentBundle",
]
