"""Bundle of canonical records produced from one raw tournament."""

from pydantic import BaseModel

from dotafantasy.models.tournament import Tournament
from dotafantasy.models.team import Team, TournamentTeam
from dotafantasy.models.player import Player, TournamentPlayer


class TournamentBundle(BaseModel):
    """All records needed to upsert a tournament with its teams and rosters."""

    tournament: Tournament
    teams: list[Team] = []
    tournament_teams: list[TournamentTeam] = []
    players: list[Player] = []
    tournament_players: list[TournamentPlayer] = []

    def counts(self) -> dict[str, int]:
        """Get the number of records of each kind."""
        return {
            "teams": len(self.teams),
            "tournament_teams": len(self.tournament_teams),
            "players": len(self.players),
            "tournament_players": len(self.tournament_players),
        }
