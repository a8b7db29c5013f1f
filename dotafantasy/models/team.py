"""Team data models."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class Team(BaseModel):
    """Represents a Dota 2 team."""

    id: str
    name: str
    tag: str
    region: Optional[str] = None
    logo_url: Optional[str] = None
    liquipedia_url: Optional[str] = None
    updated_at: datetime

    def to_row(self) -> dict[str, Any]:
        """Get the row used for upserting into the teams table."""
        return self.model_dump(mode="json", exclude_none=True)


class TournamentTeam(BaseModel):
    """Links a team to a tournament (seed, group and final placement)."""

    tournament_id: str
    team_id: str
    seed: int
    group_name: Optional[str] = None
    placement: Optional[int] = None
    prize_won: Optional[float] = None

    def to_row(self) -> dict[str, Any]:
        """Get the row used for upserting into the tournament_teams table."""
        return self.model_dump(mode="json", exclude_none=True)
