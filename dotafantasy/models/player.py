"""Player data models."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel

Role = Literal["carry", "mid", "offlane", "support4", "support5"]


class Player(BaseModel):
    """
    Represents a professional player.

    The id is derived from the player's current team and nickname, so a
    roster move produces a new player identity.
    """

    id: str
    nickname: str
    role: Optional[Role] = None
    team_id: Optional[str] = None
    country: Optional[str] = None
    real_name: Optional[str] = None
    updated_at: datetime

    def to_row(self) -> dict[str, Any]:
        """Get the row used for upserting into the players table."""
        return self.model_dump(mode="json", exclude_none=True)


class TournamentPlayer(BaseModel):
    """Links a player to a tournament roster with their fantasy value."""

    tournament_id: str
    player_id: str
    team_id: str
    is_active: bool = True
    fantasy_value: float = 100.0

    def to_row(self) -> dict[str, Any]:
        """Get the row used for upserting into the tournament_players table."""
        return self.model_dump(mode="json", exclude_none=True)
