"""Match data model."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel

MatchStatus = Literal["scheduled", "live", "completed"]


class Match(BaseModel):
    """Represents a single game between two teams of a tournament."""

    id: str
    tournament_id: str
    team1_id: str
    team2_id: str
    winner_id: Optional[str] = None
    team1_score: int = 0
    team2_score: int = 0
    scheduled_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    stage: Optional[str] = None
    round: Optional[str] = None
    best_of: Optional[int] = None
    status: MatchStatus = "scheduled"
    updated_at: datetime

    def to_row(self) -> dict[str, Any]:
        """Get the row used for upserting into the matches table."""
        return self.model_dump(mode="json", exclude_none=True)
