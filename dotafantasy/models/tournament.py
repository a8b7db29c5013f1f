"""Tournament data model."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel

Tier = Literal["ti", "major", "tier1", "tier2", "tier3", "tier4"]
TournamentStatus = Literal["upcoming", "ongoing", "completed"]


class Tournament(BaseModel):
    """Represents a Dota 2 tournament."""

    id: str
    name: str
    tier: Tier = "tier2"
    region: Optional[str] = None
    status: TournamentStatus = "completed"
    prize_pool: Optional[float] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    logo_url: Optional[str] = None
    liquipedia_url: Optional[str] = None
    format: Optional[str] = None
    updated_at: datetime

    def to_row(self) -> dict[str, Any]:
        """Get the row used for upserting into the tournaments table."""
        return self.model_dump(mode="json", exclude_none=True)
