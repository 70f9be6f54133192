from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tournament_scheduler.models.match import Match

SIDE_A = "A"
SIDE_B = "B"
JOIN_CONFIRMED = "confirmed"


class MatchParticipant(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    user_id: Optional[str] = Field(default=None)
    display_name: str
    side: str  # "A" | "B"
    join_status: str = Field(default=JOIN_CONFIRMED)  # "pending" | "confirmed"

    # Team whose roster produced this row (null for players who joined directly)
    team_id: Optional[int] = Field(default=None, foreign_key="team.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    match: "Match" = Relationship(back_populates="participants")
