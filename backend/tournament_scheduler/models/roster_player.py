from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tournament_scheduler.models.team import Team


class RosterPlayer(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    team_id: int = Field(foreign_key="team.id", index=True)
    player_name: str
    player_contact: Optional[str] = None
    user_id: Optional[str] = Field(default=None)  # Linked platform user, if the player has an account
    created_at: datetime = Field(default_factory=datetime.utcnow)

    team: "Team" = Relationship(back_populates="players")
