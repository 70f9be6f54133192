from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tournament_scheduler.models.roster_player import RosterPlayer
    from tournament_scheduler.models.tournament import Tournament

TEAM_PENDING = "pending"
TEAM_APPROVED = "approved"
TEAM_REJECTED = "rejected"
TEAM_STATUSES = (TEAM_PENDING, TEAM_APPROVED, TEAM_REJECTED)


class Team(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "team_name", name="uq_tournament_team_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    team_name: str
    captain_user_id: Optional[str] = None
    payment_status: str = Field(default="pending")  # "pending" | "partial" | "paid"
    status: str = Field(default=TEAM_PENDING)  # Only "approved" teams are drawn
    verification_notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="teams")
    players: List["RosterPlayer"] = Relationship(
        back_populates="team", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
