from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tournament_scheduler.models.match_participant import MatchParticipant


class Match(SQLModel, table=True):
    """A hosted game. Owned by the match-hosting side of the platform;
    tournament scheduling only creates, renames and deletes these rows."""

    id: Optional[int] = Field(default=None, primary_key=True)
    match_name: str
    match_date: date
    match_time: str  # "HH:MM"
    host_id: Optional[str] = None
    turf_id: Optional[str] = None
    sport: str = Field(default="Football")
    status: str = Field(default="open")  # "open" | "full" | "completed" | "cancelled"
    visibility: str = Field(default="public")
    total_slots: int = Field(default=22)
    notes: Optional[str] = None

    # Result (null until played)
    team_a_score: Optional[int] = Field(default=None)
    team_b_score: Optional[int] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    participants: List["MatchParticipant"] = Relationship(
        back_populates="match", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
