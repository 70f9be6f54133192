from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tournament_scheduler.models.match import Match
    from tournament_scheduler.models.team import Team
    from tournament_scheduler.models.tournament import Tournament


class ScheduleLink(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "match_order", name="uq_link_tournament_order"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    match_id: int = Field(foreign_key="match.id")
    round: str  # "group" | "round-of-64" | ... | "final" | "third-place"
    match_order: int
    group_name: Optional[str] = None

    # Slot labels are fixed at creation; only team ids change on re-draw
    slot_a: str
    slot_b: str

    # Team assignments (nullable - populated by randomize / resolve)
    team_a_id: Optional[int] = Field(default=None, foreign_key="team.id")
    team_b_id: Optional[int] = Field(default=None, foreign_key="team.id")

    # Added by hand outside the generator; never redrawn or resolved
    is_manual: bool = Field(default=False)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="schedule_links")
    match: "Match" = Relationship()
    team_a: Optional["Team"] = Relationship(sa_relationship_kwargs={"foreign_keys": "ScheduleLink.team_a_id"})
    team_b: Optional["Team"] = Relationship(sa_relationship_kwargs={"foreign_keys": "ScheduleLink.team_b_id"})
