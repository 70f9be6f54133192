from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tournament_scheduler.models.schedule_link import ScheduleLink
    from tournament_scheduler.models.team import Team

FORMAT_KNOCKOUT = "knockout"
FORMAT_GROUP_KNOCKOUT = "group_knockout"
FORMAT_LEAGUE = "league"
TOURNAMENT_FORMATS = (FORMAT_KNOCKOUT, FORMAT_GROUP_KNOCKOUT, FORMAT_LEAGUE)


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    sport: str = Field(default="Football")
    format: str = Field(default=FORMAT_KNOCKOUT)  # "knockout" | "group_knockout" | "league"
    num_teams: int = Field(default=8)
    min_roster_size: int = Field(default=5)
    max_roster_size: int = Field(default=11)
    start_datetime: datetime
    turf_id: Optional[str] = None
    created_by: Optional[str] = None  # Organizer user id
    status: str = Field(default="upcoming")  # "upcoming" | "live" | "completed" | "cancelled"
    notes: Optional[str] = None

    # Group + knockout configuration (ignored by plain knockout)
    teams_per_group: int = Field(default=4)
    advance_per_group: int = Field(default=2)
    third_place_match: bool = Field(default=False)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    teams: List["Team"] = Relationship(back_populates="tournament")
    schedule_links: List["ScheduleLink"] = Relationship(back_populates="tournament")
