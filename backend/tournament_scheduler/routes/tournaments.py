from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from sqlmodel import Session, func, select

from tournament_scheduler.database import get_session
from tournament_scheduler.models.schedule_link import ScheduleLink
from tournament_scheduler.models.tournament import TOURNAMENT_FORMATS, Tournament
from tournament_scheduler.services.schedule_materializer import delete_schedule

router = APIRouter()

# Fields that shape the generated bracket; frozen once a schedule exists
SCHEDULE_SHAPE_FIELDS = ("format", "num_teams", "teams_per_group", "advance_per_group", "third_place_match")


def _validate_format(v: Optional[str]) -> Optional[str]:
    if v is not None and v not in TOURNAMENT_FORMATS:
        raise ValueError(f"format must be one of {', '.join(TOURNAMENT_FORMATS)}")
    return v


class TournamentCreate(BaseModel):
    name: str
    sport: str = "Football"
    format: str = "knockout"
    num_teams: int = 8
    min_roster_size: int = 5
    max_roster_size: int = 11
    start_datetime: datetime
    turf_id: Optional[str] = None
    created_by: Optional[str] = None
    notes: Optional[str] = None
    teams_per_group: int = 4
    advance_per_group: int = 2
    third_place_match: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("format")
    @classmethod
    def validate_format(cls, v):
        return _validate_format(v)

    @model_validator(mode="after")
    def validate_sizes(self):
        if self.num_teams < 2:
            raise ValueError("num_teams must be at least 2")
        if self.max_roster_size < self.min_roster_size:
            raise ValueError("max_roster_size must be >= min_roster_size")
        if not 1 <= self.advance_per_group <= self.teams_per_group:
            raise ValueError("advance_per_group must be between 1 and teams_per_group")
        return self


class TournamentUpdate(BaseModel):
    name: Optional[str] = None
    sport: Optional[str] = None
    format: Optional[str] = None
    num_teams: Optional[int] = None
    min_roster_size: Optional[int] = None
    max_roster_size: Optional[int] = None
    start_datetime: Optional[datetime] = None
    turf_id: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    teams_per_group: Optional[int] = None
    advance_per_group: Optional[int] = None
    third_place_match: Optional[bool] = None

    @field_validator("format")
    @classmethod
    def validate_format(cls, v):
        return _validate_format(v)

    @field_validator("num_teams")
    @classmethod
    def validate_num_teams(cls, v):
        if v is not None and v < 2:
            raise ValueError("num_teams must be at least 2")
        return v


class TournamentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    sport: str
    format: str
    num_teams: int
    min_roster_size: int
    max_roster_size: int
    start_datetime: datetime
    turf_id: Optional[str] = None
    created_by: Optional[str] = None
    status: str
    notes: Optional[str] = None
    teams_per_group: int
    advance_per_group: int
    third_place_match: bool
    created_at: datetime
    updated_at: datetime


def _schedule_link_count(session: Session, tournament_id: int) -> int:
    return session.exec(
        select(func.count()).select_from(ScheduleLink).where(ScheduleLink.tournament_id == tournament_id)
    ).one()


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(session: Session = Depends(get_session)):
    """List all tournaments"""
    return session.exec(select(Tournament).order_by(Tournament.start_datetime, Tournament.id)).all()


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(tournament_data: TournamentCreate, session: Session = Depends(get_session)):
    """Create a new tournament"""
    tournament = Tournament(**tournament_data.model_dump())
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Get a tournament by ID"""
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


@router.put("/tournaments/{tournament_id}", response_model=TournamentResponse)
def update_tournament(tournament_id: int, tournament_data: TournamentUpdate, session: Session = Depends(get_session)):
    """
    Update a tournament.

    Format, team count and group configuration cannot change while a schedule
    exists (409); delete the schedule first.
    """
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")

    update_data = tournament_data.model_dump(exclude_unset=True)
    changed_shape = [
        field for field in SCHEDULE_SHAPE_FIELDS if field in update_data and update_data[field] != getattr(tournament, field)
    ]
    if changed_shape and _schedule_link_count(session, tournament_id) > 0:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot change {', '.join(changed_shape)} after the schedule is generated; delete it first",
        )

    for key, value in update_data.items():
        setattr(tournament, key, value)

    if tournament.max_roster_size < tournament.min_roster_size:
        raise HTTPException(status_code=422, detail="max_roster_size must be >= min_roster_size")
    if not 1 <= tournament.advance_per_group <= tournament.teams_per_group:
        raise HTTPException(status_code=422, detail="advance_per_group must be between 1 and teams_per_group")

    tournament.updated_at = datetime.utcnow()
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


@router.delete("/tournaments/{tournament_id}", status_code=204)
def delete_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Delete a tournament, its schedule (links + matches) and its teams"""
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")

    delete_schedule(session, tournament_id)
    for team in list(tournament.teams):
        session.delete(team)
    session.delete(tournament)
    session.commit()
    return Response(status_code=204)
