"""
Team Management API Routes
Registration, approval status and rosters for tournament teams.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, or_, select

from tournament_scheduler.database import get_session
from tournament_scheduler.models.roster_player import RosterPlayer
from tournament_scheduler.models.schedule_link import ScheduleLink
from tournament_scheduler.models.team import TEAM_STATUSES, Team
from tournament_scheduler.models.tournament import Tournament

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class RosterPlayerCreateRequest(BaseModel):
    player_name: str
    player_contact: Optional[str] = None
    user_id: Optional[str] = None

    @field_validator("player_name")
    @classmethod
    def validate_player_name(cls, v):
        if not v or not v.strip():
            raise ValueError("player_name is required")
        return v.strip()


class RosterPlayerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    team_id: int
    player_name: str
    player_contact: Optional[str] = None
    user_id: Optional[str] = None


class TeamCreateRequest(BaseModel):
    team_name: str
    captain_user_id: Optional[str] = None
    payment_status: str = "pending"
    players: List[RosterPlayerCreateRequest] = []

    @field_validator("team_name")
    @classmethod
    def validate_team_name(cls, v):
        if not v or not v.strip():
            raise ValueError("team_name is required")
        return v.strip()


class TeamUpdateRequest(BaseModel):
    team_name: Optional[str] = None
    status: Optional[str] = None
    payment_status: Optional[str] = None
    verification_notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is not None and v not in TEAM_STATUSES:
            raise ValueError(f"status must be one of {', '.join(TEAM_STATUSES)}")
        return v


class TeamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    team_name: str
    captain_user_id: Optional[str] = None
    payment_status: str
    status: str
    verification_notes: Optional[str] = None
    created_at: datetime
    players: List[RosterPlayerResponse] = []


def _get_tournament(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


def _get_team(session: Session, tournament_id: int, team_id: int) -> Team:
    team = session.get(Team, team_id)
    if not team or team.tournament_id != tournament_id:
        raise HTTPException(status_code=404, detail="Team not found")
    return team


# ============================================================================
# Team CRUD Endpoints
# ============================================================================


@router.get("/tournaments/{tournament_id}/teams", response_model=List[TeamResponse])
def get_teams(
    tournament_id: int,
    status: Optional[str] = Query(None, description="Filter by approval status"),
    session: Session = Depends(get_session),
):
    """Get the teams of a tournament ordered by name."""
    _get_tournament(session, tournament_id)
    query = select(Team).where(Team.tournament_id == tournament_id)
    if status is not None:
        query = query.where(Team.status == status)
    return session.exec(query.order_by(Team.team_name, Team.id)).all()


@router.post("/tournaments/{tournament_id}/teams", response_model=TeamResponse, status_code=201)
def create_team(tournament_id: int, request: TeamCreateRequest, session: Session = Depends(get_session)):
    """
    Register a team, optionally with its roster.

    Constraints:
    - (tournament_id, team_name) must be unique
    - roster size may not exceed the tournament's max_roster_size
    """
    tournament = _get_tournament(session, tournament_id)
    if len(request.players) > tournament.max_roster_size:
        raise HTTPException(
            status_code=422, detail=f"Roster exceeds the maximum of {tournament.max_roster_size} players"
        )

    team = Team(
        tournament_id=tournament_id,
        team_name=request.team_name,
        captain_user_id=request.captain_user_id,
        payment_status=request.payment_status,
    )
    team.players = [RosterPlayer(**player.model_dump()) for player in request.players]

    try:
        session.add(team)
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(
            status_code=409, detail=f"Team with name '{request.team_name}' already exists for this tournament"
        )
    session.refresh(team)
    return team


@router.patch("/tournaments/{tournament_id}/teams/{team_id}", response_model=TeamResponse)
def update_team(
    tournament_id: int, team_id: int, request: TeamUpdateRequest, session: Session = Depends(get_session)
):
    """Update a team's name, approval status, payment status or verification notes."""
    team = _get_team(session, tournament_id, team_id)

    for key, value in request.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(team, key, value)

    try:
        session.add(team)
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(
            status_code=409, detail=f"Team with name '{request.team_name}' already exists for this tournament"
        )
    session.refresh(team)
    return team


@router.delete("/tournaments/{tournament_id}/teams/{team_id}", status_code=204)
def delete_team(tournament_id: int, team_id: int, session: Session = Depends(get_session)):
    """Delete a team. Refused while the team is bound to a fixture."""
    team = _get_team(session, tournament_id, team_id)

    bound = session.exec(
        select(ScheduleLink).where(or_(ScheduleLink.team_a_id == team_id, ScheduleLink.team_b_id == team_id))
    ).first()
    if bound:
        raise HTTPException(status_code=409, detail="Team is assigned to a scheduled match; re-draw first")

    session.delete(team)
    session.commit()
    return None


# ============================================================================
# Roster Endpoints
# ============================================================================


@router.get("/tournaments/{tournament_id}/teams/{team_id}/players", response_model=List[RosterPlayerResponse])
def get_players(tournament_id: int, team_id: int, session: Session = Depends(get_session)):
    team = _get_team(session, tournament_id, team_id)
    return sorted(team.players, key=lambda p: p.id)


@router.post(
    "/tournaments/{tournament_id}/teams/{team_id}/players", response_model=RosterPlayerResponse, status_code=201
)
def add_player(
    tournament_id: int, team_id: int, request: RosterPlayerCreateRequest, session: Session = Depends(get_session)
):
    """Add a player to a team's roster (bounded by max_roster_size)."""
    tournament = _get_tournament(session, tournament_id)
    team = _get_team(session, tournament_id, team_id)
    if len(team.players) >= tournament.max_roster_size:
        raise HTTPException(
            status_code=409, detail=f"Roster already has the maximum of {tournament.max_roster_size} players"
        )

    player = RosterPlayer(team_id=team.id, **request.model_dump())
    session.add(player)
    session.commit()
    session.refresh(player)
    return player


@router.delete("/tournaments/{tournament_id}/teams/{team_id}/players/{player_id}", status_code=204)
def remove_player(tournament_id: int, team_id: int, player_id: int, session: Session = Depends(get_session)):
    _get_team(session, tournament_id, team_id)
    player = session.get(RosterPlayer, player_id)
    if not player or player.team_id != team_id:
        raise HTTPException(status_code=404, detail="Player not found")
    session.delete(player)
    session.commit()
    return None
