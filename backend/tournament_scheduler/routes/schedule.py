"""
Schedule API Routes
Generate, draw, edit and progress a tournament's fixture list.
"""

from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, field_validator
from sqlmodel import Session

from tournament_scheduler.database import get_session
from tournament_scheduler.errors import ScheduleError
from tournament_scheduler.models.schedule_link import ScheduleLink
from tournament_scheduler.models.tournament import Tournament
from tournament_scheduler.services import schedule_materializer
from tournament_scheduler.services.schedule_store import ScheduleStore
from tournament_scheduler.utils.match_generation import (
    DEFAULT_ADVANCE_PER_GROUP,
    DEFAULT_TEAMS_PER_GROUP,
    generate_schedule_for_format,
)
from tournament_scheduler.utils.rounds import ROUND_TITLES, round_title

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class SlotPreview(BaseModel):
    round: str
    round_title: str
    match_order: int
    slot_a: str
    slot_b: str
    group_name: Optional[str] = None


class ScheduleLinkResponse(BaseModel):
    id: int
    match_id: int
    round: str
    round_title: str
    match_order: int
    group_name: Optional[str] = None
    slot_a: str
    slot_b: str
    team_a_id: Optional[int] = None
    team_b_id: Optional[int] = None
    is_manual: bool = False
    side_a_label: str  # Team name once bound, else slot label
    side_b_label: str
    match_name: str
    match_date: date
    match_time: str
    team_a_score: Optional[int] = None
    team_b_score: Optional[int] = None
    status: str
    participant_count: int


class GenerateRequest(BaseModel):
    host_id: Optional[str] = None
    regenerate: bool = False


class AddMatchRequest(BaseModel):
    round: str = "group"
    team_a_id: Optional[int] = None
    team_b_id: Optional[int] = None
    match_date: Optional[date] = None
    match_time: Optional[str] = None
    group_name: Optional[str] = None
    host_id: Optional[str] = None

    @field_validator("round")
    @classmethod
    def validate_round(cls, v):
        if v not in ROUND_TITLES:
            raise ValueError(f"round must be one of {', '.join(ROUND_TITLES)}")
        return v


class ScoreRequest(BaseModel):
    team_a_score: int
    team_b_score: int

    @field_validator("team_a_score", "team_b_score")
    @classmethod
    def validate_score(cls, v):
        if v < 0:
            raise ValueError("scores cannot be negative")
        return v


class RandomizeResponse(BaseModel):
    teams_drawn: int
    slots_bound: int
    links_updated: int
    players_added: int
    unassigned_team_ids: List[int]


class ResolveResponse(BaseModel):
    sides_filled: int
    links_updated: int
    players_added: int


class DeleteScheduleResponse(BaseModel):
    deleted_links: int


class RosterSyncResponse(BaseModel):
    players_added: int


def _raise_http(exc: ScheduleError) -> None:
    raise HTTPException(status_code=exc.status_code, detail=str(exc))


def _link_to_response(link: ScheduleLink, team_names: Dict[int, str]) -> ScheduleLinkResponse:
    match = link.match
    return ScheduleLinkResponse(
        id=link.id,
        match_id=link.match_id,
        round=link.round,
        round_title=round_title(link.round),
        match_order=link.match_order,
        group_name=link.group_name,
        slot_a=link.slot_a,
        slot_b=link.slot_b,
        team_a_id=link.team_a_id,
        team_b_id=link.team_b_id,
        is_manual=link.is_manual,
        side_a_label=schedule_materializer.display_label(team_names.get(link.team_a_id), link.slot_a),
        side_b_label=schedule_materializer.display_label(team_names.get(link.team_b_id), link.slot_b),
        match_name=match.match_name,
        match_date=match.match_date,
        match_time=match.match_time,
        team_a_score=match.team_a_score,
        team_b_score=match.team_b_score,
        status=match.status,
        participant_count=len(match.participants),
    )


def _links_response(session: Session, tournament_id: int) -> List[ScheduleLinkResponse]:
    store = ScheduleStore(session)
    links = store.list_schedule_links(tournament_id)
    names = store.team_names([team_id for link in links for team_id in (link.team_a_id, link.team_b_id)])
    return [_link_to_response(link, names) for link in links]


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/schedule/preview", response_model=List[SlotPreview])
def preview_schedule(
    format: str = Query(..., description="knockout | group_knockout"),
    num_teams: int = Query(..., description="Target team count"),
    teams_per_group: int = Query(DEFAULT_TEAMS_PER_GROUP),
    advance_per_group: int = Query(DEFAULT_ADVANCE_PER_GROUP),
    third_place: bool = Query(False),
):
    """Generator output for a format and team count, without persisting anything."""
    try:
        slots = generate_schedule_for_format(
            format,
            num_teams,
            teams_per_group=teams_per_group,
            advance_per_group=advance_per_group,
            third_place=third_place,
        )
    except ScheduleError as e:
        _raise_http(e)
    return [
        SlotPreview(
            round=slot.round,
            round_title=round_title(slot.round),
            match_order=slot.match_order,
            slot_a=slot.slot_a,
            slot_b=slot.slot_b,
            group_name=slot.group_name,
        )
        for slot in slots
    ]


@router.get("/tournaments/{tournament_id}/schedule", response_model=List[ScheduleLinkResponse])
def get_schedule(tournament_id: int, session: Session = Depends(get_session)):
    """Fixtures ordered by match_order. Unbound sides show their slot label."""
    if not session.get(Tournament, tournament_id):
        raise HTTPException(status_code=404, detail="Tournament not found")
    return _links_response(session, tournament_id)


@router.post("/tournaments/{tournament_id}/schedule/generate", response_model=List[ScheduleLinkResponse], status_code=201)
def generate_schedule(
    tournament_id: int, request: Optional[GenerateRequest] = None, session: Session = Depends(get_session)
):
    """
    Generate fixtures for the tournament's format and team count.

    Rules:
    - 409 if a schedule already exists (unless regenerate=true)
    - 422 for league format or an unsupported team count
    """
    request = request or GenerateRequest()
    try:
        schedule_materializer.generate_schedule(
            session, tournament_id, host_id=request.host_id, regenerate=request.regenerate
        )
    except ScheduleError as e:
        _raise_http(e)
    return _links_response(session, tournament_id)


@router.delete("/tournaments/{tournament_id}/schedule", response_model=DeleteScheduleResponse)
def delete_schedule(tournament_id: int, session: Session = Depends(get_session)):
    """Delete every fixture and its match so the schedule can be regenerated."""
    try:
        deleted = schedule_materializer.delete_schedule(session, tournament_id)
    except ScheduleError as e:
        _raise_http(e)
    return DeleteScheduleResponse(deleted_links=deleted)


@router.post("/tournaments/{tournament_id}/schedule/randomize", response_model=RandomizeResponse)
def randomize_teams(tournament_id: int, session: Session = Depends(get_session)):
    """Draw approved teams onto the first-stage seed slots. Safe to repeat."""
    try:
        result = schedule_materializer.randomize_teams(session, tournament_id)
    except ScheduleError as e:
        _raise_http(e)
    return RandomizeResponse(**result)


@router.post("/tournaments/{tournament_id}/schedule/resolve", response_model=ResolveResponse)
def resolve_round(tournament_id: int, session: Session = Depends(get_session)):
    """Advance decided results (group standings, knockout winners) into later fixtures."""
    try:
        result = schedule_materializer.resolve_round(session, tournament_id)
    except ScheduleError as e:
        _raise_http(e)
    return ResolveResponse(**result)


@router.post("/tournaments/{tournament_id}/schedule/matches", response_model=ScheduleLinkResponse, status_code=201)
def add_match(tournament_id: int, request: AddMatchRequest, session: Session = Depends(get_session)):
    """Add a single fixture outside the generator, ordered after all existing ones."""
    try:
        link = schedule_materializer.add_match(
            session,
            tournament_id,
            request.round,
            team_a_id=request.team_a_id,
            team_b_id=request.team_b_id,
            match_date=request.match_date,
            match_time=request.match_time,
            group_name=request.group_name,
            host_id=request.host_id,
        )
    except ScheduleError as e:
        _raise_http(e)
    names = ScheduleStore(session).team_names([link.team_a_id, link.team_b_id])
    return _link_to_response(link, names)


@router.delete("/tournaments/{tournament_id}/schedule/matches/{link_id}", status_code=204)
def delete_match(tournament_id: int, link_id: int, session: Session = Depends(get_session)):
    """Delete one fixture together with its match."""
    try:
        schedule_materializer.delete_match(session, tournament_id, link_id)
    except ScheduleError as e:
        _raise_http(e)
    return None


@router.patch("/tournaments/{tournament_id}/schedule/matches/{link_id}/score", response_model=ScheduleLinkResponse)
def record_score(tournament_id: int, link_id: int, request: ScoreRequest, session: Session = Depends(get_session)):
    """Record a fixture's result on its match."""
    try:
        link = schedule_materializer.record_score(
            session, tournament_id, link_id, request.team_a_score, request.team_b_score
        )
    except ScheduleError as e:
        _raise_http(e)
    names = ScheduleStore(session).team_names([link.team_a_id, link.team_b_id])
    return _link_to_response(link, names)


@router.post("/tournaments/{tournament_id}/schedule/matches/{link_id}/sync-roster", response_model=RosterSyncResponse)
def sync_roster(tournament_id: int, link_id: int, session: Session = Depends(get_session)):
    """Copy the bound teams' current rosters onto the match (players already present are skipped)."""
    try:
        added = schedule_materializer.sync_link_rosters(session, tournament_id, link_id)
    except ScheduleError as e:
        _raise_http(e)
    return RosterSyncResponse(players_added=added)
