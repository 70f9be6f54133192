"""
Persistence operations used by the schedule materializer.

Every write is flushed, never committed: the calling operation owns the
transaction and commits (or rolls back) once at the end.
"""

from typing import Any, Dict, List, Optional, Tuple

from sqlmodel import Session, func, select

from tournament_scheduler.errors import NotFoundError
from tournament_scheduler.models.match import Match
from tournament_scheduler.models.match_participant import JOIN_CONFIRMED, MatchParticipant
from tournament_scheduler.models.schedule_link import ScheduleLink
from tournament_scheduler.models.team import TEAM_APPROVED, Team
from tournament_scheduler.utils.match_generation import ScheduleSlot
from tournament_scheduler.utils.roster_sync import participant_key

_UNSET: Any = object()


class ScheduleStore:
    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Matches
    # ------------------------------------------------------------------

    def create_match(self, **fields: Any) -> Match:
        match = Match(**fields)
        self.session.add(match)
        self.session.flush()
        return match

    def update_match(self, match_id: int, **fields: Any) -> Match:
        match = self.session.get(Match, match_id)
        if match is None:
            raise NotFoundError(f"Match {match_id} not found")
        for key, value in fields.items():
            setattr(match, key, value)
        self.session.add(match)
        self.session.flush()
        return match

    def delete_match(self, match_id: int) -> None:
        match = self.session.get(Match, match_id)
        if match is None:
            return
        self.session.delete(match)
        self.session.flush()

    # ------------------------------------------------------------------
    # Schedule links
    # ------------------------------------------------------------------

    def create_schedule_link(
        self, tournament_id: int, slot: ScheduleSlot, match_id: int, is_manual: bool = False
    ) -> ScheduleLink:
        link = ScheduleLink(
            tournament_id=tournament_id,
            match_id=match_id,
            round=slot.round,
            match_order=slot.match_order,
            group_name=slot.group_name,
            slot_a=slot.slot_a,
            slot_b=slot.slot_b,
            is_manual=is_manual,
        )
        self.session.add(link)
        self.session.flush()
        return link

    def update_schedule_link(
        self, link_id: int, team_a_id: Optional[int] = _UNSET, team_b_id: Optional[int] = _UNSET
    ) -> ScheduleLink:
        """Rewrite team bindings. Slot labels are never touched."""
        link = self.session.get(ScheduleLink, link_id)
        if link is None:
            raise NotFoundError(f"Schedule link {link_id} not found")
        if team_a_id is not _UNSET:
            link.team_a_id = team_a_id
        if team_b_id is not _UNSET:
            link.team_b_id = team_b_id
        self.session.add(link)
        self.session.flush()
        return link

    def delete_schedule_link(self, link_id: int) -> None:
        link = self.session.get(ScheduleLink, link_id)
        if link is None:
            return
        self.session.delete(link)
        self.session.flush()

    def get_schedule_link(self, tournament_id: int, link_id: int) -> Optional[ScheduleLink]:
        link = self.session.get(ScheduleLink, link_id)
        if link is None or link.tournament_id != tournament_id:
            return None
        return link

    def list_schedule_links(self, tournament_id: int) -> List[ScheduleLink]:
        return list(
            self.session.exec(
                select(ScheduleLink)
                .where(ScheduleLink.tournament_id == tournament_id)
                .order_by(ScheduleLink.match_order, ScheduleLink.id)
            ).all()
        )

    def next_match_order(self, tournament_id: int) -> int:
        """One past the highest match_order in use (1 for an empty schedule)."""
        highest = self.session.exec(
            select(func.max(ScheduleLink.match_order)).where(ScheduleLink.tournament_id == tournament_id)
        ).one()
        return (highest or 0) + 1

    # ------------------------------------------------------------------
    # Teams and participants
    # ------------------------------------------------------------------

    def list_approved_teams(self, tournament_id: int) -> List[Team]:
        """Approved teams with their rosters, ordered by name then id."""
        return list(
            self.session.exec(
                select(Team)
                .where(Team.tournament_id == tournament_id, Team.status == TEAM_APPROVED)
                .order_by(Team.team_name, Team.id)
            ).all()
        )

    def list_participants(self, match_id: int) -> List[MatchParticipant]:
        return list(
            self.session.exec(
                select(MatchParticipant).where(MatchParticipant.match_id == match_id).order_by(MatchParticipant.id)
            ).all()
        )

    def upsert_match_participant(
        self,
        match_id: int,
        display_name: str,
        side: str,
        user_id: Optional[str] = None,
        team_id: Optional[int] = None,
        join_status: str = JOIN_CONFIRMED,
    ) -> Tuple[MatchParticipant, bool]:
        """
        Insert a participant unless one with the same dedup key is already on the match.

        Returns:
            (participant, created)
        """
        key = participant_key(user_id, display_name)
        for existing in self.list_participants(match_id):
            if participant_key(existing.user_id, existing.display_name) == key:
                return existing, False

        participant = MatchParticipant(
            match_id=match_id,
            user_id=user_id,
            display_name=display_name.strip(),
            side=side,
            team_id=team_id,
            join_status=join_status,
        )
        self.session.add(participant)
        self.session.flush()
        return participant, True

    def remove_team_participants(self, match_id: int, team_id: int, side: str) -> int:
        """Drop participants that were synced from `team_id` onto `side` of a match."""
        removed = 0
        for participant in self.list_participants(match_id):
            if participant.team_id == team_id and participant.side == side:
                self.session.delete(participant)
                removed += 1
        if removed:
            self.session.flush()
        return removed

    def team_names(self, team_ids: List[Optional[int]]) -> Dict[int, str]:
        ids = [team_id for team_id in team_ids if team_id is not None]
        if not ids:
            return {}
        teams = self.session.exec(select(Team).where(Team.id.in_(ids))).all()
        return {team.id: team.team_name for team in teams}
