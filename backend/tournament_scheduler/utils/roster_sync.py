"""
Roster synchronisation: copy a team's roster onto a match's participant list.

Participants are deduplicated by an explicit key: the linked platform user
when there is one, otherwise the player's display name.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from tournament_scheduler.models.match_participant import JOIN_CONFIRMED

if TYPE_CHECKING:
    from tournament_scheduler.models.team import Team
    from tournament_scheduler.services.schedule_store import ScheduleStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identified:
    user_id: str


@dataclass(frozen=True)
class Named:
    display_name: str


ParticipantKey = Union[Identified, Named]


def participant_key(user_id: Optional[str], display_name: str) -> ParticipantKey:
    if user_id:
        return Identified(user_id)
    return Named(display_name.strip())


def sync_team_roster(store: "ScheduleStore", match_id: int, team: "Team", side: str) -> int:
    """
    Add every roster player of `team` to the match on `side`, skipping players
    already present. Safe to call repeatedly.

    Returns:
        Number of participants inserted
    """
    added = 0
    for player in sorted(team.players, key=lambda p: p.id or 0):
        _, created = store.upsert_match_participant(
            match_id,
            user_id=player.user_id,
            display_name=player.player_name,
            side=side,
            team_id=team.id,
            join_status=JOIN_CONFIRMED,
        )
        if created:
            added += 1
    if added:
        logger.debug("Synced %d players of team %s onto match %s side %s", added, team.id, match_id, side)
    return added
