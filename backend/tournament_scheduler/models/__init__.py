from tournament_scheduler.models.match import Match
from tournament_scheduler.models.match_participant import MatchParticipant
from tournament_scheduler.models.roster_player import RosterPlayer
from tournament_scheduler.models.schedule_link import ScheduleLink
from tournament_scheduler.models.team import Team
from tournament_scheduler.models.tournament import Tournament

__all__ = [
    "Tournament",
    "Team",
    "RosterPlayer",
    "Match",
    "MatchParticipant",
    "ScheduleLink",
]
