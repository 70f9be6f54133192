"""
Schedule generation for knockout and group + knockout tournaments.

Generators are pure: they return an ordered list of team-less ScheduleSlot
fixtures. Persisting them and binding teams happens in the materializer.
"""

import math
from dataclasses import dataclass
from itertools import combinations
from typing import List, Optional

from tournament_scheduler.errors import DegenerateInputError, InvalidFormatError
from tournament_scheduler.models.tournament import FORMAT_GROUP_KNOCKOUT, FORMAT_KNOCKOUT
from tournament_scheduler.utils.rounds import MAX_BRACKET_SIZE, Round, knockout_round, round_title
from tournament_scheduler.utils.slot_labels import LETTERS, get_group_name, get_slot_label

DEFAULT_TEAMS_PER_GROUP = 4
DEFAULT_ADVANCE_PER_GROUP = 2
BYE_LABEL = "Bye"

ORDINALS = {1: "1st", 2: "2nd", 3: "3rd"}


@dataclass(frozen=True)
class ScheduleSlot:
    round: str
    match_order: int
    slot_a: str
    slot_b: str
    group_name: Optional[str] = None


def calculate_bracket_size(num_teams: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_teams < 2:
        raise DegenerateInputError(f"A bracket needs at least 2 teams, got {num_teams}")
    size = 2 ** math.ceil(math.log2(num_teams))
    if size > MAX_BRACKET_SIZE:
        raise DegenerateInputError(f"Brackets support at most {MAX_BRACKET_SIZE} teams, got {num_teams}")
    return size


def bracket_seed_order(size: int) -> List[int]:
    """
    Standard seeding order for a power-of-two bracket (1-based seeds).

    Pairing consecutive entries gives 1 vs N, N/2 vs N/2+1, ... so that the
    top two seeds can only meet in the final. For 8: [1, 8, 4, 5, 2, 7, 3, 6].
    """
    order = [1]
    while len(order) < size:
        n = len(order) * 2
        order = [s for seed in order for s in (seed, n + 1 - seed)]
    return order


def knockout_match_count(entrants: int, third_place: bool = False) -> int:
    """Number of fixtures in a knockout stage for `entrants` teams (0 when fewer than two)."""
    if entrants < 2:
        return 0
    size = calculate_bracket_size(entrants)
    extra = 1 if third_place and size >= 4 else 0
    return size - 1 + extra


def group_match_count(num_teams: int, teams_per_group: int = DEFAULT_TEAMS_PER_GROUP) -> int:
    """Round robin fixtures across all (padded) groups."""
    num_groups = math.ceil(num_teams / teams_per_group)
    return num_groups * (teams_per_group * (teams_per_group - 1) // 2)


def ordinal(position: int) -> str:
    return ORDINALS.get(position, f"{position}th")


def group_placeholder(position: int, group_name: str) -> str:
    """Knockout placeholder for a group finishing position, e.g. "1st Group A"."""
    return f"{ordinal(position)} {group_name}"


def _knockout_stage(entrants: List[str], first_order: int, third_place: bool) -> List[ScheduleSlot]:
    """
    Build every knockout fixture for a power-of-two list of entrant labels.

    Round one pairs entrants in list order. Later rounds carry descriptive
    placeholders naming the feeding fixture; the final is always last.
    """
    schedule: List[ScheduleSlot] = []
    match_order = first_order
    num_rounds = int(math.log2(len(entrants)))

    first_round = knockout_round(num_rounds - 1)
    for i in range(0, len(entrants), 2):
        schedule.append(
            ScheduleSlot(
                round=first_round.value,
                match_order=match_order,
                slot_a=entrants[i],
                slot_b=entrants[i + 1],
            )
        )
        match_order += 1

    previous = first_round
    for distance in range(num_rounds - 2, -1, -1):
        current = knockout_round(distance)

        if current is Round.FINAL and third_place and num_rounds >= 2:
            schedule.append(
                ScheduleSlot(
                    round=Round.THIRD_PLACE.value,
                    match_order=match_order,
                    slot_a=f"{round_title(previous.value)} 1 Loser",
                    slot_b=f"{round_title(previous.value)} 2 Loser",
                )
            )
            match_order += 1

        for i in range(2**distance):
            schedule.append(
                ScheduleSlot(
                    round=current.value,
                    match_order=match_order,
                    slot_a=f"{round_title(previous.value)} {2 * i + 1} Winner",
                    slot_b=f"{round_title(previous.value)} {2 * i + 2} Winner",
                )
            )
            match_order += 1
        previous = current

    return schedule


def generate_knockout_schedule(num_teams: int, third_place: bool = False) -> List[ScheduleSlot]:
    """
    Generate a single elimination schedule.

    Non-power-of-two counts are rounded up to the next bracket size; the extra
    seed slots keep their labels and act as byes when no team is bound.
    """
    size = calculate_bracket_size(num_teams)
    entrants = [get_slot_label(i) for i in range(size)]
    return _knockout_stage(entrants, first_order=1, third_place=third_place)


def generate_group_knockout_schedule(
    num_teams: int,
    teams_per_group: int = DEFAULT_TEAMS_PER_GROUP,
    advance_per_group: int = DEFAULT_ADVANCE_PER_GROUP,
    third_place: bool = False,
) -> List[ScheduleSlot]:
    """
    Generate round robin groups followed by a seeded knockout.

    The team count is padded up to the next multiple of `teams_per_group`, so
    every group is full. The top `advance_per_group` of each group advance;
    group winners are seeded first, and missing seeds up to the next power of
    two become byes.
    """
    if num_teams < 2:
        raise DegenerateInputError(f"A group stage needs at least 2 teams, got {num_teams}")
    if teams_per_group < 2:
        raise DegenerateInputError(f"teams_per_group must be at least 2, got {teams_per_group}")
    if not 1 <= advance_per_group <= teams_per_group:
        raise DegenerateInputError(
            f"advance_per_group must be between 1 and {teams_per_group}, got {advance_per_group}"
        )

    num_groups = math.ceil(num_teams / teams_per_group)
    if num_groups > len(LETTERS):
        raise DegenerateInputError(f"At most {len(LETTERS)} groups are supported, got {num_groups}")

    schedule: List[ScheduleSlot] = []
    match_order = 1
    group_names = [get_group_name(g) for g in range(num_groups)]

    for g, group_name in enumerate(group_names):
        labels = [get_slot_label(g * teams_per_group + t) for t in range(teams_per_group)]
        for slot_a, slot_b in combinations(labels, 2):
            schedule.append(
                ScheduleSlot(
                    round=Round.GROUP.value,
                    match_order=match_order,
                    slot_a=slot_a,
                    slot_b=slot_b,
                    group_name=group_name,
                )
            )
            match_order += 1

    # Seeds: every group winner, then every runner-up, ...
    seeds = [
        group_placeholder(position, group_name)
        for position in range(1, advance_per_group + 1)
        for group_name in group_names
    ]
    if len(seeds) < 2:
        return schedule

    size = calculate_bracket_size(len(seeds))
    seeds.extend([BYE_LABEL] * (size - len(seeds)))
    entrants = [seeds[seed - 1] for seed in bracket_seed_order(size)]
    schedule.extend(_knockout_stage(entrants, first_order=match_order, third_place=third_place))
    return schedule


def generate_schedule_for_format(
    tournament_format: str,
    num_teams: int,
    teams_per_group: int = DEFAULT_TEAMS_PER_GROUP,
    advance_per_group: int = DEFAULT_ADVANCE_PER_GROUP,
    third_place: bool = False,
) -> List[ScheduleSlot]:
    """Dispatch to the generator for a tournament format."""
    if tournament_format == FORMAT_KNOCKOUT:
        return generate_knockout_schedule(num_teams, third_place=third_place)
    if tournament_format == FORMAT_GROUP_KNOCKOUT:
        return generate_group_knockout_schedule(
            num_teams,
            teams_per_group=teams_per_group,
            advance_per_group=advance_per_group,
            third_place=third_place,
        )
    raise InvalidFormatError(f"Schedule generation is not available for the {tournament_format!r} format")
