"""
Generator tests: fixture counts, round labels, match_order and slot pairing
for knockout and group + knockout schedules.
"""
from collections import Counter

import pytest

from tournament_scheduler.errors import DegenerateInputError, InvalidFormatError
from tournament_scheduler.utils.match_generation import (
    BYE_LABEL,
    bracket_seed_order,
    calculate_bracket_size,
    generate_group_knockout_schedule,
    generate_knockout_schedule,
    generate_schedule_for_format,
    group_match_count,
    knockout_match_count,
)

SUPPORTED_SIZES = [2, 4, 8, 16, 32, 64]


@pytest.mark.parametrize("n", SUPPORTED_SIZES)
def test_knockout_has_n_minus_one_matches_ending_in_final(n):
    schedule = generate_knockout_schedule(n)

    assert len(schedule) == n - 1
    assert schedule[-1].round == "final"
    assert all(slot.group_name is None for slot in schedule)


@pytest.mark.parametrize("n", SUPPORTED_SIZES)
def test_knockout_rounds_halve(n):
    schedule = generate_knockout_schedule(n)
    per_round = Counter(slot.round for slot in schedule)

    # Rounds in generation order
    rounds = list(dict.fromkeys(slot.round for slot in schedule))
    counts = [per_round[r] for r in rounds]
    assert counts[0] == n // 2
    for previous, current in zip(counts, counts[1:]):
        assert current == previous // 2
    assert sum(counts) == n - 1


@pytest.mark.parametrize("n", SUPPORTED_SIZES)
def test_match_order_contiguous_from_one(n):
    schedule = generate_knockout_schedule(n, third_place=True)
    assert [slot.match_order for slot in schedule] == list(range(1, len(schedule) + 1))


def test_eight_team_knockout():
    schedule = generate_knockout_schedule(8)

    assert len(schedule) == 7
    assert [slot.round for slot in schedule] == ["quarter-final"] * 4 + ["semi-final"] * 2 + ["final"]
    assert [slot.match_order for slot in schedule] == list(range(1, 8))
    assert [(slot.slot_a, slot.slot_b) for slot in schedule[:4]] == [
        ("Team A", "Team B"),
        ("Team C", "Team D"),
        ("Team E", "Team F"),
        ("Team G", "Team H"),
    ]
    assert schedule[4].slot_a == "Quarter Final 1 Winner"
    assert schedule[4].slot_b == "Quarter Final 2 Winner"
    assert schedule[6].slot_a == "Semi Final 1 Winner"


def test_first_round_labels_by_bracket_size():
    assert generate_knockout_schedule(64)[0].round == "round-of-64"
    assert generate_knockout_schedule(32)[0].round == "round-of-32"
    assert generate_knockout_schedule(16)[0].round == "round-of-16"
    assert generate_knockout_schedule(4)[0].round == "semi-final"
    assert generate_knockout_schedule(2)[0].round == "final"


def test_third_place_sits_between_semis_and_final():
    schedule = generate_knockout_schedule(8, third_place=True)

    assert len(schedule) == 8
    assert [slot.round for slot in schedule[-4:]] == ["semi-final", "semi-final", "third-place", "final"]
    third = schedule[-2]
    assert (third.slot_a, third.slot_b) == ("Semi Final 1 Loser", "Semi Final 2 Loser")


def test_two_team_bracket_has_no_third_place():
    schedule = generate_knockout_schedule(2, third_place=True)
    assert [slot.round for slot in schedule] == ["final"]


def test_non_power_of_two_rounds_up():
    schedule = generate_knockout_schedule(6)

    assert len(schedule) == 7
    first_round = [slot for slot in schedule if slot.round == "quarter-final"]
    assert first_round[-1].slot_a == "Team G"
    assert first_round[-1].slot_b == "Team H"


@pytest.mark.parametrize("n", [0, 1, -3])
def test_degenerate_team_counts_rejected(n):
    with pytest.raises(DegenerateInputError):
        generate_knockout_schedule(n)


def test_above_cap_rejected():
    with pytest.raises(DegenerateInputError):
        generate_knockout_schedule(65)


def test_bracket_size_and_counts():
    assert calculate_bracket_size(2) == 2
    assert calculate_bracket_size(5) == 8
    assert calculate_bracket_size(64) == 64
    assert knockout_match_count(1) == 0
    assert knockout_match_count(8) == 7
    assert knockout_match_count(8, third_place=True) == 8
    assert group_match_count(8) == 12
    assert group_match_count(10) == 18


def test_bracket_seed_order():
    assert bracket_seed_order(2) == [1, 2]
    assert bracket_seed_order(4) == [1, 4, 2, 3]
    assert bracket_seed_order(8) == [1, 8, 4, 5, 2, 7, 3, 6]


# ============================================================================
# Group + knockout
# ============================================================================


def test_eight_team_group_knockout():
    schedule = generate_group_knockout_schedule(8)
    group_slots = [slot for slot in schedule if slot.round == "group"]
    knockout = [slot for slot in schedule if slot.round != "group"]

    assert len(group_slots) == 12
    assert Counter(slot.group_name for slot in group_slots) == {"Group A": 6, "Group B": 6}
    # 4 advancing teams: 2 semis + final
    assert [slot.round for slot in knockout] == ["semi-final", "semi-final", "final"]
    assert len(schedule) == 12 + knockout_match_count(4)
    assert [slot.match_order for slot in schedule] == list(range(1, len(schedule) + 1))


def test_group_round_robin_pairs_each_team_once():
    schedule = generate_group_knockout_schedule(8)
    group_a = [slot for slot in schedule if slot.group_name == "Group A"]

    pairs = {frozenset((slot.slot_a, slot.slot_b)) for slot in group_a}
    assert len(pairs) == 6
    assert set().union(*pairs) == {"Team A", "Team B", "Team C", "Team D"}


def test_knockout_seeded_from_group_placeholders():
    schedule = generate_group_knockout_schedule(8)
    semis = [slot for slot in schedule if slot.round == "semi-final"]

    assert (semis[0].slot_a, semis[0].slot_b) == ("1st Group A", "2nd Group B")
    assert (semis[1].slot_a, semis[1].slot_b) == ("1st Group B", "2nd Group A")
    assert all(slot.group_name is None for slot in semis)


def test_uneven_team_count_pads_to_full_groups():
    schedule = generate_group_knockout_schedule(10)
    group_slots = [slot for slot in schedule if slot.round == "group"]

    # 10 teams -> 3 groups of 4
    assert Counter(slot.group_name for slot in group_slots) == {"Group A": 6, "Group B": 6, "Group C": 6}
    labels = {label for slot in group_slots for label in (slot.slot_a, slot.slot_b)}
    assert len(labels) == 12


def test_group_knockout_byes_fill_to_power_of_two():
    # 3 groups x top 2 = 6 seeds -> 8-team bracket with 2 byes for the group winners
    schedule = generate_group_knockout_schedule(12)
    quarters = [slot for slot in schedule if slot.round == "quarter-final"]

    assert len(quarters) == 4
    assert (quarters[0].slot_a, quarters[0].slot_b) == ("1st Group A", BYE_LABEL)
    bye_count = sum(label == BYE_LABEL for slot in quarters for label in (slot.slot_a, slot.slot_b))
    assert bye_count == 2
    assert len(schedule) == 18 + 7


def test_group_knockout_with_single_qualifier_per_group():
    schedule = generate_group_knockout_schedule(16, advance_per_group=1)
    knockout = [slot for slot in schedule if slot.round != "group"]

    assert [slot.round for slot in knockout] == ["semi-final", "semi-final", "final"]
    assert (knockout[0].slot_a, knockout[0].slot_b) == ("1st Group A", "1st Group D")


def test_group_knockout_single_group_single_qualifier_has_no_knockout():
    schedule = generate_group_knockout_schedule(4, advance_per_group=1)
    assert len(schedule) == 6
    assert all(slot.round == "group" for slot in schedule)


def test_group_knockout_third_place():
    schedule = generate_group_knockout_schedule(8, third_place=True)
    assert [slot.round for slot in schedule[-4:]] == ["semi-final", "semi-final", "third-place", "final"]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"num_teams": 1},
        {"num_teams": 8, "teams_per_group": 1},
        {"num_teams": 8, "advance_per_group": 0},
        {"num_teams": 8, "advance_per_group": 5},
    ],
)
def test_group_knockout_rejects_bad_input(kwargs):
    with pytest.raises(DegenerateInputError):
        generate_group_knockout_schedule(**kwargs)


def test_format_dispatch():
    assert len(generate_schedule_for_format("knockout", 4)) == 3
    assert len(generate_schedule_for_format("group_knockout", 8)) == 15
    with pytest.raises(InvalidFormatError):
        generate_schedule_for_format("league", 8)
