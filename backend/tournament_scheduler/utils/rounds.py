"""
Round labels for generated fixtures.

Knockout rounds are looked up by their distance from the final, so the
generators never branch on bracket size to pick a name.
"""

from enum import Enum
from typing import Dict, List


class Round(str, Enum):
    GROUP = "group"
    ROUND_OF_64 = "round-of-64"
    ROUND_OF_32 = "round-of-32"
    ROUND_OF_16 = "round-of-16"
    QUARTER_FINAL = "quarter-final"
    SEMI_FINAL = "semi-final"
    THIRD_PLACE = "third-place"
    FINAL = "final"


# Index = rounds remaining after this one (0 = final)
KNOCKOUT_ROUNDS: List[Round] = [
    Round.FINAL,
    Round.SEMI_FINAL,
    Round.QUARTER_FINAL,
    Round.ROUND_OF_16,
    Round.ROUND_OF_32,
    Round.ROUND_OF_64,
]

MAX_BRACKET_SIZE = 2 ** len(KNOCKOUT_ROUNDS)

ROUND_TITLES: Dict[str, str] = {
    Round.GROUP.value: "Group Stage",
    Round.ROUND_OF_64.value: "Round of 64",
    Round.ROUND_OF_32.value: "Round of 32",
    Round.ROUND_OF_16.value: "Round of 16",
    Round.QUARTER_FINAL.value: "Quarter Final",
    Round.SEMI_FINAL.value: "Semi Final",
    Round.THIRD_PLACE.value: "Third Place",
    Round.FINAL.value: "Final",
}


def knockout_round(distance_from_final: int) -> Round:
    """Round label for a knockout round `distance_from_final` rounds before the final."""
    return KNOCKOUT_ROUNDS[distance_from_final]


def round_title(round_value: str) -> str:
    """Human-readable title, falling back to the raw value for unknown rounds."""
    return ROUND_TITLES.get(round_value, round_value)


def knockout_depth(round_value: str) -> int:
    """Distance from the final for a knockout round value. Raises ValueError for non-bracket rounds."""
    for distance, knockout in enumerate(KNOCKOUT_ROUNDS):
        if knockout.value == round_value:
            return distance
    raise ValueError(f"{round_value!r} is not a knockout round")
