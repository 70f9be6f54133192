import string

LETTERS = string.ascii_uppercase


def get_slot_label(index: int) -> str:
    """Seed label for a zero-based slot index: Team A..Team Z, then Team AA, Team AB, ..."""
    if index < 0:
        raise ValueError(f"slot index must be non-negative, got {index}")
    if index < 26:
        return f"Team {LETTERS[index]}"
    first, second = divmod(index, 26)
    if first > 26:
        raise ValueError(f"slot index {index} is beyond the two-letter label range")
    return f"Team {LETTERS[first - 1]}{LETTERS[second]}"


def get_group_name(index: int) -> str:
    """Group A, Group B, ..."""
    return f"Group {LETTERS[index]}"
