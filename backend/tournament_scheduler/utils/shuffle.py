import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


def shuffle_items(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a uniformly random permutation of `items` (Fisher-Yates); the input is left untouched."""
    shuffled = list(items)
    rand = rng or random
    for i in range(len(shuffled) - 1, 0, -1):
        j = rand.randrange(i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled
