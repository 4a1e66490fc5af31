"""
Weighted random selection shared by every spawning phase.
"""

import random
from typing import Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


def weighted_choice(rng: random.Random, entries: Sequence[Tuple[T, float]]) -> Optional[T]:
    """
    Pick one item from (item, weight) pairs using cumulative-sum selection

    Negative weights count as zero. When the total weight is not positive the
    pick falls back to a uniform choice over all items.

    Args:
        rng: Random source
        entries: Ordered (item, weight) pairs

    Returns:
        The selected item, or None if entries is empty
    """
    if not entries:
        return None

    total = 0.0
    for _, weight in entries:
        if weight > 0:
            total += weight

    if total <= 0:
        return entries[rng.randrange(len(entries))][0]

    draw = rng.random() * total
    cumulative = 0.0
    for item, weight in entries:
        if weight <= 0:
            continue
        cumulative += weight
        if draw < cumulative:
            return item

    # Float accumulation can leave draw just past the last bucket
    for item, weight in reversed(entries):
        if weight > 0:
            return item
    return entries[-1][0]
