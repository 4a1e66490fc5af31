"""
Dice Roller
Parses and rolls dice notation ("2d6+3", "d8", "1d4-1", "12") used by floor
spawn budgets and encounter slot counts.
"""

import re
import random
from typing import Tuple

DICE_PATTERN = re.compile(r"^(\d*)d(\d+)([+\-]\d+)?$", re.IGNORECASE)


def parse_dice(notation: str) -> Tuple[int, int, int]:
    """
    Parse dice notation into (count, sides, modifier)

    A plain integer is treated as a constant: (0, 0, value).

    Args:
        notation: Dice string such as "2d6+3"

    Returns:
        Tuple of dice count, dice sides and flat modifier

    Raises:
        ValueError: If the notation cannot be parsed
    """
    if notation is None:
        raise ValueError("Dice notation cannot be empty")

    text = str(notation).strip().replace(" ", "")
    if not text:
        raise ValueError("Dice notation cannot be empty")

    if text.lstrip("+-").isdigit():
        return 0, 0, int(text)

    match = DICE_PATTERN.match(text)
    if not match:
        raise ValueError(f"Invalid dice notation: {notation}")

    count = int(match.group(1)) if match.group(1) else 1
    sides = int(match.group(2))
    modifier = int(match.group(3)) if match.group(3) else 0

    if count <= 0:
        raise ValueError(f"Dice count must be positive: {notation}")
    if sides <= 0:
        raise ValueError(f"Dice sides must be positive: {notation}")

    return count, sides, modifier


def roll(notation: str, rng: random.Random) -> int:
    """Roll dice notation with the given random source."""
    count, sides, modifier = parse_dice(notation)
    total = modifier
    for _ in range(count):
        total += rng.randint(1, sides)
    return total


def min_roll(notation: str) -> int:
    count, _, modifier = parse_dice(notation)
    return count + modifier


def max_roll(notation: str) -> int:
    count, sides, modifier = parse_dice(notation)
    return count * sides + modifier


def average_roll(notation: str) -> float:
    count, sides, modifier = parse_dice(notation)
    return count * (sides + 1) / 2.0 + modifier


def is_valid(notation: str) -> bool:
    """Check whether notation parses without raising."""
    try:
        parse_dice(notation)
    except ValueError:
        return False
    return True
