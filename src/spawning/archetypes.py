"""
Creature archetypes inferred from catalog data.

Inference is a pure function of a creature's stats, attacks, equipment and
declared AI behaviors; nothing is stored on the creature itself.
"""

from enum import Enum
from typing import List, Optional, Tuple

from src.spawning.data.catalog_data import CreatureData

RANGED_EQUIPMENT_KEYWORDS = ("bow", "crossbow", "sling", "thrown")


class CreatureArchetype(Enum):
    TANK = "tank"
    WARRIOR = "warrior"
    ASSASSIN = "assassin"
    RANGED = "ranged"
    SUPPORT = "support"
    BRUTE = "brute"
    SCOUT = "scout"
    COWARDLY = "cowardly"
    PATROLLER = "patroller"


def parse_archetype(name: Optional[str]) -> Optional[CreatureArchetype]:
    """Archetype for a case-insensitive name, None if it names none."""
    if not name:
        return None
    key = name.strip().lower()
    for archetype in CreatureArchetype:
        if archetype.value == key:
            return archetype
    return None


def has_ranged_capability(creature: CreatureData) -> bool:
    if any(attack.is_ranged for attack in creature.attacks):
        return True
    for item_id in creature.equipment:
        lowered = item_id.lower()
        if any(keyword in lowered for keyword in RANGED_EQUIPMENT_KEYWORDS):
            return True
    return False


def _has_behavior(creature: CreatureData, behavior: str) -> bool:
    return any(b.lower() == behavior for b in creature.behaviors)


def infer_archetypes(creature: CreatureData) -> Tuple[CreatureArchetype, ...]:
    """
    Infer every archetype that applies to a creature

    Args:
        creature: Catalog creature

    Returns:
        Archetypes in a fixed order; (WARRIOR,) when nothing else applies
    """
    strength = creature.strength
    agility = creature.agility
    endurance = creature.endurance
    will = creature.will
    max_stat = max(strength, agility, endurance, will)

    archetypes: List[CreatureArchetype] = []

    if endurance >= 1 and endurance >= strength and endurance >= agility:
        archetypes.append(CreatureArchetype.TANK)

    if strength >= 1 and strength >= max_stat - 1:
        archetypes.append(CreatureArchetype.WARRIOR)

    if agility >= 1 and strength >= 0 and endurance < agility:
        archetypes.append(CreatureArchetype.ASSASSIN)

    if has_ranged_capability(creature):
        archetypes.append(CreatureArchetype.RANGED)

    if will >= 2:
        archetypes.append(CreatureArchetype.SUPPORT)

    if strength >= 1 and endurance >= 1 and agility <= 0:
        archetypes.append(CreatureArchetype.BRUTE)

    if _has_behavior(creature, "cowardly"):
        archetypes.append(CreatureArchetype.COWARDLY)

    if _has_behavior(creature, "patrol"):
        archetypes.append(CreatureArchetype.PATROLLER)

    # An AI type spelled like an archetype declares it outright
    for behavior in creature.behaviors:
        explicit = parse_archetype(behavior)
        if explicit is not None and explicit not in archetypes:
            archetypes.append(explicit)

    if not archetypes:
        archetypes.append(CreatureArchetype.WARRIOR)

    return tuple(archetypes)
