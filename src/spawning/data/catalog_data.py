"""
Catalog records: creatures, items and faction themes.

All records are frozen; the catalog hands out the same instances to every
phase of floor generation.
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class AttackData:
    name: str
    attack_type: str = "melee"  # melee, ranged
    damage: str = "1d4"

    @property
    def is_ranged(self) -> bool:
        return self.attack_type.lower() == "ranged"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AttackData":
        return cls(
            name=str(data.get("name", "attack")),
            attack_type=str(data.get("type", "melee")),
            damage=str(data.get("damage", "1d4")),
        )


@dataclass(frozen=True)
class CreatureData:
    """
    Creature template.

    Attributes:
        creature_id: Catalog id
        name: Display name
        creature_type: Free-form type ("goblinoid", "rodent", ...)
        threat: Difficulty rating consumed from threat budgets
        strength, agility, endurance, will: Base stats
        attacks: Natural attacks
        equipment: Starting equipment ids
        behaviors: Declared AI behavior types ("Cowardly", "Patrol", ...)
    """
    creature_id: str
    name: str
    creature_type: str = ""
    threat: int = 1
    strength: int = 0
    agility: int = 0
    endurance: int = 0
    will: int = 0
    attacks: Tuple[AttackData, ...] = ()
    equipment: Tuple[str, ...] = ()
    behaviors: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, creature_id: str, data: Dict[str, Any]) -> "CreatureData":
        # Equipment entries are either plain ids or {"id": ...} mappings
        equipment = []
        for entry in data.get("equipment", []):
            if isinstance(entry, dict):
                item_id = entry.get("id") or entry.get("item")
                if item_id:
                    equipment.append(str(item_id))
            else:
                equipment.append(str(entry))

        behaviors = []
        for entry in data.get("ai", []):
            if isinstance(entry, dict):
                if entry.get("type"):
                    behaviors.append(str(entry["type"]))
            else:
                behaviors.append(str(entry))

        return cls(
            creature_id=creature_id,
            name=str(data.get("name", creature_id)),
            creature_type=str(data.get("type", "")),
            threat=int(data.get("threat", 1)),
            strength=int(data.get("strength", 0)),
            agility=int(data.get("agility", 0)),
            endurance=int(data.get("endurance", 0)),
            will=int(data.get("will", 0)),
            attacks=tuple(AttackData.from_dict(a) for a in data.get("attacks", [])),
            equipment=tuple(equipment),
            behaviors=tuple(behaviors),
        )


@dataclass(frozen=True)
class ItemData:
    item_id: str
    name: str
    value: int = 0
    consumable: bool = False

    @property
    def budget_cost(self) -> int:
        """Item budget consumed when this item is placed."""
        return self.value if self.value > 0 else 1

    @classmethod
    def from_dict(cls, item_id: str, data: Dict[str, Any]) -> "ItemData":
        return cls(
            item_id=item_id,
            name=str(data.get("name", item_id)),
            value=int(data.get("value", 0)),
            consumable=bool(data.get("consumable", False)),
        )


@dataclass(frozen=True)
class FactionTheme:
    """Named pool of related creatures valid for a range of floor depths."""
    theme_id: str
    name: str
    creatures: Tuple[str, ...] = ()
    min_floor: int = 1
    max_floor: int = 99

    def is_valid_for_depth(self, floor_depth: int) -> bool:
        return self.min_floor <= floor_depth <= self.max_floor

    @classmethod
    def from_dict(cls, theme_id: str, data: Dict[str, Any]) -> "FactionTheme":
        return cls(
            theme_id=theme_id,
            name=str(data.get("name", theme_id)),
            creatures=tuple(str(c) for c in data.get("creatures", [])),
            min_floor=int(data.get("min_floor", 1)),
            max_floor=int(data.get("max_floor", 99)),
        )
