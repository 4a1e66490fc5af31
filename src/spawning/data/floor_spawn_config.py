"""
Per-depth spawn configuration.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List


class ItemRarity(IntEnum):
    COMMON = 0
    UNCOMMON = 1
    RARE = 2
    EPIC = 3

    @classmethod
    def from_name(cls, name: str) -> "ItemRarity":
        return cls[str(name).upper()]


@dataclass
class WeightedEntry:
    entry_id: str
    weight: int = 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeightedEntry":
        return cls(entry_id=str(data["id"]), weight=int(data.get("weight", 1)))


@dataclass
class ItemSpawnConfig:
    """Item pools by rarity and their selection weights."""
    common_items: List[str] = field(default_factory=list)
    uncommon_items: List[str] = field(default_factory=list)
    rare_items: List[str] = field(default_factory=list)
    epic_items: List[str] = field(default_factory=list)
    consumable_items: List[str] = field(default_factory=list)
    unguarded_item_chance: float = 0.3
    common_weight: int = 60
    uncommon_weight: int = 30
    rare_weight: int = 9
    epic_weight: int = 1

    def get_pool(self, rarity: ItemRarity) -> List[str]:
        return {
            ItemRarity.COMMON: self.common_items,
            ItemRarity.UNCOMMON: self.uncommon_items,
            ItemRarity.RARE: self.rare_items,
            ItemRarity.EPIC: self.epic_items,
        }[rarity]

    def get_weight(self, rarity: ItemRarity) -> int:
        return {
            ItemRarity.COMMON: self.common_weight,
            ItemRarity.UNCOMMON: self.uncommon_weight,
            ItemRarity.RARE: self.rare_weight,
            ItemRarity.EPIC: self.epic_weight,
        }[rarity]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ItemSpawnConfig":
        return cls(
            common_items=list(data.get("common_items", [])),
            uncommon_items=list(data.get("uncommon_items", [])),
            rare_items=list(data.get("rare_items", [])),
            epic_items=list(data.get("epic_items", [])),
            consumable_items=list(data.get("consumable_items", [])),
            unguarded_item_chance=float(data.get("unguarded_item_chance", 0.3)),
            common_weight=int(data.get("common_weight", 60)),
            uncommon_weight=int(data.get("uncommon_weight", 30)),
            rare_weight=int(data.get("rare_weight", 9)),
            epic_weight=int(data.get("epic_weight", 1)),
        )


@dataclass
class FloorSpawnConfig:
    """
    Spawn rules for a range of floor depths.

    Attributes:
        config_id: Catalog id
        name: Display name
        min_floor: First depth this config covers
        max_floor: Last depth this config covers
        power_budget: Dice notation for the floor threat budget
        item_budget: Dice notation for the floor item budget
        gold_budget: Dice notation for the floor gold budget
        theme_weights: Weighted theme table
        encounter_weights: Weighted encounter template table
        out_of_depth_chance: Per-floor probability of an out-of-depth spawn
        out_of_depth_floors: How many floors deeper to draw from
        min_threat: Lowest creature threat expected on these floors
        max_threat: Highest creature threat expected on these floors
        items: Item pools
        unique_creatures: Creature ids that may appear once per run
    """
    config_id: str
    name: str = ""
    min_floor: int = 1
    max_floor: int = 99
    power_budget: str = "2d6+5"
    item_budget: str = "1d4+2"
    gold_budget: str = "3d10+10"
    theme_weights: List[WeightedEntry] = field(default_factory=list)
    encounter_weights: List[WeightedEntry] = field(default_factory=list)
    out_of_depth_chance: float = 0.0
    out_of_depth_floors: int = 2
    min_threat: int = 0
    max_threat: int = 999
    items: ItemSpawnConfig = field(default_factory=ItemSpawnConfig)
    unique_creatures: List[str] = field(default_factory=list)

    def covers_depth(self, floor_depth: int) -> bool:
        return self.min_floor <= floor_depth <= self.max_floor

    @classmethod
    def from_dict(cls, config_id: str, data: Dict[str, Any]) -> "FloorSpawnConfig":
        return cls(
            config_id=config_id,
            name=str(data.get("name", config_id)),
            min_floor=int(data.get("min_floor", 1)),
            max_floor=int(data.get("max_floor", 99)),
            power_budget=str(data.get("power_budget", "2d6+5")),
            item_budget=str(data.get("item_budget", "1d4+2")),
            gold_budget=str(data.get("gold_budget", "3d10+10")),
            theme_weights=[WeightedEntry.from_dict(e) for e in data.get("theme_weights", [])],
            encounter_weights=[WeightedEntry.from_dict(e) for e in data.get("encounter_weights", [])],
            out_of_depth_chance=float(data.get("out_of_depth_chance", 0.0)),
            out_of_depth_floors=int(data.get("out_of_depth_floors", 2)),
            min_threat=int(data.get("min_threat", 0)),
            max_threat=int(data.get("max_threat", 999)),
            items=ItemSpawnConfig.from_dict(data.get("items", {})),
            unique_creatures=[str(c) for c in data.get("unique_creatures", [])],
        )


def create_fallback_config(floor_depth: int) -> FloorSpawnConfig:
    """Minimal config for a depth no catalog entry covers."""
    return FloorSpawnConfig(
        config_id=f"fallback_floor_{floor_depth}",
        name=f"Fallback Floor {floor_depth}",
        min_floor=floor_depth,
        max_floor=floor_depth,
        power_budget=f"{floor_depth + 2}d4+{floor_depth * 2}",
        item_budget="1d4+1",
        gold_budget=f"{floor_depth}d10+10",
        min_threat=1,
        max_threat=floor_depth * 3 + 5,
    )
