"""Spawn settings and their JSON loader.

Settings live in config/spawn_settings.json. Every key is optional; missing
keys keep the SpawnSettings defaults and unknown keys are reported and
ignored.
"""

import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = os.path.join(
    os.path.dirname(__file__), "..", "..", "config", "spawn_settings.json"
)


@dataclass
class SpawnSettings:
    """Tunable constants of the floor spawning pipeline."""
    # Themes
    theme_cluster_chance: float = 0.4

    # Budget allocation
    distance_normalization: float = 50.0
    small_region_area: int = 16
    min_budget_region_area: int = 9

    # Encounter placement
    max_placement_attempts: int = 10
    min_encounter_spacing: int = 6
    lair_center_radius: int = 3
    default_encounter_weight: int = 10
    preferred_region_bonus: float = 1.5
    budget_efficiency_bonus: float = 1.25
    ambush_danger_bonus: float = 1.3
    ambush_danger_threshold: float = 1.2
    player_exclusion_radius: int = 13

    # Treasure
    guarded_treasure_regions: int = 3
    guarded_treasure_min_threat: int = 5

    # Exit and uniques
    final_floor: int = 10
    stairs_feature_id: str = "stairs"
    final_feature_id: str = "throne"
    unique_min_region_area: int = 25

    # AI
    follow_distance: int = 3
    default_wake_radius: int = 5
    patrol_waypoints: int = 4

    # Validation
    minimum_creature_count: int = 3
    low_utilization_percent: float = 50.0

    gold_item_id: str = "gold"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SpawnSettings":
        known = {f.name: f for f in fields(cls)}
        values = {}
        for key, value in data.items():
            if key not in known:
                logger.warning("Ignoring unknown spawn setting: %s", key)
                continue
            default = known[key].default
            values[key] = type(default)(value)
        settings = cls(**values)
        settings.validate()
        return settings

    def validate(self) -> None:
        if not 0.0 <= self.theme_cluster_chance <= 1.0:
            raise ValueError("theme_cluster_chance must be between 0 and 1")
        if self.max_placement_attempts <= 0:
            raise ValueError("max_placement_attempts must be positive")
        if self.min_encounter_spacing < 0:
            raise ValueError("min_encounter_spacing cannot be negative")
        if self.distance_normalization <= 0:
            raise ValueError("distance_normalization must be positive")


def load_spawn_settings(path: Optional[str] = None) -> SpawnSettings:
    """
    Load spawn settings from JSON

    Args:
        path: Settings file; defaults to config/spawn_settings.json

    Returns:
        SpawnSettings with file values applied over defaults

    Raises:
        ValueError: If a value is out of range
    """
    path = path or DEFAULT_SETTINGS_PATH
    if not os.path.exists(path):
        logger.info("No spawn settings at %s, using defaults", path)
        return SpawnSettings()

    with open(path, 'r') as f:
        data = json.load(f)

    logger.debug("Loaded spawn settings from %s", path)
    return SpawnSettings.from_dict(data)
