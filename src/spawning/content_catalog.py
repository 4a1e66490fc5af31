"""
Content Catalog - read-only lookup of spawnable content by id.

The catalog is built once and passed into the spawn orchestrator; nothing in
the spawning package keeps a module-level reference to it.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from src.spawning.data.catalog_data import CreatureData, FactionTheme, ItemData
from src.spawning.data.encounter_template import EncounterTemplate
from src.spawning.data.floor_spawn_config import FloorSpawnConfig

logger = logging.getLogger(__name__)


class ContentCatalog:
    """Immutable collection of creatures, items, themes, templates and floor configs."""

    def __init__(
        self,
        creatures: Iterable[CreatureData] = (),
        items: Iterable[ItemData] = (),
        themes: Iterable[FactionTheme] = (),
        encounter_templates: Iterable[EncounterTemplate] = (),
        floor_configs: Iterable[FloorSpawnConfig] = (),
    ):
        self._creatures: Dict[str, CreatureData] = {c.creature_id: c for c in creatures}
        self._items: Dict[str, ItemData] = {i.item_id: i for i in items}
        self._themes: Dict[str, FactionTheme] = {t.theme_id: t for t in themes}
        self._templates: Dict[str, EncounterTemplate] = {t.template_id: t for t in encounter_templates}
        self._floor_configs: Tuple[FloorSpawnConfig, ...] = tuple(floor_configs)

    def get_creature(self, creature_id: str) -> Optional[CreatureData]:
        return self._creatures.get(creature_id)

    def get_item(self, item_id: str) -> Optional[ItemData]:
        return self._items.get(item_id)

    def get_faction_theme(self, theme_id: str) -> Optional[FactionTheme]:
        return self._themes.get(theme_id)

    def get_encounter_template(self, template_id: str) -> Optional[EncounterTemplate]:
        return self._templates.get(template_id)

    def all_creatures(self) -> List[CreatureData]:
        return list(self._creatures.values())

    def all_faction_themes(self) -> List[FactionTheme]:
        return list(self._themes.values())

    def all_encounter_templates(self) -> List[EncounterTemplate]:
        return list(self._templates.values())

    def floor_configs(self) -> List[FloorSpawnConfig]:
        return list(self._floor_configs)

    def get_floor_config_for_depth(self, floor_depth: int) -> Optional[FloorSpawnConfig]:
        """First floor config whose depth range covers floor_depth."""
        for config in self._floor_configs:
            if config.covers_depth(floor_depth):
                return config
        return None

    def get_theme_creatures(self, theme: FactionTheme) -> List[CreatureData]:
        """Resolve a theme's creature ids, skipping ids the catalog lacks."""
        creatures = []
        for creature_id in theme.creatures:
            creature = self._creatures.get(creature_id)
            if creature is None:
                logger.warning("Theme '%s' lists unknown creature '%s'", theme.theme_id, creature_id)
                continue
            creatures.append(creature)
        return creatures

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContentCatalog":
        """
        Build a catalog from JSON-shaped data

        Each section ("creatures", "items", "themes", "encounters",
        "floors") maps ids to record dictionaries.
        """
        return cls(
            creatures=[CreatureData.from_dict(k, v) for k, v in data.get("creatures", {}).items()],
            items=[ItemData.from_dict(k, v) for k, v in data.get("items", {}).items()],
            themes=[FactionTheme.from_dict(k, v) for k, v in data.get("themes", {}).items()],
            encounter_templates=[EncounterTemplate.from_dict(k, v)
                                 for k, v in data.get("encounters", {}).items()],
            floor_configs=[FloorSpawnConfig.from_dict(k, v) for k, v in data.get("floors", {}).items()],
        )

    @classmethod
    def load_from_json(cls, filepath: str) -> "ContentCatalog":
        with open(filepath, 'r') as f:
            data = json.load(f)
        catalog = cls.from_dict(data)
        logger.info("Loaded catalog from %s: %d creatures, %d themes, %d encounters",
                    filepath, len(catalog._creatures), len(catalog._themes), len(catalog._templates))
        return catalog
