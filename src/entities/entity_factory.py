"""
Entity factory and registry used by the spawning pipeline.

The spawners only need to create entities at grid positions and know which
positions are taken; everything else about an entity belongs to the game
runtime that implements EntityFactory.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from src.level.region_data import GridPosition

logger = logging.getLogger(__name__)

KIND_CREATURE = "creature"
KIND_ITEM = "item"
KIND_FEATURE = "feature"
KIND_GOLD = "gold"


@dataclass
class EntityHandle:
    """Lightweight reference to an entity created by a factory."""
    entity_id: int
    template_id: str
    kind: str
    position: GridPosition
    name: str = ""
    threat: int = 0
    quantity: int = 1
    ai_config: Optional[Any] = None


class EntityFactory:
    """
    Interface for turning catalog ids into live entities.

    Implementations return None when an entity cannot be created; the
    spawners treat that as a skipped placement.
    """

    def create_creature(self, creature_id: str, position: GridPosition) -> Optional[EntityHandle]:
        raise NotImplementedError

    def create_item(self, item_id: str, position: GridPosition) -> Optional[EntityHandle]:
        raise NotImplementedError

    def create_feature(self, feature_id: str, position: GridPosition) -> Optional[EntityHandle]:
        """Create a map feature such as stairs."""
        raise NotImplementedError

    def create_gold(self, amount: int, position: GridPosition) -> Optional[EntityHandle]:
        raise NotImplementedError

    def apply_ai_config(self, handle: EntityHandle, config: Any) -> None:
        """Hand a spawn-time AI configuration to the entity."""
        handle.ai_config = config


class CatalogEntityFactory(EntityFactory):
    """EntityFactory producing plain handles from a ContentCatalog."""

    def __init__(self, catalog, gold_item_id: str = "gold"):
        self.catalog = catalog
        self.gold_item_id = gold_item_id
        self._next_id = 1

    def _new_handle(self, template_id: str, kind: str, position: GridPosition, **kwargs) -> EntityHandle:
        handle = EntityHandle(
            entity_id=self._next_id,
            template_id=template_id,
            kind=kind,
            position=position,
            **kwargs
        )
        self._next_id += 1
        return handle

    def create_creature(self, creature_id: str, position: GridPosition) -> Optional[EntityHandle]:
        creature = self.catalog.get_creature(creature_id)
        if creature is None:
            logger.warning("Cannot create creature '%s': not in catalog", creature_id)
            return None
        return self._new_handle(creature_id, KIND_CREATURE, position,
                                name=creature.name, threat=creature.threat)

    def create_item(self, item_id: str, position: GridPosition) -> Optional[EntityHandle]:
        item = self.catalog.get_item(item_id)
        if item is None:
            logger.warning("Cannot create item '%s': not in catalog", item_id)
            return None
        return self._new_handle(item_id, KIND_ITEM, position, name=item.name)

    def create_feature(self, feature_id: str, position: GridPosition) -> Optional[EntityHandle]:
        return self._new_handle(feature_id, KIND_FEATURE, position, name=feature_id)

    def create_gold(self, amount: int, position: GridPosition) -> Optional[EntityHandle]:
        if amount <= 0:
            return None
        return self._new_handle(self.gold_item_id, KIND_GOLD, position,
                                name=f"{amount} gold", quantity=amount)


class EntityRegistry:
    """Tracks spawned entities and the tiles they stand on."""

    def __init__(self):
        self._entities: List[EntityHandle] = []
        self._by_position: Dict[GridPosition, List[EntityHandle]] = {}

    def add_entity(self, handle: EntityHandle) -> None:
        self._entities.append(handle)
        self._by_position.setdefault(handle.position, []).append(handle)

    def is_position_occupied(self, position: GridPosition) -> bool:
        return bool(self._by_position.get(position))

    def entities_at(self, position: GridPosition) -> List[EntityHandle]:
        return list(self._by_position.get(position, []))

    def all_entities(self, kind: Optional[str] = None) -> List[EntityHandle]:
        if kind is None:
            return list(self._entities)
        return [e for e in self._entities if e.kind == kind]

    def occupied_positions(self) -> List[GridPosition]:
        """Occupied tiles in insertion order."""
        return list(self._by_position.keys())

    def clear(self) -> None:
        self._entities.clear()
        self._by_position.clear()

    def __len__(self) -> int:
        return len(self._entities)
