"""
Unique Monster Spawner - named creatures that appear at most once per run.
"""

import logging
from typing import List, Optional, Set

from src.entities.entity_factory import EntityFactory, EntityHandle, EntityRegistry
from src.level.region_data import DungeonMetadata, GridPosition, Region
from src.spawning.content_catalog import ContentCatalog
from src.spawning.data.floor_spawn_config import FloorSpawnConfig

logger = logging.getLogger(__name__)


def _manhattan(a: GridPosition, b: GridPosition) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


class UniqueMonsterSpawner:
    """
    Spawns a floor's unique creatures

    The spawned set lives as long as the spawner, so one spawner is kept
    for the whole run and reset_for_new_run() is called between runs.
    """

    def __init__(
        self,
        catalog: ContentCatalog,
        entity_factory: EntityFactory,
        registry: EntityRegistry,
        min_region_area: int = 25,
    ):
        self.catalog = catalog
        self.entity_factory = entity_factory
        self.registry = registry
        self.min_region_area = min_region_area
        self._spawned: Set[str] = set()

    def has_spawned(self, creature_id: str) -> bool:
        return creature_id in self._spawned

    def mark_spawned(self, creature_id: str) -> None:
        self._spawned.add(creature_id)

    def reset_for_new_run(self) -> None:
        self._spawned.clear()

    @property
    def spawned_uniques(self) -> List[str]:
        return sorted(self._spawned)

    def spawn_uniques(
        self,
        metadata: DungeonMetadata,
        config: FloorSpawnConfig,
        occupied: Set[GridPosition],
    ) -> List[EntityHandle]:
        """
        Spawn every unique of the floor config not yet seen this run

        Uniques do not draw on region budgets.

        Returns:
            Handles of the creatures spawned on this floor
        """
        spawned = []
        for creature_id in config.unique_creatures:
            if self.has_spawned(creature_id):
                continue

            creature = self.catalog.get_creature(creature_id)
            if creature is None:
                logger.warning("Unique creature '%s' not found in catalog", creature_id)
                continue

            region = self.select_lair_region(metadata)
            if region is None:
                break

            position = self.find_lair_position(region, occupied)
            if position is None:
                logger.debug("No free tile for unique '%s' in region %d", creature_id, region.region_id)
                continue

            handle = self.entity_factory.create_creature(creature_id, position)
            if handle is None:
                continue

            self.registry.add_entity(handle)
            occupied.add(position)
            self.mark_spawned(creature_id)
            spawned.append(handle)
            logger.info("Unique '%s' spawned at %s", creature_id, position)

        return spawned

    def select_lair_region(self, metadata: DungeonMetadata) -> Optional[Region]:
        """Farthest large region from the entrance, the largest one without a distance field."""
        regions = [r for r in metadata.regions if r.area >= self.min_region_area] or list(metadata.regions)
        if not regions:
            return None

        distance_field = metadata.entrance_distance
        if distance_field is not None:
            reachable = [(r, distance_field.get_distance(r.centroid)) for r in regions]
            reachable = [(r, d) for r, d in reachable if d is not None]
            if reachable:
                return max(reachable, key=lambda pair: pair[1])[0]

        return max(regions, key=lambda r: r.area)

    def find_lair_position(self, region: Region, occupied: Set[GridPosition]) -> Optional[GridPosition]:
        """Region centroid if free, otherwise the nearest free tile."""
        centroid = region.centroid
        if region.contains(centroid) and centroid not in occupied:
            return centroid
        free = [t for t in region.tiles if t not in occupied]
        if not free:
            return None
        return min(free, key=lambda t: _manhattan(t, centroid))
