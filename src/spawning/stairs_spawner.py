"""
Stairs Spawner - places the floor exit as far from the entrance as possible.
"""

import logging
from typing import List, Optional, Set

from src.entities.entity_factory import EntityFactory, EntityHandle, EntityRegistry
from src.level.region_data import DungeonMetadata, GridPosition, Region
from src.spawning.config_loader import SpawnSettings

logger = logging.getLogger(__name__)


def manhattan(a: GridPosition, b: GridPosition) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def farthest_region(metadata: DungeonMetadata) -> Optional[Region]:
    """
    Region farthest from the entrance

    Uses the average tile distance from the entrance distance field when
    one exists, otherwise the Manhattan distance between the entrance
    and each centroid. The region holding the entrance is skipped unless
    it is the only one; with no entrance the largest region wins.
    """
    if not metadata.regions:
        return None

    entrance = metadata.entrance_position
    if entrance is None:
        return max(metadata.regions, key=lambda r: r.area)

    candidates = [r for r in metadata.regions if not r.contains(entrance)] or list(metadata.regions)

    distance_field = metadata.entrance_distance
    if distance_field is not None:
        best = None
        best_distance = -1.0
        for region in candidates:
            average = distance_field.average_distance(region.tiles)
            if average is not None and average > best_distance:
                best = region
                best_distance = average
        if best is not None:
            return best

    return max(candidates, key=lambda r: manhattan(r.centroid, entrance))


class StairsSpawner:
    def __init__(
        self,
        entity_factory: EntityFactory,
        registry: EntityRegistry,
        settings: Optional[SpawnSettings] = None,
    ):
        settings = settings or SpawnSettings()
        self.entity_factory = entity_factory
        self.registry = registry
        self.final_floor = settings.final_floor
        self.stairs_feature_id = settings.stairs_feature_id
        self.final_feature_id = settings.final_feature_id

    def is_final_floor(self, floor_depth: int) -> bool:
        return floor_depth >= self.final_floor

    def get_stairs_region(self, metadata: DungeonMetadata) -> Optional[Region]:
        return farthest_region(metadata)

    def _tile_distance(self, metadata: DungeonMetadata, tile: GridPosition) -> int:
        if metadata.entrance_distance is not None:
            distance = metadata.entrance_distance.get_distance(tile)
            if distance is not None:
                return distance
        if metadata.entrance_position is not None:
            return manhattan(tile, metadata.entrance_position)
        return 0

    def find_stairs_position(
        self,
        metadata: DungeonMetadata,
        region: Region,
        occupied: Set[GridPosition],
    ) -> Optional[GridPosition]:
        """Farthest free edge tile, else farthest free tile."""
        for pool in (region.edge_tiles, region.tiles):
            free: List[GridPosition] = [t for t in pool if t not in occupied]
            if free:
                return max(free, key=lambda t: self._tile_distance(metadata, t))
        return None

    def place_stairs(
        self,
        metadata: DungeonMetadata,
        floor_depth: int,
        occupied: Set[GridPosition],
    ) -> Optional[EntityHandle]:
        """
        Place the exit feature and record it as metadata.exit_position

        On the final floor the terminal objective feature replaces the stairs.

        Returns:
            The created feature, or None if no region or tile was available
        """
        region = self.get_stairs_region(metadata)
        if region is None:
            logger.warning("No region available for stairs")
            return None

        position = self.find_stairs_position(metadata, region, occupied)
        if position is None:
            logger.warning("No free tile for stairs in region %d", region.region_id)
            return None

        feature_id = self.final_feature_id if self.is_final_floor(floor_depth) else self.stairs_feature_id
        handle = self.entity_factory.create_feature(feature_id, position)
        if handle is None:
            return None

        self.registry.add_entity(handle)
        occupied.add(position)
        metadata.exit_position = position
        logger.debug("Placed %s at %s in region %d", feature_id, position, region.region_id)
        return handle
