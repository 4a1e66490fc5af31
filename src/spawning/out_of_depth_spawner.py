"""
Out-of-Depth Spawner - occasionally drops a creature from a deeper floor.
"""

import logging
import random
from typing import List, Optional, Set, Tuple

from src.entities.entity_factory import EntityFactory, EntityHandle, EntityRegistry
from src.level.region_data import DungeonMetadata, GridPosition, Region
from src.spawning.content_catalog import ContentCatalog
from src.spawning.data.catalog_data import CreatureData, FactionTheme
from src.spawning.data.floor_spawn_config import FloorSpawnConfig

logger = logging.getLogger(__name__)


class OutOfDepthSpawner:
    def __init__(
        self,
        catalog: ContentCatalog,
        entity_factory: EntityFactory,
        registry: EntityRegistry,
        rng: random.Random,
    ):
        self.catalog = catalog
        self.entity_factory = entity_factory
        self.registry = registry
        self.rng = rng

    def get_deeper_configs(self, floor_depth: int, config: FloorSpawnConfig) -> List[FloorSpawnConfig]:
        """Configs for each of the next out_of_depth_floors depths, in depth order."""
        deeper = []
        for offset in range(1, config.out_of_depth_floors + 1):
            deeper_config = self.catalog.get_floor_config_for_depth(floor_depth + offset)
            if deeper_config is not None:
                deeper.append(deeper_config)
        return deeper

    def try_spawn_out_of_depth(
        self,
        floor_depth: int,
        config: FloorSpawnConfig,
        deeper_configs: List[FloorSpawnConfig],
        regions: List[Region],
        metadata: DungeonMetadata,
        occupied: Set[GridPosition],
    ) -> Optional[Tuple[EntityHandle, int]]:
        """
        Roll for an out-of-depth spawn and place it

        Args:
            floor_depth: Current depth
            config: Current floor config
            deeper_configs: Configs of deeper floors, see get_deeper_configs()
            regions: Candidate regions
            metadata: Floor metadata, read for the entrance distance field
            occupied: Floor-wide occupied tiles

        Returns:
            (handle, threat) of the spawned creature, or None if the roll
            failed or nothing could be placed
        """
        if config.out_of_depth_chance <= 0:
            return None
        roll = self.rng.random()
        if roll > config.out_of_depth_chance:
            return None

        target_depth = floor_depth + config.out_of_depth_floors
        deeper_config = self._config_for_depth(deeper_configs, target_depth)
        if deeper_config is None:
            logger.info("Out-of-depth rolled %.2f but no deeper floor config exists", roll)
            return None

        creature = self.select_deeper_creature(deeper_config, config, target_depth)
        if creature is None:
            logger.info("Out-of-depth rolled %.2f but no deeper creature qualifies", roll)
            return None

        region = self.find_dangerous_region(regions, metadata)
        if region is None:
            return None

        position = self.find_position(region, occupied)
        if position is None:
            logger.debug("No free tile for out-of-depth spawn in region %d", region.region_id)
            return None

        handle = self.entity_factory.create_creature(creature.creature_id, position)
        if handle is None:
            return None

        self.registry.add_entity(handle)
        occupied.add(position)
        logger.info("Out-of-depth '%s' (threat %d) from floor %d spawned at %s",
                    creature.name, creature.threat, target_depth, position)
        return handle, creature.threat

    @staticmethod
    def _config_for_depth(deeper_configs: List[FloorSpawnConfig], depth: int) -> Optional[FloorSpawnConfig]:
        """Config covering depth, else the deepest one available."""
        for deeper in deeper_configs:
            if deeper.covers_depth(depth):
                return deeper
        return deeper_configs[-1] if deeper_configs else None

    def _deeper_themes(self, deeper_config: FloorSpawnConfig, depth: int) -> List[FactionTheme]:
        if deeper_config.theme_weights:
            themes = [self.catalog.get_faction_theme(e.entry_id) for e in deeper_config.theme_weights]
            return [t for t in themes if t is not None]
        return [t for t in self.catalog.all_faction_themes() if t.is_valid_for_depth(depth)]

    def select_deeper_creature(
        self,
        deeper_config: FloorSpawnConfig,
        current_config: FloorSpawnConfig,
        depth: int,
    ) -> Optional[CreatureData]:
        """
        Pick a creature from the deeper floor's themes

        Creatures stronger than the current floor's max threat are preferred;
        otherwise anything meeting the deeper floor's min threat. The pick is
        uniform over the top third by threat.
        """
        creatures = []
        for theme in self._deeper_themes(deeper_config, depth):
            creatures.extend(self.catalog.get_theme_creatures(theme))

        candidates = [c for c in creatures if c.threat > current_config.max_threat]
        if not candidates:
            candidates = [c for c in creatures if c.threat >= deeper_config.min_threat]
        if not candidates:
            return None

        ranked = sorted(candidates, key=lambda c: c.threat, reverse=True)
        pick_range = max(1, len(ranked) // 3)
        return ranked[self.rng.randrange(pick_range)]

    def find_dangerous_region(self, regions: List[Region], metadata: DungeonMetadata) -> Optional[Region]:
        """A region from the middle third by entrance distance, else a random one."""
        if not regions:
            return None

        distance_field = metadata.entrance_distance if metadata is not None else None
        if distance_field is not None:
            ranked = []
            for region in regions:
                distance = distance_field.get_distance(region.centroid)
                if distance is not None and distance > 0:
                    ranked.append((distance, region))
            if len(ranked) >= 3:
                ranked.sort(key=lambda pair: pair[0])
                start = len(ranked) // 3
                return ranked[self.rng.randrange(start, max(start + 1, 2 * start))][1]

        return regions[self.rng.randrange(len(regions))]

    def find_position(self, region: Region, occupied: Set[GridPosition]) -> Optional[GridPosition]:
        """Random free edge tile, else any free tile."""
        for pool in (region.edge_tiles, region.tiles):
            free = [t for t in pool if t not in occupied]
            if free:
                return free[self.rng.randrange(len(free))]
        return None
