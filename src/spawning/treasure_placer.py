"""
Treasure and loot placement.

Guarded treasure goes to the regions that spawned the most threat; the rest
of the item budget is spread over the safer regions first.
"""

import logging
import random
from typing import Dict, List, Optional, Set

from src.entities.entity_factory import EntityFactory, EntityRegistry
from src.level.region_data import GridPosition, Region
from src.spawning.content_catalog import ContentCatalog
from src.spawning.data.catalog_data import ItemData
from src.spawning.data.floor_spawn_config import ItemRarity, ItemSpawnConfig
from src.spawning.region_spawn_data import RegionSpawnData
from src.utils.weighted_random import weighted_choice

logger = logging.getLogger(__name__)


def rarity_range_for_guardian(guardian_threat: int):
    """(min, max) rarity a guardian of this threat may protect."""
    if guardian_threat >= 16:
        return ItemRarity.RARE, ItemRarity.EPIC
    if guardian_threat >= 8:
        return ItemRarity.UNCOMMON, ItemRarity.RARE
    return ItemRarity.COMMON, ItemRarity.UNCOMMON


def rarity_ceiling_for_threat(region_threat: int) -> ItemRarity:
    if region_threat > 15:
        return ItemRarity.RARE
    if region_threat > 5:
        return ItemRarity.UNCOMMON
    return ItemRarity.COMMON


def select_item_in_rarity_range(
    catalog: ContentCatalog,
    config: ItemSpawnConfig,
    min_rarity: ItemRarity,
    max_rarity: ItemRarity,
    rng: random.Random,
    max_cost: Optional[int] = None,
) -> Optional[ItemData]:
    """
    Weighted pick over the item pools between two rarities

    Every item carries its pool's weight. Items the catalog lacks and items
    costing more than max_cost are skipped.
    """
    entries = []
    for rarity in ItemRarity:
        if rarity < min_rarity or rarity > max_rarity:
            continue
        weight = config.get_weight(rarity)
        for item_id in config.get_pool(rarity):
            item = catalog.get_item(item_id)
            if item is None:
                logger.warning("Item '%s' not found in catalog", item_id)
                continue
            if max_cost is not None and item.budget_cost > max_cost:
                continue
            entries.append((item, weight))
    return weighted_choice(rng, entries)


def free_tiles(region: Region, occupied: Set[GridPosition]) -> List[GridPosition]:
    return [t for t in region.tiles if t not in occupied]


class TreasurePlacer:
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

    def select_item_for_guardian(
        self,
        config: ItemSpawnConfig,
        guardian_threat: int,
        max_cost: Optional[int] = None,
    ) -> Optional[ItemData]:
        min_rarity, max_rarity = rarity_range_for_guardian(guardian_threat)
        return select_item_in_rarity_range(self.catalog, config, min_rarity, max_rarity, self.rng, max_cost)

    def find_treasure_position(self, region: Region, occupied: Set[GridPosition]) -> Optional[GridPosition]:
        """Random free edge tile, else any free tile."""
        edges = [t for t in region.edge_tiles if t not in occupied]
        if edges:
            return edges[self.rng.randrange(len(edges))]
        tiles = free_tiles(region, occupied)
        if tiles:
            return tiles[self.rng.randrange(len(tiles))]
        return None

    def _place(self, item: Optional[ItemData], region: Region, occupied: Set[GridPosition]) -> int:
        if item is None:
            return 0
        position = self.find_treasure_position(region, occupied)
        if position is None:
            return 0
        handle = self.entity_factory.create_item(item.item_id, position)
        if handle is None:
            return 0
        self.registry.add_entity(handle)
        occupied.add(position)
        logger.debug("Placed treasure '%s' at %s in region %d", item.item_id, position, region.region_id)
        return item.budget_cost

    def place_guarded_treasure(
        self,
        region: Region,
        config: ItemSpawnConfig,
        item_budget: int,
        guardian_threat: int,
        occupied: Set[GridPosition],
    ) -> int:
        """
        Place one treasure whose rarity matches the guardian's strength

        Returns:
            Item budget spent, 0 if nothing was placed
        """
        if item_budget <= 0:
            return 0
        item = self.select_item_for_guardian(config, guardian_threat, max_cost=item_budget)
        return self._place(item, region, occupied)

    def place_unguarded_treasure(
        self,
        region: Region,
        config: ItemSpawnConfig,
        item_budget: int,
        occupied: Set[GridPosition],
    ) -> int:
        """Place a common or uncommon item with the config's unguarded chance."""
        if item_budget <= 0 or self.rng.random() >= config.unguarded_item_chance:
            return 0
        item = select_item_in_rarity_range(self.catalog, config, ItemRarity.COMMON, ItemRarity.UNCOMMON,
                                           self.rng, max_cost=item_budget)
        return self._place(item, region, occupied)


class LootDistributor:
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

    def _place_item(self, item: ItemData, region: Region, occupied: Set[GridPosition]) -> bool:
        tiles = free_tiles(region, occupied)
        if not tiles:
            return False
        position = tiles[self.rng.randrange(len(tiles))]
        handle = self.entity_factory.create_item(item.item_id, position)
        if handle is None:
            return False
        self.registry.add_entity(handle)
        occupied.add(position)
        return True

    def distribute_items(
        self,
        regions: List[Region],
        region_spawn_data: Dict[int, RegionSpawnData],
        config: ItemSpawnConfig,
        item_budget: int,
        occupied: Set[GridPosition],
    ) -> Dict[str, int]:
        """
        Spread the item budget over regions, safest first

        One item per region, in ascending order of spawned threat, over at
        most item_budget regions. The rarity ceiling rises with the region's
        threat and no item costs more than the budget left.

        Returns:
            {"placed": items placed, "spent": budget spent}
        """
        result = {"placed": 0, "spent": 0}
        if not regions or item_budget <= 0:
            return result

        ordered = sorted(
            (r for r in regions if r.region_id in region_spawn_data),
            key=lambda r: region_spawn_data[r.region_id].total_threat_spawned,
        )
        regions_to_use = min(len(ordered), item_budget)

        for region in ordered[:regions_to_use]:
            remaining = item_budget - result["spent"]
            if remaining <= 0:
                break
            threat = region_spawn_data[region.region_id].total_threat_spawned
            ceiling = rarity_ceiling_for_threat(threat)
            item = select_item_in_rarity_range(self.catalog, config, ItemRarity.COMMON, ceiling,
                                               self.rng, max_cost=remaining)
            if item is None:
                continue
            if self._place_item(item, region, occupied):
                result["placed"] += 1
                result["spent"] += item.budget_cost

        return result

    def place_consumables(
        self,
        regions: List[Region],
        config: ItemSpawnConfig,
        count: int,
        occupied: Set[GridPosition],
    ) -> int:
        """Scatter count consumables over random regions; returns how many were placed."""
        pool = config.consumable_items or config.common_items
        items = [self.catalog.get_item(i) for i in pool]
        items = [i for i in items if i is not None]
        placed = 0
        if not regions or not items:
            return placed

        for _ in range(count):
            region = regions[self.rng.randrange(len(regions))]
            item = items[self.rng.randrange(len(items))]
            if self._place_item(item, region, occupied):
                placed += 1
        return placed
