"""
Gold placement.

A third of the piles sit in the regions that spawned threat, sized up by how
dangerous the region is; the rest are scattered. Piles never add up to more
than the floor's gold budget.
"""

import logging
import random
from typing import Dict, List, Set

from src.entities.entity_factory import EntityFactory, EntityRegistry
from src.level.region_data import GridPosition, Region
from src.spawning.region_spawn_data import RegionSpawnData

logger = logging.getLogger(__name__)

GUARDED_SHARE = 3
THREAT_PER_BONUS_GOLD = 5


def pile_size_range(floor_depth: int):
    """(min, max) pile size for a floor depth."""
    return 1 + floor_depth, 5 + floor_depth * 2


class GoldPlacer:
    def __init__(self, entity_factory: EntityFactory, registry: EntityRegistry, rng: random.Random):
        self.entity_factory = entity_factory
        self.registry = registry
        self.rng = rng

    def place_gold_pile(self, region: Region, amount: int, occupied: Set[GridPosition]) -> int:
        """
        Drop one pile on a random free tile of the region

        Returns:
            Amount placed, 0 if the pile could not be created
        """
        if amount <= 0:
            return 0
        tiles = [t for t in region.tiles if t not in occupied]
        if not tiles:
            return 0
        position = tiles[self.rng.randrange(len(tiles))]
        handle = self.entity_factory.create_gold(amount, position)
        if handle is None:
            return 0
        self.registry.add_entity(handle)
        occupied.add(position)
        return amount

    def distribute_gold(
        self,
        regions: List[Region],
        region_spawn_data: Dict[int, RegionSpawnData],
        gold_budget: int,
        floor_depth: int,
        occupied: Set[GridPosition],
    ) -> int:
        """
        Split the gold budget into piles

        Guarded piles go first, one per threatened region in descending
        order of spawned threat, boosted by threat // 5. Scattered piles
        then use what is left.

        Args:
            regions: Candidate regions
            region_spawn_data: Per-region spawn state, read for spawned threat
            gold_budget: Total gold for the floor
            floor_depth: Current depth, scales pile sizes
            occupied: Floor-wide occupied tiles

        Returns:
            Total gold placed, never more than gold_budget
        """
        if not regions or gold_budget <= 0:
            return 0

        min_pile, max_pile = pile_size_range(floor_depth)
        average_pile = (min_pile + max_pile) // 2
        target_piles = max(1, gold_budget // average_pile)
        guarded_piles = target_piles // GUARDED_SHARE

        placed = 0
        piles = 0

        dangerous = sorted(
            (r for r in regions
             if r.region_id in region_spawn_data and region_spawn_data[r.region_id].total_threat_spawned > 0),
            key=lambda r: region_spawn_data[r.region_id].total_threat_spawned,
            reverse=True,
        )
        for region in dangerous[:guarded_piles]:
            remaining = gold_budget - placed
            if remaining <= 0:
                break
            threat = region_spawn_data[region.region_id].total_threat_spawned
            amount = self.rng.randint(min_pile, max_pile) + threat // THREAT_PER_BONUS_GOLD
            amount = self.place_gold_pile(region, min(amount, remaining), occupied)
            if amount:
                placed += amount
                piles += 1

        guarded_placed = placed
        for _ in range(target_piles - piles):
            remaining = gold_budget - placed
            if remaining <= 0:
                break
            region = regions[self.rng.randrange(len(regions))]
            amount = min(self.rng.randint(min_pile, max_pile), remaining)
            placed += self.place_gold_pile(region, amount, occupied)

        logger.debug("Placed %d gold (%d guarded) of budget %d", placed, guarded_placed, gold_budget)
        return placed

