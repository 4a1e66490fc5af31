"""
Region Budget Allocator - splits the floor threat budget across regions.

Budgets are proportional to area x danger weight. Rounding never loses or
creates budget: the allocations always sum to the rolled total.
"""

import logging
import math
from typing import Dict, List, Optional

from src.level.region_data import DungeonMetadata, GridPosition, Region
from src.spawning.region_spawn_data import RegionSpawnData

logger = logging.getLogger(__name__)

# Additive weight modifiers by region tag
TAG_WEIGHT_MODIFIERS = {
    "treasure_room": 0.5,
    "boss_room": 1.0,
    "entrance": -0.5,
    "shrine": 0.3,
    "armory": 0.4,
    "dead_end": 0.2,
}

# Additive danger modifiers by region tag
TAG_DANGER_MODIFIERS = {
    "treasure_room": 0.3,
    "boss_room": 0.5,
    "entrance": -0.3,
    "safe_zone": -0.5,
}

MIN_DANGER = 0.5
MAX_DANGER = 2.0
MIN_WEIGHT = 0.1


def centroid_distance(region: Region, entrance: Optional[GridPosition]) -> float:
    if entrance is None:
        return 0.0
    cx, cy = region.centroid
    return math.hypot(cx - entrance[0], cy - entrance[1])


class RegionBudgetAllocator:
    """Distributes threat budget and danger levels over regions."""

    def __init__(
        self,
        distance_normalization: float = 50.0,
        small_region_area: int = 16,
        min_budget_region_area: int = 9,
    ):
        self.distance_normalization = distance_normalization
        self.small_region_area = small_region_area
        self.min_budget_region_area = min_budget_region_area

    def allocate_budgets(
        self,
        metadata: DungeonMetadata,
        total_budget: int,
        region_spawn_data: Dict[int, RegionSpawnData],
        entrance: Optional[GridPosition] = None,
    ) -> Dict[int, int]:
        """
        Allocate total_budget over the regions that have spawn data

        Each region receives floor(total * area * weight / sum). Regions of at
        least min_budget_region_area tiles are raised to 1. If the minimums
        overshoot the total, units are taken back from the largest
        allocations; any remainder is handed out one unit at a time to the
        largest regions, cycling until it is exhausted.

        Args:
            metadata: Region partition
            total_budget: Rolled floor threat budget
            region_spawn_data: Region id -> spawn data, mutated in place
            entrance: Entrance tile used for distance weighting

        Returns:
            Region id -> allocated budget
        """
        regions = [r for r in metadata.regions if r.region_id in region_spawn_data]
        allocations: Dict[int, int] = {r.region_id: 0 for r in regions}
        if not regions:
            return allocations

        total_budget = max(0, int(total_budget))
        if total_budget == 0:
            for region in regions:
                region_spawn_data[region.region_id].allocate(0)
            return allocations

        products = {}
        for region in regions:
            weight = self.calculate_region_weight(region, region_spawn_data[region.region_id], entrance)
            products[region.region_id] = region.area * weight
        total_weighted = sum(products.values())

        for region in regions:
            share = 0
            if total_weighted > 0:
                share = int(total_budget * products[region.region_id] / total_weighted)
            if share < 1 and region.area >= self.min_budget_region_area:
                share = 1
            allocations[region.region_id] = share

        self._reclaim_excess(allocations, total_budget)

        by_size = sorted(regions, key=lambda r: r.area, reverse=True)
        remainder = total_budget - sum(allocations.values())
        index = 0
        while remainder > 0:
            allocations[by_size[index % len(by_size)].region_id] += 1
            remainder -= 1
            index += 1

        for region in regions:
            region_spawn_data[region.region_id].allocate(allocations[region.region_id])

        logger.debug("Allocated %d threat over %d regions: %s", total_budget, len(regions), allocations)
        return allocations

    @staticmethod
    def _reclaim_excess(allocations: Dict[int, int], total_budget: int) -> None:
        excess = sum(allocations.values()) - total_budget
        while excess > 0:
            donors = [rid for rid, amount in allocations.items() if amount > 1]
            if not donors:
                donors = [rid for rid, amount in allocations.items() if amount > 0]
            donor = max(donors, key=lambda rid: allocations[rid])
            allocations[donor] -= 1
            excess -= 1

    def calculate_region_weight(
        self,
        region: Region,
        spawn_data: RegionSpawnData,
        entrance: Optional[GridPosition],
    ) -> float:
        """
        Danger weight of a region

        Also sets spawn_data.danger_level for dead ends (1.2) and hubs (0.9);
        calculate_danger_levels() refines it afterwards.
        """
        weight = 1.0

        normalized = min(max(centroid_distance(region, entrance) / self.distance_normalization, 0.0), 1.0)
        weight += normalized * 0.3

        connections = len(spawn_data.adjacent_region_ids)
        if connections <= 1:
            weight += 0.2
            spawn_data.danger_level = 1.2
        elif connections >= 4:
            weight -= 0.1
            spawn_data.danger_level = 0.9

        if region.tag:
            weight += TAG_WEIGHT_MODIFIERS.get(region.tag, 0.0)

        if region.area < self.small_region_area:
            weight *= 0.5

        return max(MIN_WEIGHT, weight)

    def calculate_danger_levels(
        self,
        metadata: DungeonMetadata,
        region_spawn_data: Dict[int, RegionSpawnData],
        entrance: Optional[GridPosition] = None,
    ) -> None:
        """Set each region's danger level in [0.5, 2.0] from distance, isolation and tag."""
        regions: List[Region] = [r for r in metadata.regions if r.region_id in region_spawn_data]
        if not regions:
            return

        max_distance = max(centroid_distance(r, entrance) for r in regions)
        max_distance = max(max_distance, 1.0)

        for region in regions:
            spawn_data = region_spawn_data[region.region_id]
            danger = 0.8 + (centroid_distance(region, entrance) / max_distance) * 0.6

            if len(spawn_data.adjacent_region_ids) <= 1:
                danger += 0.15

            if region.tag:
                danger += TAG_DANGER_MODIFIERS.get(region.tag, 0.0)

            spawn_data.danger_level = min(max(danger, MIN_DANGER), MAX_DANGER)
