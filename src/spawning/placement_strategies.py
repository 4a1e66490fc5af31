"""
Slot placement strategies.

Each SlotPlacement key maps to one strategy object; the registry is built at
import time and looked up with get_placement_strategy().
"""

import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from src.level.region_data import GridPosition, Region
from src.spawning.data.encounter_template import SlotPlacement


@dataclass
class PlacementContext:
    """
    Per-encounter placement state

    Attributes:
        center: Encounter center
        available_tiles: Free region tiles, in region order
        occupied: Floor-wide occupied tiles
        rng: Random source
    """
    center: GridPosition
    available_tiles: List[GridPosition]
    occupied: Set[GridPosition]
    rng: random.Random


def _distance_squared(tile: GridPosition, center: GridPosition) -> int:
    dx = tile[0] - center[0]
    dy = tile[1] - center[1]
    return dx * dx + dy * dy


class PlacementStrategy:
    def select_position(self, region: Region, context: PlacementContext) -> Optional[GridPosition]:
        raise NotImplementedError


class RandomPlacement(PlacementStrategy):
    """Any free tile."""

    def select_position(self, region, context):
        if not context.available_tiles:
            return None
        return context.available_tiles[context.rng.randrange(len(context.available_tiles))]


class CenterPlacement(PlacementStrategy):
    """Nearest free tile to the encounter center."""
    nearest_count = 5

    def select_position(self, region, context):
        nearest = sorted(context.available_tiles,
                         key=lambda t: _distance_squared(t, context.center))[:self.nearest_count]
        return nearest[0] if nearest else None


class SurroundingPlacement(PlacementStrategy):
    """A tile 2-5 tiles from the center, random otherwise."""
    min_distance_squared = 4
    max_distance_squared = 25

    def select_position(self, region, context):
        ring = [t for t in context.available_tiles
                if self.min_distance_squared <= _distance_squared(t, context.center) <= self.max_distance_squared]
        if ring:
            return ring[context.rng.randrange(len(ring))]
        return RandomPlacement().select_position(region, context)


class EdgePlacement(PlacementStrategy):
    """A free edge tile, random otherwise."""

    def select_position(self, region, context):
        edges = [t for t in region.edge_tiles if t not in context.occupied]
        if edges:
            return edges[context.rng.randrange(len(edges))]
        return RandomPlacement().select_position(region, context)


class FormationPlacement(PlacementStrategy):
    """Fill the center row first, spreading outwards by column."""

    def select_position(self, region, context):
        if not context.available_tiles:
            return None
        cx, cy = context.center
        return min(context.available_tiles, key=lambda t: (abs(t[1] - cy), abs(t[0] - cx)))


PLACEMENT_STRATEGIES: Dict[SlotPlacement, PlacementStrategy] = {
    SlotPlacement.CENTER: CenterPlacement(),
    SlotPlacement.SURROUNDING: SurroundingPlacement(),
    SlotPlacement.EDGE: EdgePlacement(),
    SlotPlacement.FORMATION: FormationPlacement(),
    SlotPlacement.RANDOM: RandomPlacement(),
}


def get_placement_strategy(placement: SlotPlacement) -> PlacementStrategy:
    return PLACEMENT_STRATEGIES.get(placement, PLACEMENT_STRATEGIES[SlotPlacement.RANDOM])
