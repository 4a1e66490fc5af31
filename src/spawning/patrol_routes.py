"""
Patrol route generation for spawned encounters.
"""

import random
from dataclasses import dataclass, field
from typing import Collection, List, Optional

import pygame

from src.level.region_data import GridPosition, Region

ROUTE_LOOP = "loop"
ROUTE_PING_PONG = "ping_pong"


@dataclass
class PatrolRoute:
    waypoints: List[GridPosition] = field(default_factory=list)
    route_type: str = ROUTE_LOOP
    waypoint_tolerance: int = 1


def _manhattan(a: GridPosition, b: GridPosition) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def order_by_nearest_neighbor(waypoints: List[GridPosition], start: GridPosition) -> List[GridPosition]:
    """Greedy tour: repeatedly visit the closest remaining waypoint."""
    remaining = list(waypoints)
    ordered = []
    current = start
    while remaining:
        nearest = min(remaining, key=lambda w: _manhattan(w, current))
        remaining.remove(nearest)
        ordered.append(nearest)
        current = nearest
    return ordered


def split_quadrants(bounds: pygame.Rect) -> List[pygame.Rect]:
    """Split a bounding box into up to four non-empty quadrants."""
    half_w = max(1, bounds.width // 2)
    half_h = max(1, bounds.height // 2)
    quadrants = [
        pygame.Rect(bounds.left, bounds.top, half_w, half_h),
        pygame.Rect(bounds.left + half_w, bounds.top, bounds.width - half_w, half_h),
        pygame.Rect(bounds.left, bounds.top + half_h, half_w, bounds.height - half_h),
        pygame.Rect(bounds.left + half_w, bounds.top + half_h, bounds.width - half_w, bounds.height - half_h),
    ]
    return [q for q in quadrants if q.width > 0 and q.height > 0]


def generate_region_patrol(
    region: Region,
    start: GridPosition,
    rng: random.Random,
    waypoint_count: int = 4,
) -> Optional[PatrolRoute]:
    """
    Looping patrol through a region

    Picks one tile per bounding-box quadrant (up to waypoint_count) and
    orders them by nearest neighbour from start.

    Returns:
        The route, or None if fewer than two waypoints were found
    """
    waypoints: List[GridPosition] = []
    for quadrant in split_quadrants(region.bounds):
        if len(waypoints) >= waypoint_count:
            break
        tiles = [t for t in region.tiles if quadrant.collidepoint(t) and t != start]
        if tiles:
            waypoints.append(tiles[rng.randrange(len(tiles))])

    if len(waypoints) < 2:
        return None
    return PatrolRoute(order_by_nearest_neighbor(waypoints, start), ROUTE_LOOP)


def generate_guard_post_patrol(
    center: GridPosition,
    radius: int,
    valid_tiles: Collection[GridPosition],
) -> Optional[PatrolRoute]:
    """Short back-and-forth route around a post: cardinal points, then diagonals."""
    cx, cy = center
    waypoints = [p for p in ((cx, cy - radius), (cx + radius, cy), (cx, cy + radius), (cx - radius, cy))
                 if p in valid_tiles]

    if len(waypoints) < 2:
        diagonals = ((cx + radius, cy - radius), (cx + radius, cy + radius),
                     (cx - radius, cy + radius), (cx - radius, cy - radius))
        waypoints.extend(p for p in diagonals if p in valid_tiles)

    if len(waypoints) < 2:
        return None
    return PatrolRoute(order_by_nearest_neighbor(waypoints, center), ROUTE_PING_PONG)
