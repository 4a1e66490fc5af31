"""
Region data for spawn allocation.

A floor is partitioned into connected tile regions by the map generator. The
spawning pipeline only reads these structures. The exceptions are
DungeonMetadata.exit_position, which the stairs spawner fills in, and the
entrance, which moves to the player arrival tile.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pygame

GridPosition = Tuple[int, int]

logger = logging.getLogger(__name__)

NO_REGION = -1

NEIGHBORS_4 = ((1, 0), (-1, 0), (0, 1), (0, -1))


class RegionGraphError(ValueError):
    """Raised when region metadata is internally inconsistent."""


@dataclass(frozen=True)
class SpawnHint:
    """Designer-authored spawn instruction attached to a prefab region."""
    theme_id: Optional[str] = None
    encounter_template_id: Optional[str] = None
    creature_pool: Tuple[str, ...] = ()
    item_id: Optional[str] = None
    position: Optional[GridPosition] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SpawnHint":
        position = data.get("position")
        return cls(
            theme_id=data.get("theme_id"),
            encounter_template_id=data.get("encounter_template_id"),
            creature_pool=tuple(data.get("creature_pool", ())),
            item_id=data.get("item_id"),
            position=tuple(position) if position is not None else None,
        )


@dataclass(frozen=True)
class Region:
    """
    Connected group of walkable tiles.

    Attributes:
        region_id: Unique id within the floor
        tiles: Every tile of the region, in generator order
        edge_tiles: Tiles with at least one 4-neighbour outside the region
        centroid: Mean tile position, rounded
        bounds: Bounding box in tile units
        tag: Optional semantic tag ("treasure_room", "boss_room", ...)
        spawn_hints: Designer hints for prefab regions
    """
    region_id: int
    tiles: Tuple[GridPosition, ...]
    edge_tiles: Tuple[GridPosition, ...]
    centroid: GridPosition
    bounds: pygame.Rect = field(compare=False)
    tag: Optional[str] = None
    spawn_hints: Tuple[SpawnHint, ...] = ()
    _tile_set: frozenset = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_tile_set", frozenset(self.tiles))

    @property
    def area(self) -> int:
        return len(self.tiles)

    def contains(self, position: GridPosition) -> bool:
        return position in self._tile_set

    @classmethod
    def from_tiles(
        cls,
        region_id: int,
        tiles: Sequence[GridPosition],
        tag: Optional[str] = None,
        spawn_hints: Sequence[SpawnHint] = (),
    ) -> "Region":
        """Build a region and derive its edge tiles, centroid and bounds."""
        tiles = tuple((int(x), int(y)) for x, y in tiles)
        if not tiles:
            raise RegionGraphError(f"Region {region_id} has no tiles")

        tile_set = set(tiles)
        edge_tiles = tuple(
            (x, y) for x, y in tiles
            if any((x + dx, y + dy) not in tile_set for dx, dy in NEIGHBORS_4)
        )

        xs = [x for x, _ in tiles]
        ys = [y for _, y in tiles]
        centroid = (int(round(sum(xs) / len(xs))), int(round(sum(ys) / len(ys))))
        bounds = pygame.Rect(min(xs), min(ys), max(xs) - min(xs) + 1, max(ys) - min(ys) + 1)

        return cls(
            region_id=region_id,
            tiles=tiles,
            edge_tiles=edge_tiles,
            centroid=centroid,
            bounds=bounds,
            tag=tag,
            spawn_hints=tuple(spawn_hints),
        )

    @classmethod
    def from_rect(
        cls,
        region_id: int,
        x: int,
        y: int,
        w: int,
        h: int,
        tag: Optional[str] = None,
        spawn_hints: Sequence[SpawnHint] = (),
    ) -> "Region":
        """Build a rectangular region, row by row."""
        rect = pygame.Rect(x, y, w, h)
        tiles = [(xx, yy) for yy in range(rect.top, rect.bottom) for xx in range(rect.left, rect.right)]
        return cls.from_tiles(region_id, tiles, tag=tag, spawn_hints=spawn_hints)


@dataclass(frozen=True)
class Passage:
    """Connector tiles (doorways, corridors) between regions."""
    tiles: Tuple[GridPosition, ...]


class DistanceField:
    """Graph distance from a source tile to every reachable tile."""

    def __init__(self, distances: Dict[GridPosition, int]):
        self._distances = dict(distances)

    @classmethod
    def from_source(cls, walkable: Iterable[GridPosition], source: GridPosition) -> "DistanceField":
        """
        Breadth-first flood over walkable tiles

        Args:
            walkable: Tiles that can be traversed
            source: Start tile (included even if not in walkable)

        Returns:
            Distance field with the source at distance 0
        """
        walkable_set = set(walkable)
        distances = {source: 0}
        queue = deque([source])

        while queue:
            x, y = queue.popleft()
            next_distance = distances[(x, y)] + 1
            for dx, dy in NEIGHBORS_4:
                neighbor = (x + dx, y + dy)
                if neighbor in walkable_set and neighbor not in distances:
                    distances[neighbor] = next_distance
                    queue.append(neighbor)

        return cls(distances)

    def get_distance(self, position: GridPosition) -> Optional[int]:
        """Distance to position, or None if unreachable."""
        return self._distances.get(position)

    def is_reachable(self, position: GridPosition) -> bool:
        return position in self._distances

    @property
    def max_distance(self) -> int:
        return max(self._distances.values()) if self._distances else 0

    def average_distance(self, tiles: Iterable[GridPosition]) -> Optional[float]:
        """Mean distance over the reachable tiles, None if none are reachable."""
        values = [self._distances[t] for t in tiles if t in self._distances]
        if not values:
            return None
        return sum(values) / len(values)


@dataclass
class DungeonMetadata:
    """
    Region partition of one floor.

    Attributes:
        width: Grid width in tiles
        height: Grid height in tiles
        regions: All regions in generator order
        region_ids: Grid of region ids indexed [y][x], NO_REGION where none
        passages: Connector structures between regions
        entrance_distance: Distance field from the entrance, if computed
        entrance_position: Player arrival tile
        exit_position: Stairs tile, set during spawning
    """
    width: int
    height: int
    regions: List[Region] = field(default_factory=list)
    region_ids: List[List[int]] = field(default_factory=list)
    passages: List[Passage] = field(default_factory=list)
    entrance_distance: Optional[DistanceField] = None
    entrance_position: Optional[GridPosition] = None
    exit_position: Optional[GridPosition] = None
    _regions_by_id: Dict[int, Region] = field(init=False, repr=False, default_factory=dict)

    def __post_init__(self):
        for region in self.regions:
            self._regions_by_id.setdefault(region.region_id, region)

    def get_region(self, region_id: int) -> Optional[Region]:
        return self._regions_by_id.get(region_id)

    def get_region_id_at(self, position: GridPosition) -> int:
        x, y = position
        if 0 <= y < len(self.region_ids) and 0 <= x < len(self.region_ids[y]):
            return self.region_ids[y][x]
        return NO_REGION

    def get_region_at(self, position: GridPosition) -> Optional[Region]:
        region_id = self.get_region_id_at(position)
        if region_id == NO_REGION:
            return None
        return self.get_region(region_id)

    def walkable_tiles(self) -> List[GridPosition]:
        """Region tiles followed by passage tiles."""
        tiles = [t for region in self.regions for t in region.tiles]
        for passage in self.passages:
            tiles.extend(passage.tiles)
        return tiles

    def set_entrance(self, position: GridPosition) -> None:
        """Move the entrance, rebuilding the distance field when it no longer starts there."""
        if self.entrance_distance is None or self.entrance_distance.get_distance(position) != 0:
            if self.entrance_position is not None and self.entrance_position != position:
                logger.warning("Entrance moved from %s to %s, rebuilding distance field",
                               self.entrance_position, position)
            self.entrance_distance = DistanceField.from_source(self.walkable_tiles(), position)
        self.entrance_position = position

    def get_spawnable_regions(self) -> List[Region]:
        """Regions carrying designer spawn hints."""
        return [r for r in self.regions if r.spawn_hints]

    def validate(self) -> None:
        """
        Check the region graph for corruption

        Raises:
            RegionGraphError: On duplicate ids, grid cells naming unknown
                regions, or region tiles the grid assigns elsewhere
        """
        seen = set()
        for region in self.regions:
            if region.region_id in seen:
                raise RegionGraphError(f"Duplicate region id {region.region_id}")
            seen.add(region.region_id)

        if len(self.region_ids) != self.height:
            raise RegionGraphError(
                f"Region grid has {len(self.region_ids)} rows, expected {self.height}")

        for y, row in enumerate(self.region_ids):
            if len(row) != self.width:
                raise RegionGraphError(f"Region grid row {y} has {len(row)} cells, expected {self.width}")
            for x, region_id in enumerate(row):
                if region_id != NO_REGION and region_id not in seen:
                    raise RegionGraphError(f"Grid cell ({x}, {y}) names unknown region {region_id}")

        for region in self.regions:
            for tile in region.tiles:
                if self.get_region_id_at(tile) != region.region_id:
                    raise RegionGraphError(
                        f"Tile {tile} of region {region.region_id} is mapped to "
                        f"{self.get_region_id_at(tile)}")


def build_metadata(
    regions: Sequence[Region],
    width: int,
    height: int,
    entrance: Optional[GridPosition] = None,
    passages: Sequence[Passage] = (),
) -> DungeonMetadata:
    """
    Assemble DungeonMetadata from regions, computing the region grid and the
    entrance distance field.

    Args:
        regions: Regions of the floor
        width: Grid width
        height: Grid height
        entrance: Entrance tile; when given a BFS distance field is built
            over all region and passage tiles
        passages: Optional connector structures

    Returns:
        Populated DungeonMetadata
    """
    grid = [[NO_REGION for _ in range(width)] for _ in range(height)]
    walkable: List[GridPosition] = []
    for region in regions:
        for x, y in region.tiles:
            if 0 <= x < width and 0 <= y < height:
                grid[y][x] = region.region_id
            walkable.append((x, y))
    for passage in passages:
        walkable.extend(passage.tiles)

    distance_field = DistanceField.from_source(walkable, entrance) if entrance is not None else None

    return DungeonMetadata(
        width=width,
        height=height,
        regions=list(regions),
        region_ids=grid,
        passages=list(passages),
        entrance_distance=distance_field,
        entrance_position=entrance,
    )
