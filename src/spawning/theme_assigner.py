"""
Region Theme Assigner - gives every region a faction theme.

Adjacent regions tend to share a theme so factions read as territories.
"""

import logging
import random
from typing import Dict, List, Optional, Set

from src.level.region_data import NO_REGION, DungeonMetadata
from src.spawning.content_catalog import ContentCatalog
from src.spawning.data.catalog_data import FactionTheme
from src.spawning.data.floor_spawn_config import FloorSpawnConfig
from src.spawning.region_spawn_data import RegionSpawnData
from src.utils.weighted_random import weighted_choice

logger = logging.getLogger(__name__)

NEIGHBORS_8 = (
    (-1, -1), (0, -1), (1, -1),
    (-1, 0), (1, 0),
    (-1, 1), (0, 1), (1, 1),
)


class RegionThemeAssigner:
    """Assigns faction themes to regions with spatial clustering."""

    def __init__(self, catalog: ContentCatalog, rng: random.Random, cluster_chance: float = 0.4):
        self.catalog = catalog
        self.rng = rng
        self.cluster_chance = cluster_chance

    def assign_themes(
        self,
        metadata: DungeonMetadata,
        config: FloorSpawnConfig,
        region_spawn_data: Dict[int, RegionSpawnData],
        floor_depth: Optional[int] = None,
    ) -> None:
        """
        Assign a theme to every region

        Creates RegionSpawnData entries for regions that have none yet and
        fills in their adjacency lists.

        Args:
            metadata: Region partition of the floor
            config: Floor config with the weighted theme table
            region_spawn_data: Region id -> spawn data, mutated in place
            floor_depth: Depth used to filter themes when the config has no
                theme table; defaults to the config's min_floor
        """
        adjacency = self.build_adjacency_map(metadata)

        for region in metadata.regions:
            spawn_data = region_spawn_data.get(region.region_id)
            if spawn_data is None:
                spawn_data = RegionSpawnData(region_id=region.region_id)
                region_spawn_data[region.region_id] = spawn_data
            spawn_data.adjacent_region_ids = sorted(adjacency.get(region.region_id, set()))

        if floor_depth is None:
            floor_depth = config.min_floor

        available = self.get_available_themes(config, floor_depth)
        if not available:
            logger.warning("No themes available for floor config '%s'", config.config_id)
            return

        weights = {entry.entry_id: entry.weight for entry in config.theme_weights}

        for region in metadata.regions:
            spawn_data = region_spawn_data[region.region_id]

            override = self._find_theme_override(region)
            if override is not None:
                spawn_data.theme = override
                spawn_data.theme_overridden = True
                continue

            theme = None
            if self.rng.random() <= self.cluster_chance:
                theme = self._try_adjacent_theme(spawn_data, region_spawn_data, available)

            if theme is None:
                theme = self._select_weighted_theme(available, weights)

            spawn_data.theme = theme
            logger.debug("Region %d themed '%s'", region.region_id, theme.theme_id if theme else None)

    def build_adjacency_map(self, metadata: DungeonMetadata) -> Dict[int, Set[int]]:
        """
        Region id -> ids of touching regions

        Passage tiles link every region found in their 8-neighbourhood; the
        region grid then contributes direct 4-neighbour contacts.
        """
        adjacency: Dict[int, Set[int]] = {r.region_id: set() for r in metadata.regions}

        for passage in metadata.passages:
            touching: List[int] = []
            for x, y in passage.tiles:
                for dx, dy in NEIGHBORS_8:
                    region_id = metadata.get_region_id_at((x + dx, y + dy))
                    if region_id != NO_REGION and region_id not in touching:
                        touching.append(region_id)
            for a in touching:
                for b in touching:
                    if a != b:
                        adjacency.setdefault(a, set()).add(b)

        grid = metadata.region_ids
        for y in range(len(grid)):
            for x in range(len(grid[y])):
                current = grid[y][x]
                if current == NO_REGION:
                    continue
                if x + 1 < len(grid[y]):
                    self._link(adjacency, current, grid[y][x + 1])
                if y + 1 < len(grid) and x < len(grid[y + 1]):
                    self._link(adjacency, current, grid[y + 1][x])

        return adjacency

    @staticmethod
    def _link(adjacency: Dict[int, Set[int]], a: int, b: int) -> None:
        if b == NO_REGION or a == b:
            return
        adjacency.setdefault(a, set()).add(b)
        adjacency.setdefault(b, set()).add(a)

    def get_available_themes(self, config: FloorSpawnConfig, floor_depth: int) -> List[FactionTheme]:
        """Themes named by the config's weight table, else all themes valid at this depth."""
        themes: List[FactionTheme] = []
        for entry in config.theme_weights:
            theme = self.catalog.get_faction_theme(entry.entry_id)
            if theme is None:
                logger.warning("Theme '%s' in floor config '%s' not found", entry.entry_id, config.config_id)
                continue
            themes.append(theme)

        if themes:
            return themes

        return [t for t in self.catalog.all_faction_themes() if t.is_valid_for_depth(floor_depth)]

    def _find_theme_override(self, region) -> Optional[FactionTheme]:
        for hint in region.spawn_hints:
            if hint.theme_id:
                theme = self.catalog.get_faction_theme(hint.theme_id)
                if theme is not None:
                    return theme
                logger.warning("Spawn hint in region %d names unknown theme '%s'",
                               region.region_id, hint.theme_id)
        return None

    def _try_adjacent_theme(
        self,
        spawn_data: RegionSpawnData,
        region_spawn_data: Dict[int, RegionSpawnData],
        available: List[FactionTheme],
    ) -> Optional[FactionTheme]:
        themed_neighbors = [
            region_spawn_data[n] for n in spawn_data.adjacent_region_ids
            if n in region_spawn_data and region_spawn_data[n].theme is not None
        ]
        if not themed_neighbors:
            return None

        neighbor = themed_neighbors[self.rng.randrange(len(themed_neighbors))]
        available_ids = [t.theme_id for t in available]
        if neighbor.theme.theme_id in available_ids:
            return neighbor.theme
        return None

    def _select_weighted_theme(self, available: List[FactionTheme], weights: Dict[str, int]) -> FactionTheme:
        if weights:
            entries = [(t, weights.get(t.theme_id, 0)) for t in available]
            return weighted_choice(self.rng, entries)
        return available[self.rng.randrange(len(available))]
