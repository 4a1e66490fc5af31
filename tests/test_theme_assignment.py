import random

from src.level.region_data import Passage, Region, SpawnHint, build_metadata
from src.spawning.content_catalog import ContentCatalog
from src.spawning.data.catalog_data import FactionTheme
from src.spawning.data.floor_spawn_config import FloorSpawnConfig, WeightedEntry
from src.spawning.theme_assigner import RegionThemeAssigner

THEMES = [
    FactionTheme("vermin", "Vermin", ("rat",), min_floor=1, max_floor=3),
    FactionTheme("undead", "Undead", ("skeleton",), min_floor=4, max_floor=9),
    FactionTheme("goblinoid", "Goblins", ("goblin",), min_floor=1, max_floor=9),
]


def row_of_regions(count, hints=None):
    hints = hints or {}
    regions = [Region.from_rect(i, i * 4, 0, 4, 4, spawn_hints=hints.get(i, ())) for i in range(count)]
    return build_metadata(regions, count * 4, 4)


class TestAdjacency:
    """Test region adjacency discovery."""

    def test_touching_regions_are_adjacent(self):
        """Side-by-side regions link both ways"""
        metadata = row_of_regions(3)
        adjacency = RegionThemeAssigner(ContentCatalog(), random.Random(1)).build_adjacency_map(metadata)

        assert adjacency[0] == {1}
        assert adjacency[1] == {0, 2}
        assert adjacency[2] == {1}

    def test_passages_link_separated_regions(self):
        """A passage between two gapped regions links them"""
        regions = [Region.from_rect(0, 0, 0, 3, 3), Region.from_rect(1, 4, 0, 3, 3)]
        metadata = build_metadata(regions, 7, 3, passages=[Passage(((3, 1),))])

        adjacency = RegionThemeAssigner(ContentCatalog(), random.Random(1)).build_adjacency_map(metadata)

        assert adjacency[0] == {1}
        assert adjacency[1] == {0}


class TestThemeAssignment:
    """Test per-region theme selection."""

    def test_every_region_gets_a_theme(self):
        """Weighted tables theme every region"""
        catalog = ContentCatalog(themes=THEMES)
        config = FloorSpawnConfig("f", theme_weights=[WeightedEntry("vermin", 1), WeightedEntry("goblinoid", 1)])
        metadata = row_of_regions(5)
        spawn_data = {}

        RegionThemeAssigner(catalog, random.Random(2)).assign_themes(metadata, config, spawn_data, 1)

        assert len(spawn_data) == 5
        for data in spawn_data.values():
            assert data.theme.theme_id in ("vermin", "goblinoid")
            assert not data.theme_overridden

    def test_hint_overrides_theme(self):
        """A designer hint forces the theme"""
        catalog = ContentCatalog(themes=THEMES)
        config = FloorSpawnConfig("f", theme_weights=[WeightedEntry("vermin", 1)])
        metadata = row_of_regions(2, hints={1: (SpawnHint(theme_id="undead"),)})
        spawn_data = {}

        RegionThemeAssigner(catalog, random.Random(2)).assign_themes(metadata, config, spawn_data, 1)

        assert spawn_data[1].theme.theme_id == "undead"
        assert spawn_data[1].theme_overridden

    def test_fallback_uses_depth_valid_themes(self):
        """Without a weight table only themes valid at the depth are used"""
        catalog = ContentCatalog(themes=THEMES)
        config = FloorSpawnConfig("f")
        metadata = row_of_regions(6)
        spawn_data = {}

        RegionThemeAssigner(catalog, random.Random(4)).assign_themes(metadata, config, spawn_data, 5)

        for data in spawn_data.values():
            assert data.theme.theme_id in ("undead", "goblinoid")

    def test_no_themes_leaves_regions_themeless(self):
        """No available themes is not an error"""
        config = FloorSpawnConfig("f")
        metadata = row_of_regions(2)
        spawn_data = {}

        RegionThemeAssigner(ContentCatalog(), random.Random(4)).assign_themes(metadata, config, spawn_data, 1)

        assert all(data.theme is None for data in spawn_data.values())
        assert spawn_data[0].adjacent_region_ids == [1]

    def test_full_clustering_copies_neighbour(self):
        """With cluster chance 1 every region follows its themed neighbour"""
        catalog = ContentCatalog(themes=THEMES)
        config = FloorSpawnConfig("f", theme_weights=[WeightedEntry("vermin", 1), WeightedEntry("goblinoid", 1)])
        metadata = row_of_regions(6)
        spawn_data = {}

        RegionThemeAssigner(catalog, random.Random(9), cluster_chance=1.0).assign_themes(
            metadata, config, spawn_data, 1)

        themes = {data.theme.theme_id for data in spawn_data.values()}
        assert len(themes) == 1

    def test_same_seed_same_themes(self):
        """Theme assignment is reproducible"""
        catalog = ContentCatalog(themes=THEMES)
        config = FloorSpawnConfig("f", theme_weights=[WeightedEntry("vermin", 3), WeightedEntry("goblinoid", 1)])

        def run():
            spawn_data = {}
            RegionThemeAssigner(catalog, random.Random(77)).assign_themes(row_of_regions(8), config, spawn_data, 1)
            return [spawn_data[i].theme.theme_id for i in range(8)]

        assert run() == run()
