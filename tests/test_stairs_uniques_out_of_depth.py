import random
import statistics

import pytest

from src.entities.entity_factory import CatalogEntityFactory
from src.level.region_data import Region, build_metadata
from src.spawning.content_catalog import ContentCatalog
from src.spawning.data.catalog_data import CreatureData
from src.spawning.data.floor_spawn_config import FloorSpawnConfig
from src.spawning.out_of_depth_spawner import OutOfDepthSpawner
from src.spawning.stairs_spawner import StairsSpawner
from src.spawning.unique_spawner import UniqueMonsterSpawner

DEEP_CATALOG = {
    "creatures": {
        "rat": {"name": "Rat", "threat": 1},
        "hill_giant": {"name": "Hill Giant", "threat": 9},
        "stone_giant": {"name": "Stone Giant", "threat": 11},
        "fire_giant": {"name": "Fire Giant", "threat": 14},
    },
    "themes": {
        "vermin": {"name": "Vermin", "creatures": ["rat"], "max_floor": 2},
        "giants": {"name": "Giants", "creatures": ["hill_giant", "stone_giant", "fire_giant"], "min_floor": 3},
    },
    "floors": {
        "shallows": {"min_floor": 1, "max_floor": 2, "max_threat": 3,
                     "out_of_depth_chance": 1.0, "out_of_depth_floors": 2},
        "depths": {"min_floor": 3, "max_floor": 9, "min_threat": 5,
                   "theme_weights": [{"id": "giants", "weight": 1}]},
    },
}


@pytest.fixture
def deep_catalog():
    return ContentCatalog.from_dict(DEEP_CATALOG)


def make_tiled_floor(seed):
    """Floor fully tiled by a random grid of rooms, entrance in the top-left room."""
    rng = random.Random(seed)
    widths = [rng.randint(2, 6) for _ in range(rng.randint(2, 4))]
    heights = [rng.randint(2, 6) for _ in range(rng.randint(1, 4))]
    regions = []
    y = 0
    for height in heights:
        x = 0
        for width in widths:
            regions.append(Region.from_rect(len(regions), x, y, width, height))
            x += width
        y += height
    return build_metadata(regions, sum(widths), sum(heights), entrance=(0, 0))


class TestStairsSpawner:
    """Test exit placement."""

    def test_stairs_in_farthest_region(self, factory, registry, three_region_floor):
        """The exit goes to the region with the highest average distance"""
        spawner = StairsSpawner(factory, registry)

        region = spawner.get_stairs_region(three_region_floor)

        averages = [three_region_floor.entrance_distance.average_distance(r.tiles)
                    for r in three_region_floor.regions]
        chosen = three_region_floor.entrance_distance.average_distance(region.tiles)
        assert chosen >= statistics.median(averages)
        assert region.region_id == 2

    @pytest.mark.parametrize("seed", range(25))
    def test_stairs_region_beyond_median(self, seed, factory, registry):
        """On any floor the exit region is at least as far as the median region"""
        metadata = make_tiled_floor(seed)
        distance_field = metadata.entrance_distance

        region = StairsSpawner(factory, registry).get_stairs_region(metadata)

        averages = [distance_field.average_distance(r.tiles) for r in metadata.regions]
        assert distance_field.average_distance(region.tiles) >= statistics.median(averages)
        assert not region.contains((0, 0))

    def test_place_stairs_sets_exit(self, factory, registry, three_region_floor):
        """Placing stairs records the exit position"""
        handle = StairsSpawner(factory, registry).place_stairs(three_region_floor, 1, set())

        assert handle.template_id == "stairs"
        assert handle.position == (12, 9)
        assert three_region_floor.exit_position == (12, 9)

    def test_final_floor_gets_objective(self, factory, registry, three_region_floor):
        """The final floor places the throne instead of stairs"""
        spawner = StairsSpawner(factory, registry)

        assert spawner.is_final_floor(10)
        assert spawner.place_stairs(three_region_floor, 10, set()).template_id == "throne"

    def test_occupied_tile_skipped(self, factory, registry, three_region_floor):
        """Stairs never land on an occupied tile"""
        spawner = StairsSpawner(factory, registry)
        region = three_region_floor.regions[2]

        position = spawner.find_stairs_position(three_region_floor, region, {(12, 9)})

        assert position != (12, 9)
        assert three_region_floor.entrance_distance.get_distance(position) == 20

    def test_single_region_floor(self, factory, registry):
        """A lone region holds both entrance and exit"""
        metadata = build_metadata([Region.from_rect(0, 0, 0, 5, 5)], 5, 5, entrance=(0, 0))

        handle = StairsSpawner(factory, registry).place_stairs(metadata, 1, set())

        assert handle.position == (4, 4)

    def test_no_entrance_uses_largest_region(self, factory, registry):
        """Without an entrance the largest region wins"""
        regions = [Region.from_rect(0, 0, 0, 3, 3), Region.from_rect(1, 3, 0, 6, 6)]
        metadata = build_metadata(regions, 9, 6)

        assert StairsSpawner(factory, registry).get_stairs_region(metadata).region_id == 1


class TestUniqueMonsters:
    """Test once-per-run unique creatures."""

    def make_spawner(self, registry):
        catalog = ContentCatalog(creatures=[CreatureData("grizzak", "Grizzak the Vile", threat=8)])
        return UniqueMonsterSpawner(catalog, CatalogEntityFactory(catalog), registry)

    def test_unique_spawns_once(self, registry, three_region_floor):
        """A unique never appears twice in a run"""
        spawner = self.make_spawner(registry)
        config = FloorSpawnConfig("f", unique_creatures=["grizzak"])

        first = spawner.spawn_uniques(three_region_floor, config, set())
        second = spawner.spawn_uniques(three_region_floor, config, set())

        assert [h.template_id for h in first] == ["grizzak"]
        assert second == []
        assert spawner.spawned_uniques == ["grizzak"]

    def test_reset_allows_respawn(self, registry, three_region_floor):
        """A new run forgets spawned uniques"""
        spawner = self.make_spawner(registry)
        config = FloorSpawnConfig("f", unique_creatures=["grizzak"])
        spawner.spawn_uniques(three_region_floor, config, set())

        spawner.reset_for_new_run()

        assert not spawner.has_spawned("grizzak")
        assert len(spawner.spawn_uniques(three_region_floor, config, set())) == 1

    def test_unknown_unique_skipped(self, registry, three_region_floor):
        """Unknown ids are skipped and never marked"""
        spawner = self.make_spawner(registry)
        config = FloorSpawnConfig("f", unique_creatures=["nobody", "grizzak"])

        handles = spawner.spawn_uniques(three_region_floor, config, set())

        assert len(handles) == 1
        assert not spawner.has_spawned("nobody")

    def test_lair_in_far_large_region(self, registry, three_region_floor):
        """Lairs sit at the centroid of the farthest large region"""
        spawner = self.make_spawner(registry)
        config = FloorSpawnConfig("f", unique_creatures=["grizzak"])

        handle = spawner.spawn_uniques(three_region_floor, config, set())[0]

        region = three_region_floor.regions[2]
        assert handle.position == region.centroid

    def test_lair_position_avoids_occupied_centroid(self, registry):
        """An occupied centroid moves the lair to the nearest free tile"""
        spawner = self.make_spawner(registry)
        region = Region.from_rect(0, 0, 0, 5, 5)

        position = spawner.find_lair_position(region, {(2, 2)})

        assert abs(position[0] - 2) + abs(position[1] - 2) == 1


class TestOutOfDepth:
    """Test deeper-floor creature spawns."""

    def test_deeper_configs(self, deep_catalog):
        """Configs are gathered for the next out_of_depth_floors depths"""
        spawner = OutOfDepthSpawner(deep_catalog, CatalogEntityFactory(deep_catalog), None, random.Random(1))
        shallows = deep_catalog.get_floor_config_for_depth(1)

        deeper = spawner.get_deeper_configs(1, shallows)

        assert [c.config_id for c in deeper] == ["shallows", "depths"]

    def test_zero_chance_never_spawns(self, deep_catalog, registry, three_region_floor):
        """A zero chance skips the roll"""
        spawner = OutOfDepthSpawner(deep_catalog, CatalogEntityFactory(deep_catalog), registry, random.Random(1))
        config = FloorSpawnConfig("calm", out_of_depth_chance=0.0)

        assert spawner.try_spawn_out_of_depth(1, config, [], three_region_floor.regions,
                                              three_region_floor, set()) is None
        assert len(registry) == 0

    def test_certain_chance_spawns_strong_creature(self, deep_catalog, registry, three_region_floor):
        """A certain roll spawns a creature stronger than the floor allows"""
        spawner = OutOfDepthSpawner(deep_catalog, CatalogEntityFactory(deep_catalog), registry, random.Random(1))
        shallows = deep_catalog.get_floor_config_for_depth(1)
        deeper = spawner.get_deeper_configs(1, shallows)

        handle, threat = spawner.try_spawn_out_of_depth(1, shallows, deeper, three_region_floor.regions,
                                                        three_region_floor, set())

        assert threat > shallows.max_threat
        assert handle in registry.all_entities("creature")
        assert three_region_floor.get_region_id_at(handle.position) in (1, 2)

    @pytest.mark.parametrize("seed", range(10))
    def test_pick_from_top_third(self, seed, deep_catalog):
        """Only the strongest third of candidates is ever chosen"""
        spawner = OutOfDepthSpawner(deep_catalog, None, None, random.Random(seed))
        shallows = deep_catalog.get_floor_config_for_depth(1)
        depths = deep_catalog.get_floor_config_for_depth(3)

        assert spawner.select_deeper_creature(depths, shallows, 3).creature_id == "fire_giant"

    @pytest.mark.parametrize("seed", range(10))
    def test_dangerous_region_from_middle_third(self, seed, deep_catalog, three_region_floor):
        """With three ranked regions only the middle one is picked"""
        spawner = OutOfDepthSpawner(deep_catalog, None, None, random.Random(seed))

        region = spawner.find_dangerous_region(three_region_floor.regions, three_region_floor)

        assert region.region_id == 1

    def test_no_deeper_config(self, deep_catalog, registry, three_region_floor):
        """No deeper floors means no spawn"""
        spawner = OutOfDepthSpawner(deep_catalog, CatalogEntityFactory(deep_catalog), registry, random.Random(1))
        shallows = deep_catalog.get_floor_config_for_depth(1)

        assert spawner.try_spawn_out_of_depth(1, shallows, [], three_region_floor.regions,
                                              three_region_floor, set()) is None
