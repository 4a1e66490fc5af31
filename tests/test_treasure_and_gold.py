import random

import pytest

from src.level.region_data import Region
from src.spawning.data.floor_spawn_config import ItemRarity, ItemSpawnConfig
from src.spawning.gold_placer import GoldPlacer, pile_size_range
from src.spawning.region_spawn_data import RegionSpawnData
from src.spawning.treasure_placer import (
    LootDistributor,
    TreasurePlacer,
    rarity_ceiling_for_threat,
    rarity_range_for_guardian,
)

ITEMS = ItemSpawnConfig(
    common_items=["healing_potion"],
    uncommon_items=["short_sword"],
    rare_items=["chain_mail"],
)


def threatened(metadata, threats):
    """Spawn data with the given spawned threat per region id."""
    spawn_data = {}
    for region in metadata.regions:
        data = RegionSpawnData(region_id=region.region_id)
        data.allocate(100)
        data.consume_budget(threats.get(region.region_id, 0))
        spawn_data[region.region_id] = data
    return spawn_data


def region_of(metadata, position):
    return metadata.get_region_id_at(position)


class TestRarityBands:
    """Test threat to rarity mapping."""

    @pytest.mark.parametrize("threat,expected", [
        (20, (ItemRarity.RARE, ItemRarity.EPIC)),
        (16, (ItemRarity.RARE, ItemRarity.EPIC)),
        (8, (ItemRarity.UNCOMMON, ItemRarity.RARE)),
        (7, (ItemRarity.COMMON, ItemRarity.UNCOMMON)),
    ])
    def test_guardian_rarity_range(self, threat, expected):
        """Stronger guardians protect rarer items"""
        assert rarity_range_for_guardian(threat) == expected

    @pytest.mark.parametrize("threat,expected", [
        (0, ItemRarity.COMMON),
        (5, ItemRarity.COMMON),
        (6, ItemRarity.UNCOMMON),
        (16, ItemRarity.RARE),
    ])
    def test_loot_rarity_ceiling(self, threat, expected):
        """Loot rarity caps rise with region threat"""
        assert rarity_ceiling_for_threat(threat) == expected


class TestTreasurePlacer:
    """Test guarded and unguarded treasure."""

    def test_strong_guardian_gets_rare_item(self, catalog, factory, registry):
        """A threat 20 guardian guards the rare item"""
        region = Region.from_rect(0, 0, 0, 5, 5)
        placer = TreasurePlacer(catalog, factory, registry, random.Random(1))

        spent = placer.place_guarded_treasure(region, ITEMS, 10, 20, set())

        assert spent == 3
        item = registry.all_entities("item")[0]
        assert item.template_id == "chain_mail"
        assert item.position in region.edge_tiles

    def test_cost_never_exceeds_budget(self, catalog, factory, registry):
        """Items dearer than the remaining budget are not chosen"""
        region = Region.from_rect(0, 0, 0, 5, 5)
        placer = TreasurePlacer(catalog, factory, registry, random.Random(1))

        assert placer.place_guarded_treasure(region, ITEMS, 2, 20, set()) == 0
        assert len(registry) == 0

    def test_weak_guardian_common_or_uncommon(self, catalog, factory, registry):
        """Weak guardians only protect common or uncommon items"""
        placer = TreasurePlacer(catalog, factory, registry, random.Random(4))

        for _ in range(20):
            item = placer.select_item_for_guardian(ITEMS, 3)
            assert item.item_id in ("healing_potion", "short_sword")

    def test_unguarded_chance(self, catalog, factory, registry):
        """Unguarded treasure follows the configured chance"""
        region = Region.from_rect(0, 0, 0, 5, 5)
        never = ItemSpawnConfig(common_items=["healing_potion"], unguarded_item_chance=0.0)
        always = ItemSpawnConfig(common_items=["healing_potion"], unguarded_item_chance=1.0)
        placer = TreasurePlacer(catalog, factory, registry, random.Random(2))

        assert placer.place_unguarded_treasure(region, never, 5, set()) == 0
        assert placer.place_unguarded_treasure(region, always, 5, set()) == 1

    def test_falls_back_to_interior(self, catalog, factory, registry):
        """With every edge taken treasure goes inside"""
        region = Region.from_rect(0, 0, 0, 3, 3)
        placer = TreasurePlacer(catalog, factory, registry, random.Random(2))

        assert placer.find_treasure_position(region, set(region.edge_tiles)) == (1, 1)
        assert placer.find_treasure_position(region, set(region.tiles)) is None


class TestLootDistributor:
    """Test loot spread over regions."""

    def test_safest_regions_first(self, catalog, factory, registry, three_region_floor):
        """Low-threat regions receive loot before dangerous ones"""
        spawn_data = threatened(three_region_floor, {0: 10, 1: 0, 2: 3})
        distributor = LootDistributor(catalog, factory, registry, random.Random(3))

        result = distributor.distribute_items(three_region_floor.regions, spawn_data, ITEMS, 2, set())

        assert result == {"placed": 2, "spent": 2}
        regions_used = {region_of(three_region_floor, e.position) for e in registry.all_entities("item")}
        assert regions_used == {1, 2}

    @pytest.mark.parametrize("seed", range(10))
    def test_spending_within_budget(self, seed, catalog, factory, registry, three_region_floor):
        """Loot never spends more than the item budget"""
        rng = random.Random(seed)
        threats = {i: rng.randint(0, 20) for i in range(3)}
        spawn_data = threatened(three_region_floor, threats)
        budget = rng.randint(0, 6)

        result = LootDistributor(catalog, factory, registry, rng).distribute_items(
            three_region_floor.regions, spawn_data, ITEMS, budget, set())

        assert result["spent"] <= budget
        assert result["placed"] == len(registry.all_entities("item"))

    def test_consumables_fall_back_to_common_pool(self, catalog, factory, registry, three_region_floor):
        """Without consumables the common pool is used"""
        distributor = LootDistributor(catalog, factory, registry, random.Random(3))

        placed = distributor.place_consumables(three_region_floor.regions, ITEMS, 4, set())

        assert placed == 4
        assert {e.template_id for e in registry.all_entities("item")} == {"healing_potion"}


class TestGoldPlacer:
    """Test gold pile distribution."""

    def test_pile_size_scales_with_depth(self):
        """Deeper floors have bigger piles"""
        assert pile_size_range(1) == (2, 7)
        assert pile_size_range(3) == (4, 11)

    @pytest.mark.parametrize("seed", range(15))
    def test_never_exceeds_budget(self, seed, factory, registry, three_region_floor):
        """Placed gold stays within the budget and matches the piles"""
        rng = random.Random(seed)
        spawn_data = threatened(three_region_floor, {i: rng.randint(0, 30) for i in range(3)})
        budget = rng.randint(0, 200)

        placed = GoldPlacer(factory, registry, rng).distribute_gold(
            three_region_floor.regions, spawn_data, budget, rng.randint(1, 10), set())

        assert 0 <= placed <= budget
        assert placed == sum(e.quantity for e in registry.all_entities("gold"))

    def test_guarded_pile_placed_first(self, factory, registry, three_region_floor):
        """The most threatened region gets the first pile"""
        spawn_data = threatened(three_region_floor, {1: 25})

        GoldPlacer(factory, registry, random.Random(6)).distribute_gold(
            three_region_floor.regions, spawn_data, 100, 1, set())

        first = registry.all_entities("gold")[0]
        assert region_of(three_region_floor, first.position) == 1
        assert 2 + 5 <= first.quantity <= 7 + 5

    def test_zero_budget(self, factory, registry, three_region_floor):
        """No budget, no gold"""
        placer = GoldPlacer(factory, registry, random.Random(6))

        assert placer.distribute_gold(three_region_floor.regions, {}, 0, 1, set()) == 0
        assert len(registry) == 0
