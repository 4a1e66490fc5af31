import random

import pytest

from src.level.region_data import Region, build_metadata
from src.spawning.budget_allocator import RegionBudgetAllocator
from src.spawning.region_spawn_data import RegionSpawnData


def random_floor(rng):
    """Row of rectangular regions with random sizes."""
    regions = []
    x = 0
    height = 0
    for region_id in range(rng.randint(1, 8)):
        w = rng.randint(1, 9)
        h = rng.randint(1, 9)
        regions.append(Region.from_rect(region_id, x, 0, w, h, tag=rng.choice([None, "boss_room", "entrance"])))
        x += w
        height = max(height, h)
    return build_metadata(regions, x, height, entrance=(0, 0))


def spawn_data_for(metadata):
    return {r.region_id: RegionSpawnData(region_id=r.region_id) for r in metadata.regions}


class TestConsumeBudget:
    """Test the atomic budget mutator."""

    def test_consume_within_budget(self):
        """Consumption decrements exactly the cost"""
        data = RegionSpawnData(region_id=0)
        data.allocate(10)

        assert data.consume_budget(4)
        assert data.remaining_budget == 6
        assert data.total_threat_spawned == 4

    def test_consume_exact_remaining(self):
        """The whole remaining budget can be consumed"""
        data = RegionSpawnData(region_id=0)
        data.allocate(5)

        assert data.consume_budget(5)
        assert data.remaining_budget == 0

    def test_over_consumption_rejected(self):
        """Costs above the remaining budget leave state unchanged"""
        data = RegionSpawnData(region_id=0)
        data.allocate(5)
        data.consume_budget(3)

        assert not data.consume_budget(3)
        assert data.remaining_budget == 2
        assert data.total_threat_spawned == 3

    def test_negative_cost_rejected(self):
        """Negative costs cannot refund budget"""
        data = RegionSpawnData(region_id=0)
        data.allocate(5)

        assert not data.consume_budget(-1)
        assert data.remaining_budget == 5

    def test_accounting_invariant(self):
        """allocated == remaining + spawned after any sequence of calls"""
        rng = random.Random(8)
        data = RegionSpawnData(region_id=0)
        data.allocate(40)
        for _ in range(100):
            data.consume_budget(rng.randint(-2, 8))
            assert data.allocated_budget == data.remaining_budget + data.total_threat_spawned
            assert data.remaining_budget >= 0

    def test_budget_utilization(self):
        """Utilization is the spawned fraction of the allocation"""
        data = RegionSpawnData(region_id=0)
        assert data.budget_utilization == 0.0
        data.allocate(8)
        data.consume_budget(2)
        assert data.budget_utilization == 0.25


class TestBudgetAllocation:
    """Test floor budget distribution."""

    @pytest.mark.parametrize("seed", range(25))
    def test_total_is_conserved(self, seed):
        """Allocations always sum to the rolled total"""
        rng = random.Random(seed)
        metadata = random_floor(rng)
        spawn_data = spawn_data_for(metadata)
        total = rng.randint(0, 60)

        allocations = RegionBudgetAllocator().allocate_budgets(metadata, total, spawn_data, (0, 0))

        assert sum(allocations.values()) == total
        assert sum(d.allocated_budget for d in spawn_data.values()) == total
        for data in spawn_data.values():
            assert data.remaining_budget == data.allocated_budget >= 0

    def test_larger_regions_get_more(self, three_region_floor):
        """Budget follows area when weights are similar"""
        spawn_data = spawn_data_for(three_region_floor)

        allocations = RegionBudgetAllocator().allocate_budgets(three_region_floor, 20, spawn_data, (0, 0))

        assert allocations[2] > allocations[1] > allocations[0] > 0

    def test_minimum_budget_for_mid_sized_regions(self):
        """Regions of 9+ tiles get at least 1 when the budget allows"""
        regions = [Region.from_rect(0, 0, 0, 3, 3), Region.from_rect(1, 3, 0, 30, 30)]
        metadata = build_metadata(regions, 33, 30)
        spawn_data = spawn_data_for(metadata)

        allocations = RegionBudgetAllocator().allocate_budgets(metadata, 10, spawn_data)

        assert allocations[0] >= 1
        assert sum(allocations.values()) == 10

    def test_minimums_never_exceed_total(self):
        """A tiny budget is not inflated by minimums"""
        regions = [Region.from_rect(i, i * 3, 0, 3, 3) for i in range(5)]
        metadata = build_metadata(regions, 15, 3)
        spawn_data = spawn_data_for(metadata)

        allocations = RegionBudgetAllocator().allocate_budgets(metadata, 2, spawn_data)

        assert sum(allocations.values()) == 2

    def test_zero_budget(self, three_region_floor):
        """A zero budget allocates nothing"""
        spawn_data = spawn_data_for(three_region_floor)

        allocations = RegionBudgetAllocator().allocate_budgets(three_region_floor, 0, spawn_data)

        assert all(v == 0 for v in allocations.values())


class TestRegionWeights:
    """Test weight and danger calculation."""

    def test_dead_end_bonus(self):
        """Dead ends weigh more and get danger 1.2"""
        region = Region.from_rect(0, 0, 0, 5, 5)
        data = RegionSpawnData(region_id=0, adjacent_region_ids=[1])

        weight = RegionBudgetAllocator().calculate_region_weight(region, data, None)

        assert weight == pytest.approx(1.2)
        assert data.danger_level == 1.2

    def test_hub_penalty(self):
        """Regions with many neighbours weigh less"""
        region = Region.from_rect(0, 0, 0, 5, 5)
        data = RegionSpawnData(region_id=0, adjacent_region_ids=[1, 2, 3, 4])

        weight = RegionBudgetAllocator().calculate_region_weight(region, data, None)

        assert weight == pytest.approx(0.9)
        assert data.danger_level == 0.9

    def test_small_region_halved(self):
        """Regions under 16 tiles are halved"""
        region = Region.from_rect(0, 0, 0, 3, 3, tag="boss_room")
        data = RegionSpawnData(region_id=0, adjacent_region_ids=[1, 2])

        weight = RegionBudgetAllocator().calculate_region_weight(region, data, None)

        assert weight == pytest.approx(1.0)

    def test_danger_levels_clamped(self, three_region_floor):
        """Danger stays within [0.5, 2.0] and grows with distance"""
        spawn_data = spawn_data_for(three_region_floor)
        for data in spawn_data.values():
            data.adjacent_region_ids = [0, 1]

        RegionBudgetAllocator().calculate_danger_levels(three_region_floor, spawn_data, (0, 0))

        dangers = [spawn_data[i].danger_level for i in range(3)]
        assert all(0.5 <= d <= 2.0 for d in dangers)
        assert dangers[0] < dangers[1] < dangers[2]
