"""
Per-region allocator state for one floor.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from src.spawning.data.catalog_data import FactionTheme
from src.spawning.data.spawned_encounter import SpawnedEncounter


@dataclass
class RegionSpawnData:
    """
    Mutable spawning state of a single region.

    allocated_budget == remaining_budget + total_threat_spawned holds after
    every call to allocate() or consume_budget().
    """
    region_id: int
    theme: Optional[FactionTheme] = None
    theme_overridden: bool = False
    danger_level: float = 1.0
    allocated_budget: int = 0
    remaining_budget: int = 0
    total_threat_spawned: int = 0
    adjacent_region_ids: List[int] = field(default_factory=list)
    spawned_encounters: List[SpawnedEncounter] = field(default_factory=list)
    is_processed: bool = False

    def allocate(self, amount: int) -> None:
        """Set a fresh allocation, discarding previous consumption."""
        amount = max(0, int(amount))
        self.allocated_budget = amount
        self.remaining_budget = amount
        self.total_threat_spawned = 0

    def consume_budget(self, threat: int) -> bool:
        """
        Spend threat from this region's budget

        Returns:
            False without changing state if threat is negative or exceeds
            the remaining budget, True otherwise
        """
        if threat < 0 or threat > self.remaining_budget:
            return False
        self.remaining_budget -= threat
        self.total_threat_spawned += threat
        return True

    @property
    def budget_utilization(self) -> float:
        if self.allocated_budget <= 0:
            return 0.0
        return self.total_threat_spawned / self.allocated_budget
