"""
Seed Manager - deterministic seeds for floor population
"""

import hashlib
import random
from typing import Dict, Optional

SPAWN_COMPONENTS = (
    'budget', 'themes', 'hints', 'encounters', 'creatures',
    'treasure', 'gold', 'ai', 'out_of_depth',
)


def _hash_seed(seed_string: str) -> int:
    seed_hash = hashlib.md5(seed_string.encode()).hexdigest()
    return int(seed_hash[:8], 16)


class SeedManager:
    """Derives a floor seed from a world seed, and one Random per spawning phase from the floor seed"""

    def __init__(self, world_seed: Optional[int] = None):
        """
        Args:
            world_seed: Master seed for the whole run. If None, a random seed is drawn.
        """
        self.world_seed = world_seed if world_seed is not None else random.randint(0, 2**31 - 1)
        self.current_floor_seed: Optional[int] = None
        self.sub_seeds: Dict[str, int] = {}
        self._rng_instances: Dict[str, random.Random] = {}

    def generate_floor_seed(self, floor_depth: int) -> int:
        """
        Seed for one floor; resets every phase generator

        Args:
            floor_depth: Depth of the floor being populated

        Returns:
            Deterministic seed for this floor
        """
        floor_seed = _hash_seed(f"{self.world_seed}_floor_{floor_depth}")
        self.current_floor_seed = floor_seed
        self.sub_seeds = {c: _hash_seed(f"{floor_seed}_{c}") for c in SPAWN_COMPONENTS}
        self._rng_instances = {}
        return floor_seed

    def get_random(self, component: str) -> random.Random:
        """
        Random instance for one spawning phase

        Args:
            component: Phase name ('themes', 'encounters', 'gold', ...)

        Returns:
            The same Random instance for repeated calls within a floor
        """
        if component not in self._rng_instances:
            if component not in self.sub_seeds:
                # Phases outside SPAWN_COMPONENTS still get a stable seed
                self.sub_seeds[component] = _hash_seed(f"{self.current_floor_seed}_{component}")
            self._rng_instances[component] = random.Random(self.sub_seeds[component])
        return self._rng_instances[component]
