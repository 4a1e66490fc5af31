"""
Encounter Spawner - fills placed encounters with creatures.
"""

import logging
import random
from typing import Optional, Set

from src.entities.entity_factory import EntityFactory, EntityRegistry
from src.level.region_data import GridPosition
from src.spawning.archetype_matcher import ArchetypeMatcher
from src.spawning.data.encounter_template import EncounterSlot
from src.spawning.data.spawned_encounter import SpawnedCreature, SpawnedEncounter
from src.spawning.placement_strategies import PlacementContext, get_placement_strategy
from src.spawning.region_spawn_data import RegionSpawnData
from src.utils import dice_roller

logger = logging.getLogger(__name__)

LEADER_ROLES = ("leader", "alpha", "guardian")


class EncounterSpawner:
    """Creates the creatures of an encounter and charges their threat to the region."""

    def __init__(
        self,
        matcher: ArchetypeMatcher,
        entity_factory: EntityFactory,
        registry: EntityRegistry,
        rng: random.Random,
    ):
        self.matcher = matcher
        self.entity_factory = entity_factory
        self.registry = registry
        self.rng = rng

    def roll_slot_count(self, slot: EncounterSlot) -> int:
        """Roll min and max counts, swap them if needed and pick between. Bad notation gives 0."""
        try:
            low = dice_roller.roll(slot.min_count, self.rng)
            high = dice_roller.roll(slot.max_count, self.rng)
        except ValueError as e:
            logger.warning("Slot '%s' has invalid count notation: %s", slot.role, e)
            return 0
        if low > high:
            low, high = high, low
        return max(0, self.rng.randint(low, high))

    def encounter_budget(self, encounter: SpawnedEncounter, spawn_data: Optional[RegionSpawnData]) -> int:
        budget = encounter.template.max_budget
        if encounter.reserved_budget > 0:
            budget = min(budget, encounter.reserved_budget)
        if spawn_data is not None:
            budget = min(budget, spawn_data.remaining_budget)
        return max(0, budget)

    def spawn_encounter(
        self,
        encounter: SpawnedEncounter,
        spawn_data: Optional[RegionSpawnData],
        occupied: Set[GridPosition],
    ) -> bool:
        """
        Spawn every slot of an encounter

        Creatures are chosen while their effective threat fits what is left
        of the encounter budget. The summed threat is consumed from the
        region budget once all slots are filled.

        Args:
            encounter: Placed encounter stub, filled in place
            spawn_data: Region state charged for the encounter's threat
            occupied: Floor-wide occupied tiles, updated with new creatures

        Returns:
            True if at least one creature was spawned
        """
        if encounter.template is None or encounter.theme is None or encounter.region is None:
            return encounter.fail("Missing template, theme, or region")

        region = encounter.region
        available = [t for t in region.tiles if t not in occupied]
        if not available:
            return encounter.fail("No available tiles in region")

        if not self.matcher.catalog.get_theme_creatures(encounter.theme):
            return encounter.fail(f"No creatures found in theme '{encounter.theme.theme_id}'")

        remaining = self.encounter_budget(encounter, spawn_data)
        context = PlacementContext(
            center=encounter.center_position,
            available_tiles=available,
            occupied=occupied,
            rng=self.rng,
        )

        for slot in encounter.template.slots:
            strategy = get_placement_strategy(slot.placement)
            count = self.roll_slot_count(slot)

            for _ in range(count):
                candidate = self.matcher.select_creature_for_slot(encounter.theme, slot, remaining)
                if candidate is None:
                    break

                position = strategy.select_position(region, context)
                if position is None:
                    break

                creature = candidate.creature
                handle = self.entity_factory.create_creature(creature.creature_id, position)
                if handle is None:
                    logger.warning("Failed to create creature '%s'", creature.creature_id)
                    continue

                self.registry.add_entity(handle)
                occupied.add(position)
                available.remove(position)

                spawned = SpawnedCreature(
                    entity=handle,
                    creature_id=creature.creature_id,
                    position=position,
                    archetypes=candidate.archetypes,
                    role=slot.role,
                    threat=candidate.effective_threat,
                )
                encounter.creatures.append(spawned)
                remaining -= candidate.effective_threat

                if encounter.leader is None and slot.role.lower() in LEADER_ROLES:
                    encounter.leader = spawned

        encounter.total_threat = sum(c.threat for c in encounter.creatures)

        if not encounter.creatures:
            return encounter.fail("No creatures fit the encounter budget")

        if spawn_data is not None and not spawn_data.consume_budget(encounter.total_threat):
            logger.warning("Region %d could not pay %d threat for '%s'",
                           region.region_id, encounter.total_threat, encounter.template.template_id)

        encounter.success = True
        encounter.error_message = ""
        logger.debug("Spawned '%s' in region %d: %d creatures, threat %d",
                     encounter.template.template_id, region.region_id,
                     encounter.creature_count, encounter.total_threat)
        return True
