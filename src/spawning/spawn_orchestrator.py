"""
Spawn Orchestrator - populates a generated floor with creatures, items, gold and the exit.

Phases run in a fixed order and share one occupied-tile set. Each phase draws
from its own SeedManager stream, so a world seed and depth always give the
same floor.
"""

import logging
import random
import time
from typing import Dict, List, Optional, Set

from src.entities.entity_factory import EntityFactory, EntityRegistry
from src.level.region_data import DungeonMetadata, GridPosition, Region
from src.level.seed_manager import SeedManager
from src.spawning.ai_configurator import SpawnAIConfigurator
from src.spawning.archetype_matcher import ArchetypeMatcher
from src.spawning.budget_allocator import RegionBudgetAllocator
from src.spawning.config_loader import SpawnSettings
from src.spawning.content_catalog import ContentCatalog
from src.spawning.data.floor_spawn_config import FloorSpawnConfig, create_fallback_config
from src.spawning.data.spawned_encounter import SpawnedEncounter
from src.spawning.encounter_placer import EncounterPlacer, distance_squared
from src.spawning.encounter_spawner import EncounterSpawner
from src.spawning.gold_placer import GoldPlacer
from src.spawning.out_of_depth_spawner import OutOfDepthSpawner
from src.spawning.region_spawn_data import RegionSpawnData
from src.spawning.spawn_summary import SpawnSummary
from src.spawning.stairs_spawner import StairsSpawner, farthest_region
from src.spawning.theme_assigner import RegionThemeAssigner
from src.spawning.treasure_placer import LootDistributor, TreasurePlacer
from src.spawning.unique_spawner import UniqueMonsterSpawner
from src.utils import dice_roller

logger = logging.getLogger(__name__)


class SpawnOrchestrator:
    """
    Runs every spawning phase for one floor at a time.

    Keep one orchestrator per run: it owns the unique-monster tracking.
    """

    def __init__(
        self,
        catalog: ContentCatalog,
        entity_factory: EntityFactory,
        registry: EntityRegistry,
        settings: Optional[SpawnSettings] = None,
        world_seed: Optional[int] = None,
    ):
        self.catalog = catalog
        self.entity_factory = entity_factory
        self.registry = registry
        self.settings = settings or SpawnSettings()
        self.seed_manager = SeedManager(world_seed)
        self.unique_spawner = UniqueMonsterSpawner(
            catalog, entity_factory, registry, self.settings.unique_min_region_area)
        self.last_summary: Optional[SpawnSummary] = None
        self.last_region_spawn_data: Dict[int, RegionSpawnData] = {}

    def reset_for_new_run(self) -> None:
        """Make every unique creature eligible again."""
        self.unique_spawner.reset_for_new_run()

    def populate_floor(
        self,
        metadata: Optional[DungeonMetadata],
        floor_depth: int,
        player_position: GridPosition,
    ) -> SpawnSummary:
        """
        Populate one floor

        Args:
            metadata: Region partition of the floor
            floor_depth: Depth of the floor, selects the spawn config
            player_position: Arrival tile; becomes the entrance

        Returns:
            Summary of what was spawned, with validation warnings

        Raises:
            RegionGraphError: If the region metadata is corrupt
        """
        start_time = time.perf_counter()
        summary = SpawnSummary(floor_depth=floor_depth)
        self.last_summary = summary
        self.last_region_spawn_data = {}
        self.seed_manager.generate_floor_seed(floor_depth)

        config = self.catalog.get_floor_config_for_depth(floor_depth)
        if config is None:
            logger.warning("No spawn config found for floor %d, using fallback", floor_depth)
            summary.add_warning(f"No spawn config found for floor {floor_depth}, using fallback")
            config = create_fallback_config(floor_depth)

        if metadata is None or not metadata.regions:
            logger.warning("No dungeon metadata for floor %d, nothing spawned", floor_depth)
            summary.add_warning("No dungeon metadata available")
            return self._finish(summary, start_time)

        metadata.validate()
        metadata.set_entrance(player_position)
        metadata.exit_position = None

        occupied: Set[GridPosition] = {player_position}
        for position in self.registry.occupied_positions():
            if metadata.get_region_at(position) is not None:
                occupied.add(position)

        budget_rng = self.seed_manager.get_random('budget')
        power_budget = self._roll_budget(summary, "power", config.power_budget, budget_rng)
        item_budget = self._roll_budget(summary, "item", config.item_budget, budget_rng)
        gold_budget = self._roll_budget(summary, "gold", config.gold_budget, budget_rng)
        summary.total_power_budget = power_budget
        summary.total_item_budget = item_budget
        summary.total_gold_budget = gold_budget

        region_spawn_data: Dict[int, RegionSpawnData] = {}
        self.last_region_spawn_data = region_spawn_data

        theme_assigner = RegionThemeAssigner(
            self.catalog, self.seed_manager.get_random('themes'), self.settings.theme_cluster_chance)
        theme_assigner.assign_themes(metadata, config, region_spawn_data, floor_depth)

        allocator = RegionBudgetAllocator(
            self.settings.distance_normalization,
            self.settings.small_region_area,
            self.settings.min_budget_region_area,
        )
        allocator.allocate_budgets(metadata, power_budget, region_spawn_data, player_position)
        allocator.calculate_danger_levels(metadata, region_spawn_data, player_position)

        for region in metadata.regions:
            spawn_data = region_spawn_data.get(region.region_id)
            if spawn_data is not None and spawn_data.theme is not None:
                summary.record_theme(spawn_data.theme.theme_id)

        creature_rng = self.seed_manager.get_random('creatures')
        spawner = EncounterSpawner(
            ArchetypeMatcher(self.catalog, creature_rng), self.entity_factory, self.registry, creature_rng)
        all_encounters: List[SpawnedEncounter] = []

        self._process_spawn_hints(metadata, region_spawn_data, spawner, occupied, summary, all_encounters)

        for handle in self.unique_spawner.spawn_uniques(metadata, config, occupied):
            summary.unique_spawns.append(handle.name)
            summary.total_threat_spawned += handle.threat

        self._spawn_encounters(metadata, config, region_spawn_data, spawner, player_position,
                               occupied, summary, all_encounters)

        summary.items_placed += self._place_items_and_treasure(
            metadata, config, region_spawn_data, item_budget, occupied)

        gold_placer = GoldPlacer(self.entity_factory, self.registry, self.seed_manager.get_random('gold'))
        summary.gold_placed = gold_placer.distribute_gold(
            metadata.regions, region_spawn_data, gold_budget, floor_depth, occupied)

        stairs = StairsSpawner(self.entity_factory, self.registry, self.settings)
        exit_handle = stairs.place_stairs(metadata, floor_depth, occupied)
        if exit_handle is not None:
            summary.stairs_position = exit_handle.position
        else:
            summary.add_warning("Failed to place stairs")

        ai_configurator = SpawnAIConfigurator(
            self.entity_factory, self.seed_manager.get_random('ai'), self.settings)
        for encounter in all_encounters:
            ai_configurator.configure_encounter(encounter)

        self._try_spawn_out_of_depth(metadata, config, floor_depth, occupied, summary)

        self._validate(summary, metadata)
        return self._finish(summary, start_time)

    def _finish(self, summary: SpawnSummary, start_time: float) -> SpawnSummary:
        summary.spawn_time_ms = (time.perf_counter() - start_time) * 1000.0
        logger.info("Floor %d populated: %d encounters, %d creatures, threat %d/%d, %d warning(s)",
                    summary.floor_depth, summary.encounters_placed, summary.creatures_spawned,
                    summary.total_threat_spawned, summary.total_power_budget, len(summary.warnings))
        logger.debug("\n%s", summary.to_debug_string())
        return summary

    def _roll_budget(self, summary: SpawnSummary, name: str, notation: str, rng: random.Random) -> int:
        try:
            return max(0, dice_roller.roll(notation, rng))
        except ValueError as e:
            logger.warning("Invalid %s budget '%s': %s", name, notation, e)
            summary.add_warning(f"Invalid {name} budget '{notation}': {e}")
            return 0

    def _record_encounter(self, encounter: SpawnedEncounter, summary: SpawnSummary,
                          all_encounters: List[SpawnedEncounter]) -> None:
        all_encounters.append(encounter)
        summary.encounters_placed += 1
        summary.creatures_spawned += encounter.creature_count
        summary.total_threat_spawned += encounter.total_threat
        summary.record_encounter(encounter.template.template_id)

    @staticmethod
    def _find_available_position(
        region: Region,
        occupied: Set[GridPosition],
        preferred: Optional[GridPosition] = None,
    ) -> Optional[GridPosition]:
        """Preferred tile when it is a free region tile, else the first free tile."""
        if preferred is not None and region.contains(preferred) and preferred not in occupied:
            return preferred
        for tile in region.tiles:
            if tile not in occupied:
                return tile
        return None

    def _process_spawn_hints(
        self,
        metadata: DungeonMetadata,
        region_spawn_data: Dict[int, RegionSpawnData],
        spawner: EncounterSpawner,
        occupied: Set[GridPosition],
        summary: SpawnSummary,
        all_encounters: List[SpawnedEncounter],
    ) -> None:
        """Designer hints in prefab regions, charged to the region budget before regular encounters."""
        hint_rng = self.seed_manager.get_random('hints')

        for region in metadata.get_spawnable_regions():
            spawn_data = region_spawn_data.get(region.region_id)
            if spawn_data is None:
                continue

            for hint in region.spawn_hints:
                if hint.encounter_template_id:
                    template = self.catalog.get_encounter_template(hint.encounter_template_id)
                    if template is None:
                        logger.warning("Spawn hint names unknown encounter '%s'", hint.encounter_template_id)
                        continue
                    if spawn_data.theme is None:
                        continue
                    encounter = SpawnedEncounter(
                        template=template,
                        theme=spawn_data.theme,
                        region=region,
                        center_position=hint.position or region.centroid,
                    )
                    spawn_data.spawned_encounters.append(encounter)
                    if spawner.spawn_encounter(encounter, spawn_data, occupied):
                        self._record_encounter(encounter, summary, all_encounters)

                elif hint.creature_pool:
                    creature_id = hint.creature_pool[hint_rng.randrange(len(hint.creature_pool))]
                    creature = self.catalog.get_creature(creature_id)
                    if creature is None:
                        logger.warning("Spawn hint names unknown creature '%s'", creature_id)
                        continue
                    if creature.threat > spawn_data.remaining_budget:
                        logger.debug("Region %d cannot afford hinted '%s'", region.region_id, creature_id)
                        continue
                    position = self._find_available_position(region, occupied, hint.position)
                    if position is None:
                        continue
                    handle = self.entity_factory.create_creature(creature_id, position)
                    if handle is None:
                        continue
                    self.registry.add_entity(handle)
                    occupied.add(position)
                    spawn_data.consume_budget(creature.threat)
                    summary.creatures_spawned += 1
                    summary.total_threat_spawned += creature.threat

                elif hint.item_id:
                    position = self._find_available_position(region, occupied, hint.position)
                    if position is None:
                        continue
                    handle = self.entity_factory.create_item(hint.item_id, position)
                    if handle is None:
                        continue
                    self.registry.add_entity(handle)
                    occupied.add(position)
                    summary.items_placed += 1

    def _spawn_encounters(
        self,
        metadata: DungeonMetadata,
        config: FloorSpawnConfig,
        region_spawn_data: Dict[int, RegionSpawnData],
        spawner: EncounterSpawner,
        player_position: GridPosition,
        occupied: Set[GridPosition],
        summary: SpawnSummary,
        all_encounters: List[SpawnedEncounter],
    ) -> None:
        placer = EncounterPlacer(self.catalog, self.seed_manager.get_random('encounters'), self.settings)
        exclusion_squared = self.settings.player_exclusion_radius ** 2
        # The region farthest from the entrance is never excluded
        exempt = farthest_region(metadata)

        for region in metadata.regions:
            spawn_data = region_spawn_data.get(region.region_id)
            if spawn_data is None:
                continue

            if region is not exempt and distance_squared(region.centroid, player_position) < exclusion_squared:
                logger.debug("Region %d is inside the player exclusion zone", region.region_id)
                continue

            encounters = placer.place_encounters_in_region(
                region, spawn_data, config, occupied, metadata.entrance_distance)

            for encounter in encounters:
                if spawner.spawn_encounter(encounter, spawn_data, occupied):
                    self._record_encounter(encounter, summary, all_encounters)
                else:
                    logger.debug("Encounter '%s' in region %d failed: %s",
                                 encounter.template.template_id, region.region_id, encounter.error_message)

            summary.regions_processed += 1

    def _place_items_and_treasure(
        self,
        metadata: DungeonMetadata,
        config: FloorSpawnConfig,
        region_spawn_data: Dict[int, RegionSpawnData],
        item_budget: int,
        occupied: Set[GridPosition],
    ) -> int:
        """
        Guarded treasure in the most dangerous regions, then loot over the rest

        Returns:
            Number of items placed
        """
        treasure_rng = self.seed_manager.get_random('treasure')
        treasure = TreasurePlacer(self.catalog, self.entity_factory, self.registry, treasure_rng)
        loot = LootDistributor(self.catalog, self.entity_factory, self.registry, treasure_rng)
        placed = 0

        def threat_of(region: Region) -> int:
            return region_spawn_data[region.region_id].total_threat_spawned

        known = [r for r in metadata.regions if r.region_id in region_spawn_data]
        dangerous = sorted(
            (r for r in known if threat_of(r) > self.settings.guarded_treasure_min_threat),
            key=threat_of,
            reverse=True,
        )[:self.settings.guarded_treasure_regions]

        for region in dangerous:
            cost = treasure.place_guarded_treasure(
                region, config.items, item_budget, threat_of(region) // 2, occupied)
            if cost > 0:
                placed += 1
                item_budget -= cost

        if item_budget > 0:
            result = loot.distribute_items(known, region_spawn_data, config.items, item_budget, occupied)
            placed += result["placed"]
            item_budget -= result["spent"]

        for region in known:
            if item_budget <= 0:
                break
            if threat_of(region) > 0:
                continue
            cost = treasure.place_unguarded_treasure(region, config.items, item_budget, occupied)
            if cost > 0:
                placed += 1
                item_budget -= cost

        return placed

    def _try_spawn_out_of_depth(
        self,
        metadata: DungeonMetadata,
        config: FloorSpawnConfig,
        floor_depth: int,
        occupied: Set[GridPosition],
        summary: SpawnSummary,
    ) -> None:
        spawner = OutOfDepthSpawner(
            self.catalog, self.entity_factory, self.registry, self.seed_manager.get_random('out_of_depth'))
        deeper_configs = spawner.get_deeper_configs(floor_depth, config)
        result = spawner.try_spawn_out_of_depth(
            floor_depth, config, deeper_configs, metadata.regions, metadata, occupied)
        if result is None:
            return

        handle, threat = result
        summary.out_of_depth_spawn = f"{handle.name} (threat {threat})"
        summary.total_threat_spawned += threat
        summary.creatures_spawned += 1

    def _validate(self, summary: SpawnSummary, metadata: DungeonMetadata) -> None:
        minimum = self.settings.minimum_creature_count
        if summary.creatures_spawned < minimum:
            summary.add_warning(f"Below minimum creature count: {summary.creatures_spawned}/{minimum}")

        if summary.stairs_position is None:
            summary.add_warning("Stairs not placed - player cannot progress")

        if metadata.exit_position is not None and metadata.entrance_distance is not None:
            if not metadata.entrance_distance.is_reachable(metadata.exit_position):
                summary.add_warning("Stairs may be unreachable from entrance")

        utilization = summary.power_budget_utilization
        if utilization < self.settings.low_utilization_percent:
            summary.add_warning(f"Low power budget utilization: {utilization:.1f}%")
