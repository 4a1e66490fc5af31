"""
Spawn AI Configurator - spawn-time AI setup for encounter members.

Produces a CreatureAIConfig per creature and hands it to the entity factory;
running the AI is the game's job.
"""

import logging
import math
import random
from dataclasses import dataclass
from typing import Optional

from src.entities.entity_factory import EntityFactory, EntityHandle
from src.level.region_data import GridPosition, Region
from src.spawning.archetypes import CreatureArchetype
from src.spawning.config_loader import SpawnSettings
from src.spawning.data.encounter_template import EncounterAIConfig, EncounterType
from src.spawning.data.spawned_encounter import SpawnedCreature, SpawnedEncounter
from src.spawning.patrol_routes import PatrolRoute, generate_guard_post_patrol, generate_region_patrol

logger = logging.getLogger(__name__)

DEFAULT_TERRITORY_RADIUS = 10
MIN_TERRITORY_RADIUS = 5
GUARD_POST_RADIUS = 2


@dataclass
class CreatureAIConfig:
    """
    AI setup for one spawned creature

    Attributes:
        home_region_id: Region the creature belongs to
        home_center: Encounter center it returns to
        territory_radius: How far it strays from home
        territory_bound: Whether it stays inside its territory
        initial_state: "idle", "sleeping", ...
        wake_distance: Player distance that wakes a sleeping creature
        protection_target: Leader this creature guards
        follow_distance: Distance kept from the protection target
        yells_for_help: Whether it alerts its group when attacked
        patrol_route: Route to walk, if any
    """
    home_region_id: Optional[int] = None
    home_center: Optional[GridPosition] = None
    territory_radius: int = DEFAULT_TERRITORY_RADIUS
    territory_bound: bool = False
    initial_state: str = "idle"
    wake_distance: int = 0
    protection_target: Optional[EntityHandle] = None
    follow_distance: int = 0
    yells_for_help: bool = False
    patrol_route: Optional[PatrolRoute] = None


def calculate_territory_radius(region: Optional[Region]) -> int:
    """Half the bounding-box diagonal, at least 5."""
    if region is None or not region.tiles:
        return DEFAULT_TERRITORY_RADIUS
    diagonal = int(round(math.hypot(region.bounds.width, region.bounds.height)))
    return max(MIN_TERRITORY_RADIUS, diagonal // 2)


class SpawnAIConfigurator:
    def __init__(self, entity_factory: EntityFactory, rng: random.Random, settings: Optional[SpawnSettings] = None):
        settings = settings or SpawnSettings()
        self.entity_factory = entity_factory
        self.rng = rng
        self.follow_distance = settings.follow_distance
        self.default_wake_radius = settings.default_wake_radius
        self.patrol_waypoints = settings.patrol_waypoints

    def configure_encounter(self, encounter: SpawnedEncounter) -> None:
        """Build and apply AI configs for every creature of an encounter."""
        if not encounter.creatures:
            return

        ai_config = encounter.template.ai_config if encounter.template else EncounterAIConfig()
        territory_radius = calculate_territory_radius(encounter.region)

        shared_route = self._build_group_route(encounter)
        encounter.patrol_route = shared_route

        for creature in encounter.creatures:
            config = CreatureAIConfig(
                home_region_id=encounter.region.region_id if encounter.region else None,
                home_center=encounter.center_position,
                territory_radius=territory_radius,
                territory_bound=ai_config.territory_bound,
            )

            if ai_config.initial_state.lower() == "sleeping":
                config.initial_state = "sleeping"
                config.wake_distance = ai_config.wake_radius if ai_config.wake_radius > 0 else self.default_wake_radius
            else:
                config.initial_state = ai_config.initial_state.lower()

            leader = encounter.leader
            if leader is not None and creature is not leader:
                if ai_config.followers_protect_leader:
                    config.protection_target = leader.entity
                    config.follow_distance = self.follow_distance
            elif creature is leader:
                config.yells_for_help = ai_config.leader_yells_for_help

            if ai_config.generate_patrol_route:
                config.patrol_route = self._build_creature_route(encounter, creature)
            elif shared_route is not None and CreatureArchetype.PATROLLER in creature.archetypes:
                config.patrol_route = shared_route

            self.entity_factory.apply_ai_config(creature.entity, config)

    def _build_creature_route(self, encounter: SpawnedEncounter, creature: SpawnedCreature) -> Optional[PatrolRoute]:
        if encounter.region is None:
            return None
        if encounter.template and encounter.template.encounter_type == EncounterType.GUARD_POST:
            route = generate_guard_post_patrol(creature.position, GUARD_POST_RADIUS, encounter.region.tiles)
            if route is not None:
                return route
        route = generate_region_patrol(encounter.region, creature.position, self.rng, self.patrol_waypoints)
        if route is None:
            logger.debug("No patrol route for %s in region %d", creature.creature_id, encounter.region.region_id)
        return route

    def _build_group_route(self, encounter: SpawnedEncounter) -> Optional[PatrolRoute]:
        """One route shared by every patroller of the encounter."""
        if encounter.region is None:
            return None
        if not any(CreatureArchetype.PATROLLER in c.archetypes for c in encounter.creatures):
            return None
        return generate_region_patrol(encounter.region, encounter.center_position, self.rng, self.patrol_waypoints)
