"""
Encounter Placer - decides which encounters go where inside a region.

Placement only reserves a nominal share of the region budget for each
encounter; creatures are chosen and threat is consumed later by the
EncounterSpawner.
"""

import logging
import random
from typing import List, Optional, Set

from src.level.region_data import DistanceField, GridPosition, Region
from src.spawning.config_loader import SpawnSettings
from src.spawning.content_catalog import ContentCatalog
from src.spawning.data.encounter_template import EncounterTemplate, EncounterType
from src.spawning.data.floor_spawn_config import FloorSpawnConfig
from src.spawning.data.spawned_encounter import SpawnedEncounter
from src.spawning.region_spawn_data import RegionSpawnData
from src.utils.weighted_random import weighted_choice

logger = logging.getLogger(__name__)


def distance_squared(a: GridPosition, b: GridPosition) -> int:
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return dx * dx + dy * dy


def matches_region_type(region: Region, descriptor: str) -> bool:
    """
    Check a region against a placement descriptor

    Size descriptors: large (>= 64 tiles), medium (25-63), small (< 25).
    "passage" also matches any region under 16 tiles. Anything else is
    compared against the region tag.
    """
    descriptor = descriptor.lower()
    tag = (region.tag or "").lower()
    if descriptor == "large":
        return region.area >= 64
    if descriptor == "medium":
        return 25 <= region.area < 64
    if descriptor == "small":
        return region.area < 25
    if descriptor == "dead_end":
        return tag == "dead_end"
    if descriptor == "passage":
        return tag == "passage" or region.area < 16
    return tag == descriptor


class EncounterPlacer:
    """Greedy randomized placement of encounter templates inside regions."""

    def __init__(self, catalog: ContentCatalog, rng: random.Random, settings: Optional[SpawnSettings] = None):
        settings = settings or SpawnSettings()
        self.catalog = catalog
        self.rng = rng
        self.max_attempts = settings.max_placement_attempts
        self.min_spacing_squared = settings.min_encounter_spacing ** 2
        self.lair_radius_squared = settings.lair_center_radius ** 2
        self.default_weight = settings.default_encounter_weight
        self.preferred_region_bonus = settings.preferred_region_bonus
        self.budget_efficiency_bonus = settings.budget_efficiency_bonus
        self.ambush_danger_bonus = settings.ambush_danger_bonus
        self.ambush_danger_threshold = settings.ambush_danger_threshold

    def place_encounters_in_region(
        self,
        region: Region,
        spawn_data: RegionSpawnData,
        config: FloorSpawnConfig,
        occupied: Set[GridPosition],
        entrance_distance: Optional[DistanceField] = None,
    ) -> List[SpawnedEncounter]:
        """
        Place encounter stubs in a region

        Loops until the uncommitted budget is gone, no template fits, or
        max_attempts consecutive attempts fail. A successful placement
        resets the attempt counter.

        Args:
            region: Region to fill
            spawn_data: The region's allocator state
            config: Floor config with the encounter weight table
            occupied: Tiles already taken on this floor (read only here)
            entrance_distance: Used for templates with a minimum entrance distance

        Returns:
            Placed encounters, also appended to spawn_data.spawned_encounters
        """
        placed: List[SpawnedEncounter] = []

        if spawn_data.theme is None or spawn_data.remaining_budget <= 0:
            spawn_data.is_processed = True
            return placed

        templates = self.available_templates(config, region)
        if not templates:
            logger.warning("No encounter templates available for region %d", region.region_id)
            spawn_data.is_processed = True
            return placed

        centers: List[GridPosition] = [e.center_position for e in spawn_data.spawned_encounters]
        uncommitted = spawn_data.remaining_budget
        attempts = 0

        while uncommitted > 0 and attempts < self.max_attempts:
            attempts += 1

            template = self.select_template(templates, config, region, spawn_data, uncommitted)
            if template is None:
                break

            position = self.find_encounter_position(region, template, centers, occupied, entrance_distance)
            if position is None:
                continue

            reserved = self.calculate_reserved_budget(template, spawn_data, uncommitted)
            encounter = SpawnedEncounter(
                template=template,
                theme=spawn_data.theme,
                region=region,
                center_position=position,
                reserved_budget=reserved,
            )
            uncommitted -= reserved
            centers.append(position)
            placed.append(encounter)
            spawn_data.spawned_encounters.append(encounter)
            logger.debug("Placed '%s' in region %d at %s (reserved %d)",
                         template.template_id, region.region_id, position, reserved)
            attempts = 0

        spawn_data.is_processed = True
        return placed

    def available_templates(self, config: FloorSpawnConfig, region: Region) -> List[EncounterTemplate]:
        """Templates from the config table, else every catalog template, that fit the region size."""
        templates = []
        for entry in config.encounter_weights:
            template = self.catalog.get_encounter_template(entry.entry_id)
            if template is None:
                logger.warning("Encounter template '%s' not found", entry.entry_id)
                continue
            if region.area >= template.min_region_size:
                templates.append(template)

        if not templates and not config.encounter_weights:
            templates = [t for t in self.catalog.all_encounter_templates()
                         if region.area >= t.min_region_size]
        return templates

    def select_template(
        self,
        templates: List[EncounterTemplate],
        config: FloorSpawnConfig,
        region: Region,
        spawn_data: RegionSpawnData,
        budget: int,
    ) -> Optional[EncounterTemplate]:
        """Weighted pick among templates whose minimum budget fits."""
        valid = [t for t in templates if t.min_budget <= budget]
        if not valid:
            return None

        config_weights = {e.entry_id: e.weight for e in config.encounter_weights}
        entries = []
        for template in valid:
            weight = float(config_weights.get(template.template_id, self.default_weight))

            preferred = template.placement.preferred_regions
            if preferred and any(matches_region_type(region, p) for p in preferred):
                weight *= self.preferred_region_bonus

            if budget > 0 and template.min_budget / budget > 0.5:
                weight *= self.budget_efficiency_bonus

            if (template.encounter_type == EncounterType.AMBUSH
                    and spawn_data.danger_level > self.ambush_danger_threshold):
                weight *= self.ambush_danger_bonus

            entries.append((template, weight))

        return weighted_choice(self.rng, entries)

    def find_encounter_position(
        self,
        region: Region,
        template: EncounterTemplate,
        existing_centers: List[GridPosition],
        occupied: Set[GridPosition],
        entrance_distance: Optional[DistanceField] = None,
    ) -> Optional[GridPosition]:
        """
        First free, well-spaced tile from a shuffled candidate list

        Candidates are the edge tiles for edge-preferring templates, the
        centroid and tiles within lair_center_radius for lairs, and every
        region tile otherwise.
        """
        if template.placement.prefer_edges:
            candidates = list(region.edge_tiles)
        elif template.encounter_type == EncounterType.LAIR:
            candidates = []
            if region.contains(region.centroid):
                candidates.append(region.centroid)
            candidates.extend(
                t for t in region.tiles
                if t != region.centroid and distance_squared(t, region.centroid) <= self.lair_radius_squared
            )
        else:
            candidates = list(region.tiles)

        self.rng.shuffle(candidates)

        min_entrance = template.placement.min_distance_from_entrance
        for candidate in candidates:
            if candidate in occupied:
                continue
            if min_entrance > 0 and entrance_distance is not None:
                distance = entrance_distance.get_distance(candidate)
                if distance is not None and distance < min_entrance:
                    continue
            if any(distance_squared(candidate, c) < self.min_spacing_squared for c in existing_centers):
                continue
            return candidate

        return None

    def calculate_reserved_budget(
        self,
        template: EncounterTemplate,
        spawn_data: RegionSpawnData,
        budget: int,
    ) -> int:
        """Nominal threat set aside for an encounter: min budget scaled by danger, clamped."""
        scaled = template.min_budget * spawn_data.danger_level * self.rng.uniform(0.8, 1.2)
        reserved = int(round(scaled))
        reserved = max(template.min_budget, min(reserved, template.max_budget))
        return max(1, min(reserved, budget))
