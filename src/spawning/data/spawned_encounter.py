"""
Result records produced while populating a floor.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from src.entities.entity_factory import EntityHandle
from src.level.region_data import GridPosition, Region
from src.spawning.data.catalog_data import FactionTheme
from src.spawning.data.encounter_template import EncounterTemplate
from src.spawning.patrol_routes import PatrolRoute


@dataclass
class SpawnedCreature:
    entity: EntityHandle
    creature_id: str
    position: GridPosition
    archetypes: Tuple[Any, ...] = ()
    role: str = "follower"
    threat: int = 1


@dataclass
class SpawnedEncounter:
    """
    One placed encounter.

    Created by the encounter placer with template, theme, region and center
    filled in; the encounter spawner adds creatures, threat and the leader.
    """
    template: Optional[EncounterTemplate]
    theme: Optional[FactionTheme]
    region: Optional[Region]
    center_position: GridPosition
    creatures: List[SpawnedCreature] = field(default_factory=list)
    leader: Optional[SpawnedCreature] = None
    total_threat: int = 0
    reserved_budget: int = 0
    success: bool = False
    error_message: str = ""
    patrol_route: Optional[PatrolRoute] = None

    @property
    def creature_count(self) -> int:
        return len(self.creatures)

    def get_all_entities(self) -> List[EntityHandle]:
        return [c.entity for c in self.creatures if c.entity is not None]

    def fail(self, message: str) -> bool:
        self.success = False
        self.error_message = message
        return False
