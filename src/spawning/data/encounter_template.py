"""
Encounter template definitions.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


def _normalize(name: str) -> str:
    return str(name).replace("_", "").replace("-", "").replace(" ", "").lower()


class EncounterType(Enum):
    LAIR = "lair"
    PATROL = "patrol"
    AMBUSH = "ambush"
    GUARD_POST = "guard_post"
    TREASURE_GUARD = "treasure_guard"
    INFESTATION = "infestation"
    PACK = "pack"

    @classmethod
    def from_name(cls, name: str) -> "EncounterType":
        """Parse "GuardPost", "guard_post" and similar spellings."""
        key = _normalize(name)
        for member in cls:
            if _normalize(member.value) == key:
                return member
        raise ValueError(f"Unknown encounter type: {name}")


class SlotPlacement(Enum):
    CENTER = "center"
    SURROUNDING = "surrounding"
    EDGE = "edge"
    FORMATION = "formation"
    RANDOM = "random"

    @classmethod
    def from_name(cls, name: str) -> "SlotPlacement":
        key = _normalize(name or "random")
        if key == "nearwalls":
            return cls.EDGE
        for member in cls:
            if member.value == key:
                return member
        logger.warning("Unknown slot placement '%s', using random", name)
        return cls.RANDOM


@dataclass
class EncounterSlot:
    """
    One role within an encounter

    Attributes:
        role: Role tag ("leader", "follower", "any", ...)
        preferred_archetypes: Archetype names favoured for this slot
        min_count: Dice notation for the minimum creature count
        max_count: Dice notation for the maximum creature count
        threat_multiplier: Scales each creature's threat cost
        placement: Position strategy relative to the encounter center
    """
    role: str = "any"
    preferred_archetypes: List[str] = field(default_factory=list)
    min_count: str = "1"
    max_count: str = "1"
    threat_multiplier: float = 1.0
    placement: SlotPlacement = SlotPlacement.RANDOM

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EncounterSlot":
        return cls(
            role=str(data.get("role", "any")),
            preferred_archetypes=[str(a) for a in data.get("preferred_archetypes", [])],
            min_count=str(data.get("min_count", "1")),
            max_count=str(data.get("max_count", "1")),
            threat_multiplier=float(data.get("threat_multiplier", 1.0)),
            placement=SlotPlacement.from_name(data.get("placement", "random")),
        )


@dataclass
class EncounterPlacement:
    preferred_regions: List[str] = field(default_factory=list)
    min_distance_from_entrance: int = 0
    prefer_edges: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EncounterPlacement":
        return cls(
            preferred_regions=[str(r) for r in data.get("preferred_regions", [])],
            min_distance_from_entrance=int(data.get("min_distance_from_entrance", 0)),
            prefer_edges=bool(data.get("prefer_edges", False)),
        )


@dataclass
class EncounterAIConfig:
    """Spawn-time AI setup applied to every creature of an encounter."""
    initial_state: str = "idle"
    followers_protect_leader: bool = True
    territory_bound: bool = False
    leader_yells_for_help: bool = False
    generate_patrol_route: bool = False
    wake_radius: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EncounterAIConfig":
        return cls(
            initial_state=str(data.get("initial_state", "idle")),
            followers_protect_leader=bool(data.get("followers_protect_leader", True)),
            territory_bound=bool(data.get("territory_bound", False)),
            leader_yells_for_help=bool(data.get("leader_yells_for_help", False)),
            generate_patrol_route=bool(data.get("generate_patrol_route", False)),
            wake_radius=int(data.get("wake_radius", 0)),
        )


@dataclass
class EncounterTemplate:
    template_id: str
    name: str = ""
    encounter_type: EncounterType = EncounterType.LAIR
    min_budget: int = 1
    max_budget: int = 100
    min_region_size: int = 9
    slots: List[EncounterSlot] = field(default_factory=list)
    placement: EncounterPlacement = field(default_factory=EncounterPlacement)
    ai_config: EncounterAIConfig = field(default_factory=EncounterAIConfig)

    @classmethod
    def from_dict(cls, template_id: str, data: Dict[str, Any]) -> "EncounterTemplate":
        return cls(
            template_id=template_id,
            name=str(data.get("name", template_id)),
            encounter_type=EncounterType.from_name(data.get("type", "lair")),
            min_budget=int(data.get("min_budget", 1)),
            max_budget=int(data.get("max_budget", 100)),
            min_region_size=int(data.get("min_region_size", 9)),
            slots=[EncounterSlot.from_dict(s) for s in data.get("slots", [])],
            placement=EncounterPlacement.from_dict(data.get("placement", {})),
            ai_config=EncounterAIConfig.from_dict(data.get("ai_config", {})),
        )
