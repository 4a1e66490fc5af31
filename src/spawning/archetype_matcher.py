"""
Archetype Matcher - scores theme creatures against encounter slots.
"""

import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from src.spawning.archetypes import CreatureArchetype, infer_archetypes, parse_archetype
from src.spawning.content_catalog import ContentCatalog
from src.spawning.data.catalog_data import CreatureData, FactionTheme
from src.spawning.data.encounter_template import EncounterSlot
from src.utils.weighted_random import weighted_choice

logger = logging.getLogger(__name__)

ROLE_KEYWORD_BONUS = 20

# Name fragments that mark a creature as fit for a slot role
ROLE_NAME_KEYWORDS = {
    "leader": ("chief", "boss", "alpha", "elder"),
    "alpha": ("alpha", "elder", "pack"),
    "scout": ("scout", "archer", "tracker"),
    "guard": ("guard", "sentinel", "warden"),
    "guardian": ("guardian", "protector"),
}


def effective_threat(creature: CreatureData, multiplier: float) -> int:
    return int(round(creature.threat * multiplier))


def matches_role_keywords(creature: CreatureData, role: str) -> bool:
    """Whether a creature's name or type suggests it fills the given role."""
    role = (role or "").lower()
    name = creature.name.lower()
    creature_type = creature.creature_type.lower()

    if role == "guardian" and "elite" in creature_type:
        return True
    if role == "vermin":
        return creature_type in ("rodent", "vermin") or "rat" in name

    keywords = ROLE_NAME_KEYWORDS.get(role, ())
    return any(keyword in name for keyword in keywords)


@dataclass
class CreatureCandidate:
    creature: CreatureData
    archetypes: Tuple[CreatureArchetype, ...]
    effective_threat: int
    match_score: int


class ArchetypeMatcher:
    """
    Picks creatures for encounter slots.

    Archetypes are cached per creature id for the lifetime of the matcher;
    call clear_cache() when the catalog changes.
    """

    def __init__(self, catalog: ContentCatalog, rng: random.Random):
        self.catalog = catalog
        self.rng = rng
        self._archetype_cache: Dict[str, Tuple[CreatureArchetype, ...]] = {}

    def get_archetypes(self, creature: CreatureData) -> Tuple[CreatureArchetype, ...]:
        cached = self._archetype_cache.get(creature.creature_id)
        if cached is None:
            cached = infer_archetypes(creature)
            self._archetype_cache[creature.creature_id] = cached
        return cached

    def clear_cache(self) -> None:
        self._archetype_cache.clear()

    @staticmethod
    def match_score(archetypes: Sequence[CreatureArchetype], preferred: Sequence[str]) -> int:
        """
        Score archetype overlap

        Returns:
            50 with no preference, 10 with no overlap, otherwise
            50 + matches * 50 // len(preferred)
        """
        if not preferred:
            return 50

        matches = 0
        for name in preferred:
            archetype = parse_archetype(name)
            if archetype is not None and archetype in archetypes:
                matches += 1

        if matches == 0:
            return 10
        return 50 + matches * 50 // len(preferred)

    def _theme_creatures(self, theme: FactionTheme) -> List[CreatureData]:
        return self.catalog.get_theme_creatures(theme)

    def get_candidates(
        self,
        theme: FactionTheme,
        preferred: Sequence[str],
        budget: int,
        threat_multiplier: float = 1.0,
    ) -> List[CreatureCandidate]:
        """Theme creatures whose effective threat fits the budget, with match scores."""
        candidates = []
        for creature in self._theme_creatures(theme):
            threat = effective_threat(creature, threat_multiplier)
            if threat > budget:
                continue
            archetypes = self.get_archetypes(creature)
            candidates.append(CreatureCandidate(
                creature=creature,
                archetypes=archetypes,
                effective_threat=threat,
                match_score=self.match_score(archetypes, preferred),
            ))
        return candidates

    def select_creature_for_slot(
        self,
        theme: FactionTheme,
        slot: EncounterSlot,
        budget: int,
    ) -> Optional[CreatureCandidate]:
        """
        Weighted pick of a creature for one unit of a slot

        Each candidate scores its archetype match plus ROLE_KEYWORD_BONUS
        when its name or type fits the slot role.

        Args:
            theme: Theme supplying the creature pool
            slot: Slot being filled
            budget: Remaining encounter budget

        Returns:
            The chosen candidate, or None if nothing fits the budget
        """
        candidates = self.get_candidates(theme, slot.preferred_archetypes, budget, slot.threat_multiplier)
        if not candidates:
            return None

        entries = []
        for candidate in candidates:
            score = candidate.match_score
            if matches_role_keywords(candidate.creature, slot.role):
                score += ROLE_KEYWORD_BONUS
            entries.append((candidate, score))

        return weighted_choice(self.rng, entries)

    def select_for_threat_target(
        self,
        theme: FactionTheme,
        target_threat: int,
        preferred: Sequence[str] = (),
        threat_multiplier: float = 1.0,
    ) -> Optional[CreatureCandidate]:
        """Pick a creature close to target_threat; closer threat scores up to 50 extra."""
        candidates = self.get_candidates(theme, preferred, target_threat + 5, threat_multiplier)
        if not candidates:
            return None

        entries = []
        for candidate in candidates:
            proximity = max(0, 50 - abs(candidate.effective_threat - target_threat) * 10)
            entries.append((candidate, candidate.match_score + proximity))
        return weighted_choice(self.rng, entries)

    def get_creatures_by_archetype(self, theme: FactionTheme, archetype: CreatureArchetype) -> List[CreatureData]:
        return [c for c in self._theme_creatures(theme) if archetype in self.get_archetypes(c)]

    def theme_has_archetype(self, theme: FactionTheme, archetype: CreatureArchetype) -> bool:
        return bool(self.get_creatures_by_archetype(theme, archetype))

    def get_lowest_threat_creature(self, theme: FactionTheme) -> Optional[CreatureData]:
        creatures = self._theme_creatures(theme)
        if not creatures:
            return None
        return min(creatures, key=lambda c: c.threat)

    def get_highest_threat_creature(self, theme: FactionTheme, max_threat: Optional[int] = None) -> Optional[CreatureData]:
        creatures = [c for c in self._theme_creatures(theme)
                     if max_threat is None or c.threat <= max_threat]
        if not creatures:
            return None
        return max(creatures, key=lambda c: c.threat)
