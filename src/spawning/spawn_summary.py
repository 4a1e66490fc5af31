"""
Spawn Summary - what a floor population run produced, for logs and debugging.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from src.level.region_data import GridPosition


@dataclass
class SpawnSummary:
    """
    Counters and budgets of one populate_floor() call.

    Not meant for gameplay logic; read it in logs, tests and debug overlays.
    """
    floor_depth: int = 0
    total_power_budget: int = 0
    total_item_budget: int = 0
    total_gold_budget: int = 0
    total_threat_spawned: int = 0
    items_placed: int = 0
    gold_placed: int = 0
    regions_processed: int = 0
    encounters_placed: int = 0
    creatures_spawned: int = 0
    unique_spawns: List[str] = field(default_factory=list)
    out_of_depth_spawn: Optional[str] = None
    theme_distribution: Dict[str, int] = field(default_factory=dict)
    encounter_distribution: Dict[str, int] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    stairs_position: Optional[GridPosition] = None
    spawn_time_ms: float = 0.0

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def record_theme(self, theme_id: Optional[str]) -> None:
        if theme_id:
            self.theme_distribution[theme_id] = self.theme_distribution.get(theme_id, 0) + 1

    def record_encounter(self, template_id: Optional[str]) -> None:
        if template_id:
            self.encounter_distribution[template_id] = self.encounter_distribution.get(template_id, 0) + 1

    @property
    def power_budget_utilization(self) -> float:
        """Spawned threat as a percentage of the power budget."""
        if self.total_power_budget <= 0:
            return 0.0
        return self.total_threat_spawned / self.total_power_budget * 100.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'floor_depth': self.floor_depth,
            'total_power_budget': self.total_power_budget,
            'total_item_budget': self.total_item_budget,
            'total_gold_budget': self.total_gold_budget,
            'total_threat_spawned': self.total_threat_spawned,
            'items_placed': self.items_placed,
            'gold_placed': self.gold_placed,
            'regions_processed': self.regions_processed,
            'encounters_placed': self.encounters_placed,
            'creatures_spawned': self.creatures_spawned,
            'unique_spawns': list(self.unique_spawns),
            'out_of_depth_spawn': self.out_of_depth_spawn,
            'theme_distribution': dict(self.theme_distribution),
            'encounter_distribution': dict(self.encounter_distribution),
            'warnings': list(self.warnings),
            'stairs_position': list(self.stairs_position) if self.stairs_position else None,
            'power_budget_utilization': round(self.power_budget_utilization, 1),
            'spawn_time_ms': self.spawn_time_ms,
        }

    def to_debug_string(self, include_timing: bool = True) -> str:
        """
        Multi-line report

        Args:
            include_timing: Leave out the elapsed time so two runs of the
                same seed compare equal
        """
        lines = [f"=== Spawn Summary: Floor {self.floor_depth} ==="]
        if include_timing:
            lines.append(f"Time: {self.spawn_time_ms:.1f}ms")
        lines.append("")

        lines.append("--- Budgets ---")
        lines.append(f"Power:  {self.total_threat_spawned}/{self.total_power_budget} "
                     f"({self.power_budget_utilization:.1f}%)")
        lines.append(f"Items:  {self.items_placed}/{self.total_item_budget}")
        lines.append(f"Gold:   {self.gold_placed}/{self.total_gold_budget}")
        lines.append("")

        stairs = f"({self.stairs_position[0]}, {self.stairs_position[1]})" if self.stairs_position else "Not placed"
        lines.append("--- Spawns ---")
        lines.append(f"Regions:    {self.regions_processed}")
        lines.append(f"Encounters: {self.encounters_placed}")
        lines.append(f"Creatures:  {self.creatures_spawned}")
        lines.append(f"Stairs:     {stairs}")
        lines.append("")

        if self.unique_spawns:
            lines.append("--- Uniques ---")
            lines.extend(f"  - {name}" for name in self.unique_spawns)
            lines.append("")

        if self.out_of_depth_spawn:
            lines.append("--- Out of Depth ---")
            lines.append(f"  {self.out_of_depth_spawn}")
            lines.append("")

        if self.theme_distribution:
            lines.append("--- Theme Distribution ---")
            lines.extend(f"  {theme}: {count} region(s)" for theme, count in self.theme_distribution.items())
            lines.append("")

        if self.encounter_distribution:
            lines.append("--- Encounter Types ---")
            lines.extend(f"  {template}: {count}" for template, count in self.encounter_distribution.items())
            lines.append("")

        if self.warnings:
            lines.append("--- Warnings ---")
            lines.extend(f"  ! {warning}" for warning in self.warnings)

        return "\n".join(lines)
