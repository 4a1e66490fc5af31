from .config_loader import SpawnSettings, load_spawn_settings
from .content_catalog import ContentCatalog
from .region_spawn_data import RegionSpawnData
from .spawn_summary import SpawnSummary
from .spawn_orchestrator import SpawnOrchestrator

__all__ = [
    'SpawnSettings',
    'load_spawn_settings',
    'ContentCatalog',
    'RegionSpawnData',
    'SpawnSummary',
    'SpawnOrchestrator'
]
