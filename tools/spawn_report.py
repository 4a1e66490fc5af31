#!/usr/bin/env python3
"""Populate a demo floor from the sample catalog and log the spawn summary.

The demo floor is a grid of rectangular rooms joined by one-tile doorways.

Usage: python tools/spawn_report.py [world_seed] [floor_depth]
"""
from pathlib import Path
import logging
import sys

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.entities.entity_factory import CatalogEntityFactory, EntityRegistry
from src.level.region_data import Passage, Region, build_metadata
from src.spawning.config_loader import load_spawn_settings
from src.spawning.content_catalog import ContentCatalog
from src.spawning.spawn_orchestrator import SpawnOrchestrator

CATALOG_FILE = Path(__file__).resolve().parent.parent / 'data' / 'sample_catalog.json'

ROOM_COLUMNS = 4
ROOM_ROWS = 3
ROOM_WIDTH = 9
ROOM_HEIGHT = 7
GAP = 1
ROOM_TAGS = {5: 'treasure_room', 11: 'boss_room'}


def build_demo_floor():
    regions = []
    passages = []
    for row in range(ROOM_ROWS):
        for col in range(ROOM_COLUMNS):
            region_id = row * ROOM_COLUMNS + col
            x = col * (ROOM_WIDTH + GAP)
            y = row * (ROOM_HEIGHT + GAP)
            regions.append(Region.from_rect(region_id, x, y, ROOM_WIDTH, ROOM_HEIGHT, tag=ROOM_TAGS.get(region_id)))
            if col > 0:
                passages.append(Passage(((x - 1, y + ROOM_HEIGHT // 2),)))
            if row > 0:
                passages.append(Passage(((x + ROOM_WIDTH // 2, y - 1),)))

    width = ROOM_COLUMNS * (ROOM_WIDTH + GAP)
    height = ROOM_ROWS * (ROOM_HEIGHT + GAP)
    entrance = (1, 1)
    return build_metadata(regions, width, height, entrance=entrance, passages=passages), entrance


def main(argv):
    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')
    logger = logging.getLogger('spawn_report')

    world_seed = int(argv[1]) if len(argv) > 1 else 1234
    floor_depth = int(argv[2]) if len(argv) > 2 else 1

    if not CATALOG_FILE.exists():
        logger.error("Catalog file not found: %s", CATALOG_FILE)
        return 1

    catalog = ContentCatalog.load_from_json(str(CATALOG_FILE))
    settings = load_spawn_settings()
    registry = EntityRegistry()
    factory = CatalogEntityFactory(catalog, settings.gold_item_id)
    orchestrator = SpawnOrchestrator(catalog, factory, registry, settings, world_seed)

    metadata, entrance = build_demo_floor()
    summary = orchestrator.populate_floor(metadata, floor_depth, entrance)

    for line in summary.to_debug_string().splitlines():
        logger.info(line)
    return 0 if summary.stairs_position is not None else 2


if __name__ == '__main__':
    sys.exit(main(sys.argv))
