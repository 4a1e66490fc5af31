import random

import pytest

from src.entities.entity_factory import CatalogEntityFactory, EntityRegistry
from src.level.region_data import Region, build_metadata
from src.spawning.config_loader import SpawnSettings
from src.spawning.content_catalog import ContentCatalog

GOBLIN_CATALOG = {
    "creatures": {
        "goblin": {"name": "Goblin", "type": "goblinoid", "threat": 2, "strength": 1, "agility": 1},
        "goblin_chief": {"name": "Goblin Chief", "type": "goblinoid", "threat": 3,
                         "strength": 2, "agility": 1, "endurance": 1},
    },
    "items": {
        "healing_potion": {"name": "Healing Potion", "value": 1, "consumable": True},
        "short_sword": {"name": "Short Sword", "value": 2},
        "chain_mail": {"name": "Chain Mail", "value": 3},
    },
    "themes": {
        "goblinoid": {"name": "Goblin Warband", "creatures": ["goblin", "goblin_chief"]},
    },
    "encounters": {
        "goblin_raid": {
            "name": "Goblin Raid",
            "type": "pack",
            "min_budget": 5,
            "max_budget": 8,
            "min_region_size": 9,
            "slots": [{"role": "follower", "min_count": "2", "max_count": "3"}],
        },
    },
    "floors": {
        "test_floor": {
            "min_floor": 1,
            "max_floor": 5,
            "power_budget": "20",
            "item_budget": "3",
            "gold_budget": "30",
            "theme_weights": [{"id": "goblinoid", "weight": 10}],
            "encounter_weights": [{"id": "goblin_raid", "weight": 10}],
            "items": {
                "common_items": ["healing_potion"],
                "uncommon_items": ["short_sword"],
                "rare_items": ["chain_mail"],
            },
        },
    },
}


def make_three_region_floor():
    """Regions of 10, 30 and 60 tiles side by side, entrance in the smallest."""
    regions = [
        Region.from_rect(0, 0, 0, 2, 5),
        Region.from_rect(1, 2, 0, 5, 6),
        Region.from_rect(2, 7, 0, 6, 10),
    ]
    return build_metadata(regions, 13, 10, entrance=(0, 0))


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def catalog():
    return ContentCatalog.from_dict(GOBLIN_CATALOG)


@pytest.fixture
def registry():
    return EntityRegistry()


@pytest.fixture
def factory(catalog):
    return CatalogEntityFactory(catalog)


@pytest.fixture
def three_region_floor():
    return make_three_region_floor()


@pytest.fixture
def open_settings():
    """Default settings without the player exclusion zone."""
    return SpawnSettings(player_exclusion_radius=0)
