import pytest

from src.level.region_data import (
    NO_REGION,
    DistanceField,
    DungeonMetadata,
    Passage,
    Region,
    RegionGraphError,
    SpawnHint,
    build_metadata,
)


class TestRegion:
    """Test region construction."""

    def test_from_rect_area_and_bounds(self):
        """Rect regions cover every tile in the rectangle"""
        region = Region.from_rect(3, 2, 1, 4, 3)

        assert region.area == 12
        assert region.bounds.x == 2 and region.bounds.y == 1
        assert region.bounds.width == 4 and region.bounds.height == 3

    def test_edge_tiles_exclude_interior(self):
        """Only tiles touching the outside are edges"""
        region = Region.from_rect(0, 0, 0, 4, 4)

        assert len(region.edge_tiles) == 12
        assert (1, 1) not in region.edge_tiles
        assert (0, 0) in region.edge_tiles

    def test_centroid_is_rounded_mean(self):
        """Centroid is the rounded mean tile"""
        region = Region.from_rect(0, 0, 0, 3, 3)
        assert region.centroid == (1, 1)

    def test_contains(self):
        """contains() answers tile membership"""
        region = Region.from_rect(0, 5, 5, 2, 2)
        assert region.contains((6, 6))
        assert not region.contains((4, 5))

    def test_empty_region_rejected(self):
        """A region needs at least one tile"""
        with pytest.raises(RegionGraphError):
            Region.from_tiles(0, [])

    def test_spawn_hint_from_dict(self):
        """Spawn hints parse positions as tuples"""
        hint = SpawnHint.from_dict({"item_id": "torch", "position": [2, 3]})
        assert hint.item_id == "torch"
        assert hint.position == (2, 3)


class TestDistanceField:
    """Test breadth-first entrance distances."""

    def test_straight_corridor(self):
        """Distances count steps along walkable tiles"""
        tiles = [(x, 0) for x in range(5)]
        field = DistanceField.from_source(tiles, (0, 0))

        assert field.get_distance((4, 0)) == 4
        assert field.max_distance == 4

    def test_unreachable_tile(self):
        """Tiles cut off from the source have no distance"""
        field = DistanceField.from_source([(0, 0), (1, 0), (5, 5)], (0, 0))

        assert field.get_distance((5, 5)) is None
        assert not field.is_reachable((5, 5))

    def test_average_distance(self):
        """Average ignores unreachable tiles"""
        field = DistanceField.from_source([(0, 0), (1, 0), (2, 0)], (0, 0))

        assert field.average_distance([(1, 0), (2, 0), (9, 9)]) == 1.5
        assert field.average_distance([(9, 9)]) is None


class TestDungeonMetadata:
    """Test metadata assembly and validation."""

    def test_build_metadata_fills_grid(self, three_region_floor):
        """Every region tile maps back to its region"""
        metadata = three_region_floor

        assert metadata.get_region_id_at((0, 0)) == 0
        assert metadata.get_region_id_at((3, 2)) == 1
        assert metadata.get_region_at((12, 9)).region_id == 2
        assert metadata.get_region_id_at((3, 8)) == NO_REGION
        assert metadata.get_region_id_at((-1, 0)) == NO_REGION

    def test_passages_join_distance_field(self):
        """Passage tiles make separated regions reachable"""
        regions = [Region.from_rect(0, 0, 0, 3, 3), Region.from_rect(1, 4, 0, 3, 3)]
        metadata = build_metadata(regions, 7, 3, entrance=(0, 0), passages=[Passage(((3, 1),))])

        assert metadata.entrance_distance.get_distance((6, 1)) is not None
        metadata.validate()

    def test_set_entrance_keeps_matching_field(self, three_region_floor):
        """Setting the same entrance keeps the existing distance field"""
        field = three_region_floor.entrance_distance

        three_region_floor.set_entrance((0, 0))

        assert three_region_floor.entrance_distance is field

    def test_set_entrance_rebuilds_field(self, three_region_floor):
        """Moving the entrance measures distances from the new tile"""
        three_region_floor.set_entrance((12, 9))

        assert three_region_floor.entrance_position == (12, 9)
        assert three_region_floor.entrance_distance.get_distance((12, 9)) == 0
        assert three_region_floor.entrance_distance.get_distance((0, 0)) == 21

    def test_set_entrance_without_field(self):
        """Metadata built without an entrance gets a field once one is set"""
        metadata = build_metadata([Region.from_rect(0, 0, 0, 3, 3)], 3, 3)

        metadata.set_entrance((1, 1))

        assert metadata.entrance_distance.get_distance((0, 0)) == 2

    def test_spawnable_regions(self):
        """Only regions with hints are spawnable"""
        hinted = Region.from_rect(1, 3, 0, 3, 3, spawn_hints=[SpawnHint(item_id="torch")])
        metadata = build_metadata([Region.from_rect(0, 0, 0, 3, 3), hinted], 6, 3)

        assert [r.region_id for r in metadata.get_spawnable_regions()] == [1]

    def test_validate_duplicate_ids(self):
        """Two regions with one id are corrupt"""
        regions = [Region.from_rect(0, 0, 0, 2, 2), Region.from_rect(0, 2, 0, 2, 2)]
        metadata = build_metadata(regions, 4, 2)

        with pytest.raises(RegionGraphError):
            metadata.validate()

    def test_validate_unknown_grid_region(self):
        """Grid cells must name known regions"""
        region = Region.from_rect(0, 0, 0, 2, 2)
        metadata = DungeonMetadata(width=2, height=2, regions=[region], region_ids=[[0, 0], [0, 7]])

        with pytest.raises(RegionGraphError):
            metadata.validate()

    def test_validate_wrong_grid_shape(self):
        """The grid must match the declared size"""
        region = Region.from_rect(0, 0, 0, 2, 2)
        metadata = DungeonMetadata(width=2, height=3, regions=[region], region_ids=[[0, 0], [0, 0]])

        with pytest.raises(RegionGraphError):
            metadata.validate()
