"""
Tests for cuboid geometry and the container / item models.

Run with:
    python -m pytest tests/test_geometry.py -v
"""

import math

import pytest
from pydantic import ValidationError

from loadplanner.core.geometry import (
    Cuboid,
    boxes_overlap,
    dimensions_known,
    fits_within,
    is_inside,
)
from loadplanner.core.models import (
    Container,
    Groove,
    Item,
    PlacedItem,
    Section,
    Stack,
)

from conftest import make_item


class TestCuboid:
    def test_extents(self):
        c = Cuboid(1.0, 2.0, 3.0, width=4.0, depth=5.0, height=6.0)
        assert c.x_max == 5.0
        assert c.y_max == 8.0
        assert c.z_max == 8.0
        assert c.volume == 120.0

    def test_translated_keeps_size_and_flags(self):
        c = Cuboid(0.0, 0.0, 0.0, 1.0, 1.0, 1.0, is_roll=True)
        moved = c.translated(dx=2.5)
        assert (moved.x, moved.width) == (2.5, 1.0)
        assert moved.is_roll


class TestPredicates:
    def test_touching_faces_do_not_overlap(self):
        a = Cuboid(0, 0, 0, 1, 1, 1)
        assert not boxes_overlap(1, 0, 0, 1, 1, 1, a)
        assert not boxes_overlap(0, 1, 0, 1, 1, 1, a)
        assert not boxes_overlap(0, 0, 1, 1, 1, 1, a)

    def test_interior_overlap(self):
        a = Cuboid(0, 0, 0, 1, 1, 1)
        assert boxes_overlap(0.5, 0.5, 0.5, 1, 1, 1, a)
        assert boxes_overlap(0.999, 0, 0, 1, 1, 1, a)

    def test_is_inside(self):
        outer = Cuboid(0, 0, 0, 10, 10, 10)
        assert is_inside(Cuboid(1, 1, 1, 2, 2, 2), outer)
        assert is_inside(outer, outer)
        assert not is_inside(Cuboid(9, 0, 0, 2, 1, 1), outer)

    def test_fits_within_tolerance(self):
        space = Cuboid(0, 0, 0, 1.0, 1.0, 1.0)
        assert fits_within(1.004, 1.0, 1.0, space, 0.005)
        assert not fits_within(1.006, 1.0, 1.0, space, 0.005)

    def test_dimensions_known(self):
        assert dimensions_known(1, 1, 1)
        assert not dimensions_known(1, None, 1)


class TestContainer:
    def test_groove_must_fit_depth(self):
        with pytest.raises(ValidationError):
            Container(width=10, depth=2, height=2,
                      groove=Groove(width=3, depth=0.2, length=5))

    def test_groove_must_end_inside(self):
        with pytest.raises(ValidationError):
            Container(width=10, depth=2, height=2,
                      groove=Groove(width=1, depth=0.2, length=8, start_offset=3))

    def test_non_positive_dimension_rejected(self):
        with pytest.raises(ValidationError):
            Container(width=0, depth=2, height=2)

    def test_section_bounds_include_gap(self):
        c = Container(
            width=15.9, depth=2.48, height=3.0,
            sections=(Section(length=7.7, width=2.48, height=3.0),
                      Section(length=7.7, width=2.48, height=3.0)),
        )
        first, second = c.section_bounds(0.5)
        assert first.x == 0.0
        assert second.x == pytest.approx(8.2)
        assert second.x_max == pytest.approx(15.9)

    def test_plain_container_is_one_region(self, cube_container):
        (region,) = cube_container.section_bounds(0.5)
        assert region.volume == cube_container.volume


class TestItem:
    def test_defaults_are_unlimited(self):
        item = make_item()
        assert item.max_stack is None
        assert item.can_stack
        assert item.stack_limit == math.inf
        assert item.stack_weight_limit == math.inf

    def test_max_stack_zero_forbids_stacking(self):
        item = make_item(max_stack=0)
        assert not item.can_stack
        assert item.stack_limit == 1

    def test_missing_dimension_is_malformed(self):
        item = Item(width=1.0, depth=1.0)
        assert not item.is_well_formed
        assert item.volume == 0.0

    def test_negative_dimension_rejected(self):
        with pytest.raises(ValidationError):
            make_item(width=-1.0)

    def test_identity_ignores_id(self):
        assert make_item().identity() == make_item().identity()
        assert make_item().identity() != make_item(weight=11.0).identity()

    def test_group_key_overrides_identity(self):
        a = make_item(group_key="lot-1", weight=1.0)
        b = make_item(group_key="lot-1", weight=2.0)
        assert a.identity() == b.identity()


class TestStack:
    def test_pseudo_item_dimensions(self):
        unit = make_item(width=1.2, depth=0.8, height=0.5, weight=20.0, max_stack=2)
        stack = Stack((unit, make_item(width=1.2, depth=0.8, height=0.5, weight=20.0, max_stack=2)))
        pi = stack.to_pack_item()
        assert (pi.width, pi.depth) == (1.2, 0.8)
        assert pi.height == pytest.approx(1.0)
        assert pi.weight == pytest.approx(40.0)
        assert pi.max_stack == 2
        assert pi.payload is stack


class TestPlacedItem:
    def test_center_and_scene_position(self):
        container = Container(width=10, depth=4, height=3, floor_height=1.0)
        p = PlacedItem(item=make_item(), x=0, y=0, z=0, width=1, depth=1, height=1)
        assert p.center == (0.5, 0.5, 0.5)
        assert p.scene_position(container) == pytest.approx((-4.5, 1.5, -1.5))

    def test_to_dict(self):
        item = make_item()
        p = PlacedItem(item=item, x=1, y=0, z=0, width=1, depth=1, height=1, section=1)
        d = p.to_dict()
        assert d["id"] == item.id
        assert d["position"] == [1, 0, 0]
        assert d["section"] == 1
