"""
Unit and integration tests for the LoadPlanner orchestrator.

Tests cover:
- Stack expansion (vertical offsets, rotated footprints)
- Multi-section packing with gaps and remainder hand-over
- Payload limit, pre-occupied volumes and group re-arrangement
- Centre of gravity
- Groove vehicles from the bundled catalog
- Renderer notifications and optional layout validation
"""

import pytest

from loadplanner.config import PackerSettings, get_vehicle
from loadplanner.core.geometry import Cuboid
from loadplanner.core.models import Container, Item, PlacedItem, PlacedStack, Section, Stack
from loadplanner.core.validator import validate_layout
from loadplanner.runner.planner import LoadPlanner
from loadplanner.runner.render import Renderer

from conftest import make_item


class RecordingRenderer(Renderer):
    """Keeps every call for inspection."""

    def __init__(self):
        self.calls = []
        self.shown = {}

    def create_container(self, container):
        self.calls.append(("create_container", container))

    def add_cargo(self, placed):
        handle = len(self.calls)
        self.calls.append(("add_cargo", placed))
        self.shown[handle] = placed
        return handle

    def remove_cargo(self, handle):
        self.calls.append(("remove_cargo", handle))
        del self.shown[handle]

    def clear_all_cargo(self):
        self.calls.append(("clear_all_cargo", None))
        self.shown.clear()

    def update_center_of_gravity(self, point):
        self.calls.append(("update_center_of_gravity", point))

    def names(self):
        return [name for name, _ in self.calls]


@pytest.fixture
def small_container():
    """4 x 1 x 1 container."""
    return Container(width=4.0, depth=1.0, height=1.0)


class TestSingleContainer:
    def test_all_items_placed_without_overlap(self):
        container = Container(width=13.6, depth=2.48, height=2.7)
        items = [make_item(width=1.2, depth=0.8, height=1.0, weight=300.0, max_stack=1)
                 for _ in range(40)]
        result = LoadPlanner(container).pack(items)
        assert result.success
        assert len(result.placed) == 40
        assert validate_layout(result.placed, container)

    def test_expansion_offsets_each_member(self):
        container = Container(width=2.0, depth=1.0, height=3.0)
        items = [make_item(max_stack=2) for _ in range(3)]
        result = LoadPlanner(container).pack(items)
        assert len(result.placed_stacks) == 1
        assert [p.y for p in result.placed] == [0.0, 1.0, 2.0]
        assert {(p.x, p.z) for p in result.placed} == {(0.0, 0.0)}
        assert [p.item for p in result.placed] == items

    def test_rotated_stack_swaps_footprint(self):
        container = Container(width=1.2, depth=2.0, height=1.0)
        result = LoadPlanner(container).pack([make_item(width=2.0, depth=1.0, max_stack=0)])
        (placed,) = result.placed
        assert placed.rotated
        assert (placed.width, placed.depth) == (1.0, 2.0)

    def test_unpacked_items_reported(self, small_container):
        items = [make_item(max_stack=0) for _ in range(6)]
        result = LoadPlanner(small_container).pack(items)
        assert len(result.placed) == 4
        assert result.unpacked == items[4:]
        assert not result.success

    def test_malformed_item_ends_unpacked(self, small_container):
        broken = Item(type="x", width=1.0, depth=1.0)
        result = LoadPlanner(small_container).pack([make_item(), broken])
        assert result.unpacked == [broken]
        assert len(result.placed) == 1

    def test_deterministic(self):
        container = Container(width=6.0, depth=2.4, height=2.0)
        items = ([make_item(type="a", width=1.2, depth=0.8, height=0.6)] * 10
                 + [make_item(type="b", width=1.0, depth=1.0, height=1.1, max_stack=0)] * 5)
        first = LoadPlanner(container).pack(items)
        second = LoadPlanner(container).pack(items)
        assert [p.to_dict() for p in first.placed] == [p.to_dict() for p in second.placed]


class TestSections:
    def test_sections_filled_left_to_right(self, two_section_container):
        items = [make_item(max_stack=0) for _ in range(5)]
        result = LoadPlanner(two_section_container).pack(items)
        assert [p.x for p in result.placed] == [0.0, 1.0, 2.5, 3.5]
        assert [p.section for p in result.placed] == [0, 0, 1, 1]
        assert result.unpacked == items[4:]

    def test_stay_inside_sections(self, two_section_container):
        items = [make_item(width=0.7, depth=0.5, height=0.5, max_stack=1) for _ in range(20)]
        result = LoadPlanner(two_section_container).pack(items)
        assert validate_layout(result.placed, two_section_container)
        regions = two_section_container.section_bounds(0.5)
        for p in result.placed:
            region = regions[p.section]
            assert region.x <= p.x and p.x + p.width <= region.x_max + 0.005

    def test_custom_gap(self, two_section_container):
        settings = PackerSettings(section_gap=0.25)
        items = [make_item(max_stack=0) for _ in range(3)]
        result = LoadPlanner(two_section_container, settings).pack(items)
        assert result.placed[2].x == pytest.approx(2.25)

    def test_stack_height_uses_lowest_section(self):
        container = Container(
            width=4.5, depth=1.0, height=3.0,
            sections=(Section(length=2.0, width=1.0, height=3.0),
                      Section(length=2.0, width=1.0, height=2.0)),
        )
        assert LoadPlanner(container).stack_height == 2.0

    def test_occupied_routed_to_section(self, two_section_container):
        planner = LoadPlanner(two_section_container)
        planner.mark_occupied([Cuboid(2.5, 0, 0, 1, 1, 1)])
        result = planner.pack([make_item(max_stack=0) for _ in range(4)])
        assert [p.x for p in result.placed] == [0.0, 1.0, 3.5]
        assert len(result.unpacked) == 1


class TestPayload:
    def test_overweight_stacks_left_out(self):
        container = Container(width=4.0, depth=1.0, height=1.0, max_load=250.0)
        items = [make_item(weight=100.0, max_stack=0) for _ in range(3)]
        result = LoadPlanner(container).pack(items)
        assert len(result.placed) == 2
        assert len(result.overweight_stacks) == 1
        assert result.unpacked == [items[2]]

    def test_lighter_later_stack_still_fits(self):
        container = Container(width=4.0, depth=1.0, height=1.0, max_load=250.0)
        heavy = [make_item(type="h", weight=100.0, max_stack=0) for _ in range(3)]
        light = make_item(type="l", weight=40.0, max_stack=0)
        result = LoadPlanner(container).pack(heavy + [light])
        assert light in [p.item for p in result.placed]
        assert result.unpacked == [heavy[2]]


class TestOccupied:
    def test_fully_occupied_places_nothing(self, small_container):
        planner = LoadPlanner(small_container)
        planner.mark_occupied([Cuboid(0, 0, 0, 4, 1, 1)])
        items = [make_item(), make_item(width=0.1, depth=0.1, height=0.1)]
        result = planner.pack(items)
        assert result.placed == []
        assert len(result.unpacked) == 2

    def test_occupied_persists_until_cleared(self, small_container):
        planner = LoadPlanner(small_container)
        planner.mark_occupied([Cuboid(0, 0, 0, 2, 1, 1)])
        assert planner.pack([make_item(max_stack=0)]).placed[0].x == 2.0
        assert planner.pack([make_item(max_stack=0)]).placed[0].x == 2.0
        planner.clear_occupied()
        assert planner.pack([make_item(max_stack=0)]).placed[0].x == 0.0

    def test_per_run_occupied(self, small_container):
        planner = LoadPlanner(small_container)
        result = planner.pack([make_item(max_stack=0)], occupied=[Cuboid(0, 0, 0, 1, 1, 1)])
        assert result.placed[0].x == 1.0
        assert planner.pack([make_item(max_stack=0)]).placed[0].x == 0.0


class TestArrangeGroup:
    def _plan(self, container):
        group_a = [make_item(type="a", group_id=1, order_index=i, max_stack=0) for i in range(2)]
        group_b = [make_item(type="b", group_id=2, order_index=2, weight=20.0, max_stack=0)]
        items = group_a + group_b
        planner = LoadPlanner(container)
        return planner, items, planner.pack(items)

    def test_other_groups_stay_in_place(self, small_container):
        planner, items, first = self._plan(small_container)
        b_before = [p for p in first.placed if p.item.group_id == 2]

        result = planner.arrange_group(1, items, first.placed)
        b_after = [p for p in result.placed if p.item.group_id == 2]
        assert b_after == b_before
        assert len(result.placed) == 3
        assert validate_layout(result.placed, small_container)

    def test_payload_counts_other_groups(self):
        container = Container(width=4.0, depth=1.0, height=1.0, max_load=30.0)
        b = make_item(type="b", group_id=2, weight=20.0, max_stack=0)
        a = [make_item(type="a", group_id=1, weight=10.0, max_stack=0) for _ in range(2)]
        placed_b = PlacedItem(item=b, x=3.0, y=0.0, z=0.0, width=1.0, depth=1.0, height=1.0)

        result = LoadPlanner(container).arrange_group(1, a + [b], [placed_b])
        assert len([p for p in result.placed if p.item.group_id == 1]) == 1
        assert len(result.overweight_stacks) == 1

    def test_unknown_group(self, small_container):
        with pytest.raises(ValueError):
            LoadPlanner(small_container).arrange_group(99, [make_item(group_id=1)], [])


class TestCenterOfGravity:
    def test_weighted_average(self):
        light = PlacedItem(item=make_item(weight=100.0), x=0, y=0, z=0, width=1, depth=1, height=1)
        heavy = PlacedItem(item=make_item(weight=300.0), x=2, y=0, z=0, width=1, depth=1, height=1)
        cog = LoadPlanner.compute_center_of_gravity([light, heavy])
        assert cog == pytest.approx((2.0, 0.5, 0.5))

    def test_absent_for_empty_plan(self, small_container):
        assert LoadPlanner.compute_center_of_gravity([]) is None
        assert LoadPlanner(small_container).pack([]).center_of_gravity is None

    def test_absent_for_weightless_items(self):
        p = PlacedItem(item=make_item(weight=0.0), x=0, y=0, z=0, width=1, depth=1, height=1)
        assert LoadPlanner.compute_center_of_gravity([p]) is None


class TestGrooveVehicle:
    def test_coils_follow_groove(self):
        vehicle = get_vehicle("coilmulde-standard")
        coils = [make_item(type="steel-coil", width=1.8, depth=1.8, height=1.8, weight=1000.0,
                           max_stack=0, fixed_diameter=True, is_roll=True) for _ in range(6)]
        result = LoadPlanner(vehicle).pack(coils)

        xs = [p.x for p in result.placed]
        assert xs == pytest.approx([3.99, 5.79, 7.59, 9.39])
        assert all(p.y == pytest.approx(-0.15) for p in result.placed)
        assert len(result.unpacked_stacks) == 2
        assert validate_layout(result.placed, vehicle)

    def test_payload_limit_on_heavy_coils(self):
        vehicle = get_vehicle("coilmulde-standard")
        coils = [make_item(type="steel-coil", width=1.8, depth=1.8, height=1.8, weight=5000.0,
                           max_stack=0, fixed_diameter=True) for _ in range(5)]
        result = LoadPlanner(vehicle).pack(coils)
        assert len(result.placed) == 4
        assert len(result.overweight_stacks) == 1

    def test_coil_above_roof_left_outside(self):
        vehicle = get_vehicle("coilmulde-standard")
        tall = make_item(type="steel-coil", width=1.8, depth=1.8, height=3.0, weight=1000.0,
                         max_stack=0, fixed_diameter=True)
        result = LoadPlanner(vehicle, PackerSettings(validate_layout=True)).pack([tall])
        assert result.placed == []
        assert result.unpacked == [tall]


class TestRenderer:
    def test_run_refreshes_scene(self, small_container):
        renderer = RecordingRenderer()
        planner = LoadPlanner(small_container, renderer=renderer)
        result = planner.pack([make_item(max_stack=0) for _ in range(2)])

        names = renderer.names()
        assert names[0] == "create_container"
        assert names[1:] == ["clear_all_cargo", "add_cargo", "add_cargo", "update_center_of_gravity"]
        assert renderer.calls[-1][1] == result.center_of_gravity
        assert len(renderer.shown) == 2

    def test_remove_item(self, small_container):
        renderer = RecordingRenderer()
        planner = LoadPlanner(small_container, renderer=renderer)
        items = [make_item(weight=10.0, max_stack=0), make_item(weight=30.0, max_stack=0)]
        planner.pack(items)

        assert planner.remove_item(items[0].id)
        assert len(renderer.shown) == 1
        assert planner.last_result.center_of_gravity == pytest.approx((1.5, 0.5, 0.5))
        assert not planner.remove_item(items[0].id)

    def test_remove_item_listed_twice(self, small_container):
        renderer = RecordingRenderer()
        planner = LoadPlanner(small_container, renderer=renderer)
        item = make_item(max_stack=0)
        planner.pack([item, item])
        assert len(renderer.shown) == 2

        assert planner.remove_item(item.id)
        assert len(renderer.shown) == 1
        assert len(planner.last_result.placed) == 1
        assert planner.remove_item(item.id)
        assert renderer.shown == {}
        assert not planner.remove_item(item.id)


class TestValidationSetting:
    def test_validation_runs_when_enabled(self, small_container):
        settings = PackerSettings(validate_layout=True)
        result = LoadPlanner(small_container, settings).pack([make_item() for _ in range(3)])
        assert len(result.placed) == 3


class TestExpandStack:
    def test_expand_placed_stack(self):
        unit = make_item(width=1.2, depth=0.8, height=0.4)
        stack = Stack((unit, make_item(width=1.2, depth=0.8, height=0.4)))
        placed = PlacedStack(stack=stack, x=1.0, y=0.0, z=0.5, rotated=True, section=1)
        members = LoadPlanner.expand_stack(placed)
        assert [(p.x, p.y, p.z) for p in members] == [(1.0, 0.0, 0.5), (1.0, 0.4, 0.5)]
        assert all((p.width, p.depth, p.section) == (0.8, 1.2, 1) for p in members)
