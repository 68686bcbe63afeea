"""
LoadPlanner — orchestrates one vehicle's load plan.

Run pipeline:
    items ──► build_stacks ──► payload filter ──► per-section BinPacker
          ──► expand stacks into items ──► centre of gravity ──► renderer

Multi-section vehicles are packed left to right.  Section ``i`` starts at
``sum(previous lengths) + i * section_gap`` along x, receives whatever the
previous section left unpacked, and is packed as an independent container.

Coordinates in every PlanResult are vehicle-frame minimum corners: x from
the front wall, y from the floor, z from the left wall.

Usage:
    planner = LoadPlanner(get_vehicle("mega"))
    result = planner.pack(manifest.items)
    print(result.center_of_gravity)
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

import numpy as np

from loadplanner.algorithms.packer import BinPacker
from loadplanner.algorithms.stacking import build_stacks
from loadplanner.config import PackerSettings
from loadplanner.core.geometry import Cuboid
from loadplanner.core.models import (
    Container, Item, PackedUnit, PackItem, PlacedItem, PlacedStack, PlanResult, Stack,
)
from loadplanner.core.validator import validate_layout
from loadplanner.monitoring.metrics import PlanMetrics
from loadplanner.runner.render import NullRenderer, Renderer


logger = logging.getLogger(__name__)


class LoadPlanner:
    """
    Packing orchestrator for one vehicle.

    Pre-occupied volumes registered with ``mark_occupied`` stay in effect
    for every following run until ``clear_occupied`` is called.
    """

    def __init__(
        self,
        container: Container,
        settings: Optional[PackerSettings] = None,
        renderer: Optional[Renderer] = None,
    ) -> None:
        self.container = container
        self.settings = settings or PackerSettings()
        self.renderer = renderer or NullRenderer()
        self.last_result: Optional[PlanResult] = None
        self._occupied: List[Cuboid] = []
        self._handles: List[object] = []
        self.renderer.create_container(container)

    # ── Layout ───────────────────────────────────────────────────────────

    @property
    def regions(self) -> List[Cuboid]:
        """Packable region of each section in vehicle coordinates."""
        return self.container.section_bounds(self.settings.section_gap)

    @property
    def stack_height(self) -> float:
        """Height bound for stacks: the lowest section, or the container."""
        if self.container.sections:
            return min(s.height for s in self.container.sections)
        return self.container.height

    def _section_containers(self) -> List[Container]:
        if self.container.sections:
            return self.container.section_containers()
        return [self.container]

    # ── Pre-occupied volumes ─────────────────────────────────────────────

    def mark_occupied(self, cuboids: Iterable[Cuboid]) -> None:
        """Register volumes (vehicle coordinates) that later runs must avoid."""
        self._occupied.extend(cuboids)

    def clear_occupied(self) -> None:
        self._occupied = []

    def _route_occupied(self, occupied: Sequence[Cuboid]) -> List[List[Cuboid]]:
        """Split vehicle-frame cuboids into section-local lists by x centre."""
        regions = self.regions
        routed: List[List[Cuboid]] = [[] for _ in regions]
        if not self.container.sections:
            routed[0] = list(occupied)
            return routed

        for cuboid in occupied:
            centre = cuboid.x + cuboid.width / 2
            for index, region in enumerate(regions):
                if region.x <= centre <= region.x_max:
                    routed[index].append(cuboid.translated(dx=-region.x))
                    break
            else:
                logger.warning("Occupied volume %r lies in a section gap; ignored", cuboid)
        return routed

    # ── Packing ──────────────────────────────────────────────────────────

    def pack(self, items: Sequence[Item], occupied: Iterable[Cuboid] = ()) -> PlanResult:
        """Build stacks from *items* and pack them."""
        stacks = build_stacks(items, self.stack_height)
        return self.pack_stacks(stacks, occupied)

    def pack_stacks(self, stacks: Sequence[Stack], occupied: Iterable[Cuboid] = ()) -> PlanResult:
        """
        Pack pre-built stacks in the order given.

        Args:
            stacks:    Stacks in packing order.
            occupied:  Extra pre-occupied volumes for this run only.

        Returns:
            PlanResult; the renderer has been refreshed with it.
        """
        result = self._run(stacks, list(self._occupied) + list(occupied), base_weight=0.0)
        self._publish(result)
        return result

    def arrange_group(
        self,
        group_id: int,
        items: Sequence[Item],
        placed: Sequence[PlacedItem],
    ) -> PlanResult:
        """
        Re-pack one group while every other placed item stays where it is.

        Args:
            group_id:  Group to re-arrange.
            items:     All items of the plan (the group's members are taken
                       from here, in order).
            placed:    Current placements; those of other groups become
                       pre-occupied volumes and count against the payload.

        Raises:
            ValueError: no item belongs to *group_id*.
        """
        members = [item for item in items if item.group_id == group_id]
        if not members:
            raise ValueError(f"No items in group {group_id}")

        others = [p for p in placed if p.item.group_id != group_id]
        occupied = list(self._occupied) + [p.bounds for p in others]
        base_weight = sum(p.item.weight for p in others)

        stacks = build_stacks(members, self.stack_height)
        partial = self._run(stacks, occupied, base_weight=base_weight)

        placed_all = others + partial.placed
        result = PlanResult(
            placed=placed_all,
            unpacked=partial.unpacked,
            placed_stacks=partial.placed_stacks,
            unpacked_stacks=partial.unpacked_stacks,
            overweight_stacks=partial.overweight_stacks,
            center_of_gravity=self.compute_center_of_gravity(placed_all),
        )
        self._publish(result)
        return result

    def _run(self, stacks: Sequence[Stack], occupied: Sequence[Cuboid], base_weight: float) -> PlanResult:
        within, overweight = self._apply_payload_limit(stacks, base_weight)

        remaining: List[PackItem] = [stack.to_pack_item() for stack in within]
        placed_stacks: List[PlacedStack] = []
        sectioned = bool(self.container.sections)

        routed = self._route_occupied(occupied)
        for index, (sub, region) in enumerate(zip(self._section_containers(), self.regions)):
            if not remaining:
                break

            packer = BinPacker(sub, self.settings)
            packer.mark_occupied(routed[index])
            outcome = packer.pack_items(remaining, skip_reset=True)

            for unit in outcome.packed:
                placed_stacks.append(self._to_placed_stack(unit, region, index if sectioned else None))

            remaining = outcome.unpacked
            logger.debug(
                "section %d: placed %d, remaining %d",
                index, len(outcome.packed), len(remaining),
            )

        unpacked_stacks = [item.payload for item in remaining]
        placed = [p for ps in placed_stacks for p in self.expand_stack(ps)]

        unpacked_items = [item for stack in unpacked_stacks for item in stack.items]
        unpacked_items += [item for stack in overweight for item in stack.items]

        result = PlanResult(
            placed=placed,
            unpacked=unpacked_items,
            placed_stacks=placed_stacks,
            unpacked_stacks=unpacked_stacks,
            overweight_stacks=overweight,
            center_of_gravity=self.compute_center_of_gravity(placed),
        )
        logger.debug(
            "run finished: %d items placed, %d unpacked (%d over payload)",
            len(placed), len(unpacked_items), len(overweight),
        )
        return result

    def _apply_payload_limit(
        self, stacks: Sequence[Stack], base_weight: float,
    ) -> tuple[List[Stack], List[Stack]]:
        max_load = self.container.max_load
        if max_load is None:
            return list(stacks), []

        within: List[Stack] = []
        overweight: List[Stack] = []
        total = base_weight
        for stack in stacks:
            if total + stack.weight <= max_load:
                within.append(stack)
                total += stack.weight
            else:
                overweight.append(stack)

        if overweight:
            logger.warning(
                "%d stacks exceed the payload limit of %.0f and are left out",
                len(overweight), max_load,
            )
        return within, overweight

    @staticmethod
    def _to_placed_stack(unit: PackedUnit, region: Cuboid, section: Optional[int]) -> PlacedStack:
        return PlacedStack(
            stack=unit.item.payload,
            x=region.x + unit.x,
            y=region.y + unit.y,
            z=region.z + unit.z,
            rotated=unit.rotated,
            section=section,
        )

    @staticmethod
    def expand_stack(placed: PlacedStack) -> List[PlacedItem]:
        """
        Individual item placements of a placed stack.

        Member ``k`` sits ``k * unit_height`` above the stack base; a rotated
        stack swaps every member's footprint.
        """
        unit = placed.stack.unit
        width, depth = (unit.depth, unit.width) if placed.rotated else (unit.width, unit.depth)
        return [
            PlacedItem(
                item=item,
                x=placed.x,
                y=placed.y + k * unit.height,
                z=placed.z,
                width=width,
                depth=depth,
                height=unit.height,
                rotated=placed.rotated,
                section=placed.section,
            )
            for k, item in enumerate(placed.stack.items)
        ]

    # ── Reporting ────────────────────────────────────────────────────────

    @staticmethod
    def compute_center_of_gravity(
        placed: Sequence[PlacedItem],
    ) -> Optional[tuple[float, float, float]]:
        """
        Weight-averaged centre of the placed items, or None.

        None is returned for an empty plan and for a plan whose items weigh
        nothing.
        """
        if not placed:
            return None
        weights = np.array([p.item.weight for p in placed], dtype=float)
        if weights.sum() <= 0:
            return None
        centers = np.array([p.center for p in placed], dtype=float)
        cog = np.average(centers, axis=0, weights=weights)
        return (float(cog[0]), float(cog[1]), float(cog[2]))

    def statistics(self, items: Sequence[Item], result: PlanResult) -> PlanMetrics:
        return PlanMetrics.from_plan(items, result, self.container)

    def _publish(self, result: PlanResult) -> None:
        if self.settings.validate_layout:
            validate_layout(
                result.placed, self.container,
                self.settings.section_gap, self.settings.tolerance,
            )

        self.last_result = result
        self.renderer.clear_all_cargo()
        self._handles = [self.renderer.add_cargo(p) for p in result.placed]
        self.renderer.update_center_of_gravity(result.center_of_gravity)

    def remove_item(self, item_id: str) -> bool:
        """
        Take one placement of *item_id* out of the last plan without
        re-packing.

        Only the first matching placement is removed, so an item object
        listed twice keeps its other placement and renderer handle.
        """
        if self.last_result is None:
            return False
        placed = self.last_result.placed
        for index, p in enumerate(placed):
            if p.item.id == item_id:
                break
        else:
            return False

        self.renderer.remove_cargo(self._handles.pop(index))
        self.last_result.placed = placed[:index] + placed[index + 1:]
        self.last_result.center_of_gravity = self.compute_center_of_gravity(self.last_result.placed)
        self.renderer.update_center_of_gravity(self.last_result.center_of_gravity)
        return True

    def __repr__(self) -> str:
        return (
            f"LoadPlanner(container={self.container.name or 'custom'}, "
            f"sections={len(self.container.sections)})"
        )
