"""
Packing session for a single container (or one section of a vehicle).

A BinPacker owns the two collections of a run:

    used_space   — append-only list of occupied cuboids (authoritative)
    free spaces  — FreeSpaceStore of candidate volumes (non-authoritative)

Usage:
    packer = BinPacker(container)
    packer.mark_occupied(existing)                # optional pre-occupied volumes
    outcome = packer.pack_items(items, skip_reset=True)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from loadplanner.algorithms.free_space import FreeSpaceStore
from loadplanner.algorithms.placement import find_position
from loadplanner.config import PackerSettings
from loadplanner.core.geometry import Cuboid
from loadplanner.core.models import Container, PackedUnit, PackItem, PlacementResult


logger = logging.getLogger(__name__)


@dataclass
class PackOutcome:
    """Accepted and rejected pseudo-items of one session run, in input order."""
    packed: List[PackedUnit] = field(default_factory=list)
    unpacked: List[PackItem] = field(default_factory=list)


class BinPacker:
    """
    Greedy free-space packer for one container.

    Items are placed in the order received; there is no backtracking.
    """

    def __init__(self, container: Container, settings: Optional[PackerSettings] = None) -> None:
        self.container = container
        self.settings = settings or PackerSettings()
        self.used_space: List[Cuboid] = []
        self.free_spaces = FreeSpaceStore(self.settings)
        self.reset()

    def reset(self) -> None:
        """Forget all placements and re-seed the free spaces."""
        self.used_space = []
        self.free_spaces.seed(self.container)

    def mark_occupied(self, occupied: Iterable[Cuboid]) -> None:
        """
        Register volumes that are already taken, without resetting.

        Nothing is stacked on top of a pre-occupied volume.
        """
        for cuboid in occupied:
            self.used_space = self.used_space + [cuboid]
            self.free_spaces.mark_occupied(cuboid, self.used_space)

    def find_position(self, item: PackItem) -> Optional[PlacementResult]:
        return find_position(
            item, self.used_space, self.free_spaces.query(),
            self.container, self.settings,
        )

    def place(self, item: PackItem, position: PlacementResult) -> PackedUnit:
        """Commit a placement found by ``find_position``."""
        unit = PackedUnit(
            item=item, x=position.x, y=position.y, z=position.z,
            rotated=position.rotated,
        )
        bounds = unit.bounds
        self.used_space = self.used_space + [bounds]
        self.free_spaces.apply(bounds, item.max_stack, self.used_space)
        return unit

    def pack_items(self, items: Sequence[PackItem], skip_reset: bool = False) -> PackOutcome:
        """
        Place *items* in order.

        Args:
            items:       Pseudo-items, already ordered by the caller.
            skip_reset:  Keep the current used/free state (e.g. after
                         ``mark_occupied``).

        Returns:
            PackOutcome; a failed placement is not an error.
        """
        if not skip_reset:
            self.reset()

        outcome = PackOutcome()
        for item in items:
            position = self.find_position(item)
            if position is None:
                outcome.unpacked.append(item)
                continue
            outcome.packed.append(self.place(item, position))

        logger.debug(
            "packed %d / %d items (%d free spaces left)",
            len(outcome.packed), len(items), len(self.free_spaces),
        )
        return outcome

    def __repr__(self) -> str:
        return (
            f"BinPacker(container=({self.container.width}, {self.container.depth}, "
            f"{self.container.height}), used={len(self.used_space)}, "
            f"free={len(self.free_spaces)})"
        )
