"""
Placement search: find the best legal position for one pseudo-item.

Generic path:
    For every free space and both horizontal orientations, test the fit
    (with tolerance), centre the item on any axis where it matches the
    space within tolerance, confirm the absolute bounds against the
    used-space list, and score the candidate.

Scoring (higher is better), over the free space origin:
    score = -y * weight_y       (floor first)
            - x * weight_x      (front to back of the vehicle)
            - z * weight_z      (one side to the other)
            - waste * weight_waste

    Ties keep the first candidate: free spaces in store order, unrotated
    before rotated.

Groove path:
    Fixed-diameter items in a grooved container are placed on the groove
    centreline only.  The start offset is pushed past every used volume
    blocking the lane until it stops moving; the item is accepted when its
    footprint ends within the groove and collides with nothing.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from loadplanner.config import PackerSettings
from loadplanner.core.geometry import Cuboid, boxes_overlap, fits_within
from loadplanner.core.models import Container, PackItem, PlacementResult


logger = logging.getLogger(__name__)


def can_place(
    x: float, y: float, z: float,
    width: float, depth: float, height: float,
    used_space: Sequence[Cuboid],
) -> bool:
    """True when the box collides with no used volume."""
    for used in used_space:
        if boxes_overlap(x, y, z, width, depth, height, used):
            return False
    return True


def calculate_waste(width: float, depth: float, height: float, space: Cuboid) -> float:
    """Free-space volume left over around the item."""
    return space.volume - width * depth * height


def find_position(
    item: PackItem,
    used_space: Sequence[Cuboid],
    free_spaces: Sequence[Cuboid],
    container: Container,
    settings: Optional[PackerSettings] = None,
) -> Optional[PlacementResult]:
    """
    Best legal position for *item*, or None.

    Args:
        item:         Pseudo-item to place.
        used_space:   Authoritative occupied volumes.
        free_spaces:  Candidate free volumes (snapshot of the store).
        container:    Container being packed (groove information).
        settings:     Tolerances and scoring weights.

    Returns:
        PlacementResult at the minimum corner of the item, or None when no
        free space / orientation admits a legal position.
    """
    settings = settings or PackerSettings()

    if not item.is_well_formed:
        logger.error("Item is missing dimensions, cannot place: %r", item)
        return None

    if item.fixed_diameter and container.groove is not None:
        return find_groove_position(item, used_space, container, settings)

    best: Optional[PlacementResult] = None
    best_score = -float("inf")
    tol = settings.tolerance

    orientations = (
        (item.width, item.depth, False),
        (item.depth, item.width, True),
    )

    for space in free_spaces:
        if not item.can_stack and space.y > settings.ground_tolerance:
            continue

        for width, depth, rotated in orientations:
            if not fits_within(width, depth, item.height, space, tol):
                continue

            x = space.x
            z = space.z
            if abs(width - space.width) <= tol:
                x = space.x + (space.width - width) / 2
            if abs(depth - space.depth) <= tol:
                z = space.z + (space.depth - depth) / 2

            if not can_place(x, space.y, z, width, depth, item.height, used_space):
                continue

            waste = calculate_waste(width, depth, item.height, space)
            score = (
                -space.y * settings.weight_y
                - space.x * settings.weight_x
                - space.z * settings.weight_z
                - waste * settings.weight_waste
            )
            if score > best_score:
                best_score = score
                best = PlacementResult(x=x, y=space.y, z=z, rotated=rotated)

    return best


def find_groove_position(
    item: PackItem,
    used_space: Sequence[Cuboid],
    container: Container,
    settings: Optional[PackerSettings] = None,
) -> Optional[PlacementResult]:
    """
    First free offset along the groove centreline.

    The item rests half-sunk in the groove (``y = -groove.depth / 2``)
    centred across the container depth, and is never rotated.  An item
    whose top would pass the container roof has no position.
    """
    settings = settings or PackerSettings()
    groove = container.groove
    groove_end = groove.end
    y = -groove.depth / 2
    z = container.depth / 2 - item.depth / 2
    if y + item.height > container.height + settings.tolerance:
        return None

    x = groove.start_offset
    moved = True
    while moved:
        moved = False
        for used in used_space:
            if not boxes_overlap(x, y, z, item.width, item.depth, item.height, used):
                continue
            if x < used.x_max <= groove_end:
                x = used.x_max
                moved = True

    if x + item.width > groove_end:
        return None
    if not can_place(x, y, z, item.width, item.depth, item.height, used_space):
        return None
    return PlacementResult(x=x, y=y, z=z, rotated=False)
