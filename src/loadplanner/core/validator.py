"""
Layout validator: stateless checks on a finished load plan.

All checks take the placed items and the vehicle, returning True or
raising a PlacementError subclass on the first violation.

Checks:
  1. Bounds   — every item lies inside the region of its section (or the
                whole container).  Fixed-diameter items in a grooved
                container may sink into the groove lane below the floor.
  2. Overlap  — no two items share interior volume (vectorised pairwise
                test over all boxes).
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from loadplanner.core.geometry import Cuboid
from loadplanner.core.models import Container, PlacedItem


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────

class PlacementError(Exception):
    """Base class for layout validation errors."""


class OutOfBoundsError(PlacementError):
    """Item extends outside its container or section."""


class OverlapError(PlacementError):
    """Two placed items share interior volume."""


# Slack for float drift on shared faces.
EPSILON = 1e-9


# ─────────────────────────────────────────────────────────────────────────────
# Checks
# ─────────────────────────────────────────────────────────────────────────────

def _groove_lane(container: Container) -> Optional[Cuboid]:
    groove = container.groove
    if groove is None:
        return None
    return Cuboid(
        x=groove.start_offset,
        y=-groove.depth,
        z=(container.depth - groove.width) / 2,
        width=groove.length,
        depth=groove.width,
        height=container.height + groove.depth,
    )


def check_bounds(
    placed: Sequence[PlacedItem],
    container: Container,
    section_gap: float = 0.5,
    tolerance: float = 0.005,
) -> bool:
    """
    Raise OutOfBoundsError for the first item outside its region.

    Groove items are checked against the region too, except that their
    bottom may reach ``-groove.depth`` while the item starts inside the
    groove lane along x.
    """
    regions = container.section_bounds(section_gap)
    lane = _groove_lane(container)
    slack = tolerance + EPSILON

    for p in placed:
        region = regions[p.section] if p.section is not None else regions[0]
        floor = region.y
        if lane is not None and p.item.fixed_diameter:
            if p.x < lane.x - slack or p.x + p.width > lane.x_max + slack:
                raise OutOfBoundsError(
                    f"Item {p.item.id} leaves the groove lane: "
                    f"x={p.x:.3f}..{p.x + p.width:.3f}, "
                    f"lane {lane.x:.3f}..{lane.x_max:.3f}"
                )
            floor = lane.y

        if (
            p.x < region.x - slack
            or p.y < floor - slack
            or p.z < region.z - slack
            or p.x + p.width > region.x_max + slack
            or p.y + p.height > region.y_max + slack
            or p.z + p.depth > region.z_max + slack
        ):
            raise OutOfBoundsError(
                f"Item {p.item.id} at ({p.x:.3f}, {p.y:.3f}, {p.z:.3f}) "
                f"size ({p.width:.3f}, {p.depth:.3f}, {p.height:.3f}) "
                f"exceeds {region!r}"
            )
    return True


def check_overlaps(placed: Sequence[PlacedItem]) -> bool:
    """Raise OverlapError for the first pair of items sharing volume."""
    n = len(placed)
    if n < 2:
        return True

    lo = np.array([[p.x, p.y, p.z] for p in placed], dtype=float)
    hi = lo + np.array([[p.width, p.height, p.depth] for p in placed], dtype=float)

    # (n, n, 3): interval intersection length per axis for every pair
    inter = (
        np.minimum(hi[:, None, :], hi[None, :, :])
        - np.maximum(lo[:, None, :], lo[None, :, :])
    )
    clash = np.all(inter > EPSILON, axis=2)
    np.fill_diagonal(clash, False)

    pairs = np.argwhere(np.triu(clash))
    if len(pairs):
        i, j = pairs[0]
        raise OverlapError(
            f"Items {placed[i].item.id} and {placed[j].item.id} overlap"
        )
    return True


def validate_layout(
    placed: Sequence[PlacedItem],
    container: Container,
    section_gap: float = 0.5,
    tolerance: float = 0.005,
) -> bool:
    """
    Validate a complete layout.

    Raises:
        OutOfBoundsError: an item leaves its container, section or groove lane.
        OverlapError:     two items share interior volume.
    """
    check_bounds(placed, container, section_gap, tolerance)
    check_overlaps(placed)
    return True
