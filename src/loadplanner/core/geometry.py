"""
Axis-aligned cuboid geometry shared by the free-space store and the
placement search.

Axis convention (container frame):
    x — along the container width (loading axis)
    y — vertical, along the container height
    z — across the container depth

A Cuboid is described by its minimum corner (x, y, z) and its extent
(width, depth, height).  Free and occupied volumes use the same type;
occupied volumes additionally carry role flags that downstream renderers
care about but the geometry ignores.
"""

from dataclasses import dataclass, replace
from typing import Optional


# ─────────────────────────────────────────────────────────────────────────────
# Cuboid
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Cuboid:
    """
    An axis-aligned box volume inside a container.

    Attributes:
        x, y, z:            Minimum corner.
        width:              Extent along x.
        depth:              Extent along z.
        height:             Extent along y.
        is_roll / is_vertical_roll / is_horizontal_roll:
                            Role flags of an occupied volume (opaque).
        is_groove:          Marks the seeded free space of a container groove.
    """
    x: float
    y: float
    z: float
    width: float
    depth: float
    height: float
    is_roll: bool = False
    is_vertical_roll: bool = False
    is_horizontal_roll: bool = False
    is_groove: bool = False

    @property
    def volume(self) -> float:
        return self.width * self.depth * self.height

    @property
    def x_max(self) -> float:
        return self.x + self.width

    @property
    def y_max(self) -> float:
        return self.y + self.height

    @property
    def z_max(self) -> float:
        return self.z + self.depth

    def translated(self, dx: float = 0.0, dy: float = 0.0, dz: float = 0.0) -> "Cuboid":
        """Copy of this cuboid shifted by (dx, dy, dz)."""
        return replace(self, x=self.x + dx, y=self.y + dy, z=self.z + dz)

    def __repr__(self) -> str:
        return (
            f"Cuboid(origin=({self.x:.3f},{self.y:.3f},{self.z:.3f}), "
            f"size=({self.width:.3f},{self.depth:.3f},{self.height:.3f}))"
        )


# ─────────────────────────────────────────────────────────────────────────────
# Predicates
# ─────────────────────────────────────────────────────────────────────────────

def boxes_overlap(
    x: float, y: float, z: float,
    width: float, depth: float, height: float,
    other: Cuboid,
) -> bool:
    """
    True when the box at (x, y, z) with the given extent shares interior
    volume with *other*.  Touching faces do not count as overlap.
    """
    return not (
        x + width <= other.x
        or x >= other.x_max
        or y + height <= other.y
        or y >= other.y_max
        or z + depth <= other.z
        or z >= other.z_max
    )


def is_inside(inner: Cuboid, outer: Cuboid) -> bool:
    """True when *inner* lies wholly within *outer* (faces may coincide)."""
    return (
        inner.x >= outer.x
        and inner.y >= outer.y
        and inner.z >= outer.z
        and inner.x_max <= outer.x_max
        and inner.y_max <= outer.y_max
        and inner.z_max <= outer.z_max
    )


def fits_within(
    width: float, depth: float, height: float,
    space: Cuboid,
    tolerance: float,
) -> bool:
    """Dimension-wise fit test with a tolerance for accumulated drift."""
    return (
        width <= space.width + tolerance
        and depth <= space.depth + tolerance
        and height <= space.height + tolerance
    )


def dimensions_known(
    width: Optional[float], depth: Optional[float], height: Optional[float],
) -> bool:
    """All three extents are present."""
    return width is not None and depth is not None and height is not None
