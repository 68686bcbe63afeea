"""
Free-space store for the container packer.

Algorithm overview:
    The store keeps a list of candidate empty cuboids ("free spaces").
    They are an over-approximation: free spaces may overlap each other and
    even partially overlap occupied volumes.  The authoritative record is
    the used-space list owned by the packing session; the placement search
    re-validates every candidate against it.

    After each placement every free space touching the placed cuboid is
    replaced by up to eight residual sub-spaces (split_space), then the
    whole list is cleaned:

    1. Drop slivers below ``min_free_volume``.
    2. Sort by volume (largest first) and keep ``max_free_spaces``.
    3. Drop spaces wholly inside a used cuboid.
    4. Keep at most ``max_merge_candidates``.
    5. Merge exact face-adjacent neighbours with identical cross-sections.

    The final list is sorted by volume again so that cleaning an already
    clean list changes nothing.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from loadplanner.config import PackerSettings
from loadplanner.core.geometry import Cuboid, is_inside
from loadplanner.core.models import Container


logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Splitting
# ─────────────────────────────────────────────────────────────────────────────

def spaces_overlap(space: Cuboid, placed: Cuboid) -> bool:
    """
    True when *placed* shares interior volume with *space*.

    A placed volume with missing dimensions is reported and treated as
    non-overlapping, so the free space is left untouched.
    """
    if placed is None or None in (placed.width, placed.depth, placed.height):
        logger.error("Occupied volume is missing dimensions: %r", placed)
        return False
    return not (
        space.x_max <= placed.x
        or placed.x_max <= space.x
        or space.y_max <= placed.y
        or placed.y_max <= space.y
        or space.z_max <= placed.z
        or placed.z_max <= space.z
    )


def split_space(
    space: Cuboid,
    placed: Cuboid,
    allow_stacking_on_top: bool,
) -> List[Cuboid]:
    """
    Residual free volumes of *space* around a newly placed cuboid.

    Emits, each only when its defining extent is strictly positive:
      - right of the placed cuboid, full space depth and height
      - ahead of it (front), ahead-left and ahead-right
      - on top of its footprint plus the right and front strips at its
        top level, only when stacking on top is allowed
      - left, behind and below it when the space started before it

    Args:
        space:                  The free cuboid being split.
        placed:                 The occupied cuboid.
        allow_stacking_on_top:  False for units that carry nothing.

    Returns:
        Sub-spaces in emission order (may overlap each other).
    """
    out: List[Cuboid] = []

    right_w = space.x_max - placed.x_max
    front_d = space.z_max - placed.z_max
    top_h = space.y_max - placed.y_max

    if right_w > 0:
        out.append(Cuboid(
            x=placed.x_max, y=space.y, z=space.z,
            width=right_w, depth=space.depth, height=space.height,
        ))

    if front_d > 0:
        out.append(Cuboid(
            x=placed.x, y=space.y, z=placed.z_max,
            width=placed.width, depth=front_d, height=space.height,
        ))
        if space.x < placed.x:
            out.append(Cuboid(
                x=space.x, y=space.y, z=placed.z_max,
                width=placed.x - space.x, depth=front_d, height=space.height,
            ))
        if right_w > 0:
            out.append(Cuboid(
                x=placed.x_max, y=space.y, z=placed.z_max,
                width=right_w, depth=front_d, height=space.height,
            ))

    if allow_stacking_on_top and top_h > 0:
        out.append(Cuboid(
            x=placed.x, y=placed.y_max, z=placed.z,
            width=placed.width, depth=placed.depth, height=top_h,
        ))
        if right_w > 0:
            out.append(Cuboid(
                x=placed.x_max, y=placed.y_max, z=space.z,
                width=right_w, depth=space.depth, height=top_h,
            ))
        if front_d > 0:
            out.append(Cuboid(
                x=space.x, y=placed.y_max, z=placed.z_max,
                width=space.width, depth=front_d, height=top_h,
            ))

    if space.x < placed.x:
        out.append(Cuboid(
            x=space.x, y=space.y, z=space.z,
            width=placed.x - space.x, depth=space.depth, height=space.height,
        ))

    if space.z < placed.z:
        out.append(Cuboid(
            x=space.x, y=space.y, z=space.z,
            width=space.width, depth=placed.z - space.z, height=space.height,
        ))

    if space.y < placed.y:
        out.append(Cuboid(
            x=space.x, y=space.y, z=space.z,
            width=space.width, depth=space.depth, height=placed.y - space.y,
        ))

    return out


# ─────────────────────────────────────────────────────────────────────────────
# Merging
# ─────────────────────────────────────────────────────────────────────────────

def can_merge(a: Cuboid, b: Cuboid) -> bool:
    """Exact face-adjacent neighbours sharing the other two extents."""
    if a.y == b.y and a.z == b.z and a.height == b.height and a.depth == b.depth:
        return a.x_max == b.x or b.x_max == a.x
    if a.x == b.x and a.z == b.z and a.width == b.width and a.depth == b.depth:
        return a.y_max == b.y or b.y_max == a.y
    if a.x == b.x and a.y == b.y and a.width == b.width and a.height == b.height:
        return a.z_max == b.z or b.z_max == a.z
    return False


def merge(a: Cuboid, b: Cuboid) -> Cuboid:
    """Bounding cuboid of two mergeable neighbours."""
    x = min(a.x, b.x)
    y = min(a.y, b.y)
    z = min(a.z, b.z)
    return Cuboid(
        x=x, y=y, z=z,
        width=max(a.x_max, b.x_max) - x,
        depth=max(a.z_max, b.z_max) - z,
        height=max(a.y_max, b.y_max) - y,
    )


def _merge_pass(spaces: Sequence[Cuboid], max_merges: int) -> tuple[List[Cuboid], bool]:
    merged: List[Cuboid] = []
    consumed = [False] * len(spaces)
    changed = False

    for i, space in enumerate(spaces):
        if consumed[i]:
            continue
        current = space
        count = 0
        for j in range(i + 1, len(spaces)):
            if count >= max_merges:
                break
            if consumed[j]:
                continue
            if can_merge(current, spaces[j]):
                current = merge(current, spaces[j])
                consumed[j] = True
                count += 1
                changed = True
        consumed[i] = True
        merged.append(current)

    return merged, changed


def merge_free_spaces(spaces: Sequence[Cuboid], settings: PackerSettings) -> List[Cuboid]:
    """
    Fuse neighbouring free spaces until no pair can be merged.

    Skipped entirely when the list is longer than
    ``settings.merge_input_limit``.
    """
    if len(spaces) > settings.merge_input_limit:
        return list(spaces)

    current = list(spaces)
    changed = True
    while changed:
        current, changed = _merge_pass(current, settings.max_merges_per_space)
    return current


# ─────────────────────────────────────────────────────────────────────────────
# Cleanup
# ─────────────────────────────────────────────────────────────────────────────

def cleanup_free_spaces(
    candidates: Iterable[Cuboid],
    used_space: Sequence[Cuboid],
    settings: PackerSettings,
) -> List[Cuboid]:
    """
    Prune, cap and merge a candidate free-space list.

    Args:
        candidates: Free spaces after splitting.
        used_space: Authoritative occupied volumes.
        settings:   Caps and thresholds.

    Returns:
        New list, largest volume first.
    """
    ranked = sorted(
        (s for s in candidates if s.volume >= settings.min_free_volume),
        key=lambda s: s.volume,
        reverse=True,
    )[: settings.max_free_spaces]

    kept = [
        s for s in ranked
        if not any(is_inside(s, used) for used in used_space)
    ][: settings.max_merge_candidates]

    merged = merge_free_spaces(kept, settings)
    return sorted(merged, key=lambda s: s.volume, reverse=True)


# ─────────────────────────────────────────────────────────────────────────────
# Store
# ─────────────────────────────────────────────────────────────────────────────

def seed_spaces(container: Container) -> List[Cuboid]:
    """Initial free spaces: the whole container plus the groove lane, if any."""
    spaces = [Cuboid(
        x=0.0, y=0.0, z=0.0,
        width=container.width, depth=container.depth, height=container.height,
    )]
    groove = container.groove
    if groove is not None:
        spaces.append(Cuboid(
            x=groove.start_offset,
            y=0.0,
            z=(container.depth - groove.width) / 2,
            width=groove.length,
            depth=groove.width,
            height=container.height,
            is_groove=True,
        ))
    return spaces


class FreeSpaceStore:
    """
    Candidate free volumes of one container.

    Every mutation replaces the internal list; ``query()`` hands out a
    tuple snapshot so callers never alias the store's state.
    """

    __slots__ = ("settings", "_spaces")

    def __init__(self, settings: Optional[PackerSettings] = None) -> None:
        self.settings: PackerSettings = settings or PackerSettings()
        self._spaces: List[Cuboid] = []

    def seed(self, container: Container) -> None:
        self._spaces = seed_spaces(container)

    def query(self) -> tuple[Cuboid, ...]:
        return tuple(self._spaces)

    def __len__(self) -> int:
        return len(self._spaces)

    def mark_occupied(self, occupied: Cuboid, used_space: Sequence[Cuboid]) -> None:
        """Split around a pre-existing volume; nothing may be stacked on it."""
        self._replace_overlapping(occupied, False, used_space)

    def apply(
        self,
        placed: Cuboid,
        max_stack: Optional[int],
        used_space: Sequence[Cuboid],
    ) -> None:
        """Split around a fresh placement; its stacking permission decides
        whether space above it is kept."""
        self._replace_overlapping(placed, max_stack != 0, used_space)

    def _replace_overlapping(
        self,
        placed: Cuboid,
        allow_stacking_on_top: bool,
        used_space: Sequence[Cuboid],
    ) -> None:
        candidates: List[Cuboid] = []
        for space in self._spaces:
            if spaces_overlap(space, placed):
                candidates.extend(split_space(space, placed, allow_stacking_on_top))
            else:
                candidates.append(space)
        self._spaces = cleanup_free_spaces(candidates, used_space, self.settings)
        logger.debug("free spaces after split: %d", len(self._spaces))

    def __repr__(self) -> str:
        return f"FreeSpaceStore(spaces={len(self._spaces)})"
