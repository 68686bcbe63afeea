"""
Stack builder: reduce an ordered item list to bounded vertical stacks.

Pipeline:
    group_items   — contiguous runs of identical items (or explicit group ids)
    sort_groups   — first-in-first-out, heavier group first on ties
    build_stacks  — grow stacks inside each group until a bound is hit

A stack of ``n`` units is legal when
    n <= 1 + max_stack
    n * unit_height <= container_height
    (n - 1) * unit_weight <= max_stack_weight
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Hashable, List, Sequence

from loadplanner.core.models import Item, Stack


logger = logging.getLogger(__name__)

# Float slack on the container-height bound (0.9 * 3 > 2.7 in binary).
HEIGHT_EPSILON = 1e-9


@dataclass(frozen=True)
class ItemGroup:
    """Items that share one identity; ``first_order`` is the FIFO key."""
    items: tuple[Item, ...]
    first_order: int

    @property
    def unit(self) -> Item:
        return self.items[0]

    @property
    def weight(self) -> float:
        return self.unit.weight


def group_items(items: Sequence[Item]) -> List[ItemGroup]:
    """
    Partition *items* into groups, preserving insertion order inside each.

    An explicit ``group_id`` always wins and may gather non-adjacent items.
    Items without one form groups from contiguous runs of equal
    ``identity()``; a change of any defining attribute starts a new group
    even when the type is unchanged.
    """
    members: dict[Hashable, list[Item]] = {}
    first_order: dict[Hashable, int] = {}

    run = 0
    previous: Item | None = None
    for position, item in enumerate(items):
        if item.group_id is not None:
            key: Hashable = ("group", item.group_id)
        else:
            if (
                previous is None
                or previous.group_id is not None
                or previous.identity() != item.identity()
            ):
                run += 1
            key = ("run", run)
        previous = item

        order = item.order_index if item.order_index is not None else position
        members.setdefault(key, []).append(item)
        first_order[key] = min(first_order.get(key, order), order)

    return [
        ItemGroup(items=tuple(group), first_order=first_order[key])
        for key, group in members.items()
    ]


def sort_groups(groups: Sequence[ItemGroup]) -> List[ItemGroup]:
    """Earliest-inserted group first; ties broken by descending unit weight."""
    return sorted(groups, key=lambda g: (g.first_order, -g.weight))


def stack_group(group: ItemGroup, container_height: float) -> List[Stack]:
    """Split one group into stacks, closing a stack whenever a bound would break."""
    unit = group.unit

    if not unit.can_stack:
        return [Stack((item,)) for item in group.items]

    limit = unit.stack_limit
    weight_limit = unit.stack_weight_limit
    unit_height = unit.height
    unit_weight = unit.weight

    stacks: List[Stack] = []
    current: List[Item] = []
    weight_above = 0.0

    for item in group.items:
        potential_height = (len(current) + 1) * unit_height
        potential_above = weight_above + unit_weight if current else 0.0

        if (
            len(current) < limit
            and potential_height <= container_height + HEIGHT_EPSILON
            and potential_above <= weight_limit
        ):
            current.append(item)
            weight_above = potential_above
            continue

        if current:
            stacks.append(Stack(tuple(current)))
        current = [item]
        weight_above = 0.0

    if current:
        stacks.append(Stack(tuple(current)))
    return stacks


def build_stacks(items: Sequence[Item], container_height: float) -> List[Stack]:
    """
    Group, order and stack *items* for one packing run.

    Args:
        items:             Items in insertion order.
        container_height:  Interior height of the (section) container.

    Returns:
        Stacks in packing order.  Items with missing dimensions come back as
        singleton stacks so the packer can report them unpacked.
    """
    stacks: List[Stack] = []
    for group in sort_groups(group_items(items)):
        malformed = [item for item in group.items if not item.is_well_formed]
        for item in malformed:
            logger.error("Item %s is missing dimensions; it will not be stacked", item.id)
            stacks.append(Stack((item,)))

        well_formed = tuple(item for item in group.items if item.is_well_formed)
        if well_formed:
            stacks.extend(stack_group(
                ItemGroup(items=well_formed, first_order=group.first_order),
                container_height,
            ))

    logger.debug("built %d stacks from %d items", len(stacks), len(items))
    return stacks
