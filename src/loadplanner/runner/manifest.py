"""
Cargo manifest — the ordered list of items to be loaded.

Items are created from the unit catalog with per-entry overrides.  Each
new item joins the previous item's group when their identities match
(type, name, weight, stacking limits, handling methods, dimensions), so a
group is always a contiguous run of additions.

Manifest file format (YAML):

    name: plan-42
    vehicle: mega
    items:
      - {type: eur-pallet, count: 12, weight: 400}
      - {type: custom, name: Crate, width: 1.0, depth: 1.0, height: 0.9, count: 2}
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from loadplanner.config import ConfigError, UnitType, read_yaml, load_unit_catalog
from loadplanner.core.models import Item


logger = logging.getLogger(__name__)


class CargoManifest:
    """
    Insertion-ordered item list with group bookkeeping.

    Usage:
        manifest = CargoManifest()
        manifest.add_unit("eur-pallet", count=10)
        manifest.add_unit("ibc", count=2, weight=900)
        planner.pack(manifest.items)
    """

    def __init__(
        self,
        catalog: Optional[dict[str, UnitType]] = None,
        name: str = "plan",
        vehicle: Optional[str] = None,
    ) -> None:
        self.catalog = catalog if catalog is not None else load_unit_catalog()
        self.name = name
        self.vehicle = vehicle
        self._items: List[Item] = []
        self._next_group = 1

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def items(self) -> tuple[Item, ...]:
        return tuple(self._items)

    @property
    def total_weight(self) -> float:
        return sum(item.weight for item in self._items)

    def group(self, group_id: int) -> List[Item]:
        return [item for item in self._items if item.group_id == group_id]

    @property
    def group_ids(self) -> List[int]:
        seen: List[int] = []
        for item in self._items:
            if item.group_id not in seen:
                seen.append(item.group_id)
        return seen

    def __len__(self) -> int:
        return len(self._items)

    # ── Mutation ─────────────────────────────────────────────────────────

    def add_unit(self, unit_type: str, count: int = 1, **overrides: Any) -> List[Item]:
        """
        Append *count* items of a catalog unit type.

        Args:
            unit_type:  Catalog key, or ``"custom"`` with explicit dimensions.
            count:      Number of identical items.
            overrides:  Item fields replacing the catalog defaults.

        Raises:
            ConfigError: unknown unit type or invalid override.
        """
        fields = self._defaults(unit_type)
        fields.update(overrides)
        added = []
        for _ in range(count):
            added.append(self.add_item(**fields))
        return added

    def add_item(self, **fields: Any) -> Item:
        """Append one item built from explicit fields."""
        fields.pop("group_id", None)
        fields.pop("order_index", None)
        try:
            candidate = Item(**fields)
        except ValidationError as exc:
            raise ConfigError(f"Invalid item {fields.get('type', 'custom')}: {exc}") from exc

        last = self._items[-1] if self._items else None
        if last is not None and last.identity() == candidate.identity():
            group_id = last.group_id
        else:
            group_id = self._next_group
            self._next_group += 1

        item = candidate.model_copy(update={
            "group_id": group_id,
            "order_index": len(self._items),
        })
        self._items.append(item)
        return item

    def remove(self, item_id: str) -> bool:
        """Drop one item by id; later items keep their group."""
        for index, item in enumerate(self._items):
            if item.id == item_id:
                del self._items[index]
                return True
        return False

    def clear(self) -> None:
        self._items = []

    def _defaults(self, unit_type: str) -> dict[str, Any]:
        if unit_type == "custom":
            return {"type": "custom", "name": "Custom"}
        unit = self.catalog.get(unit_type)
        if unit is None:
            raise ConfigError(
                f"Unknown unit type: {unit_type}. Available: {sorted(self.catalog)}"
            )
        return {
            "type": unit_type,
            "name": unit.name,
            "width": unit.width,
            "depth": unit.depth,
            "height": unit.height,
            "weight": unit.default_weight,
            "max_stack": unit.max_stack,
            "max_stack_weight": unit.max_stack_weight,
            "loading_methods": unit.loading_methods,
            "unloading_methods": unit.unloading_methods,
            "is_roll": unit.is_roll,
            "is_vertical_roll": unit.is_vertical_roll,
            "fixed_diameter": unit.fixed_diameter,
        }

    def __repr__(self) -> str:
        return (
            f"CargoManifest(name={self.name!r}, items={len(self._items)}, "
            f"groups={len(self.group_ids)})"
        )


def load_manifest(
    path: Path | str,
    catalog: Optional[dict[str, UnitType]] = None,
) -> CargoManifest:
    """
    Read a manifest YAML file.

    Raises:
        ConfigError: unreadable file, bad structure or unknown unit type.
    """
    data = read_yaml(path) or {}
    if not isinstance(data, dict) or not isinstance(data.get("items", []), list):
        raise ConfigError(f"{path}: expected a mapping with an 'items' list")

    manifest = CargoManifest(
        catalog=catalog,
        name=str(data.get("name") or Path(path).stem),
        vehicle=data.get("vehicle"),
    )
    for entry in _entries(data.get("items", []), path):
        entry = dict(entry)
        unit_type = entry.pop("type", "custom")
        count = entry.pop("count", 1)
        manifest.add_unit(unit_type, count=count, **entry)

    logger.debug("loaded manifest %s: %d items", manifest.name, len(manifest))
    return manifest


def _entries(raw: Iterable[Any], path: Path | str) -> Iterable[dict]:
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ConfigError(f"{path}: item #{index} is not a mapping")
        yield entry
