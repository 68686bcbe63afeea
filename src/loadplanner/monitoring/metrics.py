"""Plan statistics and export for load plans.

Provides a dataclass summarising one packing run and utilities for
exporting the plan to JSON and CSV formats.
"""

from __future__ import annotations

import csv
import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Sequence

from loadplanner.core.models import Container, Item, PlanResult
from loadplanner.monitoring.axles import AxleReport


CSV_FIELDS = [
    "id", "type", "name", "group_id", "status", "section",
    "x", "y", "z", "width", "depth", "height", "weight", "rotated",
]


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PlanMetrics:
    """Statistics of one load plan.

    Attributes:
        plan_name: Identifier of the plan (manifest name).
        vehicle: Vehicle name, empty for ad-hoc containers.
        total_items: Items submitted to the run.
        placed_items: Items inside the vehicle.
        outside_items: Items left unpacked (no room or over payload).
        total_weight: Weight of all submitted items in kg.
        inside_weight: Weight of the placed items in kg.
        max_load: Payload limit of the vehicle (None if unlimited).
        weight_usage_pct: inside_weight / max_load (0-100), 0 when unlimited.
        volume_used: Volume of the placed items.
        volume_total: Packable volume of the vehicle.
        volume_usage_pct: volume_used / volume_total (0-100).
        stacks_placed: Number of stacks placed.
        stacks_unpacked: Stacks that found no position.
        stacks_overweight: Stacks dropped by the payload limit.
        center_of_gravity: Weighted centre of the placed items, or None.
        created_at: Timestamp of the statistics.
    """

    plan_name: str
    vehicle: str = ""
    total_items: int = 0
    placed_items: int = 0
    outside_items: int = 0
    total_weight: float = 0.0
    inside_weight: float = 0.0
    max_load: Optional[float] = None
    weight_usage_pct: float = 0.0
    volume_used: float = 0.0
    volume_total: float = 0.0
    volume_usage_pct: float = 0.0
    stacks_placed: int = 0
    stacks_unpacked: int = 0
    stacks_overweight: int = 0
    center_of_gravity: Optional[tuple[float, float, float]] = None
    created_at: datetime = field(default_factory=_now)

    @classmethod
    def from_plan(
        cls,
        items: Sequence[Item],
        result: PlanResult,
        container: Container,
        plan_name: str = "plan",
    ) -> "PlanMetrics":
        """Compute statistics of *result* for the submitted *items*.

        Example:
            >>> from loadplanner.core.models import Container, PlanResult
            >>> m = PlanMetrics.from_plan([], PlanResult(), Container(width=1, depth=1, height=1))
            >>> m.placed_items, m.center_of_gravity
            (0, None)
        """
        inside_weight = result.placed_weight
        volume_used = result.placed_volume
        volume_total = container.volume
        max_load = container.max_load

        return cls(
            plan_name=plan_name,
            vehicle=container.name,
            total_items=len(items),
            placed_items=len(result.placed),
            outside_items=len(result.unpacked),
            total_weight=round(sum(item.weight for item in items), 2),
            inside_weight=round(inside_weight, 2),
            max_load=max_load,
            weight_usage_pct=(inside_weight / max_load) * 100 if max_load else 0.0,
            volume_used=volume_used,
            volume_total=volume_total,
            volume_usage_pct=(volume_used / volume_total) * 100 if volume_total else 0.0,
            stacks_placed=len(result.placed_stacks),
            stacks_unpacked=len(result.unpacked_stacks),
            stacks_overweight=len(result.overweight_stacks),
            center_of_gravity=result.center_of_gravity,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with ISO timestamp."""
        d = asdict(self)
        d["created_at"] = self.created_at.isoformat()
        d["center_of_gravity"] = (
            list(self.center_of_gravity) if self.center_of_gravity else None
        )
        return d


def export_to_json(
    metrics: PlanMetrics,
    output_path: Path | str,
    result: PlanResult | None = None,
    axles: AxleReport | None = None,
) -> None:
    """Export plan statistics (and optionally the placements) to a JSON file.

    Args:
        metrics: PlanMetrics instance to export.
        output_path: Path to output JSON file.
        result: When given, its ``packed`` / ``unpacked`` lists are included.
        axles: When given, written under ``axles``.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data: dict[str, Any] = {"statistics": metrics.to_dict()}
    if result is not None:
        data.update(result.to_dict())
    if axles is not None:
        data["axles"] = axles.to_dict()

    with output_path.open("w") as f:
        json.dump(data, f, indent=2)


def export_to_csv(result: PlanResult, output_path: Path | str) -> None:
    """Export one row per item to a CSV file, placed items first.

    Unpacked items are written with status ``outside`` and empty positions.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with output_path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for p in result.placed:
            writer.writerow({
                "id": p.item.id,
                "type": p.item.type,
                "name": p.item.name,
                "group_id": p.item.group_id,
                "status": "placed",
                "section": "" if p.section is None else p.section,
                "x": round(p.x, 4),
                "y": round(p.y, 4),
                "z": round(p.z, 4),
                "width": p.width,
                "depth": p.depth,
                "height": p.height,
                "weight": p.item.weight,
                "rotated": p.rotated,
            })
        for item in result.unpacked:
            writer.writerow({
                "id": item.id,
                "type": item.type,
                "name": item.name,
                "group_id": item.group_id,
                "status": "outside",
                "width": item.width,
                "depth": item.depth,
                "height": item.height,
                "weight": item.weight,
            })


def print_summary(metrics: PlanMetrics) -> str:
    """Generate human-readable summary of a load plan.

    Args:
        metrics: PlanMetrics instance to summarize.

    Returns:
        Formatted multi-line summary string.
    """
    cog = metrics.center_of_gravity
    cog_str = f"({cog[0]:.2f}, {cog[1]:.2f}, {cog[2]:.2f})" if cog else "n/a"
    max_load = f"{metrics.max_load:.0f} kg" if metrics.max_load else "unlimited"

    lines = [
        "=" * 60,
        f"Plan: {metrics.plan_name}",
        f"Vehicle: {metrics.vehicle or 'custom'}",
        "=" * 60,
        f"Items: {metrics.placed_items}/{metrics.total_items} placed, "
        f"{metrics.outside_items} outside",
        f"Stacks: {metrics.stacks_placed} placed, {metrics.stacks_unpacked} without room, "
        f"{metrics.stacks_overweight} over payload",
        "",
        "Usage:",
        f"  Weight: {metrics.inside_weight:.2f} kg of {max_load} ({metrics.weight_usage_pct:.2f}%)",
        f"  Volume: {metrics.volume_used:.2f} of {metrics.volume_total:.2f} ({metrics.volume_usage_pct:.2f}%)",
        "",
        f"Centre of gravity: {cog_str}",
        "=" * 60,
    ]
    return "\n".join(lines)
