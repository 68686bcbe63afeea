"""Axle loads of a finished load plan.

The cargo weight is spread over the axle groups of the carrying vehicle by
a static moment balance:

- semi-trailer: cargo rests on the kingpin and the trailer axle group; the
  kingpin load is then shared by the tractor's front and drive axles;
- solo truck: cargo rests on the front and drive axles;
- jumbo: the first section loads the truck like a solo, the whole second
  section goes to the trailer axles.

Positions are measured along the loading axis from the cargo front, the
same frame as the plan's x coordinates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from loadplanner.core.geometry import Cuboid
from loadplanner.core.models import AxleSetup, Container, PlacedItem


logger = logging.getLogger(__name__)

WARNING_PCT = 90.0

# Axle offsets from the centre of a group, by number of axles.
DRIVE_SPREAD: dict[int, tuple[float, ...]] = {1: (0.0,), 2: (-0.675, 0.675)}
TRAILER_SPREAD: dict[int, tuple[float, ...]] = {
    1: (0.0,),
    2: (-0.655, 0.655),
    3: (-1.31, 0.0, 1.31),
}


def load_status(load: float, max_load: float) -> str:
    """Classify an axle load against its limit.

    Example:
        >>> load_status(9000, 10000), load_status(9500, 10000), load_status(10500, 10000)
        ('normal', 'warning', 'danger')
    """
    pct = load * 100 / max_load
    if pct > 100:
        return "danger"
    if pct > WARNING_PCT:
        return "warning"
    return "normal"


@dataclass
class AxleLoad:
    """Load of one axle group.

    Attributes:
        name: ``front``, ``drive`` or ``trailer``.
        empty: Tare resting on the group in kg.
        cargo: Cargo share in kg.
        max_load: Legal limit of the group in kg.
        axle_count: Axles in the group.
        positions: Axle positions from the cargo front in m.
    """

    name: str
    empty: float
    cargo: float
    max_load: float
    axle_count: int = 1
    positions: tuple[float, ...] = ()

    @property
    def total(self) -> float:
        return self.empty + self.cargo

    @property
    def usage_pct(self) -> float:
        return self.total * 100 / self.max_load

    @property
    def status(self) -> str:
        return load_status(self.total, self.max_load)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "load": round(self.total),
            "empty": self.empty,
            "cargo": round(self.cargo),
            "max": self.max_load,
            "usage_pct": round(self.usage_pct, 1),
            "status": self.status,
            "axle_count": self.axle_count,
            "positions": [round(p, 3) for p in self.positions],
        }


@dataclass
class AxleReport:
    """Axle loads of one plan.

    Attributes:
        layout: Load model used (``trailer``, ``solo``, ``jumbo``).
        groups: Axle groups, front to rear.
        cargo_weight: Weight of the cargo carried by the groups.
        min_drive_share: Lowest drive-axle share of the total weight, in %.
        kingpin_load: Cargo weight resting on the kingpin (trailer only).
        cargo_center: Weighted cargo position from the cargo front, or None
            without cargo.
    """

    layout: str
    groups: list[AxleLoad]
    cargo_weight: float = 0.0
    min_drive_share: float = 25.0
    kingpin_load: Optional[float] = None
    cargo_center: Optional[float] = None

    def group(self, name: str) -> AxleLoad:
        for g in self.groups:
            if g.name == name:
                return g
        raise KeyError(name)

    @property
    def total_weight(self) -> float:
        return sum(g.total for g in self.groups)

    @property
    def empty_weight(self) -> float:
        return sum(g.empty for g in self.groups)

    @property
    def drive_share(self) -> float:
        """Drive-axle load as a percentage of the total weight."""
        total = self.total_weight
        return self.group("drive").total * 100 / total if total > 0 else 0.0

    @property
    def drive_below_minimum(self) -> bool:
        return self.drive_share < self.min_drive_share

    @property
    def overloaded(self) -> bool:
        return any(g.status == "danger" for g in self.groups)

    def warnings(self) -> list[str]:
        messages = [
            f"{g.name} axles at {g.usage_pct:.1f}% of {g.max_load:.0f} kg"
            for g in self.groups
            if g.status != "normal"
        ]
        if self.drive_below_minimum:
            messages.append(
                f"drive axle share {self.drive_share:.1f}% is below the "
                f"{self.min_drive_share:.0f}% minimum"
            )
        return messages

    def to_dict(self) -> dict[str, Any]:
        return {
            "layout": self.layout,
            "groups": [g.to_dict() for g in self.groups],
            "cargo_weight": round(self.cargo_weight),
            "total_weight": round(self.total_weight),
            "empty_weight": round(self.empty_weight),
            "drive_share_pct": round(self.drive_share, 1),
            "kingpin_load": None if self.kingpin_load is None else round(self.kingpin_load),
            "cargo_center": None if self.cargo_center is None else round(self.cargo_center, 3),
            "warnings": self.warnings(),
        }


# ─────────────────────────────────────────────────────────────────────────────
# Load models
# ─────────────────────────────────────────────────────────────────────────────

def _loads(placed: Sequence[PlacedItem]) -> list[tuple[float, float]]:
    return [(p.center[0], p.item.weight) for p in placed]


def _cargo_center(loads: Sequence[tuple[float, float]]) -> Optional[float]:
    weight = sum(w for _, w in loads)
    if weight <= 0:
        return None
    return sum(x * w for x, w in loads) / weight


def _spread(center: float, offsets: tuple[float, ...]) -> tuple[float, ...]:
    return tuple(center + offset for offset in offsets)


def _truck_split(
    loads: Sequence[tuple[float, float]], to_front: float, to_drive: float
) -> tuple[float, float]:
    """Front and drive shares of cargo on a two-axle truck bed starting at x=0."""
    weight = sum(w for _, w in loads)
    if weight <= 0:
        return 0.0, 0.0
    moment = sum(w * (x + to_front) for x, w in loads)
    drive = moment / (to_front + to_drive)
    return weight - drive, drive


def calculate_trailer_axle_loads(placed: Sequence[PlacedItem], setup: AxleSetup) -> AxleReport:
    """Semi-trailer: moments about the kingpin."""
    loads = _loads(placed)
    kingpin = setup.front_to_kingpin
    weight = sum(w for _, w in loads)
    moment = sum(w * (x - kingpin) for x, w in loads)

    trailer_cargo = moment / setup.kingpin_to_trailer if weight > 0 else 0.0
    kingpin_load = weight - trailer_cargo
    base = setup.front_axle_to_kingpin + setup.kingpin_to_drive
    front_cargo = kingpin_load * setup.kingpin_to_drive / base
    drive_cargo = kingpin_load * setup.front_axle_to_kingpin / base

    groups = [
        AxleLoad("front", setup.empty_front, front_cargo, setup.max_front,
                 positions=(kingpin - setup.front_axle_to_kingpin,)),
        AxleLoad("drive", setup.empty_drive, drive_cargo, setup.max_drive, setup.drive_axles,
                 _spread(kingpin + setup.kingpin_to_drive, DRIVE_SPREAD[setup.drive_axles])),
        AxleLoad("trailer", setup.empty_trailer, trailer_cargo, setup.max_trailer, setup.trailer_axles,
                 _spread(kingpin + setup.kingpin_to_trailer, TRAILER_SPREAD[setup.trailer_axles])),
    ]
    return AxleReport(
        layout="trailer",
        groups=groups,
        cargo_weight=weight,
        min_drive_share=setup.min_drive_share,
        kingpin_load=kingpin_load,
        cargo_center=_cargo_center(loads),
    )


def calculate_solo_axle_loads(placed: Sequence[PlacedItem], setup: AxleSetup) -> AxleReport:
    """Rigid truck: moments about the front axle."""
    loads = _loads(placed)
    front_cargo, drive_cargo = _truck_split(loads, setup.cargo_start_to_front, setup.cargo_start_to_drive)

    groups = [
        AxleLoad("front", setup.empty_front, front_cargo, setup.max_front,
                 positions=(-setup.cargo_start_to_front,)),
        AxleLoad("drive", setup.empty_drive, drive_cargo, setup.max_drive, setup.drive_axles,
                 _spread(setup.cargo_start_to_drive, DRIVE_SPREAD[setup.drive_axles])),
    ]
    return AxleReport(
        layout="solo",
        groups=groups,
        cargo_weight=sum(w for _, w in loads),
        min_drive_share=setup.min_drive_share,
        cargo_center=_cargo_center(loads),
    )


def calculate_jumbo_axle_loads(
    placed: Sequence[PlacedItem],
    setup: AxleSetup,
    sections: Sequence[Cuboid],
) -> AxleReport:
    """
    Truck and trailer combination.

    Args:
        placed:    Placed items in vehicle coordinates.
        setup:     Axle geometry of the combination.
        sections:  Truck and trailer regions, as returned by
                   ``Container.section_bounds``.
    """
    truck, trailer = sections
    truck_loads: list[tuple[float, float]] = []
    trailer_weight = 0.0
    counted: list[tuple[float, float]] = []

    for x, w in _loads(placed):
        if truck.x <= x <= truck.x_max:
            truck_loads.append((x - truck.x, w))
        elif trailer.x <= x <= trailer.x_max:
            trailer_weight += w
        else:
            logger.warning("Item centred at x=%.3f lies between the sections; ignored", x)
            continue
        counted.append((x, w))

    front_cargo, drive_cargo = _truck_split(
        truck_loads, setup.cargo_start_to_front, setup.cargo_start_to_drive
    )

    groups = [
        AxleLoad("front", setup.empty_front, front_cargo, setup.max_front,
                 positions=(truck.x - setup.cargo_start_to_front,)),
        AxleLoad("drive", setup.empty_drive, drive_cargo, setup.max_drive, setup.drive_axles,
                 _spread(truck.x + setup.cargo_start_to_drive, DRIVE_SPREAD[setup.drive_axles])),
        AxleLoad("trailer", setup.empty_trailer, trailer_weight, setup.max_trailer, setup.trailer_axles,
                 _spread(trailer.x + setup.section2_start_to_trailer, TRAILER_SPREAD[setup.trailer_axles])),
    ]
    return AxleReport(
        layout="jumbo",
        groups=groups,
        cargo_weight=sum(w for _, w in counted),
        min_drive_share=setup.min_drive_share,
        cargo_center=_cargo_center(counted),
    )


def calculate_axle_loads(
    placed: Sequence[PlacedItem],
    container: Container,
    section_gap: float = 0.5,
) -> Optional[AxleReport]:
    """
    Axle loads of *placed* on the vehicle carrying *container*.

    Returns:
        The report, or None when the container has no axle setup.
    """
    setup = container.axles
    if setup is None:
        return None

    if setup.layout == "solo":
        report = calculate_solo_axle_loads(placed, setup)
    elif setup.layout == "jumbo":
        report = calculate_jumbo_axle_loads(placed, setup, container.section_bounds(section_gap))
    else:
        report = calculate_trailer_axle_loads(placed, setup)

    for message in report.warnings():
        logger.info("%s: %s", container.name or "custom", message)
    return report


def format_axle_report(report: AxleReport) -> str:
    """Human-readable axle table."""
    lines = [f"Axle loads ({report.layout}):"]
    for g in report.groups:
        lines.append(
            f"  {g.name:<8} {g.total:>7.0f} / {g.max_load:.0f} kg "
            f"({g.usage_pct:5.1f}%) {g.status}"
        )
    lines.append(
        f"  Drive share: {report.drive_share:.1f}% (min {report.min_drive_share:.0f}%)"
    )
    lines.extend(f"  ! {message}" for message in report.warnings())
    return "\n".join(lines)
