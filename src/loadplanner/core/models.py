"""Core data models for cargo load planning.

Input-facing records (containers, items) are validated pydantic models so
that default-resolution rules live in one place.  Everything produced by
the packer is a plain dataclass.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from loadplanner.core.geometry import Cuboid, dimensions_known


DEFAULT_METHODS: tuple[str, ...] = ("rear", "side", "top")

# Legal load of an axle group by number of axles, in kg.
DRIVE_AXLE_LIMITS: dict[int, float] = {1: 11500.0, 2: 19000.0}
TRAILER_AXLE_LIMITS: dict[int, float] = {0: 0.0, 1: 10000.0, 2: 18000.0, 3: 24000.0}

_LAYOUT_DEFAULTS: dict[str, dict[str, Any]] = {
    "trailer": {"trailer_axles": 3, "empty_trailer": 5200.0},
    "jumbo": {"trailer_axles": 2, "empty_trailer": 4200.0},
    "solo": {"trailer_axles": 0, "empty_trailer": 0.0},
}


# ─────────────────────────────────────────────────────────────────────────────
# Container
# ─────────────────────────────────────────────────────────────────────────────

class Groove(BaseModel):
    """Cavity reserved for fixed-diameter (coil) items.

    Attributes:
        width: Extent across the container depth.
        depth: How far the groove is sunk below the floor.
        length: Extent along the container width.
        start_offset: Distance from the container front to the groove start.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    width: float = Field(ge=0)
    depth: float = Field(ge=0)
    length: float = Field(ge=0)
    start_offset: float = Field(default=0.0, ge=0)

    @property
    def end(self) -> float:
        return self.start_offset + self.length


class Section(BaseModel):
    """One compartment of a multi-section vehicle."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    length: float = Field(gt=0)
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class AxleSetup(BaseModel):
    """Axle geometry and tare of the vehicle carrying a container.

    Distances are in metres along the loading axis, weights in kg.  The
    ``layout`` picks the load model:

    - ``trailer``: semi-trailer on a tractor; cargo rests on the kingpin
      and the trailer axle group, the kingpin load is shared by the
      tractor's front and drive axles.
    - ``solo``: rigid truck; cargo rests on the front and drive axles.
    - ``jumbo``: truck (first section) pulling a trailer (second section)
      whose whole load goes to the trailer axles.

    ``trailer_axles`` and ``empty_trailer`` default per layout.

    Attributes:
        front_to_kingpin: Cargo front to kingpin (trailer).
        kingpin_to_trailer: Kingpin to centre of the trailer axle group.
        front_axle_to_kingpin: Tractor front axle to kingpin.
        kingpin_to_drive: Kingpin to centre of the drive axles.
        cargo_start_to_front: Front axle ahead of the cargo start
            (solo, first jumbo section).
        cargo_start_to_drive: Cargo start to centre of the drive axles
            (solo, first jumbo section).
        section2_start_to_trailer: Second jumbo section start to centre of
            its axle group.
        min_drive_share: Lowest drive-axle share of the total weight, in %.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    layout: Literal["trailer", "solo", "jumbo"] = "trailer"
    drive_axles: int = Field(default=1, ge=1, le=2)
    trailer_axles: int = Field(default=3, ge=0, le=3)

    front_to_kingpin: float = Field(default=1.7, ge=1.0, le=2.15)
    kingpin_to_trailer: float = Field(default=7.7, ge=6.5, le=9.0)
    front_axle_to_kingpin: float = Field(default=3.1, ge=2.5, le=4.0)
    kingpin_to_drive: float = Field(default=0.5, ge=0.2, le=1.5)
    cargo_start_to_front: float = Field(default=1.0, ge=0.5, le=2.5)
    cargo_start_to_drive: float = Field(default=5.5, ge=3.0, le=7.5)
    section2_start_to_trailer: float = Field(default=5.5, ge=3.0, le=7.5)

    empty_front: float = Field(default=5800.0, ge=0)
    empty_drive: float = Field(default=3600.0, ge=0)
    empty_trailer: float = Field(default=5200.0, ge=0)
    max_front: float = Field(default=10000.0, gt=0)
    min_drive_share: float = Field(default=25.0, ge=0, le=100)

    @model_validator(mode="before")
    @classmethod
    def _layout_defaults(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = {**_LAYOUT_DEFAULTS.get(data.get("layout", "trailer"), {}), **data}
        return data

    @model_validator(mode="after")
    def _trailer_axles_match_layout(self) -> "AxleSetup":
        if self.layout == "solo" and self.trailer_axles:
            raise ValueError("a solo truck has no trailer axles")
        if self.layout != "solo" and not self.trailer_axles:
            raise ValueError(f"a {self.layout} layout needs trailer axles")
        return self

    @property
    def max_drive(self) -> float:
        return DRIVE_AXLE_LIMITS[self.drive_axles]

    @property
    def max_trailer(self) -> float:
        return TRAILER_AXLE_LIMITS[self.trailer_axles]


class Container(BaseModel):
    """Cargo space of a vehicle.

    ``width`` runs along the loading axis (x), ``depth`` across it (z) and
    ``height`` is vertical (y).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    width: float = Field(gt=0)
    depth: float = Field(gt=0)
    height: float = Field(gt=0)
    groove: Optional[Groove] = None
    sections: tuple[Section, ...] = ()
    max_load: Optional[float] = Field(default=None, gt=0)
    floor_height: float = Field(default=0.0, ge=0)
    name: str = ""
    axles: Optional[AxleSetup] = None

    @model_validator(mode="after")
    def _groove_within_bounds(self) -> "Container":
        if self.groove is not None:
            if self.groove.width > self.depth:
                raise ValueError(
                    f"groove width {self.groove.width} exceeds container depth {self.depth}"
                )
            if self.groove.end > self.width + 1e-9:
                raise ValueError(
                    f"groove ends at {self.groove.end}, beyond container width {self.width}"
                )
        return self

    @model_validator(mode="after")
    def _jumbo_has_two_sections(self) -> "Container":
        if self.axles is not None and self.axles.layout == "jumbo" and len(self.sections) != 2:
            raise ValueError("a jumbo axle layout needs exactly two sections")
        return self

    @property
    def volume(self) -> float:
        if self.sections:
            return sum(s.length * s.width * s.height for s in self.sections)
        return self.width * self.depth * self.height

    @property
    def has_groove(self) -> bool:
        return self.groove is not None

    def section_containers(self) -> list["Container"]:
        """One plain container per section, in loading order."""
        return [
            Container(width=s.length, depth=s.width, height=s.height)
            for s in self.sections
        ]

    def section_bounds(self, gap: float) -> list[Cuboid]:
        """
        Packable region of each section in vehicle coordinates.

        Sections are laid out left to right from x=0 with *gap* between
        consecutive ones.  A vehicle without sections has one region, the
        whole container.
        """
        if not self.sections:
            return [Cuboid(0.0, 0.0, 0.0, self.width, self.depth, self.height)]

        bounds = []
        offset = 0.0
        for index, s in enumerate(self.sections):
            if index > 0:
                offset += gap
            bounds.append(Cuboid(offset, 0.0, 0.0, s.length, s.width, s.height))
            offset += s.length
        return bounds


# ─────────────────────────────────────────────────────────────────────────────
# Item
# ─────────────────────────────────────────────────────────────────────────────

def _new_item_id() -> str:
    return uuid.uuid4().hex[:12]


class Item(BaseModel):
    """A single cargo unit as supplied by the caller.

    Missing dimensions are allowed so that malformed input can be reported
    and left unpacked instead of aborting a run.

    ``max_stack`` is the number of units that may sit on top of this one:
    ``0`` forbids stacking, ``None`` means unlimited.  ``max_stack_weight``
    is the weight the unit can bear, ``None`` meaning unlimited.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(default_factory=_new_item_id)
    type: str = "custom"
    name: str = ""
    width: Optional[float] = None
    depth: Optional[float] = None
    height: Optional[float] = None
    weight: float = Field(default=100.0, ge=0)
    max_stack: Optional[int] = Field(default=None, ge=0)
    max_stack_weight: Optional[float] = Field(default=None, ge=0)
    fixed_diameter: bool = False
    is_roll: bool = False
    is_vertical_roll: bool = False
    is_horizontal_roll: bool = False
    loading_methods: tuple[str, ...] = DEFAULT_METHODS
    unloading_methods: tuple[str, ...] = DEFAULT_METHODS
    order_index: Optional[int] = None
    group_id: Optional[int] = None
    group_key: Optional[str] = None

    @field_validator("width", "depth", "height")
    @classmethod
    def _positive_dimension(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("dimensions must be positive")
        return v

    @property
    def is_well_formed(self) -> bool:
        return dimensions_known(self.width, self.depth, self.height)

    @property
    def can_stack(self) -> bool:
        return self.max_stack != 0

    @property
    def stack_limit(self) -> float:
        """Maximum number of units in a stack built on this unit."""
        return math.inf if self.max_stack is None else 1 + self.max_stack

    @property
    def stack_weight_limit(self) -> float:
        return math.inf if self.max_stack_weight is None else self.max_stack_weight

    @property
    def volume(self) -> float:
        if not self.is_well_formed:
            return 0.0
        return self.width * self.depth * self.height

    def identity(self) -> tuple:
        """Attributes two contiguous items must share to belong to one group."""
        if self.group_key is not None:
            return ("key", self.group_key)
        return (
            self.type, self.name, self.weight, self.max_stack,
            self.max_stack_weight, self.loading_methods, self.unloading_methods,
            self.width, self.depth, self.height,
        )


# ─────────────────────────────────────────────────────────────────────────────
# Stacks and pseudo-items
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PackItem:
    """
    What the placement search sees: a single rigid cuboid.

    ``payload`` carries the caller's object (normally a Stack) through the
    packer untouched.
    """
    width: Optional[float]
    depth: Optional[float]
    height: Optional[float]
    weight: float = 0.0
    max_stack: Optional[int] = None
    fixed_diameter: bool = False
    is_roll: bool = False
    is_vertical_roll: bool = False
    is_horizontal_roll: bool = False
    payload: Any = field(default=None, compare=False, repr=False)

    @property
    def is_well_formed(self) -> bool:
        return dimensions_known(self.width, self.depth, self.height)

    @property
    def can_stack(self) -> bool:
        return self.max_stack != 0


@dataclass(frozen=True)
class Stack:
    """Ordered same-group items treated as one rigid unit; ``items[0]`` is the base."""
    items: tuple[Item, ...]

    @property
    def unit(self) -> Item:
        return self.items[0]

    @property
    def size(self) -> int:
        return len(self.items)

    @property
    def height(self) -> Optional[float]:
        if self.unit.height is None:
            return None
        return self.unit.height * self.size

    @property
    def weight(self) -> float:
        return self.unit.weight * self.size

    def to_pack_item(self) -> PackItem:
        unit = self.unit
        return PackItem(
            width=unit.width,
            depth=unit.depth,
            height=self.height,
            weight=self.weight,
            max_stack=unit.max_stack,
            fixed_diameter=unit.fixed_diameter,
            is_roll=unit.is_roll,
            is_vertical_roll=unit.is_vertical_roll,
            is_horizontal_roll=unit.is_horizontal_roll,
            payload=self,
        )


# ─────────────────────────────────────────────────────────────────────────────
# Placement results
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PlacementResult:
    """Position chosen by the placement search; ``rotated`` swaps width/depth."""
    x: float
    y: float
    z: float
    rotated: bool = False


@dataclass(frozen=True)
class PackedUnit:
    """A pseudo-item accepted by a packing session, in session coordinates."""
    item: PackItem
    x: float
    y: float
    z: float
    rotated: bool

    @property
    def width(self) -> float:
        return self.item.depth if self.rotated else self.item.width

    @property
    def depth(self) -> float:
        return self.item.width if self.rotated else self.item.depth

    @property
    def height(self) -> float:
        return self.item.height

    @property
    def bounds(self) -> Cuboid:
        return Cuboid(
            x=self.x, y=self.y, z=self.z,
            width=self.width, depth=self.depth, height=self.height,
            is_roll=self.item.is_roll,
            is_vertical_roll=self.item.is_vertical_roll,
            is_horizontal_roll=self.item.is_horizontal_roll,
        )


@dataclass(frozen=True)
class PlacedStack:
    """A stack placed in the vehicle, position in vehicle coordinates."""
    stack: Stack
    x: float
    y: float
    z: float
    rotated: bool
    section: Optional[int] = None


@dataclass(frozen=True)
class PlacedItem:
    """A single item with its resolved position (minimum corner, vehicle frame)."""
    item: Item
    x: float
    y: float
    z: float
    width: float
    depth: float
    height: float
    rotated: bool = False
    section: Optional[int] = None

    @property
    def position(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @property
    def center(self) -> tuple[float, float, float]:
        return (
            self.x + self.width / 2,
            self.y + self.height / 2,
            self.z + self.depth / 2,
        )

    @property
    def bounds(self) -> Cuboid:
        return Cuboid(
            x=self.x, y=self.y, z=self.z,
            width=self.width, depth=self.depth, height=self.height,
            is_roll=self.item.is_roll,
            is_vertical_roll=self.item.is_vertical_roll,
            is_horizontal_roll=self.item.is_horizontal_roll,
        )

    def scene_position(self, container: Container) -> tuple[float, float, float]:
        """
        Item centre in the renderer's convention: x and z centred on the
        container footprint, y measured from the ground below the floor.
        """
        cx, cy, cz = self.center
        return (
            cx - container.width / 2,
            container.floor_height + cy,
            cz - container.depth / 2,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.item.id,
            "type": self.item.type,
            "name": self.item.name,
            "position": [self.x, self.y, self.z],
            "dims": [self.width, self.depth, self.height],
            "weight": self.item.weight,
            "rotated": self.rotated,
            "section": self.section,
        }


@dataclass
class PlanResult:
    """Outcome of one planner run."""
    placed: list[PlacedItem] = field(default_factory=list)
    unpacked: list[Item] = field(default_factory=list)
    placed_stacks: list[PlacedStack] = field(default_factory=list)
    unpacked_stacks: list[Stack] = field(default_factory=list)
    overweight_stacks: list[Stack] = field(default_factory=list)
    center_of_gravity: Optional[tuple[float, float, float]] = None

    @property
    def success(self) -> bool:
        return not self.unpacked

    @property
    def placed_weight(self) -> float:
        return sum(p.item.weight for p in self.placed)

    @property
    def placed_volume(self) -> float:
        return sum(p.item.volume for p in self.placed)

    def to_dict(self) -> dict:
        return {
            "packed": [p.to_dict() for p in self.placed],
            "unpacked": [item.id for item in self.unpacked],
            "center_of_gravity": (
                list(self.center_of_gravity) if self.center_of_gravity else None
            ),
        }
