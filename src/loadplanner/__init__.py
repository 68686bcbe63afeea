"""
loadplanner — 3D cargo load planning for trucks and containers.

This package places cargo units inside a vehicle's cargo space:

  **Geometry & models** (core):
    Cuboid              — axis-aligned volume (min corner + extent)
    Container           — cargo space with optional groove and sections
    AxleSetup           — axle geometry and tare of the carrying vehicle
    Item, Stack         — caller-supplied units and their vertical stacks
    PlacedItem          — an item with its resolved position
    PlanResult          — placed / unpacked items and centre of gravity

  **Packing engine** (algorithms):
    FreeSpaceStore      — candidate free volumes, split and merged per placement
    find_position       — best legal position for one pseudo-item
    BinPacker           — greedy packing session for one container
    build_stacks        — grouping and bounded stack construction

  **Orchestration** (runner):
    LoadPlanner         — single / multi-section packing, payload limit, CoG
    CargoManifest       — catalog-backed ordered item list
    ArrangeScheduler    — queued, non-overlapping re-packs
    Renderer            — ABC for scene collaborators

  **Monitoring**:
    calculate_axle_loads — per-axle loads and status of a finished plan

Public API:
    from loadplanner import LoadPlanner, CargoManifest, get_vehicle
    planner = LoadPlanner(get_vehicle("mega"))
    result = planner.pack(manifest.items)
"""

from loadplanner.config import (
    ConfigError,
    PackerSettings,
    UnitType,
    get_vehicle,
    load_settings,
    load_unit_catalog,
    load_vehicle_catalog,
)
from loadplanner.core.geometry import Cuboid
from loadplanner.core.models import (
    AxleSetup,
    Container,
    Groove,
    Item,
    PlacedItem,
    PlacedStack,
    PlanResult,
    Section,
    Stack,
)
from loadplanner.core.validator import (
    OutOfBoundsError,
    OverlapError,
    PlacementError,
    validate_layout,
)
from loadplanner.algorithms.free_space import FreeSpaceStore
from loadplanner.algorithms.placement import find_position
from loadplanner.algorithms.packer import BinPacker, PackOutcome
from loadplanner.algorithms.stacking import build_stacks
from loadplanner.runner.manifest import CargoManifest, load_manifest
from loadplanner.runner.planner import LoadPlanner
from loadplanner.runner.render import NullRenderer, Renderer
from loadplanner.monitoring.axles import AxleReport, calculate_axle_loads
from loadplanner.runner.scheduler import ArrangeScheduler

__version__ = "0.1.0"

__all__ = [
    # Config
    "ConfigError",
    "PackerSettings",
    "UnitType",
    "get_vehicle",
    "load_settings",
    "load_unit_catalog",
    "load_vehicle_catalog",
    # Core
    "Cuboid",
    "AxleSetup",
    "Container",
    "Groove",
    "Item",
    "PlacedItem",
    "PlacedStack",
    "PlanResult",
    "Section",
    "Stack",
    "PlacementError",
    "OutOfBoundsError",
    "OverlapError",
    "validate_layout",
    # Algorithms
    "FreeSpaceStore",
    "find_position",
    "BinPacker",
    "PackOutcome",
    "build_stacks",
    # Runner
    "CargoManifest",
    "load_manifest",
    "LoadPlanner",
    "Renderer",
    "NullRenderer",
    "ArrangeScheduler",
    # Monitoring
    "AxleReport",
    "calculate_axle_loads",
]
