"""
Central configuration for the load planner.

Classes:
    PackerSettings — tuneable tolerances, candidate-list caps and scoring
                     weights of the free-space packer
    UnitType       — catalog defaults for one kind of cargo unit

Functions:
    load_settings          — PackerSettings from a YAML file
    load_unit_catalog      — unit types keyed by name
    load_vehicle_catalog   — containers keyed by vehicle name
    get_vehicle            — one container from the vehicle catalog

The default catalogs ship as YAML next to this module (``data/``).
Lengths are metres and weights kilograms unless a caller consistently
uses other units; only the tolerance defaults assume metres.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from loadplanner.core.models import DEFAULT_METHODS, Container


DATA_DIR = Path(__file__).parent / "data"
UNITS_FILE = DATA_DIR / "units.yaml"
VEHICLES_FILE = DATA_DIR / "vehicles.yaml"


class ConfigError(Exception):
    """A configuration or catalog file could not be used."""


# ─────────────────────────────────────────────────────────────────────────────
# Packer settings
# ─────────────────────────────────────────────────────────────────────────────

class PackerSettings(BaseModel):
    """
    All tuneable parameters of a packing run.

    The list caps bound the work done per placement; they trade precision
    for speed and carry no correctness guarantee, which is why they are
    settings rather than constants.

    Attributes:
        tolerance:             Fit / centring slack (5 mm).
        ground_tolerance:      Max y of a free space counted as floor level.
        min_free_volume:       Free spaces below this volume are discarded.
        max_free_spaces:       Cap after the volume-descending sort.
        max_merge_candidates:  Cap applied before the merge pass.
        merge_input_limit:     Merge pass is skipped above this count.
        max_merges_per_space:  Neighbours one free space may absorb per pass.
        section_gap:           Gap between consecutive vehicle sections.
        weight_y/x/z/waste:    Scoring weights of the placement search.
        validate_layout:       Re-check every finished plan for overlaps.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    tolerance: float = Field(default=0.005, ge=0)
    ground_tolerance: float = Field(default=0.01, ge=0)
    min_free_volume: float = Field(default=0.01, ge=0)
    max_free_spaces: int = Field(default=100, gt=0)
    max_merge_candidates: int = Field(default=50, gt=0)
    merge_input_limit: int = Field(default=30, ge=0)
    max_merges_per_space: int = Field(default=5, ge=0)
    section_gap: float = Field(default=0.5, ge=0)
    weight_y: float = 1000.0
    weight_x: float = 10.0
    weight_z: float = 1.0
    weight_waste: float = 1e-4
    validate_layout: bool = False


def read_yaml(path: Path | str) -> Any:
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except FileNotFoundError as exc:
        raise ConfigError(f"File not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Malformed YAML in {path}: {exc}") from exc


def load_settings(path: Path | str | None = None) -> PackerSettings:
    """
    Load packer settings from a YAML mapping.

    Args:
        path: YAML file; ``None`` returns the defaults.

    Raises:
        ConfigError: unreadable file, not a mapping, or invalid values.
    """
    if path is None:
        return PackerSettings()
    data = read_yaml(path) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping")
    try:
        return PackerSettings(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings in {path}: {exc}") from exc


# ─────────────────────────────────────────────────────────────────────────────
# Unit catalog
# ─────────────────────────────────────────────────────────────────────────────

class UnitType(BaseModel):
    """Catalog defaults for one kind of cargo unit."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    width: float = Field(gt=0)
    depth: float = Field(gt=0)
    height: float = Field(gt=0)
    default_weight: float = Field(default=100.0, ge=0)
    max_stack: Optional[int] = Field(default=3, ge=0)
    max_stack_weight: Optional[float] = Field(default=2000.0, ge=0)
    loading_methods: tuple[str, ...] = DEFAULT_METHODS
    unloading_methods: tuple[str, ...] = DEFAULT_METHODS
    is_roll: bool = False
    is_vertical_roll: bool = False
    fixed_diameter: bool = False


def load_unit_catalog(path: Path | str | None = None) -> dict[str, UnitType]:
    """
    Load unit types keyed by type name.

    Args:
        path: YAML file with a top-level ``units`` mapping; defaults to the
              bundled catalog.

    Raises:
        ConfigError: missing/invalid file or invalid unit entry.
    """
    path = Path(path) if path is not None else UNITS_FILE
    data = read_yaml(path) or {}
    units = data.get("units") if isinstance(data, dict) else None
    if not isinstance(units, dict):
        raise ConfigError(f"{path}: expected a top-level 'units' mapping")

    catalog: dict[str, UnitType] = {}
    for key, entry in units.items():
        try:
            catalog[key] = UnitType(**entry)
        except (TypeError, ValidationError) as exc:
            raise ConfigError(f"{path}: invalid unit '{key}': {exc}") from exc
    return catalog


# ─────────────────────────────────────────────────────────────────────────────
# Vehicle catalog
# ─────────────────────────────────────────────────────────────────────────────

def load_vehicle_catalog(path: Path | str | None = None) -> dict[str, Container]:
    """
    Load containers keyed by vehicle name.

    Args:
        path: YAML file with a top-level ``vehicles`` mapping; defaults to the
              bundled catalog.

    Raises:
        ConfigError: missing/invalid file or invalid vehicle entry.
    """
    path = Path(path) if path is not None else VEHICLES_FILE
    data = read_yaml(path) or {}
    vehicles = data.get("vehicles") if isinstance(data, dict) else None
    if not isinstance(vehicles, dict):
        raise ConfigError(f"{path}: expected a top-level 'vehicles' mapping")

    catalog: dict[str, Container] = {}
    for key, entry in vehicles.items():
        try:
            catalog[key] = Container(**entry)
        except (TypeError, ValidationError) as exc:
            raise ConfigError(f"{path}: invalid vehicle '{key}': {exc}") from exc
    return catalog


def get_vehicle(name: str, path: Path | str | None = None) -> Container:
    """
    Look up one vehicle by name.

    Raises:
        ConfigError: if the name is not in the catalog.
    """
    catalog = load_vehicle_catalog(path)
    if name not in catalog:
        raise ConfigError(
            f"Unknown vehicle: {name}. Available: {sorted(catalog)}"
        )
    return catalog[name]
