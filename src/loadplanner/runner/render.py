"""
Rendering boundary of the load planner.

The planner never draws anything itself; it reports every completed run to
a Renderer.  Scene construction, meshes and colours live behind this
interface in the host application.

Positions handed to ``add_cargo`` are PlacedItem objects; use
``PlacedItem.scene_position(container)`` for the centred scene convention.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from loadplanner.core.models import Container, PlacedItem


class Renderer(ABC):
    """Abstract base for a scene that displays a load plan."""

    name: str = "base"

    @abstractmethod
    def create_container(self, container: Container) -> None:
        """Build (or rebuild) the cargo space."""
        ...

    @abstractmethod
    def add_cargo(self, placed: PlacedItem) -> Any:
        """
        Show one placed item.

        Returns:
            Opaque handle accepted by ``remove_cargo``.
        """
        ...

    @abstractmethod
    def remove_cargo(self, handle: Any) -> None:
        ...

    @abstractmethod
    def clear_all_cargo(self) -> None:
        ...

    @abstractmethod
    def update_center_of_gravity(self, point: Optional[tuple[float, float, float]]) -> None:
        """Move the centre-of-gravity marker; ``None`` hides it."""
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class NullRenderer(Renderer):
    """Discards everything; the default for headless runs."""
    name = "null"

    def create_container(self, container: Container) -> None:
        pass

    def add_cargo(self, placed: PlacedItem) -> Any:
        return placed.item.id

    def remove_cargo(self, handle: Any) -> None:
        pass

    def clear_all_cargo(self) -> None:
        pass

    def update_center_of_gravity(self, point: Optional[tuple[float, float, float]]) -> None:
        pass
