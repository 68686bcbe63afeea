"""Shared fixtures for the loadplanner test suite."""

import os
import sys

import pytest

# Ensure the src/ layout is importable without installation
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from loadplanner.config import PackerSettings
from loadplanner.core.models import Container, Groove, Item, PackItem, Section


@pytest.fixture
def settings():
    """Default packer settings."""
    return PackerSettings()


@pytest.fixture
def cube_container():
    """Empty 1000 x 1000 x 1000 container."""
    return Container(width=1000.0, depth=1000.0, height=1000.0)


@pytest.fixture
def grooved_container():
    """Container with a 600-long groove starting at the front wall."""
    return Container(
        width=1000.0, depth=1000.0, height=1000.0,
        groove=Groove(width=400.0, depth=100.0, length=600.0, start_offset=0.0),
    )


@pytest.fixture
def two_section_container():
    """Two 2 x 1 x 1 sections separated by the default 0.5 gap."""
    return Container(
        width=4.5, depth=1.0, height=1.0,
        sections=(
            Section(length=2.0, width=1.0, height=1.0),
            Section(length=2.0, width=1.0, height=1.0),
        ),
    )


def make_item(**kwargs) -> Item:
    """Unit cube item; keyword arguments override any field."""
    fields = dict(type="box", name="Box", width=1.0, depth=1.0, height=1.0, weight=10.0)
    fields.update(kwargs)
    return Item(**fields)


def make_pack_item(width, depth, height, **kwargs) -> PackItem:
    return PackItem(width=width, depth=depth, height=height, **kwargs)
