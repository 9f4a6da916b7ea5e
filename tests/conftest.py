"""Shared pytest fixtures for ParcelSort tests."""

import sys
from pathlib import Path

import pytest

# Modules live at the repository root
sys.path.insert(0, str(Path(__file__).parent.parent))

from destination_index import DestinationIndex  # noqa: E402
from models import Parcel, ParcelSize  # noqa: E402
from parcel_registry import ParcelRegistry  # noqa: E402


def make_parcel(parcel_id, city, priority=2, size=ParcelSize.SMALL, **kwargs):
    """Build a valid Parcel with sensible defaults."""
    return Parcel(parcel_id=parcel_id, destination_city=city, priority=priority, size=size, **kwargs)


@pytest.fixture
def index():
    return DestinationIndex()


@pytest.fixture
def registry():
    return ParcelRegistry()


@pytest.fixture
def lagos_abuja(index):
    """P1 -> Lagos, P2 -> Abuja, P3 -> Lagos."""
    for pid, city in [("P1", "Lagos"), ("P2", "Abuja"), ("P3", "Lagos")]:
        assert index.insert(make_parcel(pid, city))
    return index
