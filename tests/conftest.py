"""Pytest configuration and fixtures."""
import sys
from datetime import timedelta
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from carerota.models.constraints import SolverConfig
from carerota.store.memory import InMemoryRotaStore
from factories import DAY, available, make_shift, make_staff


@pytest.fixture
def default_config():
    """Default solver configuration."""
    return SolverConfig()


@pytest.fixture
def sample_staff():
    """Three staff at home h1; C also works at h2."""
    return [
        make_staff("A"),
        make_staff("B", preferred=["day"]),
        make_staff("C", homes=("h1", "h2"), employment_type="parttime"),
    ]


@pytest.fixture
def example_shifts():
    """A long day needing two and an overnight needing one."""
    return [
        make_shift("S1", "08:00", "20:00", required=2, shift_type="day"),
        make_shift("S2", "20:00", "08:00", required=1, shift_type="night"),
    ]


@pytest.fixture
def example_availability():
    """A off for the day, B prefers day shifts, C takes anything."""
    return [
        available("A", is_available=False),
        available("B", shift_type="day"),
        available("C"),
    ]


@pytest.fixture
def swap_store():
    """
    u1 on an early shift at h1, u2 on a late shift at h2.

    u1 has no access to h2; u1 also holds an overlapping late shift at h1.
    """
    staff = [
        make_staff("u1", homes=("h1",)),
        make_staff("u2", homes=("h1", "h2")),
        make_staff("u3", homes=("h1", "h2")),
    ]
    shifts = [
        make_shift("early", "08:00", "16:00", home="h1", assigned=["u1"]),
        make_shift("late", "15:00", "23:00", home="h2", shift_type="evening", assigned=["u2"]),
        make_shift("other", "15:00", "23:00", home="h1", shift_type="evening", assigned=["u1"]),
    ]
    return InMemoryRotaStore(staff=staff, shifts=shifts)


@pytest.fixture
def clean_swap_store():
    """Two staff at one home on shifts a day apart; nothing stands in the way of a swap."""
    staff = [make_staff("u1"), make_staff("u2")]
    shifts = [
        make_shift("mon", "08:00", "16:00", assigned=["u1"]),
        make_shift("wed", "08:00", "16:00", day=DAY + timedelta(days=2), assigned=["u2"]),
    ]
    return InMemoryRotaStore(staff=staff, shifts=shifts)
