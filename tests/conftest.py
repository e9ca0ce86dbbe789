from __future__ import annotations

import sys
import threading
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from neighborhood_resolver.neighborhoods import Neighborhood
from neighborhood_resolver.selection import DistanceProvider


def make_neighborhood(name: str, longitude: float, latitude: float, city: str = "Oakland") -> Neighborhood:
    return Neighborhood(
        name=name,
        city=city,
        state_or_province="CA",
        country="USA",
        latitude=latitude,
        longitude=longitude,
    )


class TableDistanceProvider(DistanceProvider):
    """Distances looked up from a fixed table keyed by unordered coordinate pairs."""

    def __init__(self, table: dict[frozenset, float], fail_on: set[frozenset] | None = None):
        self.table = table
        self.fail_on = fail_on or set()
        self.calls: list[tuple] = []
        self._lock = threading.Lock()

    def distance(self, origin, destination):
        with self._lock:
            self.calls.append((origin, destination))
        key = frozenset([tuple(origin), tuple(destination)])
        if key in self.fail_on:
            raise RuntimeError(f"provider unavailable for {sorted(key)}")
        return self.table[key]


def distance_table(neighborhoods: dict[str, Neighborhood], distances: dict[tuple[str, str], float]) -> dict[frozenset, float]:
    """Build a provider table from name pairs."""
    return {
        frozenset([neighborhoods[a].coordinates, neighborhoods[b].coordinates]): d
        for (a, b), d in distances.items()
    }


@pytest.fixture
def bay_area():
    """Downtown / Southside / East Bay with the distances used across the tests."""
    hoods = {
        "Downtown": make_neighborhood("Downtown", -122.27, 37.80),
        "Southside": make_neighborhood("Southside", -122.26, 37.79),
        "East Bay": make_neighborhood("East Bay", -122.24, 37.81),
    }
    table = distance_table(hoods, {
        ("Downtown", "Southside"): 500.0,
        ("Downtown", "East Bay"): 2000.0,
        ("Southside", "East Bay"): 1800.0,
    })
    return hoods, TableDistanceProvider(table)
