from __future__ import annotations

import math

import duckdb
import pytest

from neighborhood_resolver.selection import (
    DuckDBDistanceProvider,
    HaversineDistanceProvider,
    EARTH_RADIUS_M,
)
from neighborhood_resolver.utils.errors import DistanceProviderError


def test_one_degree_of_latitude():
    d = HaversineDistanceProvider().distance((0.0, 0.0), (0.0, 1.0))
    assert d == pytest.approx(EARTH_RADIUS_M * math.pi / 180)


def test_identical_points_are_zero_apart():
    assert HaversineDistanceProvider().distance((-122.27, 37.80), (-122.27, 37.80)) == 0.0


def test_haversine_is_symmetric():
    provider = HaversineDistanceProvider()
    a, b = (-122.27, 37.80), (-122.41, 37.79)
    assert provider.distance(a, b) == provider.distance(b, a)
    # Oakland to San Francisco, roughly 12 km
    assert 11_000 < provider.distance(a, b) < 13_500


@pytest.mark.parametrize("bad", [(200.0, 0.0), (0.0, 95.0), (float("nan"), 0.0), ("x", 1.0)])
def test_invalid_coordinates_raise(bad):
    with pytest.raises(DistanceProviderError):
        HaversineDistanceProvider().distance(bad, (0.0, 0.0))


@pytest.fixture
def duckdb_provider():
    try:
        provider = DuckDBDistanceProvider()
    except duckdb.Error as e:
        pytest.skip(f"DuckDB spatial extension unavailable: {e}")
    yield provider
    provider.close()


def test_duckdb_matches_haversine(duckdb_provider):
    a, b = (-122.27, 37.80), (-122.41, 37.79)
    expected = HaversineDistanceProvider().distance(a, b)

    assert duckdb_provider.distance(a, b) == pytest.approx(expected, rel=1e-3)
