from __future__ import annotations

import threading
from itertools import permutations

import pytest

from conftest import make_neighborhood, TableDistanceProvider, distance_table

from neighborhood_resolver.selection import (
    BestNeighborhoodResolver,
    DistanceProvider,
    HaversineDistanceProvider,
    find_best_neighborhood,
)
from neighborhood_resolver.utils.errors import NoCandidatesError, DistanceResolutionError


def test_empty_candidates_raise_no_candidates(bay_area):
    _, provider = bay_area
    with pytest.raises(NoCandidatesError):
        BestNeighborhoodResolver(provider).resolve([])


def test_single_distinct_name_returns_it_with_zero_distance(bay_area):
    hoods, provider = bay_area
    resolution = BestNeighborhoodResolver(provider).resolve_with_details([hoods["East Bay"]] * 4)

    assert resolution.neighborhood == hoods["East Bay"]
    assert resolution.total_distance_m == 0.0
    assert resolution.tie_set == ("East Bay",)
    assert resolution.candidate_count == 4
    assert provider.calls == []


def test_frequency_dominates_distance(bay_area):
    hoods, provider = bay_area
    d, s, e = hoods["Downtown"], hoods["Southside"], hoods["East Bay"]

    best = BestNeighborhoodResolver(provider).resolve([e, d, e, s, e])

    assert best == e
    assert provider.calls == []


def test_two_way_tie_with_equal_sums_is_first_encountered(bay_area):
    hoods, provider = bay_area
    d, s, e = hoods["Downtown"], hoods["Southside"], hoods["East Bay"]
    candidates = [d, d, s, s, e]
    resolver = BestNeighborhoodResolver(provider)

    results = [resolver.resolve_with_details(candidates) for _ in range(5)]

    assert all(r.neighborhood == d for r in results)
    assert results[0].tie_set == ("Downtown", "Southside")
    assert results[0].total_distance_m == 500.0


def test_two_way_tie_order_follows_input(bay_area):
    hoods, provider = bay_area
    d, s, e = hoods["Downtown"], hoods["Southside"], hoods["East Bay"]

    assert BestNeighborhoodResolver(provider).resolve([s, d, e, d, s]) == s


def test_three_way_tie_picks_minimal_sum():
    hoods = {n: make_neighborhood(n, -122.0 - i / 10, 37.0) for i, n in enumerate("ABC")}
    provider = TableDistanceProvider(distance_table(hoods, {
        ("A", "B"): 100.0,
        ("A", "C"): 100.0,
        ("B", "C"): 300.0,
    }))
    candidates = [hoods[n] for n in "CBA" for _ in range(3)]

    resolution = BestNeighborhoodResolver(provider).resolve_with_details(candidates)

    assert resolution.neighborhood.name == "A"
    assert resolution.total_distance_m == 200.0
    assert len(provider.calls) == 3


def test_exhaustive_recomputation_on_small_fixtures():
    names = ["N1", "N2", "N3", "N4", "N5"]
    hoods = {n: make_neighborhood(n, -122.0 - i / 10, 37.0 + i / 20) for i, n in enumerate(names)}
    provider = HaversineDistanceProvider()

    for order in permutations(names, 4):
        candidates = [hoods[n] for n in order] * 2
        best = BestNeighborhoodResolver(provider, max_workers=1).resolve_with_details(candidates)

        sums = {
            a: sum(provider.distance(hoods[a].coordinates, hoods[b].coordinates) for b in order if b != a)
            for a in order
        }
        expected = min(order, key=lambda n: sums[n])
        assert best.neighborhood.name == expected
        assert best.total_distance_m == pytest.approx(sums[expected])


def test_duplicate_names_keep_first_record():
    first = make_neighborhood("Chinatown", -122.27, 37.80, city="Oakland")
    second = make_neighborhood("Chinatown", -122.41, 37.79, city="San Francisco")

    best = find_best_neighborhood([first, second])

    assert best.city == "Oakland"


def test_provider_failure_raises_distance_resolution_error(bay_area):
    hoods, provider = bay_area
    d, s = hoods["Downtown"], hoods["Southside"]
    provider.fail_on = {frozenset([d.coordinates, s.coordinates])}

    with pytest.raises(DistanceResolutionError) as excinfo:
        BestNeighborhoodResolver(provider).resolve([d, s])

    assert isinstance(excinfo.value.cause, RuntimeError)
    assert excinfo.value.__cause__ is excinfo.value.cause


def test_hanging_provider_times_out_with_single_worker(bay_area):
    hoods, _ = bay_area
    release = threading.Event()

    class HangingProvider(DistanceProvider):
        def distance(self, origin, destination):
            release.wait(timeout=5)
            return 1.0

    resolver = BestNeighborhoodResolver(HangingProvider(), max_workers=1, timeout_s=0.1)
    try:
        with pytest.raises(DistanceResolutionError) as excinfo:
            resolver.resolve([hoods["Downtown"], hoods["Southside"]])
    finally:
        release.set()

    assert isinstance(excinfo.value.cause, TimeoutError)


def test_concurrent_resolution_matches_sequential(bay_area):
    hoods, provider = bay_area
    d, s, e = hoods["Downtown"], hoods["Southside"], hoods["East Bay"]
    candidates = [e, s, d]

    sequential = BestNeighborhoodResolver(provider, max_workers=1).resolve_with_details(candidates)
    concurrent = BestNeighborhoodResolver(provider, max_workers=3, timeout_s=5).resolve_with_details(candidates)

    assert sequential == concurrent
    assert concurrent.neighborhood == s
    assert concurrent.total_distance_m == 2300.0


def test_each_call_uses_a_fresh_cache(bay_area):
    hoods, provider = bay_area
    d, s = hoods["Downtown"], hoods["Southside"]
    resolver = BestNeighborhoodResolver(provider)

    resolver.resolve([d, s])
    resolver.resolve([s, d])

    assert len(provider.calls) == 2
