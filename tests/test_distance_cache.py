from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import make_neighborhood, TableDistanceProvider, distance_table

from neighborhood_resolver.selection import DistanceCache, DistanceProvider


def test_cache_key_is_symmetric():
    assert DistanceCache.cache_key("Downtown", "Southside") == DistanceCache.cache_key("Southside", "Downtown")
    assert DistanceCache.cache_key("Downtown", "Southside").startswith("pair_")


def test_cache_key_does_not_collide_on_concatenation():
    assert DistanceCache.cache_key("ab", "c") != DistanceCache.cache_key("a", "bc")


def test_cache_key_does_not_collide_on_separator_in_names():
    assert DistanceCache.cache_key("a|b", "c") != DistanceCache.cache_key("a", "b|c")
    assert DistanceCache.cache_key('a", "b', "c") != DistanceCache.cache_key("a", 'b", "c')


def test_names_containing_separator_get_their_own_distance():
    hoods = {
        "a|b": make_neighborhood("a|b", 0.0, 0.0),
        "c": make_neighborhood("c", 1.0, 1.0),
        "a": make_neighborhood("a", 2.0, 2.0),
        "b|c": make_neighborhood("b|c", 3.0, 3.0),
    }
    provider = TableDistanceProvider(distance_table(hoods, {("a|b", "c"): 100.0, ("a", "b|c"): 9999.0}))
    cache = DistanceCache(provider)

    assert cache.distance_between(hoods["a|b"], hoods["c"]) == 100.0
    assert cache.distance_between(hoods["a"], hoods["b|c"]) == 9999.0
    assert len(provider.calls) == 2


def test_distance_is_symmetric_and_memoized(bay_area):
    hoods, provider = bay_area
    cache = DistanceCache(provider)
    d, s = hoods["Downtown"], hoods["Southside"]

    forward = cache.distance_between(d, s)
    backward = cache.distance_between(s, d)

    assert forward == backward == 500.0
    assert len(provider.calls) == 1
    assert cache.stats.provider_calls == 1
    assert cache.stats.hits == 1
    assert ("Southside", "Downtown") in cache


def test_self_pair_is_rejected(bay_area):
    hoods, provider = bay_area
    cache = DistanceCache(provider)

    with pytest.raises(ValueError):
        cache.distance_between(hoods["Downtown"], hoods["Downtown"])

    assert provider.calls == []
    assert len(cache) == 0


def test_provider_errors_propagate_and_are_not_cached(bay_area):
    hoods, provider = bay_area
    d, e = hoods["Downtown"], hoods["East Bay"]
    provider.fail_on = {frozenset([d.coordinates, e.coordinates])}
    cache = DistanceCache(provider)

    with pytest.raises(RuntimeError):
        cache.distance_between(d, e)
    assert ("Downtown", "East Bay") not in cache

    provider.fail_on = set()
    assert cache.distance_between(e, d) == 2000.0
    assert len(provider.calls) == 2


def test_concurrent_requests_for_one_pair_compute_once():
    a = make_neighborhood("Alpha", 0.0, 0.0)
    b = make_neighborhood("Beta", 0.1, 0.1)
    calls = []

    class SlowProvider(DistanceProvider):
        def distance(self, origin, destination):
            calls.append((origin, destination))
            time.sleep(0.1)
            return 1234.0

    cache = DistanceCache(SlowProvider())
    with ThreadPoolExecutor(max_workers=8) as pool:
        futures = [pool.submit(cache.distance_between, a, b) for _ in range(4)]
        futures += [pool.submit(cache.distance_between, b, a) for _ in range(4)]
        results = [f.result(timeout=5) for f in futures]

    assert results == [1234.0] * 8
    assert len(calls) == 1
    assert cache.stats.provider_calls == 1


def test_waiters_see_the_claimant_failure():
    a = make_neighborhood("Alpha", 0.0, 0.0)
    b = make_neighborhood("Beta", 0.1, 0.1)
    release = threading.Event()

    class FailingProvider(DistanceProvider):
        def distance(self, origin, destination):
            release.wait(timeout=5)
            raise RuntimeError("database unavailable")

    cache = DistanceCache(FailingProvider())
    with ThreadPoolExecutor(max_workers=2) as pool:
        first = pool.submit(cache.distance_between, a, b)
        time.sleep(0.05)
        second = pool.submit(cache.distance_between, b, a)
        time.sleep(0.05)
        release.set()

        with pytest.raises(RuntimeError):
            first.result(timeout=5)
        with pytest.raises(RuntimeError):
            second.result(timeout=5)

    assert len(cache) == 0
