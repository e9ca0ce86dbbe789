"""
Pairwise distances between neighborhood centroids.

- DistanceProvider: interface for great-circle distance between two coordinates
- HaversineDistanceProvider: in-process spherical distance
- DuckDBDistanceProvider: distance computed by the DuckDB spatial extension
- DistanceCache: symmetric, write-once memo of provider results, scoped to one
  resolution call
"""

from __future__ import annotations

import json
import logging
import math
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future
from dataclasses import dataclass
from hashlib import sha256
from typing import Optional

import duckdb

from ..neighborhoods.neighborhood import Neighborhood
from ..utils.errors import DistanceProviderError

logger = logging.getLogger(__name__)

# Mean radius used by PostGIS ST_DistanceSphere
EARTH_RADIUS_M = 6370986.0

Coordinates = tuple[float, float]  # (longitude, latitude)


class DistanceProvider(ABC):
    """
    Abstract base for distance providers.

    Providers return the great-circle surface distance in meters between two
    (longitude, latitude) pairs on a spherical Earth. They must be
    deterministic for identical inputs.
    """

    @abstractmethod
    def distance(self, origin: Coordinates, destination: Coordinates) -> float:
        """
        Distance in meters between two coordinates.

        Args:
            origin: (longitude, latitude)
            destination: (longitude, latitude)

        Raises:
            DistanceProviderError if the distance cannot be computed
        """
        pass


def _validate_coordinates(point: Coordinates) -> tuple[float, float]:
    try:
        lon, lat = float(point[0]), float(point[1])
    except (TypeError, ValueError, IndexError) as e:
        raise DistanceProviderError(f"Invalid coordinates {point!r}") from e
    if not (math.isfinite(lon) and math.isfinite(lat)):
        raise DistanceProviderError(f"Non-finite coordinates {point!r}")
    if not (-180 <= lon <= 180 and -90 <= lat <= 90):
        raise DistanceProviderError(f"Coordinates out of range {point!r}")
    return lon, lat


class HaversineDistanceProvider(DistanceProvider):
    """Spherical great-circle distance computed with the haversine formula."""

    def __init__(self, radius_m: float = EARTH_RADIUS_M):
        self.radius_m = radius_m

    def distance(self, origin: Coordinates, destination: Coordinates) -> float:
        lon1, lat1 = _validate_coordinates(origin)
        lon2, lat2 = _validate_coordinates(destination)

        phi1, phi2 = math.radians(lat1), math.radians(lat2)
        dphi = phi2 - phi1
        dlambda = math.radians(lon2 - lon1)

        a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
        return self.radius_m * c


class DuckDBDistanceProvider(DistanceProvider):
    """
    Distance computed by DuckDB spatial's ST_Distance_Sphere.

    ST_Distance_Sphere expects points in [latitude, longitude] axis order,
    so coordinates are swapped before the query.
    """

    QUERY = """
    SELECT ST_Distance_Sphere(
        ST_Point(?, ?),
        ST_Point(?, ?)
    ) AS distance_in_meters
    """

    def __init__(self, con: Optional[duckdb.DuckDBPyConnection] = None):
        """
        Args:
            con: Connection with the spatial extension loaded. An in-memory
                connection is opened when omitted.
        """
        self._owns_connection = con is None
        if con is None:
            con = duckdb.connect(":memory:")
            con.execute("INSTALL spatial;")
            con.execute("LOAD spatial;")
        self.con = con

    def distance(self, origin: Coordinates, destination: Coordinates) -> float:
        lon1, lat1 = _validate_coordinates(origin)
        lon2, lat2 = _validate_coordinates(destination)

        # DuckDB connections are not shared across threads; a cursor is
        cursor = self.con.cursor()
        try:
            row = cursor.execute(self.QUERY, [lat1, lon1, lat2, lon2]).fetchone()
        except duckdb.Error as e:
            logger.error(f"Distance query failed for {origin} -> {destination}: {e}")
            raise DistanceProviderError(str(e)) from e
        finally:
            cursor.close()

        if row is None or row[0] is None:
            raise DistanceProviderError(f"No distance returned for {origin} -> {destination}")
        return float(row[0])

    def close(self) -> None:
        if self._owns_connection:
            self.con.close()


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    provider_calls: int = 0


class DistanceCache:
    """
    Memoizes pairwise distances between neighborhoods.

    Keys are symmetric in the two names, so (A, B) and (B, A) share one entry.
    Entries are write-once and failures are never cached. When several threads
    ask for the same uncached pair, only the first computes it; the others wait
    on its result.

    Create one cache per resolution call and drop it afterwards.
    """

    def __init__(self, provider: DistanceProvider):
        self.provider = provider
        self.stats = CacheStats()
        self._entries: dict[str, float] = {}
        self._inflight: dict[str, Future] = {}
        self._lock = threading.Lock()

    @staticmethod
    def cache_key(name: str, other_name: str) -> str:
        """
        Order-independent key for a pair of neighborhood names.

        Examples:
            cache_key("Downtown", "Southside") == cache_key("Southside", "Downtown")
        """
        # JSON keeps the two names apart whatever characters they contain
        key = json.dumps(sorted([name, other_name]))
        return f"pair_{sha256(key.encode()).hexdigest()[:16]}"

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, pair: tuple[str, str]) -> bool:
        return self.cache_key(*pair) in self._entries

    def distance_between(self, a: Neighborhood, b: Neighborhood) -> float:
        if a.name == b.name:
            raise ValueError(f"Self-pair '{a.name}' must not reach the distance cache")

        key = self.cache_key(a.name, b.name)
        with self._lock:
            if key in self._entries:
                self.stats.hits += 1
                return self._entries[key]

            pending = self._inflight.get(key)
            if pending is None:
                pending = Future()
                self._inflight[key] = pending
                self.stats.misses += 1
                self.stats.provider_calls += 1
                owner = True
            else:
                self.stats.hits += 1
                owner = False

        if not owner:
            return pending.result()

        try:
            distance = self.provider.distance(a.coordinates, b.coordinates)
        except BaseException as e:
            with self._lock:
                del self._inflight[key]
            pending.set_exception(e)
            raise

        with self._lock:
            self._entries[key] = distance
            del self._inflight[key]
        pending.set_result(distance)
        logger.debug(f"Cached distance {a.name} <-> {b.name}: {distance:.1f}m")
        return distance
