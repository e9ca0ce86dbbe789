"""
Geospatial lookups that resolve a coordinate to the neighborhood containing it.

Implementations only answer two questions: which polygons contain a point,
and where a neighborhood's centroid is. Picking between several containing
polygons is shared logic in GeospatialLookup.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, Optional

import duckdb
import geopandas as gpd
from shapely.geometry import Point

from ..db.db import duckdb_connection
from ..selection.distance import DistanceProvider, HaversineDistanceProvider
from ..settings import settings
from ..utils.errors import CentroidNotFoundError, DistanceProviderError
from .neighborhood import Neighborhood

logger = logging.getLogger(__name__)

# (name, city, state, country)
PolygonMatch = tuple[str, str, str, str]


class GeospatialLookup(ABC):
    """
    Abstract base for neighborhood polygon stores.

    Subclasses implement `_containing()` and `centroid()`; the selection of a
    single neighborhood for a point is done by `find_containing_neighborhood()`.
    """

    def __init__(self, distance_provider: Optional[DistanceProvider] = None):
        self.distance_provider = distance_provider or HaversineDistanceProvider()

    @abstractmethod
    def _containing(self, longitude: float, latitude: float) -> list[PolygonMatch]:
        """Return every neighborhood polygon containing the point."""
        pass

    @abstractmethod
    def centroid(self, name: str, city: str, state: str) -> tuple[float, float]:
        """
        Centroid of a neighborhood's polygon(s).

        Returns:
            (latitude, longitude)

        Raises:
            CentroidNotFoundError if no polygon matches
        """
        pass

    def find_containing_neighborhood(self, longitude: float, latitude: float) -> Optional[Neighborhood]:
        """
        Resolve the neighborhood containing a point.

        When several polygons contain the point, the one whose centroid is
        closest to it wins. Polygons whose centroid or distance cannot be
        computed are skipped.

        Returns:
            Neighborhood, or None if no polygon contains the point
        """
        best: Optional[Neighborhood] = None
        min_distance_m = float("inf")

        for name, city, state, country in self._containing(longitude, latitude):
            try:
                c_lat, c_lon = self.centroid(name, city, state)
            except CentroidNotFoundError:
                logger.warning(f"Unable to resolve coordinates for {name}")
                continue

            try:
                distance_m = self.distance_provider.distance((c_lon, c_lat), (longitude, latitude))
            except DistanceProviderError as e:
                logger.warning(f"Unable to get distance between {name} and ({longitude}, {latitude}): {e}")
                continue

            if distance_m < min_distance_m:
                min_distance_m = distance_m
                best = Neighborhood(
                    name=name,
                    city=city,
                    state_or_province=state,
                    country=country,
                    latitude=c_lat,
                    longitude=c_lon,
                )

        if best is None:
            logger.debug(f"No neighborhood contains ({longitude}, {latitude})")
        return best


class GeoDataFrameLookup(GeospatialLookup):
    """
    In-memory lookup over a GeoDataFrame of neighborhood polygons.

    Expects columns name, city, state, country and a geometry in EPSG:4326.
    """

    def __init__(self, gdf: gpd.GeoDataFrame, distance_provider: Optional[DistanceProvider] = None):
        super().__init__(distance_provider)
        if gdf.crs is not None and gdf.crs != 'EPSG:4326':
            gdf = gdf.to_crs('EPSG:4326')
        self.gdf = gdf.reset_index(drop=True)

    def _containing(self, longitude: float, latitude: float) -> list[PolygonMatch]:
        point = Point(longitude, latitude)
        matches = self.gdf[self.gdf.geometry.contains(point)]
        return [
            (row['name'], row['city'], row['state'], row['country'])
            for _, row in matches.iterrows()
        ]

    def centroid(self, name: str, city: str, state: str) -> tuple[float, float]:
        mask = (
            (self.gdf['name'].str.lower() == name.lower())
            & (self.gdf['city'].str.lower() == city.lower())
            & (self.gdf['state'].str.lower() == state.lower())
        )
        matches = self.gdf[mask]
        if matches.empty:
            raise CentroidNotFoundError(name, city, state)

        # Same neighborhood split across rows is treated as one multipolygon
        centroid = matches.geometry.union_all().centroid
        return centroid.y, centroid.x


class DuckDBLookup(GeospatialLookup):
    """
    Lookup backed by a DuckDB table of neighborhood polygons (spatial extension).

    The table holds name, city, state, country and a GEOMETRY column `geom`,
    as written by NeighborhoodLoader.persist(). One connection is opened per
    `find_containing_neighborhood()` call and shared by its queries.
    """

    def __init__(
        self,
        table_name: str | None = None,
        db_path: str | None = None,
        distance_provider: Optional[DistanceProvider] = None,
    ):
        super().__init__(distance_provider)
        self.table_name = table_name or settings.neighborhoods_table
        self.db_path = db_path
        self._local = threading.local()

    @contextmanager
    def _connection(self) -> Iterator[duckdb.DuckDBPyConnection]:
        con = getattr(self._local, 'con', None)
        if con is not None:
            yield con
            return
        with duckdb_connection(self.db_path, read_only=True) as db_con:
            self._local.con = db_con
            try:
                yield db_con
            finally:
                self._local.con = None

    def find_containing_neighborhood(self, longitude: float, latitude: float) -> Optional[Neighborhood]:
        with self._connection():
            return super().find_containing_neighborhood(longitude, latitude)

    def _containing(self, longitude: float, latitude: float) -> list[PolygonMatch]:
        query = f"""
            SELECT name, city, state, country
            FROM {self.table_name}
            WHERE ST_Contains(geom, ST_Point(?, ?))
        """
        with self._connection() as db_con:
            rows = db_con.execute(query, [longitude, latitude]).fetchall()
        return [tuple(r) for r in rows]

    def centroid(self, name: str, city: str, state: str) -> tuple[float, float]:
        query = f"""
            SELECT ST_Y(c) AS latitude, ST_X(c) AS longitude
            FROM (
                SELECT ST_Centroid(ST_Union_Agg(geom)) AS c
                FROM {self.table_name}
                WHERE name ILIKE ? AND city ILIKE ? AND state ILIKE ?
            )
        """
        try:
            with self._connection() as db_con:
                row = db_con.execute(query, [name, city, state]).fetchone()
        except duckdb.Error as e:
            logger.error(f"Centroid query failed for {name}: {e}")
            raise CentroidNotFoundError(name, city, state) from e

        if row is None or row[0] is None:
            raise CentroidNotFoundError(name, city, state)
        return float(row[0]), float(row[1])
