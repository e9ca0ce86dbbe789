"""Neighborhood model, polygon loading and point-in-polygon lookups."""

from .neighborhood import Neighborhood, NeighborhoodRecord
from .lookup import GeospatialLookup, GeoDataFrameLookup, DuckDBLookup
from .loader import NeighborhoodLoader

__all__ = [
    'Neighborhood',
    'NeighborhoodRecord',
    'GeospatialLookup',
    'GeoDataFrameLookup',
    'DuckDBLookup',
    'NeighborhoodLoader',
]
