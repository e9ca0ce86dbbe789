"""
- Frequency: tie set of the most frequent neighborhood names
- Distance: distance providers and the per-call pairwise cache
- Graph: complete distance graph over tied neighborhoods
- Median: least-total-distance node of that graph
- Resolver: orchestration of the above
"""

from .frequency import FrequencyResolver

from .distance import (
    DistanceProvider,
    HaversineDistanceProvider,
    DuckDBDistanceProvider,
    DistanceCache,
    CacheStats,
    EARTH_RADIUS_M,
)

from .graph import (
    Edge,
    Graph,
    GraphBuilder,
    dedupe_by_name,
)

from .median import MedianSelector

from .resolver import (
    BestNeighborhoodResolver,
    Resolution,
    find_best_neighborhood,
)

__all__ = [
    "FrequencyResolver",
    # Distance
    "DistanceProvider",
    "HaversineDistanceProvider",
    "DuckDBDistanceProvider",
    "DistanceCache",
    "CacheStats",
    "EARTH_RADIUS_M",
    # Graph
    "Edge",
    "Graph",
    "GraphBuilder",
    "dedupe_by_name",
    "MedianSelector",
    # Orchestration
    "BestNeighborhoodResolver",
    "Resolution",
    "find_best_neighborhood",
]
