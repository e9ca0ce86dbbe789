from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence
import logging

from ..neighborhoods.neighborhood import Neighborhood
from ..settings import settings
from ..utils.errors import NoCandidatesError, DistanceResolutionError
from .distance import DistanceCache, DistanceProvider, HaversineDistanceProvider
from .frequency import FrequencyResolver
from .graph import GraphBuilder, dedupe_by_name
from .median import MedianSelector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    """Outcome of a best-neighborhood resolution."""
    neighborhood: Neighborhood
    total_distance_m: float
    tie_set: tuple[str, ...]
    candidate_count: int


class BestNeighborhoodResolver:
    """Resolves the "best" neighborhood from a list of candidates.

    Best is defined as:
        a) having the highest occurrence (frequency), then
        b) the least total distance to all other tied neighborhoods.

    Each call gets its own DistanceCache, so a resolver instance can be shared
    between threads.

    Usage:
        resolver = BestNeighborhoodResolver(HaversineDistanceProvider())
        best = resolver.resolve(candidates)
    """

    def __init__(
        self,
        distance_provider: DistanceProvider,
        max_workers: Optional[int] = None,
        timeout_s: Optional[float] = None,
    ):
        self.distance_provider = distance_provider
        self.max_workers = max_workers if max_workers is not None else settings.distance_workers
        self.timeout_s = timeout_s if timeout_s is not None else settings.distance_timeout_s
        self.frequency_resolver = FrequencyResolver()
        self.median_selector = MedianSelector()

    def resolve(self, candidates: Sequence[Neighborhood]) -> Neighborhood:
        return self.resolve_with_details(candidates).neighborhood

    def resolve_with_details(self, candidates: Sequence[Neighborhood]) -> Resolution:
        """
        Raises:
            NoCandidatesError: no candidates to choose from
            DistanceResolutionError: a pairwise distance between tied candidates failed
        """
        candidates = list(candidates)
        if not candidates:
            raise NoCandidatesError()

        tie_set = self.frequency_resolver.tied_names(candidates)
        if not tie_set:
            raise NoCandidatesError("Frequency filter left no candidate neighborhoods")

        tied = set(tie_set)
        nodes = dedupe_by_name([c for c in candidates if c.name in tied])

        cache = DistanceCache(self.distance_provider)
        builder = GraphBuilder(cache, max_workers=self.max_workers, timeout_s=self.timeout_s)
        try:
            graph = builder.build(nodes)
        except Exception as e:
            logger.error(f"Unable to measure distances between tied neighborhoods {tie_set}: {e!r}")
            raise DistanceResolutionError("Unable to build neighborhood distance graph", cause=e) from e

        neighborhood, total = self.median_selector.select(graph)
        logger.info(
            f"Resolved '{neighborhood.name}' from {len(candidates)} candidates "
            f"(tie set {tie_set}, total distance {total:.1f}m, "
            f"{cache.stats.provider_calls} distance lookups)"
        )
        return Resolution(
            neighborhood=neighborhood,
            total_distance_m=total,
            tie_set=tuple(tie_set),
            candidate_count=len(candidates),
        )


def find_best_neighborhood(
    candidates: Sequence[Neighborhood],
    distance_provider: Optional[DistanceProvider] = None,
) -> Neighborhood:
    """Resolve the best neighborhood, measuring with haversine distances by default."""
    resolver = BestNeighborhoodResolver(distance_provider or HaversineDistanceProvider())
    return resolver.resolve(candidates)
