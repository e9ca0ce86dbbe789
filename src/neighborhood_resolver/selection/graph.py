from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed, Future
from dataclasses import dataclass, field
from itertools import combinations
from typing import Optional, Sequence
import logging
import math

from ..neighborhoods.neighborhood import Neighborhood
from .distance import DistanceCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Edge:
    """Connection between two nodes of a Graph, by node index."""
    source: int
    target: int
    distance_m: float


@dataclass
class Graph:
    """
    Complete weighted graph over distinct neighborhoods.

    Nodes live in a list with stable indices; adjacency[i] holds the edges
    leaving node i. Every unordered pair appears once in each direction with
    the same weight, and there are no self edges.
    """
    nodes: list[Neighborhood] = field(default_factory=list)
    adjacency: list[list[Edge]] = field(default_factory=list)

    def add_node(self, neighborhood: Neighborhood) -> int:
        self.nodes.append(neighborhood)
        self.adjacency.append([])
        return len(self.nodes) - 1

    def connect(self, u: int, v: int, distance_m: float) -> None:
        if u == v:
            raise ValueError(f"Self edge on node {u} ('{self.nodes[u].name}')")
        self.adjacency[u].append(Edge(u, v, distance_m))
        self.adjacency[v].append(Edge(v, u, distance_m))

    def edges_from(self, index: int) -> list[Edge]:
        return self.adjacency[index]

    def index_of(self, name: str) -> int:
        for i, node in enumerate(self.nodes):
            if node.name == name:
                return i
        raise KeyError(name)

    def __len__(self) -> int:
        return len(self.nodes)


def dedupe_by_name(neighborhoods: Sequence[Neighborhood]) -> list[Neighborhood]:
    """Keep the first record seen for each name, preserving input order."""
    seen: dict[str, Neighborhood] = {}
    for n in neighborhoods:
        seen.setdefault(n.name, n)
    return list(seen.values())


class GraphBuilder:
    """
    Builds the complete distance graph for a list of tied candidates.

    Distances come from the DistanceCache. With max_workers > 1 the pairs are
    measured concurrently; the graph is still assembled in pair order, so the
    result is identical to a sequential build. When timeout_s is set the pairs
    are measured on a worker pool even with one worker, and the build raises
    TimeoutError once it elapses. Any failure aborts the build.
    """

    def __init__(
        self,
        cache: DistanceCache,
        max_workers: int = 1,
        timeout_s: Optional[float] = None,
    ):
        """
        Args:
            cache: Distance cache for this resolution call
            max_workers: Threads used to measure pairs (1 = sequential)
            timeout_s: Upper bound on waiting for all measurements (None = wait forever)
        """
        self.cache = cache
        self.max_workers = max(1, int(max_workers))
        self.timeout_s = timeout_s

    def build(self, neighborhoods: Sequence[Neighborhood]) -> Graph:
        nodes = dedupe_by_name(neighborhoods)
        if not nodes:
            raise ValueError("Cannot build a graph without neighborhoods")

        graph = Graph()
        for node in nodes:
            graph.add_node(node)

        pairs = list(combinations(range(len(nodes)), 2))
        if not pairs:
            return graph

        if self.timeout_s is None and (self.max_workers == 1 or len(pairs) == 1):
            distances = [self.cache.distance_between(nodes[u], nodes[v]) for u, v in pairs]
        else:
            # A single worker still goes through the pool so the timeout applies
            distances = self._measure_concurrently(nodes, pairs)

        for (u, v), distance_m in zip(pairs, distances):
            if not (math.isfinite(distance_m) and distance_m >= 0):
                raise ValueError(
                    f"Invalid distance {distance_m!r} between '{nodes[u].name}' and '{nodes[v].name}'"
                )
            graph.connect(u, v, distance_m)

        logger.debug(f"Built graph with {len(nodes)} nodes and {len(pairs)} pairs")
        return graph

    def _measure_concurrently(
        self,
        nodes: list[Neighborhood],
        pairs: list[tuple[int, int]],
    ) -> list[float]:
        distances: list[float] = [0.0] * len(pairs)
        executor = ThreadPoolExecutor(max_workers=min(self.max_workers, len(pairs)))
        try:
            futures: dict[Future, int] = {
                executor.submit(self.cache.distance_between, nodes[u], nodes[v]): i
                for i, (u, v) in enumerate(pairs)
            }
            for future in as_completed(futures, timeout=self.timeout_s):
                distances[futures[future]] = future.result()
        except BaseException:
            # Abandon provider calls still running
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        executor.shutdown(wait=True)
        return distances
