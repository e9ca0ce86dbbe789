from __future__ import annotations

import logging

from ..neighborhoods.neighborhood import Neighborhood
from .graph import Graph

logger = logging.getLogger(__name__)


class MedianSelector:
    """
    Picks the node with the least total distance to every other node
    (the discrete 1-median of the graph).

    Runs in O(V*E) for V nodes with E edges each, which in a complete graph
    is O(V^2). Ties go to the node that comes first in graph order.
    """

    @staticmethod
    def distance_sums(graph: Graph) -> list[float]:
        sums = [0.0] * len(graph.nodes)
        for index in range(len(graph.nodes)):
            for edge in graph.edges_from(index):
                sums[index] += edge.distance_m
        return sums

    def select(self, graph: Graph) -> tuple[Neighborhood, float]:
        if not graph.nodes:
            raise ValueError("Cannot select a median from an empty graph")

        if len(graph.nodes) == 1:
            return graph.nodes[0], 0.0

        sums = self.distance_sums(graph)
        best_index = 0
        for index, total in enumerate(sums):
            if total < sums[best_index]:
                best_index = index

        logger.debug(
            "Distance sums: "
            + ", ".join(f"{n.name}={s:.1f}m" for n, s in zip(graph.nodes, sums))
        )
        return graph.nodes[best_index], sums[best_index]
