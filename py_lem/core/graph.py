"""Weighted undirected graph over site indices."""

import math
from bisect import insort
from typing import Dict, Iterable, List, Sequence, Tuple


class SiteGraph:
    """
    Undirected graph whose edges carry the distance between two sites.

    Neighbour lists are kept sorted by neighbour index, so any scan that keeps
    the first best candidate breaks ties in favour of the lower index.
    """

    def __init__(self, order: int):
        if order < 0:
            raise ValueError(f"Graph order must be non-negative, got {order}")
        self._neighbors: List[List[Tuple[int, float]]] = [[] for _ in range(order)]
        self._weights: List[Dict[int, float]] = [{} for _ in range(order)]

    @classmethod
    def from_edges(cls, order: int, edges: Iterable[Tuple[int, int, float]]) -> "SiteGraph":
        """Build a graph from ``(a, b, distance)`` triples."""
        graph = cls(order)
        for a, b, distance in edges:
            graph.add_edge(a, b, distance)
        return graph

    @property
    def order(self) -> int:
        """Number of vertices."""
        return len(self._neighbors)

    @property
    def edge_count(self) -> int:
        return sum(len(n) for n in self._neighbors) // 2

    def add_edge(self, a: int, b: int, distance: float) -> None:
        """Add an undirected edge. Re-adding an existing edge is a no-op."""
        if a == b:
            raise ValueError(f"Self loops are not allowed (site {a})")
        if not (0 <= a < self.order and 0 <= b < self.order):
            raise IndexError(f"Edge ({a}, {b}) outside graph of order {self.order}")
        if b in self._weights[a]:
            return
        distance = float(distance)
        if not math.isfinite(distance) or distance <= 0.0:
            raise ValueError(f"Edge ({a}, {b}) needs a positive finite distance, got {distance}")
        self._weights[a][b] = distance
        self._weights[b][a] = distance
        insort(self._neighbors[a], (b, distance))
        insort(self._neighbors[b], (a, distance))

    def neighbors_of(self, i: int) -> Sequence[Tuple[int, float]]:
        """``(neighbor, distance)`` pairs of site ``i`` in index order."""
        return self._neighbors[i]

    def has_edge(self, i: int, j: int) -> Tuple[bool, float]:
        """Return whether ``i`` and ``j`` are adjacent, and their distance (0.0 if not)."""
        distance = self._weights[i].get(j)
        if distance is None:
            return False, 0.0
        return True, distance
