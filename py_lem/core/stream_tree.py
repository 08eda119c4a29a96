"""
Single flow direction routing over an irregular site graph.

This module implements:
- Steepest descent receiver selection
- Lake (closed depression) detection with path-compressed root lookup
- Lake removal by flooding outward from the outlets and reversing the
  flow path of every depression the flood front reaches
"""

import heapq
from typing import List, Sequence, Tuple

import numpy as np
import structlog

from .exceptions import NoOutletError, UnreachableSiteError
from .graph import SiteGraph

logger = structlog.get_logger()


class StreamTree:
    """
    Tree structure representing the flow of water.

    ``next[i]`` is the site that ``i`` drains into. After construction every
    non-outlet site has ``next[i] != i`` and following ``next`` from any site
    reaches an outlet without cycling.
    """

    def __init__(self, next_sites: np.ndarray, is_outlet: np.ndarray):
        self.next = next_sites
        self.is_outlet = is_outlet

    def __len__(self) -> int:
        return len(self.next)

    @classmethod
    def construct(
        cls,
        elevations: Sequence[float],
        graph: SiteGraph,
        outlets: Sequence[int],
    ) -> "StreamTree":
        """
        Construct a stream tree from an elevation snapshot.

        Args:
            elevations: Current elevation of each site
            graph: Site graph with edge distances
            outlets: Indices of the permanent sinks

        Returns:
            StreamTree whose roots are exactly the outlets

        Raises:
            NoOutletError: If ``outlets`` is empty
            UnreachableSiteError: If some sites cannot reach any outlet
        """
        n_sites = graph.order
        if len(elevations) != n_sites:
            raise ValueError(
                f"Expected {n_sites} elevations, got {len(elevations)}"
            )
        outlets = sorted(set(int(o) for o in outlets))
        if not outlets:
            raise NoOutletError()

        heights = [float(h) for h in elevations]
        is_outlet = create_outlet_table(n_sites, outlets)

        # May contain lakes: roots that are not outlets
        next_sites = construct_initial_stream_tree(heights, graph, is_outlet)

        subroot, lakes = find_roots_with_lakes(next_sites, is_outlet)

        if lakes:
            logger.debug("Removing lakes from stream tree", lakes=len(lakes), sites=n_sites)
            next_sites = remove_lakes_from_stream_tree(
                next_sites, heights, graph, outlets, subroot
            )
            unresolved = sum(
                1 for i in range(n_sites) if next_sites[i] == i and not is_outlet[i]
            )
            if unresolved:
                raise UnreachableSiteError(unresolved)

        return cls(np.asarray(next_sites, dtype=np.int64), np.asarray(is_outlet, dtype=bool))

    def roots(self) -> np.ndarray:
        """Indices of the sites that drain into themselves."""
        return np.flatnonzero(self.next == np.arange(len(self.next)))

    def path_length(self, site: int) -> int:
        """Number of hops from ``site`` to its root."""
        hops = 0
        current = site
        while self.next[current] != current:
            current = int(self.next[current])
            hops += 1
            if hops > len(self.next):
                raise RuntimeError(f"Flow path from site {site} does not terminate")
        return hops


def create_outlet_table(n_sites: int, outlets: Sequence[int]) -> List[bool]:
    """Boolean lookup of outlet membership."""
    is_outlet = [False] * n_sites
    for outlet in outlets:
        if not 0 <= outlet < n_sites:
            raise IndexError(f"Outlet {outlet} outside site range 0..{n_sites - 1}")
        is_outlet[outlet] = True
    return is_outlet


def construct_initial_stream_tree(
    heights: Sequence[float], graph: SiteGraph, is_outlet: Sequence[bool]
) -> List[int]:
    """
    Point each non-outlet site at its steepest strictly-lower neighbour.

    Sites with no lower neighbour point at themselves. Neighbours are scanned
    in index order and only a strictly steeper slope replaces the current
    choice, so ties go to the lowest index.
    """
    n_sites = len(heights)
    next_sites = list(range(n_sites))

    for i in range(n_sites):
        if is_outlet[i]:
            continue

        h = heights[i]
        steepest_slope = 0.0
        for j, distance in graph.neighbors_of(i):
            if h > heights[j]:
                slope = (h - heights[j]) / distance
                if slope > steepest_slope:
                    steepest_slope = slope
                    next_sites[i] = j

    return next_sites


def find_roots_with_lakes(
    next_sites: Sequence[int], is_outlet: Sequence[bool]
) -> Tuple[List[int], List[int]]:
    """
    Find the root each site drains into.

    Every walked path is written back with its root, so each site is walked
    at most once.

    Returns:
        Tuple of (root per site, roots that are not outlets)
    """
    n_sites = len(next_sites)
    subroot = [i if is_outlet[i] else -1 for i in range(n_sites)]
    lakes = []

    for i in range(n_sites):
        if subroot[i] != -1:
            continue

        v = i
        while subroot[v] == -1 and next_sites[v] != v:
            v = next_sites[v]

        if subroot[v] == -1:
            root = v
            lakes.append(v)
        else:
            root = subroot[v]

        v = i
        while subroot[v] == -1 and next_sites[v] != v:
            subroot[v] = root
            v = next_sites[v]
        subroot[v] = root

    return subroot, lakes


def remove_lakes_from_stream_tree(
    next_sites: Sequence[int],
    heights: Sequence[float],
    graph: SiteGraph,
    outlets: Sequence[int],
    subroot: Sequence[int],
) -> List[int]:
    """
    Reconnect every lake to an outlet.

    A priority flood starts from all outlets. When the front reaches a site
    whose component is not yet connected, the flow path from that site down
    to the lake bottom is reversed so the whole component drains into the
    front instead.

    The ridge cost of stepping from ``i`` to ``j`` is
    ``(heights[j] - heights[i]) * distance``; the cheapest entry is popped
    first and equal costs go to the lower index.
    """
    n_sites = len(next_sites)
    next_sites = list(next_sites)

    # Outlet reached by each component, keyed by the component's root
    connected_to = [-1] * n_sites
    ridge: List[Tuple[float, int]] = []
    for outlet in outlets:
        connected_to[outlet] = outlet
        heapq.heappush(ridge, (heights[outlet], outlet))

    visited = [False] * n_sites

    while ridge:
        _, i = heapq.heappop(ridge)
        if visited[i]:
            continue

        for j, distance in graph.neighbors_of(i):
            if visited[j]:
                continue

            if connected_to[subroot[j]] == -1:
                # Reverse j -> ... -> lake bottom so that it ends in i
                k = j
                downstream = i
                while next_sites[k] != k:
                    upstream = next_sites[k]
                    next_sites[k] = downstream
                    downstream = k
                    k = upstream
                next_sites[k] = downstream
                connected_to[subroot[j]] = connected_to[subroot[i]]

            heapq.heappush(ridge, ((heights[j] - heights[i]) * distance, j))

        visited[i] = True

    return next_sites
