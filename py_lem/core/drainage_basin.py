"""Drainage basin traversal."""

from typing import Iterator, List

from .graph import SiteGraph
from .stream_tree import StreamTree


class DrainageBasin:
    """
    Sites draining into one outlet, in breadth-first order from the outlet.

    Iterating upstream (outlet first) always yields a site after the site it
    drains into; iterating downstream yields a site after everything that
    drains into it.
    """

    def __init__(self, outlet: int, traversal: List[int]):
        self.outlet = outlet
        self._traversal = traversal

    @classmethod
    def construct(cls, outlet: int, stream_tree: StreamTree, graph: SiteGraph) -> "DrainageBasin":
        """Walk the inverse of ``stream_tree.next`` outward from ``outlet``."""
        next_sites = stream_tree.next
        traversal = [outlet]
        cursor = 0
        while cursor < len(traversal):
            current = traversal[cursor]
            for j, _ in graph.neighbors_of(current):
                if next_sites[j] == current:
                    traversal.append(j)
            cursor += 1

        return cls(outlet, traversal)

    def __len__(self) -> int:
        return len(self._traversal)

    @property
    def sites(self) -> List[int]:
        return list(self._traversal)

    def iter_upstream(self) -> Iterator[int]:
        """From the outlet to the stream heads."""
        return iter(self._traversal)

    def iter_downstream(self) -> Iterator[int]:
        """From the stream heads to the outlet."""
        return reversed(self._traversal)
