"""Solved terrain and elevation queries."""

from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.interpolate import LinearNDInterpolator
from scipy.spatial import Delaunay

from .sites import Site2D

PointLike = Union[Site2D, Tuple[float, float]]


class Terrain2D:
    """
    Result of terrain generation: sites paired with their solved elevations.

    Elevations between sites are interpolated linearly over the Delaunay
    triangle that contains the query point.
    """

    def __init__(
        self,
        sites: List[Site2D],
        elevations: np.ndarray,
        converged: bool = True,
        iterations: int = 0,
        triangulation: Optional[Delaunay] = None,
        max_deltas: Optional[List[float]] = None,
    ):
        if len(sites) != len(elevations):
            raise ValueError(f"Expected {len(sites)} elevations, got {len(elevations)}")
        self.sites = sites
        self.elevations = elevations
        self.converged = converged
        self.iterations = iterations
        # Largest absolute elevation change of each solver iteration
        self.max_deltas = list(max_deltas) if max_deltas is not None else []
        self._triangulation = triangulation
        self._interpolator = None

    def _get_interpolator(self) -> LinearNDInterpolator:
        if self._interpolator is None:
            triangulation = self._triangulation
            if triangulation is None:
                triangulation = Delaunay(np.array(self.sites, dtype=np.float64))
            self._interpolator = LinearNDInterpolator(triangulation, self.elevations)
        return self._interpolator

    def get_elevation(self, site: PointLike) -> Optional[float]:
        """
        Interpolated elevation at a point.

        Returns:
            Elevation, or None when the point is outside the convex hull of the sites
        """
        value = self._get_interpolator()(float(site[0]), float(site[1]))
        value = float(np.asarray(value).ravel()[0])
        if np.isnan(value):
            return None
        return value

    def get_elevations(self, points: Sequence[PointLike]) -> np.ndarray:
        """Vectorised ``get_elevation``; points outside the hull give NaN."""
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        return np.asarray(self._get_interpolator()(points), dtype=np.float64).reshape(-1)
