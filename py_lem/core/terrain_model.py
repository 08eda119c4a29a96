"""
Terrain model construction.

Builds the static inputs of the solver from a set of 2D sites:
- Delaunay triangulation for the site graph (edge weight = distance)
- Voronoi cells clipped to a bounding box for the cell areas
- Convex hull vertices as the default outlets
- Optional Lloyd's relaxation of the sites
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import structlog
from scipy.spatial import Delaunay, Voronoi

from .graph import SiteGraph
from .sites import BoundingBox, Site2D
from .terrain import Terrain2D

logger = structlog.get_logger()

SiteArray = Union[np.ndarray, Sequence[Site2D], Sequence[Tuple[float, float]]]


@dataclass
class TerrainModel2D:
    """
    Fundamental data required for generating terrain.

    Attributes:
        sites: Site positions, index-addressed
        areas: Cell area of each site
        graph: Connections between sites weighted by distance
        default_outlets: Outlets used when no parameter declares one
        triangulation: Delaunay triangulation of the sites, if known
    """
    sites: List[Site2D]
    areas: np.ndarray
    graph: SiteGraph
    default_outlets: List[int]
    triangulation: Optional[Delaunay] = field(default=None, repr=False)

    def __post_init__(self):
        self.sites = [Site2D(float(x), float(y)) for x, y in self.sites]
        self.areas = np.asarray(self.areas, dtype=np.float64)
        self.default_outlets = [int(i) for i in self.default_outlets]

        if len(self.areas) != len(self.sites):
            raise ValueError(f"Expected {len(self.sites)} areas, got {len(self.areas)}")
        if self.graph.order != len(self.sites):
            raise ValueError(
                f"Graph order {self.graph.order} does not match {len(self.sites)} sites"
            )

    @property
    def num(self) -> int:
        return len(self.sites)

    def create_terrain_from_result(
        self,
        elevations: Sequence[float],
        converged: bool = True,
        iterations: int = 0,
        max_deltas: Optional[Sequence[float]] = None,
    ) -> Terrain2D:
        """Pair solved elevations with the sites."""
        return Terrain2D(
            sites=list(self.sites),
            elevations=np.array(elevations, dtype=np.float64),
            converged=converged,
            iterations=iterations,
            triangulation=self.triangulation,
            max_deltas=max_deltas,
        )


def get_random_sites(num: int, bounding_box: BoundingBox, seed: Optional[int] = None) -> np.ndarray:
    """
    Generate uniformly distributed sites inside a bounding box.

    Args:
        num: Number of sites
        bounding_box: Area to fill
        seed: Seed for reproducibility

    Returns:
        Array of [x, y] site coordinates
    """
    rng = np.random.default_rng(seed)
    xs = rng.uniform(bounding_box.min_x, bounding_box.max_x, num)
    ys = rng.uniform(bounding_box.min_y, bounding_box.max_y, num)
    return np.column_stack([xs, ys])


def get_bounding_box(points: np.ndarray) -> BoundingBox:
    """
    Bounding box of the sites, padded by half the mean site spacing.

    The padding keeps every site strictly inside the box, which the clipped
    Voronoi construction requires.
    """
    min_x, min_y = points.min(axis=0)
    max_x, max_y = points.max(axis=0)
    width = max_x - min_x
    height = max_y - min_y
    if width <= 0 or height <= 0:
        raise ValueError("Sites must span a two-dimensional area")

    margin = 0.5 * np.sqrt(width * height / len(points))
    return BoundingBox(
        float(min_x - margin), float(min_y - margin),
        float(max_x + margin), float(max_y + margin),
    )


def mirror_points(points: np.ndarray, bounding_box: BoundingBox) -> np.ndarray:
    """
    Reflect the sites across each side of the bounding box.

    Appending the reflections to the sites makes the Voronoi cell of every site
    finite and clipped exactly at the box.
    """
    left = points.copy()
    left[:, 0] = 2 * bounding_box.min_x - points[:, 0]
    right = points.copy()
    right[:, 0] = 2 * bounding_box.max_x - points[:, 0]
    bottom = points.copy()
    bottom[:, 1] = 2 * bounding_box.min_y - points[:, 1]
    top = points.copy()
    top[:, 1] = 2 * bounding_box.max_y - points[:, 1]
    return np.vstack([points, left, right, bottom, top])


def clipped_cell_polygons(points: np.ndarray, bounding_box: BoundingBox) -> List[np.ndarray]:
    """
    Voronoi cell polygon of each site, clipped to the bounding box.

    Returns:
        One counter-clockwise (n, 2) vertex array per site
    """
    vor = Voronoi(mirror_points(points, bounding_box))

    polygons = []
    for i in range(len(points)):
        region = vor.regions[vor.point_region[i]]
        if not region or -1 in region:
            raise ValueError(f"Voronoi cell of site {i} is unbounded")

        vertices = vor.vertices[region]
        center = vertices.mean(axis=0)
        angles = np.arctan2(vertices[:, 1] - center[1], vertices[:, 0] - center[0])
        polygons.append(vertices[np.argsort(angles)])

    return polygons


def polygon_area(vertices: np.ndarray) -> float:
    """Area of a simple polygon (shoelace formula)."""
    x = vertices[:, 0]
    y = vertices[:, 1]
    return float(abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))) / 2.0)


def compute_polygon_centroid(vertices: np.ndarray) -> np.ndarray:
    """Compute the centroid of a polygon.

    Args:
        vertices: Array of [x, y] vertex coordinates

    Returns:
        [x, y] centroid coordinates
    """
    if len(vertices) < 3:
        return np.mean(vertices, axis=0)

    x = vertices[:, 0]
    y = vertices[:, 1]
    x_next = np.roll(x, -1)
    y_next = np.roll(y, -1)
    cross = x * y_next - x_next * y
    area = cross.sum() / 2.0

    if abs(area) < 1e-12:
        return np.mean(vertices, axis=0)

    cx = ((x + x_next) * cross).sum() / (6.0 * area)
    cy = ((y + y_next) * cross).sum() / (6.0 * area)
    return np.array([cx, cy])


def relax_sites(points: np.ndarray, bounding_box: BoundingBox, n_iterations: int = 1) -> np.ndarray:
    """Apply Lloyd's relaxation to improve site distribution.

    Moves each site to the centroid of its clipped Voronoi cell.

    Args:
        points: Sites to relax
        bounding_box: Box the cells are clipped to
        n_iterations: Number of relaxation iterations

    Returns:
        Relaxed site coordinates
    """
    logger.info("Starting Lloyd's relaxation", iterations=n_iterations)

    points = np.array(points, dtype=np.float64)
    for iteration in range(n_iterations):
        polygons = clipped_cell_polygons(points, bounding_box)
        points = np.array([compute_polygon_centroid(p) for p in polygons])
        logger.debug("Relaxation iteration complete", iteration=iteration + 1)

    return points


def build_site_graph(points: np.ndarray, triangulation: Delaunay) -> SiteGraph:
    """Site graph from the edges of a Delaunay triangulation."""
    edges = set()
    for a, b, c in triangulation.simplices:
        for p, q in ((a, b), (b, c), (c, a)):
            edges.add((min(p, q), max(p, q)))

    graph = SiteGraph(len(points))
    for p, q in sorted(edges):
        graph.add_edge(int(p), int(q), float(np.hypot(*(points[p] - points[q]))))
    return graph


def generate_terrain_model(
    sites: SiteArray,
    bounding_box: Optional[BoundingBox] = None,
    relaxation_iterations: int = 0,
) -> TerrainModel2D:
    """
    Build a complete terrain model from a set of sites.

    Args:
        sites: Site coordinates, as Site2D or [x, y] pairs
        bounding_box: Box clipping the Voronoi cells. Defaults to the sites'
            extent padded by half the mean site spacing.
        relaxation_iterations: Number of Lloyd's relaxation iterations

    Returns:
        TerrainModel2D with graph, areas and default outlets
    """
    points = np.array([[float(x), float(y)] for x, y in sites], dtype=np.float64)
    if len(points) < 3:
        raise ValueError(f"At least 3 sites are required, got {len(points)}")

    if bounding_box is None:
        bounding_box = get_bounding_box(points)

    inside = (
        (points[:, 0] > bounding_box.min_x) & (points[:, 0] < bounding_box.max_x)
        & (points[:, 1] > bounding_box.min_y) & (points[:, 1] < bounding_box.max_y)
    )
    if not inside.all():
        raise ValueError(
            f"{int((~inside).sum())} sites are not strictly inside the bounding box"
        )

    logger.info("Generating terrain model", sites=len(points),
                relaxation_iterations=relaxation_iterations)

    if relaxation_iterations > 0:
        points = relax_sites(points, bounding_box, relaxation_iterations)

    triangulation = Delaunay(points)
    if len(triangulation.coplanar) > 0:
        raise ValueError(
            f"{len(triangulation.coplanar)} sites are duplicates and were left out of the triangulation"
        )

    graph = build_site_graph(points, triangulation)
    areas = np.array([polygon_area(p) for p in clipped_cell_polygons(points, bounding_box)])
    default_outlets = sorted(int(i) for i in np.unique(triangulation.convex_hull))

    logger.info("Terrain model generated", edges=graph.edge_count,
                outlets=len(default_outlets), total_area=float(areas.sum()))

    return TerrainModel2D(
        sites=[Site2D(x, y) for x, y in points],
        areas=areas,
        graph=graph,
        default_outlets=default_outlets,
        triangulation=triangulation,
    )
