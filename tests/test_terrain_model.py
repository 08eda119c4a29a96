"""Tests for terrain model construction."""

import numpy as np
import pytest

from py_lem.core.graph import SiteGraph
from py_lem.core.sites import BoundingBox, Site2D
from py_lem.core.terrain_model import (
    TerrainModel2D,
    compute_polygon_centroid,
    generate_terrain_model,
    get_bounding_box,
    get_random_sites,
    polygon_area,
    relax_sites,
)
from py_lem.core.generator import count_unreachable_sites


@pytest.fixture
def bbox():
    return BoundingBox(0.0, 0.0, 200.0, 100.0)


@pytest.fixture
def random_model(bbox):
    return generate_terrain_model(get_random_sites(400, bbox, seed=12), bbox)


class TestRandomSites:
    """Test site generation."""

    def test_sites_within_bounds(self, bbox):
        points = get_random_sites(500, bbox, seed=3)

        assert points.shape == (500, 2)
        assert np.all(points[:, 0] >= bbox.min_x) and np.all(points[:, 0] <= bbox.max_x)
        assert np.all(points[:, 1] >= bbox.min_y) and np.all(points[:, 1] <= bbox.max_y)

    def test_seed_consistency(self, bbox):
        np.testing.assert_array_equal(
            get_random_sites(50, bbox, seed=9), get_random_sites(50, bbox, seed=9)
        )
        assert not np.array_equal(
            get_random_sites(50, bbox, seed=9), get_random_sites(50, bbox, seed=10)
        )


class TestGeometry:
    """Test polygon helpers."""

    def test_square_area_and_centroid(self):
        square = np.array([[0.0, 0.0], [2.0, 0.0], [2.0, 2.0], [0.0, 2.0]])

        assert polygon_area(square) == pytest.approx(4.0)
        np.testing.assert_allclose(compute_polygon_centroid(square), [1.0, 1.0])

    def test_triangle_centroid(self):
        triangle = np.array([[0.0, 0.0], [3.0, 0.0], [0.0, 3.0]])
        np.testing.assert_allclose(compute_polygon_centroid(triangle), [1.0, 1.0])

    def test_padded_bounding_box_contains_sites(self):
        points = np.array([[0.0, 0.0], [10.0, 0.0], [0.0, 10.0], [10.0, 10.0]])
        box = get_bounding_box(points)

        assert box.min_x < 0.0 and box.min_y < 0.0
        assert box.max_x > 10.0 and box.max_y > 10.0


class TestGenerateTerrainModel:
    """Test graph, area and outlet construction."""

    def test_areas_cover_bounding_box(self, random_model, bbox):
        """Clipped Voronoi cells tile the bounding box exactly."""
        assert np.all(random_model.areas > 0)
        assert random_model.areas.sum() == pytest.approx(bbox.width * bbox.height, rel=1e-9)

    def test_graph_is_connected(self, random_model):
        assert random_model.graph.order == random_model.num
        assert count_unreachable_sites(random_model.graph, [0]) == 0

    def test_edge_weights_are_distances(self, random_model):
        sites = random_model.sites
        for i in range(0, random_model.num, 37):
            for j, distance in random_model.graph.neighbors_of(i):
                assert distance == pytest.approx(sites[i].distance(sites[j]))

    def test_planar_edge_count(self, random_model):
        """A planar triangulation has at most 3N - 6 edges."""
        assert random_model.graph.edge_count <= 3 * random_model.num - 6

    def test_default_outlets_on_hull(self, random_model):
        outlets = random_model.default_outlets
        assert len(outlets) >= 3
        assert outlets == sorted(set(outlets))

        xs = [random_model.sites[i].x for i in range(random_model.num)]
        leftmost = int(np.argmin(xs))
        rightmost = int(np.argmax(xs))
        assert leftmost in outlets
        assert rightmost in outlets

    def test_relaxation_keeps_sites_in_box(self, bbox):
        model = generate_terrain_model(get_random_sites(200, bbox, seed=4), bbox,
                                       relaxation_iterations=2)

        assert model.num == 200
        assert all(bbox.contains(site) for site in model.sites)
        assert model.areas.sum() == pytest.approx(bbox.width * bbox.height, rel=1e-9)

    def test_relaxation_evens_out_areas(self, bbox):
        points = get_random_sites(300, bbox, seed=6)
        before = generate_terrain_model(points, bbox)
        after = generate_terrain_model(points, bbox, relaxation_iterations=3)

        assert np.std(after.areas) < np.std(before.areas)

    def test_relax_sites_preserves_count(self, bbox):
        points = get_random_sites(100, bbox, seed=2)
        relaxed = relax_sites(points, bbox, n_iterations=1)
        assert relaxed.shape == points.shape

    def test_accepts_site_objects(self):
        sites = [Site2D(1.0, 1.0), Site2D(5.0, 1.0), Site2D(3.0, 4.0), Site2D(3.0, 2.0)]
        model = generate_terrain_model(sites)

        assert model.num == 4
        assert 3 not in model.default_outlets

    def test_too_few_sites(self):
        with pytest.raises(ValueError):
            generate_terrain_model([(0.0, 0.0), (1.0, 1.0)])

    def test_site_outside_bounding_box(self, bbox):
        with pytest.raises(ValueError):
            generate_terrain_model([(10.0, 10.0), (20.0, 10.0), (300.0, 50.0)], bbox)

    def test_duplicate_sites(self):
        sites = [(0.0, 0.0), (4.0, 0.0), (0.0, 4.0), (4.0, 4.0), (4.0, 4.0)]
        with pytest.raises(ValueError):
            generate_terrain_model(sites)


class TestTerrainModel2D:
    """Test the model container."""

    def test_length_validation(self):
        graph = SiteGraph(3)
        with pytest.raises(ValueError):
            TerrainModel2D(sites=[(0, 0), (1, 0), (0, 1)], areas=[1.0, 1.0], graph=graph,
                           default_outlets=[0])
        with pytest.raises(ValueError):
            TerrainModel2D(sites=[(0, 0), (1, 0)], areas=[1.0, 1.0], graph=graph,
                           default_outlets=[0])

    def test_create_terrain_from_result(self, random_model):
        elevations = np.arange(random_model.num, dtype=float)
        terrain = random_model.create_terrain_from_result(elevations, converged=False, iterations=7)

        assert terrain.sites == random_model.sites
        np.testing.assert_array_equal(terrain.elevations, elevations)
        assert not terrain.converged
        assert terrain.iterations == 7
