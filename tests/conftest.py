"""Shared fixtures for the py_lem test suite."""

import math

import numpy as np
import pytest

from py_lem.core.graph import SiteGraph
from py_lem.core.sites import Site2D
from py_lem.core.terrain_model import TerrainModel2D


def build_lattice_model(width: int, height: int, spacing: float = 1.0) -> TerrainModel2D:
    """Regular lattice with 4-neighbour connectivity; boundary sites are the default outlets."""
    sites = []
    for y in range(height):
        for x in range(width):
            sites.append(Site2D(x * spacing, y * spacing))

    graph = SiteGraph(width * height)
    for y in range(height):
        for x in range(width):
            i = y * width + x
            if x + 1 < width:
                graph.add_edge(i, i + 1, spacing)
            if y + 1 < height:
                graph.add_edge(i, i + width, spacing)

    boundary = [
        y * width + x
        for y in range(height)
        for x in range(width)
        if x in (0, width - 1) or y in (0, height - 1)
    ]
    return TerrainModel2D(
        sites=sites,
        areas=np.full(width * height, spacing * spacing),
        graph=graph,
        default_outlets=boundary,
    )


def build_chain_model(n_sites: int, spacing: float = 1.0) -> TerrainModel2D:
    """Sites on a line, each connected to the next; site 0 is the default outlet."""
    graph = SiteGraph.from_edges(n_sites, [(i, i + 1, spacing) for i in range(n_sites - 1)])
    return TerrainModel2D(
        sites=[Site2D(i * spacing, 0.0) for i in range(n_sites)],
        areas=np.ones(n_sites),
        graph=graph,
        default_outlets=[0],
    )


def build_ring_graph() -> SiteGraph:
    """
    A hexagonal ring (sites 1-6) around a low centre site 0, with a single
    outside site 7 attached to ring site 1.
    """
    graph = SiteGraph(8)
    for k in range(1, 7):
        graph.add_edge(0, k, 1.0)
        graph.add_edge(k, k % 6 + 1, 1.0)
    graph.add_edge(1, 7, 1.0)
    return graph


def flow_reaches_outlet(next_sites, outlets, site) -> bool:
    """Follow ``next_sites`` from ``site`` for at most N hops."""
    outlets = set(outlets)
    current = site
    for _ in range(len(next_sites) + 1):
        if current in outlets:
            return True
        current = int(next_sites[current])
    return False


@pytest.fixture
def lattice_model():
    """Factory for lattice models."""
    return build_lattice_model


@pytest.fixture
def chain_model():
    """Factory for chain models."""
    return build_chain_model


@pytest.fixture
def ring_graph():
    return build_ring_graph()


@pytest.fixture
def dome_elevations():
    """7x7 lattice elevations decreasing away from the centre site."""
    width = 7
    center = (3, 3)
    return np.array([
        10.0 - math.hypot(x - center[0], y - center[1])
        for y in range(width)
        for x in range(width)
    ])


@pytest.fixture
def reaches_outlet():
    return flow_reaches_outlet
