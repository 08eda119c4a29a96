"""
Equilibrium terrain generation.

The solver repeatedly rebuilds the stream tree from the current elevations,
accumulates drainage area and stream response time per drainage basin, and
derives new elevations from the steady-state solution of the stream power
law until the elevations stop changing.
"""

import math
from collections import deque
from typing import List, Optional, Sequence, Tuple

import numpy as np
import structlog

from .drainage_basin import DrainageBasin
from .exceptions import (
    InvalidAreaError,
    InvalidNumberOfParametersError,
    InvalidOutletError,
    ModelNotSetError,
    NoOutletError,
    NumericalInstabilityError,
    ParametersNotSetError,
    UnreachableSiteError,
)
from .graph import SiteGraph
from .parameters import GeneratorConfig, TopographicalParameters
from .stream_tree import StreamTree
from .terrain import Terrain2D
from .terrain_model import TerrainModel2D

logger = structlog.get_logger()


class TerrainGenerator:
    """Generates terrain from a terrain model and per-site parameters."""

    def __init__(
        self,
        model: Optional[TerrainModel2D] = None,
        parameters: Optional[Sequence[TopographicalParameters]] = None,
        config: Optional[GeneratorConfig] = None,
    ):
        """
        Initialize the terrain generator.

        Args:
            model: Sites, areas, graph and default outlets
            parameters: One TopographicalParameters per site
            config: Solver options, read from settings when omitted
        """
        self.model = model
        self.parameters = list(parameters) if parameters is not None else None
        self.config = config if config is not None else GeneratorConfig.from_settings()

    def generate(self) -> Terrain2D:
        """
        Solve the equilibrium elevations.

        Reaching ``config.max_iteration`` is not an error: the last field is
        returned with ``converged`` set to False.

        Raises:
            GenerationError: On invalid configuration, before any iteration
            NumericalInstabilityError: If an iteration produces a non-finite elevation
        """
        model, parameters, outlets = self._validate()
        config = self.config
        n_sites = model.num

        logger.info("Generating terrain", sites=n_sites, outlets=len(outlets),
                    max_iteration=config.max_iteration, m_exponent=config.m_exponent)

        rng = np.random.default_rng(config.seed)
        base_elevations = np.array([p.base_elevation for p in parameters], dtype=np.float64)
        elevations = base_elevations + rng.random(n_sites) * config.perturbation

        erodibility = np.array([p.erodibility for p in parameters], dtype=np.float64)
        uplift_rate = np.array([p.uplift_rate for p in parameters], dtype=np.float64)
        # NaN marks sites without a slope limit
        max_slope_tan = np.array(
            [math.tan(p.max_slope) if p.max_slope is not None else np.nan for p in parameters],
            dtype=np.float64,
        )
        areas = np.asarray(model.areas, dtype=np.float64)

        step = 0
        converged = False
        max_deltas = []
        while True:
            with np.errstate(over="ignore", invalid="ignore"):
                changed, max_delta = self._iterate(
                    elevations, model.graph, outlets, areas, erodibility, uplift_rate, max_slope_tan
                )
            step += 1

            if not np.all(np.isfinite(elevations)):
                raise NumericalInstabilityError(f"Non-finite elevation after iteration {step}")

            max_deltas.append(max_delta)
            logger.debug("Iteration complete", step=step, changed_sites=changed, max_delta=max_delta)

            if changed == 0:
                converged = True
                break
            if config.max_iteration is not None and step >= config.max_iteration:
                break

        if converged:
            logger.info("Terrain converged", iterations=step)
        else:
            logger.warning("Maximum iteration reached before convergence",
                           iterations=step, max_delta=max_delta)

        return model.create_terrain_from_result(
            elevations, converged=converged, iterations=step, max_deltas=max_deltas
        )

    def _validate(self) -> Tuple[TerrainModel2D, List[TopographicalParameters], List[int]]:
        """Check the configuration and pick the outlets."""
        if self.model is None:
            raise ModelNotSetError()
        if self.parameters is None:
            raise ParametersNotSetError()

        model = self.model
        parameters = self.parameters
        if len(parameters) != model.num:
            raise InvalidNumberOfParametersError(len(parameters), model.num)

        for i, area in enumerate(model.areas):
            if not (math.isfinite(area) and area > 0.0):
                raise InvalidAreaError(i, float(area))

        outlets = [i for i, p in enumerate(parameters) if p.is_outlet]
        if not outlets:
            outlets = sorted(set(int(o) for o in model.default_outlets))
            logger.info("No outlet in parameters, using default outlets", outlets=len(outlets))
        if not outlets:
            raise NoOutletError()

        for outlet in outlets:
            if not 0 <= outlet < model.num:
                raise InvalidOutletError(outlet, model.num)

        unreachable = count_unreachable_sites(model.graph, outlets)
        if unreachable:
            raise UnreachableSiteError(unreachable)

        return model, parameters, outlets

    def _iterate(
        self,
        elevations: np.ndarray,
        graph: SiteGraph,
        outlets: List[int],
        areas: np.ndarray,
        erodibility: np.ndarray,
        uplift_rate: np.ndarray,
        max_slope_tan: np.ndarray,
    ) -> Tuple[int, float]:
        """
        Run one solver iteration, updating ``elevations`` in place.

        Returns:
            Tuple of (number of changed sites, largest absolute change)
        """
        m_exponent = self.config.m_exponent
        tolerance = self.config.tolerance

        stream_tree = StreamTree.construct(elevations, graph, outlets)
        next_sites = stream_tree.next

        n_sites = len(elevations)
        drainage_areas = areas.copy()
        response_times = np.zeros(n_sites, dtype=np.float64)
        distances = np.zeros(n_sites, dtype=np.float64)
        changed = 0
        max_delta = 0.0

        for outlet in outlets:
            drainage_basin = DrainageBasin.construct(outlet, stream_tree, graph)

            # Drainage areas, heads first
            for i in drainage_basin.iter_downstream():
                j = next_sites[i]
                if j != i:
                    drainage_areas[j] += drainage_areas[i]

            # Response times, outlet first
            for i in drainage_basin.iter_upstream():
                j = next_sites[i]
                if j == i:
                    continue
                _, distance = graph.has_edge(i, j)
                distances[i] = distance
                celerity = erodibility[i] * drainage_areas[i] ** m_exponent
                response_times[i] = response_times[j] + distance / celerity

            outlet_elevation = elevations[outlet]
            outlet_response_time = response_times[outlet]
            for i in drainage_basin.iter_upstream():
                new_elevation = outlet_elevation + uplift_rate[i] * max(
                    response_times[i] - outlet_response_time, 0.0
                )

                j = next_sites[i]
                if j != i and not np.isnan(max_slope_tan[i]):
                    slope = (new_elevation - elevations[j]) / distances[i]
                    if slope > max_slope_tan[i]:
                        new_elevation = elevations[j] + max_slope_tan[i] * distances[i]

                delta = abs(new_elevation - elevations[i])
                if delta > tolerance:
                    changed += 1
                max_delta = max(max_delta, float(delta))
                elevations[i] = new_elevation

        return changed, max_delta


def count_unreachable_sites(graph: SiteGraph, outlets: Sequence[int]) -> int:
    """Number of sites with no graph path to any outlet."""
    reached = [False] * graph.order
    queue = deque()
    for outlet in outlets:
        if not reached[outlet]:
            reached[outlet] = True
            queue.append(outlet)

    while queue:
        i = queue.popleft()
        for j, _ in graph.neighbors_of(i):
            if not reached[j]:
                reached[j] = True
                queue.append(j)

    return reached.count(False)
