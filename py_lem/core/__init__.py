"""
Core terrain generation functionality.
"""

from .sites import Site2D, BoundingBox
from .graph import SiteGraph
from .parameters import TopographicalParameters, GeneratorConfig
from .exceptions import (GenerationError, ModelNotSetError, ParametersNotSetError,
                         InvalidNumberOfParametersError, NoOutletError, InvalidOutletError,
                         InvalidAreaError, UnreachableSiteError, NumericalInstabilityError)
from .stream_tree import StreamTree
from .drainage_basin import DrainageBasin
from .terrain import Terrain2D
from .terrain_model import TerrainModel2D, generate_terrain_model, get_random_sites, relax_sites
from .generator import TerrainGenerator

__all__ = ['Site2D', 'BoundingBox', 'SiteGraph', 'TopographicalParameters', 'GeneratorConfig',
           'GenerationError', 'ModelNotSetError', 'ParametersNotSetError',
           'InvalidNumberOfParametersError', 'NoOutletError', 'InvalidOutletError',
           'InvalidAreaError', 'UnreachableSiteError', 'NumericalInstabilityError',
           'StreamTree', 'DrainageBasin', 'Terrain2D', 'TerrainModel2D',
           'generate_terrain_model', 'get_random_sites', 'relax_sites', 'TerrainGenerator']
