"""
py_lem: procedural terrain from a simplified landscape evolution model.
"""

from .core import (Site2D, BoundingBox, SiteGraph, TopographicalParameters, GeneratorConfig,
                   TerrainModel2D, Terrain2D, TerrainGenerator, generate_terrain_model,
                   get_random_sites)

__version__ = "0.1.0"

__all__ = ['Site2D', 'BoundingBox', 'SiteGraph', 'TopographicalParameters', 'GeneratorConfig',
           'TerrainModel2D', 'Terrain2D', 'TerrainGenerator', 'generate_terrain_model',
           'get_random_sites']
