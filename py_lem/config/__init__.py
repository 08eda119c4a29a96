"""
Configuration for terrain generation.
"""

from .settings import Settings, settings

__all__ = ['Settings', 'settings']
