"""
Site parameters and solver configuration.

Both models are validated once, at construction, so the solver never has to
check a field inside its iteration loop.
"""

import math
from typing import Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config import Settings, settings as default_settings


class TopographicalParameters(BaseModel):
    """
    Topographical parameters of a single site.

    Attributes:
        base_elevation: Initial elevation (unit: L). 0.0 is recommended when
            creating terrain from scratch.
        erodibility: Erodibility, the main control on the terrain shape.
        uplift_rate: Uplift rate (unit: L/T).
        is_outlet: Whether the site is a permanent sink.
        max_slope: Maximum slope angle in radians, in [0, pi/2), or None.
    """

    model_config = ConfigDict(frozen=True)

    base_elevation: float = Field(default=0.0, allow_inf_nan=False)
    erodibility: float = Field(default=1.0, gt=0.0, allow_inf_nan=False)
    uplift_rate: float = Field(default=1.0, allow_inf_nan=False)
    is_outlet: bool = False
    max_slope: Optional[float] = None

    @field_validator("max_slope")
    @classmethod
    def _check_max_slope(cls, value: Optional[float]) -> Optional[float]:
        if value is None:
            return value
        if not (0.0 <= value < math.pi / 2):
            raise ValueError(f"max_slope must be in [0, pi/2), got {value}")
        return value

    def lerp(self, other: "TopographicalParameters", prop: float) -> "TopographicalParameters":
        """Blend two parameter sets, ``prop`` = 0 gives ``self`` and 1 gives ``other``."""
        def mix(a: float, b: float) -> float:
            return a * (1.0 - prop) + b * prop

        if self.max_slope is not None and other.max_slope is not None:
            max_slope = mix(self.max_slope, other.max_slope)
        elif self.max_slope is not None:
            max_slope = self.max_slope
        else:
            max_slope = other.max_slope

        return TopographicalParameters(
            base_elevation=mix(self.base_elevation, other.base_elevation),
            erodibility=mix(self.erodibility, other.erodibility),
            uplift_rate=mix(self.uplift_rate, other.uplift_rate),
            is_outlet=self.is_outlet or other.is_outlet,
            max_slope=max_slope,
        )


class GeneratorConfig(BaseModel):
    """Options for the equilibrium solver."""

    model_config = ConfigDict(frozen=True)

    max_iteration: Optional[int] = Field(default=None, ge=1, description="None iterates until stable")
    m_exponent: float = Field(default=0.5, gt=0.0, description="Drainage area exponent in the celerity")
    seed: int = Field(default=0, description="Seed of the initial perturbation")
    perturbation: float = Field(
        default=float(np.finfo(np.float64).eps), ge=0.0,
        description="Upper bound of the random offset added to base elevations",
    )
    tolerance: float = Field(default=0.0, ge=0.0, description="Changes up to this value count as unchanged")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "GeneratorConfig":
        """Create a config from environment-driven settings."""
        settings = settings or default_settings
        return cls(
            max_iteration=settings.max_iteration,
            m_exponent=settings.m_exponent,
            seed=settings.seed,
            tolerance=settings.convergence_tolerance,
        )
