"""Site and bounding box primitives."""

import math
from typing import NamedTuple


class Site2D(NamedTuple):
    """A 2D point in the plane."""
    x: float
    y: float

    def distance(self, other: "Site2D") -> float:
        """Euclidean distance to another site."""
        return math.sqrt(self.squared_distance(other))

    def squared_distance(self, other: "Site2D") -> float:
        """Squared Euclidean distance to another site."""
        return (self.x - other.x) ** 2 + (self.y - other.y) ** 2


class BoundingBox(NamedTuple):
    """Axis-aligned rectangle enclosing the sites."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def contains(self, site: Site2D) -> bool:
        return self.min_x <= site.x <= self.max_x and self.min_y <= site.y <= self.max_y
