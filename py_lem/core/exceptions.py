"""Errors raised while building stream trees and solving terrain."""


class GenerationError(ValueError):
    """Configuration error detected before any iteration runs."""


class ModelNotSetError(GenerationError):
    """The generator has no terrain model to work on."""

    def __init__(self):
        super().__init__("A TerrainModel2D must be set before generating terrain")


class InvalidNumberOfParametersError(GenerationError):
    """The number of parameters does not match the number of sites."""

    def __init__(self, n_parameters: int, n_sites: int):
        self.n_parameters = n_parameters
        self.n_sites = n_sites
        super().__init__(
            f"The number of parameters ({n_parameters}) must be equal to "
            f"the number of sites ({n_sites})"
        )


class NoOutletError(GenerationError):
    """No site can act as an outlet, so no site can drain."""

    def __init__(self):
        super().__init__("At least one outlet is required to route flow")


class InvalidAreaError(GenerationError):
    """A cell area is zero, negative or not finite."""

    def __init__(self, site: int, area: float):
        self.site = site
        self.area = area
        super().__init__(f"Cell area of site {site} must be finite and positive, got {area}")


class InvalidOutletError(GenerationError):
    """An outlet index does not name a site of the model."""

    def __init__(self, site: int, n_sites: int):
        self.site = site
        self.n_sites = n_sites
        super().__init__(f"Outlet {site} is not a site index in [0, {n_sites})")


class NumericalInstabilityError(ArithmeticError):
    """An iteration produced a non-finite elevation."""


class UnreachableSiteError(GenerationError):
    """Some sites have no path in the graph to any outlet."""

    def __init__(self, n_unreachable: int):
        self.n_unreachable = n_unreachable
        super().__init__(f"{n_unreachable} sites are not connected to any outlet")


class ParametersNotSetError(GenerationError):
    """The generator has no site parameters."""

    def __init__(self):
        super().__init__("Topographical parameters must be set before generating terrain")
