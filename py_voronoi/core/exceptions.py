"""Exception types raised while building and querying Voronoi diagrams."""


class VoronoiError(Exception):
    """Base class for all diagram errors."""


class DegenerateInputError(VoronoiError, ValueError):
    """Site list violates the construction precondition.

    Raised by the site collaborator when two sites share an x or a y
    coordinate, when coordinates are not finite, or when the input is not
    an (n, 2) array of numbers. The builder itself never raises it.
    """


class GeometryError(VoronoiError, ArithmeticError):
    """A geometric computation has no defined result (parallel lines,
    zero-length bisectors, a merge chain that leaves the diagram)."""


class InvalidEdgeError(VoronoiError, LookupError):
    """An invalid edge iterator was dereferenced."""


class DiagramSealedError(VoronoiError, RuntimeError):
    """A finished diagram was asked to change."""
