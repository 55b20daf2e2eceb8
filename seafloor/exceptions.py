"""
Validation errors raised by the grid, habitat and impact functions.

All errors are raised before any output is produced, so a caller never sees
a partial result.
"""


class GridError(ValueError):
    """Base class for grid validation failures."""


class BandMismatch(GridError):
    """A requested band is not present in the grid."""


class BandCountMismatch(GridError):
    """A grid does not have the number of bands an operation requires."""


class ShapeMismatch(GridError):
    """Two grids (or a grid and its arrays) do not share one lattice."""


class EmptyMaskResult(GridError):
    """A mask selected zero cells."""
