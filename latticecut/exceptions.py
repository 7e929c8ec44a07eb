"""
latticecut/exceptions.py

Exception hierarchy for the structure transforms.

Every error is raised where it is detected and never retried, except for
SearchExhausted, which the surface cutter answers by widening its integer
search box up to the configured maximum.

    LatticeCutError
    ├── InvalidInput            bad parameters (also a ValueError)
    ├── DegenerateGeometry      singular lattice or basis-change matrix
    ├── SearchExhausted         bounded integer search found nothing
    ├── NoAtomsMapped           valid geometry, but no atom landed in the cell
    └── SymmetrySearchFailed    no space group found for a cell conversion
"""

from __future__ import annotations


class LatticeCutError(Exception):
    """Base class for all latticecut errors."""


# ---------------------------------------------------------------------------
# Invalid input
# ---------------------------------------------------------------------------

class InvalidInput(LatticeCutError, ValueError):
    """A transform was called with parameters outside its preconditions."""


class InvalidMillerIndex(InvalidInput):
    pass


class InvalidThickness(InvalidInput):
    pass


class InvalidVacuum(InvalidInput):
    pass


class EmptyStructure(InvalidInput):
    pass


class InvalidSupercellSize(InvalidInput):
    pass


class InvalidCellParameters(InvalidInput):
    pass


class InvalidCellType(InvalidInput):
    pass


# ---------------------------------------------------------------------------
# Degenerate geometry
# ---------------------------------------------------------------------------

class DegenerateGeometry(LatticeCutError):
    """A lattice or transformation matrix has (numerically) zero volume."""


class SingularLatticeError(DegenerateGeometry):
    pass


class SingularTransform(DegenerateGeometry):
    pass


# ---------------------------------------------------------------------------
# Search failures
# ---------------------------------------------------------------------------

class SearchExhausted(LatticeCutError):
    """
    The bounded integer search found no qualifying basis vector.

    Attributes
    ----------
    search_limit:
        Half-width of the [-n, n]³ box that was scanned.
    """

    def __init__(self, message: str, search_limit: int | None = None) -> None:
        super().__init__(message)
        self.search_limit = search_limit


class NoSurfaceVectorsFound(SearchExhausted):
    pass


class NoStackingVectorFound(SearchExhausted):
    pass


class NoAtomsMapped(LatticeCutError):
    """
    No atom image fell inside the new primitive cell.

    This points at an undersized translation search, not at bad user input.
    """


class SymmetrySearchFailed(LatticeCutError):
    """spglib found no space group for the structure at the given tolerance."""


# ---------------------------------------------------------------------------
# Symmetry operator parsing
# ---------------------------------------------------------------------------

class MalformedOperation(ValueError):
    """A symmetry operator string could not be parsed.  Never escapes expand()."""
