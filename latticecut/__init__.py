"""
latticecut: crystal cell transforms.

Derives new, geometrically valid structures from a crystal: symmetry
expansion of an asymmetric unit into a full cell, integer supercells, and
vacuum-padded surface slabs for arbitrary Miller indices, and conversion
between primitive and conventional cells.

Example
-------
    >>> from latticecut import expand, replicate, cut
    >>> bulk = expand([("Cu", (0, 0, 0))],
    ...               ["x,y,z", "x,y+1/2,z+1/2", "x+1/2,y,z+1/2", "x+1/2,y+1/2,z"],
    ...               (3.61, 3.61, 3.61, 90, 90, 90))
    >>> len(bulk)
    4
    >>> slab = cut(bulk, 1, 1, 1, thickness=3, vacuum=10.0)
    >>> len(slab)
    12
"""

__version__ = "0.1.0"

from .exceptions import (
    DegenerateGeometry,
    InvalidInput,
    LatticeCutError,
    NoAtomsMapped,
    SearchExhausted,
    SymmetrySearchFailed,
)
from .structure.conversion import CellType, convert_cell
from .structure.miller import (
    find_surface_basis,
    interplanar_spacing,
    plane_normal,
    plane_polygon,
)
from .structure.model import (
    Atom,
    MillerIndex,
    Structure,
    cell_parameters_from_lattice,
    lattice_from_parameters,
)
from .structure.slab import cut
from .structure.supercell import replicate
from .structure.symmetry import SymmetryOperation, expand

__all__ = [
    "__version__",
    # Model
    "Atom",
    "Structure",
    "MillerIndex",
    "lattice_from_parameters",
    "cell_parameters_from_lattice",
    # Transforms
    "expand",
    "replicate",
    "cut",
    "convert_cell",
    "CellType",
    "SymmetryOperation",
    # Miller geometry
    "find_surface_basis",
    "plane_normal",
    "plane_polygon",
    "interplanar_spacing",
    # Errors
    "LatticeCutError",
    "InvalidInput",
    "DegenerateGeometry",
    "SearchExhausted",
    "NoAtomsMapped",
    "SymmetrySearchFailed",
]
