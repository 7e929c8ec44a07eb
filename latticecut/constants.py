"""
latticecut/constants.py

Numerical tolerances and search defaults shared by the structure transforms.

Tolerances
----------
SYMMETRY_DEDUP_EPS  Per-axis fractional distance below which two symmetry
                    images are the same site (periodic match included).
SLAB_DEDUP_EPS      Fractional distance below which two atoms mapped into
                    the new surface cell are the same atom.  Also the slack
                    accepted at the [0, 1) cell boundary.
DETERMINANT_EPS     |det| below which a lattice or basis-change matrix is
                    treated as singular.
PLANE_POINT_EPS     Merge distance for plane/cell-edge intersection points.
CONVERSION_SYMPREC  Cartesian tolerance (Å) handed to spglib when searching
                    for the symmetry behind a primitive/conventional cell.

Search defaults
---------------
DEFAULT_SEARCH_LIMIT      Initial half-width n of the [-n, n]³ integer box
                          scanned for surface basis vectors.
DEFAULT_MAX_SEARCH_LIMIT  Largest half-width the search may grow to before
                          giving up.
"""

SYMMETRY_DEDUP_EPS = 1e-3
SLAB_DEDUP_EPS = 1e-4
DETERMINANT_EPS = 1e-6
PLANE_POINT_EPS = 1e-5
CONVERSION_SYMPREC = 1e-4

DEFAULT_SEARCH_LIMIT = 4
DEFAULT_MAX_SEARCH_LIMIT = 10
