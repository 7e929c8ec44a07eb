"""
latticecut/structure/miller.py

Miller-plane geometry and the integer lattice search behind surface cutting.

The central routine is find_surface_basis(), which picks three integer
lattice vectors (U, V, W) in the index basis of the original cell:

  U, V   the two shortest (by Cartesian length) non-parallel vectors lying in
         the plane, i.e. h·u + k·v + l·w = 0
  W      the shortest vector with h·u + k·v + l·w = 1 for the gcd-reduced
         indices, i.e. it steps exactly one plane spacing out of the plane

Because the two shortest independent vectors of a 2D lattice always form a
basis of it, and W climbs exactly one plane, |det [U V W]| = 1: the new cell
is primitive whatever the Miller indices.  V is negated when needed so the
new basis is right-handed.

The search scans the integer box [-n, n]³.  When it finds nothing the box is
widened (doubling, up to max_search_limit) before SearchExhausted is raised.

Other helpers
-------------
    plane_normal(miller, lattice)          unit normal of the (hkl) planes
    interplanar_spacing(miller, lattice)   d_hkl in Å
    plane_polygon(miller, lattice, offset) plane / unit-cell intersection
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

from latticecut.constants import (
    DEFAULT_MAX_SEARCH_LIMIT,
    DEFAULT_SEARCH_LIMIT,
    PLANE_POINT_EPS,
)
from latticecut.exceptions import (
    InvalidInput,
    NoStackingVectorFound,
    NoSurfaceVectorsFound,
    SearchExhausted,
)
from latticecut.structure.model import MillerIndex

logger = logging.getLogger(__name__)

MillerLike = Union[MillerIndex, Sequence[int]]


def as_miller(miller: MillerLike) -> MillerIndex:
    """Accept a MillerIndex or any (h, k, l) sequence."""
    if isinstance(miller, MillerIndex):
        return miller
    h, k, l = miller
    return MillerIndex(h, k, l)


# ---------------------------------------------------------------------------
# Surface basis search
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SurfaceBasis:
    """
    Integer basis of a surface-aligned cell.

    Attributes
    ----------
    miller:
        The gcd-reduced Miller index the basis was built for.
    u, v:
        In-plane vectors in the original lattice's index basis.
    w:
        Out-of-plane stacking vector, one plane spacing up.
    search_limit:
        Half-width of the integer box that produced the basis.
    """

    miller: MillerIndex
    u: tuple[int, int, int]
    v: tuple[int, int, int]
    w: tuple[int, int, int]
    search_limit: int

    @property
    def matrix(self) -> np.ndarray:
        """3×3 integer matrix M with columns U, V, W."""
        return np.array([self.u, self.v, self.w], dtype=int).T

    @property
    def determinant(self) -> int:
        return int(round(np.linalg.det(self.matrix)))


def _integer_box(n: int) -> np.ndarray:
    """All nonzero integer triples in [-n, n]³."""
    box = np.array(list(itertools.product(range(-n, n + 1), repeat=3)), dtype=int)
    return box[np.any(box != 0, axis=1)]


def _sort_by_length(vectors: np.ndarray, lattice: np.ndarray) -> list[tuple[int, int, int]]:
    """
    Order integer vectors by Cartesian length through the lattice.

    Equal lengths are broken in favour of larger leading components, so
    (1, 0, 0) comes before (-1, 0, 0) and before (0, 1, 0).
    """
    cart = vectors @ lattice
    lengths = np.einsum("ij,ij->i", cart, cart)
    keyed = [
        (round(float(length), 8), tuple(-int(x) for x in vec), tuple(int(x) for x in vec))
        for length, vec in zip(lengths, vectors)
    ]
    keyed.sort()
    return [vec for _, _, vec in keyed]


def _search_basis(miller: MillerIndex, lattice: np.ndarray, n: int) -> SurfaceBasis:
    box = _integer_box(n)
    plane_dot = box @ miller.as_array()

    in_plane = _sort_by_length(box[plane_dot == 0], lattice)
    logger.debug(f"{miller}: {len(in_plane)} in-plane candidates within [-{n}, {n}]^3")
    if len(in_plane) < 2:
        raise NoSurfaceVectorsFound(
            f"No surface vectors found for {miller}; try smaller indices "
            f"or a larger search range (searched [-{n}, {n}]^3).",
            search_limit=n,
        )

    u = in_plane[0]
    v = next((cand for cand in in_plane[1:] if np.any(np.cross(u, cand) != 0)), None)
    if v is None:
        raise NoSurfaceVectorsFound(
            f"No surface vectors found for {miller}; try smaller indices "
            f"or a larger search range (only parallel candidates within [-{n}, {n}]^3).",
            search_limit=n,
        )

    stacking = _sort_by_length(box[plane_dot == 1], lattice)
    if not stacking:
        raise NoStackingVectorFound(
            f"No stacking vector with h*u + k*v + l*w = 1 for {miller} "
            f"within [-{n}, {n}]^3.",
            search_limit=n,
        )
    w = stacking[0]

    if np.dot(np.cross(u, v), w) < 0:
        v = (-v[0], -v[1], -v[2])

    return SurfaceBasis(miller=miller, u=u, v=v, w=w, search_limit=n)


def find_surface_basis(
    miller: MillerLike,
    lattice: np.ndarray,
    search_limit: int = DEFAULT_SEARCH_LIMIT,
    max_search_limit: int = DEFAULT_MAX_SEARCH_LIMIT,
) -> SurfaceBasis:
    """
    Find a primitive, right-handed surface-aligned integer basis.

    Parameters
    ----------
    miller:
        (h, k, l), not all zero.  Reduced by its gcd before searching.
    lattice:
        3×3 lattice matrix (rows a, b, c) used to rank candidates by their
        physical length.
    search_limit:
        Initial half-width n of the integer box [-n, n]³.
    max_search_limit:
        Largest half-width tried.  The box grows only when the search at the
        current width is exhausted.

    Returns
    -------
    SurfaceBasis

    Raises
    ------
    InvalidMillerIndex
        If the indices are all zero.
    InvalidInput
        If the search limits are not positive or are out of order.
    NoSurfaceVectorsFound, NoStackingVectorFound
        If nothing qualifies even at max_search_limit.
    """
    if search_limit < 1 or max_search_limit < search_limit:
        raise InvalidInput(
            f"Need 1 <= search_limit <= max_search_limit, got "
            f"search_limit={search_limit}, max_search_limit={max_search_limit}."
        )

    reduced = as_miller(miller).reduced()
    lattice = np.asarray(lattice, dtype=float)

    n = search_limit
    while True:
        try:
            return _search_basis(reduced, lattice, n)
        except SearchExhausted:
            if n >= max_search_limit:
                raise
            grown = min(2 * n, max_search_limit)
            logger.debug(f"{reduced}: search range {n} exhausted, widening to {grown}")
            n = grown


# ---------------------------------------------------------------------------
# Plane geometry
# ---------------------------------------------------------------------------

def plane_normal(miller: MillerLike, lattice: np.ndarray) -> np.ndarray:
    """
    Unit Cartesian normal of the (hkl) planes.

    Computed along the reciprocal vector h(b×c) + k(c×a) + l(a×b), which is
    perpendicular to the planes for any cell shape.
    """
    h, k, l = as_miller(miller)
    a, b, c = np.asarray(lattice, dtype=float)
    normal = h * np.cross(b, c) + k * np.cross(c, a) + l * np.cross(a, b)
    norm = np.linalg.norm(normal)
    if norm < PLANE_POINT_EPS:
        raise InvalidInput(f"Plane normal of ({h} {k} {l}) vanishes for this lattice.")
    return normal / norm


def interplanar_spacing(miller: MillerLike, lattice: np.ndarray) -> float:
    """Spacing d_hkl (Å) between adjacent (hkl) planes, d = 1 / |G_hkl|."""
    hkl = as_miller(miller).as_array()
    reciprocal = np.linalg.inv(np.asarray(lattice, dtype=float)).T
    return float(1.0 / np.linalg.norm(hkl @ reciprocal))


# The 12 edges of the unit cube as (start corner, axis).
_CELL_EDGES = [
    (corner, axis)
    for axis in range(3)
    for corner in itertools.product((0.0, 1.0), repeat=3)
    if corner[axis] == 0.0
]


def plane_polygon(
    miller: MillerLike,
    lattice: np.ndarray,
    offset: float = 1.0,
) -> np.ndarray:
    """
    Intersection of the plane h·x + k·y + l·z = offset with the unit cell.

    Parameters
    ----------
    miller:
        (h, k, l), not all zero.
    lattice:
        3×3 lattice matrix.
    offset:
        Right-hand side of the plane equation in fractional coordinates.

    Returns
    -------
    np.ndarray
        (M, 3) Cartesian vertices ordered by angle around their centroid, or
        an empty (0, 3) array when the plane cuts fewer than three points.
    """
    hkl = as_miller(miller).as_array().astype(float)
    lattice = np.asarray(lattice, dtype=float)

    points: list[np.ndarray] = []
    for corner, axis in _CELL_EDGES:
        start = np.array(corner)
        slope = hkl[axis]
        if abs(slope) < PLANE_POINT_EPS:
            continue
        t = (offset - float(start @ hkl)) / slope
        if -PLANE_POINT_EPS <= t <= 1.0 + PLANE_POINT_EPS:
            point = start.copy()
            point[axis] += min(max(t, 0.0), 1.0)
            if not any(np.max(np.abs(point - p)) < PLANE_POINT_EPS for p in points):
                points.append(point)

    if len(points) < 3:
        return np.zeros((0, 3))

    cart = np.array(points) @ lattice
    centroid = cart.mean(axis=0)
    normal = plane_normal(miller, lattice)

    ref = cart[0] - centroid
    ref = ref - np.dot(ref, normal) * normal
    ref /= np.linalg.norm(ref)
    perp = np.cross(normal, ref)
    rel = cart - centroid
    angles = np.arctan2(rel @ perp, rel @ ref)
    return cart[np.argsort(angles, kind="stable")]


def miller_label(miller: MillerLike) -> str:
    """Compact label, e.g. (1, -1, 0) -> "1-10"."""
    h, k, l = as_miller(miller)
    return f"{h}{k}{l}"
