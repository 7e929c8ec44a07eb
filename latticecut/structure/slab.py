"""
latticecut/structure/slab.py

Cut a crystal along an (h k l) surface into a finite, vacuum-padded slab.

Steps
-----
  1. Validate the indices, thickness, vacuum and input structure.
  2. Find a surface-aligned integer basis M = [U V W] (see miller.py).
  3. Build the primitive surface cell L_new = Mᵀ·L (rows).
  4. Map every atom image that lies inside the new cell into it:
     f_new = f_old·M⁻ᵀ over a box of integer translations large enough to
     cover the new cell.
  5. Drop duplicate images (SLAB_DEDUP_EPS).
  6. Stack `thickness` copies along the new c axis.
  7. Add `vacuum` Å along the true surface normal a×b, keeping every atom
     at its Cartesian position in the lower, non-vacuum part of the cell.

Usage
-----
    from latticecut.structure.slab import cut

    slab = cut(bulk, 1, 1, 1, thickness=4, vacuum=10.0)
    print(len(slab), slab.cell_parameters())
"""

from __future__ import annotations

import itertools
import logging
import math

import numpy as np

from latticecut.constants import (
    DEFAULT_MAX_SEARCH_LIMIT,
    DEFAULT_SEARCH_LIMIT,
    DETERMINANT_EPS,
    SLAB_DEDUP_EPS,
)
from latticecut.exceptions import (
    EmptyStructure,
    InvalidMillerIndex,
    InvalidThickness,
    InvalidVacuum,
    NoAtomsMapped,
    SingularTransform,
)
from latticecut.structure.miller import find_surface_basis
from latticecut.structure.model import MillerIndex, Structure, check_lattice
from latticecut.structure.symmetry import wrap_fractional

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Atom remapping
# ---------------------------------------------------------------------------

def translation_box(m: np.ndarray) -> list[np.ndarray]:
    """
    Integer translation ranges, per original axis, that cover the new cell.

    The new cell spans f_old = M·f_new for f_new in [0, 1]³, so along old
    axis i it reaches from the sum of the negative entries of row i of M to
    the sum of the positive ones.  The box is never narrower than
    [-r, r] with r = ceil(|det M|^(1/3)) + 2.
    """
    r = math.ceil(abs(np.linalg.det(m)) ** (1.0 / 3.0)) + 2
    ranges = []
    for row in m:
        lo = math.floor(np.minimum(row, 0).sum()) - 1
        hi = math.ceil(np.maximum(row, 0).sum()) + 1
        ranges.append(np.arange(min(lo, -r), max(hi, r) + 1))
    return ranges


def map_into_cell(
    frac_orig: np.ndarray,
    m: np.ndarray,
    eps: float = SLAB_DEDUP_EPS,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Find the images of each atom that fall inside the new cell.

    Parameters
    ----------
    frac_orig:
        (N, 3) fractional positions in the original lattice.
    m:
        3×3 basis-change matrix with the new basis vectors as columns.
    eps:
        Slack at the cell boundary: images in [-eps, 1 - eps)³ are kept.

    Returns
    -------
    (atom_index, frac_new)
        For each kept image, the index of the atom it came from and its
        fractional position in the new basis.
    """
    frac_orig = wrap_fractional(frac_orig)
    m_inv_t = np.linalg.inv(m).T

    shifts = np.array(list(itertools.product(*translation_box(m))), dtype=float)
    images = (shifts[:, np.newaxis, :] + frac_orig[np.newaxis, :, :]) @ m_inv_t
    inside = np.all((images >= -eps) & (images < 1.0 - eps), axis=2)

    shift_idx, atom_idx = np.nonzero(inside)
    logger.debug(
        f"Remapping: {len(shifts)} translations x {len(frac_orig)} atoms, "
        f"{len(atom_idx)} images inside the new cell"
    )
    return atom_idx, images[shift_idx, atom_idx]


def deduplicate(
    atom_idx: np.ndarray,
    frac: np.ndarray,
    eps: float = SLAB_DEDUP_EPS,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Drop images closer than eps to an already accepted one.

    Positions are wrapped into [0, 1) first (values within eps of 1 fold to
    0).  Candidates are sorted by source atom, then position, before
    acceptance so the result does not depend on enumeration order.
    """
    wrapped = wrap_fractional(frac)
    wrapped[wrapped > 1.0 - eps] = 0.0

    order = np.lexsort((wrapped[:, 2], wrapped[:, 1], wrapped[:, 0], atom_idx))
    kept_idx: list[int] = []
    kept_pos: list[np.ndarray] = []
    for i in order:
        pos = wrapped[i]
        if kept_pos and np.min(np.linalg.norm(np.array(kept_pos) - pos, axis=1)) < eps:
            continue
        kept_idx.append(int(atom_idx[i]))
        kept_pos.append(pos)
    return np.array(kept_idx, dtype=int), np.array(kept_pos).reshape(-1, 3)


# ---------------------------------------------------------------------------
# Slab assembly
# ---------------------------------------------------------------------------

def stack_layers(frac: np.ndarray, thickness: int) -> np.ndarray:
    """
    Repeat a primitive cell `thickness` times along its third axis.

    Layer n has z' = (z + n) / thickness, so the stack fills [0, 1) of the
    thickness-scaled cell.  Output is layer-major.
    """
    layers = []
    for n in range(thickness):
        layer = frac.copy()
        layer[:, 2] = (layer[:, 2] + n) / thickness
        layers.append(layer)
    return np.vstack(layers) if layers else np.zeros((0, 3))


def add_vacuum(
    lattice: np.ndarray,
    frac: np.ndarray,
    vacuum: float,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Extend c by `vacuum` Å along the surface normal a×b.

    Cartesian positions are held fixed and re-expressed in the padded cell,
    so the fractional z of every atom becomes z·(c_old·n) / (c_new·n) and
    the atoms stay in the lower, non-vacuum part of the cell.  When c is
    oblique the in-plane fractions shift too; they are folded back into
    [0, 1) by in-plane lattice translations only.

    Returns
    -------
    (new_lattice, new_frac)
    """
    a, b, c_old = lattice
    normal = np.cross(a, b)
    norm = np.linalg.norm(normal)
    if norm < DETERMINANT_EPS:
        raise SingularTransform("In-plane lattice vectors a and b are parallel.")
    normal /= norm

    c_new = c_old + vacuum * normal
    if abs(float(np.dot(c_new, normal))) < DETERMINANT_EPS:
        raise SingularTransform("Stacking vector has no component along the surface normal.")

    new_lattice = np.array([a, b, c_new])
    cart = frac @ lattice
    new_frac = cart @ np.linalg.inv(new_lattice)
    new_frac[:, :2] = wrap_fractional(new_frac[:, :2])
    return new_lattice, new_frac


def cut(
    structure: Structure,
    h: int,
    k: int,
    l: int,
    thickness: int,
    vacuum: float,
    *,
    search_limit: int = DEFAULT_SEARCH_LIMIT,
    max_search_limit: int = DEFAULT_MAX_SEARCH_LIMIT,
) -> Structure:
    """
    Cut an (h k l) slab from a bulk structure.

    Parameters
    ----------
    structure:
        Bulk cell.  Not modified.
    h, k, l:
        Miller indices, not all zero.  (2 2 0) gives the same slab as (1 1 0).
    thickness:
        Number of primitive surface cells stacked along the normal, >= 1.
    vacuum:
        Vacuum spacing (Å) added along the surface normal, >= 0.
    search_limit, max_search_limit:
        Initial and largest half-width of the integer box searched for the
        surface basis.

    Returns
    -------
    Structure
        The slab.  a and b span the surface, c points out of it.

    Raises
    ------
    InvalidMillerIndex, InvalidThickness, InvalidVacuum, EmptyStructure
        If a precondition is not met.
    SingularLatticeError
        If the input lattice has zero volume.
    NoSurfaceVectorsFound, NoStackingVectorFound
        If the basis search is exhausted at max_search_limit.
    SingularTransform
        If the basis-change matrix is singular.
    NoAtomsMapped
        If no atom image falls inside the new cell.
    """
    if h == 0 and k == 0 and l == 0:
        raise InvalidMillerIndex("Miller indices (0, 0, 0) do not define a plane.")
    miller = MillerIndex(h, k, l)
    if int(thickness) != thickness or thickness < 1:
        raise InvalidThickness(f"Slab thickness must be a positive integer, got {thickness}.")
    thickness = int(thickness)
    if not math.isfinite(vacuum) or vacuum < 0:
        raise InvalidVacuum(f"Vacuum spacing must be >= 0 Å, got {vacuum}.")
    if not structure.atoms:
        raise EmptyStructure("Input structure has no atoms.")
    check_lattice(structure.lattice)

    lattice = np.asarray(structure.lattice, dtype=float)
    basis = find_surface_basis(
        miller, lattice, search_limit=search_limit, max_search_limit=max_search_limit
    )
    m = basis.matrix.astype(float)
    if abs(np.linalg.det(m)) < DETERMINANT_EPS:
        raise SingularTransform(f"Singular transformation for Miller indices {miller}.")
    logger.debug(f"{miller}: U={basis.u} V={basis.v} W={basis.w} (search limit {basis.search_limit})")

    primitive_lattice = m.T @ lattice

    atom_idx, frac_new = map_into_cell(structure.fractional_positions(), m)
    if len(atom_idx) == 0:
        raise NoAtomsMapped(f"No atoms mapped into the primitive cell for {miller}.")
    atom_idx, frac_new = deduplicate(atom_idx, frac_new)

    layered = stack_layers(frac_new, thickness)
    thick_lattice = primitive_lattice.copy()
    thick_lattice[2] *= thickness
    slab_lattice, slab_frac = add_vacuum(thick_lattice, layered, vacuum)
    check_lattice(slab_lattice)

    elements = [structure.atoms[i].element for i in atom_idx] * thickness
    logger.debug(
        f"{miller}: {len(atom_idx)} atoms per layer, {len(elements)} atoms in slab"
    )
    return Structure.from_fractional(
        slab_lattice,
        elements,
        slab_frac,
        formula=f"{structure.formula} ({h} {k} {l}) slab x{thickness}",
    )
