"""
latticecut/structure/supercell.py

Integer supercell replication.

The cell is repeated nx × ny × nz times along its own lattice vectors.  This
is a diagonal scaling only (a' = nx·a, b' = ny·b, c' = nz·c), not a general
basis change, so translated images never overlap and no deduplication or
tolerance is involved.
"""

from __future__ import annotations

import logging

import numpy as np

from latticecut.exceptions import InvalidSupercellSize
from latticecut.structure.model import Atom, Structure, check_lattice

logger = logging.getLogger(__name__)


def replicate(structure: Structure, nx: int, ny: int, nz: int) -> Structure:
    """
    Build an nx × ny × nz supercell.

    Atoms are emitted offset-major: for each integer offset (i, j, k) with
    0 <= i < nx (then j, then k), every atom of the input in its original
    order, shifted by i·a + j·b + k·c.  original_index is renumbered over
    the full output in that order.

    Parameters
    ----------
    structure:
        The cell to replicate.  Not modified.
    nx, ny, nz:
        Positive repeat counts.

    Returns
    -------
    Structure
        len(structure) * nx * ny * nz atoms and nx * ny * nz times the volume.

    Raises
    ------
    InvalidSupercellSize
        If any repeat count is not a positive integer.  A zero count would
        give a cell with no volume, so it is rejected up front.
    SingularLatticeError
        If the input lattice is singular.
    """
    for name, n in (("nx", nx), ("ny", ny), ("nz", nz)):
        if int(n) != n or n < 1:
            raise InvalidSupercellSize(
                f"Supercell repeat {name} must be a positive integer, got {n}."
            )
    nx, ny, nz = int(nx), int(ny), int(nz)
    check_lattice(structure.lattice)

    lattice = np.asarray(structure.lattice)
    offsets = np.array(
        [(i, j, k) for i in range(nx) for j in range(ny) for k in range(nz)],
        dtype=float,
    )
    translations = offsets @ lattice                        # (T, 3)

    positions = structure.positions                         # (N, 3)
    shifted = translations[:, np.newaxis, :] + positions[np.newaxis, :, :]
    shifted = shifted.reshape(-1, 3)
    elements = structure.elements * len(offsets)

    atoms = tuple(
        Atom(element=el, position=(float(p[0]), float(p[1]), float(p[2])), original_index=i)
        for i, (el, p) in enumerate(zip(elements, shifted))
    )
    new_lattice = lattice * np.array([[nx], [ny], [nz]], dtype=float)

    logger.debug(
        f"Supercell {nx}x{ny}x{nz}: {len(structure)} -> {len(atoms)} atoms"
    )
    return Structure(
        lattice=new_lattice,
        atoms=atoms,
        formula=f"{structure.formula} ({nx}x{ny}x{nz} Supercell)",
    )
