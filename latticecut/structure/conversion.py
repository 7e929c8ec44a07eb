"""
latticecut/structure/conversion.py

Primitive <-> conventional cell conversion.

spglib finds the space group of the structure and returns its standardized
cell, either the conventional (Bravais-centred) cell or the primitive one.
The standardized lattice is also idealized, so it may be rotated relative
to the input; the crystal itself is unchanged.

spglib works on integer species ids rather than symbols.  Distinct element
labels are numbered 1..n in alphabetical order and mapped back afterwards,
so labels need not be real chemical symbols.

Usage
-----
    from latticecut.structure.conversion import convert_cell

    prim = convert_cell(bulk, "primitive")
    conv = convert_cell(prim, "conventional")
"""

from __future__ import annotations

import logging
from enum import Enum

import numpy as np
import spglib

from latticecut.constants import CONVERSION_SYMPREC
from latticecut.exceptions import (
    EmptyStructure,
    InvalidCellType,
    InvalidInput,
    SymmetrySearchFailed,
)
from latticecut.structure.model import Structure, check_lattice
from latticecut.structure.symmetry import wrap_fractional

logger = logging.getLogger(__name__)


class CellType(str, Enum):
    PRIMITIVE = "primitive"
    CONVENTIONAL = "conventional"


def convert_cell(
    structure: Structure,
    cell_type: CellType | str,
    symprec: float = CONVERSION_SYMPREC,
) -> Structure:
    """
    Return the standardized primitive or conventional cell of a structure.

    Parameters
    ----------
    structure:
        Input cell.  Not modified.
    cell_type:
        "primitive" or "conventional" (or a CellType).
    symprec:
        Distance tolerance (Å) for the symmetry search, > 0.

    Returns
    -------
    Structure
        The converted cell with original_index renumbered from 0.

    Raises
    ------
    InvalidCellType
        If cell_type is not one of the two names.
    InvalidInput
        If symprec is not positive.
    EmptyStructure
        If the structure has no atoms.
    SingularLatticeError
        If the input lattice has zero volume.
    SymmetrySearchFailed
        If spglib cannot determine a space group at this tolerance.
    """
    try:
        cell_type = CellType(cell_type)
    except ValueError as exc:
        raise InvalidCellType(
            f"Cell type must be 'primitive' or 'conventional', got {cell_type!r}."
        ) from exc
    if not symprec > 0:
        raise InvalidInput(f"symprec must be > 0, got {symprec}.")
    if not structure.atoms:
        raise EmptyStructure("Input structure has no atoms.")
    check_lattice(structure.lattice)

    species = sorted(set(structure.elements))
    type_ids = {element: i + 1 for i, element in enumerate(species)}
    cell = (
        np.array(structure.lattice),
        wrap_fractional(structure.fractional_positions()),
        [type_ids[element] for element in structure.elements],
    )

    result = spglib.standardize_cell(
        cell, to_primitive=cell_type is CellType.PRIMITIVE, symprec=symprec
    )
    if result is None:
        raise SymmetrySearchFailed(
            f"spglib found no space group for {structure.formula} "
            f"(symprec = {symprec})."
        )
    lattice, frac, numbers = result

    elements = [species[int(n) - 1] for n in numbers]
    logger.debug(
        f"{cell_type.value} cell of {structure.formula}: "
        f"{len(structure)} -> {len(elements)} atoms"
    )
    return Structure.from_fractional(lattice, elements, wrap_fractional(frac))
