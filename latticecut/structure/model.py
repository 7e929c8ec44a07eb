"""
latticecut/structure/model.py

Immutable crystal structure model shared by every transform.

A Structure is a lattice (three row vectors a, b, c in Å) plus an ordered
tuple of Atoms with Cartesian positions.  Transforms never modify a
Structure; they build a new one.  Whenever a transform changes the atom
count or order, original_index is renumbered densely from 0 so that index-
based selections held by callers can be reset safely.

Usage
-----
    from latticecut.structure.model import Structure, lattice_from_parameters

    lattice = lattice_from_parameters(5.64, 5.64, 5.64, 90, 90, 90)
    s = Structure.from_fractional(lattice, ["Na", "Cl"], [[0, 0, 0], [0.5, 0.5, 0.5]])
    print(s.formula, s.volume)
    atoms = s.to_ase()
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Sequence

import numpy as np
from ase import Atoms

from latticecut.constants import DETERMINANT_EPS
from latticecut.exceptions import (
    InvalidCellParameters,
    InvalidMillerIndex,
    SingularLatticeError,
)


# ---------------------------------------------------------------------------
# Atoms and structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Atom:
    """
    One atom of a structure.

    Attributes
    ----------
    element:
        Chemical symbol, e.g. "Fe".
    position:
        Cartesian position (Å).
    original_index:
        Dense index of this atom within its Structure.
    """

    element: str
    position: tuple[float, float, float]
    original_index: int = 0


@dataclass(frozen=True, eq=False)
class Structure:
    """
    A periodic crystal structure.

    Attributes
    ----------
    lattice:
        3×3 array whose rows are the lattice vectors a, b, c (Å).  Stored as a
        read-only copy.
    atoms:
        Atoms in Cartesian coordinates.
    formula:
        Informational label.  Computed from the atoms when left empty.
    """

    lattice: np.ndarray
    atoms: tuple[Atom, ...] = ()
    formula: str = field(default="")

    def __post_init__(self) -> None:
        lattice = np.array(self.lattice, dtype=float)
        if lattice.shape != (3, 3):
            raise ValueError(f"lattice must be a 3x3 matrix, got shape {lattice.shape}.")
        lattice.setflags(write=False)
        object.__setattr__(self, "lattice", lattice)
        object.__setattr__(self, "atoms", tuple(self.atoms))
        if not self.formula:
            object.__setattr__(self, "formula", chemical_formula(self.elements))

    def __len__(self) -> int:
        return len(self.atoms)

    def __repr__(self) -> str:
        return f"Structure(formula={self.formula!r}, n_atoms={len(self.atoms)})"

    # -- derived quantities -------------------------------------------------

    @property
    def elements(self) -> list[str]:
        return [atom.element for atom in self.atoms]

    @property
    def positions(self) -> np.ndarray:
        """(N, 3) array of Cartesian positions (Å)."""
        if not self.atoms:
            return np.zeros((0, 3))
        return np.array([atom.position for atom in self.atoms], dtype=float)

    @property
    def volume(self) -> float:
        """Signed cell volume det(lattice) in Å³."""
        return float(np.linalg.det(self.lattice))

    def fractional_positions(self) -> np.ndarray:
        """
        Positions in fractional coordinates of this lattice (not wrapped).

        Raises
        ------
        SingularLatticeError
            If the lattice has zero volume.
        """
        check_lattice(self.lattice)
        # cart = frac @ L  =>  frac = cart @ L^-1
        return self.positions @ np.linalg.inv(self.lattice)

    def cell_parameters(self) -> tuple[float, float, float, float, float, float]:
        """Return (a, b, c, alpha, beta, gamma) in Å and degrees."""
        return cell_parameters_from_lattice(self.lattice)

    # -- constructors ------------------------------------------------------

    @classmethod
    def from_fractional(
        cls,
        lattice: Sequence[Sequence[float]] | np.ndarray,
        elements: Sequence[str],
        fractional: Sequence[Sequence[float]] | np.ndarray,
        formula: str = "",
    ) -> "Structure":
        """
        Build a Structure from fractional coordinates.

        original_index is assigned 0..N-1 in the given order.
        """
        lattice = np.asarray(lattice, dtype=float)
        frac = np.asarray(fractional, dtype=float).reshape(-1, 3)
        if len(elements) != len(frac):
            raise ValueError(
                f"Got {len(elements)} elements but {len(frac)} positions."
            )
        cart = frac @ lattice
        atoms = tuple(
            Atom(element=el, position=_as_triple(pos), original_index=i)
            for i, (el, pos) in enumerate(zip(elements, cart))
        )
        return cls(lattice=lattice, atoms=atoms, formula=formula)

    @classmethod
    def from_ase(cls, atoms: Atoms, formula: str = "") -> "Structure":
        """Convert an ASE Atoms object.  The cell must be fully defined."""
        lattice = atoms.cell.array.copy()
        converted = tuple(
            Atom(element=symbol, position=_as_triple(pos), original_index=i)
            for i, (symbol, pos) in enumerate(
                zip(atoms.get_chemical_symbols(), atoms.get_positions())
            )
        )
        return cls(lattice=lattice, atoms=converted, formula=formula)

    def to_ase(self) -> Atoms:
        """Return a fully periodic ASE Atoms object with the same cell and atoms."""
        return Atoms(
            symbols=self.elements,
            positions=self.positions,
            cell=np.array(self.lattice),
            pbc=True,
        )


def _as_triple(values: Iterable[float]) -> tuple[float, float, float]:
    x, y, z = (float(v) for v in values)
    return (x, y, z)


def renumber(atoms: Iterable[Atom]) -> tuple[Atom, ...]:
    """Return the atoms with original_index reassigned densely from 0."""
    return tuple(
        Atom(element=atom.element, position=atom.position, original_index=i)
        for i, atom in enumerate(atoms)
    )


def chemical_formula(elements: Iterable[str]) -> str:
    """
    Alphabetical element/count label, count omitted when it is 1.

    >>> chemical_formula(["O", "Si", "O"])
    'O2Si'
    """
    counts = Counter(elements)
    return "".join(
        f"{el}{n}" if n > 1 else el for el, n in sorted(counts.items())
    )


# ---------------------------------------------------------------------------
# Lattice helpers
# ---------------------------------------------------------------------------

def check_lattice(lattice: np.ndarray) -> float:
    """
    Return det(lattice), raising if it is numerically zero.

    Raises
    ------
    SingularLatticeError
        If |det(lattice)| < DETERMINANT_EPS.
    """
    det = float(np.linalg.det(lattice))
    if not np.isfinite(det) or abs(det) < DETERMINANT_EPS:
        raise SingularLatticeError(
            f"Lattice is singular (det = {det:.3e}); the cell has no volume."
        )
    return det


def lattice_from_parameters(
    a: float,
    b: float,
    c: float,
    alpha: float,
    beta: float,
    gamma: float,
) -> np.ndarray:
    """
    Build Cartesian lattice vectors (rows) from cell lengths and angles.

    Convention: a along x, b in the xy-plane, c completing a right-handed
    basis through the volume factor
    v = sqrt(1 - cos²α - cos²β - cos²γ + 2 cosα cosβ cosγ).

    Parameters
    ----------
    a, b, c:
        Cell lengths (Å), all > 0.
    alpha, beta, gamma:
        Cell angles in degrees.

    Returns
    -------
    np.ndarray
        3×3 lattice matrix.

    Raises
    ------
    InvalidCellParameters
        If a length is not positive or the angles do not describe a cell
        with volume.
    """
    if min(a, b, c) <= 0:
        raise InvalidCellParameters(
            f"Cell lengths must be positive, got a={a}, b={b}, c={c}."
        )
    al, be, ga = (math.radians(x) for x in (alpha, beta, gamma))
    cos_a, cos_b, cos_g = math.cos(al), math.cos(be), math.cos(ga)
    sin_g = math.sin(ga)
    v_sq = 1.0 - cos_a**2 - cos_b**2 - cos_g**2 + 2.0 * cos_a * cos_b * cos_g
    if v_sq <= 0.0 or abs(sin_g) < DETERMINANT_EPS:
        raise InvalidCellParameters(
            f"Cell angles alpha={alpha}, beta={beta}, gamma={gamma} "
            "do not describe a cell with nonzero volume."
        )
    v = math.sqrt(v_sq)
    return np.array([
        [a, 0.0, 0.0],
        [b * cos_g, b * sin_g, 0.0],
        [c * cos_b, c * (cos_a - cos_b * cos_g) / sin_g, c * v / sin_g],
    ])


def cell_parameters_from_lattice(
    lattice: np.ndarray,
) -> tuple[float, float, float, float, float, float]:
    """Inverse of lattice_from_parameters: (a, b, c, alpha, beta, gamma)."""
    va, vb, vc = np.asarray(lattice, dtype=float)
    a, b, c = (float(np.linalg.norm(v)) for v in (va, vb, vc))

    def _angle(u: np.ndarray, w: np.ndarray, nu: float, nw: float) -> float:
        cos = np.clip(np.dot(u, w) / (nu * nw), -1.0, 1.0)
        return float(np.degrees(np.arccos(cos)))

    return (
        a, b, c,
        _angle(vb, vc, b, c),
        _angle(va, vc, a, c),
        _angle(va, vb, a, b),
    )


# ---------------------------------------------------------------------------
# Miller indices
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MillerIndex:
    """Integer plane indices (h, k, l), not all zero."""

    h: int
    k: int
    l: int

    def __post_init__(self) -> None:
        for name in ("h", "k", "l"):
            value = getattr(self, name)
            if int(value) != value:
                raise InvalidMillerIndex(f"Miller index {name} must be an integer, got {value!r}.")
            object.__setattr__(self, name, int(value))
        if self.h == 0 and self.k == 0 and self.l == 0:
            raise InvalidMillerIndex("Miller indices (0, 0, 0) do not define a plane.")

    def __iter__(self):
        return iter((self.h, self.k, self.l))

    def __str__(self) -> str:
        return f"({self.h} {self.k} {self.l})"

    def as_array(self) -> np.ndarray:
        return np.array([self.h, self.k, self.l], dtype=int)

    def reduced(self) -> "MillerIndex":
        """Divide out the greatest common divisor: (2 2 0) -> (1 1 0)."""
        g = math.gcd(math.gcd(abs(self.h), abs(self.k)), abs(self.l))
        return MillerIndex(self.h // g, self.k // g, self.l // g)
