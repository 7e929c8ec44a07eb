"""
latticecut/structure/symmetry.py

Expansion of a symmetry-unique atom set into a full unit cell.

Symmetry operators are the equivalent-position strings found in CIF files,
e.g. "-x+1/2,y,-z".  Each of the three comma-separated expressions is a sum
of signed terms; a term is either ±x, ±y, ±z (unit coefficient only) or a
signed decimal or p/q fraction.  That covers every standard space-group
setting.

Files in the wild are not always standard-conforming, so expansion never
fails on a bad operator: it logs a warning and skips it.  A partial
expansion is more useful than none.

Public API
----------
    SymmetryOperation.parse(text)          → SymmetryOperation
    wrap_fractional(frac)                  → ndarray in [0, 1)
    expand(base_atoms, operations, cell)   → Structure
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

from latticecut.constants import SYMMETRY_DEDUP_EPS
from latticecut.exceptions import MalformedOperation
from latticecut.structure.model import Structure, lattice_from_parameters

logger = logging.getLogger(__name__)

_AXES = ("x", "y", "z")


# ---------------------------------------------------------------------------
# Operator parsing
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SymmetryOperation:
    """
    An affine map r' = R·r + t on fractional coordinates.

    Attributes
    ----------
    rotation:
        3×3 integer matrix R, entries in {-1, 0, 1} (row i is expression i).
    translation:
        Constant part t of each expression.
    text:
        The operator string it was parsed from.
    """

    rotation: tuple[tuple[int, int, int], ...]
    translation: tuple[float, float, float]
    text: str = ""

    @classmethod
    def parse(cls, text: str) -> "SymmetryOperation":
        """
        Parse an equivalent-position string such as "-x+y,-x,z+1/3".

        Raises
        ------
        MalformedOperation
            If the string does not have exactly three expressions or a term
            cannot be read.
        """
        cleaned = "".join(text.split()).lower()
        expressions = cleaned.split(",")
        if len(expressions) != 3:
            raise MalformedOperation(
                f"expected 3 comma-separated expressions, got {len(expressions)}"
            )

        rotation = []
        translation = []
        for expr in expressions:
            row, constant = _parse_expression(expr)
            rotation.append(tuple(row))
            translation.append(constant)
        return cls(rotation=tuple(rotation), translation=tuple(translation), text=text)

    @property
    def matrix(self) -> np.ndarray:
        return np.array(self.rotation, dtype=float)

    @property
    def vector(self) -> np.ndarray:
        return np.array(self.translation, dtype=float)

    def apply(self, frac: np.ndarray) -> np.ndarray:
        """Apply to one (3,) or many (N, 3) fractional positions, no wrapping."""
        frac = np.asarray(frac, dtype=float)
        return frac @ self.matrix.T + self.vector


IDENTITY = SymmetryOperation(
    rotation=((1, 0, 0), (0, 1, 0), (0, 0, 1)),
    translation=(0.0, 0.0, 0.0),
    text="x,y,z",
)


def _split_terms(expr: str) -> list[str]:
    """Split at +/- boundaries, keeping each sign with the term it precedes."""
    terms: list[str] = []
    current = ""
    for char in expr:
        if char in "+-" and current:
            terms.append(current)
            current = ""
        current += char
    if current:
        terms.append(current)
    return terms


def _parse_expression(expr: str) -> tuple[list[int], float]:
    if not expr:
        raise MalformedOperation("empty expression")

    row = [0, 0, 0]
    constant = 0.0
    for term in _split_terms(expr):
        sign = -1 if term[0] == "-" else 1
        body = term[1:] if term[0] in "+-" else term
        if not body:
            raise MalformedOperation(f"dangling sign in {expr!r}")

        if body in _AXES:
            row[_AXES.index(body)] += sign
        else:
            constant += sign * _parse_number(body)
    return row, constant


def _parse_number(body: str) -> float:
    try:
        if "/" in body:
            num, den = body.split("/", 1)
            value = float(num) / float(den)
        else:
            value = float(body)
    except (ValueError, ZeroDivisionError) as exc:
        raise MalformedOperation(f"cannot read constant term {body!r}") from exc
    if not math.isfinite(value):
        raise MalformedOperation(f"constant term {body!r} is not a finite number")
    return value


# ---------------------------------------------------------------------------
# Expansion
# ---------------------------------------------------------------------------

def wrap_fractional(frac: np.ndarray) -> np.ndarray:
    """
    Wrap fractional coordinates into [0, 1) with a floor-based modulo.

    Negative inputs wrap correctly (-0.25 → 0.75).  Tiny negative values
    that round up to exactly 1.0 are folded back to 0.0.
    """
    wrapped = np.mod(np.asarray(frac, dtype=float), 1.0)
    wrapped[wrapped >= 1.0] = 0.0
    return wrapped


def _is_periodic_duplicate(
    position: np.ndarray,
    accepted: list[np.ndarray],
    eps: float,
) -> bool:
    if not accepted:
        return False
    diff = np.abs(np.array(accepted) - position)
    same_axis = (diff < eps) | ((1.0 - diff) < eps)
    return bool(np.any(np.all(same_axis, axis=1)))


def expand(
    base_atoms: Iterable[tuple[str, Sequence[float]]],
    operations: Iterable[str],
    cell_parameters: Sequence[float],
    eps: float = SYMMETRY_DEDUP_EPS,
) -> Structure:
    """
    Expand symmetry-unique atoms into the full atom set of one unit cell.

    Parameters
    ----------
    base_atoms:
        (element, fractional position) pairs of the asymmetric unit.
    operations:
        Equivalent-position strings.  An empty list means identity only.
        Malformed strings are skipped with a warning.
    cell_parameters:
        (a, b, c, alpha, beta, gamma) in Å and degrees.
    eps:
        Per-axis periodic match tolerance for duplicate images.

    Returns
    -------
    Structure
        Deduplicated atoms in Cartesian coordinates.  The first image of each
        site wins.  An empty base_atoms list gives a structure with no atoms.

    Raises
    ------
    InvalidCellParameters
        If the cell parameters do not describe a cell with volume.
    """
    op_strings = list(operations) or [IDENTITY.text]

    parsed: list[SymmetryOperation] = []
    for text in op_strings:
        try:
            parsed.append(SymmetryOperation.parse(text))
        except MalformedOperation as exc:
            logger.warning(f"Skipping symmetry operation {text!r}: {exc}")

    if not parsed:
        logger.warning("No usable symmetry operations; expanding with identity only")
        parsed = [IDENTITY]

    lattice = lattice_from_parameters(*cell_parameters)

    elements: list[str] = []
    accepted: list[np.ndarray] = []
    n_images = 0
    for element, position in base_atoms:
        frac = np.asarray(position, dtype=float)
        for op in parsed:
            n_images += 1
            image = wrap_fractional(op.apply(frac))
            if _is_periodic_duplicate(image, accepted, eps):
                continue
            elements.append(element)
            accepted.append(image)

    logger.debug(
        f"Symmetry expansion: {len(parsed)} operations, {n_images} images, "
        f"{len(accepted)} unique sites"
    )
    return Structure.from_fractional(
        lattice, elements, np.array(accepted).reshape(-1, 3)
    )
