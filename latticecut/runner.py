"""
latticecut/runner.py

Run a job file: build the input structure, apply each transform in order,
and write the result.

Entry point: run_job(config) -> Structure

Job structure
-------------
1.  Build the input structure:
      - `geometry` given  → read with ase.io.read
      - inline cell/sites → symmetry expansion
2.  Apply each transform in config.transforms:
      - supercell → replicate()
      - slab      → cut(), with the configured search limits
      - convert   → convert_cell(), primitive or conventional cell
3.  If config.output is set, write the final structure with ase.io.write.

Every step builds a new Structure; nothing is modified in place.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ase.io import read, write

from latticecut.config import JobConfig, SearchConfig, StructureConfig, TransformConfig
from latticecut.exceptions import SingularLatticeError
from latticecut.structure.conversion import convert_cell
from latticecut.structure.model import Structure, check_lattice
from latticecut.structure.slab import cut
from latticecut.structure.supercell import replicate
from latticecut.structure.symmetry import expand

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Input / output
# ---------------------------------------------------------------------------


def read_structure(path: str | Path, fmt: str | None = None) -> Structure:
    """
    Read the first frame of any ASE-readable structure file.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    SingularLatticeError
        If the file carries no periodic cell (e.g. a plain XYZ molecule).
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Structure file not found: {path}")
    structure = Structure.from_ase(read(str(path), index=0, format=fmt))
    try:
        check_lattice(structure.lattice)
    except SingularLatticeError as exc:
        raise SingularLatticeError(
            f"{path} has no usable periodic cell; give the file a lattice. ({exc})"
        ) from exc
    return structure


def write_structure(structure: Structure, path: str | Path, fmt: str | None = None) -> Path:
    """Write a structure with ase.io.write; the format is inferred if fmt is None."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    write(str(path), structure.to_ase(), format=fmt)
    return path


def build_structure(cfg: StructureConfig) -> Structure:
    """Read the configured geometry file or expand the inline asymmetric unit."""
    if cfg.geometry is not None:
        logger.info(f"Reading structure from {cfg.geometry}")
        return read_structure(cfg.geometry, cfg.format)

    base_atoms = [(site.element, site.position) for site in cfg.sites]
    logger.info(
        f"Expanding {len(base_atoms)} site(s) with "
        f"{len(cfg.symmetry_operations) or 1} symmetry operation(s)"
    )
    return expand(base_atoms, cfg.symmetry_operations, cfg.cell)


# ---------------------------------------------------------------------------
# Transforms
# ---------------------------------------------------------------------------


def apply_transform(
    structure: Structure,
    step: TransformConfig,
    search: SearchConfig | None = None,
) -> Structure:
    """Apply one configured transform and return the new structure."""
    if step.type == "supercell":
        nx, ny, nz = step.repeat
        return replicate(structure, nx, ny, nz)
    if step.type == "convert":
        return convert_cell(structure, step.to, symprec=step.symprec)

    search = search or SearchConfig()
    h, k, l = step.miller
    return cut(
        structure,
        h, k, l,
        thickness=step.thickness,
        vacuum=step.vacuum,
        search_limit=search.search_limit,
        max_search_limit=search.max_search_limit,
    )


def run_job(config: JobConfig) -> Structure:
    """
    Execute a validated job and return the final structure.

    The structure is also written to config.output when that is set.
    """
    structure = build_structure(config.structure)
    logger.info(f"Input: {structure.formula}, {len(structure)} atoms, V = {structure.volume:.3f} Å^3")

    for i, step in enumerate(config.transforms, 1):
        structure = apply_transform(structure, step, config.search)
        logger.info(
            f"Step {i} ({step.type}): {structure.formula}, {len(structure)} atoms, "
            f"V = {structure.volume:.3f} Å^3"
        )

    if config.output is not None:
        path = write_structure(structure, config.output, config.output_format)
        logger.info(f"Wrote {path}")

    return structure
