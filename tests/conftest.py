"""
tests/conftest.py

Shared pytest fixtures for the latticecut test suite.

All fixtures are pure geometry: small bulk cells built either from explicit
lattices or with ase.build.bulk.  No files are read except the ones tests
write themselves under tmp_path.

Fixture overview
----------------
Lattices
    orthorhombic_lattice    3 × 4 × 5 Å, all angles 90°
    monoclinic_lattice      3 × 4 × 5 Å, beta = 100°

Structures
    single_atom_cell        One atom at the origin of the orthorhombic cell
    monoclinic_cell         Two atoms in the monoclinic cell
    cu_conventional         fcc Cu, 4-atom conventional cubic cell
    cu_primitive            fcc Cu, 1-atom primitive cell
    nacl_conventional       Rock-salt NaCl, 8-atom conventional cell
    mg_hcp                  hcp Mg, 2-atom hexagonal cell

Job files
    inline_job_dict         A JobConfig-equivalent dict with an inline fcc cell
    structure_file          cu_conventional written as extended XYZ
"""

from __future__ import annotations

import pytest

# ---------------------------------------------------------------------------
# ASE import guard: ASE is a hard dependency so fail loudly if missing
# ---------------------------------------------------------------------------
try:
    import numpy as np
    from ase.build import bulk
except ImportError as exc:
    pytest.exit(f"ASE is required to run the test suite: {exc}", returncode=1)

from latticecut.structure.model import Structure, lattice_from_parameters


FCC_CENTERING = ["x,y,z", "x,y+1/2,z+1/2", "x+1/2,y,z+1/2", "x+1/2,y+1/2,z"]


# ---------------------------------------------------------------------------
# Lattice fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def orthorhombic_lattice() -> np.ndarray:
    return np.diag([3.0, 4.0, 5.0])


@pytest.fixture(scope="session")
def monoclinic_lattice() -> np.ndarray:
    return lattice_from_parameters(3.0, 4.0, 5.0, 90.0, 100.0, 90.0)


# ---------------------------------------------------------------------------
# Structure fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def single_atom_cell(orthorhombic_lattice) -> Structure:
    """One Fe atom at the origin of a 3 × 4 × 5 Å box."""
    return Structure.from_fractional(orthorhombic_lattice, ["Fe"], [[0.0, 0.0, 0.0]])


@pytest.fixture(scope="session")
def monoclinic_cell(monoclinic_lattice) -> Structure:
    """Two atoms in an oblique (beta = 100°) cell."""
    return Structure.from_fractional(
        monoclinic_lattice,
        ["Ti", "O"],
        [[0.0, 0.0, 0.0], [0.5, 0.5, 0.5]],
    )


@pytest.fixture(scope="session")
def cu_conventional() -> Structure:
    """fcc Cu conventional cell, a = 3.61 Å, 4 atoms."""
    return Structure.from_ase(bulk("Cu", "fcc", a=3.61, cubic=True))


@pytest.fixture(scope="session")
def cu_primitive() -> Structure:
    """fcc Cu primitive cell, 1 atom, non-orthogonal lattice."""
    return Structure.from_ase(bulk("Cu", "fcc", a=3.61))


@pytest.fixture(scope="session")
def nacl_conventional() -> Structure:
    """Rock-salt NaCl conventional cell, a = 5.64 Å, 4 Na + 4 Cl."""
    return Structure.from_ase(bulk("NaCl", "rocksalt", a=5.64, cubic=True))


@pytest.fixture(scope="session")
def mg_hcp() -> Structure:
    """hcp Mg, a = 3.21 Å, c = 5.21 Å, gamma = 120°."""
    return Structure.from_ase(bulk("Mg", "hcp", a=3.21, c=5.21))


# ---------------------------------------------------------------------------
# Job fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def inline_job_dict() -> dict:
    """A complete job dict suitable for JobConfig.model_validate."""
    return {
        "structure": {
            "cell": [3.61, 3.61, 3.61, 90, 90, 90],   # ints coerced to float
            "sites": [{"element": "Cu", "position": [0, 0, 0]}],
            "symmetry_operations": list(FCC_CENTERING),
        },
        "transforms": [
            {"type": "slab", "miller": [1, 1, 1], "thickness": 2, "vacuum": 8.0},
            {"type": "supercell", "repeat": [2, 2, 1]},
        ],
        "search": {"search_limit": 4, "max_search_limit": 8},
    }


@pytest.fixture
def structure_file(tmp_path, cu_conventional):
    """cu_conventional written to an extended XYZ file (keeps cell and pbc)."""
    from ase.io import write

    path = tmp_path / "cu.xyz"
    write(str(path), cu_conventional.to_ase(), format="extxyz")
    return path
