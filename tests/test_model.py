from __future__ import annotations

import dataclasses

import numpy as np
import pytest


class TestLatticeParameters:

    def test_cubic_lattice_is_diagonal(self):
        from latticecut.structure.model import lattice_from_parameters

        lattice = lattice_from_parameters(4.0, 4.0, 4.0, 90, 90, 90)
        assert np.allclose(lattice, np.diag([4.0, 4.0, 4.0]))

    def test_a_along_x_and_b_in_xy_plane(self):
        from latticecut.structure.model import lattice_from_parameters

        lattice = lattice_from_parameters(3.0, 4.0, 5.0, 80, 95, 110)
        assert np.allclose(lattice[0, 1:], 0.0)
        assert lattice[1, 2] == pytest.approx(0.0)
        assert np.linalg.det(lattice) > 0

    @pytest.mark.parametrize("params", [
        (3.0, 4.0, 5.0, 90.0, 90.0, 90.0),
        (3.21, 3.21, 5.21, 90.0, 90.0, 120.0),
        (5.0, 6.0, 7.0, 80.0, 95.0, 110.0),
    ])
    def test_parameters_round_trip(self, params):
        from latticecut.structure.model import (
            cell_parameters_from_lattice,
            lattice_from_parameters,
        )

        recovered = cell_parameters_from_lattice(lattice_from_parameters(*params))
        assert recovered == pytest.approx(params)

    def test_non_positive_length_raises(self):
        from latticecut.exceptions import InvalidCellParameters
        from latticecut.structure.model import lattice_from_parameters

        with pytest.raises(InvalidCellParameters):
            lattice_from_parameters(0.0, 4.0, 5.0, 90, 90, 90)

    def test_flat_angles_raise(self):
        from latticecut.exceptions import InvalidCellParameters, InvalidInput
        from latticecut.structure.model import lattice_from_parameters

        with pytest.raises(InvalidCellParameters) as exc_info:
            lattice_from_parameters(3.0, 4.0, 5.0, 90, 90, 0)
        assert isinstance(exc_info.value, InvalidInput)
        assert isinstance(exc_info.value, ValueError)


class TestStructure:

    def test_from_fractional_assigns_dense_indices(self, orthorhombic_lattice):
        from latticecut.structure.model import Structure

        s = Structure.from_fractional(
            orthorhombic_lattice, ["Na", "Cl"], [[0, 0, 0], [0.5, 0.5, 0.5]]
        )
        assert [a.original_index for a in s.atoms] == [0, 1]
        assert s.atoms[1].position == pytest.approx((1.5, 2.0, 2.5))

    def test_formula_computed_when_empty(self, orthorhombic_lattice):
        from latticecut.structure.model import Structure

        s = Structure.from_fractional(
            orthorhombic_lattice, ["Si", "O", "O"], np.zeros((3, 3))
        )
        assert s.formula == "O2Si"

    def test_explicit_formula_kept(self, orthorhombic_lattice):
        from latticecut.structure.model import Structure

        s = Structure.from_fractional(orthorhombic_lattice, ["Fe"], [[0, 0, 0]], formula="iron")
        assert s.formula == "iron"

    def test_element_position_count_mismatch_raises(self, orthorhombic_lattice):
        from latticecut.structure.model import Structure

        with pytest.raises(ValueError):
            Structure.from_fractional(orthorhombic_lattice, ["Fe", "Fe"], [[0, 0, 0]])

    def test_structure_is_immutable(self, single_atom_cell):
        with pytest.raises(dataclasses.FrozenInstanceError):
            single_atom_cell.formula = "changed"
        with pytest.raises(ValueError):
            single_atom_cell.lattice[0, 0] = 10.0

    def test_fractional_positions(self, monoclinic_cell):
        frac = monoclinic_cell.fractional_positions()
        assert np.allclose(frac, [[0, 0, 0], [0.5, 0.5, 0.5]])

    def test_volume(self, single_atom_cell):
        assert single_atom_cell.volume == pytest.approx(60.0)

    def test_singular_lattice_raises(self):
        from latticecut.exceptions import DegenerateGeometry, SingularLatticeError
        from latticecut.structure.model import Atom, Structure

        flat = Structure(
            lattice=[[1, 0, 0], [0, 1, 0], [1, 1, 0]],
            atoms=(Atom("H", (0.0, 0.0, 0.0)),),
        )
        with pytest.raises(SingularLatticeError) as exc_info:
            flat.fractional_positions()
        assert isinstance(exc_info.value, DegenerateGeometry)

    def test_bad_lattice_shape_raises(self):
        from latticecut.structure.model import Structure

        with pytest.raises(ValueError):
            Structure(lattice=np.eye(2))

    def test_ase_round_trip(self, nacl_conventional):
        from latticecut.structure.model import Structure

        atoms = nacl_conventional.to_ase()
        assert all(atoms.pbc)
        back = Structure.from_ase(atoms)
        assert back.elements == nacl_conventional.elements
        assert np.allclose(back.positions, nacl_conventional.positions)
        assert np.allclose(back.lattice, nacl_conventional.lattice)

    def test_renumber(self):
        from latticecut.structure.model import Atom, renumber

        atoms = renumber([Atom("H", (0.0, 0.0, 0.0), 7), Atom("O", (1.0, 0.0, 0.0), 3)])
        assert [a.original_index for a in atoms] == [0, 1]
        assert [a.element for a in atoms] == ["H", "O"]


class TestMillerIndex:

    def test_zero_raises(self):
        from latticecut.exceptions import InvalidMillerIndex
        from latticecut.structure.model import MillerIndex

        with pytest.raises(InvalidMillerIndex):
            MillerIndex(0, 0, 0)

    def test_non_integer_raises(self):
        from latticecut.exceptions import InvalidMillerIndex
        from latticecut.structure.model import MillerIndex

        with pytest.raises(InvalidMillerIndex):
            MillerIndex(1, 0.5, 0)

    @pytest.mark.parametrize("hkl, expected", [
        ((2, 2, 0), (1, 1, 0)),
        ((-2, 4, 0), (-1, 2, 0)),
        ((3, 0, 0), (1, 0, 0)),
        ((1, 2, 3), (1, 2, 3)),
    ])
    def test_reduced(self, hkl, expected):
        from latticecut.structure.model import MillerIndex

        assert tuple(MillerIndex(*hkl).reduced()) == expected

    def test_str(self):
        from latticecut.structure.model import MillerIndex

        assert str(MillerIndex(1, -1, 0)) == "(1 -1 0)"
