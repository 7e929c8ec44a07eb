"""
latticecut.structure

Crystal structure model and the transforms that derive new structures.

Submodules
----------
model       Atom / Structure / MillerIndex, lattice <-> cell-parameter helpers
symmetry    Symmetry-operator parsing and asymmetric-unit expansion
supercell   Integer nx × ny × nz supercell replication
miller      Surface basis search and Miller-plane geometry
slab        Surface cutting into vacuum-padded slabs
"""
