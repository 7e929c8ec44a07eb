"""
latticecut/config.py

Load and validate a latticecut job file into typed configuration models.

A job file names an input structure, an ordered list of transforms to apply
to it, and where to write the result.

Usage
-----
    from latticecut.config import load_config

    cfg = load_config("job.yaml")
    print(cfg.structure.geometry)
    print([t.type for t in cfg.transforms])

All models use pydantic v2.  Relative paths in the job file are resolved
against the directory that contains it.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, field_validator, model_validator

from latticecut.constants import (
    CONVERSION_SYMPREC,
    DEFAULT_MAX_SEARCH_LIMIT,
    DEFAULT_SEARCH_LIMIT,
)


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------


class SiteConfig(BaseModel):
    """One symmetry-unique atom of an inline asymmetric unit."""

    element: str
    position: list[float]               # fractional coordinates

    @field_validator("position")
    @classmethod
    def _three_coordinates(cls, v: list[float]) -> list[float]:
        if len(v) != 3:
            raise ValueError(f"site position needs 3 fractional coordinates, got {len(v)}.")
        return v


class StructureConfig(BaseModel):
    """
    The input structure.

    Either point `geometry` at any ASE-readable file (CIF, POSCAR, XYZ with
    a cell, …), or give an inline asymmetric unit: `cell`, `sites` and
    optionally `symmetry_operations`.  Not both.
    """

    geometry: str | None = None                 # path to structure file
    format: str | None = None                   # ASE format name, inferred if None
    cell: list[float] | None = None             # [a, b, c, alpha, beta, gamma]
    sites: list[SiteConfig] = []
    symmetry_operations: list[str] = []         # empty -> identity only

    @model_validator(mode="after")
    def _geometry_or_inline_not_both(self) -> "StructureConfig":
        inline = self.cell is not None or bool(self.sites) or bool(self.symmetry_operations)
        if self.geometry is not None and inline:
            raise ValueError(
                "structure: provide either 'geometry' or an inline "
                "'cell' + 'sites', not both."
            )
        if self.geometry is None and self.cell is None:
            raise ValueError("structure: provide either 'geometry' or 'cell' + 'sites'.")
        return self

    @field_validator("cell")
    @classmethod
    def _six_cell_parameters(cls, v: list[float] | None) -> list[float] | None:
        if v is not None and len(v) != 6:
            raise ValueError(
                f"cell needs 6 values [a, b, c, alpha, beta, gamma], got {len(v)}."
            )
        return v


class SearchConfig(BaseModel):
    """
    Integer search box used to find surface basis vectors.

    The search starts at half-width `search_limit` and widens, only when it
    finds nothing, up to `max_search_limit`.
    """

    search_limit: int = DEFAULT_SEARCH_LIMIT
    max_search_limit: int = DEFAULT_MAX_SEARCH_LIMIT

    @model_validator(mode="after")
    def _ordered_limits(self) -> "SearchConfig":
        if self.search_limit < 1:
            raise ValueError(f"search_limit must be >= 1, got {self.search_limit}.")
        if self.max_search_limit < self.search_limit:
            raise ValueError(
                f"max_search_limit ({self.max_search_limit}) must be >= "
                f"search_limit ({self.search_limit})."
            )
        return self


class TransformConfig(BaseModel):
    """
    One step of the transform pipeline.

    type options
    ------------
    "supercell"  – needs `repeat: [nx, ny, nz]`
    "slab"       – needs `miller: [h, k, l]`; `thickness` and `vacuum` optional
    "convert"    – needs `to: primitive | conventional`; `symprec` optional
    """

    type: str                           # "supercell" | "slab" | "convert"
    repeat: list[int] | None = None     # supercell repeats
    miller: list[int] | None = None     # slab Miller indices
    thickness: int = 1                  # slab layers
    vacuum: float = 0.0                 # slab vacuum (Å)
    to: str | None = None               # convert target cell
    symprec: float = CONVERSION_SYMPREC  # convert symmetry tolerance (Å)

    @field_validator("type")
    @classmethod
    def _valid_type(cls, v: str) -> str:
        allowed = {"supercell", "slab", "convert"}
        if v not in allowed:
            raise ValueError(f"transform type must be one of {allowed}, got '{v}'.")
        return v

    @field_validator("thickness")
    @classmethod
    def _positive_thickness(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"thickness must be >= 1, got {v}.")
        return v

    @field_validator("vacuum")
    @classmethod
    def _non_negative_vacuum(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"vacuum must be >= 0 Å, got {v}.")
        return v

    @field_validator("symprec")
    @classmethod
    def _positive_symprec(cls, v: float) -> float:
        if not v > 0:
            raise ValueError(f"symprec must be > 0 Å, got {v}.")
        return v

    @model_validator(mode="after")
    def _fields_match_type(self) -> "TransformConfig":
        if self.type == "supercell":
            if self.repeat is None or len(self.repeat) != 3:
                raise ValueError("supercell transform needs 'repeat: [nx, ny, nz]'.")
            if any(n < 1 for n in self.repeat):
                raise ValueError(f"supercell repeats must be >= 1, got {self.repeat}.")
        elif self.type == "convert":
            if self.to not in {"primitive", "conventional"}:
                raise ValueError(
                    f"convert transform needs 'to: primitive' or 'to: conventional', got {self.to!r}."
                )
        else:
            if self.miller is None or len(self.miller) != 3:
                raise ValueError("slab transform needs 'miller: [h, k, l]'.")
            if not any(self.miller):
                raise ValueError("slab Miller indices cannot be [0, 0, 0].")
        return self


# ---------------------------------------------------------------------------
# Root config model
# ---------------------------------------------------------------------------


class JobConfig(BaseModel):
    """
    Root configuration object loaded from a job file.

    Example
    -------
    .. code-block:: yaml

        structure:
          cell: [3.615, 3.615, 3.615, 90, 90, 90]
          sites:
            - element: Cu
              position: [0, 0, 0]
          symmetry_operations: ["x,y,z", "x,y+1/2,z+1/2", "x+1/2,y,z+1/2", "x+1/2,y+1/2,z"]

        transforms:
          - type: slab
            miller: [1, 1, 1]
            thickness: 4
            vacuum: 12.0
          - type: supercell
            repeat: [2, 2, 1]

        output: POSCAR_Cu111
    """

    structure: StructureConfig
    transforms: list[TransformConfig] = []
    search: SearchConfig = SearchConfig()
    output: str | None = None
    output_format: str | None = None

    def resolve_paths(self, base_dir: str | Path) -> "JobConfig":
        """Return a copy with relative geometry/output paths anchored at base_dir."""
        base_dir = Path(base_dir)

        def _anchor(p: str | None) -> str | None:
            if p is None or Path(p).is_absolute():
                return p
            return str(base_dir / p)

        structure = self.structure.model_copy(update={"geometry": _anchor(self.structure.geometry)})
        return self.model_copy(update={"structure": structure, "output": _anchor(self.output)})


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def load_config(path: str | Path) -> JobConfig:
    """
    Load and validate a job file.

    Parameters
    ----------
    path:
        Path to the YAML job file.

    Returns
    -------
    JobConfig
        Fully validated configuration with paths resolved relative to the
        file's directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file does not exist.
    ValueError
        If the file is empty or its top level is not a mapping.
    pydantic.ValidationError
        If the YAML content fails validation.
    yaml.YAMLError
        If the file is not valid YAML.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Job file not found: {path}")

    if path.stat().st_size == 0:
        raise ValueError(
            f"Job file is empty: {path}\n"
            "Generate a template with: latticecut init > job.yaml"
        )

    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)

    if raw is None:
        raise ValueError(
            f"{path} contains only comments or whitespace, no YAML keys found.\n"
            "Make sure the file has content like:\n"
            "  structure:\n"
            "    geometry: bulk.cif\n"
            "Generate a template with: latticecut init > job.yaml"
        )
    if not isinstance(raw, dict):
        raise ValueError(
            f"Expected a YAML mapping at the top level, got {type(raw).__name__}.  "
            "Make sure the job file starts with a key like 'structure:' at column 0."
        )

    return JobConfig.model_validate(raw).resolve_paths(path.parent)


CONFIG_TEMPLATE = """\
# job.yaml: latticecut job file
# Paths are relative to this file's location unless absolute.

# ---------------------------------------------------------------------------
# Input structure
# ---------------------------------------------------------------------------
# Either an ASE-readable file ...
#
# structure:
#   geometry: bulk.cif           # CIF, POSCAR, extended XYZ, ...
#   format: null                 # ASE format name; inferred from the suffix
#
# ... or an inline asymmetric unit expanded with symmetry operators:
structure:
  cell: [3.615, 3.615, 3.615, 90, 90, 90]   # a, b, c (Å), alpha, beta, gamma (deg)
  sites:
    - element: Cu
      position: [0.0, 0.0, 0.0]             # fractional
  symmetry_operations:                      # empty -> identity only
    - "x,y,z"
    - "x,y+1/2,z+1/2"
    - "x+1/2,y,z+1/2"
    - "x+1/2,y+1/2,z"

# ---------------------------------------------------------------------------
# Transforms, applied in order
# ---------------------------------------------------------------------------
transforms:
  - type: slab
    miller: [1, 1, 1]
    thickness: 4                 # primitive layers
    vacuum: 12.0                 # Å along the surface normal

  - type: supercell
    repeat: [2, 2, 1]

  # Primitive / conventional cell conversion (spglib):
  # - type: convert
  #   to: primitive              # or: conventional
  #   symprec: 1.0e-4            # symmetry tolerance (Å)

# ---------------------------------------------------------------------------
# Surface basis search
# ---------------------------------------------------------------------------
search:
  search_limit: 4                # initial integer box half-width
  max_search_limit: 10           # widened up to this only if nothing is found

# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------
output: POSCAR_Cu111_slab
output_format: null              # ASE format name; inferred from the suffix
"""
