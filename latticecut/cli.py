"""
latticecut/cli.py

Command-line interface for latticecut.

Commands
--------
  latticecut init       Print a commented template job file to stdout.
  latticecut run        Run a job file (input structure + transform list).
  latticecut supercell  Replicate a structure file into an nx × ny × nz supercell.
  latticecut slab       Cut an (h k l) slab with vacuum from a structure file.
  latticecut convert    Convert a structure file to its primitive or conventional cell.
  latticecut info       Print formula, atom count and cell of a structure file.

Usage
-----
    latticecut init > job.yaml
    latticecut run job.yaml [--output POSCAR_out]
    latticecut supercell bulk.cif 2 2 2 --output POSCAR_super
    latticecut slab bulk.cif 1 1 1 --thickness 4 --vacuum 12 --output POSCAR_slab
    latticecut convert bulk.cif --to primitive --output POSCAR_prim
    latticecut info POSCAR_slab

Structure files are read and written with ASE, so any format ASE supports
works; the format is inferred from the file name unless --format is given.
"""

from __future__ import annotations

import sys
import logging

import click
import yaml
from pydantic import ValidationError

from latticecut.exceptions import LatticeCutError

# ---------------------------------------------------------------------------
# Logging setup: configured once at CLI entry, not at import time
# ---------------------------------------------------------------------------

def _setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        format="%(asctime)s  %(levelname)-8s  %(message)s",
        datefmt="%H:%M:%S",
        level=level,
        stream=sys.stderr,
    )


def _fail(exc: Exception) -> None:
    click.echo(f"Error: {exc}", err=True)
    raise SystemExit(1)


# ---------------------------------------------------------------------------
# Shared options
# ---------------------------------------------------------------------------

_output_option = click.option(
    "--output", "-o",
    required=True,
    type=click.Path(dir_okay=False),
    help="Output structure file.",
)

_format_option = click.option(
    "--format", "-f", "fmt",
    default=None,
    help="ASE format name for reading/writing (inferred from the suffix if omitted).",
)

_verbose_option = click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging.",
)

_input_argument = click.argument(
    "input_path",
    metavar="INPUT",
    type=click.Path(exists=True, dir_okay=False),
)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------

@click.group()
@click.version_option(package_name="latticecut")
def cli() -> None:
    """
    latticecut: supercells, symmetry expansion, cell conversion and surface slabs.

    Start with `latticecut init > job.yaml`, edit the file, then
    `latticecut run job.yaml`.
    """


# ---------------------------------------------------------------------------
# latticecut init
# ---------------------------------------------------------------------------

@cli.command("init")
def cmd_init() -> None:
    """Print a fully commented template job file to stdout."""
    from latticecut.config import CONFIG_TEMPLATE
    click.echo(CONFIG_TEMPLATE, nl=False)


# ---------------------------------------------------------------------------
# latticecut run
# ---------------------------------------------------------------------------

@cli.command("run")
@click.argument("job", type=click.Path(dir_okay=False))
@click.option("--output", "-o", default=None, type=click.Path(dir_okay=False),
              help="Override the job file's output path.")
@_verbose_option
def cmd_run(job: str, output: str | None, verbose: bool) -> None:
    """Build the job's input structure and apply its transforms in order."""
    _setup_logging(verbose)

    from latticecut.config import load_config
    from latticecut.runner import run_job

    try:
        cfg = load_config(job)
        if output is not None:
            cfg = cfg.model_copy(update={"output": output})
        structure = run_job(cfg)
    except ValidationError as exc:
        click.echo(f"Job file validation failed:\n{exc}", err=True)
        raise SystemExit(1)
    except (LatticeCutError, FileNotFoundError, ValueError, yaml.YAMLError) as exc:
        _fail(exc)

    click.echo(f"{structure.formula}: {len(structure)} atoms")


# ---------------------------------------------------------------------------
# latticecut supercell
# ---------------------------------------------------------------------------

@cli.command("supercell")
@_input_argument
@click.argument("nx", type=int)
@click.argument("ny", type=int)
@click.argument("nz", type=int)
@_output_option
@_format_option
@_verbose_option
def cmd_supercell(
    input_path: str, nx: int, ny: int, nz: int, output: str, fmt: str | None, verbose: bool,
) -> None:
    """Replicate INPUT into an NX × NY × NZ supercell."""
    _setup_logging(verbose)

    from latticecut.runner import read_structure, write_structure
    from latticecut.structure.supercell import replicate

    try:
        structure = replicate(read_structure(input_path, fmt), nx, ny, nz)
        write_structure(structure, output, fmt)
    except (LatticeCutError, ValueError) as exc:
        _fail(exc)

    click.echo(f"{structure.formula}: {len(structure)} atoms -> {output}")


# ---------------------------------------------------------------------------
# latticecut slab
# ---------------------------------------------------------------------------

@cli.command("slab", context_settings={"ignore_unknown_options": True})
@_input_argument
@click.argument("h", type=int)
@click.argument("k", type=int)
@click.argument("l", type=int)
@click.option("--thickness", "-t", default=1, show_default=True, type=int,
              help="Number of primitive layers.")
@click.option("--vacuum", default=0.0, show_default=True, type=float,
              help="Vacuum spacing along the surface normal (Å).")
@click.option("--search-limit", default=None, type=int,
              help="Initial half-width of the integer basis search box.")
@click.option("--max-search-limit", default=None, type=int,
              help="Largest half-width the basis search may grow to.")
@_output_option
@_format_option
@_verbose_option
def cmd_slab(
    input_path: str,
    h: int,
    k: int,
    l: int,
    thickness: int,
    vacuum: float,
    search_limit: int | None,
    max_search_limit: int | None,
    output: str,
    fmt: str | None,
    verbose: bool,
) -> None:
    """
    Cut an (H K L) slab from INPUT.

    Negative indices are accepted as plain arguments, e.g. `slab bulk.cif 1 -1 0`.
    """
    _setup_logging(verbose)

    from latticecut.config import SearchConfig
    from latticecut.runner import read_structure, write_structure
    from latticecut.structure.slab import cut

    try:
        search = SearchConfig(
            **{
                key: value
                for key, value in (
                    ("search_limit", search_limit),
                    ("max_search_limit", max_search_limit),
                )
                if value is not None
            }
        )
        structure = cut(
            read_structure(input_path, fmt),
            h, k, l,
            thickness=thickness,
            vacuum=vacuum,
            search_limit=search.search_limit,
            max_search_limit=search.max_search_limit,
        )
        write_structure(structure, output, fmt)
    except (LatticeCutError, ValidationError, ValueError) as exc:
        _fail(exc)

    click.echo(f"{structure.formula}: {len(structure)} atoms -> {output}")


# ---------------------------------------------------------------------------
# latticecut convert
# ---------------------------------------------------------------------------

@cli.command("convert")
@_input_argument
@click.option("--to", "cell_type", required=True,
              type=click.Choice(["primitive", "conventional"]),
              help="Target cell.")
@click.option("--symprec", default=None, type=float,
              help="Symmetry tolerance in Å (default 1e-4).")
@_output_option
@_format_option
@_verbose_option
def cmd_convert(
    input_path: str,
    cell_type: str,
    symprec: float | None,
    output: str,
    fmt: str | None,
    verbose: bool,
) -> None:
    """Convert INPUT to its standardized primitive or conventional cell."""
    _setup_logging(verbose)

    from latticecut.constants import CONVERSION_SYMPREC
    from latticecut.runner import read_structure, write_structure
    from latticecut.structure.conversion import convert_cell

    try:
        structure = convert_cell(
            read_structure(input_path, fmt),
            cell_type,
            symprec=CONVERSION_SYMPREC if symprec is None else symprec,
        )
        write_structure(structure, output, fmt)
    except (LatticeCutError, ValueError) as exc:
        _fail(exc)

    click.echo(f"{structure.formula}: {len(structure)} atoms -> {output}")


# ---------------------------------------------------------------------------
# latticecut info
# ---------------------------------------------------------------------------

@cli.command("info")
@_input_argument
@_format_option
def cmd_info(input_path: str, fmt: str | None) -> None:
    """Print formula, atom count, cell parameters and volume of INPUT."""
    from latticecut.runner import read_structure

    try:
        structure = read_structure(input_path, fmt)
    except (LatticeCutError, ValueError) as exc:
        _fail(exc)

    a, b, c, alpha, beta, gamma = structure.cell_parameters()
    click.echo(f"Formula : {structure.formula}")
    click.echo(f"Atoms   : {len(structure)}")
    click.echo(f"Cell    : a={a:.4f}  b={b:.4f}  c={c:.4f} Å")
    click.echo(f"Angles  : alpha={alpha:.3f}  beta={beta:.3f}  gamma={gamma:.3f} deg")
    click.echo(f"Volume  : {structure.volume:.4f} Å^3")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main() -> None:
    cli()


if __name__ == "__main__":
    main()
