"""
Sketch command for inspecting mash sketch files.

Provides subcommands:
- info: Merge sketch files and print a summary of the dataset
"""
from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from sketchphylo.cli.utils import configure_logging, exit_on_error, load_config
from sketchphylo.core.exceptions import SketchphyloError

app = typer.Typer(
    name="sketch",
    help="Inspect and validate mash sketch files",
    no_args_is_help=True,
)

console = Console()


@app.command(name="info")
def info(
    sources: list[Path] = typer.Argument(
        ...,
        help="Mash sketch files (.msh)",
    ),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML pipeline configuration",
        dir_okay=False,
    ),
    hashes: bool = typer.Option(
        False,
        "--hashes",
        help="Also list the most widely shared hashes",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
) -> None:
    """
    Summarize sketch files and check that their parameters are compatible.

    Examples:

        sketchphylo sketch info genomes/*.msh
    """
    from sketchphylo.core.pipeline import SketchPhylogeny

    configure_logging(verbose)
    config = load_config(config_path, console=console)

    try:
        phylo = SketchPhylogeny.from_sources(sources, config)
    except SketchphyloError as e:
        exit_on_error(e, console)

    console.print(phylo.describe(), markup=False, highlight=False)

    if hashes:
        table = phylo.dataset.hash_frequency_table().head(10)
        console.print()
        console.print(table)
