"""
Dist command for computing pairwise Mash distance matrices.

Provides subcommands:
- matrix: Compute the all-vs-all distance matrix and write it as CSV
"""
from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from sketchphylo.cli.utils import (
    QuietConsole,
    configure_logging,
    exit_on_error,
    load_config,
    spinner_progress,
)
from sketchphylo.core.exceptions import SketchphyloError

app = typer.Typer(
    name="dist",
    help="Compute pairwise distances between sketched genomes",
    no_args_is_help=True,
)

console = Console()


@app.command(name="matrix")
def matrix(
    sources: list[Path] = typer.Argument(
        ...,
        help="Mash sketch files (.msh)",
    ),
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        help="Output CSV distance matrix",
    ),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML pipeline configuration",
        dir_okay=False,
    ),
    threads: int | None = typer.Option(
        None,
        "--threads",
        "-t",
        help="Number of concurrent mash dist jobs",
        min=1,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress progress output",
    ),
) -> None:
    """
    Compute the pairwise distance matrix for a set of sketch files.

    Examples:

        sketchphylo dist matrix genomes/*.msh --output distances.csv -t 8
    """
    from sketchphylo.core.pipeline import SketchPhylogeny

    configure_logging(verbose)
    config = load_config(config_path, threads, console)
    out = QuietConsole(console, quiet=quiet)

    out.print("\n[bold blue]Sketchphylo Distance Matrix[/bold blue]\n")

    try:
        phylo = SketchPhylogeny.from_sources(sources, config)
        out.print(f"[bold]Genomes:[/bold] {len(phylo.names)}")
        with spinner_progress(
            f"Computing distances for {len(phylo.names)} genomes...",
            console,
            quiet,
        ):
            distances = phylo.distances
    except SketchphyloError as e:
        exit_on_error(e, console)

    n_genomes = distances.write_csv(output)

    out.print(f"\n[bold green]Wrote {n_genomes}x{n_genomes} matrix[/bold green]")
    out.print(f"[bold]Output:[/bold] {output}")
    out.print()
