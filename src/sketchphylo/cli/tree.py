"""
Tree command for building phylogenetic trees.

Provides subcommands:
- build: Build a midpoint-rooted neighbor-joining tree from sketch files
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
    name="tree",
    help="Build phylogenetic trees from mash sketches",
    no_args_is_help=True,
)

console = Console()


@app.command(name="build")
def build(
    sources: list[Path] = typer.Argument(
        ...,
        help="Mash sketch files (.msh)",
    ),
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        help="Output Newick tree file",
    ),
    matrix: Path | None = typer.Option(
        None,
        "--matrix",
        "-m",
        help="Also write the distance matrix to this CSV file",
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
    Build a neighbor-joining tree rooted at the midpoint of its longest branch.

    Examples:

        # Tree from one sketch file per genome
        sketchphylo tree build genomes/*.msh --output tree.nwk

        # Keep the distance matrix as well
        sketchphylo tree build all.msh --output tree.nwk --matrix distances.csv
    """
    from sketchphylo.core.pipeline import SketchPhylogeny

    configure_logging(verbose)
    config = load_config(config_path, threads, console)
    out = QuietConsole(console, quiet=quiet)

    out.print("\n[bold blue]Sketchphylo Tree Builder[/bold blue]\n")

    try:
        phylo = SketchPhylogeny.from_sources(sources, config)
        n_genomes = len(phylo.names)
        out.print(f"[bold]Sketch files:[/bold] {len(phylo.dataset.sources)}")
        out.print(f"[bold]Genomes:[/bold] {n_genomes}")

        with spinner_progress(
            f"Building tree from {n_genomes} genomes...",
            console,
            quiet,
        ):
            newick = phylo.newick()
    except SketchphyloError as e:
        exit_on_error(e, console)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(newick + "\n")

    if matrix is not None:
        phylo.distances.write_csv(matrix)
        out.print(f"[bold]Distance matrix:[/bold] {matrix}")

    out.print("\n[bold green]Tree built successfully![/bold green]")
    out.print(f"[bold]Output:[/bold] {output}")
    out.print()
