"""
Main CLI entry point for sketchphylo.

Provides subcommands for each stage of the sketch-to-tree pipeline:
- sketch: Inspect and validate mash sketch files
- dist: Compute the pairwise distance matrix
- tree: Build the midpoint-rooted neighbor-joining tree
"""

from __future__ import annotations

import typer
from rich import print as rprint
from rich.console import Console

from sketchphylo import __version__

app = typer.Typer(
    name="sketchphylo",
    help="Phylogenetic trees from MinHash genome sketches",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        rprint(f"sketchphylo version {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """
    Sketchphylo: phylogenetic trees from MinHash genome sketches.

    Reads mash sketch files, validates that they share sketch parameters,
    computes Mash distances and builds a neighbor-joining tree rooted at the
    midpoint of its longest branch.
    """


# Import subcommands
from sketchphylo.cli import dist, sketch, tree

# Register subcommands
app.add_typer(sketch.app, name="sketch")
app.add_typer(dist.app, name="dist")
app.add_typer(tree.app, name="tree")


if __name__ == "__main__":
    app()
