"""
Helpers shared by the sketchphylo subcommands.

Logging setup, configuration loading with CLI overrides, the progress
spinner and uniform error exits.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from sketchphylo.core.exceptions import SketchphyloError
from sketchphylo.models.config import PipelineConfig


def configure_logging(verbose: bool = False) -> None:
    """Send library log records to stderr (INFO with --verbose, else WARNING)."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def load_config(
    config_path: Path | None,
    threads: int | None = None,
    console: Console | None = None,
) -> PipelineConfig:
    """Read the YAML configuration, if any, and apply ``--threads``.

    Exits with code 1 when the file cannot be read or fails validation.
    """
    try:
        config = PipelineConfig.from_yaml(config_path) if config_path else PipelineConfig()
        if threads is not None:
            config = config.model_copy(update={"threads": threads})
    except (OSError, ValueError) as e:
        (console or Console()).print(f"[red]Error loading config: {e}[/red]")
        raise typer.Exit(code=1) from None
    return config


def exit_on_error(error: SketchphyloError, console: Console) -> NoReturn:
    """Print a pipeline error with its suggestion and exit with code 1."""
    console.print(f"[red]Error: {error.message}[/red]")
    if error.suggestion:
        console.print(f"[dim]{error.suggestion}[/dim]")
    raise typer.Exit(code=1)


@contextmanager
def spinner_progress(
    description: str,
    console: Console | None = None,
    quiet: bool = False,
) -> Iterator[Progress]:
    """Show an indeterminate spinner with elapsed time while the block runs.

    Distance computation and tree building report no intermediate
    progress, so the single task has no total. Nothing is drawn in
    quiet mode.
    """
    columns = (
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
    )
    with Progress(*columns, console=None if quiet else console, disable=quiet) as progress:
        progress.add_task(description, total=None)
        yield progress


class QuietConsole:
    """Drops status lines in ``--quiet`` mode; errors go to the wrapped console."""

    def __init__(self, console: Console, quiet: bool = False):
        self._console = console
        self._quiet = quiet

    def print(self, *args: Any, **kwargs: Any) -> None:
        if not self._quiet:
            self._console.print(*args, **kwargs)
