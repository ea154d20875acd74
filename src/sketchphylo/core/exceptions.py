"""
Custom exceptions with actionable guidance.

Provides specific error types for the sketch-to-tree pipeline,
each with a helpful suggestion for resolution.
"""

from __future__ import annotations

from pathlib import Path


class SketchphyloError(Exception):
    """Base exception for sketchphylo errors."""

    def __init__(self, message: str, suggestion: str | None = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.full_message)

    @property
    def full_message(self) -> str:
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


class InvalidConstructorArgumentError(SketchphyloError):
    """Raised when a pipeline or dataset is built from malformed input."""

    def __init__(self, detail: str):
        super().__init__(
            message=f"Invalid constructor argument: {detail}",
            suggestion=(
                "Pass a non-empty list of mash sketch files, or a dataset mapping "
                "with 'info' (dict), 'names' (list) and 'hashes' (dict) keys."
            ),
        )
        self.detail = detail


class SourceUnavailableError(SketchphyloError):
    """Raised when a sketch source file is missing or unreadable."""

    def __init__(self, path: Path | str, reason: str = ""):
        detail = f": {reason}" if reason else ""
        super().__init__(
            message=f"Could not read sketch source {path}{detail}",
            suggestion=(
                "Check that the file exists, is readable, and was produced by "
                "'mash sketch' (typically with a .msh extension)."
            ),
        )
        self.path = Path(path)


class IncompatibleSketchError(SketchphyloError):
    """Raised when two genomes in a merge disagree on a sketch parameter."""

    def __init__(
        self,
        genome: str,
        reference: str,
        field: str,
        value: object = None,
        expected: object = None,
    ):
        values = ""
        if value is not None or expected is not None:
            values = f" ({field}={value!r}, expected {expected!r})"
        super().__init__(
            message=(
                f"Genomes {reference} and {genome} are incompatible "
                f"under property {field}{values}"
            ),
            suggestion=(
                "Re-sketch all genomes with the same mash parameters "
                "(-k, -s, -a, -n, -S) before merging them into one tree."
            ),
        )
        self.genome = genome
        self.reference = reference
        self.field = field


class DistanceComputationError(SketchphyloError):
    """Raised when a pairwise distance could not be computed or parsed."""

    def __init__(self, first: str, second: str, reason: str = ""):
        detail = f": {reason}" if reason else ""
        super().__init__(
            message=f"Distance computation failed for {first} vs {second}{detail}",
            suggestion=(
                "Check that mash is installed and that both sketches were "
                "created with compatible parameters. Run with --verbose for "
                "the failing command."
            ),
        )
        self.pair = (first, second)


class InsufficientTaxaError(SketchphyloError):
    """Raised when a tree is requested for fewer than two genomes."""

    def __init__(self, count: int):
        super().__init__(
            message=f"Too few genomes for tree building (need >= 2, got {count})",
            suggestion="Add more sketches to the input set.",
        )
        self.count = count


class DuplicateTaxonError(SketchphyloError):
    """Raised when the same genome name appears twice among tree leaves."""

    def __init__(self, names: list[str]):
        shown = ", ".join(names[:5])
        if len(names) > 5:
            shown += f"... and {len(names) - 5} more"
        super().__init__(
            message=f"Duplicate genome names among tree leaves: {shown}",
            suggestion="Rename the duplicated sketches so every genome name is unique.",
        )
        self.names = names


class MashOutputError(SketchphyloError):
    """Raised when mash output cannot be parsed."""

    def __init__(self, command: str, reason: str):
        super().__init__(
            message=f"Could not parse output of 'mash {command}': {reason}",
            suggestion=(
                "Check the installed mash version (>= 2.0 is required for "
                "'mash info -d' JSON output)."
            ),
        )
        self.command = command


class ConfigurationError(SketchphyloError):
    """Raised when configuration is invalid."""
