"""
Mash wrapper for reading sketches and computing pairwise distances.

Mash (MinHash) stores a bounded set of k-mer hashes per genome in ``.msh``
files. Two subcommands are used here:

- ``mash info -d`` dumps a sketch file as JSON (parameters and hashes)
- ``mash dist`` estimates distances between every genome pair of two files
"""

from __future__ import annotations

from pathlib import Path
from typing import ClassVar, Literal

from sketchphylo.core.parsers import parse_mash_dist_output, parse_mash_info_json
from sketchphylo.external.base import ExternalTool
from sketchphylo.models.sketch import PairwiseDistance, SketchInfo

MashSubcommand = Literal["info", "dist"]


class Mash(ExternalTool):
    """Wrapper for the mash sketching and distance tool.

    Example:
        >>> mash = Mash()
        >>> info = mash.describe_sketches(Path("genomes.msh"))
        >>> rows = mash.pairwise_distance(Path("a.msh"), Path("b.msh"))
    """

    TOOL_NAME: ClassVar[str] = "mash"
    INSTALL_HINT: ClassVar[str] = "conda install -c bioconda mash"

    def build_command(
        self,
        *,
        subcommand: MashSubcommand,
        sources: list[Path],
    ) -> list[str]:
        """Build a mash command.

        Args:
            subcommand: "info" (one source, dumped as JSON) or "dist"
                (reference and query sources).
            sources: Sketch files passed to the subcommand.

        Returns:
            Command as list of strings.

        Raises:
            ValueError: If the number of sources does not fit the subcommand.
        """
        exe = str(self.get_executable())

        if subcommand == "info":
            if len(sources) != 1:
                msg = f"mash info takes exactly one sketch file, got {len(sources)}"
                raise ValueError(msg)
            return [exe, "info", "-d", str(sources[0])]

        if subcommand == "dist":
            if len(sources) != 2:
                msg = f"mash dist takes a reference and a query, got {len(sources)} files"
                raise ValueError(msg)
            return [exe, "dist", str(sources[0]), str(sources[1])]

        msg = f"Unsupported mash subcommand: {subcommand}"
        raise ValueError(msg)

    def describe_sketches(self, source: Path, *, timeout: float | None = None) -> SketchInfo:
        """Return parameters and per-genome hashes stored in a sketch file.

        Raises:
            ToolNotFoundError: If mash is not installed.
            ToolExecutionError: If mash cannot read the file.
            MashOutputError: If the JSON cannot be parsed.
        """
        result = self.run_or_raise(timeout=timeout, subcommand="info", sources=[source])
        return parse_mash_info_json(result.stdout)

    def pairwise_distance(
        self,
        reference: Path,
        query: Path,
        *,
        timeout: float | None = None,
    ) -> list[PairwiseDistance]:
        """Return one distance record per genome pair across two sketch files.

        Raises:
            ToolNotFoundError: If mash is not installed.
            ToolExecutionError: If mash exits with an error.
            MashOutputError: If the table cannot be parsed.
        """
        result = self.run_or_raise(
            timeout=timeout,
            subcommand="dist",
            sources=[reference, query],
        )
        return parse_mash_dist_output(result.stdout)
