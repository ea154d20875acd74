"""
Sketch-to-tree pipeline.

SketchPhylogeny holds one merged Dataset and derives, on first request,
its distance matrix, its neighbor-joining tree and the midpoint-rooted
tree. Each derived value is computed at most once per object; build a new
object to recompute.

Example:
    >>> phylo = SketchPhylogeny.from_sources([Path("a.msh"), Path("b.msh")])
    >>> phylo.distances.distance("a.fna", "b.fna")
    >>> print(phylo.newick())
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from functools import cached_property
from pathlib import Path
from typing import Any

from Bio.Phylo.BaseTree import Tree

from sketchphylo.core.dataset import Dataset, merge_sources
from sketchphylo.core.distance import DistanceMatrix, compute_mash_distances, compute_sketch_distances
from sketchphylo.core.exceptions import ConfigurationError, InvalidConstructorArgumentError
from sketchphylo.core.phylogeny.rerooting import reroot_at_midpoint
from sketchphylo.core.phylogeny.tree_builder import neighbor_joining, tree_to_newick
from sketchphylo.external.mash import Mash
from sketchphylo.models.config import PipelineConfig

logger = logging.getLogger(__name__)


class SketchPhylogeny:
    """Distance matrix and midpoint-rooted tree for a set of genome sketches.

    Prefer the factories: ``from_sources`` (sketch files), ``from_dataset``
    (an existing Dataset) or ``from_mapping`` (pre-built info/names/hashes).

    Args:
        dataset: Merged sketch dataset.
        config: Pipeline configuration (defaults if None).
        mash: Mash wrapper for delegated distances (created on demand).

    Raises:
        ConfigurationError: If mash distances are requested for a dataset
            that was not read from sketch files.
    """

    def __init__(
        self,
        dataset: Dataset,
        config: PipelineConfig | None = None,
        mash: Mash | None = None,
    ) -> None:
        self.dataset = dataset
        self.config = config or PipelineConfig()
        self._mash = mash

        if self.config.distance_source == "mash" and not dataset.has_sources:
            raise ConfigurationError(
                message="distance_source 'mash' requires a dataset read from sketch files",
                suggestion="Use distance_source 'auto' or 'sketch' for in-memory datasets.",
            )

    @classmethod
    def from_sources(
        cls,
        paths: Iterable[Path | str],
        config: PipelineConfig | None = None,
        mash: Mash | None = None,
    ) -> SketchPhylogeny:
        """Read and merge sketch files.

        Raises:
            InvalidConstructorArgumentError: If ``paths`` is not a non-empty
                collection of file paths.
            SourceUnavailableError: If a file is missing or unreadable.
            IncompatibleSketchError: If sketch parameters differ.
        """
        if isinstance(paths, (str, Path)):
            raise InvalidConstructorArgumentError(
                "the first parameter must be a list of mash file(s), got a single path"
            )
        config = config or PipelineConfig()
        mash = mash or Mash()
        dataset = merge_sources([Path(p) for p in paths], mash, timeout=config.timeout)
        return cls(dataset, config, mash)

    @classmethod
    def from_dataset(
        cls,
        dataset: Dataset,
        config: PipelineConfig | None = None,
        mash: Mash | None = None,
    ) -> SketchPhylogeny:
        """Wrap an already merged Dataset."""
        if not isinstance(dataset, Dataset):
            raise InvalidConstructorArgumentError(
                f"expected a Dataset, got {type(dataset).__name__}"
            )
        return cls(dataset, config, mash)

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        config: PipelineConfig | None = None,
    ) -> SketchPhylogeny:
        """Build from a pre-built ``{info, names, hashes}`` mapping."""
        return cls(Dataset.from_mapping(data), config)

    @property
    def mash(self) -> Mash:
        if self._mash is None:
            self._mash = Mash()
        return self._mash

    @property
    def names(self) -> tuple[str, ...]:
        return self.dataset.names

    @property
    def distance_source(self) -> str:
        """Effective distance source: 'mash' or 'sketch'."""
        if self.config.distance_source == "auto":
            return "mash" if self.dataset.has_sources else "sketch"
        return self.config.distance_source

    @cached_property
    def distances(self) -> DistanceMatrix:
        """Pairwise distance matrix, computed on first access."""
        if self.distance_source == "mash":
            return compute_mash_distances(
                self.dataset,
                self.mash,
                threads=self.config.threads,
                timeout=self.config.timeout,
                max_retries=self.config.max_retries,
            )
        return compute_sketch_distances(self.dataset)

    @cached_property
    def unrooted_tree(self) -> Tree:
        """Neighbor-joining tree, computed on first access."""
        return neighbor_joining(self.distances, self.dataset.names)

    @cached_property
    def tree(self) -> Tree:
        """Midpoint-rooted tree; ``unrooted_tree`` is left untouched."""
        return reroot_at_midpoint(
            copy.deepcopy(self.unrooted_tree),
            min_branch_length=self.config.min_root_branch_length,
        )

    def newick(self) -> str:
        """Midpoint-rooted tree as a Newick string."""
        return tree_to_newick(self.tree)

    def describe(self) -> str:
        """Human-readable report of the dataset and its sketch parameters."""
        dataset = self.dataset
        lines = [
            f"Sketch dataset with {len(dataset)} genome(s) "
            f"from {len(dataset.sources)} file(s)",
        ]

        params = dataset.parameters
        if params is not None:
            lines.append("")
            lines.append(f"  k-mer size:   {params.kmer}")
            lines.append(f"  alphabet:     {params.alphabet}")
            lines.append(f"  canonical:    {'yes' if params.canonical else 'no'}")
            lines.append(f"  case:         {'preserved' if params.preserve_case else 'ignored'}")
            lines.append(f"  sketch size:  {params.sketch_size}")
            lines.append(
                f"  hash:         {params.hash_type} "
                f"({params.hash_bits}-bit, seed {params.hash_seed})"
            )

        if dataset.sources:
            lines.append("")
            for source in dataset.sources:
                lines.append(f"-------{source}------")
                for name in dataset.names:
                    record = dataset[name]
                    if record.source == source:
                        length = "?" if record.length is None else f"{record.length:,}"
                        lines.append(f"  {name}\t{len(record.hashes)} hashes\t{length} bp")
        else:
            lines.append("")
            for name in dataset.names:
                lines.append(f"  {name}\t{len(dataset[name].hashes)} hashes")

        shared = len(dataset.shared_hashes(min_genomes=2))
        lines.append("")
        lines.append(f"{len(dataset.hash_counts)} distinct hashes, {shared} shared by 2+ genomes")
        return "\n".join(lines)
