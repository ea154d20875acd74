"""
Pairwise distance matrices between sketched genomes.

Distances come from one of two places:

- ``mash dist`` run on every ordered pair of sketch files (delegated)
- the Mash distance formula applied to the stored bottom-k hash sets
  (in-process, for datasets that were not read from files)

Either way the result is a complete DistanceMatrix over the dataset's
names with a zero diagonal. A matrix with a missing pair is never returned.
"""

from __future__ import annotations

import heapq
import logging
import math
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd
import polars as pl

from sketchphylo.core.exceptions import DistanceComputationError, MashOutputError
from sketchphylo.external.base import ToolExecutionError, ToolNotFoundError, ToolTimeoutError
from sketchphylo.models.sketch import PairwiseDistance, SketchRecord

if TYPE_CHECKING:
    from sketchphylo.core.dataset import Dataset
    from sketchphylo.external.mash import Mash

logger = logging.getLogger(__name__)

# Distance assigned to sketches that share no hashes
MAX_MASH_DISTANCE = 1.0


class DistanceMatrix:
    """Distances between genome pairs, keyed by genome name.

    Entries are stored per ordered pair, so ``distance(a, b)`` and
    ``distance(b, a)`` are independent values (equal for mash output).

    Args:
        names: Genome names in canonical order.
        distances: Nested mapping ``first -> second -> distance``.
    """

    def __init__(
        self,
        names: Sequence[str],
        distances: Mapping[str, Mapping[str, float]],
    ) -> None:
        self.names: tuple[str, ...] = tuple(names)
        self._distances: dict[str, dict[str, float]] = {
            name: dict(distances.get(name, {})) for name in self.names
        }

    def __len__(self) -> int:
        return len(self.names)

    def __contains__(self, name: object) -> bool:
        return name in self._distances

    def __getitem__(self, name: str) -> Mapping[str, float]:
        return MappingProxyType(self._distances[name])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DistanceMatrix):
            return NotImplemented
        return self.names == other.names and self._distances == other._distances

    def __repr__(self) -> str:
        return f"DistanceMatrix({len(self.names)} genomes)"

    def distance(self, first: str, second: str) -> float:
        """Return the distance from ``first`` to ``second``."""
        return self._distances[first][second]

    def missing_pairs(self) -> list[tuple[str, str]]:
        """Ordered pairs over ``names`` with no recorded distance."""
        return [
            (a, b)
            for a in self.names
            for b in self.names
            if b not in self._distances[a]
        ]

    def as_dict(self) -> dict[str, dict[str, float]]:
        """Copy of the nested ``first -> second -> distance`` mapping."""
        return {name: dict(row) for name, row in self._distances.items()}

    def to_numpy(self) -> np.ndarray:
        """Square array in ``names`` order (NaN for missing pairs)."""
        n = len(self.names)
        values = np.full((n, n), np.nan)
        for i, a in enumerate(self.names):
            row = self._distances[a]
            for j, b in enumerate(self.names):
                if b in row:
                    values[i, j] = row[b]
        return values

    def to_frame(self) -> pd.DataFrame:
        """Square DataFrame with genome names as index and columns."""
        return pd.DataFrame(self.to_numpy(), index=list(self.names), columns=list(self.names))

    def write_csv(self, output_path: Path) -> int:
        """Write the matrix as CSV.

        Output format:
        - First column named 'genome' contains genome names
        - Header row contains genome names
        - Square matrix in canonical name order

        Returns:
            Number of genomes in the matrix.
        """
        values = self.to_numpy()
        data: dict[str, list[str] | list[float]] = {"genome": list(self.names)}
        for j, name in enumerate(self.names):
            data[name] = values[:, j].tolist()

        output_path.parent.mkdir(parents=True, exist_ok=True)
        pl.DataFrame(data).write_csv(output_path)
        return len(self.names)


def mash_distance(first: SketchRecord, second: SketchRecord) -> tuple[float, int, int]:
    """Estimate the Mash distance between two bottom-k sketches.

    The ``sketch_size`` smallest hashes of the union of both sketches are
    kept; the fraction of those present in both sketches estimates the
    Jaccard index j, and the distance is ``-ln(2j / (1 + j)) / k``.

    Returns:
        Tuple of (distance, shared hashes, hashes compared).
    """
    params = first.parameters
    union = heapq.nsmallest(params.sketch_size, first.hashes | second.hashes)
    total = len(union)
    shared = sum(1 for h in union if h in first.hashes and h in second.hashes)

    if shared == 0:
        return MAX_MASH_DISTANCE, 0, total

    jaccard = shared / total
    distance = -math.log(2 * jaccard / (1 + jaccard)) / params.kmer
    return max(0.0, distance), shared, total


def compute_sketch_distances(dataset: Dataset) -> DistanceMatrix:
    """Compute all pairwise distances from the dataset's stored sketches."""
    names = dataset.names
    distances: dict[str, dict[str, float]] = {name: {name: 0.0} for name in names}

    for i, a in enumerate(names):
        for b in names[i + 1:]:
            dist, shared, total = mash_distance(dataset[a], dataset[b])
            distances[a][b] = distances[b][a] = dist
            logger.debug("%s vs %s: %.6f (%d/%d shared)", a, b, dist, shared, total)

    logger.info("Computed %d pairwise distances from sketches", len(names) * (len(names) - 1) // 2)
    return DistanceMatrix(names, distances)


def _run_pair(
    mash: Mash,
    reference: Path,
    query: Path,
    *,
    timeout: float | None,
    max_retries: int,
) -> list[PairwiseDistance]:
    """Run ``mash dist`` for one pair of files, retrying transient failures."""
    attempts = max_retries + 1
    attempt = 0
    while True:
        attempt += 1
        try:
            return mash.pairwise_distance(reference, query, timeout=timeout)
        except (ToolExecutionError, ToolTimeoutError) as e:
            if attempt >= attempts:
                raise DistanceComputationError(
                    str(reference), str(query), e.message.splitlines()[0]
                ) from e
            logger.warning(
                "mash dist %s %s failed (attempt %d/%d), retrying",
                reference,
                query,
                attempt,
                attempts,
            )
        except (ToolNotFoundError, MashOutputError) as e:
            raise DistanceComputationError(str(reference), str(query), e.message) from e


def compute_mash_distances(
    dataset: Dataset,
    mash: Mash,
    *,
    threads: int = 1,
    timeout: float | None = None,
    max_retries: int = 0,
) -> DistanceMatrix:
    """Run ``mash dist`` on every ordered pair of the dataset's sketch files.

    Self pairs (a file against itself) are run too, so genomes sharing a
    file get their distances. With ``threads > 1`` the invocations run on
    a thread pool; the matrix is only assembled after every job finished.

    Args:
        dataset: Dataset read from sketch files.
        mash: Mash wrapper.
        threads: Number of concurrent mash invocations.
        timeout: Timeout for each invocation.
        max_retries: Extra attempts for a failed invocation.

    Returns:
        Complete DistanceMatrix over ``dataset.names`` with a zero diagonal.

    Raises:
        DistanceComputationError: If an invocation fails, its output cannot be
            parsed, or a genome pair is missing from the combined output.
    """
    sources = dataset.sources
    pairs = [(a, b) for a in sources for b in sources]
    results: dict[tuple[Path, Path], list[PairwiseDistance]] = {}

    logger.info("Running mash dist on %d file pair(s) with %d thread(s)", len(pairs), threads)

    if threads <= 1:
        for pair in pairs:
            results[pair] = _run_pair(mash, *pair, timeout=timeout, max_retries=max_retries)
    else:
        with ThreadPoolExecutor(max_workers=threads) as executor:
            future_to_pair = {
                executor.submit(
                    _run_pair, mash, *pair, timeout=timeout, max_retries=max_retries
                ): pair
                for pair in pairs
            }
            try:
                for future in as_completed(future_to_pair):
                    results[future_to_pair[future]] = future.result()
            except DistanceComputationError:
                for future in future_to_pair:
                    future.cancel()
                raise

    known = set(dataset.names)
    distances: dict[str, dict[str, float]] = {name: {} for name in dataset.names}
    for pair in pairs:
        for row in results[pair]:
            if row.reference not in known or row.query not in known:
                logger.debug("Ignoring distance for unknown genome pair %s/%s", row.reference, row.query)
                continue
            distances[row.reference][row.query] = row.distance

    for name in dataset.names:
        distances[name][name] = 0.0

    matrix = DistanceMatrix(dataset.names, distances)
    missing = matrix.missing_pairs()
    if missing:
        first, second = missing[0]
        raise DistanceComputationError(
            first,
            second,
            f"no distance reported ({len(missing)} pair(s) missing)",
        )
    return matrix
