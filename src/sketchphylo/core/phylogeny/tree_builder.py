"""Build phylogenetic trees from pairwise distance matrices.

Implements neighbor-joining over a DistanceMatrix and returns an unrooted
BioPython tree. Clustering is deterministic: clusters are ordered by their
identifier (the smallest genome name they contain) and ties in the joining
criterion go to the earliest pair in that order.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from io import StringIO

import numpy as np
from Bio import Phylo
from Bio.Phylo.BaseTree import Clade, Tree

from sketchphylo.core.distance import DistanceMatrix
from sketchphylo.core.exceptions import (
    DistanceComputationError,
    DuplicateTaxonError,
    InsufficientTaxaError,
)

logger = logging.getLogger(__name__)

# Q-criterion values closer than this are treated as ties
_TIE_TOLERANCE = 1e-9


def _check_taxa(names: Sequence[str]) -> None:
    if len(names) < 2:
        raise InsufficientTaxaError(len(names))
    duplicates = sorted(name for name, count in Counter(names).items() if count > 1)
    if duplicates:
        raise DuplicateTaxonError(duplicates)


def _distance_array(matrix: DistanceMatrix, names: Sequence[str]) -> np.ndarray:
    """Symmetric float array for ``names``; directed entries are averaged."""
    n = len(names)
    values = np.zeros((n, n))
    for i, a in enumerate(names):
        for j, b in enumerate(names):
            if i == j:
                continue
            try:
                values[i, j] = matrix.distance(a, b)
            except KeyError:
                raise DistanceComputationError(a, b, "pair missing from distance matrix") from None
    return (values + values.T) / 2.0


def _select_pair(dist: np.ndarray, row_sums: np.ndarray) -> tuple[int, int]:
    """Return the pair (i, j), i < j, minimizing the neighbor-joining Q criterion."""
    n = len(dist)
    best: tuple[int, int] = (0, 1)
    best_q = np.inf
    for i in range(n - 1):
        for j in range(i + 1, n):
            q = (n - 2) * dist[i, j] - row_sums[i] - row_sums[j]
            if q < best_q - _TIE_TOLERANCE:
                best_q = q
                best = (i, j)
    return best


def neighbor_joining(
    matrix: DistanceMatrix,
    names: Sequence[str] | None = None,
) -> Tree:
    """Build an unrooted neighbor-joining tree.

    Each round joins the pair of clusters minimizing
    ``Q(i, j) = (n - 2) d(i, j) - R(i) - R(j)`` where R are row sums. The
    joined clusters get branch lengths
    ``L(i) = d(i, j) / 2 + (R(i) - R(j)) / (2 (n - 2))`` and
    ``L(j) = d(i, j) - L(i)``, and the new cluster's distance to every other
    cluster k is ``(d(i, k) + d(j, k) - d(i, j)) / 2``. Negative values from
    matrix noise are clamped to zero.

    When two clusters remain they are connected by an edge of length
    ``d``: an internal cluster becomes the root and the other hangs off it.
    With only two genomes the root holds the first at length ``d`` and the
    second at zero.

    Args:
        matrix: Pairwise distances.
        names: Genomes to place in the tree (default: all matrix names).

    Returns:
        Unrooted BioPython Tree whose terminals are exactly ``names``.

    Raises:
        InsufficientTaxaError: If fewer than two names are given.
        DuplicateTaxonError: If a name appears more than once.
        DistanceComputationError: If the matrix lacks a required pair.
    """
    names = list(matrix.names if names is None else names)
    _check_taxa(names)

    ordered = sorted(names)
    dist = _distance_array(matrix, ordered)
    clusters: list[Clade] = [Clade(name=name) for name in ordered]

    while len(clusters) > 2:
        n = len(clusters)
        row_sums = dist.sum(axis=1)
        i, j = _select_pair(dist, row_sums)
        d_ij = dist[i, j]

        length_i = 0.5 * d_ij + (row_sums[i] - row_sums[j]) / (2 * (n - 2))
        length_j = d_ij - length_i
        clusters[i].branch_length = max(length_i, 0.0)
        clusters[j].branch_length = max(length_j, 0.0)
        logger.debug(
            "Joining %s and %s (d=%.6f)",
            clusters[i].name or f"cluster{i}",
            clusters[j].name or f"cluster{j}",
            d_ij,
        )

        new_row = np.maximum(0.5 * (dist[i] + dist[j] - d_ij), 0.0)
        new_row[i] = 0.0
        dist[i, :] = new_row
        dist[:, i] = new_row
        dist = np.delete(np.delete(dist, j, axis=0), j, axis=1)

        # The joined cluster keeps the smaller identifier, so the list stays ordered
        clusters[i] = Clade(clades=[clusters[i], clusters[j]])
        del clusters[j]

    first, second = clusters
    d_final = max(float(dist[0, 1]), 0.0)

    if first.is_terminal() and second.is_terminal():
        first.branch_length = d_final
        second.branch_length = 0.0
        root = Clade(clades=[first, second])
    elif not first.is_terminal():
        second.branch_length = d_final
        first.clades.append(second)
        root = first
    else:
        first.branch_length = d_final
        second.clades.append(first)
        root = second

    logger.info("Built neighbor-joining tree with %d leaves", len(names))
    return Tree(root=root, rooted=False)


def tree_to_newick(tree: Tree) -> str:
    """Serialize a tree to a Newick string."""
    output = StringIO()
    Phylo.write(tree, output, "newick")
    return output.getvalue().strip()
