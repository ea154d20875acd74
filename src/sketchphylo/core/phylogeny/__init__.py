"""Phylogeny module for tree building and rerooting.

Provides neighbor-joining over sketch distance matrices and midpoint
rerooting with a minimum root branch length.
"""

from sketchphylo.core.phylogeny.rerooting import find_longest_branch, reroot_at_midpoint
from sketchphylo.core.phylogeny.tree_builder import neighbor_joining, tree_to_newick

__all__ = [
    "find_longest_branch",
    "neighbor_joining",
    "reroot_at_midpoint",
    "tree_to_newick",
]
