"""Midpoint rerooting of distance trees.

The tree is rerooted in the middle of its single longest branch, and the
branches hanging off the new root are given a minimum length so that no
root edge has zero length.
"""

from __future__ import annotations

import logging

from Bio.Phylo.BaseTree import Clade, Tree

from sketchphylo.models.config import DEFAULT_MIN_ROOT_BRANCH_LENGTH

logger = logging.getLogger(__name__)


def _parents(tree: Tree) -> dict[int, Clade]:
    """Map ``id(clade)`` to its parent clade."""
    parents: dict[int, Clade] = {}
    for clade in tree.find_clades(order="preorder"):
        for child in clade.clades:
            parents[id(child)] = clade
    return parents


def _child_index(parent: Clade, child: Clade) -> int:
    return next(k for k, c in enumerate(parent.clades) if c is child)


def find_longest_branch(tree: Tree) -> Clade | None:
    """Return the clade at the lower end of the longest branch.

    Clades are visited in preorder; a missing branch length counts as zero
    and the first clade encountered wins ties. The root has no branch and
    is never returned.
    """
    best: Clade | None = None
    best_length = 0.0
    for clade in tree.find_clades(order="preorder"):
        if clade is tree.root:
            continue
        length = clade.branch_length or 0.0
        if best is None or length > best_length:
            best = clade
            best_length = length
    return best


def reroot_at_midpoint(
    tree: Tree,
    min_branch_length: float = DEFAULT_MIN_ROOT_BRANCH_LENGTH,
) -> Tree:
    """Reroot a tree at the midpoint of its longest branch, in place.

    A new root is inserted halfway along the longest branch. The path from
    that branch up to the old root is reversed, and an old root left with a
    single child is merged into it. Finally every branch attached to the new
    root that is missing or shorter than ``min_branch_length`` is set to
    exactly ``min_branch_length``.

    Args:
        tree: Tree to reroot. Its clades are rearranged in place.
        min_branch_length: Floor for branch lengths at the new root.

    Returns:
        The same Tree object, now rooted.
    """
    target = find_longest_branch(tree)
    if target is None:
        tree.rooted = True
        return tree

    parents = _parents(tree)
    old_root = tree.root

    # Chain of ancestors from the old root down to the target's parent
    ancestors: list[Clade] = []
    node = parents[id(target)]
    while True:
        ancestors.append(node)
        if node is old_root:
            break
        node = parents[id(node)]
    ancestors.reverse()

    half = (target.branch_length or 0.0) / 2.0
    parent = ancestors[-1]
    del parent.clades[_child_index(parent, target)]
    target.branch_length = half
    new_root = Clade(clades=[target])

    # Walk upwards, hanging each ancestor below its former child
    holder = new_root
    carry = half
    for k in range(len(ancestors) - 1, -1, -1):
        node = ancestors[k]
        next_carry = node.branch_length or 0.0
        node.branch_length = carry
        if k > 0:
            above = ancestors[k - 1]
            del above.clades[_child_index(above, node)]
        holder.clades.append(node)
        holder = node
        carry = next_carry

    old_holder = new_root if len(ancestors) == 1 else ancestors[1]
    if len(old_root.clades) == 1:
        only_child = old_root.clades[0]
        only_child.branch_length = (only_child.branch_length or 0.0) + (old_root.branch_length or 0.0)
        old_holder.clades[_child_index(old_holder, old_root)] = only_child

    for child in new_root.clades:
        if child.branch_length is None or child.branch_length < min_branch_length:
            logger.debug(
                "Raising root branch of %s from %s to %s",
                child.name or "internal node",
                child.branch_length,
                min_branch_length,
            )
            child.branch_length = min_branch_length

    tree.root = new_root
    tree.rooted = True
    logger.info("Rerooted tree at midpoint of branch above %s", target.name or "internal node")
    return tree
