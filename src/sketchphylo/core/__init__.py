"""
Core algorithms for sketch-based phylogeny.

This module contains the sketch store and dataset merger, the distance
matrix builders, and the error types shared by every pipeline stage.
"""

from sketchphylo.core.dataset import Dataset, merge_sources
from sketchphylo.core.distance import DistanceMatrix, mash_distance
from sketchphylo.core.sketch_store import SketchStore

__all__ = [
    "Dataset",
    "DistanceMatrix",
    "SketchStore",
    "mash_distance",
    "merge_sources",
]
