"""
Sketchphylo: phylogenetic trees from MinHash genome sketches.

Reads mash sketch files, checks that they were made with compatible
parameters, computes pairwise Mash distances and builds a neighbor-joining
tree rooted at the midpoint of its longest branch.
"""

__version__ = "0.1.0"
__author__ = "Sketchphylo Team"

from sketchphylo.core.dataset import Dataset
from sketchphylo.core.distance import DistanceMatrix
from sketchphylo.core.pipeline import SketchPhylogeny
from sketchphylo.models.config import PipelineConfig

__all__ = [
    "Dataset",
    "DistanceMatrix",
    "PipelineConfig",
    "SketchPhylogeny",
    "__version__",
]
