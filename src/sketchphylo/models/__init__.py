"""
Pydantic data models for sketchphylo.

Provides type-safe models for sketch metadata, pairwise distances,
and pipeline configuration.
"""

from sketchphylo.models.config import PipelineConfig
from sketchphylo.models.sketch import (
    PARAMETER_FIELDS,
    PairwiseDistance,
    SketchEntry,
    SketchInfo,
    SketchParameters,
    SketchRecord,
)

__all__ = [
    "PARAMETER_FIELDS",
    "PairwiseDistance",
    "PipelineConfig",
    "SketchEntry",
    "SketchInfo",
    "SketchParameters",
    "SketchRecord",
]
