"""
Wrappers for external bioinformatics tools.

Provides a Python interface to mash.
"""

from sketchphylo.external.base import (
    ExternalTool,
    ToolExecutionError,
    ToolNotFoundError,
    ToolResult,
    ToolTimeoutError,
)
from sketchphylo.external.mash import Mash

__all__ = [
    "ExternalTool",
    "Mash",
    "ToolExecutionError",
    "ToolNotFoundError",
    "ToolResult",
    "ToolTimeoutError",
]
