"""
Pydantic configuration model for sketchphylo.

Controls how pairwise distances are obtained (delegated to ``mash dist``
or computed in-process from stored sketches), how external invocations
are run, and the branch-length floor applied after midpoint rerooting.
Configuration can be loaded from YAML files or given as CLI arguments.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DistanceSource = Literal["auto", "mash", "sketch"]

# Minimum length of a branch attached to the root after rerooting
DEFAULT_MIN_ROOT_BRANCH_LENGTH = 0.01


class PipelineConfig(BaseModel):
    """
    Configuration for the sketch-to-tree pipeline.

    Distance sources:
        - auto: run ``mash dist`` when sketch files are known, otherwise
          compute distances from the in-memory sketches
        - mash: always delegate to ``mash dist`` (requires sketch files)
        - sketch: always compute in-process from bottom-k hash sets

    Attributes:
        distance_source: How pairwise distances are produced.
        threads: Number of concurrent ``mash dist`` invocations.
        timeout: Per-invocation timeout in seconds (None for no limit).
        max_retries: Extra attempts for a failed ``mash dist`` invocation.
        min_root_branch_length: Floor applied to branches at the new root.
    """

    distance_source: DistanceSource = Field(
        default="auto",
        description="Distance source: 'auto', 'mash' or 'sketch'",
    )
    threads: int = Field(default=1, ge=1, description="Concurrent mash dist jobs")
    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Timeout in seconds for each mash invocation",
    )
    max_retries: int = Field(
        default=0,
        ge=0,
        le=10,
        description="Extra attempts for a failed mash dist invocation",
    )
    min_root_branch_length: float = Field(
        default=DEFAULT_MIN_ROOT_BRANCH_LENGTH,
        ge=0,
        description="Minimum branch length at the root after midpoint rerooting",
    )

    model_config = {"frozen": True}

    @classmethod
    def from_yaml(cls, path: Path) -> PipelineConfig:
        """
        Load pipeline configuration from a YAML file.

        Keys may be given at the top level or under a ``pipeline`` section.
        Unknown keys are ignored (forward compatibility).

        Args:
            path: Path to YAML configuration file.

        Returns:
            PipelineConfig populated from YAML values merged with defaults.

        Raises:
            FileNotFoundError: If YAML file does not exist.
            ValueError: If the YAML is not a mapping or holds invalid values.
        """
        import yaml

        raw = yaml.safe_load(path.read_text()) or {}
        if not isinstance(raw, dict):
            msg = f"YAML config must be a mapping, got {type(raw).__name__}"
            raise ValueError(msg)

        section: dict[str, Any] = raw.get("pipeline", raw)
        known = {k: v for k, v in section.items() if k in cls.model_fields}
        ignored = sorted(set(section) - set(known))
        if ignored:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(ignored))
        return cls(**known)

    def to_yaml_str(self) -> str:
        """Serialize configuration to a YAML string."""
        import yaml

        return yaml.dump(
            {"pipeline": self.model_dump()},
            default_flow_style=False,
            sort_keys=False,
        )
