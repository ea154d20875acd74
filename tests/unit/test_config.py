"""Tests for the pipeline configuration model."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from sketchphylo.models.config import DEFAULT_MIN_ROOT_BRANCH_LENGTH, PipelineConfig


class TestPipelineConfigDefaults:
    def test_defaults(self):
        config = PipelineConfig()
        assert config.distance_source == "auto"
        assert config.threads == 1
        assert config.timeout is None
        assert config.max_retries == 0
        assert config.min_root_branch_length == DEFAULT_MIN_ROOT_BRANCH_LENGTH == 0.01

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"threads": 0},
            {"timeout": 0},
            {"max_retries": 11},
            {"min_root_branch_length": -1.0},
            {"distance_source": "blast"},
        ],
    )
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises(ValidationError):
            PipelineConfig(**kwargs)

    def test_frozen(self):
        config = PipelineConfig()
        with pytest.raises(ValidationError):
            config.threads = 4


class TestPipelineConfigYaml:
    """Loading and saving configuration as YAML."""

    def test_pipeline_section(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("pipeline:\n  threads: 4\n  distance_source: sketch\n")
        config = PipelineConfig.from_yaml(path)
        assert config.threads == 4
        assert config.distance_source == "sketch"

    def test_top_level_keys(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("timeout: 30\nmax_retries: 2\n")
        config = PipelineConfig.from_yaml(path)
        assert config.timeout == 30
        assert config.max_retries == 2

    def test_empty_file_gives_defaults(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert PipelineConfig.from_yaml(path) == PipelineConfig()

    def test_unknown_keys_warn(self, tmp_path: Path, caplog: pytest.LogCaptureFixture):
        path = tmp_path / "config.yaml"
        path.write_text("pipeline:\n  threads: 2\n  colour: blue\n")
        with caplog.at_level(logging.WARNING, logger="sketchphylo.models.config"):
            config = PipelineConfig.from_yaml(path)
        assert config.threads == 2
        assert "colour" in caplog.text

    def test_non_mapping_rejected(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("- threads\n- 4\n")
        with pytest.raises(ValueError, match="mapping"):
            PipelineConfig.from_yaml(path)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            PipelineConfig.from_yaml(tmp_path / "nope.yaml")

    def test_yaml_round_trip(self, tmp_path: Path):
        config = PipelineConfig(threads=8, timeout=120.0, min_root_branch_length=0.05)
        text = config.to_yaml_str()
        assert yaml.safe_load(text)["pipeline"]["threads"] == 8

        path = tmp_path / "config.yaml"
        path.write_text(text)
        assert PipelineConfig.from_yaml(path) == config
