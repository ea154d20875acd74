"""Tests for the mash wrapper."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from sketchphylo.core.exceptions import MashOutputError
from sketchphylo.external.base import ToolExecutionError, ToolNotFoundError
from sketchphylo.external.mash import Mash


@pytest.fixture(autouse=True)
def _mash_installed():
    Mash.set_executable_resolver(lambda name: f"/usr/bin/{name}")
    yield
    Mash.reset_executable_resolver()


class TestBuildCommand:
    def test_info(self):
        cmd = Mash().build_command(subcommand="info", sources=[Path("all.msh")])
        assert cmd == ["/usr/bin/mash", "info", "-d", "all.msh"]

    def test_dist(self):
        cmd = Mash().build_command(subcommand="dist", sources=[Path("a.msh"), Path("b.msh")])
        assert cmd == ["/usr/bin/mash", "dist", "a.msh", "b.msh"]

    @pytest.mark.parametrize(
        ("subcommand", "sources"),
        [
            ("info", []),
            ("info", [Path("a.msh"), Path("b.msh")]),
            ("dist", [Path("a.msh")]),
            ("paste", [Path("a.msh")]),
        ],
    )
    def test_invalid_arguments(self, subcommand, sources):
        with pytest.raises(ValueError):
            Mash().build_command(subcommand=subcommand, sources=sources)

    def test_not_installed(self):
        Mash.set_executable_resolver(lambda name: None)
        with pytest.raises(ToolNotFoundError, match="bioconda"):
            Mash().build_command(subcommand="info", sources=[Path("a.msh")])


class TestDescribeSketches:
    @patch("sketchphylo.external.base.subprocess.run")
    def test_parses_json(self, mock_run, info_json):
        mock_run.return_value = subprocess.CompletedProcess(
            [], 0, info_json({"GenomeA": [1, 2, 3]}), ""
        )
        info = Mash().describe_sketches(Path("a.msh"), timeout=10)
        assert info.names == ["GenomeA"]
        assert mock_run.call_args.args[0] == ["/usr/bin/mash", "info", "-d", "a.msh"]
        assert mock_run.call_args.kwargs["timeout"] == 10

    @patch("sketchphylo.external.base.subprocess.run")
    def test_unreadable_file(self, mock_run):
        mock_run.return_value = subprocess.CompletedProcess([], 1, "", "ERROR: bad sketch")
        with pytest.raises(ToolExecutionError, match="bad sketch"):
            Mash().describe_sketches(Path("a.msh"))

    @patch("sketchphylo.external.base.subprocess.run")
    def test_garbage_output(self, mock_run):
        mock_run.return_value = subprocess.CompletedProcess([], 0, "not json", "")
        with pytest.raises(MashOutputError):
            Mash().describe_sketches(Path("a.msh"))


class TestPairwiseDistance:
    @patch("sketchphylo.external.base.subprocess.run")
    def test_parses_table(self, mock_run):
        mock_run.return_value = subprocess.CompletedProcess(
            [], 0, "A\tB\t0.05\t1e-10\t300/1000\n", ""
        )
        rows = Mash().pairwise_distance(Path("a.msh"), Path("b.msh"))
        assert len(rows) == 1
        assert rows[0].distance == pytest.approx(0.05)
        assert mock_run.call_args.args[0] == ["/usr/bin/mash", "dist", "a.msh", "b.msh"]
