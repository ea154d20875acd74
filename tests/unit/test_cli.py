"""Tests for the sketchphylo command-line interface."""
from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest
from Bio import Phylo
from typer.testing import CliRunner

from sketchphylo import __version__
from sketchphylo.cli.main import app

runner = CliRunner()


@pytest.fixture()
def three_sources(fake_mash, tmp_path: Path) -> list[Path]:
    """Three single-genome sketch files with A and B close, C distant."""
    paths = [
        fake_mash.add_file(tmp_path / f"{name}.msh", {name: hashes})
        for name, hashes in [
            ("GenomeA", list(range(0, 1000))),
            ("GenomeB", list(range(100, 1100))),
            ("GenomeC", list(range(5000, 6000))),
        ]
    ]
    fake_mash.set_distance("GenomeA", "GenomeB", 0.1)
    fake_mash.set_distance("GenomeA", "GenomeC", 0.4)
    fake_mash.set_distance("GenomeB", "GenomeC", 0.4)
    return paths


class TestMainApp:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("sketch", "dist", "tree"):
            assert command in result.output


class TestSketchInfo:
    def test_summary(self, two_genome_sources):
        result = runner.invoke(app, ["sketch", "info", *map(str, two_genome_sources)])
        assert result.exit_code == 0, result.output
        assert "Sketch dataset with 2 genome(s) from 2 file(s)" in result.output
        assert "GenomeA" in result.output
        assert "950 shared by 2+ genomes" in result.output

    def test_hash_table(self, two_genome_sources):
        result = runner.invoke(app, ["sketch", "info", "--hashes", *map(str, two_genome_sources)])
        assert result.exit_code == 0, result.output
        assert "genomes" in result.output

    def test_incompatible(self, fake_mash, tmp_path: Path):
        a = fake_mash.add_file(tmp_path / "a.msh", {"GenomeA": [1]})
        b = fake_mash.add_file(tmp_path / "b.msh", {"GenomeB": [1]}, kmer=16)
        result = runner.invoke(app, ["sketch", "info", str(a), str(b)])
        assert result.exit_code == 1
        assert "incompatible" in result.output


class TestDistMatrix:
    def test_writes_csv(self, three_sources, tmp_path: Path):
        output = tmp_path / "distances.csv"
        result = runner.invoke(app, [
            "dist", "matrix",
            *map(str, three_sources),
            "--output", str(output),
            "--threads", "2",
        ])
        assert result.exit_code == 0, result.output
        frame = pd.read_csv(output, index_col="genome")
        assert list(frame.index) == ["GenomeA", "GenomeB", "GenomeC"]
        assert frame.loc["GenomeA", "GenomeC"] == pytest.approx(0.4)

    def test_missing_source(self, fake_mash, tmp_path: Path):
        result = runner.invoke(app, [
            "dist", "matrix", str(tmp_path / "missing.msh"),
            "--output", str(tmp_path / "d.csv"),
        ])
        assert result.exit_code == 1
        assert not (tmp_path / "d.csv").exists()

    def test_failed_mash_dist(self, fake_mash, three_sources, tmp_path: Path):
        fake_mash.fail_pair(three_sources[0], three_sources[2])
        result = runner.invoke(app, [
            "dist", "matrix", *map(str, three_sources),
            "--output", str(tmp_path / "d.csv"),
        ])
        assert result.exit_code == 1
        assert "Distance computation failed" in result.output


class TestTreeBuild:
    def test_newick_output(self, three_sources, tmp_path: Path):
        output = tmp_path / "tree.nwk"
        result = runner.invoke(app, [
            "tree", "build",
            *map(str, three_sources),
            "--output", str(output),
        ])
        assert result.exit_code == 0, result.output
        content = output.read_text()
        assert content.endswith(";\n")

        tree = Phylo.read(output, "newick")
        first, second = tree.root.clades
        assert first.name == "GenomeC"
        assert first.branch_length == pytest.approx(0.175)
        assert second.branch_length == pytest.approx(0.175)

    def test_with_matrix(self, three_sources, tmp_path: Path):
        output = tmp_path / "out" / "tree.nwk"
        matrix = tmp_path / "out" / "distances.csv"
        result = runner.invoke(app, [
            "tree", "build",
            *map(str, three_sources),
            "-o", str(output),
            "-m", str(matrix),
            "--quiet",
        ])
        assert result.exit_code == 0, result.output
        assert output.exists()
        assert matrix.exists()
        assert "Tree built" not in result.output

    def test_single_genome_fails(self, fake_mash, tmp_path: Path):
        path = fake_mash.add_file(tmp_path / "one.msh", {"GenomeA": [1]})
        output = tmp_path / "tree.nwk"
        result = runner.invoke(app, ["tree", "build", str(path), "--output", str(output)])
        assert result.exit_code == 1
        assert "Too few genomes" in result.output
        assert not output.exists()

    def test_config_file(self, three_sources, tmp_path: Path):
        config = tmp_path / "config.yaml"
        config.write_text("pipeline:\n  min_root_branch_length: 0.5\n")
        output = tmp_path / "tree.nwk"
        result = runner.invoke(app, [
            "tree", "build", *map(str, three_sources),
            "--output", str(output),
            "--config", str(config),
        ])
        assert result.exit_code == 0, result.output
        tree = Phylo.read(output, "newick")
        assert [c.branch_length for c in tree.root.clades] == [0.5, 0.5]

    def test_bad_config_file(self, three_sources, tmp_path: Path):
        config = tmp_path / "config.yaml"
        config.write_text("pipeline:\n  threads: 0\n")
        result = runner.invoke(app, [
            "tree", "build", *map(str, three_sources),
            "--output", str(tmp_path / "tree.nwk"),
            "--config", str(config),
        ])
        assert result.exit_code == 1
        assert "Error loading config" in result.output
