"""
Shared pytest fixtures for sketchphylo tests.

Provides reusable sketch data, in-memory datasets, and a stand-in for the
mash executable so pipeline tests run without mash installed.
"""

from __future__ import annotations

import json
import subprocess
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from sketchphylo.core.dataset import Dataset
from sketchphylo.core.distance import DistanceMatrix
from sketchphylo.external.mash import Mash
from sketchphylo.models.sketch import SketchParameters, SketchRecord

# =============================================================================
# Sketch Test Data Fixtures
# =============================================================================

MASH_PARAMETERS: dict[str, Any] = {
    "kmer": 21,
    "alphabet": "ACGT",
    "preserveCase": False,
    "canonical": True,
    "sketchSize": 1000,
    "hashType": "MurmurHash3_x64_128",
    "hashBits": 64,
    "hashSeed": 42,
}


def mash_info_json(sketches: dict[str, list[int]], **overrides: Any) -> str:
    """Render ``mash info -d`` style JSON for the given genomes."""
    payload = {**MASH_PARAMETERS, **overrides}
    payload["sketches"] = [
        {"name": name, "length": 5_000_000, "comment": "", "hashes": hashes}
        for name, hashes in sketches.items()
    ]
    return json.dumps(payload)


@pytest.fixture
def mash_parameters() -> dict[str, Any]:
    """Sketch parameters as keyed in ``mash info -d`` JSON."""
    return dict(MASH_PARAMETERS)


@pytest.fixture
def info_json() -> Callable[..., str]:
    """Factory rendering ``mash info -d`` JSON."""
    return mash_info_json


@pytest.fixture
def sketch_parameters() -> SketchParameters:
    """Default mash parameters (k=21, s=1000, canonical)."""
    return SketchParameters.model_validate(MASH_PARAMETERS)


@pytest.fixture
def make_record(sketch_parameters: SketchParameters) -> Callable[..., SketchRecord]:
    """Factory for SketchRecords sharing the default parameters."""

    def _make(name: str, hashes: list[int] | None = None, **param_overrides: Any) -> SketchRecord:
        params = sketch_parameters.model_copy(update=param_overrides)
        return SketchRecord(name=name, parameters=params, hashes=frozenset(hashes or []))

    return _make


@pytest.fixture
def three_genome_dataset(make_record: Callable[..., SketchRecord]) -> Dataset:
    """Three in-memory genomes; A and B share most hashes, C shares few."""
    return Dataset.from_records([
        make_record("GenomeC", list(range(900, 1100))),
        make_record("GenomeA", list(range(0, 200))),
        make_record("GenomeB", list(range(20, 220))),
    ])


@pytest.fixture
def three_genome_matrix() -> DistanceMatrix:
    """d(A,B)=0.1, d(A,C)=d(B,C)=0.4."""
    names = ["A", "B", "C"]
    values = {
        ("A", "B"): 0.1,
        ("A", "C"): 0.4,
        ("B", "C"): 0.4,
    }
    distances: dict[str, dict[str, float]] = {n: {n: 0.0} for n in names}
    for (a, b), d in values.items():
        distances[a][b] = distances[b][a] = d
    return DistanceMatrix(names, distances)


def matrix_from_pairs(names: list[str], pairs: dict[tuple[str, str], float]) -> DistanceMatrix:
    """Symmetric DistanceMatrix from upper-triangle pair distances."""
    distances: dict[str, dict[str, float]] = {n: {n: 0.0} for n in names}
    for (a, b), d in pairs.items():
        distances[a][b] = distances[b][a] = d
    return DistanceMatrix(names, distances)


@pytest.fixture
def pair_matrix() -> Callable[[list[str], dict[tuple[str, str], float]], DistanceMatrix]:
    """Factory for symmetric distance matrices."""
    return matrix_from_pairs


# =============================================================================
# Fake mash executable
# =============================================================================


class FakeMashProcess:
    """Stands in for ``subprocess.run`` and answers mash info/dist commands.

    Sketch files are registered with ``add_file``; a placeholder file is
    written so existence checks pass. Distances between genomes come from
    ``set_distance`` (zero for a genome against itself).
    """

    def __init__(self) -> None:
        self.files: dict[str, dict[str, list[int]]] = {}
        self.info_overrides: dict[str, dict[str, Any]] = {}
        self.distances: dict[tuple[str, str], float] = {}
        self.failures: dict[tuple[str, str], int | None] = {}
        self.calls: list[list[str]] = []

    def add_file(self, path: Path, sketches: dict[str, list[int]], **overrides: Any) -> Path:
        path.write_bytes(b"mash sketch placeholder")
        self.files[str(path)] = sketches
        self.info_overrides[str(path)] = overrides
        return path

    def set_distance(self, first: str, second: str, distance: float) -> None:
        self.distances[(first, second)] = distance
        self.distances[(second, first)] = distance

    def fail_pair(self, reference: Path, query: Path, times: int | None = None) -> None:
        """Make mash dist fail for a file pair, always or for the first ``times`` calls."""
        self.failures[(str(reference), str(query))] = times

    def _should_fail(self, pair: tuple[str, str]) -> bool:
        if pair not in self.failures:
            return False
        remaining = self.failures[pair]
        if remaining is None:
            return True
        if remaining == 0:
            return False
        self.failures[pair] = remaining - 1
        return True

    def dist_calls(self) -> list[list[str]]:
        return [c for c in self.calls if c[1] == "dist"]

    def __call__(self, command: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
        self.calls.append(list(command))
        subcommand = command[1]

        if subcommand == "info":
            path = command[3]
            if path not in self.files:
                return subprocess.CompletedProcess(command, 1, "", f"ERROR: could not open {path}")
            stdout = mash_info_json(self.files[path], **self.info_overrides[path])
            return subprocess.CompletedProcess(command, 0, stdout, "")

        if subcommand == "dist":
            reference, query = command[2], command[3]
            if self._should_fail((reference, query)):
                return subprocess.CompletedProcess(command, 1, "", "ERROR: sketch mismatch")
            rows = []
            for ref_name in self.files[reference]:
                for query_name in self.files[query]:
                    if ref_name == query_name:
                        d = 0.0
                    else:
                        d = self.distances[(ref_name, query_name)]
                    rows.append(f"{ref_name}\t{query_name}\t{d}\t0\t500/1000")
            return subprocess.CompletedProcess(command, 0, "\n".join(rows) + "\n", "")

        return subprocess.CompletedProcess(command, 1, "", f"unknown command {subcommand}")


@pytest.fixture
def fake_mash(monkeypatch: pytest.MonkeyPatch) -> Generator[FakeMashProcess, None, None]:
    """Pretend mash is installed and route its invocations to FakeMashProcess."""
    fake = FakeMashProcess()
    Mash.set_executable_resolver(lambda name: f"/usr/bin/{name}")
    monkeypatch.setattr("sketchphylo.external.base.subprocess.run", fake)
    yield fake
    Mash.reset_executable_resolver()


@pytest.fixture
def two_genome_sources(fake_mash: FakeMashProcess, tmp_path: Path) -> list[Path]:
    """GenomeA and GenomeB in separate sketch files, 0.05 apart."""
    a = fake_mash.add_file(tmp_path / "GenomeA.msh", {"GenomeA": list(range(0, 1000))})
    b = fake_mash.add_file(tmp_path / "GenomeB.msh", {"GenomeB": list(range(50, 1050))})
    fake_mash.set_distance("GenomeA", "GenomeB", 0.05)
    return [a, b]
