"""
Data models for MinHash sketch metadata.

Mirrors the structure reported by ``mash info -d``: file-level sketch
parameters shared by every genome in the file, plus one entry per sketched
genome holding its name and retained hash values.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Order in which parameters are compared when merging sketches
PARAMETER_FIELDS: tuple[str, ...] = (
    "kmer",
    "alphabet",
    "preserve_case",
    "canonical",
    "sketch_size",
    "hash_type",
    "hash_bits",
    "hash_seed",
)


class SketchParameters(BaseModel):
    """Sketching parameters that must match across a dataset.

    Field aliases follow mash's JSON keys so ``mash info -d`` output can be
    validated directly.

    Attributes:
        kmer: K-mer length used for hashing.
        alphabet: Alphabet identifier (e.g., "ACGT").
        preserve_case: Whether k-mer case was preserved before hashing.
        canonical: Whether k-mers were canonicalized with their reverse complement.
        sketch_size: Number of hashes retained per sketch.
        hash_type: Hash function identifier (e.g., "MurmurHash3_x64_128").
        hash_bits: Bit width of stored hash values.
        hash_seed: Seed passed to the hash function.
    """

    kmer: int = Field(gt=0, description="K-mer length")
    alphabet: str = Field(description="Alphabet identifier")
    preserve_case: bool = Field(alias="preserveCase", description="Case preserved")
    canonical: bool = Field(description="Canonical k-mers")
    sketch_size: int = Field(alias="sketchSize", gt=0, description="Hashes per sketch")
    hash_type: str = Field(alias="hashType", description="Hash function")
    hash_bits: int = Field(alias="hashBits", gt=0, description="Hash bit width")
    hash_seed: int = Field(alias="hashSeed", ge=0, description="Hash seed")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def first_difference(self, other: SketchParameters) -> str | None:
        """Return the first parameter field on which two parameter sets differ."""
        for name in PARAMETER_FIELDS:
            if getattr(self, name) != getattr(other, name):
                return name
        return None


class SketchEntry(BaseModel):
    """One genome as listed in a mash sketch file."""

    name: str = Field(min_length=1)
    length: int | None = Field(default=None, ge=0)
    comment: str = ""
    hashes: list[int] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class SketchInfo(BaseModel):
    """Parsed contents of one sketch source."""

    parameters: SketchParameters
    sketches: list[SketchEntry] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def names(self) -> list[str]:
        return [entry.name for entry in self.sketches]


class SketchRecord(BaseModel):
    """Decoded sketch of a single genome.

    Attributes:
        name: Genome name, unique within a dataset.
        parameters: Sketch parameters of the source the genome came from.
        hashes: Set of retained hash values.
        length: Sequence length reported by mash, if known.
        comment: Free-text comment stored in the sketch.
        source: Sketch file the record was decoded from (None if built in memory).
    """

    name: str = Field(min_length=1)
    parameters: SketchParameters
    hashes: frozenset[int] = Field(default_factory=frozenset)
    length: int | None = Field(default=None, ge=0)
    comment: str = ""
    source: Path | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("hashes")
    @classmethod
    def validate_unsigned(cls, value: frozenset[int]) -> frozenset[int]:
        """Hash values are unsigned integers."""
        if any(h < 0 for h in value):
            msg = "hash values must be non-negative"
            raise ValueError(msg)
        return value

    @classmethod
    def from_entry(
        cls,
        entry: SketchEntry,
        parameters: SketchParameters,
        source: Path | None = None,
    ) -> SketchRecord:
        """Build a record from a sketch file entry and its file-level parameters."""
        return cls(
            name=entry.name,
            parameters=parameters,
            hashes=frozenset(entry.hashes),
            length=entry.length,
            comment=entry.comment,
            source=source,
        )


class PairwiseDistance(BaseModel):
    """One row of ``mash dist`` output.

    Attributes:
        reference: Reference genome name (first column).
        query: Query genome name (second column).
        distance: Mash distance estimate.
        p_value: Probability of observing the distance by chance.
        shared_hashes: Number of hashes shared by both sketches.
        sketch_hashes: Number of hashes compared.
    """

    reference: str
    query: str
    distance: float = Field(ge=0)
    p_value: float = Field(ge=0)
    shared_hashes: int = Field(default=0, ge=0)
    sketch_hashes: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)

    @property
    def shared_fraction(self) -> float:
        """Fraction of compared hashes shared by both genomes."""
        if self.sketch_hashes == 0:
            return 0.0
        return self.shared_hashes / self.sketch_hashes
