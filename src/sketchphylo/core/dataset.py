"""
Merging sketch sources into one consistent dataset.

A Dataset is the unit every downstream step works on: the sorted list of
genome names (the canonical enumeration order), one SketchRecord per name,
and the number of genomes each hash value occurs in. All records in a
dataset share identical sketch parameters.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import polars as pl
from pydantic import ValidationError

from sketchphylo.core.exceptions import IncompatibleSketchError, InvalidConstructorArgumentError
from sketchphylo.core.sketch_store import SketchStore
from sketchphylo.models.sketch import SketchParameters, SketchRecord

if TYPE_CHECKING:
    from sketchphylo.external.mash import Mash

logger = logging.getLogger(__name__)

# Keys and container types accepted by Dataset.from_mapping
_MAPPING_KEYS: dict[str, type] = {"info": dict, "names": list, "hashes": dict}


def check_compatibility(records: Mapping[str, SketchRecord]) -> None:
    """Check every record against the first one encountered.

    Raises:
        IncompatibleSketchError: Naming the offending genome, the reference
            genome and the first differing parameter.
    """
    iterator = iter(records.values())
    reference = next(iterator, None)
    if reference is None:
        return

    for record in iterator:
        field_name = reference.parameters.first_difference(record.parameters)
        if field_name is not None:
            raise IncompatibleSketchError(
                genome=record.name,
                reference=reference.name,
                field=field_name,
                value=getattr(record.parameters, field_name),
                expected=getattr(reference.parameters, field_name),
            )


@dataclass(frozen=True)
class Dataset:
    """Merged, validated sketch dataset.

    Attributes:
        names: Genome names sorted as plain strings.
        records: SketchRecord per genome name.
        hash_counts: Number of genomes each hash value occurs in.
        sources: Sketch files the dataset was read from (empty if built in memory).
    """

    names: tuple[str, ...]
    records: Mapping[str, SketchRecord]
    hash_counts: Counter[int] = field(default_factory=Counter)
    sources: tuple[Path, ...] = ()

    def __post_init__(self) -> None:
        if list(self.names) != sorted(self.records):
            missing = sorted(set(self.records) - set(self.names))
            extra = sorted(set(self.names) - set(self.records))
            if missing or extra:
                detail = f"names and records differ (missing: {missing[:5]}, unknown: {extra[:5]})"
            else:
                detail = "names must be unique and sorted"
            raise InvalidConstructorArgumentError(detail)
        check_compatibility(self.records)

    def __len__(self) -> int:
        return len(self.names)

    def __iter__(self):
        return iter(self.names)

    def __getitem__(self, name: str) -> SketchRecord:
        return self.records[name]

    @property
    def parameters(self) -> SketchParameters | None:
        """Sketch parameters shared by all records (None for an empty dataset)."""
        if not self.names:
            return None
        return self.records[self.names[0]].parameters

    @property
    def has_sources(self) -> bool:
        return bool(self.sources)

    def shared_hashes(self, min_genomes: int = 2) -> set[int]:
        """Hash values found in at least ``min_genomes`` genomes."""
        return {h for h, count in self.hash_counts.items() if count >= min_genomes}

    def hash_frequency_table(self) -> pl.DataFrame:
        """Hash occurrence counts, most widely shared first.

        Returns:
            DataFrame with columns ``hash`` and ``genomes``.
        """
        items = sorted(self.hash_counts.items(), key=lambda kv: (-kv[1], kv[0]))
        return pl.DataFrame(
            {
                "hash": [h for h, _ in items],
                "genomes": [c for _, c in items],
            },
            schema={"hash": pl.UInt64, "genomes": pl.Int64},
        )

    @classmethod
    def from_store(cls, store: SketchStore) -> Dataset:
        """Validate a populated store and freeze it into a Dataset.

        Raises:
            IncompatibleSketchError: If any two records differ in parameters.
        """
        check_compatibility(store.records)
        return cls(
            names=tuple(store.names),
            records=dict(store.records),
            hash_counts=Counter(store.hash_counts),
            sources=tuple(store.sources),
        )

    @classmethod
    def from_records(cls, records: Iterable[SketchRecord]) -> Dataset:
        """Build a dataset from in-memory records, counting their hashes."""
        store = SketchStore()
        for record in records:
            store.add_record(record)
        return cls.from_store(store)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Dataset:
        """Build a dataset from a pre-built ``{info, names, hashes}`` mapping.

        ``info`` maps genome name to either a SketchRecord or a dict holding
        sketch parameters (mash JSON keys, flat or under ``parameters``) and
        ``hashes`` (a list, or a dict whose keys are hash values). ``hashes``
        maps hash value to the number of genomes containing it.

        Raises:
            InvalidConstructorArgumentError: If a key is missing, has the wrong
                container type, or holds malformed entries.
            IncompatibleSketchError: If records differ in sketch parameters.
        """
        if not isinstance(data, Mapping):
            raise InvalidConstructorArgumentError(
                f"expected a mapping, got {type(data).__name__}"
            )

        for key, expected in _MAPPING_KEYS.items():
            if data.get(key) is None:
                raise InvalidConstructorArgumentError(f"could not find key '{key}'")
            if not isinstance(data[key], expected):
                raise InvalidConstructorArgumentError(
                    f"data type for '{key}' does not match {expected.__name__}"
                )

        records: dict[str, SketchRecord] = {}
        for name, value in data["info"].items():
            records[name] = _record_from_value(name, value)

        names = list(data["names"])
        if len(set(names)) != len(names):
            raise InvalidConstructorArgumentError("'names' contains duplicate genome names")
        if set(names) != set(records):
            raise InvalidConstructorArgumentError("'names' does not match the keys of 'info'")

        try:
            hash_counts = Counter({int(h): int(c) for h, c in data["hashes"].items()})
        except (TypeError, ValueError) as e:
            raise InvalidConstructorArgumentError(f"malformed 'hashes' entry: {e}") from e

        check_compatibility(records)
        return cls(
            names=tuple(sorted(names)),
            records=records,
            hash_counts=hash_counts,
        )


def _record_from_value(name: str, value: Any) -> SketchRecord:
    """Coerce one ``info`` entry of a dataset mapping into a SketchRecord."""
    if isinstance(value, SketchRecord):
        if value.name != name:
            raise InvalidConstructorArgumentError(
                f"record named {value.name!r} stored under key {name!r}"
            )
        return value

    if not isinstance(value, Mapping):
        raise InvalidConstructorArgumentError(
            f"info for {name!r} must be a mapping, got {type(value).__name__}"
        )

    hashes = value.get("hashes", [])
    if isinstance(hashes, Mapping):
        hashes = list(hashes)

    try:
        parameters = SketchParameters.model_validate(value.get("parameters", value))
        return SketchRecord(
            name=name,
            parameters=parameters,
            hashes=frozenset(int(h) for h in hashes),
            length=value.get("length"),
            comment=value.get("comment") or "",
        )
    except (TypeError, ValueError, ValidationError) as e:
        raise InvalidConstructorArgumentError(f"malformed info for {name!r}: {e}") from e


def merge_sources(
    paths: Iterable[Path],
    mash: Mash,
    *,
    timeout: float | None = None,
) -> Dataset:
    """Decode sketch files in order and merge them into one dataset.

    Args:
        paths: Sketch files, decoded in the given order.
        mash: Mash wrapper used to read each file.
        timeout: Timeout for each ``mash info`` invocation.

    Returns:
        Validated Dataset with names sorted as plain strings.

    Raises:
        InvalidConstructorArgumentError: If no files are given.
        SourceUnavailableError: If a file is missing or unreadable.
        IncompatibleSketchError: If sketch parameters differ between genomes.
    """
    paths = [Path(p) for p in paths]
    if not paths:
        raise InvalidConstructorArgumentError("the first parameter must be a list of mash file(s)")

    store = SketchStore()
    for path in paths:
        store.add_source(path, mash, timeout=timeout)

    dataset = Dataset.from_store(store)
    logger.info(
        "Merged %d genome(s) from %d sketch file(s)",
        len(dataset),
        len(paths),
    )
    return dataset
