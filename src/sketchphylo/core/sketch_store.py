"""
In-memory store of decoded genome sketches.

Each sketch source (a ``.msh`` file) may hold several genomes. Folding a
source into the store adds one SketchRecord per genome and bumps the
store's hash-occurrence counts. Counts are owned by the store instance;
nothing is shared between stores.
"""

from __future__ import annotations

import logging
import os
from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING

from sketchphylo.core.exceptions import SourceUnavailableError
from sketchphylo.external.base import ToolExecutionError, ToolTimeoutError
from sketchphylo.models.sketch import SketchInfo, SketchRecord

if TYPE_CHECKING:
    from sketchphylo.external.mash import Mash

logger = logging.getLogger(__name__)


def check_source_readable(path: Path) -> Path:
    """Raise SourceUnavailableError unless path is an existing readable file."""
    if not path.exists():
        raise SourceUnavailableError(path, "file does not exist")
    if not path.is_file():
        raise SourceUnavailableError(path, "not a regular file")
    if not os.access(path, os.R_OK):
        raise SourceUnavailableError(path, "permission denied")
    return path


class SketchStore:
    """Genome name to SketchRecord mapping plus hash-occurrence counts.

    Attributes:
        records: Decoded sketch per genome name.
        hash_counts: Number of records each hash value was seen in. Every
            record added increments each of its hashes by one; counts are
            never decremented, even when a record is replaced.
        sources: Sketch files folded into the store, in order.
    """

    def __init__(self) -> None:
        self.records: dict[str, SketchRecord] = {}
        self.hash_counts: Counter[int] = Counter()
        self.sources: list[Path] = []

    def __len__(self) -> int:
        return len(self.records)

    def __contains__(self, name: object) -> bool:
        return name in self.records

    @property
    def names(self) -> list[str]:
        """Genome names in canonical (plain string) order."""
        return sorted(self.records)

    def add_record(self, record: SketchRecord) -> None:
        """Add one record, replacing any existing record with the same name."""
        if record.name in self.records:
            logger.debug("Replacing existing sketch for %s", record.name)
        self.records[record.name] = record
        self.hash_counts.update(record.hashes)

    def add_info(self, info: SketchInfo, source: Path | None = None) -> list[str]:
        """Fold every genome of a parsed sketch source into the store.

        Records are built before the store is touched, so a malformed entry
        leaves the store unchanged.

        Args:
            info: Parsed sketch source.
            source: File the info was read from, if any.

        Returns:
            Genome names added, in source order.
        """
        new_records = [
            SketchRecord.from_entry(entry, info.parameters, source)
            for entry in info.sketches
        ]
        for record in new_records:
            self.add_record(record)
        if source is not None:
            self.sources.append(source)
        return [record.name for record in new_records]

    def add_source(
        self,
        path: Path,
        mash: Mash,
        *,
        timeout: float | None = None,
    ) -> list[str]:
        """Decode a sketch file with ``mash info`` and fold it into the store.

        Args:
            path: Sketch file.
            mash: Mash wrapper used to read the file.
            timeout: Timeout for the mash invocation.

        Returns:
            Genome names added, in source order.

        Raises:
            SourceUnavailableError: If the file is missing, unreadable, or
                mash cannot open it. The store is not modified.
            ToolNotFoundError: If mash is not installed.
            MashOutputError: If mash output cannot be parsed.
        """
        path = Path(path)
        check_source_readable(path)

        try:
            info = mash.describe_sketches(path, timeout=timeout)
        except (ToolExecutionError, ToolTimeoutError) as e:
            raise SourceUnavailableError(path, e.message.splitlines()[0]) from e

        if not info.sketches:
            logger.warning("Sketch file %s contains no genomes", path)

        names = self.add_info(info, source=path)
        logger.info("Read %d sketch(es) from %s", len(names), path)
        return names
