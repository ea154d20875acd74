"""
Parsers for mash command output.

Converts the JSON emitted by ``mash info -d`` and the tab-delimited table
emitted by ``mash dist`` into validated models.
"""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from sketchphylo.core.exceptions import MashOutputError
from sketchphylo.models.sketch import PairwiseDistance, SketchEntry, SketchInfo, SketchParameters

logger = logging.getLogger(__name__)

# reference, query, distance, p-value, shared-hashes
MASH_DIST_COLUMNS = 5


def parse_mash_info_json(text: str) -> SketchInfo:
    """Parse ``mash info -d`` JSON into a SketchInfo.

    The JSON holds the file-level parameters (kmer, alphabet, preserveCase,
    canonical, sketchSize, hashType, hashBits, hashSeed) and a ``sketches``
    list with one object per genome (name, length, comment, hashes).

    Args:
        text: Raw JSON text.

    Returns:
        SketchInfo with parameters and one entry per sketched genome.

    Raises:
        MashOutputError: If the text is not valid JSON or lacks required keys.
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise MashOutputError("info", f"invalid JSON ({e.msg} at line {e.lineno})") from e

    if not isinstance(raw, dict):
        raise MashOutputError("info", f"expected a JSON object, got {type(raw).__name__}")

    sketches_raw = raw.get("sketches", [])
    if not isinstance(sketches_raw, list):
        raise MashOutputError("info", "'sketches' must be a list")

    try:
        parameters = SketchParameters.model_validate(raw)
        sketches = [
            SketchEntry(
                name=sketch["name"],
                length=sketch.get("length"),
                comment=sketch.get("comment") or "",
                # Older mash builds print hashes as strings
                hashes=[int(h) for h in sketch.get("hashes", [])],
            )
            for sketch in sketches_raw
        ]
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise MashOutputError("info", str(e)) from e

    return SketchInfo(parameters=parameters, sketches=sketches)


def _parse_shared_hashes(column: str) -> tuple[int, int]:
    """Split mash's ``shared/total`` column into two integers."""
    shared, sep, total = column.partition("/")
    if not sep:
        msg = f"expected 'shared/total', got {column!r}"
        raise ValueError(msg)
    return int(shared), int(total)


def parse_mash_dist_output(text: str) -> list[PairwiseDistance]:
    """Parse ``mash dist`` tabular output.

    Format (tab-delimited, no header):
        reference query distance p-value shared/total

    Args:
        text: Raw stdout of ``mash dist``.

    Returns:
        One PairwiseDistance per non-empty line.

    Raises:
        MashOutputError: If a line has too few columns or non-numeric values.
    """
    records: list[PairwiseDistance] = []

    for line_num, line in enumerate(text.splitlines(), 1):
        line = line.rstrip("\r\n")
        if not line.strip():
            continue

        parts = line.split("\t")
        if len(parts) < MASH_DIST_COLUMNS:
            raise MashOutputError(
                "dist",
                f"line {line_num}: expected {MASH_DIST_COLUMNS} columns, got {len(parts)}",
            )

        reference, query, dist_str, p_str, shared_str = parts[:MASH_DIST_COLUMNS]
        try:
            shared, total = _parse_shared_hashes(shared_str)
            records.append(
                PairwiseDistance(
                    reference=reference,
                    query=query,
                    distance=float(dist_str),
                    p_value=float(p_str),
                    shared_hashes=shared,
                    sketch_hashes=total,
                )
            )
        except (ValueError, ValidationError) as e:
            raise MashOutputError("dist", f"line {line_num}: {e}") from e

    logger.debug("Parsed %d mash dist rows", len(records))
    return records
