"""Shared conftest for integration tests."""

from __future__ import annotations

import pytest

from sketchphylo.external.mash import Mash


def pytest_collection_modifyitems(config, items):
    """Skip tests marked requires_mash if mash is not available."""
    if not Mash.check_available():
        skip_mash = pytest.mark.skip(reason="mash not installed")
        for item in items:
            if "requires_mash" in item.keywords:
                item.add_marker(skip_mash)
