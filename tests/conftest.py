"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from tests.builders import Harness


@pytest.fixture
def harness() -> Harness:
    """A handler over an empty in-memory cluster, seeded for stable names."""
    return Harness()


@pytest.fixture
def cluster_dir(tmp_path: Path) -> Path:
    """Return a temporary directory to hold a cluster snapshot."""
    cluster_dir = tmp_path / "cluster"
    cluster_dir.mkdir()
    return cluster_dir
