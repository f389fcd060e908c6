"""
Integration fixtures: real files, real YAML, all under pytest's tmp_path.
"""

from pathlib import Path

import pytest
import yaml


@pytest.fixture
def temp_dir(tmp_path):
    return tmp_path


@pytest.fixture
def snapshots_dir(temp_dir):
    """Capture store inside the temp dir."""
    p = temp_dir / "captures"
    p.mkdir()
    return p


@pytest.fixture
def write_manifest(temp_dir):
    """Write a manifest document to a temp YAML file and return its path."""
    def write(document: dict, name: str = "manifest.yaml") -> Path:
        path = temp_dir / name
        path.write_text(yaml.safe_dump(document))
        return path
    return write
