"""
pytest configuration and shared fixtures for the catalog sync tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config.settings import LoggingConfig, PipelineConfig, StorageConfig  # noqa: E402


@pytest.fixture
def pipeline_config(tmp_path):
    """A pipeline config that writes data and logs under tmp_path."""
    return PipelineConfig(
        storage=StorageConfig(base_dir=tmp_path / "data"),
        logging=LoggingConfig(log_dir=tmp_path / "logs"),
    )


@pytest.fixture
def swivel_listings():
    """Two variants of one product plus an unrelated singleton."""
    return [
        {"id": "1", "title": "Anchor Swivel 8mm Black", "price": "€20.00"},
        {"id": "2", "title": "Anchor Swivel 10mm White", "price": "€25.00"},
        {"id": "3", "title": "Teak Oil 1L", "price": "€28.00"},
    ]
