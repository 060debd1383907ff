"""Shared pytest configuration."""

import sys
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).parent.parent / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))


@pytest.fixture
def fixtures_path():
    """Return path to test fixtures."""
    return Path(__file__).parent / "fixtures"
