"""
Shared fixtures for the TileScript tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tilescript.symbols import Symbols


@pytest.fixture
def symbols():
    return Symbols()


@pytest.fixture
def locations():
    return {"testLoc": (1, 1), "loc1": (1, 1), "loc2": (2, 2)}
