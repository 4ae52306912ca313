"""
Configuration for pytest to set up the proper import paths and shared fixtures.
"""

import sys
from pathlib import Path
import pytest


# Add the parent directory to Python path so we can import lazy, utils, etc.
parent_dir = Path(__file__).parent.parent
sys.path.insert(0, str(parent_dir))

# Import after path setup
from utils import clear_performance_metrics


class CountingIterator:
    """Plain Python iterator that records how many times it was pulled."""

    def __init__(self, items):
        self._items = list(items)
        self._index = 0
        self.pulls = 0

    def __iter__(self):
        return self

    def __next__(self):
        self.pulls += 1
        if self._index >= len(self._items):
            raise StopIteration
        value = self._items[self._index]
        self._index += 1
        return value


@pytest.fixture
def counting_iterator():
    """Factory for iterators that count their pulls."""
    return CountingIterator


@pytest.fixture
def call_log():
    """List-backed recorder for side-effect assertions."""
    calls = []

    def record(value):
        calls.append(value)
        return value

    record.calls = calls
    return record


@pytest.fixture(autouse=True)
def reset_performance_metrics():
    """Each test starts with empty performance metrics."""
    clear_performance_metrics()
    yield
    clear_performance_metrics()
