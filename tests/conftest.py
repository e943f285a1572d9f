"""Shared fixtures for riftopen tests."""

import logging

import pytest

from riftopen.core.entry import Polarity
from riftopen.core.index import BalancedIndex


@pytest.fixture
def index():
    """An empty index with default pruning policy."""
    return BalancedIndex()


@pytest.fixture
def filled_index():
    """Index holding keys 1..32, odd keys positive and even keys negative."""
    idx = BalancedIndex()
    for key in range(1, 33):
        polarity = Polarity.POSITIVE if key % 2 else Polarity.NEGATIVE
        idx.insert(key, key & 0xFF, 1.0, polarity)
    return idx


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Run in an empty directory with no RIFTOPEN_* environment overrides."""
    monkeypatch.chdir(tmp_path)
    for name in ("CONFIG", "PRUNE_THRESHOLD", "PRUNE_STREAK", "STREAK_BUCKETS",
                 "CHUNK_SIZE", "OUTPUT_CAPACITY", "HEX_DUMP_LIMIT", "LOG_LEVEL"):
        monkeypatch.delenv(f"RIFTOPEN_{name}", raising=False)
    return tmp_path


@pytest.fixture
def sample_file(tmp_path):
    """A small binary file with an odd number of bytes."""
    path = tmp_path / "sample.bin"
    path.write_bytes(bytes(range(0x30, 0x30 + 21)))
    return path


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers the CLI attached so later tests do not log to closed streams."""
    yield
    logger = logging.getLogger("riftopen")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
