"""
Pytest configuration and shared fixtures.
"""
import pytest

from src.utils.config import AveragingStrategy, TrackerConfig
from tests.fakes import FakeClock, InMemoryRecordStore


@pytest.fixture
def config() -> TrackerConfig:
    """Default configuration for a test tracker."""
    return TrackerConfig(table_name="TrackerTable-test", tracker_id="tracker-1")


@pytest.fixture
def strict_config() -> TrackerConfig:
    """Configuration with provenance enforcement enabled."""
    return TrackerConfig(table_name="TrackerTable-test", tracker_id="tracker-1", strict_templates=True)


@pytest.fixture
def trailing_config() -> TrackerConfig:
    """Configuration using bounded trailing-window averages."""
    return TrackerConfig(
        table_name="TrackerTable-test",
        tracker_id="tracker-1",
        averaging=AveragingStrategy.TRAILING_WINDOW,
        trailing_window=3
    )


@pytest.fixture
def clock() -> FakeClock:
    """Clock that ticks one second per store write."""
    return FakeClock()


@pytest.fixture
def store(clock) -> InMemoryRecordStore:
    """Empty in-memory record store."""
    return InMemoryRecordStore(clock)
