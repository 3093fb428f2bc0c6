"""Mock providers for testing."""

from tests.di.container import build_test_container
from tests.di.persistence import MockPersistenceProvider
from tests.di.realtime import MockRealtimeProvider

__all__ = [
    "MockPersistenceProvider",
    "MockRealtimeProvider",
    "build_test_container",
]
