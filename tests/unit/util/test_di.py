"""Unit tests for provider selection."""

import pytest

from fines.util.di import ProdPersistenceProvider, build_providers, components
from tests.di import MockPersistenceProvider, MockRealtimeProvider


class TestBuildProviders:
    """Tests for build_providers."""

    def test_everything_mocked_by_default(self):
        """Swappable components fall back to their mocks."""
        providers = build_providers(set())

        kinds = {type(p) for p in providers}
        assert MockPersistenceProvider in kinds
        assert MockRealtimeProvider in kinds

    def test_real_component_uses_production_provider(self):
        """Components named as real get their production implementation."""
        providers = build_providers({"persistence"})

        kinds = {type(p) for p in providers}
        assert ProdPersistenceProvider in kinds
        assert MockRealtimeProvider in kinds

    def test_unknown_component_is_rejected(self):
        """Typos in component names fail loudly."""
        with pytest.raises(ValueError, match="Unknown components"):
            build_providers({"search"})

    def test_realtime_requires_real_persistence(self):
        """LISTEN/NOTIFY is useless against in-memory storage."""
        with pytest.raises(ValueError, match="requires"):
            build_providers({"realtime"})

    def test_components_lists_swappable_parts(self):
        """Only infrastructure is swappable."""
        assert components() == {"persistence", "realtime"}
