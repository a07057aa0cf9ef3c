"""Shared fixtures."""
import pytest

from savings_tracker.models import PriceCache


@pytest.fixture
def cache() -> PriceCache:
    return PriceCache()
