"""Shared fixtures for caching tests."""

import pytest

from careunity.adapters.cache.memory_storage import MemoryCacheStorage
from tests.helpers.caching import FakeClock, FakeNetwork


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture
def cache(clock: FakeClock) -> MemoryCacheStorage:
    return MemoryCacheStorage("test-cache", clock=clock)
