"""
Main pytest configuration for all tests.

Fixtures, configuration, and utilities for the request cache and API layer.
"""

import os
import asyncio
from typing import Any, Callable, List

import pytest

# Set test environment variables before importing app modules
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["CACHE_BACKEND"] = "memory"

from cms_admin.infrastructure.storage import MemoryBackingStore
from cms_admin.services.cache.request_cache import RequestCache


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, milliseconds: int) -> None:
        self.now += milliseconds


class CountingProducer:
    """Async producer that records how often it was invoked."""

    def __init__(
        self,
        value: Any = None,
        error: Exception = None,
        delay: float = 0.0,
        gate: asyncio.Event = None,
    ):
        self.value = value
        self.error = error
        self.delay = delay
        self.gate = gate
        self.calls = 0

    async def __call__(self) -> Any:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.value


@pytest.fixture
def clock() -> FakeClock:
    """Provide a controllable clock."""
    return FakeClock()


@pytest.fixture
def memory_store() -> MemoryBackingStore:
    """Provide an empty backing store shared by caches in one test."""
    return MemoryBackingStore()


@pytest.fixture
def make_cache(memory_store, clock) -> Callable[..., RequestCache]:
    """Factory for caches over the shared store and clock (simulates reloads)."""

    def _make(**kwargs) -> RequestCache:
        kwargs.setdefault("clock", clock)
        return RequestCache(kwargs.pop("store", memory_store), **kwargs)

    return _make


@pytest.fixture
def cache(make_cache) -> RequestCache:
    """Provide a request cache over the in-memory store."""
    return make_cache()


@pytest.fixture
def producer_factory() -> Callable[..., CountingProducer]:
    """Create counting producers."""
    created: List[CountingProducer] = []

    def _make(*args, **kwargs) -> CountingProducer:
        producer = CountingProducer(*args, **kwargs)
        created.append(producer)
        return producer

    return _make


# Test markers and configuration
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "redis: marks tests as Redis-related")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


def pytest_collection_modifyitems(config, items):
    """Add markers based on test file location."""
    for item in items:
        if "redis" in item.nodeid:
            item.add_marker(pytest.mark.redis)
        if "integration" in item.nodeid:
            item.add_marker(pytest.mark.integration)
