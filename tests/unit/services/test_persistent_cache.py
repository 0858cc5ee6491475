"""
Unit tests for the Persistent Cache.

Tests the in-memory mirror, store restoration, deletion masking and
clear semantics.
"""

import asyncio

import pytest

from cms_admin.domain.cache.entities import CacheEntry
from cms_admin.infrastructure.storage import MemoryBackingStore
from cms_admin.monitoring.cache_metrics import CacheMetricsCollector
from cms_admin.services.cache.persistent_cache import PersistentCache

PREFIX = "cms_api_cache"


class GatedStore(MemoryBackingStore):
    """Memory store whose reads capture the value, then wait for a gate."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.gate = asyncio.Event()

    async def get(self, key):
        value = await super().get(key)
        await self.gate.wait()
        return value


def entry(key, value="value", stored_at=1000):
    return CacheEntry(key=key, value=value, stored_at=stored_at)


class TestPersistentCache:
    """Test PersistentCache."""

    @pytest.fixture
    def metrics(self):
        return CacheMetricsCollector()

    @pytest.fixture
    def entries(self, memory_store, metrics):
        return PersistentCache(memory_store, PREFIX, metrics)

    @pytest.mark.asyncio
    async def test_set_writes_through(self, entries, memory_store):
        await entries.set(entry("courses"))

        assert entries.peek("courses").value == "value"
        assert await memory_store.keys() == ["cms_api_cache_courses"]

    @pytest.mark.asyncio
    async def test_get_restores_into_memory(self, memory_store):
        await memory_store.set("cms_api_cache_courses", entry("courses").to_storage())
        entries = PersistentCache(memory_store, PREFIX)

        assert entries.peek("courses") is None
        restored = await entries.get("courses")

        assert restored.value == "value"
        assert entries.peek("courses") == restored
        assert await entries.has("courses") is True

    @pytest.mark.asyncio
    async def test_get_missing(self, entries):
        assert await entries.get("missing") is None
        assert await entries.has("missing") is False

    @pytest.mark.asyncio
    async def test_corrupted_entry_counts_decode_error(self, entries, memory_store, metrics):
        await memory_store.set("cms_api_cache_courses", "[]")

        assert await entries.get("courses") is None
        assert metrics.sample("cms_request_cache_store_errors_total", operation="decode") == 1
        assert entries.peek("courses") is None

    @pytest.mark.asyncio
    async def test_delete_masks_pending_read(self, metrics):
        """Test a store read racing a delete does not resurrect the key."""
        store = GatedStore({"cms_api_cache_courses": entry("courses").to_storage()})
        entries = PersistentCache(store, PREFIX, metrics)

        read = asyncio.ensure_future(entries.get("courses"))
        await asyncio.sleep(0)

        delete = asyncio.ensure_future(entries.delete("courses"))
        await asyncio.sleep(0)
        store.gate.set()

        assert await read is None
        await delete
        assert entries.peek("courses") is None
        assert await store.keys() == []
        assert entries._removed_at == {}

    @pytest.mark.asyncio
    async def test_clear_masks_pending_read(self, metrics):
        store = GatedStore({"cms_api_cache_courses": entry("courses").to_storage()})
        entries = PersistentCache(store, PREFIX, metrics)

        read = asyncio.ensure_future(entries.get("courses"))
        await asyncio.sleep(0)

        clear = asyncio.ensure_future(entries.clear())
        await asyncio.sleep(0)
        store.gate.set()

        assert await read is None
        assert await clear == ["courses"]
        assert entries.memory_keys() == []

    @pytest.mark.asyncio
    async def test_newer_memory_entry_wins_over_store(self, metrics):
        """Test a slower store read never replaces a newer in-memory entry."""
        store = GatedStore({"cms_api_cache_courses": entry("courses", "old", 1).to_storage()})
        entries = PersistentCache(store, PREFIX, metrics)

        read = asyncio.ensure_future(entries.get("courses"))
        await asyncio.sleep(0)
        entries._memory["courses"] = entry("courses", "new", 2)
        store.gate.set()

        assert (await read).value == "new"
        assert entries.peek("courses").value == "new"

    @pytest.mark.asyncio
    async def test_keys_union(self, entries, memory_store):
        await entries.set(entry("courses"))
        await memory_store.set("cms_api_cache_partners", entry("partners").to_storage())
        await memory_store.set("theme", "dark")

        assert await entries.keys() == ["courses", "partners"]

    @pytest.mark.asyncio
    async def test_clear_returns_distinct_keys(self, entries, memory_store):
        await entries.set(entry("courses"))
        await memory_store.set("cms_api_cache_partners", entry("partners").to_storage())

        assert await entries.clear() == ["courses", "partners"]
        assert len(memory_store) == 0

    @pytest.mark.asyncio
    async def test_delete_absent_key(self, entries, memory_store):
        await entries.set(entry("courses"))

        await entries.delete("nonexistent")

        assert entries.memory_keys() == ["courses"]
        assert len(memory_store) == 1
