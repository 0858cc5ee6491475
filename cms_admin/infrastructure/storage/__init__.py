"""
Cache Storage Infrastructure

Backing store implementations for persisted cache entries:
- MemoryBackingStore: process-local dict
- JsonFileBackingStore: JSON document on disk, survives restarts
- RedisBackingStore: shared Redis keyspace
"""

from ...core.config import Settings
from ...domain.cache.repository_interfaces import BackingStore
from .file_store import JsonFileBackingStore
from .memory_store import MemoryBackingStore
from .redis_store import RedisBackingStore


def create_backing_store(settings: Settings) -> BackingStore:
    """Build the backing store selected by CACHE_BACKEND."""
    if settings.CACHE_BACKEND == "redis":
        return RedisBackingStore.from_url(settings.REDIS_URL)
    if settings.CACHE_BACKEND == "file":
        return JsonFileBackingStore(settings.CACHE_FILE_PATH)
    return MemoryBackingStore()


__all__ = [
    "BackingStore",
    "MemoryBackingStore",
    "JsonFileBackingStore",
    "RedisBackingStore",
    "create_backing_store",
]
