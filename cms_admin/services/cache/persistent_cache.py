"""
Persistent Cache

In-memory mirror over a backing store. The mirror is authoritative for the
running process; the store only lets entries outlive it. Every store fault
is logged and absorbed here so it never reaches request cache callers.
"""

from typing import Dict, Iterable, List, Optional

import structlog

from ...domain.cache.entities import CacheEntry
from ...domain.cache.exceptions import CorruptedEntryError
from ...domain.cache.repository_interfaces import BackingStore
from ...monitoring.cache_metrics import CacheMetricsCollector

logger = structlog.get_logger(__name__)


class PersistentCache:
    """
    Two-level entry storage: dict mirror first, backing store second.

    Keys being deleted are masked until their store deletion settles, and a
    store read that overlapped a deletion of its key (or a clear) discards
    its result, so a concurrent read cannot pull removed entries back into
    the mirror.
    """

    def __init__(
        self,
        store: BackingStore,
        prefix: str,
        metrics: Optional[CacheMetricsCollector] = None,
    ):
        self.store = store
        self.prefix = prefix
        self.metrics = metrics or CacheMetricsCollector()
        self._memory: Dict[str, CacheEntry] = {}
        self._deleting: Dict[str, int] = {}
        self._clear_depth = 0
        # Removal tombstones, kept only while store reads are pending
        self._version = 0
        self._removed_at: Dict[str, int] = {}
        self._cleared_at = 0
        self._reads = 0

    def _masked(self, key: str) -> bool:
        return key in self._deleting or self._clear_depth > 0

    def _removed_since(self, key: str, version: int) -> bool:
        return self._cleared_at > version or self._removed_at.get(key, 0) > version

    def _storage_key(self, key: str) -> str:
        return f"{self.prefix}_{key}"

    def _cache_key(self, storage_key: str) -> str:
        return storage_key[len(self.prefix) + 1 :]

    def _store_failed(self, operation: str, key: Optional[str], error: Exception) -> None:
        self.metrics.record_store_error(operation)
        logger.warning(
            "Cache backing store error",
            operation=operation,
            cache_key=key,
            error=str(error),
            error_type=type(error).__name__,
        )

    def peek(self, key: str) -> Optional[CacheEntry]:
        """Memory-only lookup; never suspends."""
        return self._memory.get(key)

    def memory_keys(self) -> List[str]:
        return list(self._memory)

    async def get(self, key: str) -> Optional[CacheEntry]:
        """Look up key in memory, then in the backing store."""
        entry = self._memory.get(key)
        if entry is not None:
            return entry

        if self._masked(key):
            return None

        started = self._version
        self._reads += 1
        try:
            try:
                raw = await self.store.get(self._storage_key(key))
                if raw is None:
                    return None
                entry = CacheEntry.from_storage(key, raw)
            except CorruptedEntryError as e:
                self._store_failed("decode", key, e)
                return None
            except Exception as e:
                self._store_failed("read", key, e)
                return None

            # The key may have been removed while the store read was suspended.
            if self._masked(key) or self._removed_since(key, started):
                return None

            # Restore to memory for faster access
            current = self._memory.get(key)
            if current is not None and current.stored_at >= entry.stored_at:
                return current
            self._memory[key] = entry
            return entry
        finally:
            self._reads -= 1
            if not self._reads:
                self._removed_at.clear()

    async def set(self, entry: CacheEntry) -> None:
        """Store entry in memory and, best-effort, in the backing store."""
        self._memory[entry.key] = entry
        try:
            await self.store.set(self._storage_key(entry.key), entry.to_storage())
        except Exception as e:
            self._store_failed("write", entry.key, e)

    def evict(self, keys: Iterable[str]) -> None:
        """
        Drop keys from memory and mask them from store reads until released.

        Never suspends; every evict must be paired with a release.
        """
        for key in keys:
            self._memory.pop(key, None)
            if self._reads:
                self._version += 1
                self._removed_at[key] = self._version
            self._deleting[key] = self._deleting.get(key, 0) + 1

    def release(self, keys: Iterable[str]) -> None:
        """Lift the read mask set by evict."""
        for key in keys:
            if self._deleting[key] <= 1:
                del self._deleting[key]
            else:
                self._deleting[key] -= 1

    async def delete(self, key: str) -> None:
        """Remove key from memory and store. Absent keys are ignored."""
        self.evict([key])
        try:
            await self.store.delete(self._storage_key(key))
        except Exception as e:
            self._store_failed("delete", key, e)
        finally:
            self.release([key])

    async def clear(self) -> List[str]:
        """
        Remove every entry from memory and every prefixed key from the store.

        Returns:
            Distinct keys removed, memory keys first
        """
        removed = dict.fromkeys(self._memory)
        self._memory.clear()
        self._version += 1
        self._cleared_at = self._version
        self._clear_depth += 1
        try:
            try:
                storage_keys = await self.store.keys(f"{self.prefix}_")
            except Exception as e:
                self._store_failed("keys", None, e)
                return list(removed)

            for storage_key in storage_keys:
                removed.setdefault(self._cache_key(storage_key), None)
                try:
                    await self.store.delete(storage_key)
                except Exception as e:
                    self._store_failed("delete", self._cache_key(storage_key), e)
            return list(removed)
        finally:
            self._clear_depth -= 1

    async def keys(self) -> List[str]:
        """All known keys: memory keys unioned with keys recoverable from the store."""
        known = dict.fromkeys(self._memory)
        try:
            storage_keys = await self.store.keys(f"{self.prefix}_")
        except Exception as e:
            self._store_failed("keys", None, e)
            return list(known)

        for storage_key in storage_keys:
            key = self._cache_key(storage_key)
            if key and key not in self._deleting:
                known.setdefault(key, None)
        return list(known)

    async def has(self, key: str) -> bool:
        return await self.get(key) is not None
