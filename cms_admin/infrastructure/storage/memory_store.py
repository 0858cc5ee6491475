"""
In-Memory Backing Store

Dict-backed store with the same string-in, string-out contract as the
persistent stores. Shared between cache instances it stands in for
origin-scoped browser storage, which is how reload behaviour is tested.
"""

from typing import Dict, List, Optional

from ...domain.cache.repository_interfaces import BackingStore


class MemoryBackingStore(BackingStore):
    """Process-local backing store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def keys(self, prefix: str = "") -> List[str]:
        return [key for key in self._data if key.startswith(prefix)]

    def __len__(self) -> int:
        return len(self._data)
