"""
Cache Repository Interfaces

Abstract backing store interface for persisted cache entries.
Any key-value store with get/set/delete/list-keys operations satisfies it.
"""

from abc import ABC, abstractmethod
from typing import List, Optional


class BackingStore(ABC):
    """
    Abstract string-keyed, string-valued store.

    Implementations raise BackingStoreError on I/O or decode failures.
    Methods are async so stores with real I/O can be substituted freely.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored string for key, or None if absent."""
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key. Deleting an absent key is not an error."""
        pass

    @abstractmethod
    async def keys(self, prefix: str = "") -> List[str]:
        """List stored keys starting with prefix."""
        pass

    async def close(self) -> None:
        """Release store resources."""
        return None
