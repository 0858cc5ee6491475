"""
Cache Domain Entities

Core domain entity for the request cache.
A CacheEntry is the unit written to the in-memory mirror and the backing store.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import CorruptedEntryError
from .value_objects import TTL


class CacheEntry(BaseModel):
    """
    Cached result of one producer invocation.

    Entries are immutable; a refresh replaces the entry instead of editing it.
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1)
    value: Any = None
    stored_at: int = Field(..., ge=0, description="Milliseconds since the epoch")

    def age(self, now: int) -> int:
        """Milliseconds elapsed since the entry was stored."""
        return now - self.stored_at

    def is_fresh(self, now: int, ttl: TTL) -> bool:
        """Check whether the entry can still be served for ``ttl``."""
        return self.age(now) < ttl.milliseconds

    def to_storage(self) -> str:
        """Serialize entry for a string-valued backing store."""
        return self.model_dump_json()

    @classmethod
    def from_storage(cls, key: str, raw: str) -> "CacheEntry":
        """
        Parse a stored entry.

        Raises:
            CorruptedEntryError: If the payload is not a valid entry for ``key``
        """
        try:
            entry = cls.model_validate_json(raw)
        except (ValidationError, ValueError, TypeError) as e:
            raise CorruptedEntryError(key, original_error=e) from e

        if entry.key != key:
            raise CorruptedEntryError(
                key, original_error=ValueError(f"stored key is {entry.key!r}")
            )
        return entry
