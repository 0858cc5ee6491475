"""
Cache Value Objects

Immutable value objects for the request cache domain.
Provides type safety and validation for keys, TTLs and entity names.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .exceptions import InvalidArgumentError


class CacheEntity(str, Enum):
    """Entity groups that share invalidation rules."""

    COURSES = "courses"
    CATEGORIES = "categories"
    COURSE_TYPES = "course-types"
    PARTNERS = "partners"
    PARTNER_GROUPS = "partner-groups"
    ALL = "all"

    @classmethod
    def parse(cls, value: "CacheEntity | str") -> "CacheEntity":
        """Coerce a string into an entity, rejecting unknown names."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidArgumentError(
                f"Unknown cache entity: {value!r}", argument="entity", value=value
            ) from None


# Patterns passed to invalidate() for each entity. ALL clears everything instead.
ENTITY_INVALIDATION_PATTERNS: Dict[CacheEntity, List[str]] = {
    CacheEntity.COURSES: ["courses", "course-"],
    CacheEntity.CATEGORIES: ["categories", "category"],
    CacheEntity.COURSE_TYPES: ["course-types", "coursetype"],
    CacheEntity.PARTNERS: ["partners", "partner-"],
    CacheEntity.PARTNER_GROUPS: ["partner-groups", "partnergroup"],
}


@dataclass(frozen=True)
class CacheKey:
    """
    Immutable cache key value object.

    Keys are opaque to the cache; the only rule is that they are non-empty.
    """

    value: str

    def __post_init__(self) -> None:
        """Validate cache key."""
        if not isinstance(self.value, str):
            raise InvalidArgumentError(
                "Cache key must be a string", argument="cache_key", value=self.value
            )
        if not self.value:
            raise InvalidArgumentError("Cache key cannot be empty", argument="cache_key")

    @classmethod
    def build(cls, prefix: str, params: Optional[Mapping[str, Any]] = None) -> "CacheKey":
        """Create a key from a prefix and filter parameters."""
        return cls(build_cache_key(prefix, params))

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TTL:
    """
    Time To Live value object in milliseconds.

    Freshness is checked lazily on read: an entry is fresh while
    ``now - stored_at < milliseconds``.
    """

    milliseconds: int

    def __post_init__(self) -> None:
        """Validate TTL value."""
        if isinstance(self.milliseconds, bool) or not isinstance(
            self.milliseconds, (int, float)
        ):
            raise InvalidArgumentError(
                "TTL must be a number of milliseconds",
                argument="ttl",
                value=self.milliseconds,
            )
        if self.milliseconds <= 0:
            raise InvalidArgumentError(
                "TTL must be positive", argument="ttl", value=self.milliseconds
            )

    def __str__(self) -> str:
        return f"{self.milliseconds}ms"


def build_cache_key(prefix: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Build a deterministic cache key from a prefix and request parameters.

    ``build_cache_key("paginated-courses", {"page": 1})`` returns
    ``'paginated-courses-{"page":1}'``. Parameters set to ``None`` are dropped
    and keys are sorted, so identical logical requests share a slot.
    """
    if not prefix:
        raise InvalidArgumentError("Cache key prefix cannot be empty", argument="prefix")
    if params is None:
        return prefix

    cleaned = {k: v for k, v in params.items() if v is not None}
    serialized = json.dumps(
        cleaned, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str
    )
    return f"{prefix}-{serialized}"
