"""
Cache Domain Services

Invalidation rules for the request cache.
Kept free of I/O so the matching behaviour can be tested on plain key lists.
"""

from typing import Iterable, List, Sequence, Union

from .exceptions import InvalidArgumentError
from .value_objects import CacheEntity, ENTITY_INVALIDATION_PATTERNS


def normalize_patterns(patterns: Union[str, Sequence[str]]) -> List[str]:
    """Accept one pattern or an ordered sequence of patterns."""
    if isinstance(patterns, str):
        patterns = [patterns]

    result = list(patterns)
    for pattern in result:
        if not isinstance(pattern, str) or not pattern:
            raise InvalidArgumentError(
                "Invalidation patterns must be non-empty strings",
                argument="patterns",
                value=pattern,
            )
    return result


def key_matches_pattern(key: str, pattern: str) -> bool:
    """
    Symmetric substring match.

    A key matches when it contains the pattern or the pattern contains it,
    so ``"course"`` and ``"course-types"`` match each other in both directions.
    """
    return pattern in key or key in pattern


def select_keys_to_invalidate(pattern: str, known_keys: Iterable[str]) -> List[str]:
    """
    Pick the keys one pattern removes.

    An exact match removes only that key; otherwise every symmetric
    substring match is removed.
    """
    keys = list(dict.fromkeys(known_keys))
    if pattern in keys:
        return [pattern]
    return [key for key in keys if key_matches_pattern(key, pattern)]


def patterns_for_entity(entity: Union[CacheEntity, str]) -> List[str]:
    """
    Invalidation patterns for an entity.

    Returns an empty list for ``CacheEntity.ALL``, which clears the cache.
    """
    entity = CacheEntity.parse(entity)
    if entity is CacheEntity.ALL:
        return []
    return list(ENTITY_INVALIDATION_PATTERNS[entity])
