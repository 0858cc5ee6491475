"""
Mutation Cache Invalidation

Decorator that invalidates an entity's cache entries after a successful
write, so list and detail reads refetch on their next access.
"""

import functools
from typing import Any, Awaitable, Callable, TypeVar, Union

import structlog

from ...domain.cache.value_objects import CacheEntity
from .request_cache import RequestCache

logger = structlog.get_logger(__name__)

R = TypeVar("R")


def with_cache_invalidation(
    cache: RequestCache, entity: Union[CacheEntity, str]
) -> Callable[[Callable[..., Awaitable[R]]], Callable[..., Awaitable[R]]]:
    """
    Wrap an async mutation so ``entity`` is invalidated once it succeeds.

    A failing mutation re-raises and leaves the cache untouched.

    Example:
        @with_cache_invalidation(cache, "partners")
        async def delete_partner(uuid): ...
    """
    target = CacheEntity.parse(entity)

    def decorator(func: Callable[..., Awaitable[R]]) -> Callable[..., Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> R:
            result = await func(*args, **kwargs)
            removed = await cache.invalidate_by_entity(target)
            logger.debug(
                "Mutation invalidated cache",
                mutation=func.__name__,
                entity=target.value,
                removed=len(removed),
            )
            return result

        return wrapper

    return decorator
