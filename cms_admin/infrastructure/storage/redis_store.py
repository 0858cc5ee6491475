"""
Redis Backing Store

Redis-backed store for cache entries shared across processes.
Keys are stored verbatim; listing uses SCAN so large keyspaces do not block Redis.
"""

import logging
from typing import List, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from opentelemetry import trace

from ...domain.cache.exceptions import BackingStoreError
from ...domain.cache.repository_interfaces import BackingStore

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def _escape_glob(value: str) -> str:
    """Escape Redis glob metacharacters so a prefix matches literally."""
    for char in ("\\", "*", "?", "[", "]"):
        value = value.replace(char, "\\" + char)
    return value


class RedisBackingStore(BackingStore):
    """Backing store on a redis.asyncio client."""

    def __init__(self, client: Redis, scan_count: int = 500):
        self._redis = client
        self.scan_count = scan_count

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisBackingStore":
        """Create store with a client built from a Redis URL."""
        client = Redis.from_url(url, decode_responses=True, **kwargs)
        return cls(client)

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self._redis.get(key)
        except RedisError as e:
            raise BackingStoreError(
                f"Redis GET failed for {key}: {e}",
                operation="get",
                key=key,
                original_error=e,
            ) from e

        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def set(self, key: str, value: str) -> None:
        try:
            await self._redis.set(key, value)
        except RedisError as e:
            raise BackingStoreError(
                f"Redis SET failed for {key}: {e}",
                operation="set",
                key=key,
                original_error=e,
            ) from e

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(key)
        except RedisError as e:
            raise BackingStoreError(
                f"Redis DEL failed for {key}: {e}",
                operation="delete",
                key=key,
                original_error=e,
            ) from e

    async def keys(self, prefix: str = "") -> List[str]:
        with tracer.start_as_current_span("redis_store.keys") as span:
            span.set_attribute("prefix", prefix)
            found: List[str] = []
            try:
                async for key in self._redis.scan_iter(
                    match=f"{_escape_glob(prefix)}*", count=self.scan_count
                ):
                    if isinstance(key, bytes):
                        key = key.decode("utf-8")
                    found.append(key)
            except RedisError as e:
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                raise BackingStoreError(
                    f"Redis SCAN failed for prefix {prefix!r}: {e}",
                    operation="keys",
                    original_error=e,
                ) from e

            span.set_attribute("key_count", len(found))
            return found

    async def close(self) -> None:
        try:
            await self._redis.aclose()
        except RedisError as e:
            logger.warning(f"Error closing Redis backing store: {e}")
