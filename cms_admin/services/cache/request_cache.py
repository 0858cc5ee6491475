"""
Request Cache Service

De-duplicates concurrent identical requests, serves time-bounded cached
results and invalidates entries by key, substring pattern or entity.

Concurrency model: one asyncio event loop, no threads. Each call runs its
in-flight and freshness checks without suspending, so two calls for the same
key can never both start a producer. Expiry is lazy; nothing runs in the
background.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, TypeVar, Union

import structlog
from opentelemetry import trace

from ...constants import CACHE_STORAGE_PREFIX, DEFAULT_CACHE_TTL_MS, get_current_timestamp_ms
from ...domain.cache.domain_services import (
    key_matches_pattern,
    normalize_patterns,
    patterns_for_entity,
    select_keys_to_invalidate,
)
from ...domain.cache.entities import CacheEntry
from ...domain.cache.exceptions import InvalidArgumentError, ProducerTimeoutError
from ...domain.cache.repository_interfaces import BackingStore
from ...domain.cache.value_objects import TTL, CacheEntity, CacheKey
from ...monitoring.cache_metrics import CacheMetricsCollector
from .persistent_cache import PersistentCache

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

T = TypeVar("T")

Producer = Callable[[], Awaitable[T]]
Clock = Callable[[], int]


def _retrieve_outcome(task: "asyncio.Task[Any]") -> None:
    # Every waiter may have been cancelled; mark the error as observed.
    if not task.cancelled():
        task.exception()


class RequestCache:
    """
    Request coordination and memoization for API reads.

    Build one instance at application start and pass it to every data
    access call site.
    """

    def __init__(
        self,
        store: BackingStore,
        *,
        prefix: str = CACHE_STORAGE_PREFIX,
        default_ttl_ms: int = DEFAULT_CACHE_TTL_MS,
        producer_timeout: Optional[float] = None,
        clock: Clock = get_current_timestamp_ms,
        metrics: Optional[CacheMetricsCollector] = None,
    ):
        self.default_ttl = TTL(default_ttl_ms)
        self.producer_timeout = self._resolve_timeout(producer_timeout)
        self.metrics = metrics or CacheMetricsCollector()
        self.entries = PersistentCache(store, prefix, self.metrics)
        self._clock = clock
        self._in_flight: Dict[str, "asyncio.Task[Any]"] = {}

    @property
    def in_flight_keys(self) -> List[str]:
        """Keys whose producer has not settled yet."""
        return list(self._in_flight)

    def _resolve_ttl(self, ttl: Union[TTL, int, float, None]) -> TTL:
        if ttl is None:
            return self.default_ttl
        if isinstance(ttl, TTL):
            return ttl
        return TTL(ttl)

    @staticmethod
    def _resolve_timeout(timeout: Optional[float]) -> Optional[float]:
        if timeout is None:
            return None
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise InvalidArgumentError(
                "Timeout must be a positive number of seconds",
                argument="timeout",
                value=timeout,
            )
        return float(timeout)

    def _track_in_flight(self) -> None:
        self.metrics.in_flight.set(len(self._in_flight))

    async def get_or_fetch(
        self,
        producer: Producer,
        *,
        cache_key: Union[str, CacheKey],
        ttl: Union[TTL, int, float, None] = None,
        timeout: Optional[float] = None,
    ) -> T:
        """
        Return a cached value for cache_key or fetch it with producer.

        Args:
            producer: Zero-argument callable returning an awaitable
            cache_key: Stable, non-empty key (or CacheKey) for the logical request
            ttl: Freshness window in milliseconds (default: cache default)
            timeout: Seconds before an in-flight producer is abandoned

        Returns:
            The fresh cached value, the result of a pending identical
            request, or the producer's result

        Raises:
            InvalidArgumentError: On an empty key or non-positive ttl/timeout
            ProducerTimeoutError: If timeout elapses first
            Exception: Whatever the producer raised, unchanged
        """
        key = (
            cache_key.value if isinstance(cache_key, CacheKey) else CacheKey(cache_key).value
        )
        cache_ttl = self._resolve_ttl(ttl)
        producer_timeout = (
            self._resolve_timeout(timeout) if timeout is not None else self.producer_timeout
        )
        if not callable(producer):
            raise InvalidArgumentError(
                "Producer must be callable", argument="producer", value=producer
            )

        with tracer.start_as_current_span("request_cache.get_or_fetch") as span:
            span.set_attribute("cache_key", key)
            span.set_attribute("ttl_ms", cache_ttl.milliseconds)

            pending = self._in_flight.get(key)
            if pending is not None:
                span.set_attribute("cache_outcome", "joined")
                self.metrics.record_lookup("joined")
                logger.debug("Cache JOIN - awaiting in-flight request", cache_key=key)
                return await asyncio.shield(pending)

            now = self._clock()
            entry = self.entries.peek(key)
            if entry is not None and entry.is_fresh(now, cache_ttl):
                span.set_attribute("cache_outcome", "hit")
                self.metrics.record_lookup("hit")
                logger.debug("Cache HIT - using cached data", cache_key=key)
                return entry.value

            task = asyncio.ensure_future(
                self._load(key, producer, cache_ttl, producer_timeout, now)
            )
            task.add_done_callback(_retrieve_outcome)
            self._in_flight[key] = task
            self._track_in_flight()

            try:
                return await asyncio.shield(task)
            except Exception as e:
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                raise

    async def _load(
        self,
        key: str,
        producer: Producer,
        ttl: TTL,
        timeout: Optional[float],
        started_at: int,
    ) -> Any:
        """Runs as the single in-flight task for key."""
        try:
            entry = await self.entries.get(key)
            if entry is not None and entry.is_fresh(self._clock(), ttl):
                self.metrics.record_lookup("stored_hit")
                logger.debug("Cache HIT - restored from backing store", cache_key=key)
                return entry.value

            if entry is not None:
                self.metrics.record_lookup("expired")
                logger.debug("Cache EXPIRED - fetching fresh data", cache_key=key)
            else:
                self.metrics.record_lookup("miss")
                logger.debug("Cache MISS - fetching from API", cache_key=key)

            value = await self._invoke(key, producer, timeout)

            await self.entries.set(CacheEntry(key=key, value=value, stored_at=started_at))
            logger.debug("Cache STORE - cached fresh data", cache_key=key)
            return value
        finally:
            if self._in_flight.get(key) is asyncio.current_task():
                del self._in_flight[key]
                self._track_in_flight()

    async def _invoke(self, key: str, producer: Producer, timeout: Optional[float]) -> Any:
        try:
            if timeout is None:
                value = await producer()
            else:
                try:
                    value = await asyncio.wait_for(producer(), timeout)
                except asyncio.TimeoutError as e:
                    raise ProducerTimeoutError(key, timeout) from e
        except Exception as e:
            self.metrics.record_producer_call(success=False)
            logger.info(
                "Cache FETCH failed - nothing cached",
                cache_key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        self.metrics.record_producer_call(success=True)
        return value

    async def delete_key(self, key: str) -> None:
        """Remove one entry. Deleting an absent key is a no-op."""
        key = CacheKey(key).value
        await self.entries.delete(key)
        logger.debug("Cache DELETE", cache_key=key)

    async def invalidate(self, patterns: Union[str, Sequence[str]]) -> List[str]:
        """
        Invalidate entries by exact key or substring pattern.

        For each pattern, in order: an exact key match deletes only that key;
        otherwise every known key that contains the pattern, or is contained
        in it, is deleted. Known keys are the in-memory keys plus the keys
        recoverable from the backing store.

        In-memory candidates are evicted before the first suspension, so no
        caller can read them while the store is scanned.

        Returns:
            Keys removed, in removal order
        """
        pattern_list = normalize_patterns(patterns)

        with tracer.start_as_current_span("request_cache.invalidate") as span:
            span.set_attribute("patterns", pattern_list)
            removed: List[str] = []

            for pattern in pattern_list:
                candidates = [
                    key
                    for key in self.entries.memory_keys()
                    if key_matches_pattern(key, pattern)
                ]
                self.entries.evict(candidates)
                try:
                    known = candidates + await self.entries.keys()
                    targets = select_keys_to_invalidate(pattern, known)
                    logger.info(
                        "Cache INVALIDATE",
                        pattern=pattern,
                        exact=targets == [pattern],
                        matched=targets,
                    )
                    for key in targets:
                        await self.entries.delete(key)
                        if key not in removed:
                            removed.append(key)
                finally:
                    # Evicted non-targets reload from the store on next read
                    self.entries.release(candidates)

            span.set_attribute("invalidated_count", len(removed))
            self.metrics.record_invalidated(len(removed))
            return removed

    async def invalidate_by_entity(self, entity: Union[CacheEntity, str]) -> List[str]:
        """
        Invalidate every entry related to an entity.

        | entity         | patterns                           |
        | courses        | "courses", "course-"               |
        | categories     | "categories", "category"           |
        | course-types   | "course-types", "coursetype"       |
        | partners       | "partners", "partner-"             |
        | partner-groups | "partner-groups", "partnergroup"   |
        | all            | clears the whole cache             |
        """
        entity = CacheEntity.parse(entity)
        logger.info("Cache INVALIDATE entity", entity=entity.value)

        if entity is CacheEntity.ALL:
            return await self.clear_all()
        return await self.invalidate(patterns_for_entity(entity))

    async def clear_all(self) -> List[str]:
        """Remove every entry from memory and the backing store."""
        removed = await self.entries.clear()
        self.metrics.record_invalidated(len(removed))
        logger.info("Cache CLEAR - all entries cleared", count=len(removed))
        return removed

    async def close(self) -> None:
        """Close the backing store. In-flight requests are left to settle."""
        await self.entries.store.close()
