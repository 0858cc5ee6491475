"""
Request Cache Services

Client-side request cache for CMS API reads.
"""

from ...core.config import Settings
from ...infrastructure.storage import create_backing_store
from ...monitoring.cache_metrics import CacheMetricsCollector
from .invalidation import with_cache_invalidation
from .persistent_cache import PersistentCache
from .request_cache import RequestCache


def create_request_cache(settings: Settings) -> RequestCache:
    """Build a request cache over the backing store selected in settings."""
    return RequestCache(
        create_backing_store(settings),
        prefix=settings.CACHE_STORAGE_PREFIX,
        default_ttl_ms=settings.CACHE_TTL_MS,
        producer_timeout=settings.CACHE_PRODUCER_TIMEOUT_SECONDS,
        metrics=CacheMetricsCollector(),
    )


__all__ = [
    "RequestCache",
    "PersistentCache",
    "with_cache_invalidation",
    "create_request_cache",
]
