"""
Application Context

Builds the application-scoped objects once at start and hands them out by
reference: settings, the request cache, the API client and the resources.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

import httpx
import structlog

from .api.client import ApiClient, TokenProvider
from .api.resources import CmsResources
from .constants import APP_NAME, APP_VERSION
from .core.config import Settings, get_settings
from .core.logging import configure_logging
from .services.cache import create_request_cache
from .services.cache.request_cache import RequestCache

logger = structlog.get_logger(__name__)


@dataclass
class AppContext:
    """Shared application objects."""

    settings: Settings
    cache: RequestCache
    client: ApiClient
    resources: CmsResources

    async def aclose(self) -> None:
        """Close the HTTP client and the cache backing store."""
        try:
            await self.client.aclose()
        finally:
            await self.cache.close()


def create_app_context(
    token_provider: TokenProvider,
    settings: Optional[Settings] = None,
    *,
    cache: Optional[RequestCache] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AppContext:
    """
    Build the application context.

    Args:
        token_provider: Returns the current bearer token (sync or async)
        settings: Settings to use (default: environment settings)
        cache: Pre-built cache, e.g. over a shared test store
        transport: httpx transport override for tests
    """
    settings = settings or get_settings()
    cache = cache or create_request_cache(settings)
    client = ApiClient.from_settings(settings, token_provider, transport=transport)

    logger.info(
        f"{APP_NAME} data layer ready",
        version=APP_VERSION,
        environment=settings.ENVIRONMENT,
        cache_backend=settings.CACHE_BACKEND,
        cache_ttl_ms=settings.CACHE_TTL_MS,
    )
    return AppContext(
        settings=settings,
        cache=cache,
        client=client,
        resources=CmsResources(client, cache),
    )


@asynccontextmanager
async def app_context(
    token_provider: TokenProvider,
    settings: Optional[Settings] = None,
    *,
    configure_logs: bool = True,
    cache: Optional[RequestCache] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[AppContext]:
    """Application lifespan: build the context, close it on exit."""
    settings = settings or get_settings()
    if configure_logs:
        configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    context = create_app_context(
        token_provider, settings, cache=cache, transport=transport
    )
    try:
        yield context
    finally:
        await context.aclose()
        logger.info(f"{APP_NAME} data layer closed")
