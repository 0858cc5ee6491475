"""
CMS REST API Client

Authenticated JSON client for the CMS API. Every call is one HTTP request;
the request cache wraps reads made through it.
"""

import inspect
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

import httpx
import structlog
from opentelemetry import trace

from ..core.config import Settings
from .exceptions import (
    ApiAuthenticationError,
    ApiPermissionError,
    ApiRequestError,
)

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

TokenProvider = Callable[[], Union[Optional[str], Awaitable[Optional[str]]]]


class ApiClient:
    """
    Thin wrapper around httpx.AsyncClient.

    The bearer token comes from an injected provider, sync or async, so token
    storage and refresh stay outside this client.
    """

    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider,
        *,
        timeout: float = 30.0,
        platform: str = "cms",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._token_provider = token_provider
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
                "Platform": platform,
                "X-Platform": platform,
            },
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        token_provider: TokenProvider,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ApiClient":
        return cls(
            settings.API_BASE_URL,
            token_provider,
            timeout=settings.API_TIMEOUT_SECONDS,
            platform=settings.API_PLATFORM,
            transport=transport,
        )

    async def _token(self) -> str:
        token = self._token_provider()
        if inspect.isawaitable(token):
            token = await token
        if not token:
            raise ApiAuthenticationError("Authentication token is missing")
        return token

    @staticmethod
    def _error_message(response: httpx.Response) -> Optional[str]:
        try:
            payload = response.json()
        except ValueError:
            return None
        if isinstance(payload, dict):
            message = payload.get("message") or payload.get("detail")
            if isinstance(message, str) and message:
                return message
        return None

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        """
        Send an authenticated request and decode the JSON body.

        Raises:
            ApiAuthenticationError: Missing token or HTTP 401
            ApiPermissionError: HTTP 403
            ApiRequestError: Any other failure
        """
        with tracer.start_as_current_span("cms_api.request") as span:
            span.set_attribute("http.method", method)
            span.set_attribute("http.route", path)

            token = await self._token()
            query = {k: v for k, v in (params or {}).items() if v is not None}

            try:
                response = await self._client.request(
                    method,
                    path,
                    params=query or None,
                    json=json,
                    headers={"Authorization": f"Bearer {token}"},
                )
            except httpx.HTTPError as e:
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                logger.warning("CMS API transport error", method=method, path=path, error=str(e))
                raise ApiRequestError(
                    f"API request failed: {e}",
                    method=method,
                    path=path,
                    original_error=e,
                ) from e

            span.set_attribute("http.status_code", response.status_code)

            if response.status_code == 401:
                raise ApiAuthenticationError()
            if response.status_code == 403:
                raise ApiPermissionError()
            if response.is_error:
                span.set_status(trace.Status(trace.StatusCode.ERROR))
                message = self._error_message(response) or (
                    f"API request failed with status: {response.status_code}"
                )
                logger.warning(
                    "CMS API error response",
                    method=method,
                    path=path,
                    status_code=response.status_code,
                )
                raise ApiRequestError(
                    message,
                    status_code=response.status_code,
                    method=method,
                    path=path,
                )

            if response.status_code == 204 or not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                raise ApiRequestError(
                    "API response is not valid JSON",
                    status_code=response.status_code,
                    method=method,
                    path=path,
                    original_error=e,
                ) from e

    async def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, data: Any = None) -> Any:
        return await self.request("POST", path, json=data)

    async def put(self, path: str, data: Any = None) -> Any:
        return await self.request("PUT", path, json=data)

    async def patch(self, path: str, data: Any = None) -> Any:
        return await self.request("PATCH", path, json=data)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def aclose(self) -> None:
        await self._client.aclose()
