"""
CMS API Data Access

REST client and entity resources backed by the request cache.
"""

from .client import ApiClient, TokenProvider
from .exceptions import (
    ApiError,
    ApiAuthenticationError,
    ApiPermissionError,
    ApiRequestError,
)
from .resources import CmsResources

__all__ = [
    "ApiClient",
    "TokenProvider",
    "CmsResources",
    "ApiError",
    "ApiAuthenticationError",
    "ApiPermissionError",
    "ApiRequestError",
]
