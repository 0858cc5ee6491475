"""
CMS API Exceptions

Errors raised by the REST client. From the request cache's point of view
these are producer errors: they propagate to callers and are never cached.
"""

from typing import Optional, Any, Dict


class ApiError(Exception):
    """Base exception for CMS API errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ApiAuthenticationError(ApiError):
    """Raised when the token is missing or rejected (HTTP 401)."""

    def __init__(self, message: str = "Authentication failed. Please login again."):
        super().__init__(message=message, status_code=401, error_code="API_AUTH_ERROR")


class ApiPermissionError(ApiError):
    """Raised on HTTP 403."""

    def __init__(
        self, message: str = "You do not have permission to access this resource."
    ):
        super().__init__(
            message=message, status_code=403, error_code="API_PERMISSION_ERROR"
        )


class ApiRequestError(ApiError):
    """Raised for other non-2xx responses and transport failures."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        method: Optional[str] = None,
        path: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details = {}
        if method:
            details["method"] = method
        if path:
            details["path"] = path
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=message,
            status_code=status_code,
            error_code="API_REQUEST_ERROR",
            details=details,
        )
        # Preserve exception context for debugging (exception chaining)
        if original_error:
            self.__cause__ = original_error
