"""
Cache Domain Exceptions

Domain-specific exceptions for request cache operations.
Producer errors are never wrapped: they reach the caller exactly as raised.
"""

from typing import Optional, Any, Dict


class CacheException(Exception):
    """Base exception for request cache errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class InvalidArgumentError(CacheException, ValueError):
    """Raised synchronously for an empty key, bad TTL/timeout or unknown entity."""

    def __init__(
        self,
        message: str,
        argument: Optional[str] = None,
        value: Optional[Any] = None,
    ):
        details = {}
        if argument:
            details["argument"] = argument
        if value is not None:
            details["value"] = repr(value)

        super().__init__(
            message=message, error_code="CACHE_INVALID_ARGUMENT", details=details
        )


class BackingStoreError(CacheException):
    """Raised by backing stores on read, write or decode failures.

    The persistent cache absorbs these; they never reach get_or_fetch callers.
    """

    def __init__(
        self,
        message: str,
        operation: str,
        key: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details = {"operation": operation}
        if key:
            details["key"] = key
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=message, error_code="CACHE_BACKING_STORE_ERROR", details=details
        )
        # Preserve exception context for debugging (exception chaining)
        if original_error:
            self.__cause__ = original_error


class CorruptedEntryError(BackingStoreError):
    """Raised when a persisted entry cannot be parsed back into a CacheEntry."""

    def __init__(self, key: str, original_error: Optional[Exception] = None):
        super().__init__(
            message=f"Corrupted cache entry: {key}",
            operation="decode",
            key=key,
            original_error=original_error,
        )
        self.error_code = "CACHE_CORRUPTED_ENTRY"


class ProducerTimeoutError(CacheException, TimeoutError):
    """Raised when a producer does not settle within the configured timeout."""

    def __init__(self, key: str, timeout_seconds: float):
        super().__init__(
            message=f"Request for '{key}' timed out after {timeout_seconds}s",
            error_code="CACHE_PRODUCER_TIMEOUT",
            details={"key": key, "timeout_seconds": timeout_seconds},
        )
