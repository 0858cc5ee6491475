"""
CMS Admin Global Constants

Centralized location for all system-wide constants used across the application.
"""

import time

# Cache Constants
CACHE_STORAGE_PREFIX = "cms_api_cache"
DEFAULT_CACHE_TTL_MS = 60_000


# Timestamp Functions
def get_current_timestamp_ms() -> int:
    """Get current wall-clock time in milliseconds since the epoch.

    Returns:
        int: Current timestamp in milliseconds

    Note: Cache entries compare against this clock, so tests inject their own.
    """
    return int(time.time() * 1000)


# Application Constants
APP_NAME = "CMS Admin"
APP_VERSION = "1.0.0"
