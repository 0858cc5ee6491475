"""
CMS Admin Data Layer

Client-side data access for the CMS admin application: REST client,
request cache with de-duplication, TTL expiry and entity invalidation.
"""

from .constants import APP_VERSION as __version__
