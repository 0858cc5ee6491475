"""
CMS Admin Monitoring Module

Prometheus metrics for the request cache.
"""

from .cache_metrics import CacheMetricsCollector

__all__ = [
    "CacheMetricsCollector",
]
