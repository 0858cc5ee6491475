"""
Request Cache Metrics

Prometheus counters for request cache outcomes.
Each collector owns its registry so several caches can coexist in one process.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest


class CacheMetricsCollector:
    """Counters for lookups, stores, invalidations and backing store faults."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()

        self.lookups_total = Counter(
            "cms_request_cache_lookups",
            "Request cache lookups by outcome",
            ["outcome"],
            registry=self.registry,
        )
        self.producer_calls_total = Counter(
            "cms_request_cache_producer_calls",
            "Producer invocations by result",
            ["result"],
            registry=self.registry,
        )
        self.invalidated_keys_total = Counter(
            "cms_request_cache_invalidated_keys",
            "Keys removed by delete, invalidate or clear",
            registry=self.registry,
        )
        self.store_errors_total = Counter(
            "cms_request_cache_store_errors",
            "Backing store faults absorbed by the cache",
            ["operation"],
            registry=self.registry,
        )
        self.in_flight = Gauge(
            "cms_request_cache_in_flight",
            "Keys with a producer currently in flight",
            registry=self.registry,
        )

    def record_lookup(self, outcome: str) -> None:
        """Record a lookup outcome: hit, stored_hit, joined, miss or expired."""
        self.lookups_total.labels(outcome=outcome).inc()

    def record_producer_call(self, success: bool) -> None:
        self.producer_calls_total.labels(
            result="success" if success else "failure"
        ).inc()

    def record_invalidated(self, count: int) -> None:
        if count:
            self.invalidated_keys_total.inc(count)

    def record_store_error(self, operation: str) -> None:
        self.store_errors_total.labels(operation=operation).inc()

    def sample(self, name: str, **labels: str) -> float:
        """Read one sample value, 0.0 when it was never recorded."""
        value = self.registry.get_sample_value(name, labels or None)
        return value or 0.0

    def export(self) -> bytes:
        """Render the registry in Prometheus text format."""
        return generate_latest(self.registry)
