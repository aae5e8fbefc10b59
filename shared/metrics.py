"""
Shared metrics configuration for the Cart Offer service.
"""

from prometheus_client import Counter, Histogram, Info, CollectorRegistry, generate_latest
from typing import Dict, Any, Optional


class MetricsCollector:
    """Centralized metrics collector for a service.

    Every collector owns its registry so several service instances (one per
    test, for example) never collide on metric names.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        # Service info
        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        self._metrics["health_check_total"] = Counter(
            "health_check_total",
            "Total health check requests",
            ["status"],
            registry=self.registry
        )

        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        if self.service_name == "offers":
            self._setup_offers_metrics()

    def _setup_offers_metrics(self):
        """Set up offer-engine metrics."""
        self._metrics["offers_added_total"] = Counter(
            "offers_added_total",
            "Total offers added",
            ["offer_type"],
            registry=self.registry
        )

        self._metrics["offers_applied_total"] = Counter(
            "offers_applied_total",
            "Total apply-offer evaluations",
            ["outcome"],
            registry=self.registry
        )

        self._metrics["discount_amount"] = Histogram(
            "discount_amount",
            "Absolute discount granted per cart",
            buckets=(0, 5, 10, 25, 50, 100, 250, 500, 1000),
            registry=self.registry
        )

        self._metrics["rate_limit_hits_total"] = Counter(
            "rate_limit_hits_total",
            "Total rate limit rejections",
            ["endpoint"],
            registry=self.registry
        )

        self._metrics["segment_lookups_total"] = Counter(
            "segment_lookups_total",
            "Segment service lookups by outcome",
            ["outcome"],
            registry=self.registry
        )

    def export(self) -> bytes:
        """Render the registry in Prometheus text format."""
        return generate_latest(self.registry)

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_health_check(self, status: str):
        """Record health check metrics."""
        self._metrics["health_check_total"].labels(status=status).inc()

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        metric = self._metrics.get(metric_name)
        if metric is None:
            return
        if labels:
            metric = metric.labels(**labels)
        metric.inc()

    def observe_histogram(self, metric_name: str, value: float, **labels):
        """Observe a histogram metric."""
        metric = self._metrics.get(metric_name)
        if metric is None:
            return
        if labels:
            metric = metric.labels(**labels)
        metric.observe(value)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
