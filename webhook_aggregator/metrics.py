"""
Prometheus metrics for the webhook aggregator service.
"""
from prometheus_client import Counter, Histogram, Gauge, Info, CollectorRegistry


class Metrics:
    """
    Centralized metrics for the webhook aggregator service.
    """

    def __init__(self, service_name: str = "webhook-aggregator", version: str = "0.1.0", registry=None):
        self.service_name = service_name
        self.version = version
        self.registry = registry or CollectorRegistry()

        # HTTP Metrics
        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["service", "method", "path", "status"],
            registry=self.registry,
        )

        self.http_request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["service", "method", "path"],
            registry=self.registry,
        )

        self.http_requests_active = Gauge(
            "http_requests_active",
            "Number of active HTTP requests",
            registry=self.registry,
        )

        # Application Info
        self.app_info = Info(
            "app",
            "Application information",
            registry=self.registry,
        )
        self.app_info.info({"service": service_name, "version": version})

        self.app_up = Gauge(
            "app_up",
            "Application up status (1=up, 0=down)",
            ["service", "version"],
            registry=self.registry,
        )
        self.app_up.labels(service=service_name, version=version).set(1)

        # Business Metrics - aggregation specific
        self.events_received_total = Counter(
            "aggregator_events_received_total",
            "Inbound events by admission outcome",
            ["outcome"],
            registry=self.registry,
        )

        self.flushes_total = Counter(
            "aggregator_flushes_total",
            "Aggregates dispatched, by transport result",
            ["result"],
            registry=self.registry,
        )

        self.dispatch_duration = Histogram(
            "aggregator_dispatch_duration_seconds",
            "Downstream dispatch duration in seconds",
            registry=self.registry,
        )

        self.pending_timers = Gauge(
            "aggregator_pending_timers",
            "Keys with an armed debounce timer",
            registry=self.registry,
        )

    def record_admission(self, outcome: str):
        """Record an admission decision (queued, suppressed, status_updated)."""
        self.events_received_total.labels(outcome=outcome).inc()

    def record_flush(self, success: bool, duration_seconds: float):
        """Record a completed flush."""
        self.flushes_total.labels(result="success" if success else "transport_error").inc()
        self.dispatch_duration.observe(duration_seconds)

    def set_pending_timers(self, count: int):
        """Set the number of armed debounce timers."""
        self.pending_timers.set(count)
