"""
Prometheus metrics for the trainer booking service.

Service timings come from the @measure_operation decorator; the domain
counters below track the checkout and webhook reconciliation paths.
"""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "trainer_booking_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "trainer_booking_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "trainer_booking_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

checkout_sessions_total = Counter(
    "trainer_booking_checkout_sessions_total",
    "Checkout sessions requested from the payment provider",
    ["status"],  # created | provider_error
    registry=REGISTRY,
)

webhook_events_total = Counter(
    "trainer_booking_webhook_events_total",
    "Inbound payment webhook events by outcome",
    ["event_type", "outcome"],  # created | duplicate | conflict | ignored | rejected
    registry=REGISTRY,
)

reconciliation_conflicts_total = Counter(
    "trainer_booking_reconciliation_conflicts_total",
    "Paid bookings recorded with a reconciliation conflict flag",
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Thin facade used by services and routes."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_checkout_session(status: str) -> None:
        checkout_sessions_total.labels(status=status).inc()

    @staticmethod
    def record_webhook_event(event_type: str, outcome: str) -> None:
        webhook_events_total.labels(event_type=event_type or "unknown", outcome=outcome).inc()

    @staticmethod
    def record_reconciliation_conflict() -> None:
        reconciliation_conflicts_total.inc()

    @staticmethod
    def get_metrics() -> bytes:
        return bytes(generate_latest(REGISTRY))

    content_type = CONTENT_TYPE_LATEST


prometheus_metrics = PrometheusMetrics()
