"""
Prometheus metrics module for the studio booking engine.

Metrics live on a private registry so that importing the module in tests
or in several Celery workers never collides with the default registry.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "studio_booking_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "studio_booking_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "studio_booking_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

capacity_lock_total = Counter(
    "studio_booking_capacity_lock_total",
    "Capacity lock acquisitions and releases",
    ["action", "outcome"],
    registry=REGISTRY,
)

dispatch_attempts_total = Counter(
    "studio_booking_dispatch_attempts_total",
    "Notification send attempts",
    ["outcome"],
    registry=REGISTRY,
)

dispatch_results_total = Counter(
    "studio_booking_dispatch_results_total",
    "Terminal notification dispatch results",
    ["status"],
    registry=REGISTRY,
)

reminder_outcomes_total = Counter(
    "studio_booking_reminder_outcomes_total",
    "Reminder outcomes per booking observed by the scan",
    ["outcome"],
    registry=REGISTRY,
)

reminder_tick_duration_seconds = Histogram(
    "studio_booking_reminder_tick_duration_seconds",
    "Reminder scan tick duration in seconds",
    registry=REGISTRY,
    buckets=(0.1, 0.5, 1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0),
)


class PrometheusMetrics:
    """Thin recording facade over the module-level collectors."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'BookingService')
            operation: Operation/method name (e.g., 'admit_booking')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_capacity_lock(action: str, outcome: str) -> None:
        capacity_lock_total.labels(action=action, outcome=outcome).inc()

    @staticmethod
    def record_dispatch_attempt(outcome: str) -> None:
        dispatch_attempts_total.labels(outcome=outcome).inc()

    @staticmethod
    def record_dispatch_result(status: str) -> None:
        dispatch_results_total.labels(status=status).inc()

    @staticmethod
    def record_reminder_outcome(outcome: str, count: int = 1) -> None:
        if count > 0:
            reminder_outcomes_total.labels(outcome=outcome).inc(count)

    @staticmethod
    def observe_reminder_tick(duration: float) -> None:
        reminder_tick_duration_seconds.observe(max(duration, 0.0))

    @staticmethod
    def get_metrics() -> bytes:
        """Generate metrics in Prometheus text exposition format."""
        return generate_latest(REGISTRY)


prometheus_metrics = PrometheusMetrics()
