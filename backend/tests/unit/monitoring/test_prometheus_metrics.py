"""Metrics recording on the private registry."""

from studio_booking.monitoring.prometheus_metrics import REGISTRY, prometheus_metrics


def _value(name, labels=None):
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


def test_service_operation_error_counts():
    before = _value(
        "studio_booking_errors_total",
        {"service": "BookingService", "operation": "admit_booking", "error_type": "Boom"},
    )
    prometheus_metrics.record_service_operation(
        "BookingService", "admit_booking", 0.01, status="error", error_type="Boom"
    )
    after = _value(
        "studio_booking_errors_total",
        {"service": "BookingService", "operation": "admit_booking", "error_type": "Boom"},
    )
    assert after == before + 1


def test_reminder_outcome_ignores_zero_counts():
    labels = {"outcome": "metrics_test"}
    before = _value("studio_booking_reminder_outcomes_total", labels)
    prometheus_metrics.record_reminder_outcome("metrics_test", count=0)
    prometheus_metrics.record_reminder_outcome("metrics_test", count=2)
    assert _value("studio_booking_reminder_outcomes_total", labels) == before + 2


def test_exposition_contains_dispatch_metrics():
    prometheus_metrics.record_dispatch_result("sent")
    assert b"studio_booking_dispatch_results_total" in prometheus_metrics.get_metrics()
