"""
Prometheus metrics for the entitlement service.

Custom metrics for business logic and performance monitoring.
"""

from prometheus_client import Counter, Histogram

# HTTP metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)

# Entitlement metrics
entitlement_checks_total = Counter(
    "entitlement_checks_total",
    "Total feature access checks",
    ["result"],
)

licenses_activated_total = Counter(
    "licenses_activated_total",
    "Total licenses activated",
    ["currency"],
)

licenses_renewed_total = Counter(
    "licenses_renewed_total",
    "Total licenses renewed",
    ["currency"],
)

licenses_expired_total = Counter(
    "licenses_expired_total",
    "Total licenses marked expired",
)

licenses_canceled_total = Counter(
    "licenses_canceled_total",
    "Total licenses canceled after failed payments",
)

bulk_renewals_total = Counter(
    "bulk_renewals_total",
    "Organizations processed by bulk renewals",
    ["outcome"],
)

feature_activations_total = Counter(
    "feature_activations_total",
    "Total feature activation changes",
    ["action"],
)

# Report metrics
reports_generated_total = Counter(
    "reports_generated_total",
    "Total usage reports generated",
    ["format"],
)

reports_deleted_total = Counter(
    "reports_deleted_total",
    "Total stored reports deleted by retention cleanup",
)

report_generation_duration_seconds = Histogram(
    "report_generation_duration_seconds",
    "Usage report generation and storage duration in seconds",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0],
)

# Payment and notification metrics
payment_webhooks_total = Counter(
    "payment_webhooks_total",
    "Total payment webhooks processed",
    ["status"],
)

notifications_failed_total = Counter(
    "notifications_failed_total",
    "Total notifications that could not be delivered",
)

# Error metrics
errors_total = Counter(
    "errors_total",
    "Total errors",
    ["error_type", "endpoint"],
)
