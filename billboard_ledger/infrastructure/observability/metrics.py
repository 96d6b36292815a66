"""Prometheus metrics for monitoring distributions, validation failures, and webhook performance"""

from decimal import Decimal
from typing import Iterable

from prometheus_client import Counter, Histogram

# Distribution metrics
distribution_counter = Counter(
    "billboard_distribution_total",
    "Distributed payments processed",
    ["outcome"],  # committed | rejected
)

distribution_amount_histogram = Histogram(
    "billboard_distribution_amount",
    "Amount of committed distributed payments",
    buckets=[100, 500, 1_000, 5_000, 10_000, 50_000, 100_000],
)

# Validation metrics
validation_failure_counter = Counter(
    "billboard_validation_failures_total",
    "User-correctable validation failures",
    ["error"],  # unbalanced_allocation | incomplete_distribution | missing_price | duplicate_beneficiary | ...
)

missing_price_counter = Counter(
    "billboard_missing_price_total",
    "Line items priced at zero for lack of a price",
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Ledger webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "webhook_failures_total",
    "Failed webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_distribution(committed: bool, total_amount: Decimal) -> None:
    """Record distribution outcome; only committed payments feed the amount histogram"""
    distribution_counter.labels(outcome="committed" if committed else "rejected").inc()
    if committed:
        distribution_amount_histogram.observe(float(total_amount))


def record_validation_failures(codes: Iterable[str]) -> None:
    for code in codes:
        validation_failure_counter.labels(error=code).inc()
        if code == "missing_price":
            missing_price_counter.inc()
