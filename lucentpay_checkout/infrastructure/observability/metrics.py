"""Prometheus metrics for monitoring checkout volume, gateway health, and price cache behaviour"""

from prometheus_client import Counter, Histogram

# Checkout metrics
checkout_counter = Counter(
    "lucentpay_checkout_sessions_total",
    "Checkout session attempts",
    ["flow", "outcome"],  # flow: membership | invoice; outcome: created | rejected | failed
)

invoice_amount_histogram = Histogram(
    "lucentpay_invoice_total_minor",
    "Fee-inclusive invoice totals in minor units",
    buckets=[1_000, 5_000, 10_000, 50_000, 100_000, 500_000, 1_000_000],
)

# Gateway metrics
gateway_latency_histogram = Histogram(
    "gateway_latency_seconds",
    "Payments gateway response time",
    ["operation"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

gateway_failure_counter = Counter(
    "gateway_failures_total",
    "Failed payments gateway calls",
    ["operation", "kind"],  # kind: unavailable | rejected
)

# Price resolver
price_cache_counter = Counter(
    "price_cache_lookups_total",
    "Price resolver cache lookups",
    ["result"],  # hit | miss
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_checkout(flow: str, outcome: str, total_amount_minor: int | None = None) -> None:
    """Record a checkout attempt and, for invoices, the charged amount"""
    checkout_counter.labels(flow=flow, outcome=outcome).inc()

    if total_amount_minor is not None:
        invoice_amount_histogram.observe(total_amount_minor)
