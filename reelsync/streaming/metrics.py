"""Prometheus metrics for streaming provider calls."""

from prometheus_client import REGISTRY, Counter

PROVIDER_REQUESTS = Counter(
    "reelsync_provider_requests_total",
    "Total number of streaming provider requests",
    ["endpoint", "status"],  # status: HTTP code, timeout, transport_error
)


def register_metrics() -> None:
    """Register metrics with Prometheus."""
    try:
        REGISTRY.register(PROVIDER_REQUESTS)
    except ValueError:
        # Metric already registered
        pass


# Register metrics on module import
register_metrics()
