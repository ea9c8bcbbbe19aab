"""
Prometheus metrics for the review API.

All metrics are exposed via the /metrics endpoint.
"""

from collections.abc import Sequence
from typing import Any, TypeVar, cast

from prometheus_client import REGISTRY, Counter, Histogram

MetricType = Counter | Histogram
T = TypeVar("T", bound=MetricType)


def get_metric(
    name: str,
    type_cls: type[T],
    documentation: str,
    labelnames: Sequence[str],
    buckets: Sequence[float] | None = None,
) -> T:
    """
    Get an existing metric or create a new one.
    This prevents 'Duplicated timeseries' errors when reloading modules or running tests.
    """
    if name in REGISTRY._names_to_collectors:
        return cast("T", REGISTRY._names_to_collectors[name])

    kwargs = {}
    if buckets and type_cls is Histogram:
        kwargs["buckets"] = buckets
    return cast("T", type_cls(name, documentation, labelnames, **cast("Any", kwargs)))


# === Request Metrics ===

request_counter = get_metric(
    "review_api_requests_total",
    Counter,
    "Total number of API requests handled",
    ["operation", "status"],  # status=success/error
)

latency_histogram = get_metric(
    "review_api_request_latency_seconds",
    Histogram,
    "Handler latency including the store round trip",
    ["operation"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

error_counter = get_metric(
    "review_api_errors_total",
    Counter,
    "Total number of failed operations by error type",
    ["operation", "error_type"],  # error_type=store/unexpected
)

# === Store Metrics ===

store_duration_histogram = get_metric(
    "review_api_store_call_duration_seconds",
    Histogram,
    "Duration of calls to the store",
    ["table", "method"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

store_error_counter = get_metric(
    "review_api_store_errors_total",
    Counter,
    "Store calls that ended in an error",
    ["table", "method", "kind"],  # kind=response/transport
)
