"""
Telemetry utilities for the review API.
"""

from .metrics import (
    error_counter,
    latency_histogram,
    request_counter,
    store_duration_histogram,
    store_error_counter,
)
from .tracing import instrument_fastapi_app, instrument_store_client, setup_tracing, store_span


__all__ = [
    "error_counter",
    "instrument_fastapi_app",
    "instrument_store_client",
    "latency_histogram",
    "request_counter",
    "setup_tracing",
    "store_duration_histogram",
    "store_error_counter",
    "store_span",
]
