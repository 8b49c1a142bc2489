"""Telemetry helpers and metrics."""

from .metrics import (
    ANALYSIS_COUNTER,
    BACKEND_LATENCY,
    DROP_OFF_DISAGREEMENT_COUNTER,
    ERROR_COUNTER,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    increment_drop_off_disagreement,
    observe_backend_call,
    observe_request,
    record_analysis_outcome,
)

__all__ = [
    "ANALYSIS_COUNTER",
    "BACKEND_LATENCY",
    "DROP_OFF_DISAGREEMENT_COUNTER",
    "ERROR_COUNTER",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "increment_drop_off_disagreement",
    "observe_backend_call",
    "observe_request",
    "record_analysis_outcome",
]
