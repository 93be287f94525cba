"""Read-only selectors over persisted kernel data."""

from policy_kernel.selectors.trace_selector import DecisionTraceView, TraceSelector

__all__ = [
    "DecisionTraceView",
    "TraceSelector",
]
