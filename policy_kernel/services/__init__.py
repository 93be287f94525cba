"""Kernel services -- imperative shell around the pure engine."""

from policy_kernel.services.trace_recorder import (
    TraceRecorder,
    outcome_hash_for,
    outcome_hash_of_record,
)

__all__ = [
    "TraceRecorder",
    "outcome_hash_for",
    "outcome_hash_of_record",
]
