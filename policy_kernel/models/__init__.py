"""ORM models for the policy kernel."""

from policy_kernel.models.decision_trace import DecisionTraceRecord

__all__ = [
    "DecisionTraceRecord",
]
