"""
Pure domain layer.

This module contains pure data transfer objects with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

All domain objects are immutable and deterministic.  Time is only ever
obtained through an injected ``Clock``.
"""

from policy_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from policy_kernel.domain.events import (
    EVENT_TYPES,
    ActivationEvent,
    FraudFlagEvent,
    PaymentFailureEvent,
    PolicyEvent,
    is_policy_event,
)
from policy_kernel.domain.status import (
    TERMINAL_STATUSES,
    PolicyStatus,
    ReasonCode,
    RuleIdentifier,
)
from policy_kernel.domain.trace import (
    DecisionTrace,
    EvaluatedRule,
    TransitionRequest,
    TransitionResult,
)

__all__ = [
    # Time
    "Clock",
    "DeterministicClock",
    "SystemClock",
    # Events
    "EVENT_TYPES",
    "ActivationEvent",
    "FraudFlagEvent",
    "PaymentFailureEvent",
    "PolicyEvent",
    "is_policy_event",
    # Vocabulary
    "TERMINAL_STATUSES",
    "PolicyStatus",
    "ReasonCode",
    "RuleIdentifier",
    # Results
    "DecisionTrace",
    "EvaluatedRule",
    "TransitionRequest",
    "TransitionResult",
]
