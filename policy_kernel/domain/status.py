"""
Policy status and decision vocabulary (``policy_kernel.domain.status``).

Responsibility
--------------
Defines the lifecycle states of a policy, the reason codes a decision can
carry, and the identifiers of the rules that produce them.

Invariants enforced
-------------------
* Enum values are wire and persistence identifiers; they must remain
  stable across releases because stored decision traces reference them.
* ``TERMINAL_STATUSES`` names the states no rule in the current rule set
  moves a policy out of.
"""

from __future__ import annotations

from enum import Enum


class PolicyStatus(str, Enum):
    """Lifecycle stage of an insurance policy."""

    PENDING = "Pending"
    ACTIVE = "Active"
    SUSPENDED = "Suspended"
    CANCELLED = "Cancelled"


# No rule in the current rule set leaves these states.
TERMINAL_STATUSES: frozenset[PolicyStatus] = frozenset({
    PolicyStatus.SUSPENDED,
    PolicyStatus.CANCELLED,
})


class ReasonCode(str, Enum):
    """Machine-readable reason attached to a transition result."""

    FRAUD_CONFIRMED = "FRAUD_CONFIRMED"
    PAYMENT_FAILED_TWICE = "PAYMENT_FAILED_TWICE"
    POLICY_ACTIVATED = "POLICY_ACTIVATED"
    NO_TRANSITION = "NO_TRANSITION"


class RuleIdentifier(str, Enum):
    """Stable identifiers of the transition rules, as recorded in traces."""

    FRAUD_CANCELLATION = "R2_FraudCancellation"
    PAYMENT_FAILURE_SUSPENSION = "R1_PaymentFailureSuspension"
    ACTIVATION_TIMING_CONSTRAINT = "R3_ActivationTimingConstraint"
    PENDING_ACTIVATION = "R4_PendingActivation"
