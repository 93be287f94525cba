"""
policy_engines.rules -- Policy lifecycle transition rules.

Responsibility:
    Define each lifecycle rule as an independent object (identifier, match
    predicate, effect, terminates flag) and publish them as one immutable,
    priority-ordered rule set.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import policy_kernel/domain types.

Invariants enforced:
    - Deterministic rule ordering: ``RULE_SET`` is evaluated strictly in
      tuple order; position is priority.
    - Fraud outranks everything and terminates evaluation.
    - Payment-failure suspension only applies to Active policies.
    - Predicates dispatch on event class; anything that is not a known
      event variant matches no rule.
    - Purity: predicates never mutate the status or the event list.

Rule table (RULE_VERSION ``mvp-1.0.0``):

    Order  Rule                            Effect                               Terminates
    1      R2_FraudCancellation            -> Cancelled, FRAUD_CONFIRMED         yes
    2      R1_PaymentFailureSuspension     -> Suspended, PAYMENT_FAILED_TWICE    yes
    3      R3_ActivationTimingConstraint   none (placeholder)                    no
    4      R4_PendingActivation            -> Active, POLICY_ACTIVATED           no
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from policy_kernel.domain.events import (
    ActivationEvent,
    FraudFlagEvent,
    PaymentFailureEvent,
)
from policy_kernel.domain.status import PolicyStatus, ReasonCode, RuleIdentifier

RULE_VERSION = "mvp-1.0.0"

PAYMENT_FAILURE_THRESHOLD = 2


@dataclass(frozen=True)
class RuleEffect:
    """Status a matching rule moves the policy to, and why."""

    new_status: PolicyStatus
    reason_code: ReasonCode


@dataclass(frozen=True)
class TransitionRule:
    """A named predicate/effect pair applied in fixed priority order.

    ``effect`` is None for rules that are recorded in the trace when they
    match but change nothing.  ``terminates`` stops evaluation of lower
    priority rules when the rule matches.
    """

    rule_id: RuleIdentifier
    predicate: Callable[[PolicyStatus, Sequence[Any]], bool]
    effect: RuleEffect | None = None
    terminates: bool = False
    description: str = ""

    def matches(self, current_status: PolicyStatus, events: Sequence[Any]) -> bool:
        return bool(self.predicate(current_status, events))


# =========================================================================
# Predicates
# =========================================================================


def has_confirmed_fraud(current_status: PolicyStatus, events: Sequence[Any]) -> bool:
    return any(isinstance(e, FraudFlagEvent) and e.flag is True for e in events)


def count_payment_failures(events: Sequence[Any]) -> int:
    """Occurrences of PaymentFailureEvent, irrespective of order."""
    return sum(1 for e in events if isinstance(e, PaymentFailureEvent))


def has_repeated_payment_failure(current_status: PolicyStatus, events: Sequence[Any]) -> bool:
    return (
        current_status == PolicyStatus.ACTIVE
        and count_payment_failures(events) >= PAYMENT_FAILURE_THRESHOLD
    )


def has_activation(events: Sequence[Any]) -> bool:
    return any(isinstance(e, ActivationEvent) for e in events)


def is_pending_without_activation(current_status: PolicyStatus, events: Sequence[Any]) -> bool:
    return current_status == PolicyStatus.PENDING and not has_activation(events)


def is_pending_with_activation(current_status: PolicyStatus, events: Sequence[Any]) -> bool:
    return current_status == PolicyStatus.PENDING and has_activation(events)


# =========================================================================
# Rule set
# =========================================================================

FRAUD_CANCELLATION = TransitionRule(
    rule_id=RuleIdentifier.FRAUD_CANCELLATION,
    predicate=has_confirmed_fraud,
    effect=RuleEffect(PolicyStatus.CANCELLED, ReasonCode.FRAUD_CONFIRMED),
    terminates=True,
    description="A confirmed fraud flag cancels the policy from any status.",
)

PAYMENT_FAILURE_SUSPENSION = TransitionRule(
    rule_id=RuleIdentifier.PAYMENT_FAILURE_SUSPENSION,
    predicate=has_repeated_payment_failure,
    effect=RuleEffect(PolicyStatus.SUSPENDED, ReasonCode.PAYMENT_FAILED_TWICE),
    terminates=True,
    description="Two or more failed payments suspend an active policy.",
)

# TODO: decide whether a pending policy past its activation window should
# be cancelled; until then this rule is recorded but has no effect.
ACTIVATION_TIMING_CONSTRAINT = TransitionRule(
    rule_id=RuleIdentifier.ACTIVATION_TIMING_CONSTRAINT,
    predicate=is_pending_without_activation,
    effect=None,
    terminates=False,
    description="Pending policy without activation (placeholder, no effect).",
)

PENDING_ACTIVATION = TransitionRule(
    rule_id=RuleIdentifier.PENDING_ACTIVATION,
    predicate=is_pending_with_activation,
    effect=RuleEffect(PolicyStatus.ACTIVE, ReasonCode.POLICY_ACTIVATED),
    terminates=False,
    description="An activation event moves a pending policy to active.",
)

RULE_SET: tuple[TransitionRule, ...] = (
    FRAUD_CANCELLATION,
    PAYMENT_FAILURE_SUSPENSION,
    ACTIVATION_TIMING_CONSTRAINT,
    PENDING_ACTIVATION,
)
