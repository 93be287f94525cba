"""
Decision trace and transition result types (``policy_kernel.domain.trace``).

Responsibility
--------------
Frozen data carriers for the output of one evaluation: the ordered record
of rules considered, bound to a rule-set version and an input digest, and
the resulting status transition.

Invariants enforced
-------------------
* Created fresh inside one evaluation, returned to the caller, never
  mutated afterwards (frozen dataclasses, tuple sequences).
* ``TransitionResult.transition_applied`` is true iff ``new_status``
  differs from ``previous_status``.
* ``TransitionResult.reason_codes`` is never empty.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from policy_kernel.domain.events import PolicyEvent
from policy_kernel.domain.status import PolicyStatus, ReasonCode, RuleIdentifier


@dataclass(frozen=True)
class EvaluatedRule:
    """One rule inspected during an evaluation and whether it matched."""

    rule: RuleIdentifier
    matched: bool


@dataclass(frozen=True)
class DecisionTrace:
    """Audit record of which rules were checked and matched."""

    rule_version: str
    evaluated_rules: tuple[EvaluatedRule, ...]
    inputs_hash: str
    timestamp: str

    @property
    def matched_rules(self) -> tuple[RuleIdentifier, ...]:
        return tuple(r.rule for r in self.evaluated_rules if r.matched)


@dataclass(frozen=True)
class TransitionResult:
    """Complete output of one evaluation."""

    previous_status: PolicyStatus
    new_status: PolicyStatus
    transition_applied: bool
    reason_codes: tuple[ReasonCode, ...]
    decision_trace: DecisionTrace

    def __post_init__(self) -> None:
        if not self.reason_codes:
            raise ValueError("reason_codes must not be empty")
        if self.transition_applied != (self.new_status != self.previous_status):
            raise ValueError(
                "transition_applied must reflect whether new_status differs "
                "from previous_status"
            )


@dataclass(frozen=True)
class TransitionRequest:
    """Inputs of one evaluation, as received at a service boundary."""

    current_status: PolicyStatus
    events: tuple[PolicyEvent, ...] = field(default_factory=tuple)
    policy_ref: str | None = None
