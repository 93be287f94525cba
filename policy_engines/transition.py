"""
policy_engines.transition -- Pure policy lifecycle decision engine.

Responsibility:
    Evaluate the priority-ordered rule set against a policy's current
    status and a list of events, and return the resulting transition
    together with a decision trace of every rule inspected.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import policy_kernel/domain types and the kernel codec
    (for the inputs digest).

Invariants enforced:
    - Rules run strictly in ``RULE_SET`` order; a terminating match stops
      evaluation and is the last entry in the trace.
    - The trace lists every rule inspected, including the terminating one;
      when nothing terminates all rules appear.
    - ``reason_codes`` is an ordered set and falls back to NO_TRANSITION.
    - ``transition_applied`` iff the new status differs from the old one.
    - Inputs are never mutated.
    - Purity: the only clock access is through the injected ``Clock``.

Failure modes:
    - Never raises on malformed events: unknown shapes match no rule.
    - DigestComputationError if the inputs digest cannot be computed
      (unexpected, fatal).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from policy_engines.rules import RULE_SET, RULE_VERSION, TransitionRule
from policy_engines.tracer import traced_engine
from policy_kernel.codec import compute_inputs_hash
from policy_kernel.domain.clock import Clock, SystemClock
from policy_kernel.domain.status import PolicyStatus, ReasonCode
from policy_kernel.domain.trace import (
    DecisionTrace,
    EvaluatedRule,
    TransitionResult,
)
from policy_kernel.logging_config import get_logger

logger = get_logger("engines.transition")

_SYSTEM_CLOCK = SystemClock()


def run_rules(
    current_status: PolicyStatus,
    events: Sequence[Any],
    rules: Sequence[TransitionRule] = RULE_SET,
) -> tuple[PolicyStatus, tuple[ReasonCode, ...], tuple[EvaluatedRule, ...]]:
    """Apply ``rules`` in order and return (new_status, reasons, evaluated).

    Reasons are de-duplicated in first-seen order and may be empty; the
    caller supplies the NO_TRANSITION fallback.
    """
    new_status = current_status
    reasons: list[ReasonCode] = []
    evaluated: list[EvaluatedRule] = []

    for rule in rules:
        matched = rule.matches(current_status, events)
        evaluated.append(EvaluatedRule(rule=rule.rule_id, matched=matched))
        if not matched:
            continue

        if rule.effect is not None:
            new_status = rule.effect.new_status
            if rule.effect.reason_code not in reasons:
                reasons.append(rule.effect.reason_code)

        if rule.terminates:
            break

    return new_status, tuple(reasons), tuple(evaluated)


@traced_engine(
    "policy_transition",
    RULE_VERSION,
    fingerprint_fields=("current_status", "events"),
)
def evaluate(
    current_status: PolicyStatus,
    events: Iterable[Any],
    clock: Clock | None = None,
) -> TransitionResult:
    """Evaluate whether a policy's status should transition.

    Args:
        current_status: Status before evaluation.
        events: Policy events for this evaluation; read once.
        clock: Source of the trace capture timestamp (SystemClock if None).

    Returns:
        TransitionResult with a freshly built DecisionTrace.
    """
    events = tuple(events)
    clock = clock or _SYSTEM_CLOCK

    inputs_hash = compute_inputs_hash(current_status, events)
    new_status, reasons, evaluated = run_rules(current_status, events)

    trace = DecisionTrace(
        rule_version=RULE_VERSION,
        evaluated_rules=evaluated,
        inputs_hash=inputs_hash,
        timestamp=clock.now_utc().isoformat(),
    )

    result = TransitionResult(
        previous_status=current_status,
        new_status=new_status,
        transition_applied=new_status != current_status,
        reason_codes=reasons or (ReasonCode.NO_TRANSITION,),
        decision_trace=trace,
    )

    logger.debug(
        "transition_evaluated",
        extra={
            "previous_status": current_status,
            "new_status": new_status,
            "transition_applied": result.transition_applied,
            "reason_codes": [r.value for r in result.reason_codes],
            "rules_evaluated": len(evaluated),
            "inputs_hash": inputs_hash,
        },
    )

    return result
