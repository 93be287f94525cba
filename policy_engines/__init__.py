"""
Module: policy_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    policy lifecycle decision engine.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import policy_kernel/domain types and the kernel codec.
    MUST NOT import policy_services.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()``; the trace timestamp
      comes from an injected ``Clock``.
    - Determinism: identical inputs always produce identical outputs,
      apart from the trace capture timestamp.

Audit relevance:
    Every evaluation is traced via the ``@traced_engine`` decorator
    (see ``policy_engines.tracer``), emitting POLICY_ENGINE_TRACE log
    records that include engine name, version, input fingerprint, and
    duration.

Usage:
    from policy_engines import evaluate
    from policy_kernel.domain import PolicyStatus, ActivationEvent

    result = evaluate(PolicyStatus.PENDING, [ActivationEvent("2024-01-01T00:00:00Z")])
"""

from policy_engines.rules import (
    PAYMENT_FAILURE_THRESHOLD,
    RULE_SET,
    RULE_VERSION,
    RuleEffect,
    TransitionRule,
)
from policy_engines.tracer import compute_input_fingerprint, traced_engine
from policy_engines.transition import evaluate, run_rules

__all__ = [
    "PAYMENT_FAILURE_THRESHOLD",
    "RULE_SET",
    "RULE_VERSION",
    "RuleEffect",
    "TransitionRule",
    "compute_input_fingerprint",
    "traced_engine",
    "evaluate",
    "run_rules",
]
