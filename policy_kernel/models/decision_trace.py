"""
Module: policy_kernel.models.decision_trace
Responsibility: ORM persistence for decision traces -- the audit sink that
    keeps, per evaluation, which rules were checked and matched, the outcome,
    and the canonical inputs needed to replay it.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Append-only: rows are never updated or deleted (ORM listeners in
      db/immutability.py).
    - inputs_hash is the engine's ``sha256:<hex>`` digest of ``inputs``.
    - outcome_hash covers rule_version, statuses, reason_codes and
      evaluated_rules, so tampering with any of them is detectable.

Audit relevance:
    Records are keyed by inputs_hash for deduplication and replay; the
    stored inputs let an auditor re-run the engine and compare outcomes.
"""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from policy_kernel.db.base import Base


class DecisionTraceRecord(Base):
    """
    Persisted decision trace for one evaluation.

    Contract:
        Created once by TraceRecorder from a TransitionResult and the
        request that produced it.  Never modified afterwards.

    Non-goals:
        - Does NOT store policy or event history beyond the inputs of this
          single evaluation.
    """

    __tablename__ = "decision_traces"

    __table_args__ = (
        Index("idx_decision_trace_inputs", "inputs_hash", "rule_version"),
        Index("idx_decision_trace_policy_ref", "policy_ref"),
    )

    inputs_hash: Mapped[str] = mapped_column(String(71), nullable=False)
    rule_version: Mapped[str] = mapped_column(String(50), nullable=False)
    policy_ref: Mapped[str | None] = mapped_column(String(200), nullable=True)

    previous_status: Mapped[str] = mapped_column(String(20), nullable=False)
    new_status: Mapped[str] = mapped_column(String(20), nullable=False)
    transition_applied: Mapped[bool] = mapped_column(Boolean, nullable=False)

    # Ordered reason code values
    reason_codes: Mapped[list] = mapped_column(JSON, nullable=False)

    # Ordered [{"rule": ..., "matched": ...}] entries
    evaluated_rules: Mapped[list] = mapped_column(JSON, nullable=False)

    # Canonical request dict (current_status, events)
    inputs: Mapped[dict] = mapped_column(JSON, nullable=False)

    outcome_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    # Trace capture timestamp as emitted by the engine (ISO-8601)
    evaluated_at: Mapped[str] = mapped_column(String(40), nullable=False)

    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<DecisionTraceRecord {self.id} {self.previous_status}->{self.new_status} "
            f"{self.inputs_hash[:19]}>"
        )
