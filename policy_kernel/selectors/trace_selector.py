"""
TraceSelector -- read path for persisted decision traces.

Responsibility:
    Look up decision trace records by ID, by inputs digest, or by the
    caller's policy reference, and return them as frozen DTOs.

Architecture position:
    Kernel > Selectors -- read-only query layer.

Invariants enforced:
    - Read-only: never adds, flushes, or deletes.
    - Results are ordered by recorded_at so the first record for a digest
      is always the canonical one.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select

from policy_kernel.exceptions import TraceNotFoundError
from policy_kernel.models.decision_trace import DecisionTraceRecord
from policy_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class DecisionTraceView:
    """Read-only view of a stored decision trace."""

    id: UUID
    inputs_hash: str
    rule_version: str
    policy_ref: str | None
    previous_status: str
    new_status: str
    transition_applied: bool
    reason_codes: tuple[str, ...]
    evaluated_rules: tuple[dict[str, Any], ...]
    inputs: dict[str, Any]
    outcome_hash: str
    evaluated_at: str
    recorded_at: datetime

    @classmethod
    def from_record(cls, record: DecisionTraceRecord) -> DecisionTraceView:
        return cls(
            id=record.id,
            inputs_hash=record.inputs_hash,
            rule_version=record.rule_version,
            policy_ref=record.policy_ref,
            previous_status=record.previous_status,
            new_status=record.new_status,
            transition_applied=record.transition_applied,
            reason_codes=tuple(record.reason_codes),
            evaluated_rules=tuple(dict(r) for r in record.evaluated_rules),
            inputs=dict(record.inputs),
            outcome_hash=record.outcome_hash,
            evaluated_at=record.evaluated_at,
            recorded_at=record.recorded_at,
        )


class TraceSelector(BaseSelector[DecisionTraceRecord]):
    """Queries over the decision trace store."""

    def get(self, record_id: UUID) -> DecisionTraceView:
        """
        Fetch one trace by ID.

        Raises:
            TraceNotFoundError: if no record has that ID.
        """
        record = self.session.get(DecisionTraceRecord, record_id)
        if record is None:
            raise TraceNotFoundError(str(record_id))
        return DecisionTraceView.from_record(record)

    def find_by_inputs_hash(
        self,
        inputs_hash: str,
        rule_version: str | None = None,
    ) -> list[DecisionTraceView]:
        """All traces for an inputs digest, oldest first."""
        stmt = select(DecisionTraceRecord).where(
            DecisionTraceRecord.inputs_hash == inputs_hash
        )
        if rule_version is not None:
            stmt = stmt.where(DecisionTraceRecord.rule_version == rule_version)
        stmt = stmt.order_by(DecisionTraceRecord.recorded_at, DecisionTraceRecord.id)
        return [DecisionTraceView.from_record(r) for r in self.session.scalars(stmt)]

    def list_for_policy(self, policy_ref: str) -> list[DecisionTraceView]:
        """All traces recorded under a caller policy reference, oldest first."""
        stmt = (
            select(DecisionTraceRecord)
            .where(DecisionTraceRecord.policy_ref == policy_ref)
            .order_by(DecisionTraceRecord.recorded_at, DecisionTraceRecord.id)
        )
        return [DecisionTraceView.from_record(r) for r in self.session.scalars(stmt)]
