"""
TraceRecorder -- append-only audit sink for decision traces.

Responsibility:
    Persists the decision trace of an evaluation together with the
    canonical inputs that produced it, deduplicates repeated evaluations
    of identical inputs, and verifies stored traces against their hashes.

Architecture position:
    Kernel > Services -- imperative shell.
    Called by PolicyTransitionService after the engine returns.  The
    engine itself never persists anything.

Invariants enforced:
    - The request digest must equal the trace's inputs_hash before a
      record is written (a trace is only ever bound to its own inputs).
    - Deduplication: with ``deduplicate=True`` at most one record
      exists per (inputs_hash, rule_version, policy_ref); a repeat with
      the same outcome returns the existing record, a repeat with a
      different outcome raises TraceConflictError.
    - Records are append-only (see db/immutability.py).

Failure modes:
    - TraceIntegrityError: request/trace digest mismatch on record, or
      stored fields that no longer match their hashes on verify.
    - TraceConflictError: same inputs, rule version and policy, different outcome.

Audit relevance:
    Every write is logged as ``trace_recorded`` or ``trace_deduplicated``
    with the inputs hash, rule version and outcome hash.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from policy_kernel.codec import (
    compute_inputs_hash,
    parse_request,
    request_to_dict,
    trace_to_dict,
)
from policy_kernel.domain.clock import Clock, SystemClock
from policy_kernel.domain.trace import TransitionRequest, TransitionResult
from policy_kernel.exceptions import (
    RequestError,
    TraceConflictError,
    TraceIntegrityError,
)
from policy_kernel.logging_config import get_logger
from policy_kernel.models.decision_trace import DecisionTraceRecord
from policy_kernel.services.base import BaseService
from policy_kernel.utils.hashing import hash_outcome

logger = get_logger("services.trace_recorder")


def outcome_hash_for(result: TransitionResult) -> str:
    """Outcome hash of an in-memory result (everything but the timestamp)."""
    return hash_outcome(
        rule_version=result.decision_trace.rule_version,
        previous_status=result.previous_status.value,
        new_status=result.new_status.value,
        reason_codes=[code.value for code in result.reason_codes],
        evaluated_rules=trace_to_dict(result.decision_trace)["evaluated_rules"],
    )


def outcome_hash_of_record(record: Any) -> str:
    """Outcome hash recomputed from stored fields (record or view)."""
    return hash_outcome(
        rule_version=record.rule_version,
        previous_status=record.previous_status,
        new_status=record.new_status,
        reason_codes=list(record.reason_codes),
        evaluated_rules=[dict(r) for r in record.evaluated_rules],
    )


class TraceRecorder(BaseService[DecisionTraceRecord]):
    """
    Service for recording decision traces.

    Contract:
        Accepts a TransitionResult and the TransitionRequest it was
        evaluated from, writes (or reuses) a DecisionTraceRecord and
        flushes within the caller's transaction.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
        - Does NOT evaluate rules (that is the engine).

    Usage:
        recorder = TraceRecorder(session, clock)
        record = recorder.record(result, request)
        recorder.verify(record)
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        deduplicate: bool = True,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._deduplicate = deduplicate

    def record(
        self,
        result: TransitionResult,
        request: TransitionRequest,
    ) -> DecisionTraceRecord:
        """
        Record the decision trace of ``result``.

        Raises:
            TraceIntegrityError: if ``request`` does not digest to the
                trace's inputs_hash.
            TraceConflictError: if deduplicating and a stored trace for the
                same inputs, rule version and policy_ref has a different outcome.
        """
        trace = result.decision_trace
        request_hash = compute_inputs_hash(request.current_status, request.events)
        if request_hash != trace.inputs_hash:
            raise TraceIntegrityError(
                record_id="<unrecorded>",
                field="inputs_hash",
                expected_hash=trace.inputs_hash,
                actual_hash=request_hash,
            )

        outcome_hash = outcome_hash_for(result)

        if self._deduplicate:
            existing = self._find_existing(
                trace.inputs_hash, trace.rule_version, request.policy_ref
            )
            if existing is not None:
                if existing.outcome_hash != outcome_hash:
                    logger.error(
                        "trace_conflict",
                        extra={
                            "inputs_hash": trace.inputs_hash,
                            "rule_version": trace.rule_version,
                            "existing_outcome_hash": existing.outcome_hash,
                            "new_outcome_hash": outcome_hash,
                        },
                    )
                    raise TraceConflictError(
                        inputs_hash=trace.inputs_hash,
                        rule_version=trace.rule_version,
                        existing_outcome_hash=existing.outcome_hash,
                        new_outcome_hash=outcome_hash,
                    )
                logger.info(
                    "trace_deduplicated",
                    extra={
                        "record_id": str(existing.id),
                        "inputs_hash": trace.inputs_hash,
                        "rule_version": trace.rule_version,
                    },
                )
                return existing

        inputs = request_to_dict(request)
        inputs.pop("policy_ref", None)

        record = DecisionTraceRecord(
            inputs_hash=trace.inputs_hash,
            rule_version=trace.rule_version,
            policy_ref=request.policy_ref,
            previous_status=result.previous_status.value,
            new_status=result.new_status.value,
            transition_applied=result.transition_applied,
            reason_codes=[code.value for code in result.reason_codes],
            evaluated_rules=trace_to_dict(trace)["evaluated_rules"],
            inputs=inputs,
            outcome_hash=outcome_hash,
            evaluated_at=trace.timestamp,
            recorded_at=self._clock.now_utc(),
        )
        self.session.add(record)
        self.session.flush()

        logger.info(
            "trace_recorded",
            extra={
                "record_id": str(record.id),
                "inputs_hash": record.inputs_hash,
                "rule_version": record.rule_version,
                "outcome_hash": outcome_hash,
                "transition_applied": record.transition_applied,
            },
        )
        return record

    def verify(self, record: Any) -> bool:
        """
        Check a stored trace (record or DecisionTraceView) against its hashes.

        Returns:
            True when both the inputs digest and the outcome hash match.

        Raises:
            TraceIntegrityError: on the first mismatch found.
        """
        record_id = str(record.id)

        try:
            request = parse_request(record.inputs)
        except RequestError as exc:
            raise TraceIntegrityError(
                record_id=record_id,
                field="inputs",
                expected_hash=record.inputs_hash,
                actual_hash=f"<unparseable: {exc.code}>",
            ) from exc

        inputs_hash = compute_inputs_hash(request.current_status, request.events)
        if inputs_hash != record.inputs_hash:
            raise TraceIntegrityError(record_id, "inputs_hash", record.inputs_hash, inputs_hash)

        outcome_hash = outcome_hash_of_record(record)
        if outcome_hash != record.outcome_hash:
            raise TraceIntegrityError(record_id, "outcome_hash", record.outcome_hash, outcome_hash)

        if record.transition_applied != (record.new_status != record.previous_status):
            raise TraceIntegrityError(
                record_id,
                "transition_applied",
                str(record.new_status != record.previous_status),
                str(record.transition_applied),
            )

        logger.debug("trace_verified", extra={"record_id": record_id})
        return True

    def _find_existing(
        self, inputs_hash: str, rule_version: str, policy_ref: str | None
    ) -> DecisionTraceRecord | None:
        # policy_ref is outside the digest, so each policy keeps its own record
        same_policy = (
            DecisionTraceRecord.policy_ref.is_(None)
            if policy_ref is None
            else DecisionTraceRecord.policy_ref == policy_ref
        )
        stmt = (
            select(DecisionTraceRecord)
            .where(
                DecisionTraceRecord.inputs_hash == inputs_hash,
                DecisionTraceRecord.rule_version == rule_version,
                same_policy,
            )
            .order_by(DecisionTraceRecord.recorded_at)
            .limit(1)
        )
        return self.session.scalars(stmt).first()
