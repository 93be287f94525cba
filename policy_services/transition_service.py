"""
policy_services.transition_service -- Request/response surface of the engine.

Responsibility:
    Accepts a wire request ``{current_status, events[], policy_ref?}``,
    rejects malformed requests before they reach the engine, runs one
    evaluation, optionally records the decision trace, and returns the
    TransitionResult serialized verbatim.  Also replays stored traces.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    The only layer that holds a database session and wall-clock time
    alongside the pure engine.

Invariants enforced:
    - One request maps to exactly one evaluation.
    - RequestError is converted to a 400 response here and nowhere else;
      every other error propagates.
    - Recording happens in the caller's transaction (flush only).

Failure modes:
    - DigestComputationError propagates (fatal, unexpected).
    - TraceConflictError / TraceIntegrityError propagate from recording.
    - ReplayMismatchError when a stored trace no longer reproduces.

Audit relevance:
    Every request is logged as ``request_rejected`` or
    ``transition_decided`` with the correlation id bound in LogContext.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from policy_config.schema import EngineSettings
from policy_engines.transition import evaluate
from policy_kernel.codec import parse_request, result_to_dict
from policy_kernel.domain.clock import Clock, SystemClock
from policy_kernel.domain.trace import TransitionRequest, TransitionResult
from policy_kernel.exceptions import ReplayMismatchError, RequestError
from policy_kernel.logging_config import LogContext, get_logger
from policy_kernel.selectors.trace_selector import TraceSelector
from policy_kernel.services.trace_recorder import (
    TraceRecorder,
    outcome_hash_for,
)

logger = get_logger("services.transition")

HTTP_OK = 200
HTTP_BAD_REQUEST = 400


@dataclass(frozen=True)
class ServiceResponse:
    """Status code plus JSON-ready body."""

    status_code: int
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status_code == HTTP_OK


class PolicyTransitionService:
    """
    Evaluate policy transitions for wire requests.

    Contract:
        ``handle(payload)`` returns a ServiceResponse; the body of a 200
        response is ``result_to_dict(result)`` (plus ``trace_record_id``
        when the trace was recorded).

    Non-goals:
        - Does NOT persist policy status; acting on ``new_status`` is the
          caller's job.
        - Does NOT commit; wrap calls in ``session_scope()``.

    Usage:
        with session_scope() as session:
            service = PolicyTransitionService(settings, session=session)
            response = service.handle({"current_status": "Active", "events": []})
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        session: Session | None = None,
        clock: Clock | None = None,
    ):
        self._settings = settings or EngineSettings()
        self._session = session
        self._clock = clock or SystemClock()

    def handle(self, payload: Any, correlation_id: str | None = None) -> ServiceResponse:
        """Process one wire request."""
        correlation_id = correlation_id or str(uuid4())
        with LogContext.bind(correlation_id=correlation_id):
            try:
                request = parse_request(payload)
            except RequestError as exc:
                logger.warning(
                    "request_rejected",
                    extra={"error_code": exc.code, "error_message": str(exc)},
                )
                return ServiceResponse(
                    status_code=HTTP_BAD_REQUEST,
                    body={"error": {"code": exc.code, "message": str(exc)}},
                )

            result, record_id = self.decide(request)
            body = result_to_dict(result)
            if record_id is not None:
                body["trace_record_id"] = str(record_id)
            return ServiceResponse(status_code=HTTP_OK, body=body)

    def decide(self, request: TransitionRequest) -> tuple[TransitionResult, UUID | None]:
        """Evaluate a parsed request and record its trace when configured."""
        result = evaluate(request.current_status, request.events, clock=self._clock)
        trace = result.decision_trace

        with LogContext.bind(
            policy_ref=request.policy_ref,
            inputs_hash=trace.inputs_hash,
            rule_version=trace.rule_version,
        ):
            record_id = None
            if self._session is not None and self._settings.record_traces:
                recorder = TraceRecorder(
                    self._session,
                    clock=self._clock,
                    deduplicate=self._settings.deduplicate_traces,
                )
                record_id = recorder.record(result, request).id

            logger.info(
                "transition_decided",
                extra={
                    "previous_status": result.previous_status,
                    "new_status": result.new_status,
                    "transition_applied": result.transition_applied,
                    "reason_codes": [code.value for code in result.reason_codes],
                    "matched_rules": [r.value for r in trace.matched_rules],
                    "trace_record_id": str(record_id) if record_id else None,
                },
            )
        return result, record_id

    def replay(self, record_id: UUID) -> TransitionResult:
        """
        Re-evaluate a stored trace's inputs and compare the outcome.

        Raises:
            RuntimeError: if the service has no session.
            TraceNotFoundError: if no record has that ID.
            TraceIntegrityError: if the stored trace fails verification.
            ReplayMismatchError: if the replayed outcome differs.
        """
        if self._session is None:
            raise RuntimeError("replay requires a database session")

        view = TraceSelector(self._session).get(record_id)
        TraceRecorder(self._session, clock=self._clock).verify(view)

        request = parse_request(view.inputs)
        result = evaluate(request.current_status, request.events, clock=self._clock)
        replayed_hash = outcome_hash_for(result)

        if replayed_hash != view.outcome_hash or result.decision_trace.rule_version != view.rule_version:
            logger.error(
                "replay_mismatch",
                extra={
                    "record_id": str(record_id),
                    "recorded_outcome_hash": view.outcome_hash,
                    "replayed_outcome_hash": replayed_hash,
                },
            )
            raise ReplayMismatchError(str(record_id), view.outcome_hash, replayed_hash)

        logger.info("replay_matched", extra={"record_id": str(record_id)})
        return result
