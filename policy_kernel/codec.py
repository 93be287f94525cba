"""
Codec -- request parsing, result serialization, inputs digest.

Responsibility:
    Translates between the wire shape of a transition request/response and
    the kernel's domain types, and computes the canonical inputs digest
    that binds a decision trace to the inputs that produced it.

Architecture position:
    Kernel boundary.  Imports domain types and utils/hashing only.  Used by
    the engine (digest), the trace recorder (replay/verify), and the
    service layer (request/response).

Invariants enforced:
    - Parsing discriminates events by their ``type`` tag only; payload
      fields beyond what a variant requires are ignored.
    - Serialized field names match the domain dataclasses exactly.
    - ``compute_inputs_hash`` is a pure function of (status, events):
      dict key order does not matter, event order does.

Failure modes:
    - InvalidStatusError / UnknownEventTypeError / MalformedEventError /
      MalformedRequestError on bad requests (client errors).
    - DigestComputationError if the inputs cannot be canonicalized.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from decimal import Decimal, InvalidOperation
from typing import Any

from policy_kernel.domain.events import (
    EVENT_TYPES,
    ActivationEvent,
    FraudFlagEvent,
    PaymentFailureEvent,
    is_policy_event,
)
from policy_kernel.domain.status import PolicyStatus
from policy_kernel.domain.trace import (
    DecisionTrace,
    TransitionRequest,
    TransitionResult,
)
from policy_kernel.exceptions import (
    DigestComputationError,
    InvalidStatusError,
    MalformedEventError,
    MalformedRequestError,
    UnknownEventTypeError,
)
from policy_kernel.utils.hashing import prefixed_digest

# =========================================================================
# Parsing
# =========================================================================


def parse_status(value: Any) -> PolicyStatus:
    """Parse a wire status value (``"Active"``) into a PolicyStatus."""
    if isinstance(value, PolicyStatus):
        return value
    try:
        return PolicyStatus(value)
    except ValueError:
        raise InvalidStatusError(value) from None


def _parse_amount(raw: Any, index: int | None) -> Decimal:
    if raw is None:
        return Decimal("0")
    if isinstance(raw, bool):
        raise MalformedEventError(f"amount must be numeric, got {raw!r}", index)
    try:
        amount = Decimal(str(raw)) if isinstance(raw, float) else Decimal(raw)
    except (InvalidOperation, TypeError, ValueError):
        raise MalformedEventError(f"amount must be numeric, got {raw!r}", index) from None
    if not amount.is_finite():
        raise MalformedEventError(f"amount must be finite, got {raw!r}", index)
    try:
        # The digest normalizes amounts; reject exponents the context cannot hold
        amount.normalize()
    except ArithmeticError:
        raise MalformedEventError(f"amount out of range, got {raw!r}", index) from None
    return amount


def parse_event(data: Any, index: int | None = None):
    """
    Parse one wire event into its tagged variant.

    Args:
        data: Mapping with a ``type`` tag and the variant's fields.
        index: Position in the request, used only in error messages.

    Raises:
        MalformedEventError: ``data`` is not a mapping, or a field cannot
            be coerced.
        UnknownEventTypeError: the tag is not a known variant.
    """
    if not isinstance(data, Mapping):
        raise MalformedEventError(f"expected an object, got {type(data).__name__}", index)

    event_type = data.get("type")
    if not isinstance(event_type, str) or event_type not in EVENT_TYPES:
        raise UnknownEventTypeError(event_type, index)

    timestamp = data.get("timestamp")
    if not isinstance(timestamp, str) or not timestamp:
        raise MalformedEventError("timestamp must be a non-empty string", index)

    if event_type == PaymentFailureEvent.event_type:
        return PaymentFailureEvent(
            timestamp=timestamp,
            amount=_parse_amount(data.get("amount"), index),
        )
    if event_type == FraudFlagEvent.event_type:
        flag = data.get("flag", False)
        if not isinstance(flag, bool):
            raise MalformedEventError(f"flag must be a boolean, got {flag!r}", index)
        return FraudFlagEvent(timestamp=timestamp, flag=flag)
    return ActivationEvent(timestamp=timestamp)


def parse_request(data: Any) -> TransitionRequest:
    """
    Parse a ``{current_status, events[], policy_ref?}`` request.

    Raises:
        MalformedRequestError: envelope is not a mapping, or ``events`` is
            not a list, or ``policy_ref`` is not a string.
        InvalidStatusError, UnknownEventTypeError, MalformedEventError.
    """
    if not isinstance(data, Mapping):
        raise MalformedRequestError(f"expected an object, got {type(data).__name__}")
    if "current_status" not in data:
        raise MalformedRequestError("current_status is required")

    status = parse_status(data["current_status"])

    raw_events = data.get("events", [])
    if raw_events is None:
        raw_events = []
    if isinstance(raw_events, (str, bytes)) or not isinstance(raw_events, Sequence):
        raise MalformedRequestError("events must be a list")

    policy_ref = data.get("policy_ref")
    if policy_ref is not None and not isinstance(policy_ref, str):
        raise MalformedRequestError("policy_ref must be a string")

    events = tuple(parse_event(item, i) for i, item in enumerate(raw_events))
    return TransitionRequest(current_status=status, events=events, policy_ref=policy_ref)


# =========================================================================
# Serialization
# =========================================================================


def event_to_dict(event: Any) -> dict[str, Any]:
    """Wire form of a known event variant (amount as a string)."""
    if isinstance(event, PaymentFailureEvent):
        return {
            "type": event.event_type,
            "timestamp": event.timestamp,
            "amount": str(event.amount),
        }
    if isinstance(event, FraudFlagEvent):
        return {"type": event.event_type, "timestamp": event.timestamp, "flag": event.flag}
    if isinstance(event, ActivationEvent):
        return {"type": event.event_type, "timestamp": event.timestamp}
    raise TypeError(f"Not a policy event: {type(event).__name__}")


def request_to_dict(request: TransitionRequest) -> dict[str, Any]:
    data: dict[str, Any] = {
        "current_status": request.current_status.value,
        "events": [event_to_dict(e) for e in request.events],
    }
    if request.policy_ref is not None:
        data["policy_ref"] = request.policy_ref
    return data


def trace_to_dict(trace: DecisionTrace) -> dict[str, Any]:
    return {
        "rule_version": trace.rule_version,
        "evaluated_rules": [
            {"rule": r.rule.value, "matched": r.matched} for r in trace.evaluated_rules
        ],
        "inputs_hash": trace.inputs_hash,
        "timestamp": trace.timestamp,
    }


def result_to_dict(result: TransitionResult) -> dict[str, Any]:
    """Serialize a TransitionResult with stable field names."""
    return {
        "previous_status": result.previous_status.value,
        "new_status": result.new_status.value,
        "transition_applied": result.transition_applied,
        "reason_codes": [code.value for code in result.reason_codes],
        "decision_trace": trace_to_dict(result.decision_trace),
    }


# =========================================================================
# Inputs digest
# =========================================================================


def _plain(value: Any) -> Any:
    """Reduce an arbitrary value to something canonical JSON accepts."""
    if value is None or isinstance(value, (bool, int, str, Decimal)):
        return value
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return str(value)


def _digest_amount(amount: Any) -> Any:
    """
    Normalized string for finite amounts, so ``100`` and ``100.00`` hash
    alike.  NaN, infinities and exponents the decimal context cannot
    normalize fall back to their plain string form.
    """
    if not isinstance(amount, Decimal):
        return _plain(amount)
    if amount.is_finite():
        try:
            return str(amount.normalize())
        except ArithmeticError:
            pass
    return str(amount)


def _digest_fields(event: Any) -> dict[str, Any]:
    """Digest form of one event."""
    if isinstance(event, PaymentFailureEvent):
        return {
            "type": event.event_type,
            "timestamp": event.timestamp,
            "amount": _digest_amount(event.amount),
        }
    if is_policy_event(event):
        return event_to_dict(event)

    # Unknown shapes still contribute to the digest so it stays a pure
    # function of the inputs.
    if dataclasses.is_dataclass(event) and not isinstance(event, type):
        fields = {f.name: getattr(event, f.name) for f in dataclasses.fields(event)}
    elif isinstance(event, Mapping):
        fields = dict(event)
    elif hasattr(event, "__dict__"):
        fields = {k: v for k, v in vars(event).items() if not k.startswith("_")}
    else:
        fields = {"value": event}
    return {"type": f"unknown:{type(event).__qualname__}", "fields": _plain(fields)}


def inputs_payload(current_status: Any, events: Sequence[Any]) -> dict[str, Any]:
    status = current_status.value if isinstance(current_status, PolicyStatus) else _plain(current_status)
    return {
        "current_status": status,
        "events": [_digest_fields(e) for e in events],
    }


def compute_inputs_hash(current_status: Any, events: Sequence[Any]) -> str:
    """
    Deterministic ``sha256:<hex>`` digest of (current_status, events).

    Raises:
        DigestComputationError: if the inputs cannot be canonicalized.
    """
    try:
        return prefixed_digest(inputs_payload(current_status, events))
    except (TypeError, ValueError, ArithmeticError) as exc:
        raise DigestComputationError(f"{type(exc).__name__}: {exc}") from exc
