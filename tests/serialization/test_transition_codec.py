"""
Tests for the wire codec: request parsing, result serialization, and
the canonical inputs digest.

Tests cover:
- parse_status / parse_event / parse_request happy paths and rejections
- Stable field names in result_to_dict
- compute_inputs_hash key-order independence and event-order sensitivity
"""

from decimal import Decimal

import pytest

from policy_engines.transition import evaluate
from policy_kernel.codec import (
    compute_inputs_hash,
    event_to_dict,
    parse_event,
    parse_request,
    parse_status,
    request_to_dict,
    result_to_dict,
)
from policy_kernel.domain.events import ActivationEvent, FraudFlagEvent, PaymentFailureEvent
from policy_kernel.domain.status import PolicyStatus
from policy_kernel.exceptions import (
    DigestComputationError,
    InvalidStatusError,
    MalformedEventError,
    MalformedRequestError,
    RequestError,
    UnknownEventTypeError,
)
from tests.factories import (
    make_activation,
    make_payment_failure,
    wire_activation,
    wire_fraud_flag,
    wire_payment_failure,
    wire_request,
)


# =========================================================================
# Status
# =========================================================================


class TestParseStatus:

    @pytest.mark.parametrize("value", ["Pending", "Active", "Suspended", "Cancelled"])
    def test_known_statuses(self, value):
        assert parse_status(value).value == value

    def test_enum_passes_through(self):
        assert parse_status(PolicyStatus.ACTIVE) is PolicyStatus.ACTIVE

    @pytest.mark.parametrize("value", ["active", "Lapsed", "", None, 1])
    def test_unknown_status_rejected(self, value):
        with pytest.raises(InvalidStatusError) as exc_info:
            parse_status(value)
        assert exc_info.value.code == "INVALID_STATUS"


# =========================================================================
# Events
# =========================================================================


class TestParseEvent:

    def test_payment_failure(self):
        event = parse_event(wire_payment_failure(amount="250.75"))
        assert isinstance(event, PaymentFailureEvent)
        assert event.amount == Decimal("250.75")

    def test_payment_failure_numeric_amounts(self):
        assert parse_event(wire_payment_failure(amount=100)).amount == Decimal("100")
        assert parse_event(wire_payment_failure(amount=0.1)).amount == Decimal("0.1")

    def test_payment_failure_amount_defaults_to_zero(self):
        data = wire_payment_failure()
        del data["amount"]
        assert parse_event(data).amount == Decimal("0")

    @pytest.mark.parametrize("amount", ["abc", True, "NaN", "Infinity", [1]])
    def test_bad_amount_rejected(self, amount):
        with pytest.raises(MalformedEventError):
            parse_event(wire_payment_failure(amount=amount))

    def test_fraud_flag(self):
        event = parse_event(wire_fraud_flag(flag=True))
        assert isinstance(event, FraudFlagEvent)
        assert event.flag is True

    def test_fraud_flag_defaults_to_false(self):
        data = wire_fraud_flag()
        del data["flag"]
        assert parse_event(data).flag is False

    @pytest.mark.parametrize("flag", ["true", 1, None])
    def test_non_boolean_flag_rejected(self, flag):
        with pytest.raises(MalformedEventError):
            parse_event(wire_fraud_flag(flag=flag))

    def test_activation(self):
        assert isinstance(parse_event(wire_activation()), ActivationEvent)

    def test_extra_fields_ignored(self):
        data = {**wire_activation(), "channel": "web"}
        assert parse_event(data) == ActivationEvent(timestamp=data["timestamp"])

    def test_unknown_tag_rejected(self):
        with pytest.raises(UnknownEventTypeError) as exc_info:
            parse_event({"type": "ChargebackEvent", "timestamp": "t"}, index=3)
        assert exc_info.value.code == "UNKNOWN_EVENT_TYPE"
        assert exc_info.value.index == 3

    def test_missing_tag_rejected(self):
        with pytest.raises(UnknownEventTypeError):
            parse_event({"timestamp": "t"})

    @pytest.mark.parametrize("timestamp", [None, "", 12])
    def test_bad_timestamp_rejected(self, timestamp):
        with pytest.raises(MalformedEventError):
            parse_event({**wire_activation(), "timestamp": timestamp})

    def test_non_mapping_rejected(self):
        with pytest.raises(MalformedEventError):
            parse_event(["ActivationEvent"])


# =========================================================================
# Requests
# =========================================================================


class TestParseRequest:

    def test_full_request(self):
        request = parse_request(
            wire_request(
                "Active",
                [wire_payment_failure(), wire_payment_failure()],
                policy_ref="POL-001",
            )
        )
        assert request.current_status == PolicyStatus.ACTIVE
        assert len(request.events) == 2
        assert request.policy_ref == "POL-001"

    def test_events_optional(self):
        assert parse_request({"current_status": "Pending"}).events == ()
        assert parse_request({"current_status": "Pending", "events": None}).events == ()

    def test_missing_status_rejected(self):
        with pytest.raises(MalformedRequestError):
            parse_request({"events": []})

    @pytest.mark.parametrize("payload", [None, [], "Active", 5])
    def test_non_mapping_rejected(self, payload):
        with pytest.raises(MalformedRequestError):
            parse_request(payload)

    @pytest.mark.parametrize("events", ["ActivationEvent", {"type": "ActivationEvent"}, 7])
    def test_events_must_be_list(self, events):
        with pytest.raises(MalformedRequestError):
            parse_request({"current_status": "Active", "events": events})

    def test_policy_ref_must_be_string(self):
        with pytest.raises(MalformedRequestError):
            parse_request(wire_request(policy_ref=42))

    def test_event_error_carries_index(self):
        with pytest.raises(UnknownEventTypeError) as exc_info:
            parse_request(wire_request(events=[wire_activation(), {"type": "Bogus", "timestamp": "t"}]))
        assert exc_info.value.index == 1

    def test_all_rejections_are_request_errors(self):
        for payload in (
            None,
            {"current_status": "Lapsed"},
            wire_request(events=[{"type": "Bogus"}]),
            wire_request(events=[wire_fraud_flag(flag="yes")]),
        ):
            with pytest.raises(RequestError):
                parse_request(payload)


# =========================================================================
# Serialization
# =========================================================================


class TestSerialization:

    def test_result_field_names(self, deterministic_clock):
        result = evaluate(PolicyStatus.PENDING, [make_activation()], clock=deterministic_clock)
        body = result_to_dict(result)

        assert body["previous_status"] == "Pending"
        assert body["new_status"] == "Active"
        assert body["transition_applied"] is True
        assert body["reason_codes"] == ["POLICY_ACTIVATED"]
        trace = body["decision_trace"]
        assert set(trace) == {"rule_version", "evaluated_rules", "inputs_hash", "timestamp"}
        assert trace["evaluated_rules"][-1] == {"rule": "R4_PendingActivation", "matched": True}
        assert trace["timestamp"] == "2024-03-01T09:30:00+00:00"

    def test_event_to_dict_amount_is_string(self):
        data = event_to_dict(make_payment_failure(amount=Decimal("12.50")))
        assert data["amount"] == "12.50"
        assert data["type"] == "PaymentFailureEvent"

    def test_event_to_dict_rejects_unknown(self):
        with pytest.raises(TypeError):
            event_to_dict({"type": "ActivationEvent"})

    def test_request_to_dict_reparses_to_same_request(self):
        original = parse_request(
            wire_request("Active", [wire_payment_failure(), wire_fraud_flag()], policy_ref="P-9")
        )
        assert parse_request(request_to_dict(original)) == original

    def test_request_to_dict_omits_absent_policy_ref(self):
        assert "policy_ref" not in request_to_dict(parse_request(wire_request()))


# =========================================================================
# Inputs digest
# =========================================================================


class TestInputsHash:

    def test_prefixed_sha256(self):
        digest = compute_inputs_hash(PolicyStatus.ACTIVE, [])
        assert digest.startswith("sha256:")
        assert len(digest) == 71

    def test_wire_key_order_does_not_matter(self):
        a = parse_request({"current_status": "Active", "events": [
            {"type": "PaymentFailureEvent", "timestamp": "t1", "amount": "5"},
        ]})
        b = parse_request({"events": [
            {"amount": "5", "timestamp": "t1", "type": "PaymentFailureEvent"},
        ], "current_status": "Active"})
        assert compute_inputs_hash(a.current_status, a.events) == (
            compute_inputs_hash(b.current_status, b.events)
        )

    def test_event_order_matters(self):
        first = make_payment_failure(timestamp="2024-01-01T00:00:00Z")
        second = make_activation(timestamp="2024-01-02T00:00:00Z")
        assert compute_inputs_hash(PolicyStatus.ACTIVE, [first, second]) != (
            compute_inputs_hash(PolicyStatus.ACTIVE, [second, first])
        )

    def test_equivalent_amounts_hash_alike(self):
        a = make_payment_failure(amount=Decimal("100"))
        b = make_payment_failure(amount=Decimal("100.00"))
        assert compute_inputs_hash(PolicyStatus.ACTIVE, [a]) == (
            compute_inputs_hash(PolicyStatus.ACTIVE, [b])
        )

    def test_policy_ref_not_part_of_digest(self):
        with_ref = parse_request(wire_request(policy_ref="A"))
        without = parse_request(wire_request())
        assert compute_inputs_hash(with_ref.current_status, with_ref.events) == (
            compute_inputs_hash(without.current_status, without.events)
        )

    def test_unknown_objects_are_digestible(self):
        class Opaque:
            def __init__(self):
                self.note = "x"
                self._hidden = object()

        digest = compute_inputs_hash(PolicyStatus.ACTIVE, [Opaque(), 3, {"a": 1.5}])
        assert digest.startswith("sha256:")

    def test_undigestible_input_raises_digest_error(self):
        class Exploding:
            __slots__ = ()

            def __str__(self):
                raise ValueError("no")

        with pytest.raises(DigestComputationError) as exc_info:
            compute_inputs_hash(PolicyStatus.ACTIVE, [Exploding()])
        assert exc_info.value.code == "DIGEST_COMPUTATION_FAILED"
