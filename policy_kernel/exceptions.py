"""
Typed Exception Hierarchy for the Policy Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the decision engine must tell a bad request apart from a broken
audit trail without parsing message strings.  Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE attribute (machine-readable, API-safe)
  3. Structured DATA (not just a message string)

Example - RIGHT way to handle errors:
    try:
        request = parse_request(payload)
    except RequestError as e:
        return {"error": {"code": e.code, "message": str(e)}}

The decision engine itself never raises on malformed events; these
exceptions belong to the layers around it (codec, digest, audit sink,
configuration).

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from PolicyKernelError:

    PolicyKernelError (base)
    |
    +-- RequestError                  -> client error, rejected before the engine
    |   +-- InvalidStatusError
    |   +-- UnknownEventTypeError
    |   +-- MalformedEventError
    |   +-- MalformedRequestError
    |
    +-- DigestError                   -> fatal, unexpected
    |   +-- DigestComputationError
    |
    +-- AuditError
    |   +-- TraceNotFoundError
    |   +-- TraceConflictError
    |   +-- TraceIntegrityError
    |   +-- ReplayMismatchError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- ConfigError
        +-- InvalidConfigError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Request         | INVALID_STATUS              | Status is not a PolicyStatus value
                | UNKNOWN_EVENT_TYPE          | Event tag is not a known variant
                | MALFORMED_EVENT             | Event payload cannot be coerced
                | MALFORMED_REQUEST           | Request envelope is not usable
----------------|-----------------------------|-----------------------------------------
Digest          | DIGEST_COMPUTATION_FAILED   | Canonical serialization/hash failed
----------------|-----------------------------|-----------------------------------------
Audit           | TRACE_NOT_FOUND             | No stored trace with that ID
                | TRACE_CONFLICT              | Same inputs/version, different outcome
                | TRACE_INTEGRITY_VIOLATION   | Stored trace fails hash verification
                | REPLAY_MISMATCH             | Re-evaluation disagrees with the record
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Update/delete of an append-only record
----------------|-----------------------------|-----------------------------------------
Config          | INVALID_CONFIG              | Settings file has bad keys or types
"""


class PolicyKernelError(Exception):
    """
    Base exception for all policy kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "POLICY_KERNEL_ERROR"


# Request-related exceptions


class RequestError(PolicyKernelError):
    """Base exception for requests rejected before reaching the engine."""

    code: str = "REQUEST_ERROR"


class InvalidStatusError(RequestError):
    """Status value is not one of the PolicyStatus members."""

    code: str = "INVALID_STATUS"

    def __init__(self, value: object):
        self.value = repr(value)
        super().__init__(f"Invalid policy status: {value!r}")


class UnknownEventTypeError(RequestError):
    """Event tag does not name a known event variant."""

    code: str = "UNKNOWN_EVENT_TYPE"

    def __init__(self, event_type: object, index: int | None = None):
        self.event_type = repr(event_type)
        self.index = index
        where = f" at index {index}" if index is not None else ""
        super().__init__(f"Unknown event type{where}: {event_type!r}")


class MalformedEventError(RequestError):
    """Event payload is present but cannot be coerced into its variant."""

    code: str = "MALFORMED_EVENT"

    def __init__(self, reason: str, index: int | None = None):
        self.reason = reason
        self.index = index
        where = f" at index {index}" if index is not None else ""
        super().__init__(f"Malformed event{where}: {reason}")


class MalformedRequestError(RequestError):
    """Request envelope is missing required fields or has the wrong shape."""

    code: str = "MALFORMED_REQUEST"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Malformed request: {reason}")


# Digest-related exceptions


class DigestError(PolicyKernelError):
    """Base exception for digest computation errors."""

    code: str = "DIGEST_ERROR"


class DigestComputationError(DigestError):
    """
    Canonical serialization or hashing of the inputs failed.

    Hashing is a pure local computation, so this is never expected and is
    treated as fatal by every caller.
    """

    code: str = "DIGEST_COMPUTATION_FAILED"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Inputs digest could not be computed: {reason}")


# Audit-related exceptions


class AuditError(PolicyKernelError):
    """Base exception for decision-trace audit errors."""

    code: str = "AUDIT_ERROR"


class TraceNotFoundError(AuditError):
    """No decision trace record exists with the given ID."""

    code: str = "TRACE_NOT_FOUND"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Decision trace not found: {record_id}")


class TraceConflictError(AuditError):
    """
    A trace with the same inputs and rule version already exists but
    records a different outcome.

    Identical inputs under the same rule version must always produce the
    same outcome, so this indicates tampering or a rule-set change that
    was not versioned.
    """

    code: str = "TRACE_CONFLICT"

    def __init__(
        self,
        inputs_hash: str,
        rule_version: str,
        existing_outcome_hash: str,
        new_outcome_hash: str,
    ):
        self.inputs_hash = inputs_hash
        self.rule_version = rule_version
        self.existing_outcome_hash = existing_outcome_hash
        self.new_outcome_hash = new_outcome_hash
        super().__init__(
            f"Conflicting outcome for inputs {inputs_hash} under rule version "
            f"{rule_version}: stored {existing_outcome_hash}, new {new_outcome_hash}"
        )


class TraceIntegrityError(AuditError):
    """Stored decision trace does not match its recorded hashes."""

    code: str = "TRACE_INTEGRITY_VIOLATION"

    def __init__(self, record_id: str, field: str, expected_hash: str, actual_hash: str):
        self.record_id = record_id
        self.field = field
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash
        super().__init__(
            f"Integrity check failed for trace {record_id} ({field}): "
            f"expected {expected_hash}, computed {actual_hash}"
        )


class ReplayMismatchError(AuditError):
    """Re-evaluating a stored trace's inputs produced a different outcome."""

    code: str = "REPLAY_MISMATCH"

    def __init__(self, record_id: str, expected_outcome_hash: str, replayed_outcome_hash: str):
        self.record_id = record_id
        self.expected_outcome_hash = expected_outcome_hash
        self.replayed_outcome_hash = replayed_outcome_hash
        super().__init__(
            f"Replay of trace {record_id} diverged: "
            f"recorded {expected_outcome_hash}, replayed {replayed_outcome_hash}"
        )


# Immutability exceptions


class ImmutabilityError(PolicyKernelError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Cannot modify {entity_type} {entity_id}: {reason}")


# Configuration exceptions


class ConfigError(PolicyKernelError):
    """Base exception for configuration errors."""

    code: str = "CONFIG_ERROR"


class InvalidConfigError(ConfigError):
    """Settings file contains unknown keys or values of the wrong type."""

    code: str = "INVALID_CONFIG"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid configuration in {source}: {reason}")
