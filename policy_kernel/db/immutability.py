"""
ORM-level immutability enforcement for append-only audit records.

Decision traces are evidence: once written they are never updated or
deleted.  We register mapper listeners that intercept UPDATE and DELETE
on DecisionTraceRecord and raise ImmutabilityViolationError before the
statement reaches the database.

Usage:
    from policy_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # Called once at startup

For tests that need to bypass:
    from policy_kernel.db.immutability import unregister_immutability_listeners
    unregister_immutability_listeners()
    # ... test code ...
    register_immutability_listeners()
"""

from sqlalchemy import event

from policy_kernel.exceptions import ImmutabilityViolationError
from policy_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _check_decision_trace_immutability(mapper, connection, target):
    """Prevent any updates to DecisionTraceRecord rows."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "DecisionTraceRecord",
            "entity_id": str(target.id),
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="DecisionTraceRecord",
        entity_id=str(target.id),
        reason="Decision traces are immutable and cannot be modified",
    )


def _check_decision_trace_delete(mapper, connection, target):
    """Prevent deletion of DecisionTraceRecord rows."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "DecisionTraceRecord",
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="DecisionTraceRecord",
        entity_id=str(target.id),
        reason="Decision traces cannot be deleted",
    )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Call this after models are imported but before any database
    operations begin.  Safe to call more than once.
    """
    from policy_kernel.models.decision_trace import DecisionTraceRecord

    if not event.contains(DecisionTraceRecord, "before_update", _check_decision_trace_immutability):
        event.listen(DecisionTraceRecord, "before_update", _check_decision_trace_immutability)
    if not event.contains(DecisionTraceRecord, "before_delete", _check_decision_trace_delete):
        event.listen(DecisionTraceRecord, "before_delete", _check_decision_trace_delete)


def unregister_immutability_listeners():
    """Remove all immutability listeners. FOR TESTING ONLY."""
    from policy_kernel.models.decision_trace import DecisionTraceRecord

    if event.contains(DecisionTraceRecord, "before_update", _check_decision_trace_immutability):
        event.remove(DecisionTraceRecord, "before_update", _check_decision_trace_immutability)
    if event.contains(DecisionTraceRecord, "before_delete", _check_decision_trace_delete):
        event.remove(DecisionTraceRecord, "before_delete", _check_decision_trace_delete)
