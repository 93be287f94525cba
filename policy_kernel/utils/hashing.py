"""
Deterministic hashing utilities.

All hashing in the policy kernel must be deterministic and reproducible.
This module provides the canonical hashing functions used throughout.
"""

import hashlib
import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

DIGEST_PREFIX = "sha256:"


def _json_serializer(obj: Any) -> Any:
    """
    Custom JSON serializer for types not natively supported.

    Args:
        obj: Object to serialize.

    Returns:
        JSON-serializable representation.

    Raises:
        TypeError: If object type is not supported.
    """
    if isinstance(obj, Decimal):
        # Normalize so 100 and 100.00 hash identically
        return str(obj.normalize())
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, bytes):
        return obj.hex()

    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonicalize_json(data: dict | list | Any) -> str:
    """
    Convert data to canonical JSON string.

    Produces a deterministic JSON representation:
    - Keys are sorted alphabetically
    - No whitespace
    - Consistent handling of special types (Decimal, Enum, datetime, UUID)

    Args:
        data: Data to canonicalize.

    Returns:
        Canonical JSON string.
    """
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        default=_json_serializer,
        allow_nan=False,
    )


def hash_payload(payload: dict) -> str:
    """
    Compute SHA-256 hash of a payload.

    Args:
        payload: Dictionary payload to hash.

    Returns:
        Hex-encoded SHA-256 hash (64 characters).
    """
    canonical = canonicalize_json(payload)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def prefixed_digest(payload: dict) -> str:
    """SHA-256 of the canonical payload, prefixed with the algorithm name."""
    return DIGEST_PREFIX + hash_payload(payload)


def hash_outcome(
    rule_version: str,
    previous_status: str,
    new_status: str,
    reason_codes: list[str],
    evaluated_rules: list[dict],
) -> str:
    """
    Compute deterministic hash of a decision outcome.

    Covers everything in a transition result except the capture
    timestamp, so two evaluations of the same inputs under the same
    rule version always agree.

    Args:
        rule_version: Rule-set revision that produced the outcome.
        previous_status: Status before evaluation.
        new_status: Status after evaluation.
        reason_codes: Ordered reason codes.
        evaluated_rules: Ordered ``{"rule", "matched"}`` dicts.

    Returns:
        Hex-encoded SHA-256 hash.
    """
    return hash_payload({
        "rule_version": rule_version,
        "previous_status": previous_status,
        "new_status": new_status,
        "reason_codes": list(reason_codes),
        "evaluated_rules": list(evaluated_rules),
    })
