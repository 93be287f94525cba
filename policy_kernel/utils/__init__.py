"""Utility modules for the policy kernel."""

from policy_kernel.utils.hashing import (
    DIGEST_PREFIX,
    canonicalize_json,
    hash_outcome,
    hash_payload,
    prefixed_digest,
)

__all__ = [
    "DIGEST_PREFIX",
    "canonicalize_json",
    "hash_outcome",
    "hash_payload",
    "prefixed_digest",
]
