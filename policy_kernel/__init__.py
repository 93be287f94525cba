"""
Policy Kernel - lifecycle decision support

A pure, audit-first kernel for insurance policy status transitions with:
- Tagged, immutable policy events
- Deterministic SHA-256 input digests
- Decision traces bound to a rule-set version
- Append-only trace persistence for replay and tamper detection
"""

__version__ = "0.1.0"
