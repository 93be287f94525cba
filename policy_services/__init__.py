"""
policy_services -- Package init and public API.

Responsibility:
    Orchestration services that compose the pure decision engine
    (policy_engines/) with settings, database sessions, and wall-clock
    time.

Architecture position:
    Services -- stateful orchestration over engines + kernel.

    Dependency direction (enforced by tests/architecture/test_layer_boundaries.py):
        policy_services/ -> policy_engines/  (allowed)
        policy_services/ -> policy_kernel/   (allowed)
        policy_services/ -> policy_config/   (allowed)
        policy_engines/  -> policy_services/ (FORBIDDEN)
        policy_kernel/   -> policy_services/ (FORBIDDEN)
"""

from policy_services.transition_service import (
    HTTP_BAD_REQUEST,
    HTTP_OK,
    PolicyTransitionService,
    ServiceResponse,
)

__all__ = [
    "HTTP_BAD_REQUEST",
    "HTTP_OK",
    "PolicyTransitionService",
    "ServiceResponse",
]
