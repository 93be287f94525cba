"""
Policy events (``policy_kernel.domain.events``).

Responsibility
--------------
Immutable, tagged facts about a policy, supplied by the caller for one
evaluation.  Each variant carries only the fields its type requires.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* The variant set is closed: ``EVENT_TYPES`` maps every wire tag to its
  class, and rules dispatch on the class, never on ad hoc field probing.
* Events are frozen; the engine only reads them.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar, Union


@dataclass(frozen=True)
class PaymentFailureEvent:
    """A premium payment attempt failed."""

    event_type: ClassVar[str] = "PaymentFailureEvent"

    timestamp: str
    amount: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        # Floats go through str() so 100.0 and Decimal("100") are the same amount
        if isinstance(self.amount, (int, float)) and not isinstance(self.amount, bool):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))


@dataclass(frozen=True)
class FraudFlagEvent:
    """A fraud signal was raised (``flag=True``) or cleared (``flag=False``)."""

    event_type: ClassVar[str] = "FraudFlagEvent"

    timestamp: str
    flag: bool = False


@dataclass(frozen=True)
class ActivationEvent:
    """The policy was activated."""

    event_type: ClassVar[str] = "ActivationEvent"

    timestamp: str


PolicyEvent = Union[PaymentFailureEvent, FraudFlagEvent, ActivationEvent]

EVENT_TYPES: dict[str, type] = {
    PaymentFailureEvent.event_type: PaymentFailureEvent,
    FraudFlagEvent.event_type: FraudFlagEvent,
    ActivationEvent.event_type: ActivationEvent,
}


def is_policy_event(obj: object) -> bool:
    """True if ``obj`` is one of the known event variants."""
    return isinstance(obj, (PaymentFailureEvent, FraudFlagEvent, ActivationEvent))
