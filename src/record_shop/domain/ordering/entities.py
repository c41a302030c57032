"""Ordering Context Entities."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict
from uuid import uuid4

from ..result import ValidationError
from ..value_objects import to_price


class OrderCreationState(Enum):
    """Steps of a single order-creation request.

    REJECTED, COMMITTED, COMPENSATED and COMPENSATION_FAILED are terminal.
    """
    START = "start"
    RESERVING = "reserving"
    REJECTED = "rejected"
    RESERVED = "reserved"
    PERSISTING = "persisting"
    COMMITTED = "committed"
    PERSIST_FAILED = "persist_failed"
    COMPENSATING = "compensating"
    COMPENSATED = "compensated"
    COMPENSATION_FAILED = "compensation_failed"

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS.get(self)

    def can_transition_to(self, target: "OrderCreationState") -> bool:
        return target in _TRANSITIONS.get(self, frozenset())


# RESERVED -> COMPENSATING covers a caller cancelled before the order was stored
_TRANSITIONS = {
    OrderCreationState.START: frozenset({OrderCreationState.RESERVING}),
    OrderCreationState.RESERVING: frozenset({
        OrderCreationState.REJECTED,
        OrderCreationState.RESERVED,
    }),
    OrderCreationState.RESERVED: frozenset({
        OrderCreationState.PERSISTING,
        OrderCreationState.COMPENSATING,
    }),
    OrderCreationState.PERSISTING: frozenset({
        OrderCreationState.COMMITTED,
        OrderCreationState.PERSIST_FAILED,
    }),
    OrderCreationState.PERSIST_FAILED: frozenset({OrderCreationState.COMPENSATING}),
    OrderCreationState.COMPENSATING: frozenset({
        OrderCreationState.COMPENSATED,
        OrderCreationState.COMPENSATION_FAILED,
    }),
}


@dataclass(frozen=True, kw_only=True)
class Order:
    """
    An order for some units of one catalog record.

    ``price`` is the unit price captured when stock was reserved. Orders
    are immutable; later price changes to the record do not affect them.
    """

    id: str = field(default_factory=lambda: uuid4().hex)
    record_id: str
    quantity: int
    price: Decimal
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValidationError(f"quantity must be an integer, got {self.quantity!r}")
        if self.quantity < 1:
            raise ValidationError(f"quantity must be at least 1, got {self.quantity}")
        object.__setattr__(self, "price", to_price(self.price))

    @property
    def total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "record_id": self.record_id,
            "quantity": self.quantity,
            "price": str(self.price),
            "total": str(self.total),
            "created_at": self.created_at.isoformat(),
        }
