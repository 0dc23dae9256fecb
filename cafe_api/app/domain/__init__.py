"""Domain models and helpers."""

from .order_status import (
    ITEM_TRANSITIONS,
    KITCHEN_STATUSES,
    TERMINAL,
    TRANSITIONS,
    ItemStatus,
    OrderStatus,
    can_transition,
    can_transition_item,
    is_terminal,
)
from .payments import IN_PERSON_METHODS, PROOF_METHODS, PaymentMethod, PaymentStatus

__all__ = [
    "OrderStatus",
    "ItemStatus",
    "TRANSITIONS",
    "ITEM_TRANSITIONS",
    "TERMINAL",
    "KITCHEN_STATUSES",
    "can_transition",
    "can_transition_item",
    "is_terminal",
    "PaymentMethod",
    "PaymentStatus",
    "PROOF_METHODS",
    "IN_PERSON_METHODS",
]
