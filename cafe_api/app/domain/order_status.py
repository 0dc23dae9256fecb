"""Order and order item statuses with their allowed transitions."""

from __future__ import annotations

from enum import Enum


class OrderStatus(str, Enum):
    """Enumerate the lifecycle states for an order."""

    PENDING_PAYMENT = "pending_payment"
    PAYMENT_VERIFICATION = "payment_verification"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ItemStatus(str, Enum):
    """Kitchen-facing status of a single order line."""

    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    SERVED = "served"
    CANCELLED = "cancelled"


TRANSITIONS: dict[OrderStatus, list[OrderStatus]] = {
    OrderStatus.PENDING_PAYMENT: [
        OrderStatus.PAYMENT_VERIFICATION,
        OrderStatus.CONFIRMED,
        OrderStatus.CANCELLED,
    ],
    OrderStatus.PAYMENT_VERIFICATION: [
        OrderStatus.CONFIRMED,
        OrderStatus.PENDING_PAYMENT,
        OrderStatus.CANCELLED,
    ],
    OrderStatus.CONFIRMED: [OrderStatus.PREPARING, OrderStatus.CANCELLED],
    OrderStatus.PREPARING: [OrderStatus.READY, OrderStatus.CANCELLED],
    OrderStatus.READY: [OrderStatus.DELIVERED, OrderStatus.CANCELLED],
    OrderStatus.DELIVERED: [OrderStatus.COMPLETED, OrderStatus.CANCELLED],
    OrderStatus.COMPLETED: [],
    OrderStatus.CANCELLED: [],
}

ITEM_TRANSITIONS: dict[ItemStatus, list[ItemStatus]] = {
    ItemStatus.PENDING: [ItemStatus.PREPARING, ItemStatus.CANCELLED],
    ItemStatus.PREPARING: [ItemStatus.READY, ItemStatus.CANCELLED],
    ItemStatus.READY: [ItemStatus.SERVED, ItemStatus.CANCELLED],
    ItemStatus.SERVED: [],
    ItemStatus.CANCELLED: [],
}

TERMINAL: frozenset[OrderStatus] = frozenset(
    {OrderStatus.COMPLETED, OrderStatus.CANCELLED}
)

# Orders the kitchen display shows.
KITCHEN_STATUSES: tuple[OrderStatus, ...] = (
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
)

# Column stamped when an order enters a status.
TIMESTAMP_FIELDS: dict[OrderStatus, str] = {
    OrderStatus.CONFIRMED: "confirmed_at",
    OrderStatus.PREPARING: "preparing_at",
    OrderStatus.READY: "ready_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.COMPLETED: "completed_at",
    OrderStatus.CANCELLED: "cancelled_at",
}


def can_transition(src: OrderStatus, dst: OrderStatus) -> bool:
    """Return ``True`` if an order can move from ``src`` to ``dst``."""

    return dst in TRANSITIONS.get(src, [])


def can_transition_item(src: ItemStatus, dst: ItemStatus) -> bool:
    """Return ``True`` if an order item can move from ``src`` to ``dst``."""

    return dst in ITEM_TRANSITIONS.get(src, [])


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL
