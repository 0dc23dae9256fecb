"""Payment methods and payment record statuses."""

from __future__ import annotations

from enum import Enum


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    QRIS = "qris"
    TRANSFER = "transfer"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


# Methods reconciled by staff from an uploaded proof image.
PROOF_METHODS: frozenset[PaymentMethod] = frozenset(
    {PaymentMethod.QRIS, PaymentMethod.TRANSFER}
)

# Methods settled at the cashier; staff confirm the order directly.
IN_PERSON_METHODS: frozenset[PaymentMethod] = frozenset(
    {PaymentMethod.CASH, PaymentMethod.CARD}
)

ACTIVE_STATUSES: frozenset[PaymentStatus] = frozenset({PaymentStatus.PENDING})


def is_active(status: PaymentStatus) -> bool:
    """Return ``True`` while a payment is still awaiting an outcome."""

    return status in ACTIVE_STATUSES
