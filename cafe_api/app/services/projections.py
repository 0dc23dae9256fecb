"""Read models exposed to customers, the kitchen display and the owner."""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Any, Iterable

from ..domain import ItemStatus, OrderStatus, PaymentStatus
from ..utils.clock import ensure_aware


def _ts(value: datetime | None) -> str | None:
    value = ensure_aware(value)
    return value.isoformat() if value is not None else None


def table_number_of(order: Any) -> str | None:
    table = getattr(order, "table", None)
    return table.table_number if table is not None else None


def item_to_dict(item: Any) -> dict:
    return {
        "id": item.id,
        "menu_item_id": item.menu_item_id,
        "item_name": item.item_name,
        "item_price": item.item_price,
        "quantity": item.quantity,
        "customizations": item.customizations or {},
        "customization_price": item.customization_price,
        "subtotal": item.subtotal,
        "notes": item.notes,
        "status": item.status,
        "prepared_at": _ts(item.prepared_at),
        "served_at": _ts(item.served_at),
    }


def order_to_dict(order: Any, *, include_items: bool = True) -> dict:
    data = {
        "id": order.id,
        "order_number": order.order_number,
        "order_type": order.order_type,
        "table_id": order.table_id,
        "table_number": table_number_of(order),
        "session_id": order.session_id,
        "customer_name": order.customer_name,
        "customer_phone": order.customer_phone,
        "customer_email": order.customer_email,
        "customer_notes": order.customer_notes,
        "status": order.status,
        "subtotal": order.subtotal,
        "tax_amount": order.tax_amount,
        "service_fee": order.service_fee,
        "discount_amount": order.discount_amount,
        "total_amount": order.total_amount,
        "promo_code": order.promo_code,
        "discount_percentage": order.discount_percentage,
        "payment_method": order.payment_method,
        "payment_verified_at": _ts(order.payment_verified_at),
        "rated": bool(order.rated),
        "cancellation_reason": order.cancellation_reason,
        "created_at": _ts(order.created_at),
        "confirmed_at": _ts(order.confirmed_at),
        "preparing_at": _ts(order.preparing_at),
        "ready_at": _ts(order.ready_at),
        "delivered_at": _ts(order.delivered_at),
        "completed_at": _ts(order.completed_at),
        "cancelled_at": _ts(order.cancelled_at),
    }
    if include_items:
        data["items"] = [item_to_dict(i) for i in order.items]
    return data


def derive_payment_status(payment: Any) -> str:
    """Customer-facing payment status.

    A pending payment that carries a proof image is awaiting staff
    verification; terminal statuses map to verified, rejected or cancelled.
    """

    status = PaymentStatus(payment.status)
    if status is PaymentStatus.PENDING:
        return "pending_verification" if payment.proof_image_url else "pending"
    return {
        PaymentStatus.COMPLETED: "verified",
        PaymentStatus.FAILED: "rejected",
        PaymentStatus.CANCELLED: "cancelled",
    }[status]


def payment_to_dict(payment: Any) -> dict:
    return {
        "id": payment.id,
        "order_id": payment.order_id,
        "method": payment.method,
        "amount": payment.amount,
        "status": derive_payment_status(payment),
        "payment_status": payment.status,
        "reference_code": payment.reference_code,
        "proof_image_url": payment.proof_image_url,
        "proof_orientation": payment.proof_orientation,
        "verified_by": payment.verified_by,
        "verified_at": _ts(payment.verified_at),
        "verification_notes": payment.verification_notes,
        "created_at": _ts(payment.created_at),
    }


def kitchen_ticket(order: Any) -> dict:
    """Kitchen display view of one order: live items and their status counts."""

    items = [i for i in order.items if i.status != ItemStatus.CANCELLED.value]
    counts = Counter(i.status for i in items)
    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "order_type": order.order_type,
        "table_number": table_number_of(order),
        "status": order.status,
        "customer_notes": order.customer_notes,
        "created_at": _ts(order.created_at),
        "confirmed_at": _ts(order.confirmed_at),
        "items": [
            {
                "id": i.id,
                "item_name": i.item_name,
                "quantity": i.quantity,
                "customizations": i.customizations or {},
                "notes": i.notes,
                "status": i.status,
            }
            for i in items
        ],
        "item_counts": {s.value: counts.get(s.value, 0) for s in ItemStatus},
    }


def owner_summary(orders: Iterable[Any]) -> dict:
    """Per-status counts and revenue of completed orders."""

    orders = list(orders)
    by_status = Counter(o.status for o in orders)
    return {
        "count": len(orders),
        "by_status": {s.value: by_status.get(s.value, 0) for s in OrderStatus},
        "revenue": sum(
            o.total_amount for o in orders if o.status == OrderStatus.COMPLETED.value
        ),
        "discounts": sum(
            o.discount_amount for o in orders if o.status == OrderStatus.COMPLETED.value
        ),
    }
