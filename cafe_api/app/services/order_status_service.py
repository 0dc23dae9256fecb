"""Order lifecycle transitions and their side effects.

Every transition is an explicit staff or payment action; nothing advances on
a timer. Payment-driven edges (entering and leaving payment verification, and
confirming an unpaid order) are only reachable through the payment services.
Reaching a terminal status releases the table session held by the order.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Callable

from ..domain import (
    IN_PERSON_METHODS,
    KITCHEN_STATUSES,
    ItemStatus,
    OrderStatus,
    PaymentStatus,
    can_transition,
    can_transition_item,
    is_terminal,
)
from ..domain.errors import InvalidTransition, OrderItemNotFound, OrderNotFound
from ..domain.order_status import TIMESTAMP_FIELDS
from ..i18n import step_label
from ..models_tenant import OrderType
from ..repos.unit_of_work import UnitOfWork
from ..routes_metrics import order_transitions_total
from ..utils.clock import ensure_aware, utcnow

logger = logging.getLogger("cafe_api.orders")

PAYMENT_DRIVEN = {
    (OrderStatus.PENDING_PAYMENT, OrderStatus.PAYMENT_VERIFICATION),
    (OrderStatus.PAYMENT_VERIFICATION, OrderStatus.CONFIRMED),
    (OrderStatus.PAYMENT_VERIFICATION, OrderStatus.PENDING_PAYMENT),
}


class OrderStatusService:
    def __init__(
        self,
        uow: UnitOfWork,
        *,
        publisher=None,
        tenant_id: str | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.uow = uow
        self.publisher = publisher
        self.tenant_id = tenant_id
        self.clock = clock

    async def get_order(self, order_id: str):
        order = await self.uow.orders.get(order_id)
        if order is None:
            raise OrderNotFound(order_id=order_id)
        return order

    async def transition(
        self,
        order_id: str,
        target: OrderStatus | str,
        *,
        staff_id: str | None = None,
        reason: str | None = None,
        via_payment: bool = False,
        extra: dict | None = None,
        commit: bool = True,
    ):
        """Move ``order_id`` to ``target`` and return the updated order.

        ``via_payment`` marks transitions requested by payment verification or
        proof submission. With ``commit=False`` the caller owns the commit and
        the change event is not published.
        """

        order = await self.get_order(order_id)
        current = OrderStatus(order.status)
        target = OrderStatus(target)
        if not can_transition(current, target):
            raise InvalidTransition(current=current.value, target=target.value)
        if (current, target) in PAYMENT_DRIVEN and not via_payment:
            raise InvalidTransition(
                current=current.value,
                target=target.value,
                hint="USE_PAYMENT_VERIFICATION",
            )
        if (
            current is OrderStatus.PENDING_PAYMENT
            and target is OrderStatus.CONFIRMED
            and not via_payment
            and order.payment_method not in {m.value for m in IN_PERSON_METHODS}
        ):
            raise InvalidTransition(
                current=current.value,
                target=target.value,
                hint="VERIFY_PAYMENT_FIRST",
            )

        now = self.clock()
        values: dict[str, Any] = {"status": target.value}
        field = TIMESTAMP_FIELDS.get(target)
        if field:
            values[field] = now
        if target is OrderStatus.CANCELLED:
            values["cancellation_reason"] = reason
        values.update(extra or {})
        await self.uow.orders.update(order_id, values)

        if target is OrderStatus.CANCELLED:
            await self._cancel_open_work(order)
        if is_terminal(target) and order.table_id and order.session_id:
            released = await self.uow.tables.release(order.table_id, order.session_id)
            if not released:
                logger.info(
                    "table already released or reassigned",
                    extra={"order_id": order_id, "step": "table_release"},
                )

        logger.info(
            "order %s -> %s by %s",
            current.value,
            target.value,
            staff_id or "system",
            extra={"order_id": order_id},
        )
        if not commit:
            return order
        await self.uow.commit()
        order_transitions_total.labels(status=target.value).inc()
        await self.notify(order_id, target.value, order.order_number, order.table_id)
        return await self.get_order(order_id)

    async def notify(
        self, order_id: str, status: str, order_number: str | None, table_id: str | None
    ) -> None:
        if self.publisher is None or not self.tenant_id:
            return
        await self.publisher.publish(
            self.tenant_id,
            "order.status",
            order_id=order_id,
            order_number=order_number,
            status=status,
            table_id=table_id,
        )

    async def _cancel_open_work(self, order) -> None:
        for item in order.items:
            if can_transition_item(ItemStatus(item.status), ItemStatus.CANCELLED):
                await self.uow.orders.update_item(
                    item.id, {"status": ItemStatus.CANCELLED.value}
                )
        for payment in await self.uow.payments.list_for_order(order.id):
            if payment.status == PaymentStatus.PENDING.value:
                await self.uow.payments.update(
                    payment.id, {"status": PaymentStatus.CANCELLED.value}
                )

    async def transition_item(
        self,
        order_id: str,
        item_id: str,
        target: ItemStatus | str,
        *,
        staff_id: str | None = None,
    ):
        order = await self.get_order(order_id)
        item = await self.uow.orders.get_item(item_id)
        if item is None or item.order_id != order_id:
            raise OrderItemNotFound(order_id=order_id, item_id=item_id)
        current = ItemStatus(item.status)
        target = ItemStatus(target)
        if not can_transition_item(current, target):
            raise InvalidTransition(current=current.value, target=target.value)
        if target is not ItemStatus.CANCELLED and OrderStatus(
            order.status
        ) not in KITCHEN_STATUSES + (OrderStatus.DELIVERED,):
            raise InvalidTransition(
                current=order.status,
                target=target.value,
                hint="KITCHEN_CONFIRMED_ONLY",
            )

        now = self.clock()
        values: dict[str, Any] = {"status": target.value}
        if target is ItemStatus.READY:
            values["prepared_at"] = now
        elif target is ItemStatus.SERVED:
            values["served_at"] = now
        await self.uow.orders.update_item(item_id, values)
        await self.uow.commit()
        logger.info(
            "item %s %s -> %s by %s",
            item_id,
            current.value,
            target.value,
            staff_id or "system",
            extra={"order_id": order_id},
        )
        await self.notify(order_id, order.status, order.order_number, order.table_id)
        return await self.uow.orders.get_item(item_id)

    async def kitchen_queue(self, limit: int = 100) -> list:
        return await self.uow.orders.list_by_status(KITCHEN_STATUSES, limit=limit)


def progress_steps(
    order: Any,
    *,
    lang: str = "id",
    proof_payment: bool = False,
    prep_window: timedelta = timedelta(minutes=30),
) -> dict:
    """Localized progress timeline for the customer order tracking page.

    A step is complete once the order has passed it. ``current`` marks the
    first incomplete step of a live order.
    """

    status = OrderStatus(order.status)
    paid_at = order.payment_verified_at or order.confirmed_at
    steps: list[tuple[str, Any, bool]] = [
        ("created", order.created_at, True),
        ("awaiting_payment", None, paid_at is not None),
    ]
    if proof_payment:
        steps.append(("payment_verification", None, paid_at is not None))
    steps += [
        ("payment_verified", order.payment_verified_at, paid_at is not None),
        ("confirmed", order.confirmed_at, order.confirmed_at is not None),
        ("preparing", order.preparing_at, order.preparing_at is not None),
        ("ready", order.ready_at, order.ready_at is not None),
        (
            "picked_up" if order.order_type == OrderType.TAKEAWAY.value else "delivered",
            order.delivered_at,
            order.delivered_at is not None,
        ),
        ("completed", order.completed_at, order.completed_at is not None),
    ]
    if status is OrderStatus.CANCELLED:
        steps = [s for s in steps if s[2]]
        steps.append(("cancelled", order.cancelled_at, True))

    rendered = []
    current_marked = is_terminal(status)
    for key, ts, done in steps:
        is_current = not done and not current_marked
        if is_current:
            current_marked = True
        ts = ensure_aware(ts)
        rendered.append(
            {
                "key": key,
                "label": step_label(key, lang),
                "completed": done,
                "current": is_current,
                "timestamp": ts.isoformat() if ts else None,
            }
        )

    created = ensure_aware(order.created_at)
    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "status": status.value,
        "status_label": step_label(_STATUS_STEP[status], lang),
        "estimated_completion": (
            (created + prep_window).isoformat()
            if created and not is_terminal(status)
            else None
        ),
        "cancellation_reason": order.cancellation_reason,
        "steps": rendered,
    }


_STATUS_STEP = {
    OrderStatus.PENDING_PAYMENT: "awaiting_payment",
    OrderStatus.PAYMENT_VERIFICATION: "payment_verification",
    OrderStatus.CONFIRMED: "confirmed",
    OrderStatus.PREPARING: "preparing",
    OrderStatus.READY: "ready",
    OrderStatus.DELIVERED: "delivered",
    OrderStatus.COMPLETED: "completed",
    OrderStatus.CANCELLED: "cancelled",
}
