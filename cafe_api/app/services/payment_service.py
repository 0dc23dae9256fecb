"""Payment intents and staff verification.

No bank or QRIS webhook exists: QRIS and transfer payments are reconciled by
staff against an uploaded proof, so instructions insist on the exact amount
and, for transfers, the reference code.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Sequence

from ..domain import IN_PERSON_METHODS, OrderStatus, PaymentMethod, PaymentStatus
from ..domain.errors import (
    AmountMismatch,
    InvalidTransition,
    OrderNotFound,
    OrderNotPayable,
    PaymentMethodInvalid,
    PaymentNotFound,
)
from ..i18n import format_rupiah, instruction
from ..repos.unit_of_work import UnitOfWork
from ..routes_metrics import order_transitions_total, payments_created_total
from ..utils.clock import ensure_aware, utcnow
from .order_status_service import OrderStatusService
from .projections import payment_to_dict

logger = logging.getLogger("cafe_api.payments")

# Rupiah rounding slack between client and server totals.
AMOUNT_TOLERANCE = 1


def generate_reference_code(now: datetime) -> str:
    return f"TRF{now:%y%m%d}{secrets.token_hex(3).upper()}"


class PaymentService:
    def __init__(
        self,
        uow: UnitOfWork,
        *,
        merchant_name: str = "Cafe",
        qris_static_code: str = "",
        bank_accounts: Sequence = (),
        transfer_expiry: timedelta = timedelta(hours=1),
        lang: str = "id",
        status_service: OrderStatusService | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.uow = uow
        self.merchant_name = merchant_name
        self.qris_static_code = qris_static_code
        self.bank_accounts = list(bank_accounts)
        self.transfer_expiry = transfer_expiry
        self.lang = lang
        self.status = status_service or OrderStatusService(uow, clock=clock)
        self.clock = clock

    async def get_payment(self, payment_id: str):
        payment = await self.uow.payments.get(payment_id)
        if payment is None:
            raise PaymentNotFound(payment_id=payment_id)
        return payment

    async def create_payment(self, order_id: str, method: str, amount: int) -> dict:
        """Open a pending payment for ``order_id`` and return its instructions.

        A still-pending earlier attempt for the same order is cancelled so at
        most one payment is active at a time.
        """

        try:
            method = PaymentMethod(method)
        except ValueError:
            raise PaymentMethodInvalid(method=method) from None

        order = await self.uow.orders.get(order_id)
        if order is None:
            raise OrderNotFound(order_id=order_id)
        if order.status != OrderStatus.PENDING_PAYMENT.value or order.payment_verified_at:
            raise OrderNotPayable(status=order.status)
        if abs(amount - order.total_amount) > AMOUNT_TOLERANCE:
            raise AmountMismatch(amount=amount, expected=order.total_amount)

        for previous in await self.uow.payments.list_for_order(order_id):
            if previous.status == PaymentStatus.PENDING.value:
                await self.uow.payments.update(
                    previous.id,
                    {
                        "status": PaymentStatus.CANCELLED.value,
                        "processed_at": self.clock(),
                        "verification_notes": "superseded",
                    },
                )

        now = self.clock()
        payment = await self.uow.payments.create(
            {
                "order_id": order_id,
                "method": method.value,
                "amount": order.total_amount,
                "status": PaymentStatus.PENDING.value,
                "reference_code": (
                    generate_reference_code(now)
                    if method is PaymentMethod.TRANSFER
                    else None
                ),
                "created_at": now,
            }
        )
        await self.uow.orders.update(order_id, {"payment_method": method.value})
        await self.uow.commit()
        payments_created_total.labels(method=method.value).inc()
        logger.info(
            "payment created",
            extra={"order_id": order_id, "payment_id": payment.id},
        )
        return self.intent(payment)

    def intent(self, payment) -> dict:
        data = payment_to_dict(payment)
        data["instructions"] = self.instructions(payment)
        return data

    def instructions(self, payment) -> dict:
        method = PaymentMethod(payment.method)
        amount = payment.amount
        if method in IN_PERSON_METHODS:
            return {
                "type": "in_person",
                "message": instruction(method.value, self.lang),
                "requires_proof": False,
            }
        notes = [instruction("amount_exact", self.lang)]
        if method is PaymentMethod.QRIS:
            notes.append(instruction("upload_proof", self.lang))
            return {
                "type": "qris",
                "merchant_name": self.merchant_name,
                "qris_code": self.qris_static_code,
                "amount": amount,
                "amount_display": format_rupiah(amount),
                "message": instruction("qris", self.lang, amount=amount),
                "notes": notes,
                "requires_proof": True,
            }
        notes += [
            instruction("reference_required", self.lang),
            instruction("upload_proof", self.lang),
        ]
        created = ensure_aware(payment.created_at) or self.clock()
        return {
            "type": "bank_transfer",
            "bank_accounts": [
                a.model_dump() if hasattr(a, "model_dump") else dict(a)
                for a in self.bank_accounts
            ],
            "amount": amount,
            "amount_display": format_rupiah(amount),
            "reference_code": payment.reference_code,
            "expires_at": (created + self.transfer_expiry).isoformat(),
            "message": instruction(
                "transfer",
                self.lang,
                amount=amount,
                reference_code=payment.reference_code,
            ),
            "notes": notes,
            "requires_proof": True,
        }

    async def payment_status(self, payment_id: str) -> dict:
        return payment_to_dict(await self.get_payment(payment_id))

    async def verify(
        self,
        payment_id: str,
        *,
        approved: bool,
        staff_id: str,
        notes: str | None = None,
    ) -> dict:
        """Record a staff decision on a pending payment.

        Approval completes the payment and confirms the order. Rejection fails
        the payment and sends an order awaiting verification back to
        ``pending_payment`` so the customer can pay again.
        """

        payment = await self.get_payment(payment_id)
        if payment.status != PaymentStatus.PENDING.value:
            raise InvalidTransition(
                current=payment.status,
                target="completed" if approved else "failed",
            )
        order = await self.uow.orders.get(payment.order_id)
        if order is None:
            raise OrderNotFound(order_id=payment.order_id)

        if approved and order.status == OrderStatus.CANCELLED.value:
            raise OrderNotPayable(status=order.status)

        now = self.clock()
        await self.uow.payments.update(
            payment_id,
            {
                "status": (
                    PaymentStatus.COMPLETED.value
                    if approved
                    else PaymentStatus.FAILED.value
                ),
                "verified_by": staff_id,
                "verified_at": now,
                "processed_at": now,
                "verification_notes": notes,
            },
        )

        target = None
        verified = {"payment_verified_at": now, "payment_verified_by": staff_id}
        awaiting = (
            OrderStatus.PENDING_PAYMENT.value,
            OrderStatus.PAYMENT_VERIFICATION.value,
        )
        if approved and order.status in awaiting:
            target = OrderStatus.CONFIRMED
            await self.status.transition(
                order.id,
                target,
                staff_id=staff_id,
                via_payment=True,
                extra=verified,
                commit=False,
            )
        elif approved:
            # cashier already confirmed an in-person order
            await self.uow.orders.update(order.id, verified)
        elif order.status == OrderStatus.PAYMENT_VERIFICATION.value:
            target = OrderStatus.PENDING_PAYMENT
            await self.status.transition(
                order.id, target, staff_id=staff_id, via_payment=True, commit=False
            )
        await self.uow.commit()

        if target is not None:
            order_transitions_total.labels(status=target.value).inc()
            await self.status.notify(
                order.id, target.value, order.order_number, order.table_id
            )
        logger.info(
            "payment %s by %s",
            "approved" if approved else "rejected",
            staff_id,
            extra={"order_id": order.id, "payment_id": payment_id},
        )
        return payment_to_dict(await self.get_payment(payment_id))
