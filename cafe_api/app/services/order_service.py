"""Persist a built order draft as a compensating multi-step write.

The header, session id, items and final totals share one transaction and
either commit together or leave no order behind, so a committed order never
carries placeholder totals. Promo usage and table occupancy then each commit
on their own and are best effort: a failure is logged with the order id and
step name, counted, and the order is still returned. The one exception is a promo whose last use was
taken by a concurrent order between validation and redemption; that order is
withdrawn and :class:`PromoUsageRaceLost` raised.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable

from ..domain import OrderStatus
from ..domain.errors import CompensationFailed, DomainError, PromoUsageRaceLost
from ..models_tenant import OrderType
from ..repos.unit_of_work import UnitOfWork
from ..routes_metrics import (
    order_compensations_total,
    order_step_failures_total,
    orders_created_total,
    promo_race_lost_total,
    promo_redemptions_total,
)
from ..utils.clock import utcnow
from ..utils.retry import RetryPolicy
from .order_builder import OrderDraft

logger = logging.getLogger("cafe_api.orders")

TABLE_CONFLICT = "TABLE_CONFLICT"
TABLE_UPDATE_FAILED = "TABLE_UPDATE_FAILED"


def generate_order_number(now: datetime) -> str:
    """Return a human-facing number such as ``ORD-20250114-3FA9C1``."""
    return f"ORD-{now:%Y%m%d}-{secrets.token_hex(3).upper()}"


def session_id_for(order_id: str, now: datetime) -> str:
    return f"session_{order_id}_{int(now.timestamp() * 1000)}"


@dataclass
class OrderPlacement:
    order_id: str
    order_number: str
    total_amount: int
    table_number: str | None
    estimated_completion: datetime
    session_id: str
    warnings: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "order_number": self.order_number,
            "total_amount": self.total_amount,
            "table_number": self.table_number,
            "estimated_completion": self.estimated_completion.isoformat(),
            "warnings": list(self.warnings),
        }


class OrderOrchestrator:
    """Write an :class:`OrderDraft` through the unit of work.

    Parameters
    ----------
    uow:
        Repositories for the tenant.
    prep_window:
        Added to the creation time for the estimated completion.
    retry:
        Policy for transient failures of the compensating delete and of the
        best-effort steps.
    publisher:
        Optional :class:`~cafe_api.app.hooks.order_events.OrderEventPublisher`.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        *,
        prep_window: timedelta = timedelta(minutes=30),
        retry: RetryPolicy = RetryPolicy(),
        publisher=None,
        tenant_id: str | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.uow = uow
        self.prep_window = prep_window
        self.retry = retry
        self.publisher = publisher
        self.tenant_id = tenant_id
        self.clock = clock

    async def place(self, draft: OrderDraft) -> OrderPlacement:
        now = self.clock()
        order_number = generate_order_number(now)

        # 1. header with placeholder totals
        order_id = await self.uow.orders.insert_header(
            {
                "order_number": order_number,
                "order_type": draft.order_type.value,
                "table_id": draft.table_id,
                "customer_name": draft.customer_name,
                "customer_phone": draft.customer_phone,
                "customer_email": draft.customer_email,
                "customer_notes": draft.customer_notes,
                "payment_method": draft.payment_method,
                "status": OrderStatus.PENDING_PAYMENT.value,
                "subtotal": 0,
                "tax_amount": 0,
                "service_fee": 0,
                "discount_amount": 0,
                "total_amount": 0,
                "created_at": now,
            }
        )
        session_id = session_id_for(order_id, now)
        totals = draft.totals
        step = "insert_items"
        try:
            # 2. session id, 3. items
            await self.uow.orders.set_session_id(order_id, session_id)
            await self.uow.orders.insert_items(
                order_id, [item.as_row() for item in draft.items]
            )
            # 4. promo metadata and final totals from the precomputed breakdown
            step = "apply_totals"
            await self.uow.orders.update(
                order_id,
                {
                    "promo_id": draft.promo.promo_id if draft.promo else None,
                    "promo_code": draft.promo.code if draft.promo else None,
                    "discount_percentage": (
                        draft.promo.discount_percentage if draft.promo else None
                    ),
                    "subtotal": totals.subtotal,
                    "tax_amount": totals.tax,
                    "service_fee": totals.service_fee,
                    "discount_amount": totals.discount,
                    "total_amount": totals.total,
                },
            )
            await self.uow.commit()
        except Exception as exc:
            logger.error(
                "order write failed",
                extra={"order_id": order_id, "step": step, "error": repr(exc)},
            )
            await self._withdraw(order_id, step)
            raise

        warnings: list[str] = []

        # 5. promo usage
        if draft.promo is not None and totals.discount > 0:
            done, rows = await self._best_effort(
                order_id, "promo_usage", lambda: self._redeem(order_id, draft)
            )
            if done and rows == 0:
                promo_race_lost_total.inc()
                logger.warning(
                    "promo usage cap reached by a concurrent order",
                    extra={"order_id": order_id, "step": "promo_usage"},
                )
                await self._withdraw(order_id, "promo_usage")
                raise PromoUsageRaceLost(code=draft.promo.code)
            if done:
                promo_redemptions_total.inc()

        # 6. table occupancy
        if draft.table is not None and draft.order_type is OrderType.DINE_IN:
            done, occupied = await self._best_effort(
                order_id,
                "table_occupy",
                lambda: self.uow.tables.set_occupied(draft.table.id, session_id, now),
            )
            if not done:
                warnings.append(TABLE_UPDATE_FAILED)
            elif not occupied:
                order_step_failures_total.labels(step="table_occupy").inc()
                logger.warning(
                    "table not available for this session",
                    extra={
                        "order_id": order_id,
                        "step": "table_occupy",
                        "error": f"table {draft.table_number} not available",
                    },
                )
                warnings.append(TABLE_CONFLICT)

        orders_created_total.inc()
        if self.publisher is not None and self.tenant_id:
            await self.publisher.publish(
                self.tenant_id,
                "order.created",
                order_id=order_id,
                order_number=order_number,
                status=OrderStatus.PENDING_PAYMENT.value,
                table_id=draft.table_id,
            )

        # 7. result
        return OrderPlacement(
            order_id=order_id,
            order_number=order_number,
            total_amount=totals.total,
            table_number=draft.table_number,
            estimated_completion=now + self.prep_window,
            session_id=session_id,
            warnings=warnings,
        )

    async def _redeem(self, order_id: str, draft: OrderDraft) -> int:
        rows = await self.uow.promos.increment_usage(draft.promo.promo_id)
        if rows:
            await self.uow.promos.record_usage(
                draft.promo.promo_id, order_id, draft.totals.discount
            )
        return rows

    async def _best_effort(
        self, order_id: str, step: str, fn: Callable[[], Awaitable[Any]]
    ) -> tuple[bool, Any]:
        """Run ``fn`` and commit; on failure log, count and carry on."""

        async def attempt() -> Any:
            try:
                result = await fn()
                await self.uow.commit()
            except Exception:
                await self.uow.rollback()
                raise
            return result

        try:
            return True, await self.retry.run(attempt, op=step)
        except DomainError:
            raise
        except Exception as exc:
            order_step_failures_total.labels(step=step).inc()
            logger.warning(
                "best-effort order step failed",
                extra={"order_id": order_id, "step": step, "error": repr(exc)},
            )
            return False, None

    async def _withdraw(self, order_id: str, step: str) -> None:
        """Delete the order header and its items.

        Raises :class:`CompensationFailed` when the delete itself fails, which
        leaves an orphan header for the reconciliation job.
        """

        order_compensations_total.inc()

        async def attempt() -> None:
            await self.uow.rollback()
            await self.uow.orders.delete_order(order_id)
            await self.uow.commit()

        try:
            await self.retry.run(attempt, op=f"compensate:{step}")
        except Exception as exc:
            logger.critical(
                "compensating delete failed, orphan order header left",
                extra={"order_id": order_id, "step": step, "error": repr(exc)},
            )
            raise CompensationFailed(order_id=order_id) from exc
        logger.info(
            "order withdrawn", extra={"order_id": order_id, "step": step}
        )
