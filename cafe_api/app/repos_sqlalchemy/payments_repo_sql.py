"""SQLAlchemy implementation of payment persistence."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models_tenant import Payment
from ..repos.payments_repo import PaymentsRepo


class PaymentsRepoSQL(PaymentsRepo):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, values: dict) -> Payment:
        payment = Payment(**values)
        self.session.add(payment)
        await self.session.flush()
        return payment

    async def get(self, payment_id: str) -> Payment | None:
        return await self.session.get(Payment, payment_id, populate_existing=True)

    async def list_for_order(self, order_id: str) -> list[Payment]:
        result = await self.session.execute(
            select(Payment)
            .where(Payment.order_id == order_id)
            .order_by(Payment.created_at.desc())
        )
        return list(result.scalars().all())

    async def update(self, payment_id: str, values: dict) -> None:
        await self.session.execute(
            update(Payment)
            .where(Payment.id == payment_id)
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
