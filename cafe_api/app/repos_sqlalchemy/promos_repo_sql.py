"""SQLAlchemy implementation of the promo registry.

The usage counter is only ever changed through a single conditional
``UPDATE`` so concurrent redemptions of the last remaining use cannot both
succeed; callers inspect the affected row count.
"""

from __future__ import annotations

from sqlalchemy import func, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models_tenant import Promo, PromoUsage
from ..repos.promos_repo import PromosRepo


class PromosRepoSQL(PromosRepo):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_code(self, code: str) -> Promo | None:
        normalized = (code or "").strip().upper()
        result = await self.session.execute(
            select(Promo).where(func.upper(Promo.code) == normalized)
        )
        return result.scalar_one_or_none()

    async def increment_usage(self, promo_id: str) -> int:
        stmt = (
            update(Promo)
            .where(Promo.id == promo_id)
            .where(
                or_(
                    Promo.max_uses_total.is_(None),
                    Promo.current_uses < Promo.max_uses_total,
                )
            )
            .values(current_uses=Promo.current_uses + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def record_usage(
        self, promo_id: str, order_id: str, discount_amount: int
    ) -> None:
        await self.session.execute(
            insert(PromoUsage).values(
                promo_id=promo_id, order_id=order_id, discount_amount=discount_amount
            )
        )
