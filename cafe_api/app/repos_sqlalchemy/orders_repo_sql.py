"""SQLAlchemy-backed repository for orders and their items.

Item rows are snapshots: name and unit price are copied at insert time and
never follow later menu edits. Items are always loaded eagerly; async
sessions cannot lazy load.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models_tenant import Order, OrderItem
from ..repos.orders_repo import OrdersRepo


class OrdersRepoSQL(OrdersRepo):
    """Concrete OrdersRepo using SQLAlchemy with an AsyncSession."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def insert_header(self, values: dict) -> str:
        order = Order(**values)
        self.session.add(order)
        await self.session.flush()  # obtain order.id
        return order.id

    async def set_session_id(self, order_id: str, session_id: str) -> None:
        await self.session.execute(
            update(Order).where(Order.id == order_id).values(session_id=session_id)
        )

    async def insert_items(self, order_id: str, items: Iterable[dict]) -> None:
        rows = [{**item, "order_id": order_id} for item in items]
        if not rows:
            raise ValueError("an order needs at least one item")
        await self.session.execute(insert(OrderItem), rows)

    async def delete_order(self, order_id: str) -> None:
        # SQLite does not enforce ON DELETE CASCADE without a pragma.
        await self.session.execute(
            delete(OrderItem).where(OrderItem.order_id == order_id)
        )
        await self.session.execute(delete(Order).where(Order.id == order_id))

    async def update(self, order_id: str, values: dict) -> None:
        await self.session.execute(
            update(Order)
            .where(Order.id == order_id)
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )

    async def get(self, order_id: str) -> Order | None:
        result = await self.session.execute(
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_item(self, item_id: str) -> OrderItem | None:
        return await self.session.get(OrderItem, item_id)

    async def update_item(self, item_id: str, values: dict) -> None:
        await self.session.execute(
            update(OrderItem)
            .where(OrderItem.id == item_id)
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )

    async def list_by_status(self, statuses, limit: int = 100) -> list[Order]:
        result = await self.session.execute(
            select(Order)
            .where(Order.status.in_([getattr(s, "value", s) for s in statuses]))
            .options(selectinload(Order.items))
            .order_by(Order.created_at, Order.order_number)
            .limit(limit)
        )
        return list(result.scalars().all())
