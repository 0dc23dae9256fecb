"""SQLAlchemy implementation of the table registry."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models_tenant import Table, TableStatus
from ..repos.tables_repo import TablesRepo


class TablesRepoSQL(TablesRepo):
    """Table lookups and conditional occupancy writes."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, table_id: str) -> Table | None:
        return await self.session.get(Table, table_id)

    async def get_by_number(self, table_number: str) -> Table | None:
        result = await self.session.execute(
            select(Table).where(Table.table_number == str(table_number))
        )
        return result.scalar_one_or_none()

    async def set_occupied(
        self, table_id: str, session_id: str, now: datetime
    ) -> bool:
        """Occupy the table when it is free or already held by ``session_id``.

        A reserved or cleaning table is not free even without a session.
        """

        stmt = (
            update(Table)
            .where(Table.id == table_id)
            .where(
                or_(
                    and_(
                        Table.current_session_id.is_(None),
                        Table.status == TableStatus.AVAILABLE.value,
                    ),
                    Table.current_session_id == session_id,
                )
            )
            .values(
                status=TableStatus.OCCUPIED.value,
                current_session_id=session_id,
                occupied_since=now,
            )
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def release(self, table_id: str, session_id: str) -> bool:
        stmt = (
            update(Table)
            .where(Table.id == table_id, Table.current_session_id == session_id)
            .values(
                status=TableStatus.AVAILABLE.value,
                current_session_id=None,
                occupied_since=None,
            )
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
