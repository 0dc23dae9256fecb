"""Unit of work over a single tenant ``AsyncSession``."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from ..repos.unit_of_work import UnitOfWork
from .menu_repo_sql import MenuRepoSQL
from .orders_repo_sql import OrdersRepoSQL
from .payments_repo_sql import PaymentsRepoSQL
from .promos_repo_sql import PromosRepoSQL
from .ratings_repo_sql import RatingsRepoSQL
from .tables_repo_sql import TablesRepoSQL


class SQLUnitOfWork(UnitOfWork):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.menu = MenuRepoSQL(session)
        self.tables = TablesRepoSQL(session)
        self.promos = PromosRepoSQL(session)
        self.orders = OrdersRepoSQL(session)
        self.payments = PaymentsRepoSQL(session)
        self.ratings = RatingsRepoSQL(session)

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
