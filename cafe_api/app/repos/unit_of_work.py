"""Unit of work bundling the repositories of one tenant session."""

from abc import ABC, abstractmethod

from .menu_repo import MenuRepo
from .orders_repo import OrdersRepo
from .payments_repo import PaymentsRepo
from .promos_repo import PromosRepo
from .ratings_repo import RatingsRepo
from .tables_repo import TablesRepo


class UnitOfWork(ABC):
    """Repositories sharing one transaction scope.

    Writes made through the repositories become durable on :meth:`commit` and
    are discarded by :meth:`rollback`.
    """

    menu: MenuRepo
    tables: TablesRepo
    promos: PromosRepo
    orders: OrdersRepo
    payments: PaymentsRepo
    ratings: RatingsRepo

    @abstractmethod
    async def commit(self):
        raise NotImplementedError

    @abstractmethod
    async def rollback(self):
        raise NotImplementedError
