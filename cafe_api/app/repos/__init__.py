"""Abstract repository contracts for the order pipeline collaborators."""

from .menu_repo import MenuRepo
from .orders_repo import OrdersRepo
from .payments_repo import PaymentsRepo
from .promos_repo import PromosRepo
from .ratings_repo import RatingsRepo
from .tables_repo import TablesRepo
from .unit_of_work import UnitOfWork

__all__ = [
    "MenuRepo",
    "OrdersRepo",
    "PaymentsRepo",
    "PromosRepo",
    "RatingsRepo",
    "TablesRepo",
    "UnitOfWork",
]
