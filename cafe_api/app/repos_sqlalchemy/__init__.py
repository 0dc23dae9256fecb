"""SQLAlchemy-backed repository implementations.

Every repository wraps one ``AsyncSession``; :class:`SQLUnitOfWork` builds
them over a shared session so a request's writes commit or roll back
together.
"""

from .menu_repo_sql import MenuRepoSQL
from .orders_repo_sql import OrdersRepoSQL
from .payments_repo_sql import PaymentsRepoSQL
from .promos_repo_sql import PromosRepoSQL
from .ratings_repo_sql import RatingsRepoSQL
from .tables_repo_sql import TablesRepoSQL
from .unit_of_work_sql import SQLUnitOfWork

__all__ = [
    "MenuRepoSQL",
    "OrdersRepoSQL",
    "PaymentsRepoSQL",
    "PromosRepoSQL",
    "RatingsRepoSQL",
    "TablesRepoSQL",
    "SQLUnitOfWork",
]
