"""SQLAlchemy implementation of the menu catalog lookup."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from ..models_tenant import MenuItem
from ..repos.menu_repo import MenuRepo


class MenuRepoSQL(MenuRepo):
    """Concrete MenuRepo using SQLAlchemy with an AsyncSession."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_item(self, item_id: str) -> MenuItem | None:
        return await self.session.get(MenuItem, item_id)
