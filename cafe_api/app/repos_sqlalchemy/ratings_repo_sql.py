"""SQLAlchemy implementation of rating persistence."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import DuplicateRating
from ..models_tenant import Rating
from ..repos.ratings_repo import RatingsRepo


class RatingsRepoSQL(RatingsRepo):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_for_order(self, order_id: str) -> Rating | None:
        result = await self.session.execute(
            select(Rating).where(Rating.order_id == order_id)
        )
        return result.scalar_one_or_none()

    async def create(self, values: dict) -> Rating:
        rating = Rating(**values)
        self.session.add(rating)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            # unique constraint on order_id lost a concurrent submission
            await self.session.rollback()
            raise DuplicateRating(order_id=values.get("order_id")) from exc
        return rating
