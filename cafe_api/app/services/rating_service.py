"""Customer ratings, one per order."""

from __future__ import annotations

import logging

from ..domain.errors import DuplicateRating, OrderNotFound, RatingOutOfRange
from ..repos.unit_of_work import UnitOfWork
from ..utils.clock import utcnow

logger = logging.getLogger("cafe_api.ratings")

ASPECTS = ("food_quality", "service_quality", "cleanliness", "speed")


def _check_score(value: int | None, field: str) -> None:
    if value is not None and not 1 <= value <= 5:
        raise RatingOutOfRange(field=field)


async def submit_rating(
    uow: UnitOfWork,
    order_id: str,
    overall_rating: int,
    *,
    comment: str | None = None,
    aspects: dict | None = None,
):
    """Store the rating for ``order_id`` and flag the order as rated.

    A second submission raises :class:`DuplicateRating` and leaves the first
    rating untouched.
    """

    _check_score(overall_rating, "overall_rating")
    aspects = aspects or {}
    for name in ASPECTS:
        _check_score(aspects.get(name), name)

    order = await uow.orders.get(order_id)
    if order is None:
        raise OrderNotFound(order_id=order_id)
    if order.rated or await uow.ratings.get_for_order(order_id) is not None:
        raise DuplicateRating(order_id=order_id)

    rating = await uow.ratings.create(
        {
            "order_id": order_id,
            "overall_rating": overall_rating,
            "comment": (comment or "").strip() or None,
            **{name: aspects.get(name) for name in ASPECTS},
            "created_at": utcnow(),
        }
    )
    await uow.orders.update(order_id, {"rated": True})
    await uow.commit()
    logger.info("order rated %s", overall_rating, extra={"order_id": order_id})
    return rating
