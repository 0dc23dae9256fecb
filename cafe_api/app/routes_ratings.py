from __future__ import annotations

from fastapi import APIRouter, Depends

from .deps.db import get_uow
from .repos_sqlalchemy import SQLUnitOfWork
from .schemas import RatingIn
from .services.rating_service import ASPECTS, submit_rating
from .utils.responses import ok

router = APIRouter()


@router.post("/api/ratings", status_code=201)
async def create_rating(body: RatingIn, uow: SQLUnitOfWork = Depends(get_uow)) -> dict:
    rating = await submit_rating(
        uow,
        body.order_id,
        body.overall_rating,
        comment=body.comment,
        aspects={name: getattr(body, name) for name in ASPECTS},
    )
    return ok(
        {
            "id": rating.id,
            "order_id": rating.order_id,
            "overall_rating": rating.overall_rating,
        }
    )
