"""Promo code preview for the cart page."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from .deps.db import get_uow
from .i18n import format_rupiah
from .repos_sqlalchemy import SQLUnitOfWork
from .schemas import PromoValidateIn
from .services.promo_service import validate_promo
from .utils.responses import ok

router = APIRouter()


@router.post("/api/promo/validate")
async def promo_validate(
    body: PromoValidateIn, uow: SQLUnitOfWork = Depends(get_uow)
) -> dict:
    """Check a code against a subtotal without redeeming it."""

    discount = await validate_promo(uow.promos, body.code, body.subtotal)
    data = discount.as_dict()
    data["discount_display"] = format_rupiah(discount.discount_amount)
    return ok(data)
