"""Owner dashboard read model over recent orders and their payments."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from .deps.db import get_uow
from .deps.staff import get_staff_id
from .domain import OrderStatus
from .repos_sqlalchemy import SQLUnitOfWork
from .services.projections import order_to_dict, owner_summary, payment_to_dict
from .utils.responses import ok

router = APIRouter()


@router.get("/api/owner/orders")
async def owner_orders(
    status: Optional[List[OrderStatus]] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    _staff: str = Depends(get_staff_id),
    uow: SQLUnitOfWork = Depends(get_uow),
) -> dict:
    statuses = status or list(OrderStatus)
    orders = await uow.orders.list_by_status(statuses, limit=limit)
    rows = []
    for order in orders:
        data = order_to_dict(order)
        payments = await uow.payments.list_for_order(order.id)
        data["payment"] = payment_to_dict(payments[0]) if payments else None
        rows.append(data)
    return ok({"orders": rows, "summary": owner_summary(orders)})
