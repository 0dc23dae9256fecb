"""Order creation, tracking and staff-driven transitions."""

from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends

from .deps.db import get_uow
from .deps.services import (
    get_app_settings,
    get_lang,
    get_orchestrator,
    get_order_builder,
    get_status_service,
)
from .deps.staff import get_staff_id
from .domain import PROOF_METHODS
from .repos_sqlalchemy import SQLUnitOfWork
from .schemas import ItemTransitionIn, OrderCreateIn, OrderTransitionIn
from .services.order_builder import OrderBuilder
from .services.order_service import OrderOrchestrator
from .services.order_status_service import OrderStatusService, progress_steps
from .services.projections import item_to_dict, order_to_dict, payment_to_dict
from .utils.responses import ok

router = APIRouter()


@router.post("/api/orders", status_code=201)
async def create_order(
    body: OrderCreateIn,
    builder: OrderBuilder = Depends(get_order_builder),
    orchestrator: OrderOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Validate the cart, price it and persist the order."""

    draft = await builder.build(body.to_cart())
    placement = await orchestrator.place(draft)
    return ok(placement.as_dict())


@router.get("/api/orders/{order_id}")
async def get_order(
    order_id: str,
    uow: SQLUnitOfWork = Depends(get_uow),
    status_service: OrderStatusService = Depends(get_status_service),
) -> dict:
    order = await status_service.get_order(order_id)
    data = order_to_dict(order)
    data["payments"] = [
        payment_to_dict(p) for p in await uow.payments.list_for_order(order_id)
    ]
    return ok(data)


@router.get("/api/orders/{order_id}/status")
async def get_order_status(
    order_id: str,
    uow: SQLUnitOfWork = Depends(get_uow),
    status_service: OrderStatusService = Depends(get_status_service),
    settings=Depends(get_app_settings),
    lang: str = Depends(get_lang),
) -> dict:
    """Order status with a localized progress timeline."""

    order = await status_service.get_order(order_id)
    data = progress_steps(
        order,
        lang=lang,
        proof_payment=order.payment_method in {m.value for m in PROOF_METHODS},
        prep_window=timedelta(minutes=settings.prep_window_minutes),
    )
    payments = await uow.payments.list_for_order(order_id)
    data["payment"] = payment_to_dict(payments[0]) if payments else None
    return ok(data)


@router.post("/api/orders/{order_id}/transition")
async def transition_order(
    order_id: str,
    body: OrderTransitionIn,
    staff_id: str = Depends(get_staff_id),
    status_service: OrderStatusService = Depends(get_status_service),
) -> dict:
    order = await status_service.transition(
        order_id, body.status, staff_id=staff_id, reason=body.reason
    )
    return ok(order_to_dict(order, include_items=False))


@router.post("/api/orders/{order_id}/items/{item_id}/transition")
async def transition_item(
    order_id: str,
    item_id: str,
    body: ItemTransitionIn,
    staff_id: str = Depends(get_staff_id),
    status_service: OrderStatusService = Depends(get_status_service),
) -> dict:
    item = await status_service.transition_item(
        order_id, item_id, body.status, staff_id=staff_id
    )
    return ok(item_to_dict(item))
