"""Kitchen display read model and change feed.

``/api/kds/stream`` relays the tenant's ``rt:orders:{tenant}`` Redis channel as
Server-Sent Events. The first event is a snapshot of the queue; the kitchen
refetches ``/api/kds/queue`` whenever a ``kds`` event arrives.
"""

from __future__ import annotations

import asyncio
import json
from typing import AsyncIterator

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from .deps.services import get_status_service
from .deps.tenant import get_tenant_id
from .hooks.order_events import orders_channel
from .services.order_status_service import OrderStatusService
from .services.projections import kitchen_ticket
from .utils.responses import ok

KEEPALIVE_INTERVAL = 15

router = APIRouter()


@router.get("/api/kds/queue")
async def kds_queue(
    limit: int = Query(100, ge=1, le=500),
    status_service: OrderStatusService = Depends(get_status_service),
) -> dict:
    """Orders the kitchen works on, oldest first."""

    orders = await status_service.kitchen_queue(limit=limit)
    return ok({"orders": [kitchen_ticket(o) for o in orders]})


async def kds_events(
    pubsub, snapshot: dict, keepalive: float = KEEPALIVE_INTERVAL
) -> AsyncIterator[str]:
    """Yield a snapshot event, then one event per published order change."""

    seq = 1
    yield f"event: kds\nid: {seq}\ndata: {json.dumps(snapshot)}\n\n"
    while True:
        message = await pubsub.get_message(
            ignore_subscribe_messages=True, timeout=keepalive
        )
        if message is None:
            yield ":keepalive\n\n"
            await asyncio.sleep(0)
            continue
        data = message["data"]
        if isinstance(data, bytes):
            data = data.decode()
        seq += 1
        yield f"event: kds\nid: {seq}\ndata: {data}\n\n"


@router.get(
    "/api/kds/stream",
    response_class=StreamingResponse,
    responses={200: {"content": {"text/event-stream": {}}}},
)
async def kds_stream(
    request: Request,
    tenant_id: str = Depends(get_tenant_id),
    status_service: OrderStatusService = Depends(get_status_service),
) -> StreamingResponse:
    """Stream kitchen queue changes via SSE."""

    # the request session closes before the body streams
    orders = await status_service.kitchen_queue()
    snapshot = {"orders": [kitchen_ticket(o) for o in orders]}

    channel = orders_channel(tenant_id)
    pubsub = request.app.state.redis.pubsub()
    await pubsub.subscribe(channel)

    async def event_gen():
        try:
            async for chunk in kds_events(pubsub, snapshot):
                if await request.is_disconnected():
                    break
                yield chunk
        finally:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()

    return StreamingResponse(event_gen(), media_type="text/event-stream")
