"""Best-effort fan-out of order changes to the kitchen and owner views."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from ..events import EventBus

logger = logging.getLogger("cafe_api.events")


def orders_channel(tenant_id: str) -> str:
    return f"rt:orders:{tenant_id}"


class OrderEventPublisher:
    """Publish order events to the in-process bus and Redis pub/sub.

    Delivery is best effort: a failed publish is logged and never fails the
    write that triggered it.
    """

    def __init__(self, redis=None, bus: EventBus | None = None) -> None:
        self.redis = redis
        self.bus = bus

    async def publish(
        self,
        tenant_id: str,
        event: str,
        *,
        order_id: str,
        order_number: str | None = None,
        status: str | None = None,
        table_id: str | None = None,
    ) -> None:
        payload = {
            "event": event,
            "order_id": order_id,
            "order_number": order_number,
            "status": status,
            "table_id": table_id,
            "ts": datetime.now(timezone.utc).timestamp(),
        }
        channel = orders_channel(tenant_id)
        if self.bus is not None:
            await self.bus.publish(channel, payload)
        if self.redis is None:
            return
        try:
            await self.redis.publish(channel, json.dumps(payload))
        except Exception as exc:
            logger.warning(
                "order event publish failed",
                extra={"order_id": order_id, "step": event, "error": repr(exc)},
            )
