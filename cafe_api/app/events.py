# events.py

"""In-process fan-out of order events to local subscribers."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Dict, List

logger = logging.getLogger("cafe_api.events")


class EventBus:
    """Dispatch events to subscribers via bounded :class:`asyncio.Queue` instances.

    A subscriber that stops draining its queue loses events rather than
    blocking order creation; the kitchen view recovers from the next snapshot.
    """

    def __init__(self, maxsize: int = 100) -> None:
        self.maxsize = maxsize
        self._subs: Dict[str, List[asyncio.Queue]] = defaultdict(list)

    def subscribe(self, name: str) -> asyncio.Queue:
        """Register interest in ``name`` events and return a queue."""

        queue: asyncio.Queue = asyncio.Queue(maxsize=self.maxsize)
        self._subs[name].append(queue)
        return queue

    async def publish(self, name: str, payload: Dict[str, Any]) -> None:
        """Broadcast ``payload`` to all subscribers of ``name``."""

        for queue in list(self._subs.get(name, [])):
            try:
                queue.put_nowait(payload)
            except asyncio.QueueFull:
                logger.warning(
                    "dropping event for slow subscriber",
                    extra={"order_id": payload.get("order_id")},
                )
