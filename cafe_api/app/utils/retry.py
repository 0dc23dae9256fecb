"""Bounded retries for transient infrastructure failures.

Only storage and network hiccups are retried. Domain and validation errors
propagate on the first attempt.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Tuple, Type, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError

T = TypeVar("T")

logger = logging.getLogger("cafe_api.retry")

TRANSIENT_ERRORS: Tuple[Type[BaseException], ...] = (
    OperationalError,
    TimeoutError,
    asyncio.TimeoutError,
    ConnectionError,
)


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, TRANSIENT_ERRORS):
        return True
    return isinstance(exc, DBAPIError) and bool(exc.connection_invalidated)


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    base_delay: float = 0.1,
    timeout: float | None = None,
    op: str = "operation",
) -> T:
    """Await ``fn()`` up to ``attempts`` times with exponential backoff.

    Each attempt is bounded by ``timeout`` seconds when given.
    """

    delay = base_delay
    for attempt in range(1, attempts + 1):
        try:
            if timeout is None:
                return await fn()
            return await asyncio.wait_for(fn(), timeout)
        except Exception as exc:
            if not is_transient(exc) or attempt >= attempts:
                raise
            logger.warning(
                "transient failure, retrying",
                extra={"op": op, "attempt": attempt, "error": repr(exc)},
            )
            await asyncio.sleep(delay)
            delay *= 2
    raise RuntimeError(f"{op} failed")  # pragma: no cover - loop always returns


@dataclass(frozen=True)
class RetryPolicy:
    """Attempts, backoff and per-attempt timeout for collaborator calls."""

    attempts: int = 3
    base_delay: float = 0.1
    timeout: float | None = None

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            attempts=settings.retry_attempts,
            base_delay=settings.retry_base_delay,
            timeout=settings.storage_timeout_secs,
        )

    async def run(self, fn: Callable[[], Awaitable[T]], op: str = "operation") -> T:
        return await retry_async(
            fn,
            attempts=self.attempts,
            base_delay=self.base_delay,
            timeout=self.timeout,
            op=op,
        )
