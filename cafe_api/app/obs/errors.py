"""Error reporting to Sentry.

Events carry the tenant, order and request they came from as tags so an
orphaned order or a failed compensation can be traced back to the request
that produced it. Without a DSN the exception is logged instead.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional

import sentry_sdk

logger = logging.getLogger("obs")

TAG_KEYS = ("tenant", "order_id", "request_id", "route")


def init_sentry(dsn: Optional[str] = None, env: Optional[str] = None) -> None:
    """Initialize Sentry if a DSN is provided."""
    dsn = dsn or os.getenv("ERROR_DSN")
    if not dsn:
        logger.info("ERROR_DSN not set; error sink disabled")
        return
    # customer phone numbers and emails stay out of events
    sentry_sdk.init(dsn=dsn, environment=env, send_default_pii=False)


def error_tags(**context: Optional[str]) -> Dict[str, str]:
    return {k: str(context[k]) for k in TAG_KEYS if context.get(k)}


def capture_exception(
    exc: Exception,
    *,
    tenant: Optional[str] = None,
    order_id: Optional[str] = None,
    request_id: Optional[str] = None,
    route: Optional[str] = None,
) -> None:
    """Forward ``exc`` to Sentry tagged with its request context, else log it."""
    tags = error_tags(
        tenant=tenant, order_id=order_id, request_id=request_id, route=route
    )
    if not sentry_sdk.is_initialized():
        logger.exception("Unhandled exception", exc_info=exc, extra=tags)
        return
    with sentry_sdk.new_scope() as scope:
        for key, value in tags.items():
            scope.set_tag(key, value)
        sentry_sdk.capture_exception(exc)
