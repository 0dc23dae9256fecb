# routes_metrics.py

"""Prometheus metrics and /metrics endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest

# Counters
http_requests_total = Counter(
    "http_requests_total", "Total HTTP requests", ["path", "method", "status"]
)

http_errors_total = Counter("http_errors_total", "Total HTTP errors", ["status"])
http_errors_total.labels(status="0").inc(0)

orders_created_total = Counter("orders_created_total", "Total orders created")
orders_created_total.inc(0)

order_compensations_total = Counter(
    "order_compensations_total",
    "Order headers deleted after a failed item insert or lost promo race",
)
order_compensations_total.inc(0)

order_step_failures_total = Counter(
    "order_step_failures_total",
    "Best-effort order creation steps that failed",
    ["step"],
)
for _step in ("apply_totals", "promo_usage", "table_occupy"):
    order_step_failures_total.labels(step=_step).inc(0)

promo_redemptions_total = Counter(
    "promo_redemptions_total", "Promo usages counted against a cap"
)
promo_redemptions_total.inc(0)

promo_race_lost_total = Counter(
    "promo_race_lost_total",
    "Orders rejected because a concurrent redemption took the last promo use",
)
promo_race_lost_total.inc(0)

payments_created_total = Counter(
    "payments_created_total", "Payment intents created", ["method"]
)
for _method in ("cash", "card", "qris", "transfer"):
    payments_created_total.labels(method=_method).inc(0)

payment_proofs_total = Counter(
    "payment_proofs_total", "Proof-of-payment images accepted"
)
payment_proofs_total.inc(0)

order_transitions_total = Counter(
    "order_transitions_total", "Order status transitions applied", ["status"]
)

router = APIRouter()


@router.get("/metrics")
async def metrics_endpoint() -> Response:
    """Expose Prometheus metrics in text format."""
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
