#!/usr/bin/env python3
"""Report and optionally repair order pipeline drift for a tenant.

Three kinds of drift are detected:

* orphan order headers: orders with no items, left behind when a failed
  order creation could not be cleaned up
* broken totals: orders whose stored amounts no longer satisfy
  ``total = max(floor, subtotal + tax + service_fee - discount)`` or whose
  subtotal differs from the sum of their item lines
* promo counter drift: promos whose ``current_uses`` differs from the number
  of rows in ``promo_usages``

With ``--fix`` orphan headers are deleted and promo counters are resynced to
the usage ledger. Broken totals are only reported; they need a human.

Usage::

    python scripts/reconcile_orders.py --tenant demo [--fix] [--json]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

# Ensure project root is on the import path so ``cafe_api.app`` resolves when
# invoked as ``python scripts/reconcile_orders.py``.
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
from cafe_api.app.db.tenant import TenantEngineRegistry  # noqa: E402
from cafe_api.app.models_tenant import Order, OrderItem, Promo, PromoUsage  # noqa: E402
from cafe_api.app.pricing import compute_total  # noqa: E402
from config import get_settings  # noqa: E402

logger = logging.getLogger("reconcile_orders")


async def find_orphans(session: AsyncSession) -> List[Dict[str, Any]]:
    has_items = select(OrderItem.id).where(OrderItem.order_id == Order.id).exists()
    result = await session.execute(
        select(Order.id, Order.order_number, Order.status, Order.created_at)
        .where(~has_items)
        .order_by(Order.created_at)
    )
    return [
        {
            "order_id": row.id,
            "order_number": row.order_number,
            "status": row.status,
            "created_at": row.created_at.isoformat() if row.created_at else None,
        }
        for row in result
    ]


async def find_broken_totals(
    session: AsyncSession, min_order_value: int
) -> List[Dict[str, Any]]:
    line_totals = (
        select(
            OrderItem.order_id,
            func.sum(
                (OrderItem.item_price + OrderItem.customization_price)
                * OrderItem.quantity
            ).label("lines"),
        )
        .group_by(OrderItem.order_id)
        .subquery()
    )
    result = await session.execute(
        select(Order, line_totals.c.lines).join(
            line_totals, line_totals.c.order_id == Order.id
        )
    )
    broken = []
    for order, lines in result:
        expected_total = compute_total(
            order.subtotal,
            order.tax_amount,
            order.service_fee,
            order.discount_amount,
            min_order_value,
        )
        if order.subtotal != lines or order.total_amount != expected_total:
            broken.append(
                {
                    "order_id": order.id,
                    "order_number": order.order_number,
                    "subtotal": order.subtotal,
                    "item_lines": int(lines or 0),
                    "total_amount": order.total_amount,
                    "expected_total": expected_total,
                }
            )
    return broken


async def find_promo_drift(session: AsyncSession) -> List[Dict[str, Any]]:
    used = (
        select(func.count(PromoUsage.id))
        .where(PromoUsage.promo_id == Promo.id)
        .scalar_subquery()
    )
    result = await session.execute(
        select(Promo.id, Promo.code, Promo.current_uses, used.label("ledger"))
    )
    return [
        {
            "promo_id": row.id,
            "code": row.code,
            "current_uses": row.current_uses,
            "ledger": row.ledger,
        }
        for row in result
        if row.current_uses != row.ledger
    ]


async def reconcile(
    session: AsyncSession, *, min_order_value: int, fix: bool = False
) -> Dict[str, Any]:
    """Collect drift for one tenant and repair what can be repaired."""

    report = {
        "orphans": await find_orphans(session),
        "broken_totals": await find_broken_totals(session, min_order_value),
        "promo_drift": await find_promo_drift(session),
        "fixed": False,
    }
    if not fix:
        return report

    orphan_ids = [o["order_id"] for o in report["orphans"]]
    if orphan_ids:
        await session.execute(
            delete(PromoUsage).where(PromoUsage.order_id.in_(orphan_ids))
        )
        await session.execute(delete(Order).where(Order.id.in_(orphan_ids)))
        logger.info("deleted orphan orders", extra={"count": len(orphan_ids)})
    # ledger counts may have changed after removing orphan redemptions
    report["promo_drift"] = await find_promo_drift(session)
    for drift in report["promo_drift"]:
        await session.execute(
            update(Promo)
            .where(Promo.id == drift["promo_id"])
            .values(current_uses=drift["ledger"])
        )
        logger.info(
            "resynced promo counter %s: %s -> %s",
            drift["code"],
            drift["current_uses"],
            drift["ledger"],
        )
    await session.commit()
    report["fixed"] = True
    return report


def _print_report(report: Dict[str, Any]) -> None:
    print(f"Orphan orders: {len(report['orphans'])}")
    for o in report["orphans"]:
        print(f"  {o['order_number']} ({o['status']}, created {o['created_at']})")
    print(f"Broken totals: {len(report['broken_totals'])}")
    for o in report["broken_totals"]:
        print(
            f"  {o['order_number']}: subtotal {o['subtotal']} vs lines {o['item_lines']},"
            f" total {o['total_amount']} vs expected {o['expected_total']}"
        )
    print(f"Promo counter drift: {len(report['promo_drift'])}")
    for p in report["promo_drift"]:
        print(f"  {p['code']}: current_uses {p['current_uses']} vs ledger {p['ledger']}")
    if report["fixed"]:
        print("Orphans deleted and promo counters resynced.")


async def main(tenant_id: str, fix: bool, as_json: bool) -> int:
    settings = get_settings()
    registry = TenantEngineRegistry(settings.postgres_tenant_dsn_template)
    try:
        Session = await registry.session_factory(tenant_id)
        async with Session() as session:
            report = await reconcile(
                session, min_order_value=settings.min_order_value, fix=fix
            )
    finally:
        await registry.dispose()
    if as_json:
        print(json.dumps(report, default=str))
    else:
        _print_report(report)
    drift = report["orphans"] or report["broken_totals"] or report["promo_drift"]
    return 1 if drift and not fix else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Reconcile order pipeline drift")
    parser.add_argument("--tenant", required=True, help="Tenant identifier")
    parser.add_argument(
        "--fix",
        action="store_true",
        help="Delete orphan orders and resync promo counters",
    )
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s:%(message)s",
    )
    raise SystemExit(asyncio.run(main(args.tenant, args.fix, args.json)))
