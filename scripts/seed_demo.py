#!/usr/bin/env python3
"""Seed a tenant database with a demo menu, tables and promos.

Existing rows are left untouched, so the script can be re-run safely. The
ids of the inserted rows are printed as JSON.

Usage::

    python scripts/seed_demo.py --tenant demo [--create-schema]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

# Ensure project root is on the import path so ``cafe_api.app`` resolves when
# invoked as ``python scripts/seed_demo.py``.
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
from cafe_api.app.db.tenant import TenantEngineRegistry  # noqa: E402
from cafe_api.app.models_tenant import MenuItem, Promo, Table  # noqa: E402
from config import get_settings  # noqa: E402

logger = logging.getLogger("seed_demo")

MENU = [
    {
        "name": "Es Kopi Susu",
        "base_price": 22000,
        "customizations": {
            "size": {"regular": 0, "large": 6000},
            "sugar": {"normal": 0, "less": 0, "none": 0},
        },
    },
    {"name": "Nasi Jamblang", "base_price": 35000},
    {"name": "Empal Gentong", "base_price": 45000},
    {"name": "Tahu Gejrot", "base_price": 18000},
    {
        "name": "Teh Tarik",
        "base_price": 15000,
        "customizations": {"temperature": {"hot": 0, "iced": 2000}},
    },
]

TABLES = [str(n) for n in range(1, 11)]

PROMOS = [
    {
        "code": "HEMAT10",
        "name": "Hemat 10%",
        "promo_type": "percentage",
        "discount_value": 10,
        "max_discount_amount": 20000,
        "min_purchase_amount": 50000,
    },
    {
        "code": "WELCOME5K",
        "name": "Potongan Rp 5.000",
        "promo_type": "fixed_amount",
        "discount_value": 5000,
        "max_uses_total": 100,
    },
]


async def seed_demo(session: AsyncSession) -> Dict[str, List[str]]:
    """Insert missing demo rows and return the ids created."""

    created: Dict[str, List[str]] = {"menu_items": [], "tables": [], "promos": []}

    names = set((await session.execute(select(MenuItem.name))).scalars())
    numbers = set((await session.execute(select(Table.table_number))).scalars())
    codes = set((await session.execute(select(Promo.code))).scalars())

    items = [MenuItem(**m) for m in MENU if m["name"] not in names]
    tables = [Table(table_number=n) for n in TABLES if n not in numbers]
    promos = [Promo(**p) for p in PROMOS if p["code"] not in codes]
    session.add_all([*items, *tables, *promos])
    await session.commit()

    created["menu_items"] = [i.id for i in items]
    created["tables"] = [t.id for t in tables]
    created["promos"] = [p.id for p in promos]
    logger.info(
        "seeded %d menu items, %d tables, %d promos",
        len(items),
        len(tables),
        len(promos),
    )
    return created


async def main(tenant_id: str, create_schema: bool) -> None:
    settings = get_settings()
    registry = TenantEngineRegistry(
        settings.postgres_tenant_dsn_template, create_schema=create_schema
    )
    try:
        Session = await registry.session_factory(tenant_id)
        async with Session() as session:
            ids = await seed_demo(session)
    finally:
        await registry.dispose()
    print(json.dumps(ids))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed demo tenant data")
    parser.add_argument("--tenant", required=True, help="Tenant identifier")
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="Create missing tables first (local SQLite only)",
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    asyncio.run(main(args.tenant, args.create_schema))
