"""In-memory repositories implementing the repository contracts.

Rows are plain namespaces carrying the same attribute names as the ORM
models so the services and projections cannot tell them apart.
"""

from __future__ import annotations

import asyncio
import itertools
import uuid
from types import SimpleNamespace

from cafe_api.app.models_tenant import MenuItem, Order, OrderItem, Payment, Promo, Table
from cafe_api.app.repos import (
    MenuRepo,
    OrdersRepo,
    PaymentsRepo,
    PromosRepo,
    RatingsRepo,
    TablesRepo,
)
from cafe_api.app.repos.unit_of_work import UnitOfWork

from cafe_api.tests.catalog import MENU, PROMOS, TABLES

_seq = itertools.count()


def _row(model, values: dict) -> SimpleNamespace:
    data = {c.name: None for c in model.__table__.columns}
    data.update(values)
    data.setdefault("id", str(uuid.uuid4()))
    if data["id"] is None:
        data["id"] = str(uuid.uuid4())
    return SimpleNamespace(**data)


def menu_item(**values) -> SimpleNamespace:
    return _row(MenuItem, {"is_available": True, "customizations": {}, **values})


def table(**values) -> SimpleNamespace:
    return _row(Table, {"status": "available", **values})


def promo(**values) -> SimpleNamespace:
    return _row(
        Promo,
        {"min_purchase_amount": 0, "current_uses": 0, "is_active": True, **values},
    )


class FakeMenuRepo(MenuRepo):
    def __init__(self, items=()):
        self.items = {i.id: i for i in items}

    async def get_item(self, item_id):
        return self.items.get(item_id)


class FakeTablesRepo(TablesRepo):
    def __init__(self, tables=()):
        self.tables = {t.id: t for t in tables}

    async def get(self, table_id):
        return self.tables.get(table_id)

    async def get_by_number(self, table_number):
        for t in self.tables.values():
            if t.table_number == str(table_number):
                return t
        return None

    async def set_occupied(self, table_id, session_id, now):
        t = self.tables[table_id]
        free = t.current_session_id is None and t.status == "available"
        if not (free or t.current_session_id == session_id):
            return False
        t.status = "occupied"
        t.current_session_id = session_id
        t.occupied_since = now
        return True

    async def release(self, table_id, session_id):
        t = self.tables.get(table_id)
        if t is None or t.current_session_id != session_id:
            return False
        t.status = "available"
        t.current_session_id = None
        t.occupied_since = None
        return True


class FakePromosRepo(PromosRepo):
    def __init__(self, promos=()):
        self.promos = {p.id: p for p in promos}
        self.usages = []

    async def find_by_code(self, code):
        # yield so concurrent validations interleave like real queries
        await asyncio.sleep(0)
        for p in self.promos.values():
            if p.code.upper() == code.strip().upper():
                return p
        return None

    async def increment_usage(self, promo_id):
        p = self.promos[promo_id]
        if p.max_uses_total is not None and p.current_uses >= p.max_uses_total:
            return 0
        p.current_uses += 1
        return 1

    async def record_usage(self, promo_id, order_id, discount_amount):
        self.usages.append((promo_id, order_id, discount_amount))


class FakeOrdersRepo(OrdersRepo):
    def __init__(self):
        self.orders = {}
        self.items = {}

    async def insert_header(self, values):
        order = _row(Order, {"rated": False, **values})
        order.items = []
        order.table = None
        self.orders[order.id] = order
        return order.id

    async def set_session_id(self, order_id, session_id):
        self.orders[order_id].session_id = session_id

    async def insert_items(self, order_id, items):
        rows = [
            _row(OrderItem, {"status": "pending", **item, "order_id": order_id})
            for item in items
        ]
        if not rows:
            raise ValueError("an order needs at least one item")
        for row in rows:
            self.items[row.id] = row
            self.orders[order_id].items.append(row)

    async def delete_order(self, order_id):
        order = self.orders.pop(order_id, None)
        if order is not None:
            for item in order.items:
                self.items.pop(item.id, None)

    async def update(self, order_id, values):
        order = self.orders[order_id]
        for key, value in values.items():
            setattr(order, key, value)

    async def get(self, order_id):
        return self.orders.get(order_id)

    async def get_item(self, item_id):
        return self.items.get(item_id)

    async def update_item(self, item_id, values):
        for key, value in values.items():
            setattr(self.items[item_id], key, value)

    async def list_by_status(self, statuses, limit=100):
        wanted = {getattr(s, "value", s) for s in statuses}
        rows = [o for o in self.orders.values() if o.status in wanted]
        return sorted(rows, key=lambda o: o.created_at)[:limit]


class FakePaymentsRepo(PaymentsRepo):
    def __init__(self):
        self.payments = {}

    async def create(self, values):
        payment = _row(Payment, {"status": "pending", **values})
        payment._seq = next(_seq)
        self.payments[payment.id] = payment
        return payment

    async def get(self, payment_id):
        return self.payments.get(payment_id)

    async def list_for_order(self, order_id):
        rows = [p for p in self.payments.values() if p.order_id == order_id]
        return sorted(rows, key=lambda p: p._seq, reverse=True)

    async def update(self, payment_id, values):
        for key, value in values.items():
            setattr(self.payments[payment_id], key, value)


class FakeRatingsRepo(RatingsRepo):
    def __init__(self):
        self.ratings = {}

    async def get_for_order(self, order_id):
        return self.ratings.get(order_id)

    async def create(self, values):
        rating = SimpleNamespace(id=str(uuid.uuid4()), **values)
        self.ratings[values["order_id"]] = rating
        return rating


class FakeUnitOfWork(UnitOfWork):
    def __init__(self, *, menu=(), tables=(), promos=()):
        self.menu = FakeMenuRepo(menu)
        self.tables = FakeTablesRepo(tables)
        self.promos = FakePromosRepo(promos)
        self.orders = FakeOrdersRepo()
        self.payments = FakePaymentsRepo()
        self.ratings = FakeRatingsRepo()
        self.commits = 0
        self.rollbacks = 0

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1

    @classmethod
    def seeded(cls) -> "FakeUnitOfWork":
        """A unit of work loaded with the shared test catalog."""
        return cls(
            menu=[menu_item(**m) for m in MENU],
            tables=[table(**t) for t in TABLES],
            promos=[promo(**p) for p in PROMOS],
        )
