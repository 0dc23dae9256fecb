import asyncio
import logging
import re
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from cafe_api.app.domain.errors import (
    CompensationFailed,
    PromoUsageRaceLost,
    UsageLimitReached,
)
from cafe_api.app.repos_sqlalchemy import SQLUnitOfWork
from cafe_api.app.services.order_builder import Cart, CartLine, OrderBuilder
from cafe_api.app.services.order_service import (
    TABLE_CONFLICT,
    TABLE_UPDATE_FAILED,
    OrderOrchestrator,
    generate_order_number,
    session_id_for,
)
from cafe_api.app.utils.retry import RetryPolicy

NOW = datetime(2025, 1, 14, 12, 30, tzinfo=timezone.utc)
NO_RETRY = RetryPolicy(attempts=1)


def _cart(**overrides):
    data = {
        "customer_name": "Budi Santoso",
        "customer_phone": "081298765432",
        "table_ref": "tbl-garden-1",
        "items": [
            CartLine(menu_item_id="nasi-goreng", quantity=2),
            CartLine(menu_item_id="kopi-susu", quantity=1, customizations={"size": "large"}),
        ],
    }
    data.update(overrides)
    return Cart(**data)


async def _draft(uow, **overrides):
    return await OrderBuilder(uow, retry=NO_RETRY).build(_cart(**overrides))


def _orchestrator(uow, **kwargs):
    kwargs.setdefault("retry", NO_RETRY)
    return OrderOrchestrator(uow, clock=lambda: NOW, **kwargs)


def test_order_number_format():
    assert re.fullmatch(r"ORD-20250114-[0-9A-F]{6}", generate_order_number(NOW))


def test_session_id_embeds_order_and_millis():
    assert session_id_for("abc", NOW) == f"session_abc_{int(NOW.timestamp() * 1000)}"


@pytest.mark.anyio
async def test_place_persists_order_items_and_totals(fake_uow):
    draft = await _draft(fake_uow)
    placement = await _orchestrator(fake_uow).place(draft)

    order = await fake_uow.orders.get(placement.order_id)
    assert order.status == "pending_payment"
    assert order.subtotal == 130000
    assert order.total_amount == placement.total_amount == 150800
    assert order.session_id == placement.session_id
    assert [i.item_name for i in order.items] == [
        "Nasi Goreng Kampung",
        "Kopi Susu Gula Aren",
    ]
    assert placement.table_number == "12"
    assert placement.estimated_completion == NOW + timedelta(minutes=30)
    assert placement.warnings == []

    table = fake_uow.tables.tables["tbl-garden-1"]
    assert table.status == "occupied"
    assert table.current_session_id == placement.session_id


@pytest.mark.anyio
async def test_placement_as_dict(fake_uow):
    placement = await _orchestrator(fake_uow).place(await _draft(fake_uow))
    data = placement.as_dict()
    assert set(data) == {
        "order_id",
        "order_number",
        "total_amount",
        "table_number",
        "estimated_completion",
        "warnings",
    }
    assert data["estimated_completion"] == "2025-01-14T13:00:00+00:00"


@pytest.mark.anyio
async def test_item_insert_failure_leaves_no_order(fake_uow, monkeypatch):
    draft = await _draft(fake_uow)
    attempted = []
    original = fake_uow.orders.insert_header

    async def tracking_header(values):
        order_id = await original(values)
        attempted.append(order_id)
        return order_id

    async def broken_items(order_id, items):
        raise RuntimeError("disk full")

    monkeypatch.setattr(fake_uow.orders, "insert_header", tracking_header)
    monkeypatch.setattr(fake_uow.orders, "insert_items", broken_items)

    with pytest.raises(RuntimeError, match="disk full"):
        await _orchestrator(fake_uow).place(draft)

    assert attempted
    assert await fake_uow.orders.get(attempted[0]) is None
    assert fake_uow.tables.tables["tbl-garden-1"].current_session_id is None


@pytest.mark.anyio
async def test_sql_item_insert_failure_leaves_no_order(session, monkeypatch):
    uow = SQLUnitOfWork(session)
    draft = await _draft(uow)
    attempted = []
    original = uow.orders.insert_header

    async def tracking_header(values):
        order_id = await original(values)
        attempted.append(order_id)
        return order_id

    async def broken_items(order_id, items):
        raise OperationalError("INSERT INTO order_items", {}, Exception("locked"))

    monkeypatch.setattr(uow.orders, "insert_header", tracking_header)
    monkeypatch.setattr(uow.orders, "insert_items", broken_items)

    with pytest.raises(OperationalError):
        await _orchestrator(uow).place(draft)

    assert await uow.orders.get(attempted[0]) is None


@pytest.mark.anyio
async def test_compensation_failure_is_reported(fake_uow, monkeypatch, caplog):
    draft = await _draft(fake_uow)

    async def broken_items(order_id, items):
        raise RuntimeError("items failed")

    async def broken_delete(order_id):
        raise RuntimeError("delete failed")

    monkeypatch.setattr(fake_uow.orders, "insert_items", broken_items)
    monkeypatch.setattr(fake_uow.orders, "delete_order", broken_delete)

    with caplog.at_level(logging.CRITICAL, logger="cafe_api.orders"):
        with pytest.raises(CompensationFailed) as exc:
            await _orchestrator(fake_uow).place(draft)

    order_id = exc.value.params["order_id"]
    assert order_id in fake_uow.orders.orders
    assert any(getattr(r, "order_id", None) == order_id for r in caplog.records)


@pytest.mark.anyio
async def test_compensating_delete_retries_transient_errors(fake_uow, monkeypatch):
    draft = await _draft(fake_uow)
    original_delete = fake_uow.orders.delete_order
    calls = []

    async def broken_items(order_id, items):
        raise RuntimeError("items failed")

    async def flaky_delete(order_id):
        calls.append(order_id)
        if len(calls) == 1:
            raise ConnectionError("connection reset")
        await original_delete(order_id)

    monkeypatch.setattr(fake_uow.orders, "insert_items", broken_items)
    monkeypatch.setattr(fake_uow.orders, "delete_order", flaky_delete)

    orchestrator = _orchestrator(fake_uow, retry=RetryPolicy(attempts=3, base_delay=0))
    with pytest.raises(RuntimeError, match="items failed"):
        await orchestrator.place(draft)
    assert len(calls) == 2
    assert fake_uow.orders.orders == {}


@pytest.mark.anyio
async def test_promo_usage_recorded(fake_uow):
    draft = await _draft(fake_uow, promo_code="LASTONE")
    placement = await _orchestrator(fake_uow).place(draft)

    order = await fake_uow.orders.get(placement.order_id)
    assert order.promo_code == "LASTONE"
    assert order.discount_percentage == 20
    assert order.discount_amount == 26000
    assert fake_uow.promos.promos["promo-last"].current_uses == 5
    assert fake_uow.promos.usages == [("promo-last", placement.order_id, 26000)]


@pytest.mark.anyio
async def test_concurrent_redemptions_respect_cap(fake_uow):
    promo = fake_uow.promos.promos["promo-last"]
    drafts = await asyncio.gather(
        *[_draft(fake_uow, promo_code="LASTONE") for _ in range(5)]
    )
    results = await asyncio.gather(
        *[_orchestrator(fake_uow).place(d) for d in drafts], return_exceptions=True
    )

    placed = [r for r in results if not isinstance(r, Exception)]
    lost = [r for r in results if isinstance(r, Exception)]
    assert len(placed) == 1
    assert len(lost) == 4
    assert all(isinstance(e, PromoUsageRaceLost) for e in lost)
    assert all(isinstance(e, UsageLimitReached) for e in lost)
    assert promo.current_uses == promo.max_uses_total == 5
    assert list(fake_uow.orders.orders) == [placed[0].order_id]


@pytest.mark.anyio
async def test_totals_write_failure_withdraws_order(fake_uow, monkeypatch, caplog):
    draft = await _draft(fake_uow, promo_code="HEMAT10")
    original_update = fake_uow.orders.update
    calls = []

    async def failing_first_update(order_id, values):
        calls.append(order_id)
        if len(calls) == 1:
            raise RuntimeError("orders table locked")
        await original_update(order_id, values)

    monkeypatch.setattr(fake_uow.orders, "update", failing_first_update)
    with caplog.at_level(logging.ERROR, logger="cafe_api.orders"):
        with pytest.raises(RuntimeError, match="orders table locked"):
            await _orchestrator(fake_uow).place(draft)

    assert fake_uow.orders.orders == {}
    assert fake_uow.promos.promos["promo-hemat"].current_uses == 0
    assert fake_uow.promos.usages == []
    assert fake_uow.tables.tables["tbl-garden-1"].current_session_id is None
    record = next(r for r in caplog.records if getattr(r, "step", None) == "apply_totals")
    assert record.order_id == calls[0]


@pytest.mark.anyio
async def test_sql_totals_write_failure_leaves_no_zero_total_order(session, monkeypatch):
    uow = SQLUnitOfWork(session)
    draft = await _draft(uow)
    attempted = []
    original = uow.orders.insert_header

    async def tracking_header(values):
        order_id = await original(values)
        attempted.append(order_id)
        return order_id

    async def broken_update(order_id, values):
        raise OperationalError("UPDATE orders", {}, Exception("locked"))

    monkeypatch.setattr(uow.orders, "insert_header", tracking_header)
    monkeypatch.setattr(uow.orders, "update", broken_update)

    with pytest.raises(OperationalError):
        await _orchestrator(uow).place(draft)

    assert await uow.orders.get(attempted[0]) is None


@pytest.mark.anyio
async def test_promo_step_failure_is_best_effort(fake_uow, monkeypatch, caplog):
    draft = await _draft(fake_uow, promo_code="HEMAT10")

    async def broken_increment(promo_id):
        raise RuntimeError("promo table locked")

    monkeypatch.setattr(fake_uow.promos, "increment_usage", broken_increment)
    with caplog.at_level(logging.WARNING, logger="cafe_api.orders"):
        placement = await _orchestrator(fake_uow).place(draft)

    assert await fake_uow.orders.get(placement.order_id) is not None
    record = next(r for r in caplog.records if getattr(r, "step", None) == "promo_usage")
    assert record.order_id == placement.order_id
    assert "promo table locked" in record.error


@pytest.mark.anyio
async def test_table_held_by_other_session_warns(fake_uow):
    fake_uow.tables.tables["tbl-garden-1"].current_session_id = "session_other_1"
    placement = await _orchestrator(fake_uow).place(await _draft(fake_uow))

    assert placement.warnings == [TABLE_CONFLICT]
    assert fake_uow.tables.tables["tbl-garden-1"].current_session_id == "session_other_1"


@pytest.mark.anyio
async def test_reserved_table_is_not_taken_over(fake_uow):
    fake_uow.tables.tables["tbl-garden-1"].status = "reserved"
    placement = await _orchestrator(fake_uow).place(await _draft(fake_uow))

    assert placement.warnings == [TABLE_CONFLICT]
    table = fake_uow.tables.tables["tbl-garden-1"]
    assert table.status == "reserved"
    assert table.current_session_id is None


@pytest.mark.anyio
async def test_sql_set_occupied_respects_table_status(session):
    uow = SQLUnitOfWork(session)
    table = await uow.tables.get("tbl-indoor-7")
    table.status = "cleaning"
    await session.commit()

    assert await uow.tables.set_occupied("tbl-indoor-7", "session_a_1", NOW) is False
    assert await uow.tables.set_occupied("tbl-garden-1", "session_b_1", NOW) is True
    assert await uow.tables.set_occupied("tbl-garden-1", "session_b_1", NOW) is True
    assert await uow.tables.set_occupied("tbl-garden-1", "session_c_1", NOW) is False
    await session.commit()

    await session.refresh(table)
    assert table.status == "cleaning"
    assert table.current_session_id is None


@pytest.mark.anyio
async def test_table_update_failure_warns(fake_uow, monkeypatch):
    async def broken_occupy(table_id, session_id, now):
        raise RuntimeError("tables unavailable")

    monkeypatch.setattr(fake_uow.tables, "set_occupied", broken_occupy)
    placement = await _orchestrator(fake_uow).place(await _draft(fake_uow))
    assert placement.warnings == [TABLE_UPDATE_FAILED]
    assert await fake_uow.orders.get(placement.order_id) is not None


@pytest.mark.anyio
async def test_item_snapshot_survives_menu_price_change(session):
    uow = SQLUnitOfWork(session)
    placement = await _orchestrator(uow).place(await _draft(uow))

    menu_item = await uow.menu.get_item("nasi-goreng")
    menu_item.base_price = 65000
    menu_item.name = "Nasi Goreng Spesial"
    await session.commit()

    order = await uow.orders.get(placement.order_id)
    item = next(i for i in order.items if i.menu_item_id == "nasi-goreng")
    assert item.item_price == 50000
    assert item.item_name == "Nasi Goreng Kampung"
    assert item.subtotal == 100000
    assert order.total_amount == placement.total_amount


@pytest.mark.anyio
async def test_sql_place_occupies_table(session):
    uow = SQLUnitOfWork(session)
    placement = await _orchestrator(uow).place(await _draft(uow, promo_code="HEMAT10"))

    order = await uow.orders.get(placement.order_id)
    assert order.discount_amount == 5000
    assert order.total_amount == 150800 - 5000
    table = await uow.tables.get("tbl-garden-1")
    await session.refresh(table)
    assert table.current_session_id == placement.session_id


@pytest.mark.anyio
async def test_place_publishes_created_event(fake_uow):
    events = []

    class Publisher:
        async def publish(self, tenant_id, event, **payload):
            events.append((tenant_id, event, payload))

    placement = await _orchestrator(
        fake_uow, publisher=Publisher(), tenant_id="demo"
    ).place(await _draft(fake_uow))

    assert events == [
        (
            "demo",
            "order.created",
            {
                "order_id": placement.order_id,
                "order_number": placement.order_number,
                "status": "pending_payment",
                "table_id": "tbl-garden-1",
            },
        )
    ]
