import logging

import pytest

from cafe_api.app.domain.errors import (
    InvalidCustomization,
    InvalidMenuItem,
    InvalidTable,
    MenuItemUnavailable,
    MissingFields,
    UsageLimitReached,
)
from cafe_api.app.models_tenant import OrderType
from cafe_api.app.services.order_builder import (
    Cart,
    CartLine,
    OrderBuilder,
    normalize_text,
    resolve_customizations,
)
from cafe_api.app.utils.retry import RetryPolicy
from cafe_api.app.repos_sqlalchemy import SQLUnitOfWork


def _cart(**overrides):
    data = {
        "customer_name": "Siti Rahma",
        "customer_phone": "081234567890",
        "table_ref": "tbl-garden-1",
        "items": [CartLine(menu_item_id="nasi-goreng", quantity=2)],
    }
    data.update(overrides)
    return Cart(**data)


def _builder(uow):
    return OrderBuilder(uow, retry=RetryPolicy(attempts=1))


def test_normalize_text():
    assert normalize_text("  Siti   Rahma \n") == "Siti Rahma"
    assert normalize_text(None) == ""


def test_resolve_customizations_prices_each_option():
    catalog = {"size": {"regular": 0, "large": 5000}, "extra": {"shot": 8000, "oat_milk": 7000}}
    chosen, price = resolve_customizations(
        catalog, {"size": "large", "extra": ["shot", "oat_milk"]}
    )
    assert chosen == {"size": ["large"], "extra": ["shot", "oat_milk"]}
    assert price == 20000


@pytest.mark.parametrize(
    "selected", [{"temperature": "hot"}, {"size": "jumbo"}, {"extra": ["shot", "cheese"]}]
)
def test_resolve_customizations_rejects_unknown(selected):
    catalog = {"size": {"regular": 0}, "extra": {"shot": 8000}}
    with pytest.raises(InvalidCustomization):
        resolve_customizations(catalog, selected)


@pytest.mark.anyio
async def test_build_prices_cart(fake_uow):
    draft = await _builder(fake_uow).build(_cart())
    assert draft.table_id == "tbl-garden-1"
    assert draft.table_number == "12"
    assert [i.item_name for i in draft.items] == ["Nasi Goreng Kampung"]
    assert draft.totals.subtotal == 100000
    assert draft.totals.total == 116000
    assert draft.promo is None


@pytest.mark.anyio
async def test_table_resolved_by_display_number(fake_uow):
    draft = await _builder(fake_uow).build(_cart(table_ref="12"))
    assert draft.table_id == "tbl-garden-1"


@pytest.mark.anyio
async def test_sql_table_resolved_by_display_number(session):
    draft = await _builder(SQLUnitOfWork(session)).build(_cart(table_ref=" 12 "))
    assert draft.table_id == "tbl-garden-1"
    assert draft.table_number == "12"


@pytest.mark.anyio
async def test_unknown_table(fake_uow):
    with pytest.raises(InvalidTable):
        await _builder(fake_uow).build(_cart(table_ref="99"))


@pytest.mark.anyio
async def test_missing_fields_are_listed(fake_uow):
    cart = _cart(customer_name="  ", customer_phone="", table_ref=None, items=[])
    with pytest.raises(MissingFields) as exc:
        await _builder(fake_uow).build(cart)
    assert exc.value.params["fields"] == "table_id, customer_name, customer_phone, items"


@pytest.mark.anyio
async def test_takeaway_needs_no_table(fake_uow):
    draft = await _builder(fake_uow).build(
        _cart(table_ref=None, order_type=OrderType.TAKEAWAY)
    )
    assert draft.table is None


@pytest.mark.anyio
async def test_unknown_menu_item(fake_uow):
    with pytest.raises(InvalidMenuItem):
        await _builder(fake_uow).build(
            _cart(items=[CartLine(menu_item_id="rendang", quantity=1)])
        )


@pytest.mark.anyio
async def test_unavailable_menu_item_fails_whole_cart(fake_uow):
    items = [
        CartLine(menu_item_id="nasi-goreng", quantity=1),
        CartLine(menu_item_id="pisang-goreng", quantity=1),
    ]
    with pytest.raises(MenuItemUnavailable) as exc:
        await _builder(fake_uow).build(_cart(items=items))
    assert exc.value.params["name"] == "Pisang Goreng"
    assert fake_uow.orders.orders == {}


@pytest.mark.anyio
async def test_customizations_and_notes_snapshot(fake_uow):
    line = CartLine(
        menu_item_id="kopi-susu",
        quantity=2,
        customizations={"size": "large"},
        notes="  less ice ",
    )
    draft = await _builder(fake_uow).build(_cart(items=[line]))
    item = draft.items[0]
    assert item.customization_price == 5000
    assert item.subtotal == 60000
    assert item.notes == "less ice"
    assert item.as_row()["customizations"] == {"size": ["large"]}


@pytest.mark.anyio
async def test_client_unit_price_is_honored_and_logged(fake_uow, caplog):
    line = CartLine(menu_item_id="nasi-goreng", quantity=1, unit_price=45000)
    with caplog.at_level(logging.INFO, logger="cafe_api.orders"):
        draft = await _builder(fake_uow).build(_cart(items=[line]))
    assert draft.items[0].item_price == 45000
    assert "unit price override" in caplog.text


@pytest.mark.anyio
async def test_promo_applied_to_totals(fake_uow):
    draft = await _builder(fake_uow).build(_cart(promo_code="hemat10"))
    assert draft.promo.code == "HEMAT10"
    assert draft.totals.discount == 5000
    assert draft.totals.total == 111000


@pytest.mark.anyio
async def test_blank_promo_code_is_ignored(fake_uow):
    draft = await _builder(fake_uow).build(_cart(promo_code="  "))
    assert draft.promo is None


@pytest.mark.anyio
async def test_exhausted_promo_rejects_order(fake_uow):
    with pytest.raises(UsageLimitReached):
        await _builder(fake_uow).build(_cart(promo_code="HABIS"))
