"""Turn a customer cart into a priced, persistable order draft.

The builder fails fast: the first invalid line aborts the whole build and
nothing is written. Item names and prices are snapshotted into the draft so
later menu edits never change a placed order.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from ..domain.errors import (
    InvalidCustomization,
    InvalidMenuItem,
    InvalidTable,
    MenuItemUnavailable,
    MissingFields,
)
from ..models_tenant import OrderType, Table
from ..pricing import LineItem, PricingConfig, Totals, compute_subtotal, compute_totals
from ..repos.unit_of_work import UnitOfWork
from ..utils.retry import RetryPolicy
from .promo_service import PromoDiscount, validate_promo

logger = logging.getLogger("cafe_api.orders")

_WS_RE = re.compile(r"\s+")


def normalize_text(value: str | None) -> str:
    """Trim and collapse internal whitespace."""
    return _WS_RE.sub(" ", value or "").strip()


@dataclass
class CartLine:
    menu_item_id: str
    quantity: int
    unit_price: int | None = None
    customizations: Mapping[str, Any] | None = None
    notes: str | None = None


@dataclass
class Cart:
    customer_name: str
    customer_phone: str
    items: list[CartLine]
    table_ref: str | None = None
    order_type: OrderType = OrderType.DINE_IN
    customer_email: str | None = None
    customer_notes: str | None = None
    promo_code: str | None = None
    payment_method: str | None = None


@dataclass
class DraftItem:
    menu_item_id: str
    item_name: str
    item_price: int
    quantity: int
    customizations: dict = field(default_factory=dict)
    customization_price: int = 0
    notes: str | None = None

    @property
    def line(self) -> LineItem:
        return LineItem(
            unit_price=self.item_price,
            quantity=self.quantity,
            customization_price=self.customization_price,
        )

    @property
    def subtotal(self) -> int:
        return self.line.subtotal

    def as_row(self) -> dict:
        return {
            "menu_item_id": self.menu_item_id,
            "item_name": self.item_name,
            "item_price": self.item_price,
            "quantity": self.quantity,
            "customizations": self.customizations,
            "customization_price": self.customization_price,
            "subtotal": self.subtotal,
            "notes": self.notes,
        }


@dataclass
class OrderDraft:
    order_type: OrderType
    table: Table | None
    customer_name: str
    customer_phone: str
    customer_email: str | None
    customer_notes: str | None
    payment_method: str | None
    items: list[DraftItem]
    totals: Totals
    promo: PromoDiscount | None = None

    @property
    def table_id(self) -> str | None:
        return self.table.id if self.table is not None else None

    @property
    def table_number(self) -> str | None:
        return self.table.table_number if self.table is not None else None


def resolve_customizations(
    catalog: Mapping[str, Mapping[str, int]] | None, selected: Mapping[str, Any] | None
) -> tuple[dict, int]:
    """Validate ``selected`` options against ``catalog``.

    ``selected`` maps a group to one option or a list of options. Returns the
    normalized selection and the per-unit price adjustment.
    """

    catalog = catalog or {}
    chosen: dict[str, list[str]] = {}
    price = 0
    for group, value in (selected or {}).items():
        options = value if isinstance(value, (list, tuple)) else [value]
        group_options = catalog.get(group)
        if group_options is None:
            raise InvalidCustomization(group=group, option=", ".join(map(str, options)))
        for option in options:
            if option not in group_options:
                raise InvalidCustomization(group=group, option=option)
            price += int(group_options[option])
        chosen[group] = [str(o) for o in options]
    return chosen, price


class OrderBuilder:
    """Validate a cart against the menu, tables and promos."""

    def __init__(
        self,
        uow: UnitOfWork,
        *,
        pricing: PricingConfig = PricingConfig(),
        retry: RetryPolicy = RetryPolicy(),
    ) -> None:
        self.uow = uow
        self.pricing = pricing
        self.retry = retry

    async def build(self, cart: Cart, now: datetime | None = None) -> OrderDraft:
        name = normalize_text(cart.customer_name)
        phone = normalize_text(cart.customer_phone)
        table_ref = normalize_text(cart.table_ref)
        missing = []
        if cart.order_type is OrderType.DINE_IN and not table_ref:
            missing.append("table_id")
        if not name:
            missing.append("customer_name")
        if not phone:
            missing.append("customer_phone")
        if not cart.items:
            missing.append("items")
        if missing:
            raise MissingFields(fields=", ".join(missing))

        table = None
        if table_ref:
            table = await self.retry.run(
                lambda: self.uow.tables.find_by_id_or_number(table_ref),
                op="table_lookup",
            )
            if table is None:
                raise InvalidTable(table=table_ref)

        items = [await self._resolve_line(line) for line in cart.items]

        promo = None
        if cart.promo_code and cart.promo_code.strip():
            subtotal = compute_subtotal(item.line for item in items)
            promo = await self.retry.run(
                lambda: validate_promo(self.uow.promos, cart.promo_code, subtotal, now),
                op="promo_lookup",
            )

        totals = compute_totals(
            [item.line for item in items],
            promo.rule if promo else None,
            config=self.pricing,
        )
        return OrderDraft(
            order_type=cart.order_type,
            table=table,
            customer_name=name,
            customer_phone=phone,
            customer_email=normalize_text(cart.customer_email) or None,
            customer_notes=(cart.customer_notes or "").strip() or None,
            payment_method=cart.payment_method,
            items=items,
            totals=totals,
            promo=promo,
        )

    async def _resolve_line(self, line: CartLine) -> DraftItem:
        menu_item = await self.retry.run(
            lambda: self.uow.menu.get_item(line.menu_item_id), op="menu_lookup"
        )
        if menu_item is None:
            raise InvalidMenuItem(menu_item_id=line.menu_item_id)
        if not menu_item.is_available:
            raise MenuItemUnavailable(
                menu_item_id=line.menu_item_id, name=menu_item.name
            )
        customizations, customization_price = resolve_customizations(
            menu_item.customizations, line.customizations
        )
        unit_price = menu_item.base_price
        if line.unit_price is not None:
            if line.unit_price != menu_item.base_price:
                logger.warning(
                    "unit price override %s -> %s for %s",
                    menu_item.base_price,
                    line.unit_price,
                    menu_item.id,
                )
            unit_price = line.unit_price
        return DraftItem(
            menu_item_id=menu_item.id,
            item_name=menu_item.name,
            item_price=unit_price,
            quantity=line.quantity,
            customizations=customizations,
            customization_price=customization_price,
            notes=(line.notes or "").strip() or None,
        )
