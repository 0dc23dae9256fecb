"""Order pricing: subtotal, tax, service fee, promo discount and total.

Everything here is pure computation over integer rupiah. Each component is
rounded half-up on its own and never re-derived from a rounded total.

Examples
--------
>>> cfg = PricingConfig(tax_rate=Decimal("0.11"), service_fee_rate=Decimal("0.05"))
>>> compute_totals([LineItem(unit_price=50000, quantity=2)], config=cfg)
Totals(subtotal=100000, tax=11000, service_fee=5000, discount=0, total=116000)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from .models_tenant import PromoType


@dataclass(frozen=True)
class PricingConfig:
    """Rates and floor applied to every order."""

    tax_rate: Decimal = Decimal("0.11")
    service_fee_rate: Decimal = Decimal("0.05")
    min_order_value: int = 1000

    @classmethod
    def from_settings(cls, settings) -> "PricingConfig":
        return cls(
            tax_rate=Decimal(str(settings.tax_rate)),
            service_fee_rate=Decimal(str(settings.service_fee_rate)),
            min_order_value=int(settings.min_order_value),
        )


@dataclass(frozen=True)
class LineItem:
    """Priced cart line. ``customization_price`` is per unit."""

    unit_price: int
    quantity: int
    customization_price: int = 0

    @property
    def subtotal(self) -> int:
        return (self.unit_price + self.customization_price) * self.quantity


@dataclass(frozen=True)
class DiscountRule:
    """The pricing-relevant part of a promo."""

    promo_type: PromoType
    value: int
    max_discount_amount: int | None = None


@dataclass(frozen=True)
class Totals:
    subtotal: int
    tax: int
    service_fee: int
    discount: int
    total: int


def round_half_up(amount: Decimal) -> int:
    """Round ``amount`` to a whole rupiah, halves away from zero."""

    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_subtotal(lines: Iterable[LineItem]) -> int:
    return sum(line.subtotal for line in lines)


def compute_discount(subtotal: int, rule: DiscountRule | None) -> int:
    """Return the discount ``rule`` grants on ``subtotal``.

    Percentage discounts are capped at ``max_discount_amount`` when set. No
    discount ever exceeds the subtotal itself.
    """

    if rule is None or subtotal <= 0:
        return 0
    if rule.promo_type is PromoType.PERCENTAGE:
        discount = round_half_up(Decimal(subtotal) * Decimal(rule.value) / Decimal(100))
        if rule.max_discount_amount is not None:
            discount = min(discount, rule.max_discount_amount)
    elif rule.promo_type is PromoType.FIXED_AMOUNT:
        discount = rule.value
    else:  # pragma: no cover - enum is exhaustive
        raise ValueError(f"Unsupported promo type: {rule.promo_type}")
    return max(0, min(discount, subtotal))


def compute_total(
    subtotal: int, tax: int, service_fee: int, discount: int, min_order_value: int
) -> int:
    """Apply the business floor to the raw total."""

    return max(min_order_value, subtotal + tax + service_fee - discount)


def compute_totals(
    lines: Iterable[LineItem],
    rule: DiscountRule | None = None,
    *,
    config: PricingConfig = PricingConfig(),
) -> Totals:
    """Compute the monetary breakdown for ``lines`` with an optional promo."""

    subtotal = compute_subtotal(lines)
    tax = round_half_up(Decimal(subtotal) * config.tax_rate)
    service_fee = round_half_up(Decimal(subtotal) * config.service_fee_rate)
    discount = compute_discount(subtotal, rule)
    total = compute_total(subtotal, tax, service_fee, discount, config.min_order_value)
    return Totals(
        subtotal=subtotal,
        tax=tax,
        service_fee=service_fee,
        discount=discount,
        total=total,
    )


__all__ = [
    "PricingConfig",
    "LineItem",
    "DiscountRule",
    "Totals",
    "round_half_up",
    "compute_subtotal",
    "compute_discount",
    "compute_total",
    "compute_totals",
]
