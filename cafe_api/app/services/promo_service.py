"""Promo code validation.

Checks run in a fixed order and stop at the first failure: the code must
exist, be active and inside its validity window; the order must reach the
minimum purchase; the usage cap must not be exhausted. Validation never
changes the usage counter; redemption happens when the order is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..domain.errors import (
    BelowMinimumPurchase,
    PromoExpired,
    PromoNotFound,
    UsageLimitReached,
)
from ..models_tenant import PromoType
from ..pricing import DiscountRule, compute_discount
from ..repos.promos_repo import PromosRepo
from ..utils.clock import ensure_aware, utcnow


@dataclass(frozen=True)
class PromoDiscount:
    """A validated promo and the discount it grants on a given subtotal."""

    promo_id: str
    code: str
    promo_type: PromoType
    discount_value: int
    max_discount_amount: int | None
    discount_amount: int

    @property
    def rule(self) -> DiscountRule:
        return DiscountRule(
            promo_type=self.promo_type,
            value=self.discount_value,
            max_discount_amount=self.max_discount_amount,
        )

    @property
    def discount_percentage(self) -> int | None:
        if self.promo_type is PromoType.PERCENTAGE:
            return self.discount_value
        return None

    def as_dict(self) -> dict:
        return {
            "promo_id": self.promo_id,
            "code": self.code,
            "promo_type": self.promo_type.value,
            "discount_value": self.discount_value,
            "max_discount_amount": self.max_discount_amount,
            "discount_amount": self.discount_amount,
        }


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


async def validate_promo(
    promos: PromosRepo, code: str, subtotal: int, now: datetime | None = None
) -> PromoDiscount:
    """Validate ``code`` against ``subtotal`` and return the resulting discount.

    Raises
    ------
    PromoNotFound
        Unknown or inactive code. :class:`PromoExpired` when outside the
        validity window.
    BelowMinimumPurchase
        ``subtotal`` is below the promo's minimum purchase.
    UsageLimitReached
        The promo's total usage cap is exhausted.
    """

    normalized = normalize_code(code)
    if not normalized:
        raise PromoNotFound(code=code)
    promo = await promos.find_by_code(normalized)
    if promo is None or not promo.is_active:
        raise PromoNotFound(code=normalized)

    now = now or utcnow()
    valid_from = ensure_aware(promo.valid_from)
    valid_until = ensure_aware(promo.valid_until)
    if (valid_from and now < valid_from) or (valid_until and now > valid_until):
        raise PromoExpired(code=normalized)

    minimum = promo.min_purchase_amount or 0
    if subtotal < minimum:
        raise BelowMinimumPurchase(
            minimum=minimum,
            shortfall=minimum - subtotal,
            hint="ADD_TO_USE_PROMO",
        )

    if promo.max_uses_total is not None and promo.current_uses >= promo.max_uses_total:
        raise UsageLimitReached(code=normalized)

    promo_type = PromoType(promo.promo_type)
    rule = DiscountRule(
        promo_type=promo_type,
        value=promo.discount_value,
        max_discount_amount=promo.max_discount_amount,
    )
    return PromoDiscount(
        promo_id=promo.id,
        code=promo.code.upper(),
        promo_type=promo_type,
        discount_value=promo.discount_value,
        max_discount_amount=promo.max_discount_amount,
        discount_amount=compute_discount(subtotal, rule),
    )
