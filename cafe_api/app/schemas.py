# schemas.py

"""Pydantic models for API payloads.

Bodies are parsed before any collaborator is touched. Blank names, phones and
empty carts are left to the order builder so they surface as
``MISSING_FIELDS`` with the offending field names.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field

from .domain import ItemStatus, OrderStatus, PaymentMethod
from .models_tenant import OrderType
from .services.order_builder import Cart, CartLine


class CartLineIn(BaseModel):
    """One cart line as sent by the customer app."""

    menu_item_id: str
    quantity: int = Field(ge=1, le=99)
    unit_price: Optional[int] = Field(default=None, ge=0)
    customizations: Optional[Dict[str, Union[str, List[str]]]] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class OrderCreateIn(BaseModel):
    table_id: Optional[str] = None
    order_type: OrderType = OrderType.DINE_IN
    customer_name: str = ""
    customer_phone: str = ""
    customer_email: Optional[str] = None
    customer_notes: Optional[str] = Field(default=None, max_length=1000)
    items: List[CartLineIn] = []
    promo_code: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None

    def to_cart(self) -> Cart:
        return Cart(
            customer_name=self.customer_name,
            customer_phone=self.customer_phone,
            items=[CartLine(**line.model_dump()) for line in self.items],
            table_ref=self.table_id,
            order_type=self.order_type,
            customer_email=self.customer_email,
            customer_notes=self.customer_notes,
            promo_code=self.promo_code,
            payment_method=self.payment_method.value if self.payment_method else None,
        )


class OrderTransitionIn(BaseModel):
    status: OrderStatus
    reason: Optional[str] = Field(default=None, max_length=500)


class ItemTransitionIn(BaseModel):
    status: ItemStatus


class PromoValidateIn(BaseModel):
    code: str
    subtotal: int = Field(ge=0)


class PaymentCreateIn(BaseModel):
    order_id: str
    # validated by the service so unsupported methods get PAYMENT_METHOD_INVALID
    method: str
    amount: int = Field(ge=0)


class PaymentVerifyIn(BaseModel):
    approved: bool
    notes: Optional[str] = Field(default=None, max_length=500)


class RatingIn(BaseModel):
    order_id: str
    # range checked by the rating service for a localized message
    overall_rating: int
    comment: Optional[str] = Field(default=None, max_length=1000)
    food_quality: Optional[int] = None
    service_quality: Optional[int] = None
    cleanliness: Optional[int] = None
    speed: Optional[int] = None
