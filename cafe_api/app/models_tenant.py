"""Tenant-specific database models.

These models describe the per-tenant schema used by the application. They are
kept isolated from any application wiring so that they can be used in tests or
migrations independently.

Money columns hold integer rupiah; the domain has no fractional currency
units.
"""

from __future__ import annotations

import enum
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


class TableStatus(str, enum.Enum):
    """Occupancy states for a dining table."""

    AVAILABLE = "available"
    OCCUPIED = "occupied"
    RESERVED = "reserved"
    CLEANING = "cleaning"


class PromoType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class OrderType(str, enum.Enum):
    DINE_IN = "dine_in"
    TAKEAWAY = "takeaway"


class MenuItem(Base):
    """Menu catalog entry.

    ``customizations`` maps a customization group to its options and their
    per-unit price adjustment, e.g. ``{"size": {"regular": 0, "large": 5000}}``.
    """

    __tablename__ = "menu_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(100), nullable=False)
    base_price = Column(Integer, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    customizations = Column(JSON, nullable=False, default=dict)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class Table(Base):
    """Physical dining table."""

    __tablename__ = "tables"

    id = Column(String(36), primary_key=True, default=_uuid)
    table_number = Column(String(20), unique=True, nullable=False)
    status = Column(String(20), nullable=False, default=TableStatus.AVAILABLE.value)
    current_session_id = Column(String(100), nullable=True)
    occupied_since = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class Promo(Base):
    """Discount rule redeemable by code."""

    __tablename__ = "promos"
    __table_args__ = (
        CheckConstraint(
            "max_uses_total IS NULL OR current_uses <= max_uses_total",
            name="ck_promos_usage_cap",
        ),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    code = Column(String(50), unique=True, nullable=False)
    name = Column(String(100), nullable=True)
    promo_type = Column(String(20), nullable=False)
    discount_value = Column(Integer, nullable=False)
    max_discount_amount = Column(Integer, nullable=True)
    min_purchase_amount = Column(Integer, nullable=False, default=0)
    max_uses_total = Column(Integer, nullable=True)
    current_uses = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    valid_from = Column(DateTime(timezone=True), nullable=True)
    valid_until = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class Order(Base):
    """Order header."""

    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_uuid)
    order_number = Column(String(30), unique=True, nullable=False)
    order_type = Column(String(20), nullable=False, default=OrderType.DINE_IN.value)
    table_id = Column(String(36), ForeignKey("tables.id"), nullable=True)
    session_id = Column(String(100), nullable=True)

    customer_name = Column(String(100), nullable=False)
    customer_phone = Column(String(20), nullable=False)
    customer_email = Column(String(255), nullable=True)
    customer_notes = Column(Text, nullable=True)

    status = Column(String(30), nullable=False)
    subtotal = Column(Integer, nullable=False, default=0)
    tax_amount = Column(Integer, nullable=False, default=0)
    service_fee = Column(Integer, nullable=False, default=0)
    discount_amount = Column(Integer, nullable=False, default=0)
    total_amount = Column(Integer, nullable=False, default=0)

    promo_id = Column(String(36), ForeignKey("promos.id"), nullable=True)
    promo_code = Column(String(50), nullable=True)
    discount_percentage = Column(Integer, nullable=True)

    payment_method = Column(String(20), nullable=True)
    payment_verified_at = Column(DateTime(timezone=True), nullable=True)
    payment_verified_by = Column(String(100), nullable=True)

    rated = Column(Boolean, nullable=False, default=False)
    cancellation_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    preparing_at = Column(DateTime(timezone=True), nullable=True)
    ready_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    table = relationship("Table", lazy="joined")


class OrderItem(Base):
    """Line item snapshot; name and price never follow later menu edits."""

    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(
        String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    menu_item_id = Column(String(36), ForeignKey("menu_items.id"), nullable=False)
    item_name = Column(String(100), nullable=False)
    item_price = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    customizations = Column(JSON, nullable=False, default=dict)
    customization_price = Column(Integer, nullable=False, default=0)
    subtotal = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    prepared_at = Column(DateTime(timezone=True), nullable=True)
    served_at = Column(DateTime(timezone=True), nullable=True)

    order = relationship("Order", back_populates="items")


class PromoUsage(Base):
    """Ledger of promo redemptions, one row per discounted order."""

    __tablename__ = "promo_usages"

    id = Column(String(36), primary_key=True, default=_uuid)
    promo_id = Column(
        String(36), ForeignKey("promos.id", ondelete="CASCADE"), nullable=False
    )
    order_id = Column(
        String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    discount_amount = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Payment(Base):
    """Payment attempt for an order."""

    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(
        String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    method = Column(String(20), nullable=False)
    amount = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    reference_code = Column(String(40), nullable=True)
    proof_image_url = Column(Text, nullable=True)
    proof_orientation = Column(String(10), nullable=True)
    verified_by = Column(String(100), nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    verification_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    processed_at = Column(DateTime(timezone=True), nullable=True)


class Rating(Base):
    """Customer feedback, at most one per order."""

    __tablename__ = "ratings"
    __table_args__ = (UniqueConstraint("order_id", name="uq_ratings_order"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(
        String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    overall_rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    food_quality = Column(Integer, nullable=True)
    service_quality = Column(Integer, nullable=True)
    cleanliness = Column(Integer, nullable=True)
    speed = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
