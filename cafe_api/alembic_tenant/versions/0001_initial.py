"""initial tenant schema

Revision ID: 0001_initial
Revises: None
Create Date: 2025-01-14
"""

import sqlalchemy as sa
from alembic import op

revision: str = "0001_initial"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def _timestamp(name: str, *, default: bool = False) -> sa.Column:
    kwargs = {"server_default": sa.text("CURRENT_TIMESTAMP")} if default else {}
    return sa.Column(name, sa.DateTime(timezone=True), nullable=True, **kwargs)


def upgrade() -> None:
    """Create menu, tables, promos, orders, payments and ratings."""

    op.create_table(
        "menu_items",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("base_price", sa.Integer(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("customizations", sa.JSON(), nullable=False),
        _timestamp("updated_at", default=True),
    )

    op.create_table(
        "tables",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("table_number", sa.String(20), nullable=False, unique=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="available"),
        sa.Column("current_session_id", sa.String(100), nullable=True),
        _timestamp("occupied_since"),
        _timestamp("updated_at", default=True),
    )

    op.create_table(
        "promos",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("code", sa.String(50), nullable=False, unique=True),
        sa.Column("name", sa.String(100), nullable=True),
        sa.Column("promo_type", sa.String(20), nullable=False),
        sa.Column("discount_value", sa.Integer(), nullable=False),
        sa.Column("max_discount_amount", sa.Integer(), nullable=True),
        sa.Column("min_purchase_amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_uses_total", sa.Integer(), nullable=True),
        sa.Column("current_uses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _timestamp("valid_from"),
        _timestamp("valid_until"),
        _timestamp("updated_at", default=True),
        sa.CheckConstraint(
            "max_uses_total IS NULL OR current_uses <= max_uses_total",
            name="ck_promos_usage_cap",
        ),
    )

    op.create_table(
        "orders",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("order_number", sa.String(30), nullable=False, unique=True),
        sa.Column("order_type", sa.String(20), nullable=False, server_default="dine_in"),
        sa.Column("table_id", sa.String(36), sa.ForeignKey("tables.id"), nullable=True),
        sa.Column("session_id", sa.String(100), nullable=True),
        sa.Column("customer_name", sa.String(100), nullable=False),
        sa.Column("customer_phone", sa.String(20), nullable=False),
        sa.Column("customer_email", sa.String(255), nullable=True),
        sa.Column("customer_notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(30), nullable=False),
        sa.Column("subtotal", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tax_amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("service_fee", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("discount_amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("promo_id", sa.String(36), sa.ForeignKey("promos.id"), nullable=True),
        sa.Column("promo_code", sa.String(50), nullable=True),
        sa.Column("discount_percentage", sa.Integer(), nullable=True),
        sa.Column("payment_method", sa.String(20), nullable=True),
        _timestamp("payment_verified_at"),
        sa.Column("payment_verified_by", sa.String(100), nullable=True),
        sa.Column("rated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        _timestamp("created_at", default=True),
        _timestamp("updated_at", default=True),
        _timestamp("confirmed_at"),
        _timestamp("preparing_at"),
        _timestamp("ready_at"),
        _timestamp("delivered_at"),
        _timestamp("completed_at"),
        _timestamp("cancelled_at"),
    )
    op.create_index("ix_orders_status_created", "orders", ["status", "created_at"])

    op.create_table(
        "order_items",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "order_id",
            sa.String(36),
            sa.ForeignKey("orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "menu_item_id", sa.String(36), sa.ForeignKey("menu_items.id"), nullable=False
        ),
        sa.Column("item_name", sa.String(100), nullable=False),
        sa.Column("item_price", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("customizations", sa.JSON(), nullable=False),
        sa.Column("customization_price", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("subtotal", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        _timestamp("prepared_at"),
        _timestamp("served_at"),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])

    op.create_table(
        "promo_usages",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "promo_id",
            sa.String(36),
            sa.ForeignKey("promos.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "order_id",
            sa.String(36),
            sa.ForeignKey("orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("discount_amount", sa.Integer(), nullable=False),
        _timestamp("created_at", default=True),
    )

    op.create_table(
        "payments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "order_id",
            sa.String(36),
            sa.ForeignKey("orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("method", sa.String(20), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("reference_code", sa.String(40), nullable=True),
        sa.Column("proof_image_url", sa.Text(), nullable=True),
        sa.Column("proof_orientation", sa.String(10), nullable=True),
        sa.Column("verified_by", sa.String(100), nullable=True),
        _timestamp("verified_at"),
        sa.Column("verification_notes", sa.Text(), nullable=True),
        _timestamp("created_at", default=True),
        _timestamp("processed_at"),
    )
    op.create_index("ix_payments_order_id", "payments", ["order_id"])

    op.create_table(
        "ratings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "order_id",
            sa.String(36),
            sa.ForeignKey("orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("overall_rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("food_quality", sa.Integer(), nullable=True),
        sa.Column("service_quality", sa.Integer(), nullable=True),
        sa.Column("cleanliness", sa.Integer(), nullable=True),
        sa.Column("speed", sa.Integer(), nullable=True),
        _timestamp("created_at", default=True),
        sa.UniqueConstraint("order_id", name="uq_ratings_order"),
        sa.CheckConstraint(
            "overall_rating BETWEEN 1 AND 5", name="ck_ratings_overall_range"
        ),
    )


def downgrade() -> None:
    op.drop_table("ratings")
    op.drop_index("ix_payments_order_id", table_name="payments")
    op.drop_table("payments")
    op.drop_table("promo_usages")
    op.drop_index("ix_order_items_order_id", table_name="order_items")
    op.drop_table("order_items")
    op.drop_index("ix_orders_status_created", table_name="orders")
    op.drop_table("orders")
    op.drop_table("promos")
    op.drop_table("tables")
    op.drop_table("menu_items")
