"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates all tables for orderflow:
orders, order_items, kitchen_tickets, bills,
analytics_orders, analytics_order_items, analytics_bills.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Enum columns store member names, matching SQLAlchemy's Enum(PythonEnum) default.
order_status = sa.Enum(
    "placed", "accepted", "in_progress", "ready", "completed", "cancelled", name="orderstatus"
)
ticket_status = sa.Enum(
    "new", "accepted", "in_progress", "ready", "delivered_to_service", name="ticketstatus"
)
bill_status = sa.Enum("pending", "paid", "cancelled", name="billstatus")
payment_method = sa.Enum("cash", "card", "upi", name="paymentmethod")


def upgrade() -> None:
    # --- orders ---
    op.create_table(
        "orders",
        sa.Column("order_id", sa.Uuid, primary_key=True),
        sa.Column("user_id", sa.Uuid, nullable=False, index=True),
        sa.Column("restaurant_id", sa.Uuid, nullable=False, index=True),
        sa.Column("status", order_status, nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("delivery_address", sa.String(500), nullable=True),
        sa.Column("special_instructions", sa.String(1000), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- order_items ---
    op.create_table(
        "order_items",
        sa.Column("item_id", sa.Uuid, primary_key=True),
        sa.Column(
            "order_id", sa.Uuid, sa.ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False, index=True
        ),
        sa.Column("line_no", sa.Integer, nullable=False, server_default="0"),
        sa.Column("food_id", sa.Uuid, nullable=False),
        sa.Column("food_name", sa.String(255), nullable=False),
        sa.Column("food_description", sa.String(1000), nullable=True),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
    )

    # --- kitchen_tickets ---
    op.create_table(
        "kitchen_tickets",
        sa.Column("ticket_id", sa.Uuid, primary_key=True),
        sa.Column("order_id", sa.Uuid, nullable=False, unique=True),
        sa.Column("restaurant_id", sa.Uuid, nullable=False, index=True),
        sa.Column("user_id", sa.Uuid, nullable=False),
        sa.Column("status", ticket_status, nullable=False),
        sa.Column("items", sa.JSON, nullable=False),
        sa.Column("special_instructions", sa.String(1000), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- bills ---
    op.create_table(
        "bills",
        sa.Column("bill_id", sa.Uuid, primary_key=True),
        sa.Column("order_id", sa.Uuid, nullable=False, unique=True),
        sa.Column("user_id", sa.Uuid, nullable=False, index=True),
        sa.Column("restaurant_id", sa.Uuid, nullable=False, index=True),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("tax_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("discount_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", bill_status, nullable=False),
        sa.Column("payment_method", payment_method, nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- analytics_orders (append-only) ---
    op.create_table(
        "analytics_orders",
        sa.Column("row_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("order_id", sa.Uuid, nullable=False, index=True),
        sa.Column("user_id", sa.Uuid, nullable=False),
        sa.Column("restaurant_id", sa.Uuid, nullable=False, index=True),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("delivery_address", sa.String(500), nullable=True),
        sa.Column("special_instructions", sa.String(1000), nullable=True),
        sa.Column("placed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("event_timestamp", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("source_event_id", sa.Uuid, nullable=False),
        sa.Column("recorded_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("source_event_id", name="uq_analytics_orders_source_event"),
    )

    # --- analytics_order_items (append-only) ---
    op.create_table(
        "analytics_order_items",
        sa.Column("row_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("order_id", sa.Uuid, nullable=False, index=True),
        sa.Column("line_no", sa.Integer, nullable=False),
        sa.Column("food_id", sa.Uuid, nullable=False, index=True),
        sa.Column("food_name", sa.String(255), nullable=False),
        sa.Column("food_description", sa.String(1000), nullable=True),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("event_timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("source_event_id", sa.Uuid, nullable=False),
        sa.Column("recorded_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("source_event_id", "line_no", name="uq_analytics_order_items_source_line"),
    )

    # --- analytics_bills (append-only) ---
    op.create_table(
        "analytics_bills",
        sa.Column("row_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("bill_id", sa.Uuid, nullable=False, index=True),
        sa.Column("order_id", sa.Uuid, nullable=False, index=True),
        sa.Column("user_id", sa.Uuid, nullable=True),
        sa.Column("restaurant_id", sa.Uuid, nullable=True),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=True),
        sa.Column("tax_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("discount_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("payment_method", sa.String(32), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("event_timestamp", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("source_event_id", sa.Uuid, nullable=False),
        sa.Column("recorded_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("source_event_id", name="uq_analytics_bills_source_event"),
    )


def downgrade() -> None:
    op.drop_table("analytics_bills")
    op.drop_table("analytics_order_items")
    op.drop_table("analytics_orders")
    op.drop_table("bills")
    op.drop_table("kitchen_tickets")
    op.drop_table("order_items")
    op.drop_table("orders")
    for enum_type in (payment_method, bill_status, ticket_status, order_status):
        enum_type.drop(op.get_bind(), checkfirst=True)
