"""Append-only analytics fact tables.

Rows are inserted, never updated or deleted. The current state of an order
or bill is the row with the greatest ``event_timestamp`` for its id; ties are
broken by insertion order (``row_id``).
"""
from sqlalchemy import Column, String, DateTime, Integer, Numeric, Uuid, UniqueConstraint
from sqlalchemy.sql import func
from orderflow.database import Base


class OrderFact(Base):
    __tablename__ = "analytics_orders"
    __table_args__ = (UniqueConstraint("source_event_id", name="uq_analytics_orders_source_event"),)

    row_id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Uuid, nullable=False, index=True)
    user_id = Column(Uuid, nullable=False)
    restaurant_id = Column(Uuid, nullable=False, index=True)
    status = Column(String(32), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    delivery_address = Column(String(500), nullable=True)
    special_instructions = Column(String(1000), nullable=True)
    placed_at = Column(DateTime(timezone=True), nullable=True)
    event_timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    source_event_id = Column(Uuid, nullable=False)
    recorded_at = Column(DateTime(timezone=True), server_default=func.now())


class OrderItemFact(Base):
    __tablename__ = "analytics_order_items"
    __table_args__ = (
        UniqueConstraint("source_event_id", "line_no", name="uq_analytics_order_items_source_line"),
    )

    row_id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Uuid, nullable=False, index=True)
    line_no = Column(Integer, nullable=False)
    food_id = Column(Uuid, nullable=False, index=True)
    food_name = Column(String(255), nullable=False)
    food_description = Column(String(1000), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    event_timestamp = Column(DateTime(timezone=True), nullable=False)
    source_event_id = Column(Uuid, nullable=False)
    recorded_at = Column(DateTime(timezone=True), server_default=func.now())


class BillFact(Base):
    __tablename__ = "analytics_bills"
    __table_args__ = (UniqueConstraint("source_event_id", name="uq_analytics_bills_source_event"),)

    row_id = Column(Integer, primary_key=True, autoincrement=True)
    bill_id = Column(Uuid, nullable=False, index=True)
    order_id = Column(Uuid, nullable=False, index=True)
    user_id = Column(Uuid, nullable=True)
    restaurant_id = Column(Uuid, nullable=True)
    subtotal = Column(Numeric(12, 2), nullable=True)
    tax_amount = Column(Numeric(12, 2), nullable=True)
    discount_amount = Column(Numeric(12, 2), nullable=True)
    total_amount = Column(Numeric(12, 2), nullable=True)
    status = Column(String(32), nullable=False)
    payment_method = Column(String(32), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    event_timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    source_event_id = Column(Uuid, nullable=False)
    recorded_at = Column(DateTime(timezone=True), server_default=func.now())
