"""Order and OrderItem ORM models."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, Integer, Numeric, ForeignKey, CheckConstraint, Uuid, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from orderflow.database import Base


class OrderStatus(str, enum.Enum):
    placed = "PLACED"
    accepted = "ACCEPTED"
    in_progress = "IN_PROGRESS"
    ready = "READY"
    completed = "COMPLETED"
    cancelled = "CANCELLED"


ORDER_TRANSITIONS: frozenset[tuple[OrderStatus, OrderStatus]] = frozenset({
    (OrderStatus.placed, OrderStatus.accepted),
    (OrderStatus.placed, OrderStatus.cancelled),
    (OrderStatus.accepted, OrderStatus.in_progress),
    (OrderStatus.accepted, OrderStatus.cancelled),
    (OrderStatus.in_progress, OrderStatus.ready),
    (OrderStatus.in_progress, OrderStatus.cancelled),
    (OrderStatus.ready, OrderStatus.completed),
    (OrderStatus.ready, OrderStatus.cancelled),
})

# Happy path, used to walk intermediate edges when catching up with the kitchen.
ORDER_LIFECYCLE: tuple[OrderStatus, ...] = (
    OrderStatus.placed,
    OrderStatus.accepted,
    OrderStatus.in_progress,
    OrderStatus.ready,
    OrderStatus.completed,
)


class Order(Base):
    __tablename__ = "orders"

    order_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    restaurant_id = Column(Uuid, nullable=False, index=True)
    status = Column(SAEnum(OrderStatus), nullable=False, default=OrderStatus.placed)
    total_amount = Column(Numeric(12, 2), nullable=False)
    delivery_address = Column(String(500), nullable=True)
    special_instructions = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.line_no"
    )


class OrderItem(Base):
    __tablename__ = "order_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),)

    item_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id = Column(Uuid, ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False, index=True)
    line_no = Column(Integer, nullable=False, default=0)
    food_id = Column(Uuid, nullable=False)
    food_name = Column(String(255), nullable=False)
    food_description = Column(String(1000), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="items")
