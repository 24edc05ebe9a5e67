"""Bill ORM model: one bill per order."""
import uuid
import enum
from sqlalchemy import Column, DateTime, Numeric, Uuid, Enum as SAEnum
from sqlalchemy.sql import func
from orderflow.database import Base


class BillStatus(str, enum.Enum):
    pending = "PENDING"
    paid = "PAID"
    cancelled = "CANCELLED"


class PaymentMethod(str, enum.Enum):
    cash = "cash"
    card = "card"
    upi = "upi"


class Bill(Base):
    __tablename__ = "bills"

    bill_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id = Column(Uuid, nullable=False, unique=True)
    user_id = Column(Uuid, nullable=False, index=True)
    restaurant_id = Column(Uuid, nullable=False, index=True)
    subtotal = Column(Numeric(12, 2), nullable=False)
    tax_amount = Column(Numeric(12, 2), nullable=False)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(SAEnum(BillStatus), nullable=False, default=BillStatus.pending)
    payment_method = Column(SAEnum(PaymentMethod), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
