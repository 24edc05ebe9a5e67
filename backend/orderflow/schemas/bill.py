"""Pydantic schemas for Bills."""
from datetime import datetime
from decimal import Decimal
from uuid import UUID
from typing import Optional
from pydantic import BaseModel

from orderflow.models.bill import BillStatus, PaymentMethod


class BillFinalizeRequest(BaseModel):
    payment_method: str  # cash, card, upi


class BillOut(BaseModel):
    bill_id: UUID
    order_id: UUID
    user_id: UUID
    restaurant_id: UUID
    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    status: BillStatus
    payment_method: Optional[PaymentMethod] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
