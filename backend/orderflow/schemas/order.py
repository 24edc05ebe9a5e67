"""Pydantic schemas for Orders."""
from datetime import datetime
from decimal import Decimal
from uuid import UUID
from typing import Optional
from pydantic import BaseModel, Field

from orderflow.models.order import OrderStatus


class OrderItemCreate(BaseModel):
    food_id: UUID
    quantity: int = Field(gt=0, le=100)


class OrderCreate(BaseModel):
    restaurant_id: UUID
    items: list[OrderItemCreate]
    delivery_address: Optional[str] = Field(None, max_length=500)
    special_instructions: Optional[str] = Field(None, max_length=1000)


class OrderStatusUpdate(BaseModel):
    status: str  # PLACED, ACCEPTED, IN_PROGRESS, READY, COMPLETED, CANCELLED


class OrderItemOut(BaseModel):
    item_id: UUID
    food_id: UUID
    food_name: str
    food_description: Optional[str] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    model_config = {"from_attributes": True}


class OrderOut(BaseModel):
    order_id: UUID
    user_id: UUID
    restaurant_id: UUID
    status: OrderStatus
    total_amount: Decimal
    delivery_address: Optional[str] = None
    special_instructions: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: list[OrderItemOut] = []

    model_config = {"from_attributes": True}
