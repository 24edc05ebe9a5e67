"""Pydantic schemas for analytics reads."""
from decimal import Decimal
from uuid import UUID
from pydantic import BaseModel


class TopFoodOut(BaseModel):
    food_id: UUID
    food_name: str
    total_quantity: int
    total_revenue: Decimal
    order_count: int


class RevenueSummaryOut(BaseModel):
    total_revenue: Decimal
    order_count: int
    average_order_value: Decimal


class StatusCountOut(BaseModel):
    status: str
    count: int
