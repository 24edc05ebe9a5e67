"""Pydantic schemas for kitchen tickets."""
from datetime import datetime
from uuid import UUID
from typing import Optional
from pydantic import BaseModel

from orderflow.models.kitchen_ticket import TicketStatus


class TicketItem(BaseModel):
    food_id: UUID
    food_name: str
    quantity: int


class TicketStatusUpdate(BaseModel):
    status: str  # NEW, ACCEPTED, IN_PROGRESS, READY, DELIVERED_TO_SERVICE


class TicketOut(BaseModel):
    ticket_id: UUID
    order_id: UUID
    restaurant_id: UUID
    user_id: UUID
    status: TicketStatus
    items: list[TicketItem]
    special_instructions: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
