"""Event payloads carried inside the envelope.

The set of known payloads is closed: ``KNOWN_EVENTS`` lists every class and
anything else decodes to ``UnknownEvent`` so that consumers can skip event
types they have never heard of.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, ClassVar, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

ORDER_PLACED = "order.placed"
ORDER_STATUS_UPDATED = "order.status_updated"
BILL_GENERATED = "bill.generated"
BILL_PAID = "bill.paid"

SOURCE_ORDER = "order"
SOURCE_KITCHEN = "kitchen"


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class OrderItemData(BaseModel):
    food_id: UUID
    food_name: str
    food_description: Optional[str] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class OrderPlaced(BaseModel):
    """An order was accepted by the order service and persisted."""

    EVENT_TYPE: ClassVar[str] = ORDER_PLACED

    order_id: UUID
    user_id: UUID
    restaurant_id: UUID
    total_amount: Decimal
    items: list[OrderItemData]
    delivery_address: Optional[str] = None
    special_instructions: Optional[str] = None
    placed_at: datetime


class OrderStatusUpdated(BaseModel):
    """Order or kitchen-ticket status moved.

    ``source`` tells the order service whether the change is its own or a
    kitchen change it still has to reconcile.
    """

    EVENT_TYPE: ClassVar[str] = ORDER_STATUS_UPDATED

    order_id: UUID
    restaurant_id: UUID
    old_status: str
    new_status: str
    updated_at: datetime
    source: str = SOURCE_ORDER


class BillGenerated(BaseModel):
    EVENT_TYPE: ClassVar[str] = BILL_GENERATED

    bill_id: UUID
    order_id: UUID
    restaurant_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    generated_at: Optional[datetime] = None


class BillPaid(BaseModel):
    EVENT_TYPE: ClassVar[str] = BILL_PAID

    bill_id: UUID
    order_id: UUID
    restaurant_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    total_amount: Optional[Decimal] = None
    payment_method: str
    paid_at: datetime


class UnknownEvent(BaseModel):
    """Fallback for type tags this build does not know about."""

    event_type: str
    data: Any = None


KNOWN_EVENTS: tuple[type[BaseModel], ...] = (OrderPlaced, OrderStatusUpdated, BillGenerated, BillPaid)

PAYLOAD_TYPES: dict[str, type[BaseModel]] = {cls.EVENT_TYPE: cls for cls in KNOWN_EVENTS}


class Envelope(BaseModel):
    """Uniform wrapper around every payload. Immutable once built."""

    model_config = {"frozen": True}

    event_id: UUID = Field(default_factory=uuid4)
    event_type: str
    timestamp: datetime = Field(default_factory=now_utc)
    data: Any

    @classmethod
    def wrap(cls, payload: BaseModel) -> "Envelope":
        if isinstance(payload, UnknownEvent):
            return cls(event_type=payload.event_type, data=payload)
        return cls(event_type=payload.EVENT_TYPE, data=payload)
