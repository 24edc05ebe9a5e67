"""Event envelope, payload types and the JSON wire codec."""

from .codec import decode, encode
from .types import (
    BILL_GENERATED,
    BILL_PAID,
    KNOWN_EVENTS,
    ORDER_PLACED,
    ORDER_STATUS_UPDATED,
    SOURCE_KITCHEN,
    SOURCE_ORDER,
    BillGenerated,
    BillPaid,
    Envelope,
    OrderItemData,
    OrderPlaced,
    OrderStatusUpdated,
    UnknownEvent,
)

__all__ = [
    "decode",
    "encode",
    "BILL_GENERATED",
    "BILL_PAID",
    "KNOWN_EVENTS",
    "ORDER_PLACED",
    "ORDER_STATUS_UPDATED",
    "SOURCE_KITCHEN",
    "SOURCE_ORDER",
    "BillGenerated",
    "BillPaid",
    "Envelope",
    "OrderItemData",
    "OrderPlaced",
    "OrderStatusUpdated",
    "UnknownEvent",
]
