"""KitchenTicket ORM model: one ticket per order."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, JSON, Uuid, Enum as SAEnum
from sqlalchemy.sql import func
from orderflow.database import Base


class TicketStatus(str, enum.Enum):
    new = "NEW"
    accepted = "ACCEPTED"
    in_progress = "IN_PROGRESS"
    ready = "READY"
    delivered_to_service = "DELIVERED_TO_SERVICE"


TICKET_TRANSITIONS: frozenset[tuple[TicketStatus, TicketStatus]] = frozenset({
    (TicketStatus.new, TicketStatus.accepted),
    (TicketStatus.accepted, TicketStatus.in_progress),
    (TicketStatus.in_progress, TicketStatus.ready),
    (TicketStatus.ready, TicketStatus.delivered_to_service),
})


class KitchenTicket(Base):
    __tablename__ = "kitchen_tickets"

    ticket_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id = Column(Uuid, nullable=False, unique=True)
    restaurant_id = Column(Uuid, nullable=False, index=True)
    user_id = Column(Uuid, nullable=False)
    status = Column(SAEnum(TicketStatus), nullable=False, default=TicketStatus.new)
    items = Column(JSON, nullable=False)  # snapshot of the order lines, never rewritten
    special_instructions = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
