"""Kitchen ticket state machine.

A ticket is opened for every ``order.placed`` (at most one per order) and is
advanced by kitchen staff. Every advance is published as
``order.status_updated`` with ``source="kitchen"`` so the order service can
catch up. Reaching READY fires a detached notification.
"""
import logging
from typing import Optional, Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from orderflow.events import SOURCE_KITCHEN, Envelope, OrderPlaced
from orderflow.exceptions import NotFoundError, ValidationError
from orderflow.models.kitchen_ticket import TICKET_TRANSITIONS, KitchenTicket, TicketStatus
from orderflow.services.notification_service import OrderReadyNotifier
from orderflow.services.publisher import EventPublisher

logger = logging.getLogger(__name__)


def parse_ticket_status(value: Union[str, TicketStatus]) -> TicketStatus:
    try:
        return TicketStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in TicketStatus)
        raise ValidationError(f"Invalid ticket status '{value}'. Expected one of: {allowed}")


def is_valid_transition(current: TicketStatus, new: TicketStatus) -> bool:
    # Operators may force-complete a ticket from any state.
    if new == TicketStatus.delivered_to_service:
        return True
    return (current, new) in TICKET_TRANSITIONS


class KitchenService:

    def __init__(self, publisher: EventPublisher, notifier: OrderReadyNotifier):
        self.publisher = publisher
        self.notifier = notifier

    def on_order_placed(self, db: Session, envelope: Envelope) -> KitchenTicket:
        """Open a NEW ticket for the order. Redelivered events return the existing ticket."""
        event: OrderPlaced = envelope.data

        existing = db.query(KitchenTicket).filter(KitchenTicket.order_id == event.order_id).first()
        if existing:
            logger.warning("Kitchen ticket already exists for order %s", event.order_id)
            return existing

        ticket = KitchenTicket(
            order_id=event.order_id,
            restaurant_id=event.restaurant_id,
            user_id=event.user_id,
            status=TicketStatus.new,
            items=[
                {"food_id": str(item.food_id), "food_name": item.food_name, "quantity": item.quantity}
                for item in event.items
            ],
            special_instructions=event.special_instructions,
        )
        db.add(ticket)
        try:
            db.commit()
        except IntegrityError:
            # Another consumer created the ticket first.
            db.rollback()
            logger.warning("Lost ticket creation race for order %s", event.order_id)
            return db.query(KitchenTicket).filter(KitchenTicket.order_id == event.order_id).one()
        db.refresh(ticket)
        logger.info("Created kitchen ticket %s for order %s", ticket.ticket_id, event.order_id)
        return ticket

    def get_ticket(self, db: Session, ticket_id: UUID) -> KitchenTicket:
        ticket = db.query(KitchenTicket).filter(KitchenTicket.ticket_id == ticket_id).first()
        if not ticket:
            raise NotFoundError(f"Kitchen ticket {ticket_id} not found")
        return ticket

    def get_ticket_by_order(self, db: Session, order_id: UUID) -> KitchenTicket:
        ticket = db.query(KitchenTicket).filter(KitchenTicket.order_id == order_id).first()
        if not ticket:
            raise NotFoundError(f"No kitchen ticket for order {order_id}")
        return ticket

    def list_tickets(
        self, db: Session, status: Optional[str] = None, restaurant_id: Optional[UUID] = None
    ) -> list[KitchenTicket]:
        query = db.query(KitchenTicket)
        if status:
            query = query.filter(KitchenTicket.status == parse_ticket_status(status))
        if restaurant_id:
            query = query.filter(KitchenTicket.restaurant_id == restaurant_id)
        return query.order_by(KitchenTicket.created_at).all()

    def advance(self, db: Session, ticket_id: UUID, new_status: Union[str, TicketStatus]) -> KitchenTicket:
        target = parse_ticket_status(new_status)
        ticket = self.get_ticket(db, ticket_id)
        current = ticket.status

        if not is_valid_transition(current, target):
            raise ValidationError(f"Invalid status transition from {current.value} to {target.value}")

        ticket.status = target
        db.commit()
        db.refresh(ticket)
        logger.info("Kitchen ticket %s: %s -> %s", ticket.ticket_id, current.value, target.value)

        self.publisher.status_updated(
            ticket.order_id, ticket.restaurant_id, current.value, target.value, source=SOURCE_KITCHEN
        )

        if target == TicketStatus.ready:
            self.notifier.notify_order_ready(ticket.user_id, ticket.order_id)
        return ticket
