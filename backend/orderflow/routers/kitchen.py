"""Kitchen ticket API routes."""
import logging
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from orderflow.container import Services
from orderflow.database import get_db
from orderflow.dependencies import get_services
from orderflow.schemas.kitchen import TicketOut, TicketStatusUpdate

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/tickets", response_model=list[TicketOut])
def list_tickets(
    status_filter: Optional[str] = Query(None, alias="status"),
    restaurant_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """List tickets, optionally by status or restaurant."""
    return services.kitchen.list_tickets(db, status=status_filter, restaurant_id=restaurant_id)


@router.get("/tickets/{ticket_id}", response_model=TicketOut)
def get_ticket(ticket_id: UUID, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.kitchen.get_ticket(db, ticket_id)


@router.get("/orders/{order_id}/ticket", response_model=TicketOut)
def get_ticket_for_order(order_id: UUID, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.kitchen.get_ticket_by_order(db, order_id)


@router.put("/tickets/{ticket_id}/status", response_model=TicketOut)
def update_ticket_status(
    ticket_id: UUID,
    payload: TicketStatusUpdate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Advance a ticket. READY also sends the customer an email."""
    return services.kitchen.advance(db, ticket_id, payload.status)
