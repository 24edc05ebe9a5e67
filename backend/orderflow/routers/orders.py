"""Order API routes; delegates to OrderService for lifecycle rules."""
import logging
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from orderflow.container import Services
from orderflow.database import get_db
from orderflow.dependencies import get_services, get_user_id
from orderflow.schemas.order import OrderCreate, OrderOut, OrderStatusUpdate

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Place an order for the calling user."""
    return services.orders.place_order(
        db=db,
        user_id=user_id,
        restaurant_id=payload.restaurant_id,
        items=payload.items,
        delivery_address=payload.delivery_address,
        special_instructions=payload.special_instructions,
    )


@router.get("/", response_model=list[OrderOut])
def list_my_orders(
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    return services.orders.list_user_orders(db, user_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: UUID,
    user_id: UUID = Depends(get_user_id),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Fetch one of the caller's orders."""
    return services.orders.get_order(db, order_id, user_id=user_id)


@router.put("/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: UUID,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Move an order along its lifecycle (e.g. cancel it)."""
    return services.orders.transition(db, order_id, payload.status)
