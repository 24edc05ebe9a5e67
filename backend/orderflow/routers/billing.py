"""Billing API routes."""
import logging
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from orderflow.container import Services
from orderflow.database import get_db
from orderflow.dependencies import get_services
from orderflow.schemas.bill import BillFinalizeRequest, BillOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/orders/{order_id}", response_model=BillOut)
def get_bill_for_order(order_id: UUID, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.billing.get_bill_by_order(db, order_id)


@router.post("/orders/{order_id}/finalize", response_model=BillOut)
def finalize_bill(
    order_id: UUID,
    payload: BillFinalizeRequest,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Record payment for the order's bill."""
    return services.billing.finalize(db, order_id, payload.payment_method)


@router.post("/orders/{order_id}/cancel", response_model=BillOut)
def cancel_bill(order_id: UUID, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.billing.cancel(db, order_id)


@router.get("/bills/{bill_id}", response_model=BillOut)
def get_bill(bill_id: UUID, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.billing.get_bill(db, bill_id)


@router.get("/users/{user_id}", response_model=list[BillOut])
def list_user_bills(user_id: UUID, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.billing.list_user_bills(db, user_id)


@router.get("/restaurants/{restaurant_id}", response_model=list[BillOut])
def list_restaurant_bills(
    restaurant_id: UUID, db: Session = Depends(get_db), services: Services = Depends(get_services)
):
    return services.billing.list_restaurant_bills(db, restaurant_id)
