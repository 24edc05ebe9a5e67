"""Analytics API routes (read-only)."""
import logging
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from orderflow.container import Services
from orderflow.database import get_db
from orderflow.dependencies import get_services
from orderflow.schemas.analytics import RevenueSummaryOut, StatusCountOut, TopFoodOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/top-foods", response_model=list[TopFoodOut])
def top_foods(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    return services.analytics.top_foods(db, limit=limit)


@router.get("/restaurants/{restaurant_id}/top-foods", response_model=list[TopFoodOut])
def restaurant_top_foods(
    restaurant_id: UUID,
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    return services.analytics.top_foods(db, limit=limit, restaurant_id=restaurant_id)


@router.get("/revenue", response_model=RevenueSummaryOut)
def revenue(db: Session = Depends(get_db), services: Services = Depends(get_services)):
    """Revenue over the current state of every order."""
    return services.analytics.revenue_summary(db)


@router.get("/orders-by-status", response_model=list[StatusCountOut])
def orders_by_status(db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.analytics.orders_by_status(db)


@router.get("/bills-by-status", response_model=list[StatusCountOut])
def bills_by_status(db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.analytics.bills_by_status(db)
