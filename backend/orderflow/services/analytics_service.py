"""Aggregate queries over the analytics read model.

Every aggregate first reduces the append-only rows to the latest row per
aggregate id (greatest event timestamp, then greatest row id) and only then
sums, counts or groups.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session, aliased

from orderflow.models.analytics import BillFact, OrderFact, OrderItemFact
from orderflow.services.analytics_projector import latest_bill_fact, latest_order_fact

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _latest_orders():
    """Return ``(entity, subquery)`` for the latest row of every order."""
    rank = func.row_number().over(
        partition_by=OrderFact.order_id,
        order_by=(OrderFact.event_timestamp.desc(), OrderFact.row_id.desc()),
    ).label("row_rank")
    ranked = select(OrderFact, rank).subquery("ranked_orders")
    return aliased(OrderFact, ranked), ranked


def _money(value) -> Decimal:
    return Decimal(value or 0).quantize(CENT, rounding=ROUND_HALF_UP)


class AnalyticsService:

    def current_order_status(self, db: Session, order_id: UUID) -> Optional[str]:
        row = latest_order_fact(db, order_id)
        return row.status if row else None

    def current_bill_status(self, db: Session, bill_id: UUID) -> Optional[str]:
        row = latest_bill_fact(db, bill_id)
        return row.status if row else None

    def top_foods(self, db: Session, limit: int = 10, restaurant_id: Optional[UUID] = None) -> list[dict]:
        """Most ordered foods by quantity, optionally for one restaurant."""
        total_quantity = func.sum(OrderItemFact.quantity).label("total_quantity")
        query = db.query(
            OrderItemFact.food_id,
            OrderItemFact.food_name,
            total_quantity,
            func.sum(OrderItemFact.subtotal).label("total_revenue"),
            func.count(func.distinct(OrderItemFact.order_id)).label("order_count"),
        )
        if restaurant_id is not None:
            # restaurant_id never changes across an order's rows, so any row will do.
            restaurant_orders = select(OrderFact.order_id).where(OrderFact.restaurant_id == restaurant_id)
            query = query.filter(OrderItemFact.order_id.in_(restaurant_orders))

        rows = (
            query.group_by(OrderItemFact.food_id, OrderItemFact.food_name)
            .order_by(total_quantity.desc(), OrderItemFact.food_name)
            .limit(limit)
            .all()
        )
        return [
            {
                "food_id": row.food_id,
                "food_name": row.food_name,
                "total_quantity": int(row.total_quantity or 0),
                "total_revenue": _money(row.total_revenue),
                "order_count": int(row.order_count),
            }
            for row in rows
        ]

    def revenue_summary(self, db: Session, restaurant_id: Optional[UUID] = None) -> dict:
        latest, ranked = _latest_orders()
        query = db.query(latest.total_amount).filter(ranked.c.row_rank == 1)
        if restaurant_id is not None:
            query = query.filter(latest.restaurant_id == restaurant_id)

        amounts = [Decimal(row.total_amount) for row in query.all()]
        total = sum(amounts, Decimal("0"))
        count = len(amounts)
        average = total / count if count else Decimal("0")
        return {
            "total_revenue": _money(total),
            "order_count": count,
            "average_order_value": _money(average),
        }

    def orders_by_status(self, db: Session) -> list[dict]:
        latest, ranked = _latest_orders()
        n = func.count().label("n")
        rows = (
            db.query(latest.status, n)
            .filter(ranked.c.row_rank == 1)
            .group_by(latest.status)
            .order_by(n.desc(), latest.status)
            .all()
        )
        return [{"status": row.status, "count": int(row.n)} for row in rows]

    def bills_by_status(self, db: Session) -> list[dict]:
        rank = func.row_number().over(
            partition_by=BillFact.bill_id,
            order_by=(BillFact.event_timestamp.desc(), BillFact.row_id.desc()),
        ).label("row_rank")
        ranked = select(BillFact, rank).subquery("ranked_bills")
        latest = aliased(BillFact, ranked)
        n = func.count().label("n")
        rows = (
            db.query(latest.status, n)
            .filter(ranked.c.row_rank == 1)
            .group_by(latest.status)
            .order_by(n.desc(), latest.status)
            .all()
        )
        return [{"status": row.status, "count": int(row.n)} for row in rows]
