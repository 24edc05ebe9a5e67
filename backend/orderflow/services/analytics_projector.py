"""Event-sourced analytics read model.

Each handled event appends rows; nothing is updated in place. Rows record the
id of the event that produced them, so a redelivered event appends nothing.
Status changes re-copy the immutable order fields from the latest prior row.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from orderflow.events import SOURCE_ORDER, BillGenerated, BillPaid, Envelope, OrderPlaced, OrderStatusUpdated
from orderflow.models.analytics import BillFact, OrderFact, OrderItemFact
from orderflow.models.bill import BillStatus
from orderflow.models.order import OrderStatus

logger = logging.getLogger(__name__)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored timestamps are compared as UTC; naive values are taken to be UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def latest_order_fact(db: Session, order_id) -> Optional[OrderFact]:
    return (
        db.query(OrderFact)
        .filter(OrderFact.order_id == order_id)
        .order_by(OrderFact.event_timestamp.desc(), OrderFact.row_id.desc())
        .first()
    )


def latest_bill_fact(db: Session, bill_id) -> Optional[BillFact]:
    return (
        db.query(BillFact)
        .filter(BillFact.bill_id == bill_id)
        .order_by(BillFact.event_timestamp.desc(), BillFact.row_id.desc())
        .first()
    )


class AnalyticsProjector:

    def _seen(self, db: Session, model, envelope: Envelope) -> bool:
        if db.query(model.row_id).filter(model.source_event_id == envelope.event_id).first():
            logger.debug("Event %s already projected into %s", envelope.event_id, model.__tablename__)
            return True
        return False

    def on_order_placed(self, db: Session, envelope: Envelope) -> None:
        event: OrderPlaced = envelope.data
        if self._seen(db, OrderFact, envelope):
            return
        already_placed = (
            db.query(OrderFact.row_id)
            .filter(OrderFact.order_id == event.order_id, OrderFact.status == OrderStatus.placed.value)
            .first()
        )
        if already_placed:
            logger.info("Order %s already recorded as placed; skipping event %s", event.order_id, envelope.event_id)
            return

        db.add(OrderFact(
            order_id=event.order_id,
            user_id=event.user_id,
            restaurant_id=event.restaurant_id,
            status=OrderStatus.placed.value,
            total_amount=event.total_amount,
            delivery_address=event.delivery_address,
            special_instructions=event.special_instructions,
            placed_at=as_utc(event.placed_at),
            event_timestamp=as_utc(event.placed_at),
            source_event_id=envelope.event_id,
        ))
        for line_no, item in enumerate(event.items):
            db.add(OrderItemFact(
                order_id=event.order_id,
                line_no=line_no,
                food_id=item.food_id,
                food_name=item.food_name,
                food_description=item.food_description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                subtotal=item.subtotal,
                event_timestamp=as_utc(event.placed_at),
                source_event_id=envelope.event_id,
            ))
        db.commit()
        logger.info("Projected order %s with %d items", event.order_id, len(event.items))

    def on_status_updated(self, db: Session, envelope: Envelope) -> None:
        event: OrderStatusUpdated = envelope.data
        if event.source != SOURCE_ORDER:
            # Kitchen progress reaches the read model once the order service adopts it.
            logger.debug("Skipping %s status update for order %s", event.source, event.order_id)
            return
        if self._seen(db, OrderFact, envelope):
            return

        prior = latest_order_fact(db, event.order_id)
        if prior is None:
            logger.warning("Status update for order %s with no placed row; skipping", event.order_id)
            return

        db.add(OrderFact(
            order_id=prior.order_id,
            user_id=prior.user_id,
            restaurant_id=prior.restaurant_id,
            status=event.new_status,
            total_amount=prior.total_amount,
            delivery_address=prior.delivery_address,
            special_instructions=prior.special_instructions,
            placed_at=prior.placed_at,
            event_timestamp=as_utc(event.updated_at),
            source_event_id=envelope.event_id,
        ))
        db.commit()
        logger.info("Projected order %s status %s -> %s", event.order_id, event.old_status, event.new_status)

    def on_bill_generated(self, db: Session, envelope: Envelope) -> None:
        event: BillGenerated = envelope.data
        if self._seen(db, BillFact, envelope):
            return

        db.add(BillFact(
            bill_id=event.bill_id,
            order_id=event.order_id,
            user_id=event.user_id,
            restaurant_id=event.restaurant_id,
            subtotal=event.subtotal,
            tax_amount=event.tax_amount,
            discount_amount=event.discount_amount,
            total_amount=event.total_amount,
            status=BillStatus.pending.value,
            event_timestamp=as_utc(event.generated_at or envelope.timestamp),
            source_event_id=envelope.event_id,
        ))
        db.commit()
        logger.info("Projected bill %s for order %s", event.bill_id, event.order_id)

    def on_bill_paid(self, db: Session, envelope: Envelope) -> None:
        event: BillPaid = envelope.data
        if self._seen(db, BillFact, envelope):
            return

        prior = latest_bill_fact(db, event.bill_id)
        db.add(BillFact(
            bill_id=event.bill_id,
            order_id=event.order_id,
            user_id=prior.user_id if prior else event.user_id,
            restaurant_id=prior.restaurant_id if prior else event.restaurant_id,
            subtotal=prior.subtotal if prior else None,
            tax_amount=prior.tax_amount if prior else None,
            discount_amount=prior.discount_amount if prior else None,
            total_amount=prior.total_amount if prior else event.total_amount,
            status=BillStatus.paid.value,
            payment_method=event.payment_method,
            paid_at=as_utc(event.paid_at),
            event_timestamp=as_utc(event.paid_at),
            source_event_id=envelope.event_id,
        ))
        db.commit()
        logger.info("Projected payment of bill %s (%s)", event.bill_id, event.payment_method)
