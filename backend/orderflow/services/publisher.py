"""Builds event payloads from aggregates and publishes them.

Every order-scoped event, bill events included, is keyed by order id so that
everything about one order lands on one partition in publish order.
"""
import logging
from datetime import datetime

from orderflow.bus import EventBus
from orderflow.config import TopicConfig
from orderflow.events import (
    SOURCE_ORDER,
    BillGenerated,
    BillPaid,
    Envelope,
    OrderItemData,
    OrderPlaced,
    OrderStatusUpdated,
)
from orderflow.events.types import now_utc
from orderflow.models.bill import Bill
from orderflow.models.order import Order

logger = logging.getLogger(__name__)


class EventPublisher:

    def __init__(self, bus: EventBus, topics: TopicConfig):
        self.bus = bus
        self.topics = topics

    def _publish(self, topic: str, order_id, payload) -> Envelope:
        envelope = Envelope.wrap(payload)
        if not self.bus.publish(topic, str(order_id), envelope):
            logger.warning("%s for order %s was not published", envelope.event_type, order_id)
        return envelope

    def order_placed(self, order: Order) -> Envelope:
        payload = OrderPlaced(
            order_id=order.order_id,
            user_id=order.user_id,
            restaurant_id=order.restaurant_id,
            total_amount=order.total_amount,
            items=[
                OrderItemData(
                    food_id=item.food_id,
                    food_name=item.food_name,
                    food_description=item.food_description,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    subtotal=item.subtotal,
                )
                for item in order.items
            ],
            delivery_address=order.delivery_address,
            special_instructions=order.special_instructions,
            placed_at=now_utc(),
        )
        return self._publish(self.topics.order_events, order.order_id, payload)

    def status_updated(
        self, order_id, restaurant_id, old_status: str, new_status: str, source: str = SOURCE_ORDER
    ) -> Envelope:
        payload = OrderStatusUpdated(
            order_id=order_id,
            restaurant_id=restaurant_id,
            old_status=old_status,
            new_status=new_status,
            updated_at=now_utc(),
            source=source,
        )
        return self._publish(self.topics.order_events, order_id, payload)

    def bill_generated(self, bill: Bill) -> Envelope:
        payload = BillGenerated(
            bill_id=bill.bill_id,
            order_id=bill.order_id,
            restaurant_id=bill.restaurant_id,
            user_id=bill.user_id,
            subtotal=bill.subtotal,
            tax_amount=bill.tax_amount,
            discount_amount=bill.discount_amount,
            total_amount=bill.total_amount,
            generated_at=now_utc(),
        )
        return self._publish(self.topics.bill_events, bill.order_id, payload)

    def bill_paid(self, bill: Bill, paid_at: datetime) -> Envelope:
        payload = BillPaid(
            bill_id=bill.bill_id,
            order_id=bill.order_id,
            restaurant_id=bill.restaurant_id,
            user_id=bill.user_id,
            total_amount=bill.total_amount,
            payment_method=bill.payment_method.value,
            paid_at=paid_at,
        )
        return self._publish(self.topics.bill_events, bill.order_id, payload)
