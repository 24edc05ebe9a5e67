"""Wires components together from ``Settings``.

This is the only module that turns settings into collaborators. Tests pass
their own bus, clients and mailer and drive the consumers by hand.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from orderflow.bus import EventBus, InMemoryEventBus
from orderflow.clients import CatalogClient, SmtpMailer, UserDirectoryClient
from orderflow.config import Settings, TopicConfig
from orderflow.consumers import EventConsumer
from orderflow.events import BillGenerated, BillPaid, OrderPlaced, OrderStatusUpdated
from orderflow.services.analytics_projector import AnalyticsProjector
from orderflow.services.analytics_service import AnalyticsService
from orderflow.services.billing_service import BillingService
from orderflow.services.kitchen_service import KitchenService
from orderflow.services.notification_service import OrderReadyNotifier
from orderflow.services.order_service import OrderService
from orderflow.services.publisher import EventPublisher

logger = logging.getLogger(__name__)


@dataclass
class Services:
    topics: TopicConfig
    bus: EventBus
    publisher: EventPublisher
    orders: OrderService
    kitchen: KitchenService
    billing: BillingService
    projector: AnalyticsProjector
    analytics: AnalyticsService
    notifier: OrderReadyNotifier
    consumers: list[EventConsumer] = field(default_factory=list)

    def consumer(self, group: str) -> EventConsumer:
        for consumer in self.consumers:
            if consumer.group == group:
                return consumer
        raise KeyError(group)

    def start(self) -> None:
        for consumer in self.consumers:
            consumer.start()

    def stop(self) -> None:
        for consumer in self.consumers:
            consumer.stop()
        self.notifier.shutdown(wait=False)
        self.bus.close()

    def drain(self, max_rounds: int = 50) -> int:
        """Run every consumer until none has anything left (events cascade between groups)."""
        total = 0
        for _ in range(max_rounds):
            handled = sum(consumer.drain() for consumer in self.consumers)
            total += handled
            if not handled:
                break
        return total


def build_services(
    settings: Settings,
    session_factory,
    bus: Optional[EventBus] = None,
    catalog=None,
    users=None,
    mailer=None,
) -> Services:
    topics = settings.topics()
    bus = bus or InMemoryEventBus(partitions=settings.BUS_PARTITIONS)
    publisher = EventPublisher(bus, topics)

    notifier = OrderReadyNotifier(
        users or UserDirectoryClient(settings.user_directory()),
        mailer or SmtpMailer(settings.smtp()),
        max_workers=settings.NOTIFICATION_WORKERS,
    )
    orders = OrderService(publisher, catalog or CatalogClient(settings.catalog()))
    kitchen = KitchenService(publisher, notifier)
    billing = BillingService(publisher, settings.billing())
    projector = AnalyticsProjector()

    def consumer(group: str, topic_names: list[str], handlers: dict) -> EventConsumer:
        return EventConsumer(bus, settings.consumer(group, topic_names), session_factory, handlers)

    consumers = [
        consumer(
            settings.ORDER_CONSUMER_GROUP,
            [topics.order_events],
            {OrderStatusUpdated: orders.handle_status_updated},
        ),
        consumer(
            settings.KITCHEN_CONSUMER_GROUP,
            [topics.order_events],
            {OrderPlaced: kitchen.on_order_placed},
        ),
        consumer(
            settings.BILLING_CONSUMER_GROUP,
            [topics.order_events],
            {OrderPlaced: billing.on_order_placed},
        ),
        consumer(
            settings.ANALYTICS_CONSUMER_GROUP,
            [topics.order_events, topics.bill_events],
            {
                OrderPlaced: projector.on_order_placed,
                OrderStatusUpdated: projector.on_status_updated,
                BillGenerated: projector.on_bill_generated,
                BillPaid: projector.on_bill_paid,
            },
        ),
    ]
    logger.info("Built %d consumers on %s", len(consumers), type(bus).__name__)

    return Services(
        topics=topics,
        bus=bus,
        publisher=publisher,
        orders=orders,
        kitchen=kitchen,
        billing=billing,
        projector=projector,
        analytics=AnalyticsService(),
        notifier=notifier,
        consumers=consumers,
    )
