"""Order lifecycle: creation, status transitions and kitchen reconciliation.

The order service is the only writer of ``orders``. Other components learn
about orders from ``order.placed`` / ``order.status_updated`` and report back
through the bus; kitchen progress is folded into the order's own state
machine by ``reconcile_kitchen_status``.
"""
import logging
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

from sqlalchemy.orm import Session

from orderflow.clients.catalog import CatalogClient
from orderflow.events import SOURCE_KITCHEN, Envelope, OrderStatusUpdated
from orderflow.exceptions import ForbiddenError, NotFoundError, ValidationError
from orderflow.models.order import ORDER_LIFECYCLE, ORDER_TRANSITIONS, Order, OrderItem, OrderStatus
from orderflow.schemas.order import OrderItemCreate
from orderflow.services.publisher import EventPublisher

logger = logging.getLogger(__name__)

# Kitchen ticket status -> order status it implies. NEW implies nothing.
KITCHEN_TO_ORDER_STATUS: dict[str, OrderStatus] = {
    "ACCEPTED": OrderStatus.accepted,
    "IN_PROGRESS": OrderStatus.in_progress,
    "READY": OrderStatus.ready,
    "DELIVERED_TO_SERVICE": OrderStatus.completed,
}


def parse_order_status(value: Union[str, OrderStatus]) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError(f"Invalid order status '{value}'. Expected one of: {allowed}")


def is_valid_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return (current, new) in ORDER_TRANSITIONS


class OrderService:

    def __init__(self, publisher: EventPublisher, catalog: CatalogClient):
        self.publisher = publisher
        self.catalog = catalog

    def place_order(
        self,
        db: Session,
        user_id: UUID,
        restaurant_id: UUID,
        items: list[OrderItemCreate],
        delivery_address: Optional[str] = None,
        special_instructions: Optional[str] = None,
    ) -> Order:
        """Validate items against the catalog, persist the order, publish ``order.placed``."""
        if not items:
            raise ValidationError("Order must contain at least one item")
        for item in items:
            if item.quantity <= 0:
                raise ValidationError(f"Quantity for food {item.food_id} must be positive")

        foods = {food.id: food for food in self.catalog.get_foods(item.food_id for item in items)}

        missing = [str(item.food_id) for item in items if item.food_id not in foods]
        if missing:
            raise ValidationError(f"Food items not found: {', '.join(missing)}")
        for item in items:
            food = foods[item.food_id]
            if not food.is_available:
                raise ValidationError(f"Food item '{food.name}' is not available")
            if food.restaurant_id is not None and food.restaurant_id != restaurant_id:
                raise ValidationError(f"Food item '{food.name}' does not belong to restaurant {restaurant_id}")

        order = Order(
            user_id=user_id,
            restaurant_id=restaurant_id,
            status=OrderStatus.placed,
            delivery_address=delivery_address,
            special_instructions=special_instructions,
        )
        total = Decimal("0")
        for line_no, item in enumerate(items):
            food = foods[item.food_id]
            subtotal = food.price * item.quantity
            total += subtotal
            order.items.append(
                OrderItem(
                    line_no=line_no,
                    food_id=food.id,
                    food_name=food.name,
                    food_description=food.description,
                    quantity=item.quantity,
                    unit_price=food.price,
                    subtotal=subtotal,
                )
            )
        order.total_amount = total

        db.add(order)
        db.commit()
        db.refresh(order)
        logger.info("Order %s placed by user %s (total %s)", order.order_id, user_id, order.total_amount)

        # The order stands even if the event never makes it out.
        self.publisher.order_placed(order)
        return order

    def get_order(self, db: Session, order_id: UUID, user_id: Optional[UUID] = None) -> Order:
        order = db.query(Order).filter(Order.order_id == order_id).first()
        if not order:
            raise NotFoundError(f"Order {order_id} not found")
        if user_id is not None and order.user_id != user_id:
            raise ForbiddenError("You don't have access to this order")
        return order

    def list_user_orders(self, db: Session, user_id: UUID) -> list[Order]:
        return (
            db.query(Order)
            .filter(Order.user_id == user_id)
            .order_by(Order.created_at.desc())
            .all()
        )

    def transition(self, db: Session, order_id: UUID, new_status: Union[str, OrderStatus]) -> Order:
        """Move an order along one edge of the lifecycle and publish the change."""
        target = parse_order_status(new_status)
        order = self.get_order(db, order_id)
        current = order.status

        if not is_valid_transition(current, target):
            raise ValidationError(f"Invalid status transition from {current.value} to {target.value}")

        order.status = target
        db.commit()
        db.refresh(order)
        logger.info("Order %s: %s -> %s", order.order_id, current.value, target.value)

        self.publisher.status_updated(order.order_id, order.restaurant_id, current.value, target.value)
        return order

    def reconcile_kitchen_status(self, db: Session, event: OrderStatusUpdated) -> Optional[Order]:
        """Catch the order up with a kitchen ticket change.

        Walks the intermediate edges when the kitchen jumped ahead (force
        completion). Stale or repeated updates change nothing, and cancelled
        orders stay cancelled.
        """
        target = KITCHEN_TO_ORDER_STATUS.get(event.new_status)
        if target is None:
            logger.debug("Kitchen status %s has no order counterpart", event.new_status)
            return None

        order = db.query(Order).filter(Order.order_id == event.order_id).first()
        if not order:
            logger.warning("Kitchen update for unknown order %s", event.order_id)
            return None

        if order.status == OrderStatus.cancelled:
            logger.warning(
                "Ignoring kitchen status %s for cancelled order %s", event.new_status, order.order_id
            )
            return order

        current_idx = ORDER_LIFECYCLE.index(order.status)
        target_idx = ORDER_LIFECYCLE.index(target)
        if target_idx <= current_idx:
            logger.debug(
                "Order %s already at %s; kitchen status %s is stale",
                order.order_id, order.status.value, event.new_status,
            )
            return order

        for step in ORDER_LIFECYCLE[current_idx + 1:target_idx + 1]:
            order = self.transition(db, order.order_id, step)
        return order

    def handle_status_updated(self, db: Session, envelope: Envelope) -> None:
        event: OrderStatusUpdated = envelope.data
        if event.source != SOURCE_KITCHEN:
            return
        self.reconcile_kitchen_status(db, event)
