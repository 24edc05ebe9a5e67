"""Billing engine: one bill per order, finalized once."""
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from orderflow.config import BillingConfig
from orderflow.events import Envelope, OrderPlaced
from orderflow.events.types import now_utc
from orderflow.exceptions import NotFoundError, ValidationError
from orderflow.models.bill import Bill, BillStatus, PaymentMethod
from orderflow.services.publisher import EventPublisher

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def compute_charges(subtotal: Decimal, tax_rate: Decimal) -> tuple[Decimal, Decimal, Decimal]:
    """Return ``(tax, discount, total)`` for ``subtotal``, rounded to cents."""
    tax = (subtotal * tax_rate).quantize(CENT, rounding=ROUND_HALF_UP)
    discount = Decimal("0.00")
    total = (subtotal + tax - discount).quantize(CENT, rounding=ROUND_HALF_UP)
    return tax, discount, total


def parse_payment_method(value: Union[str, PaymentMethod]) -> PaymentMethod:
    try:
        return PaymentMethod(value)
    except ValueError:
        allowed = ", ".join(m.value for m in PaymentMethod)
        raise ValidationError(f"Invalid payment method '{value}'. Expected one of: {allowed}")


class BillingService:

    def __init__(self, publisher: EventPublisher, config: BillingConfig):
        self.publisher = publisher
        self.config = config

    def on_order_placed(self, db: Session, envelope: Envelope) -> Bill:
        """Create the PENDING bill for an order and publish ``bill.generated``.

        A bill that already exists for the order is returned unchanged and
        nothing is published.
        """
        event: OrderPlaced = envelope.data

        existing = db.query(Bill).filter(Bill.order_id == event.order_id).first()
        if existing:
            logger.info("Bill already exists for order %s", event.order_id)
            return existing

        subtotal = event.total_amount
        tax, discount, total = compute_charges(subtotal, self.config.tax_rate)
        bill = Bill(
            order_id=event.order_id,
            user_id=event.user_id,
            restaurant_id=event.restaurant_id,
            subtotal=subtotal,
            tax_amount=tax,
            discount_amount=discount,
            total_amount=total,
            status=BillStatus.pending,
        )
        db.add(bill)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning("Lost bill creation race for order %s", event.order_id)
            return db.query(Bill).filter(Bill.order_id == event.order_id).one()
        db.refresh(bill)
        logger.info("Generated bill %s for order %s (total %s)", bill.bill_id, event.order_id, total)

        self.publisher.bill_generated(bill)
        return bill

    def finalize(self, db: Session, order_id: UUID, payment_method: Union[str, PaymentMethod]) -> Bill:
        """Mark the order's bill PAID and publish ``bill.paid``."""
        method = parse_payment_method(payment_method)
        bill = self.get_bill_by_order(db, order_id)

        if bill.status == BillStatus.paid:
            raise ValidationError(f"Bill {bill.bill_id} is already paid")
        if bill.status == BillStatus.cancelled:
            raise ValidationError(f"Bill {bill.bill_id} is cancelled")

        paid_at = now_utc()
        bill.status = BillStatus.paid
        bill.payment_method = method
        bill.paid_at = paid_at
        db.commit()
        db.refresh(bill)
        logger.info("Bill %s for order %s paid by %s", bill.bill_id, order_id, method.value)

        self.publisher.bill_paid(bill, paid_at)
        return bill

    def cancel(self, db: Session, order_id: UUID) -> Bill:
        bill = self.get_bill_by_order(db, order_id)
        if bill.status != BillStatus.pending:
            raise ValidationError(f"Bill {bill.bill_id} is already {bill.status.value}")
        bill.status = BillStatus.cancelled
        db.commit()
        db.refresh(bill)
        logger.info("Bill %s for order %s cancelled", bill.bill_id, order_id)
        return bill

    def get_bill(self, db: Session, bill_id: UUID) -> Bill:
        bill = db.query(Bill).filter(Bill.bill_id == bill_id).first()
        if not bill:
            raise NotFoundError(f"Bill {bill_id} not found")
        return bill

    def get_bill_by_order(self, db: Session, order_id: UUID) -> Bill:
        bill = db.query(Bill).filter(Bill.order_id == order_id).first()
        if not bill:
            raise NotFoundError(f"Bill for order {order_id} not found")
        return bill

    def list_user_bills(self, db: Session, user_id: UUID) -> list[Bill]:
        return db.query(Bill).filter(Bill.user_id == user_id).order_by(Bill.created_at.desc()).all()

    def list_restaurant_bills(self, db: Session, restaurant_id: UUID) -> list[Bill]:
        return (
            db.query(Bill)
            .filter(Bill.restaurant_id == restaurant_id)
            .order_by(Bill.created_at.desc())
            .all()
        )
