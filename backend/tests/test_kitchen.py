"""Tests for the kitchen ticket state machine.

Covers:
- idempotent ticket creation from order.placed
- every (current, new) pair, with force-complete to DELIVERED_TO_SERVICE
  allowed from any state
- order.status_updated published with source=kitchen, keyed by order id
- READY triggers a detached, best-effort notification
"""
import itertools
import uuid
from decimal import Decimal

import pytest

from orderflow.events import Envelope, OrderItemData, OrderPlaced
from orderflow.events.types import now_utc
from orderflow.exceptions import ExternalServiceError, NotFoundError, ValidationError
from orderflow.models.kitchen_ticket import TICKET_TRANSITIONS, KitchenTicket, TicketStatus
from orderflow.services.kitchen_service import is_valid_transition
from tests.conftest import read_topic


def _order_placed(user_id=None, restaurant_id=None) -> Envelope:
    return Envelope.wrap(OrderPlaced(
        order_id=uuid.uuid4(),
        user_id=user_id or uuid.uuid4(),
        restaurant_id=restaurant_id or uuid.uuid4(),
        total_amount=Decimal("24.98"),
        items=[
            OrderItemData(
                food_id=uuid.uuid4(), food_name="Burger", quantity=2,
                unit_price=Decimal("9.99"), subtotal=Decimal("19.98"),
            ),
        ],
        special_instructions="No onions",
        placed_at=now_utc(),
    ))


def _ticket_in(db, services, status: TicketStatus, user_id=None) -> KitchenTicket:
    ticket = services.kitchen.on_order_placed(db, _order_placed(user_id=user_id))
    ticket.status = status
    db.commit()
    db.refresh(ticket)
    return ticket


ALL_PAIRS = list(itertools.product(TicketStatus, TicketStatus))
ALLOWED = [p for p in ALL_PAIRS if p in TICKET_TRANSITIONS or p[1] == TicketStatus.delivered_to_service]
REJECTED = [p for p in ALL_PAIRS if p not in ALLOWED]


class TestTicketCreation:

    def test_creates_new_ticket_with_item_snapshot(self, db, services):
        envelope = _order_placed()
        ticket = services.kitchen.on_order_placed(db, envelope)
        assert ticket.status == TicketStatus.new
        assert ticket.order_id == envelope.data.order_id
        assert ticket.items == [
            {"food_id": str(envelope.data.items[0].food_id), "food_name": "Burger", "quantity": 2}
        ]
        assert ticket.special_instructions == "No onions"

    def test_duplicate_order_placed_yields_one_ticket(self, db, services):
        envelope = _order_placed()
        first = services.kitchen.on_order_placed(db, envelope)
        second = services.kitchen.on_order_placed(db, envelope)
        assert first.ticket_id == second.ticket_id
        assert db.query(KitchenTicket).count() == 1

    def test_redelivered_with_new_event_id_still_one_ticket(self, db, services):
        envelope = _order_placed()
        services.kitchen.on_order_placed(db, envelope)
        services.kitchen.on_order_placed(db, Envelope.wrap(envelope.data))
        assert db.query(KitchenTicket).count() == 1


class TestTicketTransitions:

    def test_force_complete_is_the_only_exception(self):
        for current, target in ALL_PAIRS:
            expected = (current, target) in TICKET_TRANSITIONS or target == TicketStatus.delivered_to_service
            assert is_valid_transition(current, target) == expected

    @pytest.mark.parametrize("current,target", ALLOWED)
    def test_allowed(self, db, services, bus, current, target):
        ticket = _ticket_in(db, services, current)
        updated = services.kitchen.advance(db, ticket.ticket_id, target.value)
        assert updated.status == target

        events = read_topic(bus, services.topics.order_events)
        assert len(events) == 1
        event = events[0].data
        assert (event.old_status, event.new_status) == (current.value, target.value)
        assert event.source == "kitchen"
        assert event.order_id == ticket.order_id
        assert event.restaurant_id == ticket.restaurant_id

    @pytest.mark.parametrize("current,target", REJECTED)
    def test_rejected(self, db, services, bus, current, target):
        ticket = _ticket_in(db, services, current)
        with pytest.raises(ValidationError):
            services.kitchen.advance(db, ticket.ticket_id, target.value)
        db.refresh(ticket)
        assert ticket.status == current
        assert read_topic(bus, services.topics.order_events) == []

    def test_force_complete_from_new(self, db, services):
        ticket = _ticket_in(db, services, TicketStatus.new)
        updated = services.kitchen.advance(db, ticket.ticket_id, "DELIVERED_TO_SERVICE")
        assert updated.status == TicketStatus.delivered_to_service

    def test_unknown_status_string(self, db, services):
        ticket = _ticket_in(db, services, TicketStatus.new)
        with pytest.raises(ValidationError) as exc_info:
            services.kitchen.advance(db, ticket.ticket_id, "COOKING")
        assert "Invalid ticket status" in exc_info.value.message

    def test_missing_ticket(self, db, services):
        with pytest.raises(NotFoundError):
            services.kitchen.advance(db, uuid.uuid4(), "ACCEPTED")

    def test_list_filter_by_status(self, db, services):
        _ticket_in(db, services, TicketStatus.new)
        _ticket_in(db, services, TicketStatus.ready)
        assert len(services.kitchen.list_tickets(db)) == 2
        ready = services.kitchen.list_tickets(db, status="READY")
        assert [t.status for t in ready] == [TicketStatus.ready]
        with pytest.raises(ValidationError):
            services.kitchen.list_tickets(db, status="BURNT")


class TestReadyNotification:

    def test_ready_sends_email(self, db, services, mailer, customer):
        ticket = _ticket_in(db, services, TicketStatus.in_progress, user_id=customer.id)
        services.kitchen.advance(db, ticket.ticket_id, "READY")
        services.notifier.wait(timeout=5)
        assert mailer.sent == [
            {"to": "customer@example.com", "order_id": ticket.order_id, "restaurant_name": "Restaurant"}
        ]

    def test_other_transitions_send_nothing(self, db, services, mailer, customer):
        ticket = _ticket_in(db, services, TicketStatus.new, user_id=customer.id)
        services.kitchen.advance(db, ticket.ticket_id, "ACCEPTED")
        services.notifier.wait(timeout=5)
        assert mailer.sent == []

    def test_mail_failure_is_not_surfaced(self, db, services, mailer, customer, caplog):
        mailer.error = ExternalServiceError("Failed to send email: connection refused")
        ticket = _ticket_in(db, services, TicketStatus.in_progress, user_id=customer.id)
        updated = services.kitchen.advance(db, ticket.ticket_id, "READY")
        services.notifier.wait(timeout=5)
        assert updated.status == TicketStatus.ready
        assert mailer.sent == []
        assert "Order ready notification" in caplog.text

    def test_unknown_user_is_not_surfaced(self, db, services, mailer):
        ticket = _ticket_in(db, services, TicketStatus.in_progress)
        updated = services.kitchen.advance(db, ticket.ticket_id, "READY")
        services.notifier.wait(timeout=5)
        assert updated.status == TicketStatus.ready
        assert mailer.sent == []


class TestKitchenAPI:

    def test_get_and_advance_ticket(self, client, db, services):
        ticket = _ticket_in(db, services, TicketStatus.new)
        resp = client.get(f"/api/kitchen/tickets/{ticket.ticket_id}")
        assert resp.status_code == 200
        assert resp.json()["status"] == "NEW"

        resp = client.put(f"/api/kitchen/tickets/{ticket.ticket_id}/status", json={"status": "ACCEPTED"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "ACCEPTED"

    def test_ticket_by_order(self, client, db, services):
        ticket = _ticket_in(db, services, TicketStatus.new)
        resp = client.get(f"/api/kitchen/orders/{ticket.order_id}/ticket")
        assert resp.status_code == 200
        assert resp.json()["ticket_id"] == str(ticket.ticket_id)

    def test_illegal_advance_is_400(self, client, db, services):
        ticket = _ticket_in(db, services, TicketStatus.new)
        resp = client.put(f"/api/kitchen/tickets/{ticket.ticket_id}/status", json={"status": "READY"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "VALIDATION_ERROR"

    def test_missing_ticket_is_404(self, client):
        resp = client.get(f"/api/kitchen/tickets/{uuid.uuid4()}")
        assert resp.status_code == 404

    def test_list_by_status(self, client, db, services):
        _ticket_in(db, services, TicketStatus.new)
        _ticket_in(db, services, TicketStatus.accepted)
        resp = client.get("/api/kitchen/tickets", params={"status": "ACCEPTED"})
        assert resp.status_code == 200
        assert [t["status"] for t in resp.json()] == ["ACCEPTED"]
