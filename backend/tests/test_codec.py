"""Tests for the event envelope and its JSON wire codec."""
import json
import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from orderflow.events import (
    BillPaid,
    Envelope,
    OrderItemData,
    OrderPlaced,
    OrderStatusUpdated,
    UnknownEvent,
    decode,
    encode,
)
from orderflow.exceptions import MalformedEvent


def _order_placed() -> OrderPlaced:
    return OrderPlaced(
        order_id=uuid.uuid4(),
        user_id=uuid.uuid4(),
        restaurant_id=uuid.uuid4(),
        total_amount=Decimal("24.98"),
        items=[
            OrderItemData(
                food_id=uuid.uuid4(), food_name="Burger", quantity=2,
                unit_price=Decimal("9.99"), subtotal=Decimal("19.98"),
            ),
            OrderItemData(
                food_id=uuid.uuid4(), food_name="Fries", quantity=1,
                unit_price=Decimal("5.00"), subtotal=Decimal("5.00"),
            ),
        ],
        placed_at=datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc),
    )


class TestEncode:

    def test_wire_shape(self):
        envelope = Envelope.wrap(_order_placed())
        document = json.loads(encode(envelope))
        assert set(document) == {"event_id", "event_type", "timestamp", "data"}
        assert document["event_type"] == "order.placed"
        assert document["event_id"] == str(envelope.event_id)

    def test_money_travels_as_decimal_strings(self):
        document = json.loads(encode(Envelope.wrap(_order_placed())))
        assert document["data"]["total_amount"] == "24.98"
        assert document["data"]["items"][0]["unit_price"] == "9.99"

    def test_envelope_is_immutable(self):
        envelope = Envelope.wrap(_order_placed())
        with pytest.raises(Exception):
            envelope.event_type = "something.else"


class TestDecode:

    def test_decodes_typed_payload(self):
        payload = _order_placed()
        envelope = Envelope.wrap(payload)
        decoded = decode(encode(envelope))
        assert decoded.event_id == envelope.event_id
        assert isinstance(decoded.data, OrderPlaced)
        assert decoded.data.total_amount == Decimal("24.98")
        assert decoded.data.items[0].subtotal == Decimal("19.98")

    def test_decodes_bytes(self):
        payload = OrderStatusUpdated(
            order_id=uuid.uuid4(), restaurant_id=uuid.uuid4(),
            old_status="PLACED", new_status="ACCEPTED",
            updated_at=datetime.now(timezone.utc), source="kitchen",
        )
        decoded = decode(encode(Envelope.wrap(payload)).encode("utf-8"))
        assert isinstance(decoded.data, OrderStatusUpdated)
        assert decoded.data.source == "kitchen"

    def test_status_update_source_defaults_to_order(self):
        raw = json.dumps({
            "event_id": str(uuid.uuid4()),
            "event_type": "order.status_updated",
            "timestamp": "2026-10-19T12:00:00Z",
            "data": {
                "order_id": str(uuid.uuid4()),
                "restaurant_id": str(uuid.uuid4()),
                "old_status": "PLACED",
                "new_status": "CANCELLED",
                "updated_at": "2026-10-19T12:00:00Z",
            },
        })
        assert decode(raw).data.source == "order"

    def test_unknown_type_is_not_fatal(self):
        raw = json.dumps({
            "event_id": str(uuid.uuid4()),
            "event_type": "restaurant.created",
            "timestamp": "2026-10-19T12:00:00+00:00",
            "data": {"name": "Pizza Place"},
        })
        decoded = decode(raw)
        assert isinstance(decoded.data, UnknownEvent)
        assert decoded.data.event_type == "restaurant.created"
        assert decoded.data.data == {"name": "Pizza Place"}

    @pytest.mark.parametrize("stamp", [
        "2026-10-19T12:00:00Z",
        "2026-10-19t12:00:00z",
        "2026-10-19T12:00:00.123456789Z",
        "2026-10-19T17:30:00+05:30",
    ])
    def test_rfc3339_timestamps(self, stamp):
        raw = json.dumps({
            "event_id": str(uuid.uuid4()),
            "event_type": "restaurant.created",
            "timestamp": stamp,
            "data": {},
        })
        timestamp = decode(raw).timestamp
        assert timestamp.replace(microsecond=0) == datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

    def test_unknown_event_reencodes_its_raw_data(self):
        envelope = Envelope.wrap(UnknownEvent(event_type="menu.updated", data={"x": 1}))
        assert json.loads(encode(envelope))["data"] == {"x": 1}

    def test_bill_paid_optional_fields(self):
        payload = BillPaid(
            bill_id=uuid.uuid4(), order_id=uuid.uuid4(),
            payment_method="card", paid_at=datetime.now(timezone.utc),
        )
        decoded = decode(encode(Envelope.wrap(payload)))
        assert decoded.data.total_amount is None
        assert decoded.data.payment_method == "card"


class TestMalformed:

    @pytest.mark.parametrize("raw", [
        b"\xff\xfe\xfd",
        "not json at all",
        "[1, 2, 3]",
        "null",
        json.dumps({"event_id": str(uuid.uuid4()), "timestamp": "2026-10-19T12:00:00Z", "data": {}}),
        json.dumps({"event_id": str(uuid.uuid4()), "event_type": "", "timestamp": "2026-10-19T12:00:00Z"}),
        json.dumps({"event_id": "not-a-uuid", "event_type": "order.placed", "timestamp": "2026-10-19T12:00:00Z"}),
        json.dumps({"event_id": str(uuid.uuid4()), "event_type": "order.placed", "timestamp": "yesterday"}),
    ])
    def test_unparseable_envelopes(self, raw):
        with pytest.raises(MalformedEvent):
            decode(raw)

    def test_known_type_with_invalid_payload(self):
        raw = json.dumps({
            "event_id": str(uuid.uuid4()),
            "event_type": "order.placed",
            "timestamp": "2026-10-19T12:00:00Z",
            "data": {"order_id": "nope"},
        })
        with pytest.raises(MalformedEvent) as exc_info:
            decode(raw)
        assert exc_info.value.error == "MALFORMED_EVENT"
