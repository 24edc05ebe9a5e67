"""Full choreography through the HTTP API with the consumers drained by hand."""
import pytest

from tests.conftest import place_order_via_api


@pytest.fixture
def menu(catalog, restaurant_id):
    return catalog.add("Burger", "9.99", restaurant_id=restaurant_id), catalog.add("Fries", "5.00")


def _ticket_for(client, order_id) -> dict:
    resp = client.get(f"/api/kitchen/orders/{order_id}/ticket")
    assert resp.status_code == 200, resp.text
    return resp.json()


def _advance(client, ticket_id, status: str) -> None:
    resp = client.put(f"/api/kitchen/tickets/{ticket_id}/status", json={"status": status})
    assert resp.status_code == 200, resp.text


class TestHappyPath:

    def test_order_to_paid_bill(self, client, services, mailer, customer, restaurant_id, menu):
        burger, fries = menu
        headers = {"X-User-Id": str(customer.id)}

        order = place_order_via_api(client, customer.id, restaurant_id, [(burger, 2), (fries, 1)])
        assert order["status"] == "PLACED"
        assert order["total_amount"] == "24.98"
        order_id = order["order_id"]

        services.drain()
        ticket = _ticket_for(client, order_id)
        assert ticket["status"] == "NEW"
        bill = client.get(f"/api/billing/orders/{order_id}").json()
        assert bill["status"] == "PENDING"
        assert bill["tax_amount"] == "2.50"
        assert bill["total_amount"] == "27.48"

        for status in ("ACCEPTED", "IN_PROGRESS", "READY"):
            _advance(client, ticket["ticket_id"], status)
        services.drain()

        resp = client.get(f"/api/orders/{order_id}", headers=headers)
        assert resp.json()["status"] == "READY"
        services.notifier.wait(timeout=5)
        assert [m["to"] for m in mailer.sent] == ["customer@example.com"]

        resp = client.post(f"/api/billing/orders/{order_id}/finalize", json={"payment_method": "card"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "PAID"
        services.drain()

        revenue = client.get("/api/analytics/revenue").json()
        assert revenue["order_count"] == 1
        assert revenue["total_revenue"] == "24.98"
        assert client.get("/api/analytics/orders-by-status").json() == [{"status": "READY", "count": 1}]
        assert services.bus.lag("analytics-service-group", [services.topics.order_events]) == 0

    def test_force_complete_walks_order_to_completed(self, client, services, customer, restaurant_id, menu):
        burger, _ = menu
        order = place_order_via_api(client, customer.id, restaurant_id, [(burger, 1)])
        services.drain()

        _advance(client, _ticket_for(client, order["order_id"])["ticket_id"], "DELIVERED_TO_SERVICE")
        services.drain()

        resp = client.get(f"/api/orders/{order['order_id']}", headers={"X-User-Id": str(customer.id)})
        assert resp.json()["status"] == "COMPLETED"
        assert client.get("/api/analytics/orders-by-status").json() == [{"status": "COMPLETED", "count": 1}]

    def test_cancelled_order_ignores_kitchen_progress(self, client, services, customer, restaurant_id, menu):
        burger, _ = menu
        order = place_order_via_api(client, customer.id, restaurant_id, [(burger, 1)])
        services.drain()

        resp = client.put(f"/api/orders/{order['order_id']}/status", json={"status": "CANCELLED"})
        assert resp.status_code == 200
        _advance(client, _ticket_for(client, order["order_id"])["ticket_id"], "ACCEPTED")
        services.drain()

        resp = client.get(f"/api/orders/{order['order_id']}", headers={"X-User-Id": str(customer.id)})
        assert resp.json()["status"] == "CANCELLED"


class TestHealth:

    def test_lists_consumer_groups(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert {c["group"] for c in body["consumers"]} == {
            "order-service-group",
            "kitchen-service-group",
            "billing-service-group",
            "analytics-service-group",
        }
        assert not any(c["running"] for c in body["consumers"])
