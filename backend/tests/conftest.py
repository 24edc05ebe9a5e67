"""Pytest fixtures: SQLite database, in-memory bus and fake collaborators.

Consumers never run on background threads here: tests call ``drain()`` to
deliver whatever has been published so far.
"""
import uuid
from decimal import Decimal
from typing import Optional

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from orderflow.bus import InMemoryEventBus
from orderflow.clients.catalog import FoodDetails
from orderflow.clients.users import UserInfo
from orderflow.config import Settings
from orderflow.container import build_services
from orderflow.database import Base, get_db
from orderflow.events import decode
from orderflow.exceptions import ExternalServiceError
from orderflow.main import app

# Import all models so they register with Base.metadata
import orderflow.models  # noqa: F401

SQLITE_URL = "sqlite:///./test.db"


class FakeCatalog:
    """Stands in for the restaurant catalog's internal food lookup."""

    def __init__(self):
        self.foods: dict[uuid.UUID, FoodDetails] = {}
        self.error: Optional[Exception] = None
        self.calls = 0

    def add(self, name: str, price: str, available: bool = True, restaurant_id=None) -> FoodDetails:
        food = FoodDetails(
            id=uuid.uuid4(),
            name=name,
            description=f"{name} description",
            price=Decimal(price),
            is_available=available,
            restaurant_id=restaurant_id,
        )
        self.foods[food.id] = food
        return food

    def get_foods(self, food_ids):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return [self.foods[i] for i in dict.fromkeys(food_ids) if i in self.foods]


class FakeUserDirectory:

    def __init__(self):
        self.users: dict[uuid.UUID, UserInfo] = {}

    def add(self, email: str) -> UserInfo:
        user = UserInfo(id=uuid.uuid4(), email=email, role="customer")
        self.users[user.id] = user
        return user

    def get_user(self, user_id):
        if user_id not in self.users:
            raise ExternalServiceError(f"User directory error: 404 for {user_id}")
        return self.users[user_id]


class FakeMailer:

    def __init__(self):
        self.sent: list[dict] = []
        self.error: Optional[Exception] = None

    def send_order_ready(self, to, order_id, restaurant_name):
        if self.error is not None:
            raise self.error
        self.sent.append({"to": to, "order_id": order_id, "restaurant_name": restaurant_name})


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session for direct service calls."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings():
    return Settings(DATABASE_URL=SQLITE_URL, BUS_PARTITIONS=4, CONSUMER_BACKOFF_SECONDS=0)


@pytest.fixture
def bus(settings):
    return InMemoryEventBus(partitions=settings.BUS_PARTITIONS)


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def users():
    return FakeUserDirectory()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def services(settings, session_factory, bus, catalog, users, mailer):
    """Fully wired components; consumers are drained by hand."""
    container = build_services(settings, session_factory, bus=bus, catalog=catalog, users=users, mailer=mailer)
    yield container
    container.notifier.shutdown()


@pytest.fixture(scope="function")
def client(session_factory, services):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.state.services = services
    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    app.state.services = None


@pytest.fixture
def restaurant_id():
    return uuid.uuid4()


@pytest.fixture
def customer(users):
    return users.add("customer@example.com")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def read_topic(bus: InMemoryEventBus, topic: str, group: str = "test-reader") -> list:
    """Decode every message on ``topic`` the reader group has not seen yet."""
    subscription = bus.subscribe([topic], group)
    envelopes = []
    while True:
        message = subscription.poll(0)
        if message is None:
            break
        envelopes.append(decode(message.value))
        subscription.commit(message)
    subscription.close()
    return envelopes


def place_order_via_api(client: TestClient, user_id, restaurant_id, lines: list[tuple]) -> dict:
    """POST /api/orders and return response JSON. ``lines`` holds (food, quantity)."""
    resp = client.post(
        "/api/orders/",
        json={
            "restaurant_id": str(restaurant_id),
            "items": [{"food_id": str(food.id), "quantity": qty} for food, qty in lines],
            "delivery_address": "42 Main Street",
        },
        headers={"X-User-Id": str(user_id)},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
