import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")

from contextlib import contextmanager
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from foodhub.data.database import Base, init_db, utcnow
from foodhub.data.models import (
    DeliveryZoneModel,
    MenuItemModel,
    PartnerModel,
    ZonePostalCodeModel,
)
from foodhub.domain.delivery import never_peak
from foodhub.domain.errors import ConcurrencyConflict
from foodhub.domain.schemas import Principal
from foodhub.services.cart_service import CartService
from foodhub.services.order_service import OrderService
from foodhub.services.zone_service import ZoneService


class FakeLock:
    """Lock sesji trzymany w pamieci, zamiast Redisa."""

    def __init__(self):
        self.held = set()
        self.acquired = []

    @contextmanager
    def session_lock(self, session_id, ttl=30):
        if session_id in self.held:
            raise ConcurrencyConflict("locked", {"session_id": session_id})
        self.held.add(session_id)
        self.acquired.append(session_id)
        try:
            yield "token"
        finally:
            self.held.discard(session_id)


class RecordingNotifier:
    def __init__(self):
        self.events = []

    def order_status_changed(self, order_id, partner_id, old_status, new_status, timestamp):
        self.events.append((order_id, partner_id, old_status, new_status))


class FrozenClock:
    def __init__(self, start=None):
        self.now = start or utcnow()

    def __call__(self):
        return self.now

    def advance(self, **kw):
        self.now = self.now + timedelta(**kw)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine)()
    yield session
    session.close()


def seed_catalog(db):
    """
    Zone 1 (00-001): base 2.99, +1.50 per extra partner, peak 2.00, 20 min transit.
    Zone 2 (02-200): base 7.99, +5.00 per extra partner, 35 min transit.
    Zone 3 (09-999): inactive.

    Partner 1 (min 20.00, 20 min prep): burger 10.00 (stock 10), fries 6.00/5.00 (untracked).
    Partner 2 (min 10.00, 30 min prep): pasta 15.00 (stock 5), soup 8.00 (unavailable).
    Partner 3: inactive, salad 9.00.
    """
    db.add_all(
        [
            DeliveryZoneModel(
                zone_number=1,
                zone_name="Centrum",
                base_fee=Decimal("2.99"),
                per_extra_partner_fee=Decimal("1.50"),
                peak_surcharge=Decimal("2.00"),
                estimated_transit_minutes=20,
                postal_codes=[ZonePostalCodeModel(postal_code="00-001")],
            ),
            DeliveryZoneModel(
                zone_number=2,
                zone_name="Przedmiescia",
                base_fee=Decimal("7.99"),
                per_extra_partner_fee=Decimal("5.00"),
                peak_surcharge=Decimal("3.00"),
                estimated_transit_minutes=35,
                postal_codes=[ZonePostalCodeModel(postal_code="02-200")],
            ),
            DeliveryZoneModel(
                zone_number=3,
                zone_name="Zamknieta",
                base_fee=Decimal("9.99"),
                is_active=False,
                postal_codes=[ZonePostalCodeModel(postal_code="09-999")],
            ),
        ]
    )
    db.add_all(
        [
            PartnerModel(id=1, name="Burger Joint", min_order_amount=Decimal("20.00"), avg_prep_minutes=20),
            PartnerModel(id=2, name="Pasta Place", min_order_amount=Decimal("10.00"), avg_prep_minutes=30),
            PartnerModel(id=3, name="Closed Salads", is_active=False),
        ]
    )
    db.add_all(
        [
            MenuItemModel(id=1, partner_id=1, name="Burger", price=Decimal("10.00"), stock_quantity=10),
            MenuItemModel(
                id=2, partner_id=1, name="Fries", price=Decimal("6.00"), discount_price=Decimal("5.00")
            ),
            MenuItemModel(id=3, partner_id=2, name="Pasta", price=Decimal("15.00"), stock_quantity=5),
            MenuItemModel(id=4, partner_id=2, name="Soup", price=Decimal("8.00"), is_available=False),
            MenuItemModel(id=5, partner_id=3, name="Salad", price=Decimal("9.00")),
        ]
    )
    db.commit()


@pytest.fixture
def catalog(db):
    seed_catalog(db)
    return db


@pytest.fixture
def file_engine(tmp_path):
    """Baza w pliku, zeby kilka polaczen widzialo te same dane."""
    eng = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def zones(db):
    return ZoneService(db, peak_policy=never_peak)


@pytest.fixture
def carts(db, catalog, zones):
    return CartService(db, zones=zones)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def lock():
    return FakeLock()


@pytest.fixture
def orders(db, catalog, zones, lock, notifier, clock):
    return OrderService(db, zones=zones, lock_service=lock, notifier=notifier, clock=clock)


CUSTOMER = Principal(principal_id="cust-1", role="customer")
ADMIN = Principal(principal_id="admin-1", role="admin")
PARTNER_1 = Principal(principal_id="1", role="partner")
PARTNER_2 = Principal(principal_id="2", role="partner")
COURIER = Principal(principal_id="courier-1", role="courier")

CUSTOMER_INFO = {"name": "Jan Kowalski", "phone": "+48 600 100 200", "email": "jan@example.com"}
ADDRESS = {"street": "Marszalkowska 1", "city": "Warszawa", "postal_code": "00-001"}


def fill_cart(carts, session_id="sess-1", postal_code="00-001"):
    """Two partners: 2x burger (20.00) and 1x pasta (15.00), quoted for zone 1."""
    carts.add_item(session_id, 1, 2)
    carts.add_item(session_id, 3, 1)
    return carts.quote_delivery(session_id, postal_code)


@pytest.fixture
def placed_order(carts, orders):
    fill_cart(carts)
    return orders.create_order("sess-1", CUSTOMER, CUSTOMER_INFO, ADDRESS, "card")
