import os

# Must be set before the app (and its limiter) is imported
os.environ["ENV"] = "testing"

import pytest
from datetime import timedelta
from decimal import Decimal
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from main import app
from core.database import Base
from models.enums import DeliveryAction, DiscountType, OrderStatus, UserRole
from models.products import Product
from models.promo_codes import PromoCode
from models.users import User
from models.vendors import Vendor
from services.delivery_service import DeliveryService
from services.order_service import OrderService
from utils.clock import utcnow
from utils.deps import get_db
from tests.helpers import actor_for, order_request

# SYNC SQLite for testing (matches sync service layer)
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False, "timeout": 30}
)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """
    Creates a fresh, empty database for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(session):
    """Independent sessions on the test database, one per simulated client."""
    return TestingSessionLocal


@pytest.fixture
async def client(session: Session):
    """
    Yields an HTTP client that interacts with the app using the test database.
    The client is async (for FastAPI), but the DB session is sync.
    """
    def override_get_db():
        try:
            yield session
        finally:
            pass  # Session cleanup handled by session fixture

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ----------------------------------------------------------------------
# Data factories
# ----------------------------------------------------------------------

def _user(session: Session, name: str, role: UserRole) -> User:
    user = User(name=name, email=f"{name.lower().replace(' ', '.')}@example.com", phone="9876543210", role=role)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def customer(session):
    return _user(session, "Asha Customer", UserRole.CUSTOMER)


@pytest.fixture
def other_customer(session):
    return _user(session, "Ravi Customer", UserRole.CUSTOMER)


@pytest.fixture
def vendor_owner(session):
    return _user(session, "Meena Vendor", UserRole.VENDOR)


@pytest.fixture
def other_vendor_owner(session):
    return _user(session, "Kiran Vendor", UserRole.VENDOR)


@pytest.fixture
def partner(session):
    return _user(session, "Dev Partner", UserRole.DELIVERY)


@pytest.fixture
def other_partner(session):
    return _user(session, "Sam Partner", UserRole.DELIVERY)


@pytest.fixture
def admin(session):
    return _user(session, "Ops Admin", UserRole.ADMIN)


@pytest.fixture
def vendor(session, vendor_owner):
    store = Vendor(
        owner_id=vendor_owner.id,
        store_name="Fresh Mart",
        phone="9000000001",
        address="12 MG Road",
        city="Bengaluru",
        latitude=12.9716,
        longitude=77.5946,
    )
    session.add(store)
    session.commit()
    session.refresh(store)
    return store


@pytest.fixture
def products(session, vendor):
    """Two products: Milk at 50 (stock 10) and Rice at 75 (stock 5)."""
    milk = Product(vendor_id=vendor.id, name="Milk", price=Decimal("50.00"), unit="1 L", stock=10)
    rice = Product(vendor_id=vendor.id, name="Rice", price=Decimal("75.00"), unit="1 kg", stock=5)
    session.add_all([milk, rice])
    session.commit()
    session.refresh(milk)
    session.refresh(rice)
    return milk, rice


@pytest.fixture
def promo(session):
    """SAVE10: 10% off, at most 50, orders of 100 or more."""
    code = PromoCode(
        code="SAVE10",
        description="10% off",
        discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal("10"),
        min_order_amount=Decimal("100"),
        max_discount=Decimal("50"),
        usage_limit=100,
        usage_count=0,
        valid_from=utcnow() - timedelta(days=1),
        valid_until=utcnow() + timedelta(days=30),
        is_active=True,
    )
    session.add(code)
    session.commit()
    session.refresh(code)
    return code


@pytest.fixture
def place_order(session, customer, vendor, products):
    """Place an order through the service. Defaults to 2 x Milk (subtotal 100)."""
    def _place(lines=None, promo_code=None, buyer=None):
        milk, _ = products
        request = order_request(vendor, lines or [(milk, 2)], promo_code=promo_code)
        return OrderService(session).create_order(actor_for(buyer or customer), request)
    return _place


@pytest.fixture
def ready_order(session, place_order, vendor_owner):
    """A placed order walked by its vendor up to ready."""
    order = place_order()
    service = OrderService(session)
    vendor_actor = actor_for(vendor_owner)
    for status in (OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.READY):
        order, _ = service.transition(vendor_actor, order.id, status)
    return order


@pytest.fixture
def deliver():
    """Take a ready order through accept, pickup, on the way and delivered."""
    def _deliver(session, order, partner):
        service = DeliveryService(session)
        service.accept(order.id, partner.id)
        for action in (DeliveryAction.PICKUP, DeliveryAction.ON_THE_WAY, DeliveryAction.DELIVERED):
            order = service.perform(order.id, partner.id, action)
        return order
    return _deliver


@pytest.fixture
def delivered_order(session, ready_order, partner, deliver):
    return deliver(session, ready_order, partner)
