"""Pytest fixtures for order service tests."""

import os

# Outbound endpoints point at fake hosts served by FakeNetwork below
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MAX_RETRIES"] = "1"
os.environ["AUTH_SERVICE_URL"] = "https://auth.test"
os.environ["PAYSTACK_BASE_URL"] = "https://paystack.test"
os.environ["PAYSTACK_PUBLIC_KEY"] = "pk_test_public"
os.environ["PAYSTACK_SECRET_KEY"] = "sk_test_secret"
os.environ["DOCUMENT_SERVICE_URL"] = "https://docs.test/generate-pdf"
os.environ["EMAIL_SERVICE"] = "console"
os.environ["MESSAGING_WEBHOOK_URL"] = "https://messaging.test/send"
os.environ["GEOCODER_URL"] = "https://geo.test/search"
os.environ["DEFAULT_DEPOSIT"] = "5000"
os.environ["DEFAULT_SHIPPING_FEE"] = "0"

import json
from datetime import datetime, timedelta
from decimal import Decimal

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from order_service.database import Base, get_db
from order_service.models import (
    CartItem, CustomOrder, Product, ProductVariant, Profile, Promotion, ShippingFee
)
from order_service.repositories.notification_repository import NotificationRepository
from order_service.services.auth_client import CurrentUser
from order_service.services.custom_order_service import CustomOrderService
from order_service.services.document_generator import DocumentGenerator
from order_service.services.geocoder import Geocoder
from order_service.services.notifications import (
    EmailChannel, InAppChannel, MessagingChannel, NotificationFanout
)
from order_service.services.order_service import OrderService
from order_service.services.payment_gateway import PaystackClient

CUSTOMER_TOKEN = "customer-token"
OTHER_TOKEN = "other-token"
ADMIN_TOKEN = "admin-token"

USERS = {
    CUSTOMER_TOKEN: {"id": "user-1", "email": "ada@example.com"},
    OTHER_TOKEN: {"id": "user-2", "email": "bola@example.com"},
    ADMIN_TOKEN: {"id": "admin-1", "email": "admin@example.com"},
}


class FakeNetwork:
    """Routes outbound HTTP calls by host and records every request"""

    def __init__(self):
        self.requests = []
        self.payments = {}  # reference -> amount in kobo of a successful charge
        self.documents_fail = False
        self.messaging_fail = False
        self.geocode_results = [{"lat": "6.4550", "lon": "3.3941"}]
        self.document_count = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host == "auth.test":
            return self._auth(request)
        if host == "paystack.test":
            return self._verify(request)
        if host == "docs.test":
            return self._document(request)
        if host == "messaging.test":
            if self.messaging_fail:
                return httpx.Response(500, text="down")
            return httpx.Response(200, text="Message queued")
        if host == "geo.test":
            return httpx.Response(200, json=self.geocode_results)
        return httpx.Response(404)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls_to(self, host: str):
        return [r for r in self.requests if r.url.host == host]

    def document_payloads(self, kind: str = None):
        payloads = [json.loads(r.content) for r in self.calls_to("docs.test")]
        return [p for p in payloads if kind is None or p["type"] == kind]

    def _auth(self, request):
        token = request.headers.get("Authorization", "").replace("Bearer ", "")
        user = USERS.get(token)
        if user is None:
            return httpx.Response(401, json={"msg": "invalid JWT"})
        return httpx.Response(200, json=user)

    def _verify(self, request):
        reference = request.url.path.rsplit("/", 1)[-1]
        if reference not in self.payments:
            return httpx.Response(400, json={"status": False, "message": "Transaction reference not found"})
        return httpx.Response(200, json={
            "status": True,
            "message": "Verification successful",
            "data": {"status": "success", "reference": reference, "amount": self.payments[reference]},
        })

    def _document(self, request):
        if self.documents_fail:
            return httpx.Response(500, json={"error": "renderer crashed"})
        kind = json.loads(request.content)["type"]
        self.document_count += 1
        return httpx.Response(200, json={"pdfUrl": f"https://files.test/{kind}-{self.document_count}.pdf"})


@pytest.fixture
def network():
    return FakeNetwork()


@pytest.fixture
def db_session():
    """Fresh in-memory database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def profiles(db_session):
    db_session.add_all([
        Profile(id="user-1", email="ada@example.com", full_name="Ada Obi", phone="2348012345678"),
        Profile(id="user-2", email="bola@example.com", full_name="Bola Ade"),
        Profile(id="admin-1", email="admin@example.com", full_name="Admin", is_admin=True),
    ])
    db_session.commit()


@pytest.fixture
def customer(profiles):
    return CurrentUser(id="user-1", email="ada@example.com", full_name="Ada Obi", phone="2348012345678")


@pytest.fixture
def other_customer(profiles):
    return CurrentUser(id="user-2", email="bola@example.com", full_name="Bola Ade")


@pytest.fixture
def admin(profiles):
    return CurrentUser(id="admin-1", email="admin@example.com", is_admin=True, full_name="Admin")


@pytest.fixture
def fanout(db_session, network):
    repository = NotificationRepository(db_session)
    transport = network.transport()
    return NotificationFanout(repository, channels=[
        EmailChannel(transport=transport),
        MessagingChannel(transport=transport),
        InAppChannel(repository),
    ])


@pytest.fixture
def order_service(db_session, network, fanout):
    transport = network.transport()
    return OrderService(
        db_session,
        gateway=PaystackClient(transport=transport),
        documents=DocumentGenerator(transport=transport),
        fanout=fanout,
        geocoder=Geocoder(transport=transport),
    )


@pytest.fixture
def custom_order_service(db_session, network, fanout):
    transport = network.transport()
    return CustomOrderService(
        db_session,
        gateway=PaystackClient(transport=transport),
        documents=DocumentGenerator(transport=transport),
        fanout=fanout,
    )


@pytest.fixture
def catalog(db_session):
    """A dress with two variants, a plain shirt and a Lagos shipping fee"""
    dress = Product(name="Ankara Dress", price=Decimal("12000.00"), category="dresses")
    shirt = Product(name="Linen Shirt", price=Decimal("5000.00"), category="shirts")
    db_session.add_all([dress, shirt])
    db_session.flush()
    medium = ProductVariant(product_id=dress.id, size="M", color="Blue", stock=5, price_delta=Decimal("0"))
    large = ProductVariant(product_id=dress.id, size="L", color="Blue", stock=1, price_delta=Decimal("500.00"))
    db_session.add_all([medium, large, ShippingFee(state_name="Lagos", shipping_fee=Decimal("1500.00"))])
    db_session.commit()
    return {"dress": dress, "shirt": shirt, "medium": medium, "large": large}


@pytest.fixture
def dress_promotion(db_session, catalog):
    now = datetime.utcnow()
    promotion = Promotion(
        name="Dress week",
        discount_percentage=10,
        category="dresses",
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=1),
        active=True,
    )
    db_session.add(promotion)
    db_session.commit()
    return promotion


@pytest.fixture
def filled_cart(db_session, catalog):
    """user-1 cart: 2 x Ankara Dress (M) and 1 x Linen Shirt"""
    db_session.add_all([
        CartItem(user_id="user-1", product_id=catalog["dress"].id, variant_id=catalog["medium"].id,
                 size="M", color="Blue", quantity=2),
        CartItem(user_id="user-1", product_id=catalog["shirt"].id, quantity=1),
    ])
    db_session.commit()


@pytest.fixture
def pending_custom_order(db_session, profiles):
    custom_order = CustomOrder(
        user_id="user-1",
        full_name="Ada Obi",
        email="ada@example.com",
        phone="2348012345678",
        fabric="Aso-oke",
        style="Agbada",
        measurements="Chest 40, Length 56",
        address="12 Marina Road, Lagos",
        status="pending",
        delivery_status="not_started",
        deposit=Decimal("5000.00"),
    )
    db_session.add(custom_order)
    db_session.commit()
    return custom_order


@pytest.fixture
def client(db_session, network, profiles):
    """TestClient wired to the test database and the fake network"""
    from order_service.api.deps import get_http_transport
    from order_service.main import app

    def override_get_db():
        yield db_session

    transport = network.transport()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_http_transport] = lambda: transport
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers(token: str = CUSTOMER_TOKEN) -> dict:
    return {"Authorization": f"Bearer {token}"}
