import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["SQLALCHEMY_DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"

import hashlib
import hmac
import json

import boto3
import pytest
from botocore.config import Config
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session

import storefront.models  # noqa: F401
from storefront.config import settings
from storefront.database import engine, get_session
from storefront.main import create_app
from storefront.models.product import Product
from storefront.models.user import User, UserRole
from storefront.services.order_ledger import OrderLedger
from storefront.services.payment_gateway import PaymentGateway
from storefront.services.storage import SignedUrlGateway
from storefront.utils.token import create_access_token

KEY_ID = "rzp_test_key"
KEY_SECRET = "rzp_test_secret"
WEBHOOK_SECRET = "whsec_test_secret"
BUCKET = "designs"


class FakeOrderApi:
    """Stands in for razorpay.Client.order."""

    def __init__(self):
        self.calls = []
        self.error = None
        self._counter = 0

    def create(self, data=None, **kwargs):
        self.calls.append((data, kwargs))
        if self.error is not None:
            raise self.error
        self._counter += 1
        return {
            "id": f"order_test{self._counter:04d}",
            "entity": "order",
            "amount": data["amount"],
            "currency": data["currency"],
            "status": "created",
        }


def sign_payment(order_id: str, payment_id: str, secret: str = KEY_SECRET) -> str:
    msg = f"{order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), msg, hashlib.sha256).hexdigest()


def sign_webhook(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def webhook_body(order_id: str, payment_id: str = "pay_webhook01", event: str = "payment.captured") -> bytes:
    return json.dumps({
        "entity": "event",
        "event": event,
        "payload": {
            "payment": {
                "entity": {
                    "id": payment_id,
                    "order_id": order_id,
                    "amount": 500,
                    "status": "captured",
                }
            }
        },
    }).encode()


@pytest.fixture
def session():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def fake_orders():
    return FakeOrderApi()


@pytest.fixture
def gateway(fake_orders):
    gateway = PaymentGateway(
        key_id=KEY_ID,
        key_secret=KEY_SECRET,
        webhook_secret=WEBHOOK_SECRET,
        timeout=5,
    )
    gateway._client.order = fake_orders
    return gateway


@pytest.fixture
def s3_client():
    return boto3.client(
        "s3",
        endpoint_url="https://testaccount.r2.cloudflarestorage.com",
        aws_access_key_id="test-access-key",
        aws_secret_access_key="test-secret-key",
        region_name="auto",
        config=Config(signature_version="s3v4"),
    )


@pytest.fixture
def storage(s3_client):
    return SignedUrlGateway(s3_client, BUCKET, expiry_seconds=3600)


@pytest.fixture
def app(session, gateway, storage):
    app = create_app(settings, payment_gateway=gateway, storage=storage)
    app.dependency_overrides[get_session] = lambda: session
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


def _user(session, email, role=UserRole.customer):
    user = User(name=email.split("@")[0], email=email, password_hash="x", role=role)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def customer(session):
    return _user(session, "alice@example.com")


@pytest.fixture
def other_customer(session):
    return _user(session, "bob@example.com")


@pytest.fixture
def admin_user(session):
    return _user(session, "admin@example.com", UserRole.admin)


@pytest.fixture
def product(session):
    product = Product(
        title="Floral Pattern Pack",
        slug="floral-pattern-pack",
        description="Twelve seamless floral patterns",
        price=500,
        file_key="products/5f2b9c0e4d1a4b7e8c3d2a1f0e9b8c7d.zip",
        file_name="Floral Pattern Pack.zip",
        file_size=2048,
        preview_images=["previews/0a1b2c3d4e5f60718293a4b5c6d7e8f9.png"],
    )
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


@pytest.fixture
def make_order(session):
    def _make(user, product, order_id="order_test0001"):
        order = OrderLedger(session).create(
            order_id=order_id,
            user_id=user.id,
            product_id=product.id,
            amount=product.price,
            currency="INR",
        )
        session.commit()
        session.refresh(order)
        return order
    return _make


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'user_id': user.id})}"}
