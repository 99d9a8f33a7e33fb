from fastapi.testclient import TestClient

from storefront.config import settings
from storefront.database import get_session
from storefront.main import create_app
from storefront.services.payment_gateway import PaymentGateway
from storefront.services.storage import SignedUrlGateway
from tests.conftest import auth_headers


def test_health_reports_dependency_state(client):
    body = client.get("/health/check").json()

    assert body["status"] == "ok"
    assert body["database"] == "ok"
    assert body["payment_gateway"] == "configured"
    assert body["storage"] == "configured"


def test_unconfigured_app_answers_503(session, customer, product):
    app = create_app(settings, payment_gateway=PaymentGateway(), storage=SignedUrlGateway())
    app.dependency_overrides[get_session] = lambda: session
    client = TestClient(app)

    body = client.get("/health/check").json()
    assert body["payment_gateway"] == "unconfigured"
    assert body["storage"] == "unconfigured"

    response = client.post("/payment/create-intent", json={"productId": product.id}, headers=auth_headers(customer))
    assert response.status_code == 503
    assert response.json()["error"] == "upstream_unavailable"

    response = client.get(f"/products/{product.id}")
    assert response.status_code == 200
    assert response.json()["previewImageUrls"] == []
