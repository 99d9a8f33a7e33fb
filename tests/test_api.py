import io

import requests
from botocore.stub import ANY, Stubber
from sqlmodel import select

from storefront.constants.order_status import OrderStatus
from storefront.models.order import Order
from storefront.models.product import Product
from storefront.services.entitlements import grant_entitlement, has_entitlement
from tests.conftest import BUCKET, KEY_ID, auth_headers, sign_payment, sign_webhook, webhook_body


def _create_intent(client, user, product_id):
    return client.post("/payment/create-intent", json={"productId": product_id}, headers=auth_headers(user))


# -------- end to end --------

def test_purchase_then_download(client, session, customer, product):
    response = _create_intent(client, customer, product.id)
    assert response.status_code == 200
    intent = response.json()
    assert intent["amount"] == 500
    assert intent["currency"] == "INR"
    assert intent["gatewayPublicKey"] == KEY_ID

    order = session.exec(select(Order).where(Order.order_id == intent["intentId"])).one()
    assert order.status == OrderStatus.created

    payment_id = "pay_e2e0001"
    response = client.post(
        "/payment/confirm",
        json={
            "orderId": intent["intentId"],
            "paymentId": payment_id,
            "signature": sign_payment(intent["intentId"], payment_id),
        },
        headers=auth_headers(customer),
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "orderId": intent["intentId"], "alreadyProcessed": False}

    session.refresh(order)
    assert order.status == OrderStatus.paid
    assert has_entitlement(session, customer.id, product.id)

    response = client.get(f"/products/{product.id}/download", headers=auth_headers(customer))
    assert response.status_code == 200
    body = response.json()
    assert body["fileName"] == "Floral Pattern Pack.zip"
    assert body["downloadUrl"].startswith("https://")
    assert "expiresAt" in body

    session.refresh(product)
    assert product.downloads == 1


def test_confirm_accepts_razorpay_field_names(client, customer, product, make_order):
    order = make_order(customer, product)

    response = client.post(
        "/payment/confirm",
        json={
            "razorpay_order_id": order.order_id,
            "razorpay_payment_id": "pay_1",
            "razorpay_signature": sign_payment(order.order_id, "pay_1"),
        },
        headers=auth_headers(customer),
    )

    assert response.status_code == 200


# -------- create-intent --------

def test_create_intent_already_purchased(client, session, customer, product):
    grant_entitlement(session, customer.id, product.id)
    session.commit()

    response = _create_intent(client, customer, product.id)

    assert response.status_code == 400
    assert response.json()["error"] == "conflict"
    assert session.exec(select(Order)).all() == []


def test_create_intent_unknown_product(client, customer):
    response = _create_intent(client, customer, 9999)

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_create_intent_gateway_down(client, session, fake_orders, customer, product):
    fake_orders.error = requests.ConnectionError("refused")

    response = _create_intent(client, customer, product.id)

    assert response.status_code == 503
    assert response.json()["error"] == "upstream_unavailable"
    assert session.exec(select(Order)).all() == []


def test_create_intent_requires_auth(client, product):
    response = client.post("/payment/create-intent", json={"productId": product.id})

    assert response.status_code == 401
    assert response.json()["error"] == "auth_error"


def test_create_intent_rejects_garbage_token(client, product):
    response = client.post(
        "/payment/create-intent",
        json={"productId": product.id},
        headers={"Authorization": "Bearer not-a-jwt"},
    )

    assert response.status_code == 401


def test_create_intent_validation_error(client, customer):
    response = client.post("/payment/create-intent", json={}, headers=auth_headers(customer))

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


# -------- confirm --------

def test_confirm_signature_mismatch(client, session, customer, product, make_order):
    order = make_order(customer, product)

    response = client.post(
        "/payment/confirm",
        json={"orderId": order.order_id, "paymentId": "pay_1", "signature": "f" * 64},
        headers=auth_headers(customer),
    )

    assert response.status_code == 400
    assert response.json() == {"error": "integrity_error", "message": "Payment verification failed"}
    session.refresh(order)
    assert order.status == OrderStatus.failed


def test_confirm_terminal_order(client, session, customer, product, make_order):
    order = make_order(customer, product)
    headers = auth_headers(customer)
    client.post(
        "/payment/confirm",
        json={"orderId": order.order_id, "paymentId": "pay_1", "signature": "f" * 64},
        headers=headers,
    )

    response = client.post(
        "/payment/confirm",
        json={"orderId": order.order_id, "paymentId": "pay_1", "signature": sign_payment(order.order_id, "pay_1")},
        headers=headers,
    )

    assert response.status_code == 409
    assert response.json()["error"] == "conflict"


def test_confirm_twice_reports_already_processed(client, customer, product, make_order):
    order = make_order(customer, product)
    payload = {"orderId": order.order_id, "paymentId": "pay_1", "signature": sign_payment(order.order_id, "pay_1")}

    client.post("/payment/confirm", json=payload, headers=auth_headers(customer))
    response = client.post("/payment/confirm", json=payload, headers=auth_headers(customer))

    assert response.status_code == 200
    assert response.json()["alreadyProcessed"] is True


# -------- webhook --------

def test_webhook_valid(client, session, customer, product, make_order):
    order = make_order(customer, product)
    body = webhook_body(order.order_id)

    response = client.post(
        "/payment/webhook",
        content=body,
        headers={"X-Razorpay-Signature": sign_webhook(body), "Content-Type": "application/json"},
    )

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    session.refresh(order)
    assert order.status == OrderStatus.paid


def test_webhook_acks_unknown_order(client):
    body = webhook_body("order_nobody")

    response = client.post("/payment/webhook", content=body, headers={"X-Razorpay-Signature": sign_webhook(body)})

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_webhook_bad_signature(client, session, customer, product, make_order):
    order = make_order(customer, product)
    body = webhook_body(order.order_id)

    response = client.post("/payment/webhook", content=body, headers={"X-Razorpay-Signature": "0" * 64})

    assert response.status_code == 400
    assert response.json()["error"] == "integrity_error"
    session.refresh(order)
    assert order.status == OrderStatus.created


def test_webhook_missing_signature(client):
    response = client.post("/payment/webhook", content=webhook_body("order_x"))

    assert response.status_code == 400


# -------- products --------

def test_download_not_entitled(client, customer, product):
    response = client.get(f"/products/{product.id}/download", headers=auth_headers(customer))

    assert response.status_code == 403
    assert response.json()["error"] == "authorization_error"


def test_download_missing_product(client, customer):
    response = client.get("/products/9999/download", headers=auth_headers(customer))

    assert response.status_code == 404


def test_download_admin(client, admin_user, product):
    response = client.get(f"/products/{product.id}/download", headers=auth_headers(admin_user))

    assert response.status_code == 200


def test_product_listing_hides_object_keys(client, product):
    response = client.get("/products")

    assert response.status_code == 200
    [view] = response.json()
    assert view["title"] == "Floral Pattern Pack"
    assert len(view["previewImageUrls"]) == 1
    assert "fileKey" not in view
    assert "previewImages" not in view
    assert product.file_key not in response.text


def test_product_detail_hides_inactive(client, session, product):
    assert client.get(f"/products/{product.id}").status_code == 200

    product.is_active = False
    session.add(product)
    session.commit()

    assert client.get(f"/products/{product.id}").status_code == 404


# -------- orders --------

def test_order_detail_access(client, session, customer, other_customer, admin_user, product, make_order):
    order = make_order(customer, product)
    client.post(
        "/payment/confirm",
        json={"orderId": order.order_id, "paymentId": "pay_1", "signature": sign_payment(order.order_id, "pay_1")},
        headers=auth_headers(customer),
    )

    owner_view = client.get(f"/orders/{order.order_id}", headers=auth_headers(customer)).json()
    assert owner_view["status"] == "paid"
    assert owner_view["paymentId"] == "pay_1"
    assert "signature" not in owner_view

    assert client.get(f"/orders/{order.order_id}", headers=auth_headers(other_customer)).status_code == 403

    admin_view = client.get(f"/orders/{order.order_id}", headers=auth_headers(admin_user)).json()
    assert admin_view["signature"] == sign_payment(order.order_id, "pay_1")
    assert admin_view["userId"] == customer.id


def test_my_orders_lists_paid_only(client, customer, product, make_order):
    paid = make_order(customer, product, order_id="order_paid")
    make_order(customer, product, order_id="order_open")
    client.post(
        "/payment/confirm",
        json={"orderId": paid.order_id, "paymentId": "pay_1", "signature": sign_payment(paid.order_id, "pay_1")},
        headers=auth_headers(customer),
    )

    response = client.get("/orders/my-orders", headers=auth_headers(customer))

    assert [o["orderId"] for o in response.json()] == ["order_paid"]
    assert response.json()[0]["productTitle"] == "Floral Pattern Pack"


def test_all_orders_is_admin_only(client, customer, admin_user, product, make_order):
    make_order(customer, product)

    assert client.get("/orders", headers=auth_headers(customer)).status_code == 403
    response = client.get("/orders", headers=auth_headers(admin_user))
    assert response.status_code == 200
    assert len(response.json()) == 1


# -------- auth --------

def test_register_and_login(client):
    response = client.post("/auth/register", json={
        "name": "Carol",
        "email": "Carol@Example.com",
        "password": "correct-horse",
        "confirm_password": "correct-horse",
    })
    assert response.status_code == 200
    assert response.json()["role"] == "customer"

    duplicate = client.post("/auth/register", json={
        "name": "Carol",
        "email": "carol@example.com",
        "password": "correct-horse",
        "confirm_password": "correct-horse",
    })
    assert duplicate.status_code == 409

    bad = client.post("/auth/login", json={"email": "carol@example.com", "password": "wrong-password"})
    assert bad.status_code == 401

    good = client.post("/auth/login", json={"email": "carol@example.com", "password": "correct-horse"})
    assert good.status_code == 200
    token = good.json()["access_token"]

    response = client.get("/orders/my-orders", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json() == []


# -------- admin --------

def test_admin_stats(client, customer, admin_user, product, make_order):
    order = make_order(customer, product)
    client.post(
        "/payment/confirm",
        json={"orderId": order.order_id, "paymentId": "pay_1", "signature": sign_payment(order.order_id, "pay_1")},
        headers=auth_headers(customer),
    )

    response = client.get("/admin/stats", headers=auth_headers(admin_user))

    assert response.json() == {
        "totalProducts": 1,
        "totalOrders": 1,
        "totalRevenue": 500,
        "totalCustomers": 1,
    }


def test_admin_create_product_uploads_to_storage(client, session, admin_user, s3_client):
    with Stubber(s3_client) as stubber:
        stubber.add_response(
            "put_object",
            {"ETag": '"etag"'},
            {"Bucket": BUCKET, "Key": ANY, "Body": ANY, "ContentType": "application/zip"},
        )
        response = client.post(
            "/admin/products",
            data={"title": "Geometric Icons", "price": "1500", "description": "Icon set"},
            files={"file": ("Geometric Icons.zip", io.BytesIO(b"PK\x03\x04"), "application/zip")},
            headers=auth_headers(admin_user),
        )

    assert response.status_code == 201
    body = response.json()
    assert body["slug"] == "geometric-icons"
    assert body["price"] == 1500
    assert body["isActive"] is True

    product = session.get(Product, body["id"])
    assert product.file_key.startswith("products/")
    assert "Geometric" not in product.file_key
    assert product.file_name == "Geometric Icons.zip"


def test_admin_routes_reject_customers(client, customer):
    assert client.get("/admin/stats", headers=auth_headers(customer)).status_code == 403
