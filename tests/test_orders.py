from sqlmodel import select

from app.models import Employee, Notification, Product, Role
from tests.conftest import bearer

CUSTOMER = {"name": "Amira", "email": "amira@example.tn", "phone": "20000000", "address": "Tunis", "region": "Tunis"}


def fill_cart(client, product_id, quantity=1, **extra):
    r = client.post("/api/cart/items", json={"product_id": product_id, "quantity": quantity, **extra}, headers=bearer())
    assert r.status_code == 200, r.text


def test_checkout_empty_cart(client):
    r = client.post("/api/orders", json=CUSTOMER, headers=bearer())
    assert r.status_code == 400
    assert r.json()["error"] == "Cart is empty"


def test_checkout_consumes_stock_and_notifies(client, session, make_product):
    p = make_product(available_quantity=5)
    fill_cart(client, p.id, 2)

    r = client.post("/api/orders", json={**CUSTOMER, "total": 200.0}, headers=bearer())
    assert r.status_code == 201, r.text
    order = r.json()
    assert order["total"] == 200.0
    assert order["shipping"] == 0.0
    assert order["status"] == "pending"
    assert order["stock_consumed"] is True
    assert [(i["product_id"], i["quantity"], i["price"]) for i in order["items"]] == [(p.id, 2, 100.0)]

    session.expire_all()
    assert session.get(Product, p.id).available_quantity == 3

    notes = session.exec(select(Notification).where(Notification.order_id == order["id"])).all()
    assert len(notes) == 1
    assert notes[0].title == f"New order #{order['id']} from Amira"

    assert client.get("/api/cart", headers=bearer()).json()["cart"]["items"] == []


def test_order_uses_server_price_not_client_price(client, make_product):
    p = make_product()
    fill_cart(client, p.id, 1, price_from_client=1)

    r = client.post("/api/orders", json=CUSTOMER, headers=bearer())
    assert r.status_code == 201
    assert r.json()["items"][0]["price"] == 100.0


def test_checkout_total_mismatch(client, make_product):
    p = make_product()
    fill_cart(client, p.id, 1)

    r = client.post("/api/orders", json={**CUSTOMER, "total": 50}, headers=bearer())
    assert r.status_code == 409
    assert r.json()["error"] == "Total mismatch"
    assert r.json()["expected_total"] == 108.0


def test_checkout_stale_cart(client, session, make_product):
    p = make_product()
    fill_cart(client, p.id, 1)
    p.visible = False
    session.add(p)
    session.commit()

    r = client.post("/api/orders", json=CUSTOMER, headers=bearer())
    assert r.status_code == 409
    body = r.json()
    assert body["error"] == "Cart has changed"
    assert body["validation"]["removed_product_ids"] == [p.id]


def test_card_payment_is_hidden_until_paid(client, admin_headers, make_product):
    p = make_product()
    fill_cart(client, p.id, 1)
    r = client.post("/api/orders", json={**CUSTOMER, "payment_method": "card"}, headers=bearer())
    assert r.json()["payment_method"] == "paymee_card"
    assert r.json()["status"] == "pending_payment"

    assert client.get("/api/orders", headers=admin_headers).json() == []
    assert len(client.get("/api/orders?include_payment_pending=true", headers=admin_headers).json()) == 1


def test_my_orders(client, make_product):
    p = make_product()
    fill_cart(client, p.id, 1)
    client.post("/api/orders", json=CUSTOMER, headers=bearer())

    assert len(client.get("/api/orders/me", headers=bearer()).json()) == 1
    assert client.get("/api/orders/me", headers=bearer("someone_else")).json() == []


def test_cancel_restores_stock_once(client, session, admin_headers, make_product):
    p = make_product(available_quantity=5)
    fill_cart(client, p.id, 2)
    order_id = client.post("/api/orders", json=CUSTOMER, headers=bearer()).json()["id"]

    r = client.patch(f"/api/orders/{order_id}/status", json={"status": "Cancelled", "cancel_reason": "rupture"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"
    assert r.json()["stock_consumed"] is False

    client.patch(f"/api/orders/{order_id}/status", json={"status": "returned"}, headers=admin_headers)

    session.expire_all()
    assert session.get(Product, p.id).available_quantity == 5


def test_status_update_requires_order_role(client, session, clerk, make_product):
    clerk.emails["pm_1"] = "pm@shop.tn"
    session.add(Employee(full_name="PM", email="pm@shop.tn", role=Role.PRODUCT_MANAGER))
    session.commit()

    r = client.patch("/api/orders/1/status", json={"status": "shipped"}, headers=bearer("pm_1"))
    assert r.status_code == 403


def test_status_update_unknown_order(client, admin_headers):
    r = client.patch("/api/orders/999/status", json={"status": "shipped"}, headers=admin_headers)
    assert r.status_code == 404


def test_checkout_with_unlimited_combination(client, session, make_product):
    p = make_product(combinations=[{"id": "c1", "stock": None}, {"id": "c2", "stock": 3}])
    fill_cart(client, p.id, 2, combination_id="c1")
    fill_cart(client, p.id, 1, combination_id="c2")

    assert client.post("/api/cart/validate", headers=bearer()).json()["valid"] is True
    r = client.post("/api/orders", json=CUSTOMER, headers=bearer())
    assert r.status_code == 201, r.text

    session.expire_all()
    assert session.get(Product, p.id).available_quantity is None

    fill_cart(client, p.id, 5, combination_id="c1")
