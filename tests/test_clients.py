from app.models import Client
from tests.conftest import bearer


def test_me_creates_client_once(client, clerk):
    clerk.emails["user_1"] = "yasmine@example.tn"

    r = client.get("/api/clients/me", headers=bearer())
    assert r.status_code == 201
    created = r.json()
    assert created["clerk_id"] == "user_1"
    assert created["email"] == "yasmine@example.tn"
    assert created["purchase_unit"] == "piece"

    again = client.get("/api/clients/me", headers=bearer())
    assert again.status_code == 200
    assert again.json()["id"] == created["id"]


def test_me_attaches_account_to_existing_email(client, session, clerk):
    session.add(Client(email="pro@example.tn", purchase_unit="quantity"))
    session.commit()
    clerk.emails["pro_1"] = "pro@example.tn"

    body = client.get("/api/clients/me", headers=bearer("pro_1")).json()
    assert body["clerk_id"] == "pro_1"
    assert body["purchase_unit"] == "quantity"


def test_me_without_email(client, clerk):
    clerk.emails["user_1"] = None
    r = client.get("/api/clients/me", headers=bearer())
    assert r.status_code == 400
    assert r.json()["error"] == "Missing Clerk user data"


def test_sync_fills_missing_fields(client, session):
    session.add(Client(clerk_id="user_1", email="a@example.tn", phone="111"))
    session.commit()

    r = client.post("/api/clients/sync", json={"name": "Ahmed", "email": "other@example.tn", "phone": " 222 "}, headers=bearer())
    assert r.status_code == 200
    body = r.json()
    assert body["name"] == "Ahmed"
    assert body["email"] == "a@example.tn"
    assert body["phone"] == "222"

    assert client.post("/api/clients/sync", json={}, headers=bearer("new_user")).status_code == 201


def test_admin_sets_purchase_unit(client, admin_headers):
    r = client.post("/api/clients", json={"email": "gros@example.tn", "name": "Grossiste"}, headers=admin_headers)
    assert r.status_code == 201
    client_id = r.json()["id"]

    r = client.patch(f"/api/clients/{client_id}", json={"purchase_unit": "quantity"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["purchase_unit"] == "quantity"
    assert r.json()["name"] == "Grossiste"

    assert client.patch(f"/api/clients/{client_id}", json={"purchase_unit": "box"}, headers=admin_headers).status_code == 400
    assert client.patch("/api/clients/999", json={"name": "x"}, headers=admin_headers).status_code == 404


def test_purchase_unit_drives_cart_price(client, admin_headers, make_product):
    r = client.post("/api/clients", json={"email": "b2b@example.tn", "clerk_id": "b2b_1"}, headers=admin_headers)
    client.patch(f"/api/clients/{r.json()['id']}", json={"purchase_unit": "quantity"}, headers=admin_headers)

    p = make_product()
    item = client.post("/api/cart/items", json={"product_id": p.id, "quantity": 1}, headers=bearer("b2b_1")).json()["item"]
    assert item["unit_type"] == "quantity"
    assert item["price_at_add"] == 80.0


def test_create_conflicts_and_attach(client, session, admin_headers):
    session.add(Client(email="dup@example.tn"))
    session.commit()

    r = client.post("/api/clients", json={"email": "dup@example.tn"}, headers=admin_headers)
    assert r.status_code == 409

    r = client.post("/api/clients", json={"email": "dup@example.tn", "clerk_id": "late_1"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["clerk_id"] == "late_1"


def test_list_and_delete_are_admin_only(client, session, admin_headers):
    session.add(Client(email="x@example.tn"))
    session.commit()

    assert client.get("/api/clients", headers=bearer("nobody")).status_code == 401
    listed = client.get("/api/clients", headers=admin_headers).json()
    assert [c["email"] for c in listed] == ["x@example.tn"]

    assert client.delete(f"/api/clients/{listed[0]['id']}", headers=admin_headers).json() == {"ok": True}
    assert client.get("/api/clients", headers=admin_headers).json() == []
