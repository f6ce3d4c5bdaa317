from app.models import Employee, Role
from tests.conftest import OTHER_KEY, bearer, make_token


def test_missing_credentials(client):
    r = client.get("/api/cart")
    assert r.status_code == 401
    assert r.json() == {"error": "Unauthorized", "message": "Authentication required"}


def test_non_bearer_header_is_ignored(client):
    r = client.get("/api/cart", headers={"Authorization": "Basic abc"})
    assert r.json()["message"] == "Authentication required"


def test_token_signed_by_another_key(client):
    token = make_token(key=OTHER_KEY)
    r = client.get("/api/cart", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid or expired token"


def test_expired_token(client):
    token = make_token(expires_in=-60)
    r = client.get("/api/cart", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_token_without_subject(client):
    token = make_token(sub=None)
    r = client.get("/api/cart", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_valid_bearer(client):
    assert client.get("/api/cart", headers=bearer()).status_code == 200


def test_session_cookie_takes_precedence(client):
    client.cookies.set("__session", make_token("cookie_user"))
    r = client.get("/api/cart", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 200


def test_invalid_cookie_falls_back_to_bearer(client):
    client.cookies.set("__session", "not-a-jwt")
    assert client.get("/api/cart").status_code == 401
    assert client.get("/api/cart", headers=bearer()).status_code == 200


def test_unknown_clerk_user(client):
    r = client.get("/api/orders", headers=bearer("ghost"))
    assert r.status_code == 401
    assert r.json()["message"] == "User not found"


def test_deactivated_employee(client, session, clerk):
    clerk.emails["old_1"] = "old@shop.tn"
    session.add(Employee(full_name="Old", email="old@shop.tn", role=Role.ADMIN, is_active=False))
    session.commit()

    r = client.get("/api/orders", headers=bearer("old_1"))
    assert r.status_code == 403
    assert r.json()["message"] == "Account is deactivated"


def test_customer_role_is_not_admin(client, session, clerk):
    clerk.emails["c_1"] = "c@shop.tn"
    session.add(Employee(full_name="C", email="c@shop.tn", role=Role.CUSTOMER))
    session.commit()

    r = client.get("/api/orders", headers=bearer("c_1"))
    assert r.status_code == 403
    assert r.json()["message"].startswith("Required roles: ADMIN")


def test_admin_access(client, admin_headers):
    assert client.get("/api/orders", headers=admin_headers).status_code == 200


def test_employee_email_match_ignores_case(client, session, clerk):
    clerk.emails["mixed_1"] = "Boss@Shop.TN"
    session.add(Employee(full_name="Boss", email="boss@shop.tn", role=Role.ADMIN))
    session.commit()

    assert client.get("/api/orders", headers=bearer("mixed_1")).status_code == 200
