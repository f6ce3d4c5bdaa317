from app.models import Employee, Role
from tests.conftest import bearer


def test_customer_has_no_role(client, clerk):
    clerk.emails["user_1"] = "client@example.tn"
    r = client.get("/api/me/role", headers=bearer())
    assert r.status_code == 200
    assert r.json() == {"role": None, "is_active": True, "id": None, "full_name": None}


def test_account_without_email(client, clerk):
    clerk.emails["user_1"] = None
    assert client.get("/api/me/role", headers=bearer()).json()["role"] is None


def test_employee_role(client, session, clerk):
    clerk.emails["om_1"] = "orders@shop.tn"
    session.add(Employee(full_name="Nour", email="orders@shop.tn", role=Role.ORDER_MANAGER))
    session.commit()

    body = client.get("/api/me/role", headers=bearer("om_1")).json()
    assert body["role"] == "ORDER_MANAGER"
    assert body["full_name"] == "Nour"


def test_requires_authentication(client):
    assert client.get("/api/me/role").status_code == 401
