import pytest

from payroll_system.core.enums import Role
from payroll_system.main import create_app


@pytest.fixture
def client(env, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container=env.container)
    return app.test_client()


def login(client, user_id, role):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["company_id"] = 1
        sess["role"] = role.value


def test_requires_login(client):
    response = client.get("/api/company/settings")

    assert response.status_code == 401
    assert response.get_json()["code"] == "UNAUTHENTICATED"


def test_staff_cannot_generate_salaries(client):
    login(client, 7, Role.STAFF)

    response = client.post("/api/salaries/generate", json={"month": 4, "year": 2024})

    assert response.status_code == 403


def test_punch_in_and_domain_errors(client):
    login(client, 7, Role.STAFF)

    missing_image = client.post("/api/attendance/punch-in", json={})
    assert missing_image.status_code == 400
    assert missing_image.get_json() == {
        "success": False,
        "code": "VALIDATION_ERROR",
        "message": "image is required",
        "field": "image",
    }

    no_session = client.post("/api/attendance/punch-out", json={"image": "x.jpg"})
    assert no_session.get_json()["code"] == "NO_ACTIVE_SESSION"


def test_record_payment_and_read_ledger(client):
    login(client, 100, Role.ADMIN)

    created = client.post(
        "/api/payments", json={"user_id": 7, "amount": "1500", "date": "2024-04-30", "description": "Advance"}
    )
    assert created.status_code == 201
    salary_id = created.get_json()["data"]["salary_id"]

    detail = client.get(f"/api/salaries/{salary_id}")
    body = detail.get_json()["data"]
    assert body["balance"] == "24500.00"
    assert body["ledger"][0]["type"] == "PAYMENT"


def test_company_settings_roundtrip(client):
    login(client, 100, Role.ADMIN)

    response = client.patch("/api/company/settings", json={"grace_minutes": 20})

    assert response.status_code == 200
    assert response.get_json()["data"]["grace_minutes"] == 20
    assert response.get_json()["data"]["shift_start"] == "09:00:00"
