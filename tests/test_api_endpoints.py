"""Tests for the HTTP API."""

import base64
from datetime import timedelta
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from carcare_backoffice.adapters.spreadsheet_exporter import XLSX_MEDIA_TYPE
from carcare_backoffice.api.app import create_app
from carcare_backoffice.api.auth import mint_token
from carcare_backoffice.domain.models import Role

DAY = {"from": "2024-03-04", "to": "2024-03-04"}


def _auth(user_id, role: Role, **kwargs) -> dict[str, str]:
    token = mint_token("test-secret", user_id, role, **kwargs)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(container) -> TestClient:
    return TestClient(create_app(container))


def _wash(employee, location, **overrides) -> dict[str, object]:
    body = {
        "user_id": str(employee.id),
        "location_id": str(location.id),
        "license_plate": "zh 123",
        "car_type": "sedan",
        "subtype": "outside",
    }
    body.update(overrides)
    return body


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_requests_without_token_are_rejected(client) -> None:
    response = client.get("/api/v1/location/names")

    assert response.status_code == 401
    assert response.json() == {"msg": "Authentication Invalid"}


def test_expired_token_is_rejected(client, employee) -> None:
    headers = _auth(employee.id, Role.USER, ttl=timedelta(seconds=-5))

    response = client.get("/api/v1/location/names", headers=headers)

    assert response.status_code == 401
    assert response.json() == {"msg": "Token expired"}


def test_user_role_cannot_reach_admin_routes(client, employee) -> None:
    headers = _auth(employee.id, Role.USER)

    response = client.get("/api/v1/check-in-out/admin", headers=headers)

    assert response.status_code == 401
    assert response.json() == {"msg": "Not authorized to access this route"}


def test_check_in_flow(client, employee) -> None:
    headers = _auth(employee.id, Role.USER)
    body = {"user_id": str(employee.id), "start_time": "2024-03-04T08:00:00+01:00"}

    created = client.post("/api/v1/check-in-out/", json=body, headers=headers)
    duplicate = client.post("/api/v1/check-in-out/", json=body, headers=headers)

    assert created.status_code == 201
    session = created.json()["check_in"]
    assert session["work_day"] == "2024-03-04"
    assert session["closed"] is False
    assert duplicate.status_code == 409

    closed = client.patch(
        "/api/v1/check-in-out/",
        json={"session_id": session["id"], "end_time": "2024-03-04T16:30:00+01:00"},
        headers=headers,
    )

    assert closed.status_code == 200
    result = closed.json()["check_in"]
    assert result["work_minutes"] == 510
    assert result["hours"] == "8h 30m"
    assert result["daily_salary"] == 170.0
    assert result["suspect"] is False


def test_check_in_for_someone_else_is_rejected(
    client, employee, user_repository
) -> None:
    colleague = user_repository.add("Beat", "Keller")
    body = {"user_id": str(colleague.id), "start_time": "2024-03-04T08:00:00+01:00"}

    response = client.post(
        "/api/v1/check-in-out/", json=body, headers=_auth(employee.id, Role.USER)
    )

    assert response.status_code == 401


def test_validation_errors_return_message(client, employee) -> None:
    response = client.post(
        "/api/v1/check-in-out/",
        json={"user_id": str(employee.id)},
        headers=_auth(employee.id, Role.USER),
    )

    assert response.status_code == 400
    assert "start_time" in response.json()["msg"]


def test_naive_timestamps_are_rejected(client, employee) -> None:
    response = client.post(
        "/api/v1/check-in-out/",
        json={"user_id": str(employee.id), "start_time": "2024-03-04T08:00:00"},
        headers=_auth(employee.id, Role.USER),
    )

    assert response.status_code == 400


def test_service_record_duplicate_needs_confirmation(
    client, employee, location
) -> None:
    headers = _auth(employee.id, Role.USER)

    first = client.post(
        "/api/v1/car-wash/", json=_wash(employee, location), headers=headers
    )
    second = client.post(
        "/api/v1/car-wash/", json=_wash(employee, location), headers=headers
    )
    confirmed = client.post(
        "/api/v1/car-wash/",
        json=_wash(employee, location, accept_suspect=True),
        headers=headers,
    )

    assert first.status_code == 201
    record = first.json()["record"]
    assert record["license_plate"] == "ZH123"
    assert record["final_price"] == 25.0
    assert record["suspect"] is False
    assert second.status_code == 200
    assert second.json()["suspected"] is True
    assert confirmed.status_code == 201
    assert confirmed.json()["record"]["suspect"] is True


def test_listing_redacts_prices_for_managers(
    client, employee, location, user_repository
) -> None:
    manager = user_repository.add("Mia", "Leiter", role=Role.MANAGER)
    client.post(
        "/api/v1/car-wash/",
        json=_wash(employee, location),
        headers=_auth(employee.id, Role.USER),
    )

    manager_view = client.get(
        "/api/v1/car-wash/", headers=_auth(manager.id, Role.MANAGER)
    )
    admin_view = client.get("/api/v1/car-wash/", headers=_auth(uuid4(), Role.ADMIN))

    assert manager_view.status_code == 200
    body = manager_view.json()
    assert body["total_count"] == 1
    assert body["totals"]["total_price"] == 25.0
    assert "final_price" not in body["rows"][0]
    assert admin_view.json()["rows"][0]["final_price"] == 25.0


def test_employee_sees_own_records(client, employee, location) -> None:
    headers = _auth(employee.id, Role.USER)
    client.post("/api/v1/car-wash/", json=_wash(employee, location), headers=headers)

    response = client.get(f"/api/v1/car-wash/user/{employee.id}", headers=headers)

    assert response.status_code == 200
    assert response.json()["rows"][0]["final_price"] == 25.0


def test_soft_deleted_record_is_hidden(client, employee, location) -> None:
    record = client.post(
        "/api/v1/car-wash/",
        json=_wash(employee, location),
        headers=_auth(employee.id, Role.USER),
    ).json()["record"]
    admin_headers = _auth(uuid4(), Role.ADMIN)

    deleted = client.delete(f"/api/v1/car-wash/{record['id']}", headers=admin_headers)
    missing = client.get(f"/api/v1/car-wash/{record['id']}", headers=admin_headers)

    assert deleted.json() == {"msg": "Success! Car wash removed."}
    assert missing.status_code == 404


def test_service_record_excel_export(client, employee, location) -> None:
    client.post(
        "/api/v1/car-wash/",
        json=_wash(employee, location),
        headers=_auth(employee.id, Role.USER),
    )

    response = client.get("/api/v1/car-wash/excel", headers=_auth(uuid4(), Role.ADMIN))

    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_MEDIA_TYPE
    assert "car-wash.xlsx" in response.headers["content-disposition"]


def test_dashboard_totals(client, employee, location) -> None:
    client.post(
        "/api/v1/car-wash/",
        json=_wash(employee, location),
        headers=_auth(employee.id, Role.USER),
    )

    response = client.get(
        "/api/v1/dashboard/totals", headers=_auth(uuid4(), Role.MANAGER)
    )

    assert response.status_code == 200
    totals = response.json()["total_stats"]
    assert totals["car_wash"] == {"total_count": 1, "total_price": 25.0}
    assert totals["car_transfer"] == {"total_count": 0, "total_price": 0.0}


def test_admin_session_listing_by_range(client, employee) -> None:
    client.post(
        "/api/v1/check-in-out/",
        json={"user_id": str(employee.id), "start_time": "2024-03-04T08:00:00+01:00"},
        headers=_auth(employee.id, Role.USER),
    )

    response = client.get(
        "/api/v1/check-in-out/admin", params=DAY, headers=_auth(uuid4(), Role.ADMIN)
    )
    other_day = client.get(
        "/api/v1/check-in-out/admin",
        params={"from": "2024-03-05"},
        headers=_auth(uuid4(), Role.ADMIN),
    )

    assert response.json()["total_count"] == 1
    assert other_day.json()["total_count"] == 0


def test_location_endpoints(client, employee) -> None:
    admin_headers = _auth(uuid4(), Role.ADMIN)
    body = {
        "name": "Bern",
        "location_type": "noTransfer",
        "car_types": [{"name": "suv", "wash": {"outside": 35}}],
    }

    created = client.post("/api/v1/location/", json=body, headers=admin_headers)
    names = client.get("/api/v1/location/names", headers=_auth(employee.id, Role.USER))
    forbidden = client.post(
        "/api/v1/location/", json=body, headers=_auth(employee.id, Role.USER)
    )

    assert created.status_code == 201
    assert [item["name"] for item in names.json()["locations"]] == ["Bern"]
    assert forbidden.status_code == 401


def test_send_payslip(client, mail_client) -> None:
    response = client.post(
        "/api/v1/payroll/send",
        json={
            "name": "Anna Muster",
            "email": "anna@x.ch",
            "pdf": base64.b64encode(b"%PDF-1.4").decode(),
        },
        headers=_auth(uuid4(), Role.ACCOUNTANT),
    )

    assert response.status_code == 200
    assert response.json()["sent"] is True
    assert mail_client.sent[0][0] == "anna@x.ch"


def test_send_payslip_rejects_bad_pdf(client) -> None:
    response = client.post(
        "/api/v1/payroll/send",
        json={"name": "Anna", "email": "anna@x.ch", "pdf": "not base64!"},
        headers=_auth(uuid4(), Role.ACCOUNTANT),
    )

    assert response.status_code == 400
    assert response.json() == {"msg": "Please provide pdf."}


def test_group_totals_include_overall(client, employee, location) -> None:
    headers = _auth(employee.id, Role.USER)
    client.post("/api/v1/car-wash/", json=_wash(employee, location), headers=headers)
    client.post(
        "/api/v1/car-wash/",
        json=_wash(employee, location, license_plate="BE 9"),
        headers=headers,
    )

    response = client.get(
        "/api/v1/car-wash/groups",
        params={"by": "location"},
        headers=_auth(uuid4(), Role.MANAGER),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["overall"] == {"count": 2, "total": 50.0}
    assert [(group["label"], group["count"]) for group in body["groups"]] == [
        ("Zürich", 2)
    ]


def test_today_plan_endpoints(client, employee, user_repository) -> None:
    manager = user_repository.add("Mia", "Leiter", role=Role.MANAGER)
    headers = _auth(manager.id, Role.MANAGER)

    created = client.post(
        "/api/v1/today-plan/", json={"users": {"Zürich": ["Anna"]}}, headers=headers
    )
    updated = client.patch(
        f"/api/v1/today-plan/{created.json()['id']}",
        json={"users": {"Zürich": ["Anna", "Beat"]}},
        headers=headers,
    )
    shown = client.get("/api/v1/today-plan/", headers=headers)
    forbidden = client.get(
        "/api/v1/today-plan/", headers=_auth(employee.id, Role.USER)
    )

    assert created.status_code == 201
    assert updated.json()["msg"] == "Today Plan has been updated successfully."
    plan = shown.json()["today_plan"]
    assert plan["users"] == {"Zürich": ["Anna", "Beat"]}
    assert plan["created_by"] == "Mia Leiter"
    assert forbidden.status_code == 401
