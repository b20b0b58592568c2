from __future__ import annotations

from datetime import date

import pytest

from src.pto_tracker.pto_tracker.main import create_app


@pytest.fixture()
def app(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app()
    yield app
    app.extensions["pto_tracker"].shutdown()


def sign_up(client, role, **extra):
    user_id = client.post("/session").get_json()["user_id"]
    body = {"name": extra.get("name", "Ana"), "role": role, "companyName": "Acme", "title": "Nurse", "manager": "Bo"}
    resp = client.post("/profile", json=body)
    assert resp.status_code == 201
    return user_id


def test_views_require_profile_setup(app):
    client = app.test_client()

    resp = client.post("/session")
    assert resp.get_json()["profile_required"] is True
    assert client.get("/views/my_pto_requests").status_code == 503

    resp = client.post("/profile", json={"name": "Ana", "role": "employee", "companyName": "Acme", "title": "Nurse"})
    assert resp.status_code == 400
    assert "Manager" in resp.get_json()["error"]


def test_call_out_and_pto_flow_end_to_end(app):
    employee = app.test_client()
    manager = app.test_client()
    employee_id = sign_up(employee, "employee")
    sign_up(manager, "management", name="Cy")
    today = date.today().isoformat()

    report = employee.post("/attendance/reports", json={"type": "call_out", "date": today, "reason": "flu"})
    assert report.status_code == 201
    record_id = report.get_json()["record_id"]
    assert report.get_json()["warnings"] == []

    pto = employee.post(
        "/pto/requests", json={"startDate": "2030-04-01", "endDate": "2030-04-02", "leaveType": "vacation"}
    )
    assert pto.status_code == 201
    request_id = pto.get_json()["request_id"]

    assert manager.get("/dashboard").get_json() == {
        "pending_pto_requests": 1,
        "unhandled_call_outs": 1,
        "total_notifications": 2,
    }

    form = manager.get(f"/attendance/{employee_id}/{record_id}/pto-allocation").get_json()
    assert form["hours"] == 8.0
    allocated = manager.post(
        f"/attendance/{employee_id}/{record_id}/pto-allocation", json={"qualifies": True, "hours": "6"}
    ).get_json()
    assert allocated["record"]["ptoHours"] == 6.0
    assert len(allocated["handled_notification_ids"]) == 1

    decided = manager.post(f"/pto/requests/{request_id}/decision", json={"decision": "approved"})
    assert decided.status_code == 200
    assert decided.get_json()["status"] == "approved"
    again = manager.post(f"/pto/requests/{request_id}/decision", json={"decision": "rejected"})
    assert again.status_code == 409

    mine = employee.get("/views/my_pto_requests").get_json()
    assert [item["status"] for item in mine["items"]] == ["approved"]

    receipt = employee.get("/reports/weekly-receipt").get_json()
    assert receipt["total_pto_hours"] == 6.0

    daily = manager.get(f"/reports/daily?date={today}").get_json()
    assert [g["employee_name"] for g in daily["employees"]] == ["Ana"]
    assert daily["employees"][0]["rows"][0]["pto"] == "6 hrs"


def test_role_checks_and_validation_errors(app):
    employee = app.test_client()
    sign_up(employee, "employee")

    assert employee.get("/dashboard").status_code == 409
    assert employee.post("/pto/requests/x/decision", json={"decision": "approved"}).status_code == 409

    bad = employee.post("/attendance/reports", json={"type": "late", "date": "2024-03-05", "time": "09:10"})
    assert bad.status_code == 400


def test_sign_out_releases_views(app):
    container = app.extensions["pto_tracker"]
    employee = app.test_client()
    employee_id = sign_up(employee, "employee")
    assert container.view_sessions.get(employee_id) is not None

    assert employee.delete("/session").status_code == 200

    assert container.view_sessions.get(employee_id) is None
    assert container.store.subscription_count == 0
    assert employee.get("/views/my_pto_requests").status_code == 503


def test_malformed_json_fields_are_client_errors(app):
    employee = app.test_client()
    manager = app.test_client()
    employee_id = sign_up(employee, "employee")
    sign_up(manager, "management", name="Cy")

    bad = employee.post("/attendance/reports", json={"type": "call_out", "date": "2024-03-04", "reason": 123})
    assert bad.status_code == 400
    assert bad.get_json()["error"] == "Reason must be text"

    record_id = employee.post(
        "/attendance/reports", json={"type": "call_out", "date": "2024-03-04", "reason": "flu"}
    ).get_json()["record_id"]
    url = f"/attendance/{employee_id}/{record_id}/pto-allocation"

    declined = manager.post(url, json={"qualifies": "false", "hours": 5}).get_json()
    assert declined["record"]["ptoAllocated"] is False
    assert declined["record"]["ptoHours"] == 0
    assert manager.post(url, json={"hours": 5}).status_code == 400


def test_evicted_view_session_is_reopened_from_profile(app):
    container = app.extensions["pto_tracker"]
    employee = app.test_client()
    employee_id = sign_up(employee, "employee")

    container.view_sessions.close(employee_id)

    resp = employee.get("/views/my_pto_requests")
    assert resp.status_code == 200
    assert resp.get_json()["loaded"] is True
    assert container.view_sessions.get(employee_id) is not None
