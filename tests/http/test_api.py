from __future__ import annotations

import pytest

from src.school_portal.school_portal.main import create_app


@pytest.fixture
def client(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container)
    return app.test_client()


def _as(ctx):
    return {"X-User-Id": ctx.user_id}


def test_missing_or_unknown_identity_is_401(client):
    assert client.get("/api/me").status_code == 401
    resp = client.get("/api/me", headers={"X-User-Id": "ghost"})
    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "code": "unauthenticated", "message": "Unknown user"}


def test_me_returns_profile(client, student):
    resp = client.get("/api/me", headers=_as(student))

    body = resp.get_json()
    assert resp.status_code == 200
    assert body["success"] is True
    assert body["data"]["role"] == "student"
    assert body["data"]["display_name"] == "Sam Student"


def test_enrollment_review_over_http(client, admin, student, course):
    created = client.post("/api/enrollment-requests", json={"course_id": course.id}, headers=_as(student))
    assert created.status_code == 201
    request_id = created.get_json()["data"]["id"]

    forbidden = client.post(f"/api/enrollment-requests/{request_id}/review", json={"decision": "approved"}, headers=_as(student))
    assert forbidden.status_code == 403
    assert forbidden.get_json()["code"] == "forbidden"

    approved = client.post(
        f"/api/enrollment-requests/{request_id}/review", json={"decision": "approved"}, headers=_as(admin)
    )
    assert approved.status_code == 200
    assert approved.get_json()["data"]["status"] == "approved"

    again = client.post(f"/api/enrollment-requests/{request_id}/review", json={"decision": "approved"}, headers=_as(admin))
    assert again.status_code == 409
    assert again.get_json()["code"] == "invalid_state"


def test_validation_and_not_found_codes(client, admin):
    bad = client.post("/api/calendar", json={"title": "x", "event_type": "other", "start_date": "tomorrow"}, headers=_as(admin))
    assert bad.status_code == 400
    assert bad.get_json()["code"] == "validation_error"

    missing = client.post("/api/fee-payments/nope/review", json={"decision": "approved"}, headers=_as(admin))
    assert missing.status_code == 404


def test_fee_account_serialises_money_and_balance(client, admin, student):
    resp = client.post(
        "/api/fee-accounts",
        json={"student_id": student.user_id, "total_fees": "1000.50"},
        headers=_as(admin),
    )

    data = resp.get_json()["data"]
    assert resp.status_code == 201
    assert data["total_fees"] == 1000.5
    assert data["balance"] == 1000.5


def test_non_text_fields_are_validation_errors(client, admin, student, course):
    created = client.post("/api/enrollment-requests", json={"course_id": course.id}, headers=_as(student))
    request_id = created.get_json()["data"]["id"]

    resp = client.post(
        f"/api/enrollment-requests/{request_id}/review",
        json={"decision": "rejected", "feedback": 5},
        headers=_as(admin),
    )

    assert resp.status_code == 400
    assert resp.get_json() == {"success": False, "code": "validation_error", "message": "Feedback must be text"}
    still_pending = client.get("/api/enrollment-requests", headers=_as(admin)).get_json()["data"]
    assert [r["status"] for r in still_pending] == ["pending"]


def test_numeric_title_is_rejected(client, admin):
    resp = client.post(
        "/api/calendar",
        json={"title": 2026, "event_type": "exam", "start_date": "2026-05-01"},
        headers=_as(admin),
    )

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Title must be text"
