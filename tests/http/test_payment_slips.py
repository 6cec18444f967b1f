from __future__ import annotations

import pytest

from src.school_portal.school_portal.main import create_app
from src.school_portal.school_portal.store.files import LocalFileStorage

from tests.fakes import InMemoryRecordStore


@pytest.fixture
def store(tmp_path):
    return InMemoryRecordStore(file_storage=LocalFileStorage(tmp_path, "http://testserver/uploads"))


@pytest.fixture
def client(monkeypatch, tmp_path, container):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container)
    app.config["UPLOAD_DIR"] = str(tmp_path)
    return app.test_client()


@pytest.fixture
def slip_url(client, container, admin, student):
    container.fee_service.create_account(admin, student_id=student.user_id, total_fees="1000")
    payment = container.fee_service.submit_payment(student, amount="100", slip=("slip.pdf", b"%PDF-1"))
    return payment.details["payment_slip_url"].removeprefix("http://testserver")


def _as(ctx):
    return {"X-User-Id": ctx.user_id}


def test_admin_can_open_a_submitted_slip(client, admin, student, slip_url):
    assert slip_url.startswith(f"/uploads/payment-slips/{student.user_id}/")

    resp = client.get(slip_url, headers=_as(admin))

    assert resp.status_code == 200
    assert resp.data == b"%PDF-1"


def test_owner_can_open_their_slip_but_others_cannot(client, student, other_student, slip_url):
    assert client.get(slip_url, headers=_as(student)).status_code == 200

    forbidden = client.get(slip_url, headers=_as(other_student))
    assert forbidden.status_code == 403
    assert forbidden.get_json()["code"] == "forbidden"

    assert client.get(slip_url).status_code == 401


def test_missing_slip_is_404(client, admin, student):
    resp = client.get(f"/uploads/payment-slips/{student.user_id}/nope.pdf", headers=_as(admin))

    assert resp.status_code == 404
