from __future__ import annotations

import csv
import io
import uuid

from fastapi.testclient import TestClient

from sciencehub.api.errors import http_error
from sciencehub.models.registration import RegistrationStatus
from sciencehub.services.export_service import EXPORT_HEADERS
from sciencehub.services.result import Err, ErrorKind


def _create_payload(event_id, **overrides) -> dict:
    payload = {
        "event_id": str(event_id),
        "full_name": "Ana Petrović",
        "email": "ana@example.com",
        "adult_tickets": 2,
        "tickets": [{"ticket_name": "Взрослый", "quantity": 2, "unit_price": "500"}],
    }
    payload.update(overrides)
    return payload


def test_health_and_request_id(client: TestClient):
    resp = client.get("/health", headers={"X-Request-ID": "req-1"})
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert resp.headers["X-Request-ID"] == "req-1"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"


def test_error_kinds_map_to_status_codes():
    expected = {
        ErrorKind.NOT_FOUND: 404,
        ErrorKind.PERMISSION: 403,
        ErrorKind.CONFLICT: 409,
        ErrorKind.VALIDATION: 422,
        ErrorKind.TRANSPORT: 503,
    }
    for kind, status in expected.items():
        exc = http_error(Err(kind, "CODE", "message"))
        assert exc.status_code == status
        assert exc.detail == {"code": "CODE", "message": "message"}


def test_admin_routes_require_auth(client: TestClient, user_headers):
    assert client.get("/v1/registrations").status_code == 401
    assert client.get("/v1/registrations", headers=user_headers).status_code == 403


def test_admin_creates_and_lists_registrations(client: TestClient, admin_headers, make_event):
    event = make_event()

    created = client.post("/v1/registrations", json=_create_payload(event.id), headers=admin_headers)
    assert created.status_code == 201
    body = created.json()
    assert body["qr_code"].startswith("reg_")
    assert body["total_tickets"] == 2
    assert body["tickets"][0]["ticket_name"] == "Взрослый"
    assert body["event"]["slug"] == event.slug

    listed = client.get(
        "/v1/registrations",
        params={"event_id": str(event.id), "search": "petrov"},
        headers=admin_headers,
    )
    assert listed.status_code == 200
    page = listed.json()
    assert page["total"] == 1
    assert page["pages"] == 1
    assert page["items"][0]["id"] == body["id"]

    by_qr = client.get(f"/v1/registrations/qr/{body['qr_code']}", headers=admin_headers)
    assert by_qr.json()["id"] == body["id"]


def test_users_register_themselves(client: TestClient, user_headers, make_event):
    event = make_event()
    created = client.post(
        "/v1/registrations",
        json=_create_payload(event.id, user_id=str(uuid.uuid4()), registration_type="admin"),
        headers=user_headers,
    )
    assert created.status_code == 201
    assert created.json()["registration_type"] == "user"

    mine = client.get("/v1/me/registrations", headers=user_headers)
    assert mine.status_code == 200
    assert mine.json()["total"] == 1
    assert mine.json()["items"][0]["user_id"] == created.json()["user_id"]

    cancelled = client.post(
        f"/v1/registrations/{created.json()['id']}/cancel",
        json={"reason": "не смогу прийти"},
        headers=user_headers,
    )
    assert cancelled.status_code == 200
    assert cancelled.json()["registration_status"] == "cancelled"
    assert all(t["ticket_status"] == "cancelled" for t in cancelled.json()["tickets"])


def test_users_cannot_set_admin_fields_on_create(client: TestClient, user_headers, make_event):
    event = make_event()
    payload = _create_payload(
        event.id,
        payment_status="confirmed",
        registration_status="cancelled",
        external_registration_id="ext-1",
        notes="VIP",
    )
    payload["tickets"][0]["qr_codes"] = ["forged"]
    payload["tickets"][0]["ticket_status"] = "cancelled"

    created = client.post("/v1/registrations", json=payload, headers=user_headers)
    assert created.status_code == 201
    body = created.json()
    assert body["payment_status"] == "pending"
    assert body["registration_status"] == "active"
    assert body["external_registration_id"] is None
    assert body["notes"] is None
    assert body["tickets"][0]["qr_codes"] == []
    assert body["tickets"][0]["ticket_status"] == "active"


def test_patch_cannot_null_required_columns(
    client: TestClient, admin_headers, make_event, make_registration
):
    registration = make_registration(make_event(), email="keep@example.com")

    resp = client.patch(
        f"/v1/registrations/{registration.id}", json={"email": None}, headers=admin_headers
    )
    assert resp.status_code == 422

    fetched = client.get(f"/v1/registrations/{registration.id}", headers=admin_headers)
    assert fetched.json()["email"] == "keep@example.com"



def test_users_cannot_read_foreign_registrations(
    client: TestClient, user_headers, make_event, make_registration
):
    registration = make_registration(make_event())
    resp = client.get(f"/v1/registrations/{registration.id}", headers=user_headers)
    assert resp.status_code == 403


def test_service_errors_become_http_errors(
    client: TestClient, admin_headers, make_event, make_registration
):
    missing = client.get(f"/v1/registrations/{uuid.uuid4()}", headers=admin_headers)
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "REGISTRATION_NOT_FOUND"

    event = make_event(max_attendees=1)
    make_registration(event)
    full = client.post("/v1/registrations", json=_create_payload(event.id), headers=admin_headers)
    assert full.status_code == 409
    assert full.json()["detail"]["code"] == "EVENT_FULL"

    registration = make_registration(make_event())
    not_waitlisted = client.post(
        f"/v1/registrations/{registration.id}/activate", headers=admin_headers
    )
    assert not_waitlisted.status_code == 409
    assert not_waitlisted.json()["detail"]["code"] == "REGISTRATION_NOT_WAITLISTED"


def test_waitlist_promotion_over_http(client: TestClient, admin_headers, make_event, make_registration):
    event = make_event(max_attendees=3, allow_waitlist=True)
    make_registration(event, adult_tickets=2)
    waiting = make_registration(event, registration_status=RegistrationStatus.WAITLIST)

    waitlist = client.get(f"/v1/events/{event.id}/waitlist", headers=admin_headers)
    assert [r["id"] for r in waitlist.json()] == [str(waiting.id)]

    promoted = client.post(f"/v1/registrations/{waiting.id}/activate", headers=admin_headers)
    assert promoted.status_code == 200
    assert promoted.json()["registration_status"] == "active"

    availability = client.get(f"/v1/events/{event.id}/availability", params={"tickets": 1})
    assert availability.json() == {
        "available": False,
        "remaining_spots": 0,
        "max_attendees": 3,
        "current_registrations": 3,
    }


def test_availability_for_unknown_event(client: TestClient):
    resp = client.get(f"/v1/events/{uuid.uuid4()}/availability")
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "EVENT_NOT_FOUND"


def test_bulk_status_and_stats(client: TestClient, admin_headers, make_event, make_registration):
    event = make_event()
    ids = [str(make_registration(event).id) for _ in range(2)]

    bulk = client.post(
        "/v1/registrations/bulk-status",
        json={"registration_ids": ids, "status": "cancelled"},
        headers=admin_headers,
    )
    assert bulk.json() == {"updated": 2}

    stats = client.get("/v1/registrations/stats", params={"event_id": str(event.id)}, headers=admin_headers)
    assert stats.status_code == 200
    assert stats.json()["cancelled"] == 2
    assert stats.json()["active"] == 0


def test_ticket_endpoints(client: TestClient, admin_headers, make_event, make_registration):
    registration = make_registration(make_event())

    added = client.post(
        f"/v1/registrations/{registration.id}/tickets",
        json={"ticket_name": "Детский", "quantity": 1, "unit_price": "250"},
        headers=admin_headers,
    )
    assert added.status_code == 201
    ticket_id = added.json()["id"]

    codes = client.post(
        f"/v1/registrations/tickets/{ticket_id}/qr-codes", json={"count": 2}, headers=admin_headers
    )
    assert codes.status_code == 200
    assert len(codes.json()) == 2

    removed = client.delete(f"/v1/registrations/tickets/{ticket_id}", headers=admin_headers)
    assert removed.status_code == 204


def test_csv_export(client: TestClient, admin_headers, make_event, make_registration):
    event = make_event()
    make_registration(event, full_name="Petrović, Ana")

    resp = client.get(f"/v1/events/{event.id}/registrations/export", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "attachment" in resp.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(resp.text)))
    assert rows[0] == EXPORT_HEADERS
    assert rows[1][2] == "Petrović, Ana"


def test_coworking_settings_endpoints(client: TestClient, admin_headers, user_headers):
    assert client.get("/v1/coworking").status_code == 404

    forbidden = client.patch("/v1/admin/coworking", json={"header": {}}, headers=user_headers)
    assert forbidden.status_code == 403

    saved = client.patch(
        "/v1/admin/coworking", json={"header": {"title": "Hub Cowork"}}, headers=admin_headers
    )
    assert saved.status_code == 200

    service = client.post(
        "/v1/admin/coworking/services",
        json={"name": "Рабочее место", "price": 12.5},
        headers=admin_headers,
    )
    assert service.status_code == 200

    page = client.get("/v1/coworking").json()
    assert page["header"]["title"] == "Hub Cowork"
    assert [s["name"] for s in page["mainServices"]] == ["Рабочее место"]

    active = client.get("/v1/coworking/services").json()
    assert [s["name"] for s in active["mainServices"]] == ["Рабочее место"]


def test_migration_endpoints(client: TestClient, admin_headers):
    status = client.get("/v1/admin/migrations/coworking", headers=admin_headers)
    assert status.json() == {
        "migration_needed": False,
        "applied": [],
        "pending": ["0001_coworking_page_settings"],
    }

    validate = client.post("/v1/admin/migrations/coworking/validate", headers=admin_headers)
    assert validate.status_code == 200
    assert validate.json()["valid"] is False

    unknown = client.post("/v1/admin/migrations/coworking/explode", headers=admin_headers)
    assert unknown.status_code == 404

    run = client.post("/v1/admin/migrations/run", headers=admin_headers)
    assert run.json()["applied"] == ["0001_coworking_page_settings"]
    assert run.json()["success"] is True

    again = client.post("/v1/admin/migrations/run", headers=admin_headers)
    assert again.json()["applied"] == []
    assert again.json()["skipped"] == ["0001_coworking_page_settings"]
