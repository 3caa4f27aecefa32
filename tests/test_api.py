import pytest

from app.models import Role
from app.services import auth_service
from tests.conftest import WEDNESDAY, auth_headers

API = "/api/v1"


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_register_login_me(client):
    body = {"name": "Prov", "email": "Prov@Example.com", "password": "secret1", "role": "SERVICE_PROVIDER"}
    resp = await client.post(f"{API}/auth/register", json=body)
    assert resp.status_code == 201
    user_id = resp.json()["id"]

    resp = await client.post(f"{API}/auth/register", json=body)
    assert resp.status_code == 409

    resp = await client.post(f"{API}/auth/login", json={"email": "prov@example.com", "password": "wrong!"})
    assert resp.status_code == 401

    resp = await client.post(f"{API}/auth/login", json={"email": "prov@example.com", "password": "secret1"})
    assert resp.status_code == 200
    token = resp.json()["access_token"]

    resp = await client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json() == {"id": user_id, "name": "Prov", "email": "prov@example.com", "role": "SERVICE_PROVIDER"}


async def test_register_duplicate_past_the_email_check(client, monkeypatch):
    # Two signups that both pass the lookup: the unique index decides
    async def no_user(session, email):
        return None

    body = {"name": "Prov", "email": "race@example.com", "password": "secret1", "role": "USER"}
    resp = await client.post(f"{API}/auth/register", json=body)
    assert resp.status_code == 201

    monkeypatch.setattr(auth_service, "get_user_by_email", no_user)
    resp = await client.post(f"{API}/auth/register", json=body)
    assert resp.status_code == 409


@pytest.mark.parametrize(
    "body",
    [
        {"name": "", "email": "a@example.com", "password": "secret1", "role": "USER"},
        {"name": "A", "email": "not-an-email", "password": "secret1", "role": "USER"},
        {"name": "A", "email": "a@example.com", "password": "short", "role": "USER"},
        {"name": "A", "email": "a@example.com", "password": "secret1", "role": "ADMIN"},
    ],
)
async def test__register_invalid_input(client, body):
    resp = await client.post(f"{API}/auth/register", json=body)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid input"


async def test_requires_bearer_token(client, service):
    resp = await client.post(
        f"{API}/services/{service.id}/availability",
        json={"dayOfWeek": 3, "startTime": "09:00", "endTime": "12:00"},
    )
    assert resp.status_code == 401

    resp = await client.get(f"{API}/appointments", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401


async def test_create_and_list_services(client, provider, make_user):
    headers = auth_headers(provider)
    resp = await client.post(
        f"{API}/services", json={"name": "Physiotherapy", "type": "MEDICAL", "durationMinutes": 60}, headers=headers
    )
    assert resp.status_code == 201
    created = resp.json()
    assert created["provider_id"] == provider.id
    assert created["duration_minutes"] == 60

    await client.post(
        f"{API}/services", json={"name": "Yoga", "type": "FITNESS", "durationMinutes": 30}, headers=headers
    )
    resp = await client.get(f"{API}/services", params={"type": "FITNESS"})
    assert [s["name"] for s in resp.json()] == ["Yoga"]

    resp = await client.get(f"{API}/services/{created['id']}")
    assert resp.json()["name"] == "Physiotherapy"
    assert (await client.get(f"{API}/services/999")).status_code == 404

    customer = await make_user(Role.USER, "customer")
    resp = await client.post(
        f"{API}/services",
        json={"name": "Yoga", "type": "FITNESS", "durationMinutes": 30},
        headers=auth_headers(customer),
    )
    assert resp.status_code == 403


@pytest.mark.parametrize("duration", [0, 15, 45, 150, -30])
async def test__service_duration_rules(client, provider, duration):
    resp = await client.post(
        f"{API}/services",
        json={"name": "Cleaning", "type": "HOUSE_HELP", "durationMinutes": duration},
        headers=auth_headers(provider),
    )
    assert resp.status_code == 400


async def test_availability_errors(client, service, provider, make_user):
    headers = auth_headers(provider)
    url = f"{API}/services/{service.id}/availability"

    resp = await client.post(url, json={"dayOfWeek": 3, "startTime": "09:00", "endTime": "12:00"}, headers=headers)
    assert resp.status_code == 201
    assert resp.json()["start_time"] == "09:00"
    assert resp.json()["end_time"] == "12:00"

    resp = await client.post(url, json={"dayOfWeek": 3, "startTime": "11:00", "endTime": "13:00"}, headers=headers)
    assert resp.status_code == 409
    assert resp.json()["detail"].startswith("Overlapping availability")

    resp = await client.post(url, json={"dayOfWeek": 3, "startTime": "12:00", "endTime": "13:00"}, headers=headers)
    assert resp.status_code == 201

    for bad in ({"dayOfWeek": 3, "startTime": "9:00", "endTime": "12:00"},
                {"dayOfWeek": 3, "startTime": "14:00", "endTime": "13:00"},
                {"dayOfWeek": 7, "startTime": "14:00", "endTime": "15:00"},
                {"dayOfWeek": 3, "startTime": "14:00"}):
        resp = await client.post(url, json=bad, headers=headers)
        assert resp.status_code == 400, bad

    other = await make_user(Role.SERVICE_PROVIDER, "other")
    resp = await client.post(
        url, json={"dayOfWeek": 4, "startTime": "09:00", "endTime": "12:00"}, headers=auth_headers(other)
    )
    assert resp.status_code == 403

    resp = await client.post(
        f"{API}/services/999/availability",
        json={"dayOfWeek": 4, "startTime": "09:00", "endTime": "12:00"},
        headers=headers,
    )
    assert resp.status_code == 404

    resp = await client.get(url, params={"day_of_week": 3})
    assert [(w["start_time"], w["end_time"]) for w in resp.json()] == [("09:00", "12:00"), ("12:00", "13:00")]


async def test_booking_flow(client, service, provider, make_user):
    u = await make_user(Role.USER, "u")
    v = await make_user(Role.USER, "v")
    w = await make_user(Role.USER, "w")
    resp = await client.post(
        f"{API}/services/{service.id}/availability",
        json={"dayOfWeek": 3, "startTime": "09:00", "endTime": "12:00"},
        headers=auth_headers(provider),
    )
    assert resp.status_code == 201

    def booking(start: str, end: str) -> dict:
        return {"serviceId": service.id, "date": WEDNESDAY.isoformat(), "startTime": start, "endTime": end}

    resp = await client.post(f"{API}/appointments", json=booking("09:00", "09:30"), headers=auth_headers(u))
    assert resp.status_code == 201
    first = resp.json()
    assert first["status"] == "BOOKED"
    assert first["date"] == "2025-01-01"

    resp = await client.post(f"{API}/appointments", json=booking("09:15", "09:45"), headers=auth_headers(v))
    assert resp.status_code == 409
    resp = await client.post(f"{API}/appointments", json=booking("09:30", "10:00"), headers=auth_headers(v))
    assert resp.status_code == 201
    resp = await client.post(f"{API}/appointments", json=booking("11:45", "12:15"), headers=auth_headers(v))
    assert resp.status_code == 400

    # Providers cannot book, users cannot cancel others' appointments
    resp = await client.post(f"{API}/appointments", json=booking("10:00", "10:30"), headers=auth_headers(provider))
    assert resp.status_code == 403
    resp = await client.patch(f"{API}/appointments/{first['id']}/cancel", headers=auth_headers(v))
    assert resp.status_code == 403
    resp = await client.patch(f"{API}/appointments/999/cancel", headers=auth_headers(u))
    assert resp.status_code == 404

    for _ in range(2):
        resp = await client.patch(f"{API}/appointments/{first['id']}/cancel", headers=auth_headers(u))
        assert resp.status_code == 200
        assert resp.json()["status"] == "CANCELLED"

    resp = await client.post(f"{API}/appointments", json=booking("09:00", "09:30"), headers=auth_headers(w))
    assert resp.status_code == 201

    resp = await client.get(f"{API}/services/{service.id}/slots", params={"date": WEDNESDAY.isoformat()})
    assert resp.status_code == 200
    body = resp.json()
    assert body["day_of_week"] == 3
    assert body["slots"] == [{"start_time": "10:00", "end_time": "12:00"}]

    resp = await client.get(
        f"{API}/services/{service.id}/slots", params={"date": WEDNESDAY.isoformat(), "bucket_minutes": 30}
    )
    assert len(resp.json()["slots"]) == 4

    resp = await client.get(f"{API}/appointments", headers=auth_headers(u))
    assert [a["status"] for a in resp.json()] == ["CANCELLED"]
    resp = await client.get(f"{API}/appointments", headers=auth_headers(provider))
    assert len(resp.json()) == 3


async def test_booking_validation(client, service, make_user):
    u = await make_user(Role.USER, "u")
    headers = auth_headers(u)
    resp = await client.post(
        f"{API}/appointments",
        json={"serviceId": service.id, "date": "2025-13-01", "startTime": "09:00", "endTime": "09:30"},
        headers=headers,
    )
    assert resp.status_code == 400
    resp = await client.post(
        f"{API}/appointments",
        json={"serviceId": service.id, "date": "2025-01-01", "startTime": "09.00", "endTime": "09:30"},
        headers=headers,
    )
    assert resp.status_code == 400
    resp = await client.post(
        f"{API}/appointments",
        json={"serviceId": 999, "date": "2025-01-01", "startTime": "09:00", "endTime": "09:30"},
        headers=headers,
    )
    assert resp.status_code == 404
    resp = await client.get(f"{API}/services/{service.id}/slots", params={"date": "01/01/2025"})
    assert resp.status_code == 400


@pytest.mark.parametrize("value", [1735689600, "1735689600", "2025-1-1", "2025-01-01T00:00:00", None])
async def test__booking_date_must_be_iso_string(client, service, make_user, value):
    u = await make_user(Role.USER, "u")
    resp = await client.post(
        f"{API}/appointments",
        json={"serviceId": service.id, "date": value, "startTime": "09:00", "endTime": "09:30"},
        headers=auth_headers(u),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid input"
