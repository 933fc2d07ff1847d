from datetime import datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from booking_core.api import get_booking_service
from booking_core.main import app
from booking_core.services.booking import BookingService

NOW = datetime(2024, 4, 1, 9, 0)


@pytest_asyncio.fixture
async def client(db, config, tenant):
    app.dependency_overrides[get_booking_service] = lambda: BookingService(
        db, config=config, clock=lambda: NOW
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


@pytest.fixture
def headers(tenant):
    return {"X-User-Id": "user-1", "X-Business-Id": tenant.business["id"]}


@pytest.fixture
def payload(tenant):
    return {
        "client_id": tenant.client["id"],
        "team_member_id": tenant.member["id"],
        "category_id": tenant.category["id"],
        "start_date": "2024-05-01",
        "start_time": "10:00",
        "service_ids": [tenant.haircut["id"]],
    }


async def _create(client, headers, payload):
    response = await client.post("/appointments", json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()["data"]["appointment"]


async def test_create_appointment(client, headers, payload):
    response = await client.post("/appointments", json=payload, headers=headers)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    appointment = body["data"]["appointment"]
    assert appointment["date"] == "2024-05-01"
    assert appointment["end_time"] == "10:30"
    assert appointment["status"] == "PENDING"
    assert appointment["final_price"] == 500.0
    assert appointment["services"][0]["name"] == "Haircut"


async def test_conflict_maps_to_409(client, headers, payload, tenant):
    first = await _create(client, headers, payload)
    payload["client_id"] = tenant.other_client["id"]
    payload["start_time"] = "10:15"

    response = await client.post("/appointments", json=payload, headers=headers)

    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "conflict"
    assert body["same_client"] is False
    assert body["conflicting_appointment"]["id"] == first["id"]


async def test_missing_fields_map_to_400(client, headers):
    response = await client.post("/appointments", json={}, headers=headers)

    assert response.status_code == 400
    assert response.json()["error"] == "missing_fields"


async def test_foreign_team_member_maps_to_403(client, headers, payload, tenant):
    payload["team_member_id"] = tenant.foreign_member["id"]

    response = await client.post("/appointments", json=payload, headers=headers)

    assert response.status_code == 403
    assert response.json()["error"] == "tenant_mismatch"


async def test_unknown_services_map_to_404(client, headers, payload):
    payload["service_ids"] = ["missing"]

    response = await client.post("/appointments", json=payload, headers=headers)

    assert response.status_code == 404
    assert response.json()["missing_service_ids"] == ["missing"]


async def test_unknown_appointment_maps_to_404(client, headers):
    response = await client.get("/appointments/missing", headers=headers)

    assert response.status_code == 404
    assert response.json()["error"] == "appointment_not_found"


async def test_actor_headers_are_required(client, payload):
    response = await client.post("/appointments", json=payload)
    assert response.status_code == 422


async def test_get_and_list(client, headers, payload, tenant):
    created = await _create(client, headers, payload)

    response = await client.get(f"/appointments/{created['id']}", headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["appointment"]["reference"] == created["reference"]

    response = await client.get(
        "/appointments", params={"client_id": tenant.client["id"]}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["pagination"] == {"total": 1, "page": 1, "limit": 10, "pages": 1}

    response = await client.get(
        f"/appointments/clients/{tenant.client['id']}/upcoming", headers=headers
    )
    assert [item["id"] for item in response.json()["data"]["appointments"]] == [created["id"]]


async def test_update_appointment(client, headers, payload):
    created = await _create(client, headers, payload)

    response = await client.patch(
        f"/appointments/{created['id']}", json={"start_time": "11:00"}, headers=headers
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["appointment"]["end_time"] == "11:30"
    assert "start_time" in data["changed_fields"]


async def test_reschedule_appointment(client, headers, payload):
    created = await _create(client, headers, payload)

    response = await client.post(
        f"/appointments/{created['id']}/reschedule",
        json={"start_date": "2024-05-02", "start_time": "16:00"},
        headers=headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["oldAppointment"]["status"] == "CANCELLED"
    assert data["newAppointment"]["parent_appointment_id"] == created["id"]
    assert data["newAppointment"]["date"] == "2024-05-02"


async def test_cancel_then_cancel_again(client, headers, payload):
    created = await _create(client, headers, payload)
    url = f"/appointments/{created['id']}/cancel"

    response = await client.post(url, json={"cancelled_by": "client"}, headers=headers)
    assert response.status_code == 200
    appointment = response.json()["data"]["appointment"]
    assert appointment["status"] == "CANCELLED"
    assert appointment["cancelled_by"] == "client"

    response = await client.post(url, json={}, headers=headers)
    assert response.status_code == 400
    assert response.json()["error"] == "already_cancelled"


async def test_change_status(client, headers, payload):
    created = await _create(client, headers, payload)

    response = await client.patch(
        f"/appointments/{created['id']}/status", json={"status": "CONFIRMED"}, headers=headers
    )

    assert response.status_code == 200
    assert response.json()["data"]["appointment"]["status"] == "CONFIRMED"


async def test_delete_appointment(client, headers, payload):
    created = await _create(client, headers, payload)

    response = await client.delete(f"/appointments/{created['id']}", headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["appointmentId"] == created["id"]

    response = await client.get(f"/appointments/{created['id']}", headers=headers)
    assert response.status_code == 404


async def test_info(client):
    response = await client.get("/info")

    assert response.status_code == 200
    assert response.json()["currency"] == "INR"


async def test_list_pagination_and_statuses(client, headers, payload, tenant):
    first = await _create(client, headers, payload)
    payload["start_time"] = "9:00"
    second = await _create(client, headers, payload)
    await client.patch(
        f"/appointments/{first['id']}/status", json={"status": "CONFIRMED"}, headers=headers
    )

    response = await client.get(
        "/appointments", params={"limit": 1, "sort": "-date"}, headers=headers
    )
    data = response.json()["data"]
    assert [item["start_time"] for item in data["appointments"]] == ["10:00"]
    assert data["pagination"] == {"total": 2, "page": 1, "limit": 1, "pages": 2}

    response = await client.get(
        "/appointments", params=[("status", "PENDING"), ("status", "CONFIRMED")], headers=headers
    )
    assert [item["id"] for item in response.json()["data"]["appointments"]] == [
        second["id"],
        first["id"],
    ]

    response = await client.get("/appointments", params={"limit": 500}, headers=headers)
    assert response.status_code == 422


async def test_client_service_history_route(client, headers, payload, tenant):
    await _create(client, headers, payload)

    response = await client.get(
        f"/appointments/clients/{tenant.client['id']}/services/history", headers=headers
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["services"][0]["service_id"] == tenant.haircut["id"]
    assert data["services"][0]["count"] == 1
    assert data["services"][0]["last_booked"] == "2024-05-01"
    assert data["pagination"]["total"] == 1

    response = await client.get(
        "/appointments/clients/missing/services/history", headers=headers
    )
    assert response.status_code == 404
    assert response.json()["error"] == "client_not_found"
